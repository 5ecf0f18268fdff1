"""The shared predicate every candidate fleet is checked against.

A fleet is one placement id per ship index. It is valid iff no two ships
collide and every unresolved hit lies under some ship. Misses and
sunk-ship squares are not re-checked; placement generation never
produces a footprint over them.
"""

from __future__ import annotations

from itertools import combinations
from typing import AbstractSet, Sequence

import numpy as np
import numpy.typing as npt

from battleship_guesser.engine.ship import Coordinate, Placement

from .configurations import footprint_matrix
from .tables import CollisionTable


class FleetValidator:
    """Validity checks for one pass, over placement ids.

    ``hit_cover[ship][i, h]`` is True when placement ``i`` of ``ship``
    covers the ``h``-th unresolved hit (hits in scan order). Footprints are
    resolved once here so the search loops do no geometry.
    """

    def __init__(
        self,
        candidates: Sequence[Sequence[Placement]],
        collisions: CollisionTable,
        hit_cover: Sequence[npt.NDArray[np.bool_]],
    ) -> None:
        self.candidates = [tuple(ship_candidates) for ship_candidates in candidates]
        self.collisions = collisions
        self.hit_cover = list(hit_cover)
        self.sizes = tuple(len(ship_candidates) for ship_candidates in candidates)
        self.hit_count = self.hit_cover[0].shape[1] if self.hit_cover else 0
        self._pairs = list(combinations(range(len(self.sizes)), 2))

    @classmethod
    def for_board(
        cls,
        candidates: Sequence[Sequence[Placement]],
        lengths: Sequence[int],
        collisions: CollisionTable,
        unresolved_hits: AbstractSet[Coordinate],
        size: int,
    ) -> FleetValidator:
        hit_columns = np.array(sorted(square.index(size) for square in unresolved_hits), dtype=np.intp)
        hit_cover = [
            footprint_matrix(ship_candidates, lengths[ship], size)[:, hit_columns]
            for ship, ship_candidates in enumerate(candidates)
        ]
        return cls(candidates, collisions, hit_cover)

    @property
    def ship_count(self) -> int:
        return len(self.sizes)

    def fleet_ids(self, fleet: Sequence[Placement]) -> list[int]:
        return [self.collisions.placement_id(ship, placement) for ship, placement in enumerate(fleet)]

    def is_valid_fleet(self, fleet: Sequence[Placement]) -> bool:
        """Accept a fleet given as placements iff it is collision-free and covers every hit."""
        return bool(self.valid_rows(np.array([self.fleet_ids(fleet)], dtype=np.int64))[0])

    def valid_rows(self, fleets: npt.NDArray[np.int64]) -> npt.NDArray[np.bool_]:
        """Return, per row of placement ids, whether that fleet is valid."""
        valid = np.ones(len(fleets), dtype=bool)
        for ship_a, ship_b in self._pairs:
            valid &= ~self.collisions.matrix(ship_a, ship_b)[fleets[:, ship_a], fleets[:, ship_b]]
        if self.hit_count:
            covered = np.zeros((len(fleets), self.hit_count), dtype=bool)
            for ship, cover in enumerate(self.hit_cover):
                covered |= cover[fleets[:, ship]]
            valid &= covered.all(axis=1)
        return valid
