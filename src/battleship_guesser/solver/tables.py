"""Per-pass lookup tables: placement collisions and placement frequencies.

Both tables are created fresh at the start of each move-generation pass
and dropped when it returns. Internally every placement is identified by
its position in its ship's candidate list, so the search loops work on
integer ids and numpy arrays instead of hashing placements.
"""

from __future__ import annotations

from itertools import combinations
from typing import Iterator, NamedTuple, Sequence

import numpy as np
import numpy.typing as npt

from battleship_guesser.engine.ship import Placement


class CollisionKey(NamedTuple):
    ship_a: int
    ship_b: int
    placement_a: Placement
    placement_b: Placement


class FrequencyKey(NamedTuple):
    ship: int
    placement: Placement


def _index_candidates(candidates: Sequence[Sequence[Placement]]) -> list[dict[Placement, int]]:
    return [
        {placement: placement_id for placement_id, placement in enumerate(ship_candidates)}
        for ship_candidates in candidates
    ]


class CollisionTable:
    """Overlapping placement pairs, one boolean matrix per pair of ships.

    ``matrix(a, b)[i, j]`` is True when placement ``i`` of ship ``a`` and
    placement ``j`` of ship ``b`` share a square. Pairs not marked collide
    with nothing.
    """

    def __init__(self, candidates: Sequence[Sequence[Placement]]) -> None:
        self._ids = _index_candidates(candidates)
        self.sizes = tuple(len(ship_candidates) for ship_candidates in candidates)
        self._matrices: dict[tuple[int, int], npt.NDArray[np.bool_]] = {
            (ship_a, ship_b): np.zeros((self.sizes[ship_a], self.sizes[ship_b]), dtype=bool)
            for ship_a, ship_b in combinations(range(len(self.sizes)), 2)
        }

    def placement_id(self, ship: int, placement: Placement) -> int:
        """Return the position of ``placement`` in ship ``ship``'s candidate list."""
        try:
            return self._ids[ship][placement]
        except KeyError:
            raise ValueError(f"{placement} is not a candidate for ship {ship}.") from None

    def matrix(self, ship_a: int, ship_b: int) -> npt.NDArray[np.bool_]:
        """Return the collision matrix with rows for ``ship_a`` and columns for ``ship_b``."""
        if ship_a == ship_b:
            raise ValueError("A ship cannot collide with itself.")
        if ship_a < ship_b:
            return self._matrices[(ship_a, ship_b)]
        return self._matrices[(ship_b, ship_a)].T

    def set_matrix(self, ship_a: int, ship_b: int, overlaps: npt.NDArray[np.bool_]) -> None:
        if ship_a > ship_b:
            ship_a, ship_b = ship_b, ship_a
            overlaps = overlaps.T
        expected = self._matrices[(ship_a, ship_b)].shape
        if overlaps.shape != expected:
            raise ValueError(f"Collision matrix for ships {ship_a}, {ship_b} must be {expected}.")
        self._matrices[(ship_a, ship_b)] = np.array(overlaps, dtype=bool)

    def collides(self, ship_a: int, placement_a: Placement, ship_b: int, placement_b: Placement) -> bool:
        id_a = self._ids[ship_a].get(placement_a)
        id_b = self._ids[ship_b].get(placement_b)
        if id_a is None or id_b is None:
            return False
        return bool(self.matrix(ship_a, ship_b)[id_a, id_b])

    def __len__(self) -> int:
        return int(sum(np.count_nonzero(overlaps) for overlaps in self._matrices.values()))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, CollisionKey) or key.ship_a == key.ship_b:
            return False
        return self.collides(key.ship_a, key.placement_a, key.ship_b, key.placement_b)


class FrequencyTable:
    """Counts how often each ``(ship, placement)`` appears in a valid fleet."""

    def __init__(self, candidates: Sequence[Sequence[Placement]]) -> None:
        self.candidates = [tuple(ship_candidates) for ship_candidates in candidates]
        self.counts = [np.zeros(len(ship_candidates), dtype=np.int64) for ship_candidates in candidates]
        self.valid_fleets = 0

    def record_batch(self, fleets: npt.NDArray[np.int64]) -> None:
        """Count valid fleets given as rows of placement ids, one column per ship."""
        if len(fleets) == 0:
            return
        for ship, counts in enumerate(self.counts):
            counts += np.bincount(fleets[:, ship], minlength=len(counts))
        self.valid_fleets += len(fleets)

    def items(self) -> Iterator[tuple[FrequencyKey, int]]:
        """Yield every placement seen in at least one valid fleet with its count."""
        for ship, counts in enumerate(self.counts):
            for placement_id in np.flatnonzero(counts):
                yield FrequencyKey(ship, self.candidates[ship][placement_id]), int(counts[placement_id])
