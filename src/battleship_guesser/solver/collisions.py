"""Pairwise collision precomputation between ship placements."""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Sequence

import numpy as np

from battleship_guesser.engine.ship import Placement
from battleship_guesser.telemetry import get_tracer

from .configurations import footprint_matrix
from .tables import CollisionTable

logger = logging.getLogger(__name__)
tracer = get_tracer("battleship_guesser.solver.collisions")


def precompute_collisions(
    lengths: Sequence[int], candidates: Sequence[Sequence[Placement]], size: int
) -> CollisionTable:
    """Record every overlapping placement pair for every pair of ships.

    ``candidates`` holds one list per ship index, sunk ships already pinned
    to their reported placement. Two placements collide when their
    occupancy rows share a square, so each ship pair is settled by one
    matrix product.
    """
    with tracer.start_as_current_span("solver.precompute_collisions") as span:
        table = CollisionTable(candidates)
        occupancy = [
            footprint_matrix(ship_candidates, lengths[ship], size).astype(np.int32)
            for ship, ship_candidates in enumerate(candidates)
        ]
        pairs_checked = 0
        for ship_a, ship_b in combinations(range(len(candidates)), 2):
            pairs_checked += len(candidates[ship_a]) * len(candidates[ship_b])
            table.set_matrix(ship_a, ship_b, occupancy[ship_a] @ occupancy[ship_b].T > 0)
        span.set_attribute("collisions.pairs_checked", pairs_checked)
        span.set_attribute("collisions.count", len(table))
        logger.debug(
            "collisions_precomputed",
            extra={"pairs_checked": pairs_checked, "collisions": len(table)},
        )
        return table
