"""Best-move selection from placement frequencies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Collection, Sequence

import numpy as np
import numpy.typing as npt

from battleship_guesser.engine.board import Board, CellState
from battleship_guesser.engine.ship import Coordinate
from battleship_guesser.telemetry import get_tracer

from .tables import FrequencyTable

logger = logging.getLogger(__name__)
tracer = get_tracer("battleship_guesser.solver.selector")


class NoMoveAvailableError(RuntimeError):
    """Raised when no unguessed square is covered by any valid fleet."""


@dataclass(frozen=True)
class MoveChoice:
    square: Coordinate
    coverage: int
    distance: float


def coverage_grid(
    frequencies: FrequencyTable,
    lengths: Sequence[int],
    size: int,
    exclude_ships: Collection[int] = (),
) -> npt.NDArray[np.int64]:
    """Sum placement frequencies onto the squares they cover.

    Returns a ``(size, size)`` array indexed ``[y, x]``. Ships listed in
    ``exclude_ships`` (the sunk ones) contribute nothing.
    """
    grid = np.zeros((size, size), dtype=np.int64)
    for (ship, placement), count in frequencies.items():
        if ship in exclude_ships:
            continue
        for square in placement.squares(lengths[ship]):
            grid[square.y, square.x] += count
    return grid


def select_best_move(coverage: npt.NDArray[np.int64], board: Board, valid_fleets: int) -> MoveChoice:
    """Pick the unguessed square whose coverage is nearest half the valid fleets.

    Squares with zero coverage are never picked. Ties go to the first
    square in scan order (``y`` ascending, then ``x`` ascending).
    """
    with tracer.start_as_current_span("solver.select_move") as span:
        target = valid_fleets / 2
        candidates = (board.inner_states() == CellState.UNGUESSED.value) & (coverage != 0)
        if not candidates.any():
            logger.error(
                "no_move_available",
                extra={"valid_fleets": valid_fleets, "unguessed": len(board.unguessed())},
            )
            raise NoMoveAvailableError("No unguessed square is covered by any valid fleet.")

        distance = np.where(candidates, np.abs(coverage - target), np.inf)
        best = int(np.argmin(distance))
        square = Coordinate.from_index(best, board.size)
        choice = MoveChoice(
            square=square,
            coverage=int(coverage[square.y, square.x]),
            distance=float(distance.flat[best]),
        )
        span.set_attribute("move.x", square.x)
        span.set_attribute("move.y", square.y)
        span.set_attribute("move.distance", choice.distance)
        logger.debug(
            "move_scored",
            extra={"x": square.x, "y": square.y, "coverage": choice.coverage, "distance": choice.distance},
        )
        return choice
