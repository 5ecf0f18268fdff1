"""Placement generation for every ship on the current board."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np
import numpy.typing as npt

from battleship_guesser.engine.board import Board
from battleship_guesser.engine.ship import Coordinate, Orientation, Placement
from battleship_guesser.telemetry import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer("battleship_guesser.solver.configurations")


def footprint_admits_ship(board: Board, col: int, row: int, length: int, orientation: Orientation) -> bool:
    """Check a footprint in padded-grid coordinates against the board evidence.

    The padding border is wide enough that ``col + length - 1`` and
    ``row + length - 1`` never leave the grid for any playable start cell.
    """
    dx, dy = orientation.step
    for offset in range(length):
        if not board.padded_cell(col + dx * offset, row + dy * offset).admits_ship:
            return False
    return True


def placements_for_length(board: Board, length: int) -> list[Placement]:
    """Return every placement of a ship of ``length`` consistent with the board."""
    if length - 1 > board.padding:
        raise ValueError(f"Ship of length {length} exceeds the board padding.")
    placements: list[Placement] = []
    for y in range(board.size):
        for x in range(board.size):
            for orientation in Orientation:
                if footprint_admits_ship(
                    board, x + board.padding, y + board.padding, length, orientation
                ):
                    placements.append(Placement(Coordinate(x, y), orientation))
    return placements


def generate_placements(board: Board, lengths: Sequence[int]) -> list[list[Placement]]:
    """Return, per ship index, the ordered list of placements the board still allows.

    Ships of equal length get equal but separate lists. Sunk ships are not
    special-cased here; their pinned placement is substituted later.
    """
    with tracer.start_as_current_span("solver.generate_placements") as span:
        by_length: dict[int, list[Placement]] = {}
        result: list[list[Placement]] = []
        for length in lengths:
            if length not in by_length:
                by_length[length] = placements_for_length(board, length)
            result.append(list(by_length[length]))
        counts = [len(candidates) for candidates in result]
        span.set_attribute("placements.counts", counts)
        logger.debug("placements_generated", extra={"counts": counts})
        return result


def candidate_lists(
    placements: Sequence[Sequence[Placement]], sunk: Mapping[int, Placement]
) -> list[list[Placement]]:
    """Replace each sunk ship's list with its single reported placement."""
    return [
        [sunk[index]] if index in sunk else list(candidates)
        for index, candidates in enumerate(placements)
    ]


def footprint_matrix(
    placements: Sequence[Placement], length: int, size: int
) -> npt.NDArray[np.bool_]:
    """Return a ``(len(placements), size * size)`` occupancy matrix.

    Row ``i`` marks the squares under placement ``i``, columns in scan order.
    """
    occupancy = np.zeros((len(placements), size * size), dtype=bool)
    for row, placement in enumerate(placements):
        for square in placement.squares(length):
            occupancy[row, square.index(size)] = True
    return occupancy
