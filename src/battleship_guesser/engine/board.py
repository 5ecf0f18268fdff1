"""Padded board state tracking for the guesser."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator

import numpy as np
import numpy.typing as npt

from .ship import BOARD_SIZE, FLEET_LENGTHS, Coordinate


class CellState(Enum):
    """State of a board cell as far as the guessing player knows."""

    PADDING = 0
    UNGUESSED = 1
    MISS = 2
    HIT_UNRESOLVED = 3
    HIT_ON_SUNK_SHIP = 4

    @property
    def admits_ship(self) -> bool:
        """Return True if an unsunk ship could still occupy a cell in this state."""
        return self in (CellState.UNGUESSED, CellState.HIT_UNRESOLVED)

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


_SYMBOLS = {
    CellState.PADDING: " ",
    CellState.UNGUESSED: "-",
    CellState.MISS: "X",
    CellState.HIT_UNRESOLVED: "O",
    CellState.HIT_ON_SUNK_SHIP: "S",
}


class Board:
    """A square board of playable cells surrounded by a padding border.

    The border is ``longest ship - 1`` cells wide so that a footprint scan
    starting from any playable cell never leaves the underlying array.
    Cells are addressed ``[row, col]`` in the padded grid; playable cells
    are exposed through :class:`Coordinate` (``x`` column, ``y`` row).
    """

    def __init__(self, size: int = BOARD_SIZE, longest_ship: int = max(FLEET_LENGTHS)) -> None:
        if size <= 0:
            raise ValueError("Board size must be positive.")
        if longest_ship <= 0:
            raise ValueError("Ship lengths must be positive.")
        self.size = size
        self.padding = longest_ship - 1
        side = size + 2 * self.padding
        self._grid: npt.NDArray[np.int8] = np.full(
            (side, side), CellState.PADDING.value, dtype=np.int8
        )
        inner = slice(self.padding, self.padding + size)
        self._grid[inner, inner] = CellState.UNGUESSED.value

    def is_valid_coordinate(self, coord: Coordinate) -> bool:
        """Check whether a coordinate lies inside the playable area."""
        return 0 <= coord.x < self.size and 0 <= coord.y < self.size

    def cell(self, coord: Coordinate) -> CellState:
        """Return the state of a playable cell."""
        if not self.is_valid_coordinate(coord):
            raise ValueError(f"Coordinate {coord} is off the board.")
        return CellState(int(self._grid[coord.y + self.padding, coord.x + self.padding]))

    def padded_cell(self, col: int, row: int) -> CellState:
        """Return the raw state at a padded-grid position (padding included)."""
        return CellState(int(self._grid[row, col]))

    def record_guess(self, coord: Coordinate, hit: bool) -> CellState:
        """Resolve an unguessed cell to a hit or a miss."""
        current = self.cell(coord)
        if current is not CellState.UNGUESSED:
            raise ValueError(f"Square {coord} has already been guessed.")
        new_state = CellState.HIT_UNRESOLVED if hit else CellState.MISS
        self._set(coord, new_state)
        return new_state

    def mark_sunk(self, squares: Iterable[Coordinate]) -> None:
        """Mark every square of a sunk ship's footprint."""
        footprint = list(squares)
        for coord in footprint:
            if not self.is_valid_coordinate(coord):
                raise ValueError(f"Sunk ship square {coord} is off the board.")
        for coord in footprint:
            self._set(coord, CellState.HIT_ON_SUNK_SHIP)

    def coordinates(self) -> Iterator[Coordinate]:
        """Yield every playable square in scan order (rows upward, columns rightward)."""
        for y in range(self.size):
            for x in range(self.size):
                yield Coordinate(x, y)

    def unguessed(self) -> list[Coordinate]:
        return [coord for coord in self.coordinates() if self.cell(coord) is CellState.UNGUESSED]

    def unresolved_hits(self) -> frozenset[Coordinate]:
        return frozenset(
            coord for coord in self.coordinates() if self.cell(coord) is CellState.HIT_UNRESOLVED
        )

    def inner_states(self) -> npt.NDArray[np.int8]:
        """Return a copy of the playable cells as a ``(size, size)`` array indexed ``[y, x]``."""
        inner = slice(self.padding, self.padding + self.size)
        return self._grid[inner, inner].copy()

    def render(self) -> str:
        """Render the board with the top row first and 1-based axis labels."""
        lines = []
        for y in reversed(range(self.size)):
            symbols = " ".join(self.cell(Coordinate(x, y)).symbol for x in range(self.size))
            lines.append(f" {y + 1:<3}{symbols}")
        lines.append("    " + " ".join(str(x + 1) for x in range(self.size)))
        return "\n".join(lines)

    def _set(self, coord: Coordinate, state: CellState) -> None:
        self._grid[coord.y + self.padding, coord.x + self.padding] = state.value
