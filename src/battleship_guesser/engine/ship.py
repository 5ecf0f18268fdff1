"""Ship and placement domain model for the guesser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

BOARD_SIZE = 10


@dataclass(frozen=True)
class Coordinate:
    """Immutable inner-board coordinate (0-based, ``x`` column, ``y`` row)."""

    x: int
    y: int

    def index(self, size: int = BOARD_SIZE) -> int:
        """Return the row-major scan index of this square."""
        return self.y * size + self.x

    @classmethod
    def from_index(cls, index: int, size: int = BOARD_SIZE) -> Coordinate:
        return cls(index % size, index // size)


class Orientation(Enum):
    """Direction a ship extends from its anchor square."""

    UP = 0
    RIGHT = 1

    @property
    def step(self) -> tuple[int, int]:
        """Return the ``(dx, dy)`` offset between consecutive ship squares."""
        return (0, 1) if self is Orientation.UP else (1, 0)


FLEET_LENGTHS: tuple[int, ...] = (2, 3, 3, 4, 5)


@dataclass(frozen=True)
class Placement:
    """An anchor square plus the direction the ship extends in."""

    anchor: Coordinate
    orientation: Orientation

    def squares(self, length: int) -> tuple[Coordinate, ...]:
        """Return the ordered footprint of a ship of ``length`` at this placement."""
        dx, dy = self.orientation.step
        return tuple(
            Coordinate(self.anchor.x + dx * offset, self.anchor.y + dy * offset)
            for offset in range(length)
        )

    def fits(self, length: int, size: int = BOARD_SIZE) -> bool:
        """Check that the full footprint lies inside a ``size`` x ``size`` board."""
        end = self.squares(length)[-1]
        return (
            0 <= self.anchor.x < size
            and 0 <= self.anchor.y < size
            and 0 <= end.x < size
            and 0 <= end.y < size
        )
