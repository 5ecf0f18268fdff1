"""Board, fleet and game-state model."""

from .board import Board, CellState
from .game import GameState, GuessOutcome
from .ship import BOARD_SIZE, FLEET_LENGTHS, Coordinate, Orientation, Placement

__all__ = [
    "BOARD_SIZE",
    "FLEET_LENGTHS",
    "Board",
    "CellState",
    "Coordinate",
    "GameState",
    "GuessOutcome",
    "Orientation",
    "Placement",
]
