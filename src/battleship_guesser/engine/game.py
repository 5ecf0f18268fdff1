"""Game state owned by the caller across turns."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Sequence

from battleship_guesser.telemetry import get_tracer, solver_instruments

from .board import Board, CellState
from .ship import BOARD_SIZE, FLEET_LENGTHS, Coordinate, Orientation, Placement

if TYPE_CHECKING:  # pragma: no cover - typing only
    from battleship_guesser.solver import RandomSource, SolverConfig

logger = logging.getLogger(__name__)
tracer = get_tracer("battleship_guesser.engine.game")


class GuessOutcome(Enum):
    HIT = "hit"
    MISS = "miss"


class GameState:
    """Board evidence, sunk ships and the guess counter for one game.

    ``report_*`` methods are the boundary for outside input and reject
    anything inconsistent with the current state; the solver trusts what
    it finds here.
    """

    def __init__(self, size: int = BOARD_SIZE, fleet_lengths: Sequence[int] = FLEET_LENGTHS) -> None:
        if not fleet_lengths:
            raise ValueError("The fleet must contain at least one ship.")
        self.fleet_lengths: tuple[int, ...] = tuple(fleet_lengths)
        self.board = Board(size=size, longest_ship=max(self.fleet_lengths))
        self._sunk: dict[int, Placement] = {}
        self.guesses = 0

    @property
    def sunk_placements(self) -> Mapping[int, Placement]:
        return dict(self._sunk)

    def is_sunk(self, ship_index: int) -> bool:
        return ship_index in self._sunk

    def is_game_over(self) -> bool:
        """Return True once every ship has been reported sunk."""
        return len(self._sunk) == len(self.fleet_lengths)

    def report_guess_outcome(self, square: Coordinate, outcome: GuessOutcome) -> CellState:
        """Apply a hit or miss answer to an unguessed square."""
        with tracer.start_as_current_span("game.report_guess_outcome") as span:
            span.set_attribute("guess.x", square.x)
            span.set_attribute("guess.y", square.y)
            span.set_attribute("guess.outcome", outcome.value)
            if not self.board.is_valid_coordinate(square):
                logger.error("guess_out_of_bounds", extra={"x": square.x, "y": square.y})
                raise ValueError(f"Square {square} is off the board.")
            try:
                state = self.board.record_guess(square, hit=outcome is GuessOutcome.HIT)
            except ValueError:
                logger.error("guess_duplicate", extra={"x": square.x, "y": square.y})
                raise
            self.guesses += 1
            solver_instruments().guesses_recorded.add(1, attributes={"outcome": outcome.value})
            logger.info(
                "guess_recorded",
                extra={"x": square.x, "y": square.y, "outcome": outcome.value, "guesses": self.guesses},
            )
            return state

    def report_ship_sunk(
        self, ship_index: int, anchor_x: int, anchor_y: int, orientation: Orientation
    ) -> Placement:
        """Pin a ship to its reported placement and mark its squares sunk."""
        with tracer.start_as_current_span("game.report_ship_sunk") as span:
            span.set_attribute("ship.index", ship_index)
            span.set_attribute("ship.anchor.x", anchor_x)
            span.set_attribute("ship.anchor.y", anchor_y)
            span.set_attribute("ship.orientation", orientation.name)
            if not 0 <= ship_index < len(self.fleet_lengths):
                logger.error("sinkage_unknown_ship", extra={"ship_index": ship_index})
                raise ValueError(f"Ship index must be between 0 and {len(self.fleet_lengths) - 1}.")
            if ship_index in self._sunk:
                logger.error("sinkage_duplicate", extra={"ship_index": ship_index})
                raise ValueError(f"Ship {ship_index} has already been sunk.")
            placement = Placement(Coordinate(anchor_x, anchor_y), orientation)
            length = self.fleet_lengths[ship_index]
            if not placement.fits(length, self.board.size):
                logger.error(
                    "sinkage_off_board",
                    extra={"ship_index": ship_index, "x": anchor_x, "y": anchor_y},
                )
                raise ValueError("The sunk ship does not fit on the board at that position.")

            self.board.mark_sunk(placement.squares(length))
            self._sunk[ship_index] = placement
            logger.info(
                "ship_sunk_recorded",
                extra={
                    "ship_index": ship_index,
                    "x": anchor_x,
                    "y": anchor_y,
                    "orientation": orientation.name,
                    "remaining": len(self.fleet_lengths) - len(self._sunk),
                },
            )
            return placement

    def generate_move(
        self, config: SolverConfig | None = None, rng: RandomSource | None = None
    ) -> Coordinate:
        """Run one move-generation pass over the current evidence."""
        from battleship_guesser.solver import MoveGenerator

        return MoveGenerator(config=config, rng=rng).generate_move(self)
