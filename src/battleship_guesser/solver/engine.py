"""One complete move-generation pass."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from battleship_guesser.engine.ship import Coordinate
from battleship_guesser.telemetry import get_tracer, solver_instruments

from .collisions import precompute_collisions
from .config import SolverConfig, load_solver_config
from .configurations import candidate_lists, generate_placements
from .search import RandomSource, SearchStrategy, search_fleets
from .selector import coverage_grid, select_best_move
from .validation import FleetValidator

if TYPE_CHECKING:  # pragma: no cover - typing only
    from battleship_guesser.engine.game import GameState

logger = logging.getLogger(__name__)
tracer = get_tracer("battleship_guesser.solver.engine")


@dataclass(frozen=True)
class MoveReport:
    """The chosen square together with the diagnostics of the pass."""

    move: Coordinate
    strategy: SearchStrategy
    placements_per_ship: tuple[int, ...]
    combinations: int
    fleets_tested: int
    valid_fleets: int
    collisions: int
    coverage: int
    best_distance: float
    elapsed_seconds: float

    def summary(self) -> str:
        lines = [
            "Placements per ship: " + ", ".join(str(count) for count in self.placements_per_ship),
            f"Strategy: {self.strategy.value} ({self.combinations} combinations)",
            f"Valid fleets: {self.valid_fleets} out of {self.fleets_tested}",
            f"Time taken: {self.elapsed_seconds:.3f}s",
            f"Best distance: {self.best_distance:.1f}",
        ]
        return "\n".join(lines)


class MoveGenerator:
    """Runs placement generation, collision precomputation, search and selection.

    The collision and frequency tables live only for the duration of
    :meth:`run`; nothing is carried from one pass to the next.
    """

    def __init__(self, config: SolverConfig | None = None, rng: RandomSource | None = None) -> None:
        self.config = config or load_solver_config()
        self.rng = rng

    def run(self, state: GameState) -> MoveReport:
        with tracer.start_as_current_span("solver.generate_move") as span:
            started = time.perf_counter()
            board = state.board
            lengths = state.fleet_lengths
            sunk = state.sunk_placements

            placements = generate_placements(board, lengths)
            candidates = candidate_lists(placements, sunk)
            collisions = precompute_collisions(lengths, candidates, board.size)
            validator = FleetValidator.for_board(
                candidates, lengths, collisions, board.unresolved_hits(), board.size
            )
            result = search_fleets(validator, self.config, rng=self.rng)
            coverage = coverage_grid(
                result.frequencies, lengths, board.size, exclude_ships=sunk.keys()
            )
            choice = select_best_move(coverage, board, result.valid_fleets)
            elapsed = time.perf_counter() - started

            report = MoveReport(
                move=choice.square,
                strategy=result.strategy,
                placements_per_ship=tuple(len(ship_placements) for ship_placements in placements),
                combinations=result.combinations,
                fleets_tested=result.fleets_tested,
                valid_fleets=result.valid_fleets,
                collisions=len(collisions),
                coverage=choice.coverage,
                best_distance=choice.distance,
                elapsed_seconds=elapsed,
            )
            span.set_attribute("move.x", choice.square.x)
            span.set_attribute("move.y", choice.square.y)
            span.set_attribute("search.strategy", result.strategy.value)
            span.set_attribute("search.valid_fleets", result.valid_fleets)
            instruments = solver_instruments()
            instruments.moves_generated.add(1, attributes={"strategy": result.strategy.value})
            instruments.pass_duration.record(elapsed * 1000, attributes={"strategy": result.strategy.value})
            logger.info(
                "move_selected",
                extra={
                    "x": choice.square.x,
                    "y": choice.square.y,
                    "strategy": result.strategy.value,
                    "valid_fleets": result.valid_fleets,
                    "fleets_tested": result.fleets_tested,
                    "best_distance": choice.distance,
                    "elapsed_seconds": round(elapsed, 4),
                },
            )
            return report

    def generate_move(self, state: GameState) -> Coordinate:
        return self.run(state).move
