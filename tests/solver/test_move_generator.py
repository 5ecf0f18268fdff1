"""End-to-end tests for a move-generation pass."""

import numpy as np
import pytest

from battleship_guesser.engine.game import GameState, GuessOutcome
from battleship_guesser.engine.ship import Coordinate, Orientation
from battleship_guesser.solver import MoveGenerator, NoMoveAvailableError, SearchStrategy, SolverConfig


def _single_carrier_state() -> GameState:
    state = GameState()
    for index in range(4):
        state.report_ship_sunk(index, 0, index, Orientation.RIGHT)
    state.report_guess_outcome(Coordinate(5, 5), GuessOutcome.HIT)
    state.report_guess_outcome(Coordinate(5, 6), GuessOutcome.MISS)
    state.report_guess_outcome(Coordinate(6, 5), GuessOutcome.MISS)
    return state


def test_small_board_picks_densest_square() -> None:
    state = GameState(size=4, fleet_lengths=(2,))
    report = MoveGenerator(SolverConfig(max_configs_tested=1000)).run(state)
    assert report.strategy is SearchStrategy.EXHAUSTIVE
    assert report.valid_fleets == 24
    assert report.move == Coordinate(1, 1)
    assert report.coverage == 4


def test_small_board_after_hit_targets_a_neighbour() -> None:
    state = GameState(size=4, fleet_lengths=(2,))
    state.report_guess_outcome(Coordinate(1, 1), GuessOutcome.HIT)
    move = state.generate_move(config=SolverConfig(max_configs_tested=1000))
    assert move == Coordinate(1, 0)


def test_single_remaining_carrier_is_enumerated_exhaustively() -> None:
    state = _single_carrier_state()
    generator = MoveGenerator(SolverConfig())
    report = generator.run(state)

    assert report.strategy is SearchStrategy.EXHAUSTIVE
    assert report.valid_fleets == 2
    assert report.fleets_tested == report.placements_per_ship[4]
    assert report.move == Coordinate(5, 1)
    assert report.best_distance == 0.0


def test_exhaustive_pass_is_idempotent() -> None:
    state = _single_carrier_state()
    generator = MoveGenerator(SolverConfig())
    assert generator.generate_move(state) == generator.generate_move(state)
    assert state.guesses == 3


def test_seeded_sampling_is_reproducible() -> None:
    state = GameState(size=4, fleet_lengths=(2, 3))
    config = SolverConfig(max_configs_tested=100, seed=11)
    first = MoveGenerator(config).run(state)
    second = MoveGenerator(config).run(state)
    assert first.strategy is SearchStrategy.SAMPLED
    assert first.move == second.move
    assert first.valid_fleets == second.valid_fleets


def test_empty_board_guess_lands_near_the_centre() -> None:
    state = GameState()
    report = MoveGenerator(SolverConfig(max_configs_tested=20_000), rng=np.random.default_rng(7)).run(state)
    assert report.strategy is SearchStrategy.SAMPLED
    assert report.valid_fleets > 0
    assert 2 <= report.move.x <= 7
    assert 2 <= report.move.y <= 7


def test_inconsistent_board_reports_no_move() -> None:
    state = GameState(size=3, fleet_lengths=(2,))
    # An isolated hit that no domino can cover.
    state.report_guess_outcome(Coordinate(1, 1), GuessOutcome.HIT)
    for square in (Coordinate(0, 1), Coordinate(2, 1), Coordinate(1, 0), Coordinate(1, 2)):
        state.report_guess_outcome(square, GuessOutcome.MISS)
    with pytest.raises(NoMoveAvailableError):
        state.generate_move(config=SolverConfig(max_configs_tested=1000))


def test_report_summary_lists_diagnostics() -> None:
    state = GameState(size=4, fleet_lengths=(2,))
    summary = MoveGenerator(SolverConfig(max_configs_tested=1000)).run(state).summary()
    assert "Placements per ship: 24" in summary
    assert "Strategy: exhaustive (24 combinations)" in summary
    assert "Valid fleets: 24 out of 24" in summary
