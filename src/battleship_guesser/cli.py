"""Interactive command-line front end for the guesser."""

from __future__ import annotations

import argparse
from typing import Sequence

from battleship_guesser.engine.game import GameState, GuessOutcome
from battleship_guesser.engine.ship import BOARD_SIZE, FLEET_LENGTHS, Orientation
from battleship_guesser.solver import MoveGenerator, NoMoveAvailableError, SolverConfig
from battleship_guesser.telemetry import configure_console_logging, init_telemetry, solver_instruments

BAD_INPUT = "Bad input, try again."
# Caps a sampled pass when neither --time-budget nor the environment sets one.
DEFAULT_TIME_BUDGET_SECONDS = 10.0


def _prompt_choice(prompt: str, valid: Sequence[int], error: str = BAD_INPUT) -> int:
    print(prompt)
    while True:
        raw = input().strip()
        try:
            value = int(raw)
        except ValueError:
            print(error)
            continue
        if value not in valid:
            print(error)
            continue
        return value


def _prompt_int(prompt: str) -> int:
    print(prompt)
    while True:
        raw = input().strip()
        try:
            return int(raw)
        except ValueError:
            print(BAD_INPUT)


def _welcome(size: int) -> bool:
    print("\nWELCOME TO BATTLESHIP\n")
    print(f"Board size: {size} x {size}\n")
    return _prompt_choice("Press 1 to play new game.\nPress 2 to quit.\n", (1, 2)) == 1


def _print_board(state: GameState) -> None:
    print("\n-----BOARD STATUS-----\n")
    print(state.board.render())
    print()


def _prompt_guess(state: GameState, generator: MoveGenerator, verbose: bool) -> None:
    print("Generating move...")
    report = generator.run(state)
    if verbose:
        print(report.summary())
    move = report.move
    print(f"\nGuess {state.guesses + 1}: <{move.x + 1}, {move.y + 1}>")
    answer = _prompt_choice("Enter 1 for hit.\nEnter 2 for miss.", (1, 2))
    state.report_guess_outcome(move, GuessOutcome.HIT if answer == 1 else GuessOutcome.MISS)


def _prompt_sinkage(state: GameState) -> None:
    order = ", ".join(str(length) for length in state.fleet_lengths)
    count = len(state.fleet_lengths)
    remaining = [index + 1 for index in range(count) if not state.is_sunk(index)]
    while True:
        ship = _prompt_choice(
            f"Which ship was sunk? (Enter a number between 1-{count})\n"
            f"Note: ship order is {order}.\n",
            remaining,
            error="Bad input or that ship has been sunk already, try again.",
        )
        x = _prompt_int("What is the x-coordinate of the ship's left or bottom square?")
        y = _prompt_int("What is the y-coordinate of the ship's left or bottom square?")
        facing = _prompt_choice(
            "Is the ship facing up or right? Enter 0 for up and 1 for right.", (0, 1)
        )
        orientation = Orientation.UP if facing == 0 else Orientation.RIGHT
        try:
            state.report_ship_sunk(ship - 1, x - 1, y - 1, orientation)
        except ValueError as exc:
            print(f"Invalid sinkage: {exc}")
            continue
        return


def play_game(config: SolverConfig, verbose: bool = False, state: GameState | None = None) -> int:
    """Play one game; return the number of guesses made.

    Closing stdin ends the game as if quit was chosen.
    """
    state = state or GameState(fleet_lengths=FLEET_LENGTHS)
    generator = MoveGenerator(config=config)
    quit_game = False

    try:
        while not state.is_game_over() and not quit_game:
            _print_board(state)
            print(f"Guesses so far: {state.guesses}")
            action = _prompt_choice(
                "Press 1 for next guess.\nPress 2 to input ship sinkage.\nPress 3 to quit game.\n",
                (1, 2, 3),
            )
            if action == 1:
                try:
                    _prompt_guess(state, generator, verbose)
                except NoMoveAvailableError:
                    print("No consistent move could be found. Check the reported hits and sinkages.")
                    quit_game = True
            elif action == 2:
                _prompt_sinkage(state)
            else:
                quit_game = True
    except EOFError:
        print()
        quit_game = True

    if quit_game:
        print(f"Quit game at {state.guesses} guesses.")
    else:
        print(f"Game over in {state.guesses} guesses.")
    solver_instruments().games_finished.add(1, attributes={"finished": not quit_game})
    return state.guesses


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Suggest Battleship guesses from hit/miss reports.")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for sampled searches.")
    parser.add_argument(
        "--max-configs",
        type=int,
        default=None,
        help="Largest fleet count enumerated exhaustively; also the number of random draws.",
    )
    parser.add_argument(
        "--time-budget",
        type=float,
        default=None,
        help=(
            "Stop a sampled search after this many seconds, even if draws remain "
            f"(default: {DEFAULT_TIME_BUDGET_SECONDS:g})."
        ),
    )
    parser.add_argument("--verbose", action="store_true", help="Show per-move diagnostics.")
    args = parser.parse_args(argv)

    configure_console_logging(verbose=args.verbose)
    init_telemetry()
    config = SolverConfig.from_env(
        seed=args.seed,
        max_configs_tested=args.max_configs,
        time_budget_seconds=args.time_budget,
    )
    if config.time_budget_seconds is None:
        config = config.model_copy(update={"time_budget_seconds": DEFAULT_TIME_BUDGET_SECONDS})

    try:
        start = _welcome(BOARD_SIZE)
    except EOFError:
        return
    if start:
        play_game(config, verbose=args.verbose)


if __name__ == "__main__":
    main()
