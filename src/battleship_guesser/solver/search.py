"""Fleet search: exhaustive enumeration or bounded random sampling."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np
import numpy.typing as npt

from battleship_guesser.telemetry import get_tracer, solver_instruments

from .config import SolverConfig
from .tables import FrequencyTable
from .validation import FleetValidator

logger = logging.getLogger(__name__)
tracer = get_tracer("battleship_guesser.solver.search")

# Fleets drawn per vectorised sampling step; the clock is checked between steps.
SAMPLE_BATCH_SIZE = 65_536


class RandomSource(Protocol):
    """Draws uniform integers in ``[low, high)``; ``numpy.random.Generator`` qualifies."""

    def integers(self, low: int, high: int, size: int) -> npt.NDArray[np.int64]:
        ...


class SearchStrategy(Enum):
    EXHAUSTIVE = "exhaustive"
    SAMPLED = "sampled"


@dataclass
class SearchResult:
    """Outcome of one search pass."""

    strategy: SearchStrategy
    combinations: int
    fleets_tested: int
    frequencies: FrequencyTable
    elapsed_seconds: float

    @property
    def valid_fleets(self) -> int:
        return self.frequencies.valid_fleets


def count_combinations(validator: FleetValidator) -> int:
    """Return the size of the full cross product (pinned sunk ships count once)."""
    return math.prod(validator.sizes)


def exhaustive_search(validator: FleetValidator, frequencies: FrequencyTable) -> int:
    """Enumerate the cross product of every ship's candidates.

    Ships are walked from the shortest candidate list to the longest. Each
    chosen placement strikes its collisions from the lists of the ships
    still to come, so a colliding partial fleet is never extended. The
    final one or two ships are settled for all of their remaining
    placements at once. The recorded frequencies match a plain walk of the
    whole product. Returns the number of combinations covered.
    """
    combinations = count_combinations(validator)
    if combinations == 0:
        return 0

    order = sorted(range(validator.ship_count), key=lambda ship: validator.sizes[ship])
    chosen = [0] * validator.ship_count

    def record(depth: int, found: int) -> None:
        for other in order[:depth]:
            frequencies.counts[other][chosen[other]] += found
        frequencies.valid_fleets += found

    def settle_last(allowed: npt.NDArray[np.bool_], covered: npt.NDArray[np.bool_]) -> None:
        ship = order[-1]
        valid = allowed & validator.hit_cover[ship][:, ~covered].all(axis=1)
        found = int(np.count_nonzero(valid))
        if found:
            frequencies.counts[ship] += valid
            record(len(order) - 1, found)

    def settle_last_two(
        allowed: list[npt.NDArray[np.bool_]], covered: npt.NDArray[np.bool_]
    ) -> None:
        depth = len(order) - 2
        ship, last = order[depth], order[depth + 1]
        firsts = np.flatnonzero(allowed[depth])
        if not len(firsts):
            return
        pairs = allowed[depth + 1][np.newaxis, :] & ~validator.collisions.matrix(ship, last)[firsts]
        if validator.hit_count:
            needed = ~(covered | validator.hit_cover[ship][firsts])
            missing = needed[:, np.newaxis, :] & ~validator.hit_cover[last][np.newaxis, :, :]
            pairs &= ~missing.any(axis=2)
        per_first = pairs.sum(axis=1)
        found = int(per_first.sum())
        if found:
            frequencies.counts[ship][firsts] += per_first
            frequencies.counts[last] += pairs.sum(axis=0)
            record(depth, found)

    def extend(depth: int, allowed: list[npt.NDArray[np.bool_]], covered: npt.NDArray[np.bool_]) -> None:
        if depth == len(order) - 2:
            settle_last_two(allowed, covered)
            return
        ship = order[depth]
        for placement_id in np.flatnonzero(allowed[depth]):
            chosen[ship] = placement_id
            remaining = list(allowed)
            for later in range(depth + 1, len(order)):
                overlaps = validator.collisions.matrix(ship, order[later])[placement_id]
                remaining[later] = allowed[later] & ~overlaps
            extend(depth + 1, remaining, covered | validator.hit_cover[ship][placement_id])

    allowed = [np.ones(validator.sizes[ship], dtype=bool) for ship in order]
    covered = np.zeros(validator.hit_count, dtype=bool)
    if len(order) == 1:
        settle_last(allowed[0], covered)
    else:
        extend(0, allowed, covered)
    return combinations


def sampled_search(
    validator: FleetValidator,
    frequencies: FrequencyTable,
    rng: RandomSource,
    trials: int,
    time_budget_seconds: float | None = None,
    progress_interval: int = 1_000_000,
    batch_size: int = SAMPLE_BATCH_SIZE,
) -> int:
    """Draw one placement per ship uniformly and independently, then validate.

    Draws ``trials`` fleets, stopping early once ``time_budget_seconds`` has
    elapsed when a budget is given. Fleets are drawn ``batch_size`` at a
    time; a ship with a single candidate consumes no draws. Ships are drawn
    independently and invalid draws are discarded, so rare valid fleets can
    be under-sampled; the frequencies approximate the exhaustive ones
    rather than match them. Returns the number of fleets drawn.
    """
    if any(size == 0 for size in validator.sizes):
        logger.warning("sampling_skipped_empty_candidates")
        return 0

    deadline = time.perf_counter() + time_budget_seconds if time_budget_seconds else None
    drawn = 0
    next_progress = progress_interval
    while drawn < trials:
        if deadline is not None and drawn and time.perf_counter() >= deadline:
            logger.info("sampling_budget_exhausted", extra={"drawn": drawn, "trials": trials})
            break
        batch = min(batch_size, trials - drawn)
        fleets = np.zeros((batch, validator.ship_count), dtype=np.int64)
        for ship, size in enumerate(validator.sizes):
            if size > 1:
                fleets[:, ship] = rng.integers(0, size, size=batch)
        frequencies.record_batch(fleets[validator.valid_rows(fleets)])
        drawn += batch
        if drawn >= next_progress:
            logger.info(
                "sampling_progress",
                extra={"drawn": drawn, "valid_fleets": frequencies.valid_fleets},
            )
            next_progress += progress_interval
    return drawn


def search_fleets(
    validator: FleetValidator,
    config: SolverConfig,
    rng: RandomSource | None = None,
) -> SearchResult:
    """Pick a strategy from the size of the cross product and run it."""
    with tracer.start_as_current_span("solver.search") as span:
        frequencies = FrequencyTable(validator.candidates)
        combinations = count_combinations(validator)
        started = time.perf_counter()
        if combinations <= config.max_configs_tested:
            strategy = SearchStrategy.EXHAUSTIVE
            fleets_tested = exhaustive_search(validator, frequencies)
        else:
            strategy = SearchStrategy.SAMPLED
            fleets_tested = sampled_search(
                validator,
                frequencies,
                rng if rng is not None else np.random.default_rng(config.seed),
                trials=config.max_configs_tested,
                time_budget_seconds=config.time_budget_seconds,
                progress_interval=config.progress_interval,
            )
        elapsed = time.perf_counter() - started

        span.set_attribute("search.strategy", strategy.value)
        span.set_attribute("search.combinations", combinations)
        span.set_attribute("search.fleets_tested", fleets_tested)
        span.set_attribute("search.valid_fleets", frequencies.valid_fleets)
        instruments = solver_instruments()
        instruments.fleets_tested.add(fleets_tested, attributes={"strategy": strategy.value})
        instruments.valid_fleets.add(frequencies.valid_fleets, attributes={"strategy": strategy.value})
        logger.info(
            "search_complete",
            extra={
                "strategy": strategy.value,
                "combinations": combinations,
                "fleets_tested": fleets_tested,
                "valid_fleets": frequencies.valid_fleets,
                "elapsed_seconds": round(elapsed, 4),
            },
        )
        return SearchResult(
            strategy=strategy,
            combinations=combinations,
            fleets_tested=fleets_tested,
            frequencies=frequencies,
            elapsed_seconds=elapsed,
        )
