"""Monte Carlo simulation engine.

Runs `iterations` independent trials of a scenario and folds them into a
MonteCarloResult with success rate, ending assets, per-trial trajectories,
and a cumulative bankruptcy timeline.
"""
from __future__ import annotations

import logging
import random
from concurrent.futures import Executor, ProcessPoolExecutor
from contextlib import contextmanager
from typing import Iterator, Optional

from app.models.scenario import ScenarioInput
from app.models.simulation import BankruptcyPoint, MonteCarloResult
from app.simulation.random_source import trial_seeds
from app.simulation.trial import TrialOutcome, simulate_trial
from app.simulation.validation import InvalidScenario, validate_scenario

logger = logging.getLogger(__name__)


@contextmanager
def trial_pool(workers: int, pool: Optional[Executor] = None) -> Iterator[Optional[Executor]]:
    """Yield a process pool for `workers` > 1, reusing `pool` when given.

    Yields None when trials run in-process.
    """
    if pool is not None or workers <= 1:
        yield pool
        return
    with ProcessPoolExecutor(max_workers=workers) as own_pool:
        yield own_pool


def _run_trials(scenario: ScenarioInput, seeds: list[int]) -> list[TrialOutcome]:
    """Run one trial per seed, in order."""
    return [simulate_trial(scenario, random.Random(seed)) for seed in seeds]


def _chunk(seeds: list[int], n_chunks: int) -> list[list[int]]:
    """Split seeds into at most n_chunks contiguous runs."""
    size = -(-len(seeds) // n_chunks)
    return [seeds[i:i + size] for i in range(0, len(seeds), size)]


def _collect_outcomes(
    scenario: ScenarioInput, seeds: list[int], workers: int, pool: Optional[Executor],
) -> list[TrialOutcome]:
    if workers <= 1 or len(seeds) < 2:
        return _run_trials(scenario, seeds)

    chunks = _chunk(seeds, workers)
    logger.debug("Dispatching %d trials across %d worker chunks", len(seeds), len(chunks))

    # Chunks are contiguous, so concatenating in submission order keeps
    # trial i at index i.
    outcomes: list[TrialOutcome] = []
    with trial_pool(workers, pool) as active:
        futures = [active.submit(_run_trials, scenario, chunk) for chunk in chunks]
        for future in futures:
            outcomes.extend(future.result())
    return outcomes


def bankruptcy_timeline(
    outcomes: list[TrialOutcome], scenario: ScenarioInput,
) -> list[BankruptcyPoint]:
    """Cumulative share of trials bankrupt by each year."""
    counts = [0] * scenario.years
    for outcome in outcomes:
        if outcome.bankrupt_year is not None:
            counts[outcome.bankrupt_year] += 1

    timeline: list[BankruptcyPoint] = []
    cumulative = 0
    for year, count in enumerate(counts):
        cumulative += count
        timeline.append(BankruptcyPoint(
            year=year,
            age=scenario.current_age + year,
            bankruptcy_probability=cumulative / scenario.iterations,
        ))
    return timeline


def run_monte_carlo(
    scenario: ScenarioInput,
    *,
    seed: Optional[int] = None,
    workers: int = 1,
    pool: Optional[Executor] = None,
) -> MonteCarloResult:
    """Run all trials for a scenario and aggregate them.

    Args:
        scenario: Validated on entry; raises InvalidScenario if malformed
            or if its amounts overflow a float during the run.
        seed: Master seed. The same seed always yields the same result,
            whatever the worker count. None draws fresh entropy.
        workers: Number of processes to spread trials over.
        pool: Executor to submit trial chunks to instead of starting a
            new one. Only used when workers > 1.
    """
    validate_scenario(scenario)

    seeds = trial_seeds(scenario.iterations, seed)
    try:
        outcomes = _collect_outcomes(scenario, seeds, workers, pool)
    except OverflowError as exc:
        raise InvalidScenario([f"scenario amounts overflow: {exc}"]) from exc

    success_count = sum(1 for outcome in outcomes if outcome.succeeded)

    return MonteCarloResult(
        success_rate=success_count / scenario.iterations,
        ending_assets=[outcome.final_assets for outcome in outcomes],
        sampled_path=outcomes[0].path,
        yearly_ending_assets=[outcome.yearly_ending_assets for outcome in outcomes],
        bankruptcy_timeline=bankruptcy_timeline(outcomes, scenario),
    )
