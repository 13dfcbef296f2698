"""Simulation orchestration service.

Applies settings (iteration and horizon caps, worker count, default seed),
caches seeded results and assembles report payloads for the API layer.
"""
from __future__ import annotations

import logging
import time
from collections import OrderedDict
from concurrent.futures import Executor
from typing import Iterable, Optional

from app.config import settings
from app.models.scenario import NamedScenario, ScenarioInput, SpendingRule
from app.models.simulation import (
    MissingYearPolicy,
    MonteCarloResult,
    SensitivityPoint,
    SimulationReport,
    StrategyOutcome,
    SweepParameter,
)
from app.simulation.analytics import (
    compare_allocations,
    compare_scenarios,
    ending_asset_percentiles,
    estimate_withdrawal_range,
    fan_chart,
)
from app.simulation.defaults import apply_spending_rule, default_scenario
from app.simulation.engine import run_monte_carlo, trial_pool
from app.simulation.random_source import resolve_seed
from app.simulation.sensitivity import run_sensitivity
from app.simulation.validation import InvalidScenario

logger = logging.getLogger(__name__)


class ResultCache:
    """LRU cache of MonteCarloResult keyed by (scenario, seed).

    Unseeded runs are never cached since each one is a fresh sample.
    """

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        self._entries: OrderedDict[tuple[ScenarioInput, int], MonteCarloResult] = OrderedDict()

    def get(self, scenario: ScenarioInput, seed: Optional[int]) -> MonteCarloResult | None:
        if seed is None:
            return None
        key = (scenario, seed)
        result = self._entries.get(key)
        if result is not None:
            self._entries.move_to_end(key)
        return result

    def put(self, scenario: ScenarioInput, seed: Optional[int], result: MonteCarloResult) -> None:
        if seed is None or self.max_size <= 0:
            return
        key = (scenario, seed)
        self._entries[key] = result
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


result_cache = ResultCache(settings.SIMULATION_CACHE_SIZE)


def _seed_or_default(seed: Optional[int]) -> Optional[int]:
    return seed if seed is not None else settings.DEFAULT_SEED


def _check_limits(scenario: ScenarioInput) -> None:
    problems = []
    if scenario.iterations > settings.MAX_ITERATIONS:
        problems.append(f"iterations must be <= {settings.MAX_ITERATIONS} (got {scenario.iterations})")
    if scenario.years > settings.MAX_HORIZON_YEARS:
        problems.append(
            f"terminal_age - current_age must be <= {settings.MAX_HORIZON_YEARS} "
            f"(got {scenario.years})"
        )
    if problems:
        raise InvalidScenario(problems)


def get_default_scenario() -> ScenarioInput:
    return default_scenario()


def simulate(
    scenario: ScenarioInput,
    spending_rule: SpendingRule = SpendingRule.inflation_linked,
    seed: Optional[int] = None,
    pool: Optional[Executor] = None,
) -> MonteCarloResult:
    """Run one Monte Carlo simulation, reusing a cached result when seeded."""
    _check_limits(scenario)
    scenario = apply_spending_rule(scenario, spending_rule)
    seed = _seed_or_default(seed)

    cached = result_cache.get(scenario, seed)
    if cached is not None:
        logger.debug("Cache hit for seeded run (seed=%s)", seed)
        return cached

    started = time.perf_counter()
    result = run_monte_carlo(scenario, seed=seed, workers=settings.SIMULATION_WORKERS, pool=pool)
    logger.info(
        "Simulated %d trials over %d years, success rate %.3f (%.2fs)",
        scenario.iterations, scenario.years, result.success_rate,
        time.perf_counter() - started,
    )
    result_cache.put(scenario, seed, result)
    return result


def sweep(
    scenario: ScenarioInput,
    parameter: SweepParameter | str,
    deltas: Iterable[float],
    seed: Optional[int] = None,
) -> list[SensitivityPoint]:
    """Run a sensitivity sweep over relative deltas."""
    _check_limits(scenario)
    deltas = list(deltas)
    points = run_sensitivity(
        scenario, parameter, deltas,
        seed=_seed_or_default(seed),
        workers=settings.SIMULATION_WORKERS,
    )
    logger.info("Sensitivity sweep on %s over %d deltas", parameter, len(deltas))
    return points


def build_report(
    scenario: ScenarioInput,
    spending_rule: SpendingRule = SpendingRule.inflation_linked,
    seed: Optional[int] = None,
    missing_years: MissingYearPolicy = MissingYearPolicy.zero,
) -> SimulationReport:
    """Simulate a scenario and derive every summary a results view shows.

    Every run in the report shares one seed and one worker pool. An
    unseeded request gets a freshly drawn seed, echoed back in the report.
    """
    seed = resolve_seed(_seed_or_default(seed))
    effective = apply_spending_rule(scenario, spending_rule)
    workers = settings.SIMULATION_WORKERS

    with trial_pool(workers) as pool:
        result = simulate(scenario, spending_rule, seed, pool=pool)
        withdrawal_range = estimate_withdrawal_range(
            effective, seed=seed, workers=workers, pool=pool,
        )
        allocation_comparison = compare_allocations(
            effective, seed=seed, workers=workers, pool=pool,
        )

    return SimulationReport(
        success_rate=result.success_rate,
        ending_asset_percentiles=ending_asset_percentiles(result),
        fan_chart=fan_chart(result, effective, missing_years),
        bankruptcy_timeline=result.bankruptcy_timeline,
        sampled_path=result.sampled_path,
        withdrawal_range=withdrawal_range,
        allocation_comparison=allocation_comparison,
        seed=seed,
    )


def compare(
    named_scenarios: list[NamedScenario], seed: Optional[int] = None,
) -> list[StrategyOutcome]:
    """Compare caller-supplied scenarios side by side."""
    for named in named_scenarios:
        _check_limits(named.scenario)
    return compare_scenarios(
        named_scenarios,
        seed=_seed_or_default(seed),
        workers=settings.SIMULATION_WORKERS,
    )
