"""Result analytics: percentile bands, fan charts, and scenario comparisons.

Everything here is derived from MonteCarloResult or from extra engine runs;
nothing feeds back into the trial loop.
"""
from __future__ import annotations

from concurrent.futures import Executor
from typing import Iterable, Optional, Sequence

import numpy as np

from app.models.scenario import NamedScenario, ScenarioInput
from app.models.simulation import (
    FanChartPoint,
    MissingYearPolicy,
    MonteCarloResult,
    PercentileBands,
    StrategyOutcome,
    WithdrawalRange,
)
from app.simulation.defaults import apply_spending_rule
from app.simulation.engine import run_monte_carlo, trial_pool
from app.simulation.random_source import resolve_seed

_PERCENTILES = [("p10", 0.10), ("p25", 0.25), ("p50", 0.50), ("p75", 0.75), ("p90", 0.90)]

_WITHDRAWAL_MULTIPLIERS = [0.7, 0.8, 0.9, 1.0, 1.1, 1.2, 1.3]
_WITHDRAWAL_LOW_TARGET = 0.9   # Conservative success target
_WITHDRAWAL_HIGH_TARGET = 0.7  # Optimistic success target
_WITHDRAWAL_MIN_ITERATIONS = 200

_ALLOCATION_STRATEGIES = [("60/40", 0.6), ("80/20", 0.8)]


def percentiles(values: Iterable[float]) -> PercentileBands:
    """Extract p10/p25/p50/p75/p90 by floor index into the sorted values."""
    ordered = np.sort(np.asarray(list(values), dtype=float))
    n = len(ordered)
    if n == 0:
        return PercentileBands()
    bands = {}
    for label, p in _PERCENTILES:
        idx = min(int(p * n), n - 1)
        bands[label] = float(ordered[idx])
    return PercentileBands(**bands)


def ending_asset_percentiles(result: MonteCarloResult) -> PercentileBands:
    return percentiles(result.ending_assets)


def trajectory_matrix(
    yearly_ending_assets: Sequence[Sequence[float]], years: int,
) -> np.ndarray:
    """Stack ragged per-trial trajectories into a (trials, years) array.

    Years a trial never reached are NaN.
    """
    matrix = np.full((len(yearly_ending_assets), years), np.nan)
    for i, path in enumerate(yearly_ending_assets):
        n = min(len(path), years)
        matrix[i, :n] = path[:n]
    return matrix


def fan_chart(
    result: MonteCarloResult,
    scenario: ScenarioInput,
    missing: MissingYearPolicy | str = MissingYearPolicy.zero,
) -> list[FanChartPoint]:
    """Per-year percentile bands of ending assets across trials.

    missing=zero counts a trial that went bankrupt earlier as holding 0;
    missing=exclude only uses trials still running in that year.
    """
    policy = MissingYearPolicy(missing)
    matrix = trajectory_matrix(result.yearly_ending_assets, scenario.years)
    if policy == MissingYearPolicy.zero:
        matrix = np.nan_to_num(matrix, nan=0.0)

    points: list[FanChartPoint] = []
    for year in range(scenario.years):
        column = matrix[:, year]
        column = column[~np.isnan(column)]
        bands = percentiles(column)
        points.append(FanChartPoint(
            year=year,
            age=scenario.current_age + year,
            **bands.model_dump(),
        ))
    return points


def estimate_withdrawal_range(
    scenario: ScenarioInput,
    *,
    seed: Optional[int] = None,
    workers: int = 1,
    pool: Optional[Executor] = None,
) -> WithdrawalRange:
    """Bracket a sustainable annual spend by scaling spending up and down.

    low: the largest multiplier still reaching the conservative target.
    high: the largest multiplier still reaching the optimistic target.

    Every multiplier runs with the same seed. This differs from the usual
    results-page rule, which takes the *first* multiplier reaching the
    conservative target for low. Under a shared seed that rule always
    returns the smallest multiplier.
    """
    seed = resolve_seed(seed)
    iterations = max(_WITHDRAWAL_MIN_ITERATIONS, scenario.iterations // 2)
    outcomes = []
    with trial_pool(workers, pool) as active:
        for multiplier in _WITHDRAWAL_MULTIPLIERS:
            trial_scenario = scenario.model_copy(update={
                "annual_spending": scenario.annual_spending * multiplier,
                "iterations": iterations,
            })
            result = run_monte_carlo(trial_scenario, seed=seed, workers=workers, pool=active)
            outcomes.append((multiplier, result.success_rate))

    low = next(
        (m for m, rate in reversed(outcomes) if rate >= _WITHDRAWAL_LOW_TARGET),
        _WITHDRAWAL_MULTIPLIERS[0],
    )
    high = next(
        (m for m, rate in reversed(outcomes) if rate >= _WITHDRAWAL_HIGH_TARGET),
        1.0,
    )
    return WithdrawalRange(
        low=scenario.annual_spending * low,
        high=scenario.annual_spending * high,
    )


def _outcome(label: str, result: MonteCarloResult) -> StrategyOutcome:
    return StrategyOutcome(
        label=label,
        success_rate=result.success_rate,
        median_ending_assets=ending_asset_percentiles(result).p50,
    )


def compare_allocations(
    scenario: ScenarioInput,
    *,
    seed: Optional[int] = None,
    workers: int = 1,
    pool: Optional[Executor] = None,
) -> list[StrategyOutcome]:
    """Run the scenario under 60/40, 80/20, and its own allocation."""
    seed = resolve_seed(seed)
    strategies = _ALLOCATION_STRATEGIES + [("current", scenario.stock_allocation)]
    outcomes = []
    with trial_pool(workers, pool) as active:
        for label, stock in strategies:
            variant = scenario.model_copy(update={
                "stock_allocation": stock,
                "bond_allocation": 1.0 - stock,
            })
            result = run_monte_carlo(variant, seed=seed, workers=workers, pool=active)
            outcomes.append(_outcome(label, result))
    return outcomes


def compare_scenarios(
    named_scenarios: Iterable[NamedScenario],
    *,
    seed: Optional[int] = None,
    workers: int = 1,
    pool: Optional[Executor] = None,
) -> list[StrategyOutcome]:
    """Run each named scenario under its spending rule, in input order.

    All scenarios share one seed, drawn once when seed is None.
    """
    seed = resolve_seed(seed)
    outcomes = []
    with trial_pool(workers, pool) as active:
        for named in named_scenarios:
            scenario = apply_spending_rule(named.scenario, named.spending_rule)
            result = run_monte_carlo(scenario, seed=seed, workers=workers, pool=active)
            outcomes.append(_outcome(named.name, result))
    return outcomes
