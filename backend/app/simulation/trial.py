"""Single-trial simulator: one stochastic lifetime path for a scenario.

Each year: withdraw (partial draw before retirement), pay tax on the
withdrawal, then grow what is left by a blended stock/bond return whose
stock weight drifts randomly around the target allocation.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Optional

from app.models.scenario import ScenarioInput
from app.models.simulation import SimulationYearPoint
from app.simulation.random_source import gaussian

_PRE_RETIREMENT_DRAW = 0.3  # Share of spending withdrawn while still working
_BOND_RETURN_FRACTION = 0.4  # Bond return proxy as a fraction of expected_return


@dataclass
class TrialOutcome:
    """Result of one trial."""
    path: list[SimulationYearPoint]
    final_assets: float
    bankrupt_year: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.final_assets > 0

    @property
    def yearly_ending_assets(self) -> list[float]:
        return [point.ending_assets for point in self.path]


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def blended_return(scenario: ScenarioInput, rng: random.Random) -> float:
    """Draw this year's portfolio return.

    Stocks take the Gaussian draw, bonds a fixed fraction of expected_return.
    """
    annual_return = gaussian(rng, scenario.expected_return, scenario.return_volatility)
    drift = gaussian(rng, 0.0, scenario.rebalance_threshold / 2.0)
    stock_weight = _clamp(scenario.stock_allocation + drift, 0.0, 1.0)
    bond_weight = 1.0 - stock_weight
    bond_return = scenario.expected_return * _BOND_RETURN_FRACTION
    return annual_return * stock_weight + bond_return * bond_weight


def simulate_trial(scenario: ScenarioInput, rng: random.Random) -> TrialOutcome:
    """Simulate years current_age..terminal_age-1, stopping at bankruptcy.

    Raises OverflowError once spending or assets stop being finite floats.
    """
    assets = scenario.initial_assets
    path: list[SimulationYearPoint] = []

    for year in range(scenario.years):
        age = scenario.current_age + year
        is_retired = age >= scenario.retirement_age

        spend = scenario.annual_spending * (1.0 + scenario.inflation_rate) ** year
        withdrawal = spend if is_retired else spend * _PRE_RETIREMENT_DRAW
        taxes = max(0.0, withdrawal * scenario.tax_rate)

        starting_assets = assets
        assets = max(0.0, assets - (withdrawal + taxes))
        assets = max(0.0, assets * (1.0 + blended_return(scenario, rng)))
        if not (math.isfinite(withdrawal + taxes) and math.isfinite(assets)):
            raise OverflowError(f"non-finite amount in year {year} (age {age})")

        path.append(SimulationYearPoint(
            year=year,
            age=age,
            starting_assets=starting_assets,
            withdrawal=withdrawal,
            taxes=taxes,
            ending_assets=assets,
        ))

        if assets <= 0:
            return TrialOutcome(path=path, final_assets=0.0, bankrupt_year=year)

    return TrialOutcome(path=path, final_assets=assets)
