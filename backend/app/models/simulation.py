from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SweepParameter(str, Enum):
    """Scenario fields a sensitivity sweep may perturb."""
    expected_return = "expected_return"
    annual_spending = "annual_spending"
    tax_rate = "tax_rate"


class MissingYearPolicy(str, Enum):
    """How per-year statistics treat trials that went bankrupt earlier."""
    zero = "zero"        # depleted trials hold 0 assets
    exclude = "exclude"  # only trials still running that year


class SimulationYearPoint(BaseModel):
    """One simulated year within one trial."""
    year: int
    age: int
    starting_assets: float
    withdrawal: float
    taxes: float
    ending_assets: float

    model_config = {"frozen": True}


class BankruptcyPoint(BaseModel):
    """Cumulative probability of depletion by a given year."""
    year: int
    age: int
    bankruptcy_probability: float


class MonteCarloResult(BaseModel):
    """Aggregate over all trials of a scenario."""
    success_rate: float
    ending_assets: list[float]
    sampled_path: list[SimulationYearPoint]
    yearly_ending_assets: list[list[float]]
    bankruptcy_timeline: list[BankruptcyPoint]


class SensitivityPoint(BaseModel):
    parameter: str
    value: float
    success_rate: float


class PercentileBands(BaseModel):
    p10: float = 0.0
    p25: float = 0.0
    p50: float = 0.0
    p75: float = 0.0
    p90: float = 0.0


class FanChartPoint(PercentileBands):
    """Percentile bands of ending assets across trials for one year."""
    year: int
    age: int


class WithdrawalRange(BaseModel):
    """Annual spending band that keeps success within target levels."""
    low: float
    high: float


class StrategyOutcome(BaseModel):
    label: str
    success_rate: float
    median_ending_assets: float


class SimulationReport(BaseModel):
    """Everything a results page needs for one scenario."""
    success_rate: float
    ending_asset_percentiles: PercentileBands
    fan_chart: list[FanChartPoint]
    bankruptcy_timeline: list[BankruptcyPoint]
    sampled_path: list[SimulationYearPoint]
    withdrawal_range: WithdrawalRange
    allocation_comparison: list[StrategyOutcome]
    seed: Optional[int] = None
