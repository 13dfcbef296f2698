from enum import Enum

from pydantic import BaseModel


class SpendingRule(str, Enum):
    """How annual spending evolves over the horizon."""
    inflation_linked = "inflation_linked"  # grows with inflation_rate
    flat = "flat"                          # fixed nominal amount


class ScenarioInput(BaseModel):
    """Immutable inputs for a single Monte Carlo run.

    Ranges are not enforced here; see app.simulation.validation.
    """
    current_age: int
    retirement_age: int
    terminal_age: int
    initial_assets: float
    annual_spending: float
    expected_return: float
    return_volatility: float
    inflation_rate: float
    tax_rate: float
    rebalance_threshold: float
    stock_allocation: float
    bond_allocation: float
    iterations: int

    model_config = {"frozen": True}

    @property
    def years(self) -> int:
        return self.terminal_age - self.current_age


class NamedScenario(BaseModel):
    """A caller-labelled scenario, used for side-by-side comparison."""
    name: str
    scenario: ScenarioInput
    spending_rule: SpendingRule = SpendingRule.inflation_linked
