"""Scenario defaults: a baseline retirement scenario and spending rules."""
from __future__ import annotations

from typing import Any

from app.models.scenario import ScenarioInput, SpendingRule

_DEFAULT_SCENARIO: dict[str, Any] = {
    "current_age": 35,
    "retirement_age": 60,
    "terminal_age": 95,
    "initial_assets": 8_000_000.0,
    "annual_spending": 420_000.0,
    "expected_return": 0.055,
    "return_volatility": 0.12,
    "inflation_rate": 0.02,
    "tax_rate": 0.12,
    "rebalance_threshold": 0.05,
    "stock_allocation": 0.6,
    "bond_allocation": 0.4,
    "iterations": 1000,
}


def default_scenario(**overrides: Any) -> ScenarioInput:
    """Return the baseline scenario with optional field overrides.

    Overrides are applied as-is; nothing is validated until the scenario
    reaches the engine.
    """
    return ScenarioInput(**{**_DEFAULT_SCENARIO, **overrides})


def apply_spending_rule(scenario: ScenarioInput, rule: SpendingRule | str) -> ScenarioInput:
    """Return the scenario adjusted for a spending rule.

    A flat rule keeps spending at its year-0 nominal amount.
    """
    if SpendingRule(rule) == SpendingRule.flat:
        return scenario.model_copy(update={"inflation_rate": 0.0})
    return scenario
