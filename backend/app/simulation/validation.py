"""Scenario validation and the engine's error types."""
from __future__ import annotations

import math

from app.models.scenario import ScenarioInput
from app.models.simulation import SweepParameter

_ALLOCATION_TOLERANCE = 1e-6

_FLOAT_FIELDS = (
    "initial_assets",
    "annual_spending",
    "expected_return",
    "return_volatility",
    "inflation_rate",
    "tax_rate",
    "rebalance_threshold",
    "stock_allocation",
    "bond_allocation",
)


class SimulationError(ValueError):
    """Base class for failures reported by the simulation engine."""


class InvalidScenario(SimulationError):
    """Scenario fields violate ordering or range rules."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid scenario: " + "; ".join(problems))


class InvalidSweepParameter(SimulationError):
    """Requested sweep parameter is not one of SweepParameter."""

    def __init__(self, parameter: object):
        self.parameter = parameter
        allowed = ", ".join(p.value for p in SweepParameter)
        super().__init__(f"Unsupported sweep parameter {parameter!r}; expected one of: {allowed}")


def scenario_problems(scenario: ScenarioInput) -> list[str]:
    """Return a human-readable list of every rule the scenario breaks."""
    problems: list[str] = []

    for name in _FLOAT_FIELDS:
        if not math.isfinite(getattr(scenario, name)):
            problems.append(f"{name} must be a finite number")

    if not scenario.current_age < scenario.retirement_age <= scenario.terminal_age:
        problems.append(
            "ages must satisfy current_age < retirement_age <= terminal_age "
            f"(got {scenario.current_age}, {scenario.retirement_age}, {scenario.terminal_age})"
        )
    if scenario.initial_assets < 0:
        problems.append("initial_assets must be >= 0")
    if scenario.annual_spending < 0:
        problems.append("annual_spending must be >= 0")
    if scenario.return_volatility < 0:
        problems.append("return_volatility must be >= 0")
    if not 0.0 <= scenario.tax_rate <= 1.0:
        problems.append("tax_rate must be within [0, 1]")
    if scenario.rebalance_threshold < 0:
        problems.append("rebalance_threshold must be >= 0")

    for name in ("stock_allocation", "bond_allocation"):
        if not 0.0 <= getattr(scenario, name) <= 1.0:
            problems.append(f"{name} must be within [0, 1]")
    total = scenario.stock_allocation + scenario.bond_allocation
    if abs(total - 1.0) > _ALLOCATION_TOLERANCE:
        problems.append(f"stock_allocation + bond_allocation must equal 1 (got {total:.6f})")

    if scenario.iterations <= 0:
        problems.append("iterations must be > 0")

    return problems


def validate_scenario(scenario: ScenarioInput) -> None:
    """Raise InvalidScenario if any rule is broken."""
    problems = scenario_problems(scenario)
    if problems:
        raise InvalidScenario(problems)


def resolve_sweep_parameter(parameter: SweepParameter | str) -> SweepParameter:
    try:
        return SweepParameter(parameter)
    except ValueError:
        raise InvalidSweepParameter(parameter) from None
