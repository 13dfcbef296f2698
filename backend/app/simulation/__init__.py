"""Simulation engine: scenario defaults, trials, Monte Carlo, and sweeps."""
from app.simulation.defaults import default_scenario, apply_spending_rule
from app.simulation.validation import (
    SimulationError,
    InvalidScenario,
    InvalidSweepParameter,
    validate_scenario,
)
from app.simulation.trial import TrialOutcome, simulate_trial
from app.simulation.engine import run_monte_carlo
from app.simulation.sensitivity import run_sensitivity

__all__ = [
    "default_scenario",
    "apply_spending_rule",
    "SimulationError",
    "InvalidScenario",
    "InvalidSweepParameter",
    "validate_scenario",
    "TrialOutcome",
    "simulate_trial",
    "run_monte_carlo",
    "run_sensitivity",
]
