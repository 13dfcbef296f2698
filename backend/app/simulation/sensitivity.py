"""Sensitivity sweep: success rate as one scenario field is scaled."""
from __future__ import annotations

from concurrent.futures import Executor
from typing import Iterable, Optional

from app.models.scenario import ScenarioInput
from app.models.simulation import SensitivityPoint, SweepParameter
from app.simulation.engine import run_monte_carlo, trial_pool
from app.simulation.random_source import resolve_seed
from app.simulation.validation import resolve_sweep_parameter, validate_scenario


def perturb(scenario: ScenarioInput, parameter: SweepParameter, delta: float) -> ScenarioInput:
    """Clone the scenario with `parameter` multiplied by (1 + delta)."""
    base_value = getattr(scenario, parameter.value)
    return scenario.model_copy(update={parameter.value: base_value * (1.0 + delta)})


def run_sensitivity(
    scenario: ScenarioInput,
    parameter: SweepParameter | str,
    deltas: Iterable[float],
    *,
    seed: Optional[int] = None,
    workers: int = 1,
    pool: Optional[Executor] = None,
) -> list[SensitivityPoint]:
    """Re-run the simulation once per delta, in input order.

    Deltas are relative to the base scenario, never to each other. All runs
    share one seed so points differ only by the perturbed field; with
    seed=None that seed is drawn once for the whole sweep. Perturbed
    scenarios that collide within the sweep are simulated once.
    """
    sweep_parameter = resolve_sweep_parameter(parameter)
    validate_scenario(scenario)
    seed = resolve_seed(seed)

    success_by_scenario: dict[ScenarioInput, float] = {}
    points: list[SensitivityPoint] = []

    with trial_pool(workers, pool) as active:
        for delta in deltas:
            perturbed = perturb(scenario, sweep_parameter, delta)
            if perturbed not in success_by_scenario:
                result = run_monte_carlo(perturbed, seed=seed, workers=workers, pool=active)
                success_by_scenario[perturbed] = result.success_rate
            points.append(SensitivityPoint(
                parameter=sweep_parameter.value,
                value=getattr(perturbed, sweep_parameter.value),
                success_rate=success_by_scenario[perturbed],
            ))

    return points
