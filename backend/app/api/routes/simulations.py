from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.models.scenario import NamedScenario, ScenarioInput, SpendingRule
from app.models.simulation import (
    MissingYearPolicy,
    MonteCarloResult,
    SensitivityPoint,
    SimulationReport,
    StrategyOutcome,
)
from app.services import simulation_service
from app.simulation.validation import SimulationError

router = APIRouter(tags=["simulations"])


class SimulationRequest(BaseModel):
    """Request body for a single run, defaulting to the baseline scenario."""
    scenario: Optional[ScenarioInput] = None
    spending_rule: SpendingRule = SpendingRule.inflation_linked
    seed: Optional[int] = None


class ReportRequest(SimulationRequest):
    missing_years: MissingYearPolicy = MissingYearPolicy.zero


class SensitivityRequest(BaseModel):
    scenario: Optional[ScenarioInput] = None
    parameter: str
    deltas: list[float]
    seed: Optional[int] = None


class CompareRequest(BaseModel):
    scenarios: list[NamedScenario]
    seed: Optional[int] = None


def _scenario_or_default(scenario: Optional[ScenarioInput]) -> ScenarioInput:
    return scenario or simulation_service.get_default_scenario()


@router.get("/scenarios/default", response_model=ScenarioInput)
def get_default_scenario():
    return simulation_service.get_default_scenario()


@router.post("/simulations/run", response_model=MonteCarloResult)
def run_simulation_endpoint(request: SimulationRequest):
    """Run a Monte Carlo simulation for an inline scenario."""
    try:
        return simulation_service.simulate(
            _scenario_or_default(request.scenario), request.spending_rule, request.seed,
        )
    except SimulationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/simulations/sensitivity", response_model=list[SensitivityPoint])
def run_sensitivity_endpoint(request: SensitivityRequest):
    """Sweep one parameter over relative deltas and report success rates."""
    try:
        return simulation_service.sweep(
            _scenario_or_default(request.scenario), request.parameter, request.deltas, request.seed,
        )
    except SimulationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/simulations/report", response_model=SimulationReport)
def run_report_endpoint(request: ReportRequest):
    """Run a scenario and return fan chart, percentiles, and comparisons."""
    try:
        return simulation_service.build_report(
            _scenario_or_default(request.scenario),
            request.spending_rule,
            request.seed,
            request.missing_years,
        )
    except SimulationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/simulations/compare", response_model=list[StrategyOutcome])
def compare_scenarios_endpoint(request: CompareRequest):
    try:
        return simulation_service.compare(request.scenarios, request.seed)
    except SimulationError as e:
        raise HTTPException(status_code=422, detail=str(e))
