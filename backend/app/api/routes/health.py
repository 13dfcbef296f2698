from fastapi import APIRouter

from app.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    return {
        "status": "ok",
        "version": "0.1.0",
        "max_iterations": settings.MAX_ITERATIONS,
        "max_horizon_years": settings.MAX_HORIZON_YEARS,
        "workers": settings.SIMULATION_WORKERS,
    }
