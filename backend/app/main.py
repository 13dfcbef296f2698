import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.routes import health, simulations
from app.services.simulation_service import result_cache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Retirement simulator starting (max_iterations=%d, workers=%d)",
        settings.MAX_ITERATIONS, settings.SIMULATION_WORKERS,
    )
    yield
    # Shutdown: drop cached results
    result_cache.clear()


app = FastAPI(title="Retirement Simulator", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api")
app.include_router(simulations.router, prefix="/api")
