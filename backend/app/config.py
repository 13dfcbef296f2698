from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    MAX_ITERATIONS: int = 20_000
    MAX_HORIZON_YEARS: int = 120
    SIMULATION_WORKERS: int = 1
    SIMULATION_CACHE_SIZE: int = 64
    DEFAULT_SEED: Optional[int] = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
