from concurrent.futures import Future

import pytest

from app.services.simulation_service import result_cache
from app.simulation import engine


@pytest.fixture(autouse=True)
def _clear_result_cache():
    # Seeded results are cached process-wide; keep tests independent
    result_cache.clear()
    yield
    result_cache.clear()


class InlineExecutor:
    """Stands in for ProcessPoolExecutor, running submissions in-process."""

    created = 0

    def __init__(self, max_workers=None):
        type(self).created += 1
        self.submitted = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


@pytest.fixture
def inline_pool(monkeypatch):
    """Patch the engine's process pool; the class counts pools started."""
    monkeypatch.setattr(InlineExecutor, "created", 0)
    monkeypatch.setattr(engine, "ProcessPoolExecutor", InlineExecutor)
    return InlineExecutor
