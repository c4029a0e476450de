"""
Shared fixtures for the card game API tests.

- Unit tests for the rules need no fixtures.
- Service tests get a fresh SQLite file database per test.
- API tests build the app through create_app with injected clocks, so
  regeneration, rate-limit windows and cooldowns are deterministic.
"""

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from src.config import GameSettings
from src.db import create_engine_for, create_session_factory
from src.main import create_app
from src.security.rate_limit import InMemoryRateLimiter
from src.security.request_guard import CooldownTracker, RequestGuard
from src.services.game_db import GameDatabase
from src.services.progress_service import ProgressService

START = datetime(2024, 1, 1, 12, 0, 0)


class FakeClock:
    """Wall clock for energy regeneration, moved by hand."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class TickingClock:
    """Monotonic clock for the guard; every reading moves it forward by ``step`` seconds."""

    def __init__(self, start: float = 1000.0, step: float = 0.2):
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_database(path, **kwargs) -> GameDatabase:
    engine = create_engine_for(f"sqlite+aiosqlite:///{path}")
    return GameDatabase(engine, create_session_factory(engine), **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def guard_clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def request_guard(guard_clock) -> RequestGuard:
    return RequestGuard(
        rate_limiter=InMemoryRateLimiter(clock=guard_clock),
        cooldown_tracker=CooldownTracker(clock=guard_clock),
    )


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[GameDatabase, None]:
    db = make_database(tmp_path / "service.sqlite3")
    await db.create_table()
    yield db
    await db.dispose()


@pytest.fixture
def service(database, clock) -> ProgressService:
    return ProgressService(database, regen_interval_seconds=120, clock=clock)


@pytest.fixture
def make_client(tmp_path, clock, request_guard):
    """Factory so tests can tweak settings before the app is built."""
    clients = []

    def _make(settings: GameSettings | None = None, auto_provision: bool = True, max_energy: int = 100):
        settings = settings or GameSettings(rate_limit_backend="memory")
        database = make_database(
            tmp_path / f"api-{len(clients)}.sqlite3",
            auto_provision=auto_provision,
            default_max_energy=max_energy,
        )
        app = create_app(
            settings=settings, database=database, request_guard=request_guard, clock=clock
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
