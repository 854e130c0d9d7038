"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the environment before any import that might load settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable

import pytest

from showroom.schemas.vehicle import Vehicle


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def time(self) -> float:
        return self.current

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class _FakeHandle:
    def __init__(self, scheduler: "FakeScheduler", due: float, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Virtual-clock scheduler: callbacks run only when time is advanced."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[_FakeHandle] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> _FakeHandle:
        handle = _FakeHandle(self, self.now + delay_seconds, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [h for h in self.handles if not h.cancelled and h.due <= self.now]
        self.handles = [h for h in self.handles if h not in due and not h.cancelled]
        for handle in sorted(due, key=lambda h: h.due):
            handle.callback()

    @property
    def pending(self) -> int:
        return sum(1 for h in self.handles if not h.cancelled)


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def vehicles() -> list[Vehicle]:
    """Small inventory covering brands, colors, fuel types and price ranges."""

    return [
        Vehicle(
            id="1",
            name="Honda Civic EX",
            brand="Honda",
            model="Civic",
            year=2019,
            price=78000,
            kilometers=65000,
            transmission="automatic",
            fuel_type="gasoline",
            color="White",
            description="One owner, full service history",
            features=["Sunroof", "Bluetooth"],
        ),
        Vehicle(
            id="2",
            name="Toyota Corolla Hybrid",
            brand="Toyota",
            model="Corolla",
            year=2021,
            price=112000,
            kilometers=30000,
            transmission="automatic",
            fuel_type="hybrid",
            color="Silver",
            description="Economical family sedan",
            features=["Lane assist", "Bluetooth"],
        ),
        Vehicle(
            id="3",
            name="Mazda 3 Sport",
            brand="Mazda",
            model="3",
            year=2018,
            price=64000,
            kilometers=98000,
            transmission="manual",
            fuel_type="gasoline",
            color="Red",
            description="Sporty hatchback",
            features=["Alloy wheels"],
        ),
        Vehicle(
            id="4",
            name="Tesla Model 3 Long Range",
            brand="Tesla",
            model="Model 3",
            year=2022,
            price=185000,
            kilometers=22000,
            transmission="automatic",
            fuel_type="electric",
            color="White",
            description="Autopilot, premium interior",
            features=["Autopilot", "Heated seats"],
        ),
    ]


@pytest.fixture
def api_key_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}


@pytest.fixture
def make_client(vehicles, fake_scheduler):
    """Build an isolated app (own settings, stores and limiters) and enter its lifespan."""

    from fastapi.testclient import TestClient

    from showroom.core.app_factory import create_app
    from showroom.core.config import Settings

    clients: list[TestClient] = []

    def _make(cfg: Settings | None = None, *, inventory=None) -> TestClient:
        app = create_app(
            cfg or Settings(),
            scheduler=fake_scheduler,
            vehicles=vehicles if inventory is None else inventory,
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
