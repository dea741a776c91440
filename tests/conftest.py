"""Shared fixtures: in-memory SQLite store, manual clock, seeded clubs and users."""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from tipping.clock import ManualClock
from tipping.config import Settings
from tipping.database import Database
from tipping.lifecycle import MatchService, StatusReconciler
from tipping.models import UserRole
from tipping.store import Store
from tipping.utils.throttle import Throttle

NOW = datetime(2026, 3, 7, 15, 0)


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        PLAY_DURATION_MINUTES=10,
        STOPPAGE_DURATION_MINUTES=10,
        RECONCILE_READ_DEBOUNCE_SECONDS=0,
        SCHEDULER_ENABLED=False,
        STATIC_DIR="__no_static_dir__",
    )


@pytest.fixture
def clock():
    return ManualClock(NOW)


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite://")
    await db.init_db()
    yield db
    await db.close()


@pytest.fixture
def store(database):
    return Store(database)


@pytest.fixture
def reconciler(store, settings):
    return StatusReconciler(store, settings.match_duration)


@pytest.fixture
def match_service(store, reconciler, clock):
    return MatchService(store, reconciler, clock, Throttle(0))


@pytest_asyncio.fixture
async def clubs(store):
    home = await store.create_club("FC Nord")
    away = await store.create_club("SV Süd")
    return home, away


@pytest_asyncio.fixture
async def tipper(store):
    return await store.create_user("anna", UserRole.TIPPER)


@pytest_asyncio.fixture
async def admin(store):
    return await store.create_user("root", UserRole.ADMIN)


@pytest.fixture
def make_match(store, clubs):
    """Factory: create a match with kickoff relative to NOW."""
    home, away = clubs

    async def _make(minutes_from_now: float):
        return await store.create_match(
            kickoff=NOW + timedelta(minutes=minutes_from_now),
            home_club_id=home.id,
            away_club_id=away.id,
        )

    return _make
