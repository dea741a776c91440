"""Per-application service container.

create_app() builds one Services instance and stores it on app.state; routes
reach it through the get_services dependency. Nothing here is a module-level
singleton, so each test app gets its own store, clock and scheduler.
"""

from dataclasses import dataclass

from fastapi import Request

from tipping.clock import Clock
from tipping.config import Settings
from tipping.database import Database
from tipping.lifecycle import MatchService, PredictionGuard, ResultRecorder, StatusReconciler
from tipping.scheduler import ReconcileScheduler
from tipping.store import Store
from tipping.utils.throttle import Throttle


@dataclass
class Services:
    settings: Settings
    database: Database
    clock: Clock
    store: Store
    reconciler: StatusReconciler
    matches: MatchService
    guard: PredictionGuard
    results: ResultRecorder
    scheduler: ReconcileScheduler


def build_services(settings: Settings, database: Database, clock: Clock) -> Services:
    """Wire the lifecycle engine around one database and clock."""
    store = Store(database)
    reconciler = StatusReconciler(store, settings.match_duration)
    throttle = Throttle(settings.RECONCILE_READ_DEBOUNCE_SECONDS)
    matches = MatchService(store, reconciler, clock, throttle)
    return Services(
        settings=settings,
        database=database,
        clock=clock,
        store=store,
        reconciler=reconciler,
        matches=matches,
        guard=PredictionGuard(store, clock, matches),
        results=ResultRecorder(store, matches),
        scheduler=ReconcileScheduler(
            reconciler,
            clock,
            interval_seconds=settings.RECONCILE_INTERVAL_SECONDS,
            heartbeat_minutes=settings.SCHEDULER_HEARTBEAT_MINUTES,
            throttle=throttle,
        ),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the app's Services."""
    return request.app.state.services
