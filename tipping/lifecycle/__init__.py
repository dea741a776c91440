"""
Match lifecycle engine.

    planned --(kickoff)--> live --(kickoff + play + stoppage)--> finished

Usage:
    from tipping.lifecycle import StatusReconciler, PredictionGuard

    reconciler = StatusReconciler(store, settings.match_duration)
    await reconciler.reconcile(clock.now())
"""

from tipping.lifecycle.guard import PredictionGuard
from tipping.lifecycle.reconciler import StatusReconciler
from tipping.lifecycle.results import ResultRecorder
from tipping.lifecycle.service import MatchService

__all__ = [
    "MatchService",
    "PredictionGuard",
    "ResultRecorder",
    "StatusReconciler",
]
