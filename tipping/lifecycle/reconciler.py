"""Status reconciliation: advance matches through planned -> live -> finished."""

import logging
from datetime import datetime, timedelta

from tipping.models import MatchStatus, to_naive_utc
from tipping.store import Store
from tipping.telemetry.metrics import record_transitions

logger = logging.getLogger(__name__)


class StatusReconciler:
    """
    Applies the timer-driven lifecycle transitions in batch.

        planned --(now >= kickoff)--> live
        live    --(now >= kickoff + match_duration)--> finished

    Each transition is one conditional UPDATE keyed on the current status,
    committed on its own. Transitions only move forward, so concurrent or
    repeated runs with the same clock converge on the same state.
    """

    def __init__(self, store: Store, match_duration: timedelta):
        if match_duration < timedelta(0):
            raise ValueError("match_duration must not be negative")
        self.store = store
        self.match_duration = match_duration

    async def reconcile(self, now: datetime) -> int:
        """
        Run both transitions for the given time.

        planned -> live runs first, so a planned match whose whole duration has
        already elapsed reaches finished in one pass (counted as two transitions).

        Returns:
            Number of status transitions applied. 0 on a repeated call.

        Raises:
            StoreError: the store is unreachable or the update failed.
        """
        now = to_naive_utc(now)

        went_live = await self.store.transition_matches(
            MatchStatus.PLANNED, MatchStatus.LIVE, kickoff_at_or_before=now
        )
        record_transitions(MatchStatus.PLANNED, MatchStatus.LIVE, went_live)
        if went_live:
            logger.info(f"[RECONCILE] {went_live} match(es) set to live")

        finished = await self.store.transition_matches(
            MatchStatus.LIVE, MatchStatus.FINISHED,
            kickoff_at_or_before=now - self.match_duration,
        )
        record_transitions(MatchStatus.LIVE, MatchStatus.FINISHED, finished)
        if finished:
            logger.info(f"[RECONCILE] {finished} match(es) set to finished")

        return went_live + finished
