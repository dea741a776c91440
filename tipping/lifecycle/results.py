"""Result entry with the manual finish override."""

import logging
from typing import Optional

from tipping.errors import ForbiddenError, NotFoundError, ValidationError
from tipping.lifecycle.service import MatchService
from tipping.models import Match, MatchStatus
from tipping.store import Store

logger = logging.getLogger(__name__)


class ResultRecorder:
    """
    Records final or interim scores.

    Policy: results are only accepted once a match has started (live or
    finished). A planned match is rejected even with force_finished, so the
    override can never skip the live state or move status backward.
    """

    def __init__(self, store: Store, matches: MatchService):
        self.store = store
        self.matches = matches

    async def record_result(
        self,
        match_id: int,
        home_score: Optional[int],
        away_score: Optional[int],
        force_finished: bool = False,
    ) -> Match:
        if home_score is None or away_score is None:
            raise ValidationError("home_score and away_score are required")

        # A match past kickoff whose tick has not fired yet counts as live
        await self.matches.reconcile_quietly("result", force=True)

        match = await self.store.get_match(match_id)
        if match is None:
            raise NotFoundError("match", match_id)
        if MatchStatus.rank(match.status) < MatchStatus.rank(MatchStatus.LIVE):
            raise ForbiddenError("match has not started")

        updated = await self.store.record_result(
            match_id, home_score, away_score, finish=force_finished
        )
        if updated is None:
            # Deleted between the read and the conditional update
            raise NotFoundError("match", match_id)

        logger.info(
            f"[RESULT] match={match_id} score={home_score}:{away_score} "
            f"status {match.status}->{updated.status}"
        )
        return updated
