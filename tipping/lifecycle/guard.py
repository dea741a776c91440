"""Prediction submission guard: predictions are only accepted before kickoff."""

import logging
from typing import Optional

from tipping.clock import Clock
from tipping.errors import (
    ForbiddenError,
    NotFoundError,
    StoreError,
    TippingError,
    ValidationError,
)
from tipping.lifecycle.service import MatchService
from tipping.models import MatchStatus, Prediction, UserRole
from tipping.store import Store
from tipping.telemetry.metrics import record_prediction_submission

logger = logging.getLogger(__name__)


class PredictionGuard:
    def __init__(self, store: Store, clock: Clock, matches: MatchService):
        self.store = store
        self.clock = clock
        self.matches = matches

    async def submit_prediction(
        self,
        user_id: Optional[int],
        match_id: Optional[int],
        predicted_home: Optional[int],
        predicted_away: Optional[int],
    ) -> Prediction:
        """
        Validate and upsert a prediction.

        Checks run in order and stop at the first failure; nothing is written
        unless every check passes:
            1. all inputs present            -> ValidationError
            2. user exists                   -> NotFoundError
            3. user is a tipper              -> ForbiddenError
            4. match exists                  -> NotFoundError
            5. match is planned and kickoff  -> ForbiddenError
               is still in the future
            6. upsert keyed on (user, match)

        Store failures propagate as StoreError.
        """
        try:
            prediction = await self._submit(user_id, match_id, predicted_home, predicted_away)
        except TippingError as e:
            record_prediction_submission(e.kind)
            if not isinstance(e, StoreError):
                logger.info(
                    f"[PREDICTION] Rejected user={user_id} match={match_id}: {e.message}"
                )
            raise
        record_prediction_submission("accepted")
        return prediction

    async def _submit(self, user_id, match_id, predicted_home, predicted_away) -> Prediction:
        if any(v is None for v in (user_id, match_id, predicted_home, predicted_away)):
            raise ValidationError("incomplete data")

        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        if user.role != UserRole.TIPPER:
            raise ForbiddenError("only tippers may predict")

        # Bring statuses up to date so a match past kickoff reads as live
        await self.matches.reconcile_quietly("prediction", force=True)

        now = self.clock.now()
        match = await self.store.get_match(match_id)
        if match is None:
            raise NotFoundError("match", match_id)
        if match.status != MatchStatus.PLANNED or match.kickoff <= now:
            raise ForbiddenError("predictions closed")

        return await self.store.upsert_prediction(
            user_id=user_id,
            match_id=match_id,
            predicted_home_score=predicted_home,
            predicted_away_score=predicted_away,
            now=now,
        )
