"""Tests for result entry and the manual finish override."""

import pytest

from tipping.errors import ForbiddenError, NotFoundError, ValidationError
from tipping.lifecycle import ResultRecorder
from tipping.models import MatchStatus

from conftest import NOW


@pytest.fixture
def recorder(store, match_service):
    return ResultRecorder(store, match_service)


class TestRecordResult:

    @pytest.mark.asyncio
    async def test_force_finished_on_live_match(self, recorder, reconciler, make_match):
        match = await make_match(-5)
        await reconciler.reconcile(NOW)

        updated = await recorder.record_result(match.id, 2, 1, force_finished=True)

        assert updated.status == MatchStatus.FINISHED
        assert (updated.home_score, updated.away_score) == (2, 1)

    @pytest.mark.asyncio
    async def test_scores_without_force_keep_live(self, recorder, reconciler, make_match):
        match = await make_match(-5)
        await reconciler.reconcile(NOW)

        updated = await recorder.record_result(match.id, 1, 1)

        assert updated.status == MatchStatus.LIVE
        assert (updated.home_score, updated.away_score) == (1, 1)

    @pytest.mark.asyncio
    async def test_finished_match_can_be_corrected(self, recorder, reconciler, make_match):
        match = await make_match(-30)
        await reconciler.reconcile(NOW)

        await recorder.record_result(match.id, 1, 0)
        updated = await recorder.record_result(match.id, 2, 0)

        assert updated.status == MatchStatus.FINISHED
        assert updated.home_score == 2

    @pytest.mark.asyncio
    async def test_past_kickoff_counts_as_live(self, recorder, store, make_match):
        """Kickoff passed but no tick yet: the inline pass makes it live first."""
        match = await make_match(-2)
        assert (await store.get_match(match.id)).status == MatchStatus.PLANNED

        updated = await recorder.record_result(match.id, 0, 0, force_finished=True)

        assert updated.status == MatchStatus.FINISHED


class TestRecordResultRejected:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("force", [False, True])
    async def test_planned_match_rejected(self, recorder, store, make_match, force):
        match = await make_match(30)

        with pytest.raises(ForbiddenError, match="has not started"):
            await recorder.record_result(match.id, 3, 0, force_finished=force)

        stored = await store.get_match(match.id)
        assert stored.status == MatchStatus.PLANNED
        assert stored.home_score is None and stored.away_score is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("home,away", [(None, 1), (1, None), (None, None)])
    async def test_missing_scores(self, recorder, make_match, home, away):
        match = await make_match(-5)
        with pytest.raises(ValidationError):
            await recorder.record_result(match.id, home, away)

    @pytest.mark.asyncio
    async def test_unknown_match(self, recorder):
        with pytest.raises(NotFoundError):
            await recorder.record_result(404, 1, 0)
