"""
Relational store used by the lifecycle engine and the HTTP routes.

Every write is a single statement (or a single transaction for deletes), so
no failure leaves a row partially written. SQLAlchemy errors never escape:
they are rolled back and re-raised as StoreError.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col

from tipping.database import Database
from tipping.errors import StoreError
from tipping.models import Club, Match, MatchStatus, Prediction, TimeSlot, User

logger = logging.getLogger(__name__)

# Statuses a result may be recorded against
RESULT_STATUSES = (MatchStatus.LIVE, MatchStatus.FINISHED)


class Store:
    """Query interface over matches, predictions, users, clubs and time slots."""

    def __init__(self, database: Database):
        self.database = database

    @asynccontextmanager
    async def _session(self, operation: str):
        try:
            async with self.database.session() as session:
                try:
                    yield session
                except SQLAlchemyError:
                    await session.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(f"[STORE] {operation} failed: {e}")
            raise StoreError(f"{operation} failed: {e.__class__.__name__}") from e

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    async def transition_matches(
        self, from_status: str, to_status: str, kickoff_at_or_before: datetime
    ) -> int:
        """
        Move every match in from_status whose kickoff is <= the cutoff to to_status.

        One conditional UPDATE keyed on the current status, so concurrent
        callers cannot apply the same transition twice.
        """
        async with self._session(f"transition {from_status}->{to_status}") as session:
            result = await session.execute(
                update(Match)
                .where(
                    col(Match.status) == from_status,
                    col(Match.kickoff) <= kickoff_at_or_before,
                )
                .values(status=to_status)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount or 0

    async def get_match(self, match_id: int) -> Optional[Match]:
        async with self._session("get match") as session:
            return await session.get(Match, match_id)

    async def list_matches(self) -> list[Match]:
        async with self._session("list matches") as session:
            result = await session.execute(
                select(Match).order_by(col(Match.kickoff).asc(), col(Match.id).asc())
            )
            return list(result.scalars().all())

    async def create_match(
        self, kickoff: datetime, home_club_id: int, away_club_id: int
    ) -> Match:
        async with self._session("create match") as session:
            match = Match(
                kickoff=kickoff,
                home_club_id=home_club_id,
                away_club_id=away_club_id,
                status=MatchStatus.PLANNED,
            )
            session.add(match)
            await session.commit()
            await session.refresh(match)
            return match

    async def delete_match(self, match_id: int) -> bool:
        """Delete a match and its predictions in one transaction."""
        async with self._session("delete match") as session:
            await session.execute(
                delete(Prediction).where(col(Prediction.match_id) == match_id)
            )
            result = await session.execute(delete(Match).where(col(Match.id) == match_id))
            await session.commit()
            return (result.rowcount or 0) > 0

    async def record_result(
        self, match_id: int, home_score: int, away_score: int, finish: bool
    ) -> Optional[Match]:
        """
        Write scores (and optionally status=finished) for a live or finished match.

        Returns None when no row matched, i.e. the match is missing or still planned.
        """
        values = {"home_score": home_score, "away_score": away_score}
        if finish:
            values["status"] = MatchStatus.FINISHED

        async with self._session("record result") as session:
            result = await session.execute(
                update(Match)
                .where(
                    col(Match.id) == match_id,
                    col(Match.status).in_(RESULT_STATUSES),
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                await session.rollback()
                return None
            await session.commit()
            return await session.get(Match, match_id)

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    async def upsert_prediction(
        self,
        user_id: int,
        match_id: int,
        predicted_home_score: int,
        predicted_away_score: int,
        now: datetime,
    ) -> Prediction:
        """
        Insert or overwrite the prediction for (user_id, match_id).

        Uses INSERT ... ON CONFLICT DO UPDATE on PostgreSQL and SQLite so that
        concurrent double submissions converge on a single row.
        """
        values = {
            "user_id": user_id,
            "match_id": match_id,
            "predicted_home_score": predicted_home_score,
            "predicted_away_score": predicted_away_score,
            "created_at": now,
            "updated_at": now,
        }
        update_columns = ["predicted_home_score", "predicted_away_score", "updated_at"]

        async with self._session("upsert prediction") as session:
            dialect = self.database.dialect
            if dialect in ("postgresql", "sqlite"):
                if dialect == "postgresql":
                    from sqlalchemy.dialects.postgresql import insert
                else:
                    from sqlalchemy.dialects.sqlite import insert

                stmt = insert(Prediction).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "match_id"],
                    set_={c: getattr(stmt.excluded, c) for c in update_columns},
                )
                await session.execute(stmt)
            else:
                # Generic path: rely on the unique constraint, update on conflict
                try:
                    async with session.begin_nested():
                        session.add(Prediction(**values))
                except IntegrityError:
                    logger.debug(f"Prediction ({user_id}, {match_id}) exists, updating")
                    await session.execute(
                        update(Prediction)
                        .where(
                            col(Prediction.user_id) == user_id,
                            col(Prediction.match_id) == match_id,
                        )
                        .values(**{c: values[c] for c in update_columns})
                        .execution_options(synchronize_session=False)
                    )
            await session.commit()

            result = await session.execute(
                select(Prediction).where(
                    col(Prediction.user_id) == user_id,
                    col(Prediction.match_id) == match_id,
                )
            )
            return result.scalar_one()

    async def list_predictions(
        self, *, match_id: Optional[int] = None, user_id: Optional[int] = None
    ) -> list[Prediction]:
        query = select(Prediction)
        if match_id is not None:
            query = query.where(col(Prediction.match_id) == match_id)
        if user_id is not None:
            query = query.where(col(Prediction.user_id) == user_id)
        async with self._session("list predictions") as session:
            result = await session.execute(query.order_by(col(Prediction.id)))
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: int) -> Optional[User]:
        async with self._session("get user") as session:
            return await session.get(User, user_id)

    async def create_user(self, name: str, role: str) -> User:
        async with self._session("create user") as session:
            user = User(name=name, role=role)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    # ------------------------------------------------------------------
    # Clubs and time slots
    # ------------------------------------------------------------------

    async def list_clubs(self) -> list[Club]:
        async with self._session("list clubs") as session:
            result = await session.execute(select(Club).order_by(col(Club.name)))
            return list(result.scalars().all())

    async def create_club(self, name: str) -> Club:
        async with self._session("create club") as session:
            club = Club(name=name)
            session.add(club)
            await session.commit()
            await session.refresh(club)
            return club

    async def delete_club(self, club_id: int) -> bool:
        async with self._session("delete club") as session:
            result = await session.execute(delete(Club).where(col(Club.id) == club_id))
            await session.commit()
            return (result.rowcount or 0) > 0

    async def list_time_slots(self) -> list[TimeSlot]:
        async with self._session("list time slots") as session:
            result = await session.execute(select(TimeSlot).order_by(col(TimeSlot.starts_at)))
            return list(result.scalars().all())

    async def create_time_slot(self, starts_at: datetime) -> TimeSlot:
        async with self._session("create time slot") as session:
            slot = TimeSlot(starts_at=starts_at)
            session.add(slot)
            await session.commit()
            await session.refresh(slot)
            return slot

    async def delete_time_slot(self, slot_id: int) -> bool:
        async with self._session("delete time slot") as session:
            result = await session.execute(delete(TimeSlot).where(col(TimeSlot.id) == slot_id))
            await session.commit()
            return (result.rowcount or 0) > 0
