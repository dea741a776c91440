"""Database models using SQLModel."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


# Column type for every timestamp: naive UTC, never timezone-aware
NAIVE_DATETIME = DateTime(timezone=False)


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every datetime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class MatchStatus:
    """Lifecycle states. Transitions only move forward through ORDER."""

    PLANNED = "planned"
    LIVE = "live"
    FINISHED = "finished"

    ORDER = (PLANNED, LIVE, FINISHED)

    @classmethod
    def rank(cls, status: str) -> int:
        return cls.ORDER.index(status)


class UserRole:
    TIPPER = "tipper"
    ADMIN = "admin"


class User(SQLModel, table=True):
    """User record. Only the role matters to the lifecycle engine."""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    role: str = Field(max_length=20, default=UserRole.TIPPER, description="'tipper', 'admin', ...")

    predictions: list["Prediction"] = Relationship(back_populates="user")


class Club(SQLModel, table=True):
    """Club that can appear as home or away side of a match."""

    __tablename__ = "clubs"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True, index=True)


class TimeSlot(SQLModel, table=True):
    """Candidate kickoff time offered when scheduling matches."""

    __tablename__ = "time_slots"

    id: Optional[int] = Field(default=None, primary_key=True)
    starts_at: datetime = Field(sa_type=NAIVE_DATETIME, index=True)


class Match(SQLModel, table=True):
    """Match between two clubs with a lifecycle status."""

    __tablename__ = "matches"

    id: Optional[int] = Field(default=None, primary_key=True)
    kickoff: datetime = Field(
        sa_type=NAIVE_DATETIME, index=True, description="Scheduled start (naive UTC)"
    )

    home_club_id: int = Field(foreign_key="clubs.id", index=True)
    away_club_id: int = Field(foreign_key="clubs.id", index=True)

    home_score: Optional[int] = Field(default=None, description="NULL until a result is recorded")
    away_score: Optional[int] = Field(default=None, description="NULL until a result is recorded")

    status: str = Field(
        max_length=20, default=MatchStatus.PLANNED, index=True,
        description="planned, live, finished",
    )

    predictions: list["Prediction"] = Relationship(back_populates="match")


class Prediction(SQLModel, table=True):
    """A user's forecast of a match's final score."""

    __tablename__ = "predictions"
    __table_args__ = (
        UniqueConstraint("user_id", "match_id", name="uq_prediction_user_match"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    match_id: int = Field(foreign_key="matches.id", index=True)

    predicted_home_score: int
    predicted_away_score: int

    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)

    user: Optional[User] = Relationship(back_populates="predictions")
    match: Optional[Match] = Relationship(back_populates="predictions")
