"""Public JSON API: matches, results, predictions, clubs, time slots, users.

Handlers only translate between HTTP and the lifecycle services; every rule
lives in tipping.lifecycle. TippingError subclasses are turned into JSON
responses by the handler registered in tipping.main.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from tipping.errors import NotFoundError, ValidationError
from tipping.models import UserRole, to_naive_utc
from tipping.state import Services, get_services

router = APIRouter(prefix="/api", tags=["api"])


# =============================================================================
# Request/Response Models
# =============================================================================

class MatchRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kickoff: datetime
    home_club_id: int
    away_club_id: int
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: str


class MatchCreate(BaseModel):
    kickoff: Optional[datetime] = None
    home_club_id: Optional[int] = None
    away_club_id: Optional[int] = None


class ResultUpdate(BaseModel):
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    force_finished: bool = False


class PredictionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    match_id: int
    predicted_home_score: int
    predicted_away_score: int
    created_at: datetime
    updated_at: datetime


class PredictionCreate(BaseModel):
    # Optional so that missing fields reach the guard's presence check
    user_id: Optional[int] = None
    match_id: Optional[int] = None
    predicted_home_score: Optional[int] = None
    predicted_away_score: Optional[int] = None


class ClubRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ClubCreate(BaseModel):
    name: Optional[str] = None


class TimeSlotRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    starts_at: datetime


class TimeSlotCreate(BaseModel):
    starts_at: Optional[datetime] = None


class TimeSlotCreated(BaseModel):
    message: str
    id: int
    data: TimeSlotRead


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: str


class UserCreate(BaseModel):
    name: Optional[str] = None
    role: str = UserRole.TIPPER


class DeleteResponse(BaseModel):
    success: bool


# =============================================================================
# Matches
# =============================================================================

@router.get("/matches", response_model=list[MatchRead])
async def list_matches(services: Services = Depends(get_services)):
    """All matches by kickoff; status is reconciled before reading."""
    return await services.matches.list_matches()


@router.post("/matches", response_model=MatchRead, status_code=201)
async def create_match(body: MatchCreate, services: Services = Depends(get_services)):
    if body.kickoff is None or body.home_club_id is None or body.away_club_id is None:
        raise ValidationError("kickoff, home_club_id and away_club_id are required")
    if body.home_club_id == body.away_club_id:
        raise ValidationError("a club cannot play itself")
    return await services.store.create_match(
        kickoff=to_naive_utc(body.kickoff),
        home_club_id=body.home_club_id,
        away_club_id=body.away_club_id,
    )


@router.delete("/matches/{match_id}", response_model=DeleteResponse)
async def delete_match(match_id: int, services: Services = Depends(get_services)):
    if not await services.store.delete_match(match_id):
        raise NotFoundError("match", match_id)
    return DeleteResponse(success=True)


@router.patch("/matches/{match_id}/result", response_model=MatchRead)
async def record_result(
    match_id: int, body: ResultUpdate, services: Services = Depends(get_services)
):
    return await services.results.record_result(
        match_id,
        body.home_score,
        body.away_score,
        force_finished=body.force_finished,
    )


@router.get("/matches/{match_id}/predictions", response_model=list[PredictionRead])
async def list_match_predictions(match_id: int, services: Services = Depends(get_services)):
    if await services.store.get_match(match_id) is None:
        raise NotFoundError("match", match_id)
    return await services.store.list_predictions(match_id=match_id)


# =============================================================================
# Predictions
# =============================================================================

@router.post("/predictions", response_model=PredictionRead)
async def submit_prediction(body: PredictionCreate, services: Services = Depends(get_services)):
    return await services.guard.submit_prediction(
        body.user_id,
        body.match_id,
        body.predicted_home_score,
        body.predicted_away_score,
    )


# =============================================================================
# Users
# =============================================================================

@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(body: UserCreate, services: Services = Depends(get_services)):
    if not body.name:
        raise ValidationError("name is required")
    return await services.store.create_user(body.name, body.role)


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(user_id: int, services: Services = Depends(get_services)):
    user = await services.store.get_user(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return user


@router.get("/users/{user_id}/predictions", response_model=list[PredictionRead])
async def list_user_predictions(user_id: int, services: Services = Depends(get_services)):
    if await services.store.get_user(user_id) is None:
        raise NotFoundError("user", user_id)
    return await services.store.list_predictions(user_id=user_id)


# =============================================================================
# Clubs
# =============================================================================

@router.get("/clubs", response_model=list[ClubRead])
async def list_clubs(services: Services = Depends(get_services)):
    return await services.store.list_clubs()


@router.post("/clubs", response_model=ClubRead, status_code=201)
async def create_club(body: ClubCreate, services: Services = Depends(get_services)):
    if not body.name:
        raise ValidationError("club name is required")
    return await services.store.create_club(body.name)


@router.delete("/clubs/{club_id}", response_model=DeleteResponse)
async def delete_club(club_id: int, services: Services = Depends(get_services)):
    if not await services.store.delete_club(club_id):
        raise NotFoundError("club", club_id)
    return DeleteResponse(success=True)


# =============================================================================
# Time slots
# =============================================================================

@router.get("/time-slots", response_model=list[TimeSlotRead])
async def list_time_slots(services: Services = Depends(get_services)):
    return await services.store.list_time_slots()


@router.post("/time-slots", response_model=TimeSlotCreated, status_code=201)
async def create_time_slot(body: TimeSlotCreate, services: Services = Depends(get_services)):
    if body.starts_at is None:
        raise ValidationError("time slot missing")
    slot = await services.store.create_time_slot(to_naive_utc(body.starts_at))
    return TimeSlotCreated(
        message="time slot saved",
        id=slot.id,
        data=TimeSlotRead.model_validate(slot),
    )


@router.delete("/time-slots/{slot_id}", response_model=DeleteResponse)
async def delete_time_slot(slot_id: int, services: Services = Depends(get_services)):
    if not await services.store.delete_time_slot(slot_id):
        raise NotFoundError("time slot", slot_id)
    return DeleteResponse(success=True)
