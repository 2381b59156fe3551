from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from coffee_bracket.database import get_session
from coffee_bracket.models.participant import Participant
from coffee_bracket.models.tournament import Tournament
from coffee_bracket.routes.heats import HeatResponse
from coffee_bracket.services.bracket_service import (
    BracketStateError,
    advance_round,
    generate_bracket,
    get_all_heat_rows,
    get_participants,
    get_round_times,
    override_heats,
    set_round_times,
)
from coffee_bracket.services.bracket_types import COMPETITOR_STATUSES, SIDES
from coffee_bracket.services.heat_segments import SEGMENT_CAPPUCCINO, SEGMENT_DIAL_IN, SEGMENT_ESPRESSO
from coffee_bracket.services.manual_override import SlotRef
from coffee_bracket.utils.bracket_math import round_display_name

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    location: Optional[str] = None
    dial_in_minutes: int = 2
    cappuccino_minutes: int = 2
    espresso_minutes: int = 1

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("dial_in_minutes", "cappuccino_minutes", "espresso_minutes")
    @classmethod
    def validate_minutes(cls, v):
        if v < 1:
            raise ValueError("segment minutes must be >= 1")
        return v


class TournamentResponse(BaseModel):
    id: int
    name: str
    location: Optional[str]
    status: str
    current_round: int
    total_rounds: int
    dial_in_minutes: int
    cappuccino_minutes: int
    espresso_minutes: int
    winner_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ParticipantCreate(BaseModel):
    name: str
    signup_order: Optional[int] = None
    status: str = "active"
    cup_code: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("signup_order")
    @classmethod
    def validate_signup_order(cls, v):
        if v is not None and v < 1:
            raise ValueError("signup_order must be >= 1")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in COMPETITOR_STATUSES:
            raise ValueError(f"status must be one of {', '.join(COMPETITOR_STATUSES)}")
        return v


class ParticipantUpdate(BaseModel):
    name: Optional[str] = None
    status: Optional[str] = None
    cup_code: Optional[str] = None

    # Validators only run on fields sent in the request; an explicit null is refused
    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in COMPETITOR_STATUSES:
            raise ValueError(f"status must be one of {', '.join(COMPETITOR_STATUSES)}")
        return v


class ParticipantResponse(BaseModel):
    id: int
    tournament_id: int
    name: str
    signup_order: int
    status: str
    cup_code: Optional[str] = None
    eliminated_round: Optional[int] = None

    class Config:
        from_attributes = True


class RoundTimesUpdate(BaseModel):
    dial_in_minutes: int
    cappuccino_minutes: int
    espresso_minutes: int

    @field_validator("dial_in_minutes", "cappuccino_minutes", "espresso_minutes")
    @classmethod
    def validate_minutes(cls, v):
        if v < 1:
            raise ValueError("segment minutes must be >= 1")
        return v


class RoundTimesResponse(BaseModel):
    round_number: int
    dial_in_minutes: int
    cappuccino_minutes: int
    espresso_minutes: int

    class Config:
        from_attributes = True


class StoredRoundResponse(BaseModel):
    round_number: int
    name: str
    heats: List[HeatResponse]


class SlotRefIn(BaseModel):
    heat_id: str  # heat code, e.g. "R1-H0"
    side: str

    @field_validator("side")
    @classmethod
    def validate_side(cls, v):
        if v not in SIDES:
            raise ValueError("side must be 'A' or 'B'")
        return v


class OverrideRequest(BaseModel):
    from_slot: SlotRefIn
    to_slot: SlotRefIn


def _get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


# ============================================================================
# Tournaments
# ============================================================================


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return _get_tournament(session, tournament_id)


@router.get("/tournaments/{tournament_id}/rounds", response_model=List[StoredRoundResponse])
def list_rounds(tournament_id: int, session: Session = Depends(get_session)):
    """All stored rounds with their heats, named Round k / Semifinal / Final."""
    tournament = _get_tournament(session, tournament_id)
    rounds: List[StoredRoundResponse] = []
    for row in get_all_heat_rows(session, tournament.id):
        if not rounds or rounds[-1].round_number != row.round_number:
            rounds.append(
                StoredRoundResponse(
                    round_number=row.round_number,
                    name=round_display_name(row.round_number, tournament.total_rounds),
                    heats=[],
                )
            )
        rounds[-1].heats.append(HeatResponse.model_validate(row))
    return rounds


# ============================================================================
# Participants
# ============================================================================


@router.get("/tournaments/{tournament_id}/participants", response_model=List[ParticipantResponse])
def list_participants(tournament_id: int, session: Session = Depends(get_session)):
    """Participants in signup order"""
    _get_tournament(session, tournament_id)
    return get_participants(session, tournament_id)


@router.post("/tournaments/{tournament_id}/participants", response_model=ParticipantResponse, status_code=201)
def add_participant(tournament_id: int, payload: ParticipantCreate, session: Session = Depends(get_session)):
    """
    Register a competitor. signup_order defaults to one after the latest
    signup; it seeds Round 1 byes, so it must be unique per tournament.
    """
    tournament = _get_tournament(session, tournament_id)
    if get_all_heat_rows(session, tournament.id):
        raise HTTPException(status_code=409, detail="Bracket already generated; competitors are locked")

    existing = get_participants(session, tournament.id)
    signup_order = payload.signup_order
    if signup_order is None:
        signup_order = max((p.signup_order for p in existing), default=0) + 1
    elif any(p.signup_order == signup_order for p in existing):
        raise HTTPException(status_code=409, detail=f"signup_order {signup_order} is already taken")

    participant = Participant(
        tournament_id=tournament.id,
        name=payload.name,
        signup_order=signup_order,
        status=payload.status,
        cup_code=payload.cup_code,
    )
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return participant


@router.patch("/participants/{participant_id}", response_model=ParticipantResponse)
def update_participant(participant_id: int, payload: ParticipantUpdate, session: Session = Depends(get_session)):
    """Rename, mark no-show, or set the blind cup code."""
    participant = session.get(Participant, participant_id)
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")

    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(participant, key, value)
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return participant


# ============================================================================
# Bracket
# ============================================================================


@router.post("/tournaments/{tournament_id}/bracket", response_model=List[HeatResponse], status_code=201)
def generate_tournament_bracket(tournament_id: int, session: Session = Depends(get_session)):
    """Generate and store Round 1 (409 if a bracket already exists)."""
    tournament = _get_tournament(session, tournament_id)
    try:
        return generate_bracket(session, tournament)
    except BracketStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post(
    "/tournaments/{tournament_id}/rounds/{round_number}/advance",
    response_model=List[HeatResponse],
    status_code=201,
)
def advance_tournament_round(tournament_id: int, round_number: int, session: Session = Depends(get_session)):
    """Build round_number + 1 from the winners of round_number."""
    tournament = _get_tournament(session, tournament_id)
    try:
        return advance_round(session, tournament, round_number)
    except BracketStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/tournaments/{tournament_id}/override", response_model=List[HeatResponse])
def override_bracket(tournament_id: int, payload: OverrideRequest, session: Session = Depends(get_session)):
    """
    Move a competitor from one heat side to another. Both touched heats lose
    their result; unknown heats or an empty source side change nothing.
    """
    tournament = _get_tournament(session, tournament_id)
    return override_heats(
        session,
        tournament.id,
        SlotRef(heat_id=payload.from_slot.heat_id, side=payload.from_slot.side),
        SlotRef(heat_id=payload.to_slot.heat_id, side=payload.to_slot.side),
    )


# ============================================================================
# Round times
# ============================================================================


@router.get("/tournaments/{tournament_id}/round-times", response_model=List[RoundTimesResponse])
def list_round_times(tournament_id: int, session: Session = Depends(get_session)):
    """Per-round segment minutes; rounds not listed use the tournament defaults."""
    _get_tournament(session, tournament_id)
    return get_round_times(session, tournament_id)


@router.put("/tournaments/{tournament_id}/rounds/{round_number}/times", response_model=RoundTimesResponse)
def set_tournament_round_times(
    tournament_id: int, round_number: int, payload: RoundTimesUpdate, session: Session = Depends(get_session)
):
    """Set the segment minutes used when round_number is built (409 once it exists)."""
    tournament = _get_tournament(session, tournament_id)
    if round_number < 1:
        raise HTTPException(status_code=422, detail="round_number must be >= 1")
    minutes = {
        SEGMENT_DIAL_IN: payload.dial_in_minutes,
        SEGMENT_CAPPUCCINO: payload.cappuccino_minutes,
        SEGMENT_ESPRESSO: payload.espresso_minutes,
    }
    try:
        return set_round_times(session, tournament, round_number, minutes)
    except BracketStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
