"""
Heat runtime API: resolution, judges, scorecards, segments and completion.

Segment transitions are strictly ordered; an out-of-order start or a stop of
a segment that is not running is rejected with 422 and the heat is left as it
was. A heat is finished through POST /heats/{heat_id}/complete.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from coffee_bracket.database import get_session
from coffee_bracket.models.bracket_heat import BracketHeat
from coffee_bracket.services.bracket_service import HEAT_DONE, has_next_round, resolve_heat_row
from coffee_bracket.services.heat_runtime import (
    HeatNotReadyError,
    HeatScoreTieError,
    complete_heat,
    completion_for,
    get_judge_rows,
    get_score_rows,
    get_segment_rows,
    replace_judges,
    score_summary,
    segment_state,
    start_heat_segment,
    stop_heat_segment,
    upsert_scorecard,
)
from coffee_bracket.services.heat_segments import SegmentStateError, active_segment, validate_segments
from coffee_bracket.services.judge_completion import JUDGE_ROLES, ROLE_BEVERAGE, JudgeAssignment
from coffee_bracket.services.score_aggregator import BEVERAGES, JudgeCategoryScore, normalize_position

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class HeatResponse(BaseModel):
    id: int
    tournament_id: int
    heat_code: str
    round_number: int
    slot: int
    competitor_a: Optional[Dict[str, Any]] = None
    competitor_b: Optional[Dict[str, Any]] = None
    winner_id: Optional[str] = None
    note: Optional[str] = None
    status: str
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SegmentResponse(BaseModel):
    id: int
    heat_id: int
    segment: str
    sequence: int
    status: str
    planned_minutes: int
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SegmentListResponse(BaseModel):
    heat_id: int
    active_segment: Optional[str] = None
    segments: List[SegmentResponse]


class SegmentValidationResponse(BaseModel):
    heat_id: int
    is_valid: bool
    required: List[str]
    existing: List[str]
    missing: List[str]
    extra: List[str]


class JudgeIn(BaseModel):
    judge_name: str
    role: str

    @field_validator("judge_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("judge_name is required")
        return v.strip()

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        role = (v or "").strip().upper()
        if role not in JUDGE_ROLES:
            raise ValueError(f"role must be one of {', '.join(JUDGE_ROLES)}")
        return role


class JudgePanelUpdate(BaseModel):
    judges: List[JudgeIn]

    @field_validator("judges")
    @classmethod
    def unique_names(cls, v):
        names = [j.judge_name for j in v]
        if len(names) != len(set(names)):
            raise ValueError("judge names must be unique within a heat")
        return v


class JudgeResponse(BaseModel):
    id: int
    heat_id: int
    judge_name: str
    role: str

    class Config:
        from_attributes = True


class ScorecardSubmit(BaseModel):
    judge_name: str
    sensory_beverage: str
    left_cup_code: Optional[str] = None
    right_cup_code: Optional[str] = None
    visual: Optional[str] = None
    taste: Optional[str] = None
    tactile: Optional[str] = None
    flavour: Optional[str] = None
    overall: Optional[str] = None

    @field_validator("sensory_beverage")
    @classmethod
    def validate_beverage(cls, v):
        if v not in BEVERAGES:
            raise ValueError(f"sensory_beverage must be one of {', '.join(BEVERAGES)}")
        return v

    @field_validator("visual", "taste", "tactile", "flavour", "overall")
    @classmethod
    def validate_pick(cls, v):
        if v is None:
            return None
        position = normalize_position(v)
        if position is None:
            raise ValueError("category picks must be 'left' or 'right'")
        return position


class ScorecardResponse(BaseModel):
    id: int
    heat_id: int
    judge_name: str
    sensory_beverage: str
    left_cup_code: Optional[str] = None
    right_cup_code: Optional[str] = None
    visual: Optional[str] = None
    taste: Optional[str] = None
    tactile: Optional[str] = None
    flavour: Optional[str] = None
    overall: Optional[str] = None
    submitted_at: datetime

    class Config:
        from_attributes = True


class ScoreSummaryResponse(BaseModel):
    heat_id: int
    totals: Dict[str, int]
    per_judge: Dict[str, Dict[str, int]]
    winner_id: Optional[str] = None
    tie: bool
    scorecards: List[ScorecardResponse]


class JudgeCompletionResponse(BaseModel):
    judge_name: str
    role: str
    completed: bool
    categories: Dict[str, bool]
    missing_categories: List[str]


class CompletionResponse(BaseModel):
    heat_id: int
    complete: bool
    segments_ended: bool
    judges_complete: bool
    judges: List[JudgeCompletionResponse]


class CompleteHeatRequest(BaseModel):
    winner_id: Optional[str] = None


class CompleteHeatResponse(BaseModel):
    heat: HeatResponse
    decided_by: str
    totals: Optional[Dict[str, int]] = None


# ============================================================================
# Helpers
# ============================================================================


def _get_heat(session: Session, heat_id: int) -> BracketHeat:
    heat = session.get(BracketHeat, heat_id)
    if not heat:
        raise HTTPException(status_code=404, detail="Heat not found")
    return heat


def _ensure_round_open(session: Session, heat: BracketHeat) -> None:
    if has_next_round(session, heat):
        raise HTTPException(
            status_code=409,
            detail=f"Round {heat.round_number} has already advanced; heat {heat.heat_code} is locked",
        )


def _segment_list(session: Session, heat: BracketHeat) -> SegmentListResponse:
    rows = get_segment_rows(session, heat.id)
    active = active_segment([segment_state(r) for r in rows])
    return SegmentListResponse(
        heat_id=heat.id,
        active_segment=active.code if active else None,
        segments=[SegmentResponse.model_validate(r) for r in rows],
    )


# ============================================================================
# Resolution
# ============================================================================


@router.post("/heats/{heat_id}/resolve", response_model=HeatResponse)
def resolve_heat_endpoint(heat_id: int, session: Session = Depends(get_session)):
    """Apply BYE / NO SHOW rules using the competitors' current statuses."""
    heat = _get_heat(session, heat_id)
    _ensure_round_open(session, heat)
    return resolve_heat_row(session, heat)


# ============================================================================
# Segments
# ============================================================================


@router.get("/heats/{heat_id}/segments", response_model=SegmentListResponse)
def list_segments(heat_id: int, session: Session = Depends(get_session)):
    heat = _get_heat(session, heat_id)
    return _segment_list(session, heat)


@router.get("/heats/{heat_id}/segments/validate", response_model=SegmentValidationResponse)
def validate_heat_segments(heat_id: int, session: Session = Depends(get_session)):
    """Check the heat has exactly the DIAL_IN / CAPPUCCINO / ESPRESSO segments."""
    heat = _get_heat(session, heat_id)
    result = validate_segments(r.segment for r in get_segment_rows(session, heat.id))
    return SegmentValidationResponse(
        heat_id=heat.id,
        is_valid=result.is_valid,
        required=result.required,
        existing=result.existing,
        missing=result.missing,
        extra=result.extra,
    )


@router.post("/heats/{heat_id}/segments/{segment_code}/start", response_model=SegmentListResponse)
def start_segment_endpoint(heat_id: int, segment_code: str, session: Session = Depends(get_session)):
    heat = _get_heat(session, heat_id)
    if heat.status == HEAT_DONE:
        raise HTTPException(status_code=409, detail=f"Heat {heat.heat_code} is already complete")
    try:
        start_heat_segment(session, heat, segment_code.upper(), datetime.utcnow())
    except SegmentStateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _segment_list(session, heat)


@router.post("/heats/{heat_id}/segments/{segment_code}/stop", response_model=SegmentListResponse)
def stop_segment_endpoint(heat_id: int, segment_code: str, session: Session = Depends(get_session)):
    heat = _get_heat(session, heat_id)
    try:
        stop_heat_segment(session, heat, segment_code.upper(), datetime.utcnow())
    except SegmentStateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _segment_list(session, heat)


# ============================================================================
# Judges and scorecards
# ============================================================================


@router.get("/heats/{heat_id}/judges", response_model=List[JudgeResponse])
def list_judges(heat_id: int, session: Session = Depends(get_session)):
    heat = _get_heat(session, heat_id)
    return get_judge_rows(session, heat.id)


@router.put("/heats/{heat_id}/judges", response_model=List[JudgeResponse])
def set_judges(heat_id: int, payload: JudgePanelUpdate, session: Session = Depends(get_session)):
    """Replace the judge panel for a heat."""
    heat = _get_heat(session, heat_id)
    if heat.status == HEAT_DONE:
        raise HTTPException(status_code=409, detail=f"Heat {heat.heat_code} is already complete")
    assignments = [JudgeAssignment(judge_id=j.judge_name, role=j.role) for j in payload.judges]
    return replace_judges(session, heat, assignments)


@router.put("/heats/{heat_id}/scores", response_model=ScorecardResponse)
def submit_scorecard(heat_id: int, payload: ScorecardSubmit, session: Session = Depends(get_session)):
    """
    Submit (or resubmit) one judge's scorecard for one beverage.

    The judge must be on the heat's panel and may only score the beverage of
    their role.
    """
    heat = _get_heat(session, heat_id)
    if heat.status == HEAT_DONE:
        raise HTTPException(status_code=409, detail=f"Heat {heat.heat_code} is already complete")

    judge = next((j for j in get_judge_rows(session, heat.id) if j.judge_name == payload.judge_name), None)
    if judge is None:
        raise HTTPException(status_code=422, detail=f"Judge {payload.judge_name} is not assigned to this heat")
    if ROLE_BEVERAGE[judge.role] != payload.sensory_beverage:
        raise HTTPException(
            status_code=422,
            detail=f"Judge {payload.judge_name} is a {judge.role} judge and cannot score {payload.sensory_beverage}",
        )

    card = JudgeCategoryScore(
        judge_id=payload.judge_name,
        heat_id=heat.heat_code,
        beverage=payload.sensory_beverage,
        left_cup_code=payload.left_cup_code,
        right_cup_code=payload.right_cup_code,
        visual=payload.visual,
        taste=payload.taste,
        tactile=payload.tactile,
        flavour=payload.flavour,
        overall=payload.overall,
    )
    return upsert_scorecard(session, heat, card)


@router.get("/heats/{heat_id}/scores", response_model=ScoreSummaryResponse)
def get_scores(heat_id: int, session: Session = Depends(get_session)):
    """Aggregated totals per competitor plus the raw scorecards."""
    heat = _get_heat(session, heat_id)
    summary = score_summary(session, heat)
    return ScoreSummaryResponse(
        heat_id=heat.id,
        totals=summary.totals,
        per_judge=summary.per_judge,
        winner_id=summary.winner_id,
        tie=summary.tie,
        scorecards=[ScorecardResponse.model_validate(r) for r in get_score_rows(session, heat.id)],
    )


# ============================================================================
# Completion
# ============================================================================


@router.get("/heats/{heat_id}/completion", response_model=CompletionResponse)
def get_completion(heat_id: int, session: Session = Depends(get_session)):
    heat = _get_heat(session, heat_id)
    completion = completion_for(session, heat)
    return CompletionResponse(
        heat_id=heat.id,
        complete=completion.complete,
        segments_ended=completion.segments_ended,
        judges_complete=completion.judges_complete,
        judges=[
            JudgeCompletionResponse(
                judge_name=j.judge_id,
                role=j.role,
                completed=j.completed,
                categories=j.categories,
                missing_categories=j.missing_categories,
            )
            for j in completion.judges
        ],
    )


@router.post("/heats/{heat_id}/complete", response_model=CompleteHeatResponse)
def complete_heat_endpoint(
    heat_id: int,
    payload: Optional[CompleteHeatRequest] = None,
    session: Session = Depends(get_session),
):
    """
    Finish a heat and record its winner.

    BYE / NO SHOW rules decide first. Otherwise an explicit winner_id is used
    as an admin decision, else segments and judges must be complete and the
    scores must have a single leader (409 on a tie).
    """
    heat = _get_heat(session, heat_id)
    if heat.status == HEAT_DONE:
        raise HTTPException(status_code=409, detail=f"Heat {heat.heat_code} is already complete")
    _ensure_round_open(session, heat)

    winner_id = payload.winner_id if payload else None
    try:
        outcome = complete_heat(session, heat, datetime.utcnow(), winner_id=winner_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (HeatNotReadyError, HeatScoreTieError) as e:
        raise HTTPException(status_code=409, detail=str(e))

    return CompleteHeatResponse(
        heat=HeatResponse.model_validate(outcome.heat),
        decided_by=outcome.decided_by,
        totals=outcome.summary.totals if outcome.summary else None,
    )
