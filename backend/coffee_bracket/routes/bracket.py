"""
Bracket API: stateless bracket operations.

The client sends competitors/heats and gets the computed round or heats back;
nothing is stored. Payloads use the bracket builder's camelCase keys
(signupOrder, competitorA, winnerId, ...). Invalid payloads are rejected with
400 and a message saying which field is wrong.
"""
import logging
from typing import Any, List, Optional, Union

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from coffee_bracket.services.bracket_types import COMPETITOR_STATUSES, SIDES, Competitor, Heat, Round
from coffee_bracket.services.heat_resolver import resolve_heat
from coffee_bracket.services.manual_override import SlotRef, move_competitor
from coffee_bracket.services.next_round_builder import build_next_round
from coffee_bracket.services.round1_generator import generate_round1

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Wire Models
# ============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompetitorPayload(_CamelModel):
    id: Union[str, int]
    name: str
    signup_order: int
    status: Optional[str] = None

    @field_validator("id", "name")
    @classmethod
    def not_blank(cls, v):
        if not str(v).strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("status")
    @classmethod
    def known_status(cls, v):
        if v is not None and v not in COMPETITOR_STATUSES:
            raise ValueError(f"status must be one of {', '.join(COMPETITOR_STATUSES)}")
        return v


class HeatPayload(_CamelModel):
    id: str
    round: int
    slot: int
    competitor_a: Optional[CompetitorPayload] = None
    competitor_b: Optional[CompetitorPayload] = None
    winner_id: Optional[Union[str, int]] = None
    note: Optional[str] = None


class RoundPayload(_CamelModel):
    round_number: int
    heats: List[HeatPayload]


class SlotRefPayload(_CamelModel):
    heat_id: str
    side: str


class RoundResponse(_CamelModel):
    round: RoundPayload


class HeatsResponse(_CamelModel):
    heats: List[HeatPayload]


# ============================================================================
# Conversion
# ============================================================================


def competitor_to_domain(payload: Optional[CompetitorPayload]) -> Optional[Competitor]:
    if payload is None:
        return None
    return Competitor(id=str(payload.id), name=payload.name, signup_order=payload.signup_order, status=payload.status)


def competitor_to_payload(competitor: Optional[Competitor]) -> Optional[CompetitorPayload]:
    if competitor is None:
        return None
    return CompetitorPayload(
        id=competitor.id, name=competitor.name, signup_order=competitor.signup_order, status=competitor.status
    )


def heat_to_domain(payload: HeatPayload) -> Heat:
    return Heat(
        id=payload.id,
        round=payload.round,
        slot=payload.slot,
        competitor_a=competitor_to_domain(payload.competitor_a),
        competitor_b=competitor_to_domain(payload.competitor_b),
        winner_id=str(payload.winner_id) if payload.winner_id is not None else None,
        note=payload.note,
    )


def heat_to_payload(heat: Heat) -> HeatPayload:
    return HeatPayload(
        id=heat.id,
        round=heat.round,
        slot=heat.slot,
        competitor_a=competitor_to_payload(heat.competitor_a),
        competitor_b=competitor_to_payload(heat.competitor_b),
        winner_id=heat.winner_id,
        note=heat.note,
    )


def round_to_payload(round_: Round) -> RoundPayload:
    return RoundPayload(round_number=round_.round_number, heats=[heat_to_payload(h) for h in round_.heats])


def _parse(adapter: TypeAdapter, value: Any, message: str):
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise HTTPException(status_code=400, detail=f"{message} ({location}: {first['msg']})")


def _parse_heats(value: Any) -> List[Heat]:
    if not isinstance(value, list):
        raise HTTPException(status_code=400, detail="heats must be an array")
    payloads = _parse(TypeAdapter(List[HeatPayload]), value, "Invalid heat")
    return [heat_to_domain(p) for p in payloads]


def _parse_slot(value: Any, name: str) -> SlotRef:
    if not isinstance(value, dict):
        raise HTTPException(status_code=400, detail="from and to are required")
    if value.get("side") not in SIDES:
        raise HTTPException(status_code=400, detail=f"{name}.side must be 'A' or 'B'")
    ref = _parse(TypeAdapter(SlotRefPayload), value, f"Invalid {name}")
    return SlotRef(heat_id=ref.heat_id, side=ref.side)


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/bracket/generate", response_model=RoundResponse)
def generate(payload: Any = Body(...)) -> RoundResponse:
    """
    Generate Round 1 from competitors.

    Body: {"competitors": [...]} or a bare array. Each competitor needs id,
    name and a numeric signupOrder. Byes go to the earliest signups.
    """
    competitors = payload.get("competitors") if isinstance(payload, dict) else payload
    if not isinstance(competitors, list):
        raise HTTPException(status_code=400, detail="competitors must be an array")

    parsed = _parse(
        TypeAdapter(List[CompetitorPayload]), competitors, "Each competitor must have id, name, and signupOrder"
    )
    round1 = generate_round1([competitor_to_domain(c) for c in parsed])

    logger.info(
        "BRACKET_GENERATED round=%s heats=%s competitors=%s",
        round1.round_number,
        len(round1.heats),
        len(parsed),
    )
    return RoundResponse(round=round_to_payload(round1))


@router.post("/bracket/override", response_model=HeatsResponse)
def override(payload: Any = Body(...)) -> HeatsResponse:
    """Move a competitor between heat sides. Body: {heats, from, to}."""
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Body must be an object with heats, from and to")
    heats = _parse_heats(payload.get("heats"))
    if payload.get("from") is None or payload.get("to") is None:
        raise HTTPException(status_code=400, detail="from and to are required")
    from_ref = _parse_slot(payload.get("from"), "from")
    to_ref = _parse_slot(payload.get("to"), "to")

    updated = move_competitor(heats, from_ref, to_ref)

    logger.info(
        "MANUAL_OVERRIDE from=%s/%s to=%s/%s applied=%s",
        from_ref.heat_id,
        from_ref.side,
        to_ref.heat_id,
        to_ref.side,
        updated is not heats,
    )
    return HeatsResponse(heats=[heat_to_payload(h) for h in updated])


@router.post("/bracket/resolve", response_model=HeatsResponse)
def resolve(payload: Any = Body(...)) -> HeatsResponse:
    """Apply BYE / NO SHOW resolution to each heat. Body: {heats}."""
    heats = _parse_heats(payload.get("heats") if isinstance(payload, dict) else payload)
    return HeatsResponse(heats=[heat_to_payload(resolve_heat(h)) for h in heats])


@router.post("/bracket/next-round", response_model=RoundResponse)
def next_round(payload: Any = Body(...)) -> RoundResponse:
    """Build the next round from a completed round. Body: {round: {roundNumber, heats}}."""
    raw = payload.get("round", payload) if isinstance(payload, dict) else None
    if not isinstance(raw, dict):
        raise HTTPException(status_code=400, detail="round must be an object with roundNumber and heats")
    parsed = _parse(TypeAdapter(RoundPayload), raw, "Invalid round")
    prev_round = Round(round_number=parsed.round_number, heats=[heat_to_domain(h) for h in parsed.heats])

    built = build_next_round(prev_round)
    logger.info("heat:advanced from_round=%s heats=%s", prev_round.round_number, len(built.heats))
    return RoundResponse(round=round_to_payload(built))
