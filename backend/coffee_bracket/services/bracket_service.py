"""
Bracket persistence: runs the pure bracket functions against stored heats.

Rounds are append-only. Round N+1 is built from Round N and written as new
rows; the only edit to an existing round is a manual override, which rewrites
just the two affected heats. Heat sides are stored as snapshots so a heat
keeps the competitor status it was decided on.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from coffee_bracket.models.bracket_heat import BracketHeat
from coffee_bracket.models.heat_segment import HeatSegment
from coffee_bracket.models.participant import Participant
from coffee_bracket.models.round_segment_time import RoundSegmentTime
from coffee_bracket.models.tournament import Tournament
from coffee_bracket.services.bracket_types import STATUS_BYE, Competitor, Heat, Round
from coffee_bracket.services.heat_resolver import resolve_heat, resolve_round
from coffee_bracket.services.heat_segments import (
    SEGMENT_CAPPUCCINO,
    SEGMENT_DIAL_IN,
    SEGMENT_ESPRESSO,
    plan_segments,
)
from coffee_bracket.services.manual_override import SlotRef, move_competitor
from coffee_bracket.services.next_round_builder import build_next_round
from coffee_bracket.services.round1_generator import generate_round1
from coffee_bracket.utils.bracket_math import total_rounds

logger = logging.getLogger(__name__)

HEAT_PENDING = "PENDING"
HEAT_RUNNING = "RUNNING"
HEAT_DONE = "DONE"

TOURNAMENT_ACTIVE = "ACTIVE"
TOURNAMENT_COMPLETED = "COMPLETED"


class BracketStateError(Exception):
    """Raised when the stored bracket is not in a state that allows the operation"""

    pass


# ============================================================================
# Row <-> domain conversion
# ============================================================================


def competitor_from_participant(participant: Participant) -> Competitor:
    return Competitor(
        id=str(participant.id),
        name=participant.name,
        signup_order=participant.signup_order,
        status=participant.status,
    )


def competitor_to_json(competitor: Optional[Competitor]) -> Optional[Dict[str, Any]]:
    if competitor is None:
        return None
    return {
        "id": competitor.id,
        "name": competitor.name,
        "signup_order": competitor.signup_order,
        "status": competitor.status,
    }


def competitor_from_json(data: Optional[Dict[str, Any]]) -> Optional[Competitor]:
    if not data:
        return None
    return Competitor(
        id=str(data["id"]),
        name=data.get("name", ""),
        signup_order=int(data.get("signup_order", -1)),
        status=data.get("status"),
    )


def heat_from_row(row: BracketHeat) -> Heat:
    return Heat(
        id=row.heat_code,
        round=row.round_number,
        slot=row.slot,
        competitor_a=competitor_from_json(row.competitor_a),
        competitor_b=competitor_from_json(row.competitor_b),
        winner_id=row.winner_id,
        note=row.note,
    )


def apply_heat_to_row(row: BracketHeat, heat: Heat) -> None:
    """Copy heat sides/result onto the row (JSON columns are reassigned, never mutated)."""
    row.competitor_a = competitor_to_json(heat.competitor_a)
    row.competitor_b = competitor_to_json(heat.competitor_b)
    row.winner_id = heat.winner_id
    row.note = heat.note


def round_from_rows(round_number: int, rows: List[BracketHeat]) -> Round:
    return Round(round_number=round_number, heats=[heat_from_row(r) for r in sorted(rows, key=lambda r: r.slot)])


# ============================================================================
# Queries
# ============================================================================


def get_participants(session: Session, tournament_id: int) -> List[Participant]:
    """Participants in signup order (id breaks ties for legacy rows)."""
    participants = session.exec(select(Participant).where(Participant.tournament_id == tournament_id)).all()
    return sorted(participants, key=lambda p: (p.signup_order, p.id))


def get_round_rows(session: Session, tournament_id: int, round_number: int) -> List[BracketHeat]:
    return list(
        session.exec(
            select(BracketHeat)
            .where(BracketHeat.tournament_id == tournament_id, BracketHeat.round_number == round_number)
            .order_by(BracketHeat.slot)
        ).all()
    )


def get_all_heat_rows(session: Session, tournament_id: int) -> List[BracketHeat]:
    return list(
        session.exec(
            select(BracketHeat)
            .where(BracketHeat.tournament_id == tournament_id)
            .order_by(BracketHeat.round_number, BracketHeat.slot)
        ).all()
    )


def has_next_round(session: Session, row: BracketHeat) -> bool:
    """True once the round after this heat's round has been built; its result is then locked."""
    return bool(get_round_rows(session, row.tournament_id, row.round_number + 1))


def get_round_times(session: Session, tournament_id: int) -> List[RoundSegmentTime]:
    return list(
        session.exec(
            select(RoundSegmentTime)
            .where(RoundSegmentTime.tournament_id == tournament_id)
            .order_by(RoundSegmentTime.round_number)
        ).all()
    )


def planned_minutes_for(session: Session, tournament: Tournament, round_number: int) -> Dict[str, int]:
    """Segment minutes for a round: its own override if set, else the tournament defaults."""
    source = session.exec(
        select(RoundSegmentTime).where(
            RoundSegmentTime.tournament_id == tournament.id,
            RoundSegmentTime.round_number == round_number,
        )
    ).first()
    if source is None:
        source = tournament
    return {
        SEGMENT_DIAL_IN: source.dial_in_minutes,
        SEGMENT_CAPPUCCINO: source.cappuccino_minutes,
        SEGMENT_ESPRESSO: source.espresso_minutes,
    }


def set_round_times(
    session: Session, tournament: Tournament, round_number: int, minutes: Dict[str, int]
) -> RoundSegmentTime:
    """
    Store the segment minutes for one round.

    Segments are planned when a round is built, so a round that already has
    heats keeps the minutes it was built with.

    Raises:
        BracketStateError: the round already exists
    """
    if get_round_rows(session, tournament.id, round_number):
        raise BracketStateError(f"Round {round_number} already exists; its segments are planned")

    row = session.exec(
        select(RoundSegmentTime).where(
            RoundSegmentTime.tournament_id == tournament.id,
            RoundSegmentTime.round_number == round_number,
        )
    ).first()
    if row is None:
        row = RoundSegmentTime(tournament_id=tournament.id, round_number=round_number)
    row.dial_in_minutes = minutes[SEGMENT_DIAL_IN]
    row.cappuccino_minutes = minutes[SEGMENT_CAPPUCCINO]
    row.espresso_minutes = minutes[SEGMENT_ESPRESSO]
    session.add(row)
    session.commit()
    session.refresh(row)

    logger.info("ROUND_TIMES tournament=%s round=%s minutes=%s", tournament.id, round_number, minutes)
    return row


# ============================================================================
# Bracket operations
# ============================================================================


def _persist_round(session: Session, tournament: Tournament, round_: Round) -> List[BracketHeat]:
    """Insert heat rows for a freshly built round plus each heat's segment plan."""
    minutes = planned_minutes_for(session, tournament, round_.round_number)
    rows: List[BracketHeat] = []
    for heat in round_.heats:
        # a double no-show has a note but no winner and is still finished
        decided = bool(heat.winner_id or heat.note)
        row = BracketHeat(
            tournament_id=tournament.id,
            heat_code=heat.id,
            round_number=heat.round,
            slot=heat.slot,
            status=HEAT_DONE if decided else HEAT_PENDING,
            completed_at=datetime.utcnow() if decided else None,
        )
        apply_heat_to_row(row, heat)
        session.add(row)
        rows.append(row)
    session.flush()

    for row in rows:
        for segment in plan_segments(minutes):
            session.add(
                HeatSegment(
                    heat_id=row.id,
                    segment=segment.code,
                    sequence=segment.sequence,
                    status=segment.status,
                    planned_minutes=segment.planned_minutes,
                )
            )
    return rows


def generate_bracket(session: Session, tournament: Tournament) -> List[BracketHeat]:
    """
    Generate and store Round 1 for a tournament.

    Byes go to the earliest signups; participant rows given a bye are updated
    to status 'bye'. Heats decided by BYE / NO SHOW rules are stored as DONE.

    Raises:
        BracketStateError: the tournament already has heats, or fewer than
            two competitors are registered
    """
    if get_all_heat_rows(session, tournament.id):
        raise BracketStateError("Bracket already generated for this tournament")

    participants = get_participants(session, tournament.id)
    if len(participants) < 2:
        raise BracketStateError("A bracket needs at least 2 competitors")
    round1 = resolve_round(generate_round1([competitor_from_participant(p) for p in participants]))

    bye_ids = {
        c.id
        for h in round1.heats
        for c in (h.competitor_a, h.competitor_b)
        if c is not None and c.status == STATUS_BYE
    }
    for participant in participants:
        if str(participant.id) in bye_ids and participant.status != STATUS_BYE:
            participant.status = STATUS_BYE
            session.add(participant)

    rows = _persist_round(session, tournament, round1)

    tournament.total_rounds = total_rounds(len(participants))
    tournament.current_round = 1
    tournament.status = TOURNAMENT_ACTIVE
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    for row in rows:
        session.refresh(row)

    logger.info(
        "BRACKET_GENERATED tournament=%s heats=%s competitors=%s byes=%s",
        tournament.id,
        len(rows),
        len(participants),
        len(bye_ids),
    )
    return rows


def advance_round(session: Session, tournament: Tournament, round_number: int) -> List[BracketHeat]:
    """
    Build and store round_number + 1 from the winners of round_number.

    Every heat of round_number must be finished first. A double no-show sends
    a 'NO OPPONENT' bye placeholder forward. Losers of decided heats are
    marked eliminated in round_number.

    Raises:
        BracketStateError: round missing, already advanced, the final, or
            still has unfinished heats
    """
    rows = get_round_rows(session, tournament.id, round_number)
    if not rows:
        raise BracketStateError(f"Round {round_number} not found")
    if get_round_rows(session, tournament.id, round_number + 1):
        raise BracketStateError(f"Round {round_number + 1} already exists")
    if len(rows) < 2:
        raise BracketStateError(f"Round {round_number} is the final; nothing to advance")

    unfinished = [r.heat_code for r in rows if r.status != HEAT_DONE]
    if unfinished:
        raise BracketStateError(f"Round {round_number} has unfinished heats: {', '.join(unfinished)}")

    prev_round = round_from_rows(round_number, rows)
    placeholders = [h.id for h in prev_round.heats if not h.winner_id]

    next_round = resolve_round(build_next_round(prev_round))
    _mark_eliminated(session, tournament.id, prev_round)
    new_rows = _persist_round(session, tournament, next_round)

    tournament.current_round = next_round.round_number
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    for row in new_rows:
        session.refresh(row)

    logger.info(
        "heat:advanced tournament=%s from_round=%s heats=%s placeholders=%s",
        tournament.id,
        round_number,
        len(new_rows),
        len(placeholders),
    )
    return new_rows


def _mark_eliminated(session: Session, tournament_id: int, round_: Round) -> None:
    participants = {str(p.id): p for p in get_participants(session, tournament_id)}
    for heat in round_.heats:
        for competitor in (heat.competitor_a, heat.competitor_b):
            if competitor is None or competitor.id == heat.winner_id:
                continue
            participant = participants.get(competitor.id)
            if participant is not None and participant.eliminated_round is None:
                participant.eliminated_round = round_.round_number
                session.add(participant)


def override_heats(session: Session, tournament_id: int, from_ref: SlotRef, to_ref: SlotRef) -> List[BracketHeat]:
    """
    Manual override on stored heats. Only the rows whose heat changed are
    rewritten; a rewritten heat loses its result and goes back to PENDING.
    Stale references are a no-op.
    """
    rows = get_all_heat_rows(session, tournament_id)
    heats = [heat_from_row(r) for r in rows]
    updated = move_competitor(heats, from_ref, to_ref)
    if updated is heats:
        logger.warning(
            "MANUAL_OVERRIDE ignored tournament=%s from=%s/%s to=%s/%s",
            tournament_id,
            from_ref.heat_id,
            from_ref.side,
            to_ref.heat_id,
            to_ref.side,
        )
        return rows

    for row, before, after in zip(rows, heats, updated):
        if before is after:
            continue
        apply_heat_to_row(row, after)
        row.status = HEAT_PENDING
        row.completed_at = None
        row.score_a = None
        row.score_b = None
        session.add(row)
    session.commit()
    for row in rows:
        session.refresh(row)

    logger.info(
        "MANUAL_OVERRIDE tournament=%s from=%s/%s to=%s/%s",
        tournament_id,
        from_ref.heat_id,
        from_ref.side,
        to_ref.heat_id,
        to_ref.side,
    )
    return rows


def refresh_side_statuses(session: Session, row: BracketHeat) -> Heat:
    """
    Current heat with side statuses taken from participant rows. Decided heats
    are returned as stored, since their statuses are frozen.
    """
    heat = heat_from_row(row)
    if row.status == HEAT_DONE:
        return heat

    def _fresh(competitor: Optional[Competitor]) -> Optional[Competitor]:
        if competitor is None or not competitor.id.isdigit():
            return competitor
        participant = session.get(Participant, int(competitor.id))
        if participant is None or participant.tournament_id != row.tournament_id:
            return competitor
        return Competitor(
            id=competitor.id,
            name=participant.name,
            signup_order=competitor.signup_order,
            status=participant.status,
        )

    return Heat(
        id=heat.id,
        round=heat.round,
        slot=heat.slot,
        competitor_a=_fresh(heat.competitor_a),
        competitor_b=_fresh(heat.competitor_b),
        winner_id=heat.winner_id,
        note=heat.note,
    )


def resolve_heat_row(session: Session, row: BracketHeat) -> BracketHeat:
    """Apply BYE / NO SHOW rules to a stored heat. A decided heat becomes DONE."""
    current = refresh_side_statuses(session, row)
    resolved = resolve_heat(current)
    apply_heat_to_row(row, resolved)
    if (resolved.winner_id or resolved.note) and row.status != HEAT_DONE:
        row.status = HEAT_DONE
        row.completed_at = datetime.utcnow()
    session.add(row)
    session.commit()
    session.refresh(row)
    if resolved is not current:
        logger.info("HEAT_RESOLVED heat=%s winner=%s note=%s", row.heat_code, row.winner_id, row.note)
    return row
