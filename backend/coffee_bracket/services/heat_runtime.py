"""
Live heat runtime: segment transitions, judge scorecards and heat completion.

Start/stop of segments goes through the segment state machine; finishing a
heat applies BYE / NO SHOW resolution first and only falls back to judges'
scores when neither rule decides the heat.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlmodel import Session, select

from coffee_bracket.models.bracket_heat import BracketHeat
from coffee_bracket.models.heat_judge import HeatJudge
from coffee_bracket.models.heat_segment import HeatSegment
from coffee_bracket.models.judge_score import JudgeScore
from coffee_bracket.models.participant import Participant
from coffee_bracket.models.tournament import Tournament
from coffee_bracket.services.bracket_service import (
    HEAT_DONE,
    HEAT_RUNNING,
    TOURNAMENT_COMPLETED,
    apply_heat_to_row,
    refresh_side_statuses,
)
from coffee_bracket.services.bracket_types import Heat
from coffee_bracket.services.heat_resolver import is_auto_resolved, resolve_heat
from coffee_bracket.services.heat_segments import SegmentState, end_segment, start_segment
from coffee_bracket.services.judge_completion import HeatCompletion, JudgeAssignment, heat_completion
from coffee_bracket.services.score_aggregator import HeatScoreSummary, JudgeCategoryScore, aggregate_heat_scores

logger = logging.getLogger(__name__)


class HeatNotReadyError(Exception):
    """Raised when a heat is finished before its segments and judges are complete"""

    pass


class HeatScoreTieError(Exception):
    """Raised when aggregated scores are level and no admin decision was given"""

    pass


# ============================================================================
# Segments
# ============================================================================


def get_segment_rows(session: Session, heat_id: int) -> List[HeatSegment]:
    return list(
        session.exec(select(HeatSegment).where(HeatSegment.heat_id == heat_id).order_by(HeatSegment.sequence)).all()
    )


def segment_state(row: HeatSegment) -> SegmentState:
    return SegmentState(
        code=row.segment,
        sequence=row.sequence,
        planned_minutes=row.planned_minutes,
        status=row.status,
        started_at=row.started_at,
        ended_at=row.ended_at,
    )


def _write_segments(session: Session, rows: List[HeatSegment], states: List[SegmentState]) -> None:
    by_code = {s.code: s for s in states}
    for row in rows:
        state = by_code[row.segment]
        row.status = state.status
        row.started_at = state.started_at
        row.ended_at = state.ended_at
        session.add(row)


def start_heat_segment(session: Session, heat: BracketHeat, code: str, now: datetime) -> HeatSegment:
    """
    Start a segment. Raises SegmentOrderError / SegmentStateError from the
    state machine; nothing is written in that case.
    """
    rows = get_segment_rows(session, heat.id)
    states = start_segment([segment_state(r) for r in rows], code, now)
    _write_segments(session, rows, states)

    if heat.status != HEAT_DONE and heat.status != HEAT_RUNNING:
        heat.status = HEAT_RUNNING
        heat.started_at = heat.started_at or now
        session.add(heat)
    session.commit()

    row = next(r for r in rows if r.segment == code)
    session.refresh(row)
    logger.info("segment:started heat=%s segment=%s", heat.heat_code, code)
    return row


def stop_heat_segment(session: Session, heat: BracketHeat, code: str, now: datetime) -> HeatSegment:
    rows = get_segment_rows(session, heat.id)
    states = end_segment([segment_state(r) for r in rows], code, now)
    _write_segments(session, rows, states)
    session.commit()

    row = next(r for r in rows if r.segment == code)
    session.refresh(row)
    logger.info("segment:ended heat=%s segment=%s", heat.heat_code, code)
    return row


# ============================================================================
# Judges and scorecards
# ============================================================================


def get_judge_rows(session: Session, heat_id: int) -> List[HeatJudge]:
    return list(session.exec(select(HeatJudge).where(HeatJudge.heat_id == heat_id).order_by(HeatJudge.id)).all())


def get_score_rows(session: Session, heat_id: int) -> List[JudgeScore]:
    return list(session.exec(select(JudgeScore).where(JudgeScore.heat_id == heat_id).order_by(JudgeScore.id)).all())


def scorecard(row: JudgeScore, heat_code: str) -> JudgeCategoryScore:
    return JudgeCategoryScore(
        judge_id=row.judge_name,
        heat_id=heat_code,
        beverage=row.sensory_beverage,
        left_cup_code=row.left_cup_code,
        right_cup_code=row.right_cup_code,
        visual=row.visual,
        taste=row.taste,
        tactile=row.tactile,
        flavour=row.flavour,
        overall=row.overall,
    )


def replace_judges(session: Session, heat: BracketHeat, assignments: List[JudgeAssignment]) -> List[HeatJudge]:
    """Replace the heat's judge panel. Existing scorecards are kept."""
    for row in get_judge_rows(session, heat.id):
        session.delete(row)
    session.flush()
    for assignment in assignments:
        session.add(HeatJudge(heat_id=heat.id, judge_name=assignment.judge_id, role=assignment.role))
    session.commit()
    return get_judge_rows(session, heat.id)


def upsert_scorecard(session: Session, heat: BracketHeat, card: JudgeCategoryScore) -> JudgeScore:
    """One scorecard per (heat, judge, beverage); resubmission overwrites it."""
    row = session.exec(
        select(JudgeScore).where(
            JudgeScore.heat_id == heat.id,
            JudgeScore.judge_name == card.judge_id,
            JudgeScore.sensory_beverage == card.beverage,
        )
    ).first()
    if row is None:
        row = JudgeScore(heat_id=heat.id, judge_name=card.judge_id, sensory_beverage=card.beverage)

    row.left_cup_code = card.left_cup_code
    row.right_cup_code = card.right_cup_code
    row.visual = card.visual
    row.taste = card.taste
    row.tactile = card.tactile
    row.flavour = card.flavour
    row.overall = card.overall
    row.submitted_at = datetime.utcnow()
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def cup_codes_for(session: Session, heat: BracketHeat, current: Heat) -> Dict[str, Optional[str]]:
    """Competitor id -> cup code for the competitors on this heat."""
    cup_codes: Dict[str, Optional[str]] = {}
    for competitor in (current.competitor_a, current.competitor_b):
        if competitor is None:
            continue
        cup_code = None
        if competitor.id.isdigit():
            participant = session.get(Participant, int(competitor.id))
            if participant is not None and participant.tournament_id == heat.tournament_id:
                cup_code = participant.cup_code
        cup_codes[competitor.id] = cup_code
    return cup_codes


def score_summary(session: Session, heat: BracketHeat) -> HeatScoreSummary:
    current = refresh_side_statuses(session, heat)
    cards = [scorecard(r, heat.heat_code) for r in get_score_rows(session, heat.id)]
    return aggregate_heat_scores(cards, cup_codes_for(session, heat, current))


def completion_for(session: Session, heat: BracketHeat) -> HeatCompletion:
    segments = [segment_state(r) for r in get_segment_rows(session, heat.id)]
    assignments = [JudgeAssignment(judge_id=j.judge_name, role=j.role) for j in get_judge_rows(session, heat.id)]
    cards = [scorecard(r, heat.heat_code) for r in get_score_rows(session, heat.id)]
    return heat_completion(segments, assignments, cards)


# ============================================================================
# Heat completion
# ============================================================================


@dataclass
class HeatOutcome:
    heat: BracketHeat
    decided_by: str  # "resolution" | "scores" | "admin"
    summary: Optional[HeatScoreSummary] = None


def complete_heat(
    session: Session,
    heat: BracketHeat,
    now: datetime,
    winner_id: Optional[str] = None,
) -> HeatOutcome:
    """
    Decide and store a heat's winner.

    1. BYE / NO SHOW resolution, when it applies, decides the heat and scores
       are not consulted (a double no-show finishes with no winner).
    2. Otherwise an explicit winner_id (admin decision) must name one side.
    3. Otherwise segments and judges must be complete and the aggregated
       scores must have a single leader.

    Raises:
        ValueError: winner_id names neither competitor
        HeatNotReadyError: segments or judge scorecards incomplete
        HeatScoreTieError: scores level and no winner_id given
    """
    current = refresh_side_statuses(session, heat)

    if is_auto_resolved(current):
        apply_heat_to_row(heat, resolve_heat(current))
        return _finish(session, heat, now, "resolution", None)

    summary = score_summary(session, heat)
    side_ids = [c.id for c in (current.competitor_a, current.competitor_b) if c is not None]

    if winner_id is not None:
        if winner_id not in side_ids:
            raise ValueError(f"winner_id {winner_id} is not a competitor in heat {heat.heat_code}")
        apply_heat_to_row(heat, current)
        heat.winner_id = winner_id
        _store_totals(heat, current, summary)
        return _finish(session, heat, now, "admin", summary)

    completion = completion_for(session, heat)
    if not completion.complete:
        pending = [j.judge_id for j in completion.judges if not j.completed]
        detail = []
        if not completion.segments_ended:
            detail.append("segments still open")
        if pending:
            detail.append(f"judges incomplete: {', '.join(pending)}")
        raise HeatNotReadyError(f"Heat {heat.heat_code} is not complete ({'; '.join(detail)})")

    if summary.winner_id is None:
        raise HeatScoreTieError(f"Heat {heat.heat_code} scores are tied; an admin must choose the winner")

    apply_heat_to_row(heat, current)
    heat.winner_id = summary.winner_id
    _store_totals(heat, current, summary)
    return _finish(session, heat, now, "scores", summary)


def _store_totals(heat: BracketHeat, current: Heat, summary: HeatScoreSummary) -> None:
    heat.score_a = summary.totals.get(current.competitor_a.id) if current.competitor_a else None
    heat.score_b = summary.totals.get(current.competitor_b.id) if current.competitor_b else None


def _finish(
    session: Session, heat: BracketHeat, now: datetime, decided_by: str, summary: Optional[HeatScoreSummary]
) -> HeatOutcome:
    heat.status = HEAT_DONE
    heat.completed_at = now
    session.add(heat)

    tournament = session.get(Tournament, heat.tournament_id)
    if tournament is not None and tournament.total_rounds and heat.round_number == tournament.total_rounds:
        tournament.winner_id = heat.winner_id
        tournament.status = TOURNAMENT_COMPLETED
        tournament.updated_at = now
        session.add(tournament)

    session.commit()
    session.refresh(heat)
    logger.info(
        "heat:completed heat=%s winner=%s decided_by=%s note=%s",
        heat.heat_code,
        heat.winner_id,
        decided_by,
        heat.note,
    )
    return HeatOutcome(heat=heat, decided_by=decided_by, summary=summary)
