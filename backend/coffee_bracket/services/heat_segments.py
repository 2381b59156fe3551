"""
Heat segment state machine.

A heat runs its segments strictly in order (dial-in, then one timed segment
per beverage). Each segment moves NOT_STARTED -> RUNNING -> ENDED and never
goes back. Timestamps are supplied by the caller; nothing here reads a clock.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

SEGMENT_DIAL_IN = "DIAL_IN"
SEGMENT_CAPPUCCINO = "CAPPUCCINO"
SEGMENT_ESPRESSO = "ESPRESSO"
SEGMENT_ORDER = (SEGMENT_DIAL_IN, SEGMENT_CAPPUCCINO, SEGMENT_ESPRESSO)

DEFAULT_PLANNED_MINUTES: Dict[str, int] = {
    SEGMENT_DIAL_IN: 2,
    SEGMENT_CAPPUCCINO: 2,
    SEGMENT_ESPRESSO: 1,
}

SEGMENT_NOT_STARTED = "NOT_STARTED"
SEGMENT_RUNNING = "RUNNING"
SEGMENT_ENDED = "ENDED"


class SegmentStateError(Exception):
    """Raised when a segment transition is not allowed from its current status"""

    pass


class SegmentOrderError(SegmentStateError):
    """Raised when a segment is started before the previous one has ended"""

    pass


class UnknownSegmentError(SegmentStateError):
    pass


@dataclass
class SegmentState:
    code: str
    sequence: int
    planned_minutes: int
    status: str = SEGMENT_NOT_STARTED
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


@dataclass
class SegmentValidation:
    is_valid: bool
    required: List[str]
    existing: List[str]
    missing: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)


def plan_segments(planned_minutes: Optional[Mapping[str, int]] = None) -> List[SegmentState]:
    """Fresh segment plan for one heat. planned_minutes overrides the defaults per code."""
    minutes = dict(DEFAULT_PLANNED_MINUTES)
    if planned_minutes:
        minutes.update({code: value for code, value in planned_minutes.items() if value is not None})
    return [
        SegmentState(code=code, sequence=index, planned_minutes=minutes[code])
        for index, code in enumerate(SEGMENT_ORDER)
    ]


def _ordered(segments: Iterable[SegmentState]) -> List[SegmentState]:
    return sorted(segments, key=lambda s: s.sequence)


def _index_of(segments: List[SegmentState], code: str) -> int:
    for index, segment in enumerate(segments):
        if segment.code == code:
            return index
    raise UnknownSegmentError(f"Segment {code} not found")


def start_segment(segments: Iterable[SegmentState], code: str, now: datetime) -> List[SegmentState]:
    """
    Start segment `code`. Only allowed from NOT_STARTED, and only once the
    segment before it has ENDED. Returns the updated, ordered segment list.
    """
    ordered = _ordered(segments)
    index = _index_of(ordered, code)
    segment = ordered[index]

    if index > 0 and ordered[index - 1].status != SEGMENT_ENDED:
        previous = ordered[index - 1]
        raise SegmentOrderError(
            f"Cannot start segment {code} out of order: previous segment {previous.code} is {previous.status}"
        )
    if segment.status != SEGMENT_NOT_STARTED:
        raise SegmentStateError(f"Segment {code} cannot be started. Current status: {segment.status}")

    ordered[index] = replace(segment, status=SEGMENT_RUNNING, started_at=now, ended_at=None)
    return ordered


def end_segment(segments: Iterable[SegmentState], code: str, now: datetime) -> List[SegmentState]:
    """End a RUNNING segment and stamp its end time."""
    ordered = _ordered(segments)
    index = _index_of(ordered, code)
    segment = ordered[index]

    if segment.status != SEGMENT_RUNNING:
        raise SegmentStateError(f"Segment {code} is not currently running. Current status: {segment.status}")

    ordered[index] = replace(segment, status=SEGMENT_ENDED, ended_at=now)
    return ordered


def all_segments_ended(segments: Iterable[SegmentState]) -> bool:
    ordered = _ordered(segments)
    return bool(ordered) and all(s.status == SEGMENT_ENDED for s in ordered)


def active_segment(segments: Iterable[SegmentState]) -> Optional[SegmentState]:
    """The running segment, else the next one waiting to start, else None."""
    ordered = _ordered(segments)
    for segment in ordered:
        if segment.status == SEGMENT_RUNNING:
            return segment
    for segment in ordered:
        if segment.status == SEGMENT_NOT_STARTED:
            return segment
    return None


def validate_segments(codes: Iterable[str]) -> SegmentValidation:
    existing = list(codes)
    missing = [code for code in SEGMENT_ORDER if code not in existing]
    extra = [code for code in existing if code not in SEGMENT_ORDER]
    return SegmentValidation(
        is_valid=not missing and not extra,
        required=list(SEGMENT_ORDER),
        existing=existing,
        missing=missing,
        extra=extra,
    )
