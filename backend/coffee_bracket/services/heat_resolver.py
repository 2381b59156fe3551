"""
Heat resolution for BYE and NO SHOW outcomes.

Only the automatic outcomes are decided here. A heat with two present
competitors is returned untouched so judges' scoring can pick the winner.
The absent competitor stays on the heat so the note and the record keep
their name.
"""
from dataclasses import replace

from coffee_bracket.services.bracket_types import (
    NO_SHOW_NOTE_SUFFIX,
    NOTE_BYE_ADVANCES,
    NOTE_DOUBLE_NO_SHOW,
    STATUS_BYE,
    STATUS_NO_SHOW,
    Heat,
    Round,
)


def resolve_heat(heat: Heat) -> Heat:
    """
    Resolve a heat by BYE / NO SHOW rules, first match wins:

    1. bye vs empty side        -> bye competitor advances ("BYE advances")
    2. A no-show, B present     -> B advances ("{A} NO SHOW")
    3. B no-show, A present     -> A advances ("{B} NO SHOW")
    4. both no-show             -> no winner ("DOUBLE NO SHOW")
    5. anything else            -> unchanged, scoring decides

    Idempotent: resolving a resolved heat gives the same heat.
    """
    a = heat.competitor_a
    b = heat.competitor_b

    if a is not None and a.status == STATUS_BYE and b is None:
        return replace(heat, winner_id=a.id, note=NOTE_BYE_ADVANCES)
    if b is not None and b.status == STATUS_BYE and a is None:
        return replace(heat, winner_id=b.id, note=NOTE_BYE_ADVANCES)

    if a is not None and a.status == STATUS_NO_SHOW and b is not None and b.status != STATUS_NO_SHOW:
        return replace(heat, winner_id=b.id, note=f"{a.name} {NO_SHOW_NOTE_SUFFIX}")
    if b is not None and b.status == STATUS_NO_SHOW and a is not None and a.status != STATUS_NO_SHOW:
        return replace(heat, winner_id=a.id, note=f"{b.name} {NO_SHOW_NOTE_SUFFIX}")

    if a is not None and b is not None and a.status == STATUS_NO_SHOW and b.status == STATUS_NO_SHOW:
        return replace(heat, winner_id=None, note=NOTE_DOUBLE_NO_SHOW)

    return heat


def is_auto_resolved(heat: Heat) -> bool:
    """True when BYE / NO SHOW rules decide this heat (scoring must not)."""
    return resolve_heat(heat) is not heat


def resolve_round(round_: Round) -> Round:
    return replace(round_, heats=[resolve_heat(h) for h in round_.heats])
