"""
Manual override: move a competitor from one heat side to another.

Called from drag-and-drop in the bracket builder, so stale or invalid
references are common and are treated as a no-op rather than an error.
"""
from dataclasses import dataclass, replace
from typing import List, Optional

from coffee_bracket.services.bracket_types import SIDE_A, SIDES, Competitor, Heat


@dataclass
class SlotRef:
    heat_id: str
    side: str  # "A" | "B"


def move_competitor(heats: List[Heat], from_ref: SlotRef, to_ref: SlotRef) -> List[Heat]:
    """
    Return a new heat list with the competitor moved from from_ref to to_ref.

    The source side is emptied and the target side overwritten (the caller
    must not drop a competitor by accident). Winner and note are cleared on
    both heats. If either heat is unknown or the source side is empty, the
    original list comes back untouched. Inputs are never mutated.
    """
    for ref in (from_ref, to_ref):
        if ref.side not in SIDES:
            raise ValueError(f"side must be 'A' or 'B', got {ref.side!r}")

    index_by_id = {h.id: i for i, h in enumerate(heats)}
    source_index = index_by_id.get(from_ref.heat_id)
    target_index = index_by_id.get(to_ref.heat_id)
    if source_index is None or target_index is None:
        return heats

    competitor = heats[source_index].side(from_ref.side)
    if competitor is None:
        return heats

    updated = list(heats)
    updated[source_index] = _clear_result(_set_side(updated[source_index], from_ref.side, None))
    # Same-heat moves must see the emptied source side.
    updated[target_index] = _clear_result(_set_side(updated[target_index], to_ref.side, competitor))
    return updated


def _set_side(heat: Heat, side: str, competitor: Optional[Competitor]) -> Heat:
    if side == SIDE_A:
        return replace(heat, competitor_a=competitor)
    return replace(heat, competitor_b=competitor)


def _clear_result(heat: Heat) -> Heat:
    return replace(heat, winner_id=None, note=None)
