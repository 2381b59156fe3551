"""
Next round construction.

Round N+1 is always built fresh from the winners of Round N, in slot order.
Heats without a usable winner contribute a bye placeholder so the slot can
itself resolve as a BYE in the next round.
"""
import logging
from typing import List

from coffee_bracket.services.bracket_types import (
    PLACEHOLDER_NO_OPPONENT,
    PLACEHOLDER_UNKNOWN_WINNER,
    STATUS_BYE,
    Competitor,
    Heat,
    Round,
    heat_code,
)

logger = logging.getLogger(__name__)


def advancing_competitor(heat: Heat) -> Competitor:
    """The competitor a heat sends forward, or a bye placeholder."""
    if not heat.winner_id:
        return Competitor(id=f"BYE-{heat.id}", name=PLACEHOLDER_NO_OPPONENT, signup_order=-1, status=STATUS_BYE)

    for competitor in (heat.competitor_a, heat.competitor_b):
        if competitor is not None and competitor.id == heat.winner_id:
            return competitor

    logger.warning("Heat %s winner %s matches neither side", heat.id, heat.winner_id)
    return Competitor(id=heat.winner_id, name=PLACEHOLDER_UNKNOWN_WINNER, signup_order=-1, status=STATUS_BYE)


def build_next_round(prev_round: Round) -> Round:
    """
    Pair the winners of prev_round [0,1], [2,3], ... into new heats.

    Heats come out with ids R{N+1}-H{slot} and no winner/note. Never fails;
    an odd trailing winner is dropped by integer pairing (power-of-two
    brackets never produce one).
    """
    next_number = prev_round.round_number + 1
    ordered = sorted(prev_round.heats, key=lambda h: h.slot)
    winners: List[Competitor] = [advancing_competitor(h) for h in ordered]

    heats = [
        Heat(
            id=heat_code(next_number, slot),
            round=next_number,
            slot=slot,
            competitor_a=winners[slot * 2],
            competitor_b=winners[slot * 2 + 1],
        )
        for slot in range(len(winners) // 2)
    ]
    return Round(round_number=next_number, heats=heats)
