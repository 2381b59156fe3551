"""
Bracket domain types.

Head-to-head, round-based bracket. Byes exist in Round 1 only; later rounds
are built from the winners of the previous round. All bracket functions treat
these values as immutable and return new instances (dataclasses.replace).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

STATUS_ACTIVE = "active"
STATUS_NO_SHOW = "no-show"
STATUS_BYE = "bye"
COMPETITOR_STATUSES = (STATUS_ACTIVE, STATUS_NO_SHOW, STATUS_BYE)

SIDE_A = "A"
SIDE_B = "B"
SIDES = (SIDE_A, SIDE_B)

NOTE_BYE_ADVANCES = "BYE advances"
NOTE_DOUBLE_NO_SHOW = "DOUBLE NO SHOW"
NO_SHOW_NOTE_SUFFIX = "NO SHOW"

PLACEHOLDER_NO_OPPONENT = "NO OPPONENT"
PLACEHOLDER_UNKNOWN_WINNER = "UNKNOWN WINNER"


@dataclass
class Competitor:
    id: str
    name: str
    signup_order: int
    status: Optional[str] = None  # active | no-show | bye; None means not yet decided


@dataclass
class Heat:
    id: str  # "R{round}-H{slot}"
    round: int
    slot: int  # 0-based position within the round
    competitor_a: Optional[Competitor] = None
    competitor_b: Optional[Competitor] = None
    winner_id: Optional[str] = None
    note: Optional[str] = None

    def side(self, side: str) -> Optional[Competitor]:
        return self.competitor_a if side == SIDE_A else self.competitor_b


@dataclass
class Round:
    round_number: int
    heats: List[Heat] = field(default_factory=list)


def heat_code(round_number: int, slot: int) -> str:
    return f"R{round_number}-H{slot}"
