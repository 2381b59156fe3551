"""
Judge score aggregation.

Judges score blind: every category is a left/right pick. Each judge records
which cup code sat on which side for them (cups may be re-randomized per
judge), so a pick is credited through that judge's own mapping:

    pick "left" on judge J  ->  J.left_cup_code  ->  competitor owning that cup

Category points: visual 3, taste 1, tactile 1, flavour 1, overall 5.
Visual is only judged on beverages with a presentation round (cappuccino).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

POSITION_LEFT = "left"
POSITION_RIGHT = "right"
POSITIONS = (POSITION_LEFT, POSITION_RIGHT)

CATEGORY_VISUAL = "visual"
CATEGORY_TASTE = "taste"
CATEGORY_TACTILE = "tactile"
CATEGORY_FLAVOUR = "flavour"
CATEGORY_OVERALL = "overall"

SENSORY_CATEGORIES = (CATEGORY_TASTE, CATEGORY_TACTILE, CATEGORY_FLAVOUR, CATEGORY_OVERALL)
ALL_CATEGORIES = (CATEGORY_VISUAL,) + SENSORY_CATEGORIES

CATEGORY_POINTS: Dict[str, int] = {
    CATEGORY_VISUAL: 3,
    CATEGORY_TASTE: 1,
    CATEGORY_TACTILE: 1,
    CATEGORY_FLAVOUR: 1,
    CATEGORY_OVERALL: 5,
}

BEVERAGE_CAPPUCCINO = "Cappuccino"
BEVERAGE_ESPRESSO = "Espresso"
BEVERAGES = (BEVERAGE_CAPPUCCINO, BEVERAGE_ESPRESSO)
VISUAL_BEVERAGES = frozenset({BEVERAGE_CAPPUCCINO})


def normalize_position(value: Optional[str]) -> Optional[str]:
    """'left' / 'right' (any case, padded) or None for anything else."""
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value if value in POSITIONS else None


@dataclass
class JudgeCategoryScore:
    """One judge's scorecard for one beverage of one heat."""

    judge_id: str
    heat_id: str
    beverage: str = BEVERAGE_CAPPUCCINO
    left_cup_code: Optional[str] = None
    right_cup_code: Optional[str] = None
    visual: Optional[str] = None
    taste: Optional[str] = None
    tactile: Optional[str] = None
    flavour: Optional[str] = None
    overall: Optional[str] = None

    def pick(self, category: str) -> Optional[str]:
        return normalize_position(getattr(self, category, None))

    def cup_code_at(self, position: str) -> Optional[str]:
        if position == POSITION_LEFT:
            return self.left_cup_code or None
        if position == POSITION_RIGHT:
            return self.right_cup_code or None
        return None

    def scored_categories(self) -> List[str]:
        """Categories that count for this scorecard's beverage."""
        if self.beverage in VISUAL_BEVERAGES:
            return list(ALL_CATEGORIES)
        return list(SENSORY_CATEGORIES)


def points_for_cup(score: JudgeCategoryScore, cup_code: Optional[str]) -> int:
    """Points one scorecard awards to one cup code (0 if the cup is unknown)."""
    if not cup_code:
        return 0
    total = 0
    for category in score.scored_categories():
        position = score.pick(category)
        if position is None:
            continue
        if score.cup_code_at(position) == cup_code:
            total += CATEGORY_POINTS[category]
    return total


@dataclass
class HeatScoreSummary:
    totals: Dict[str, int]  # competitor id -> points
    per_judge: Dict[str, Dict[str, int]] = field(default_factory=dict)  # judge id -> competitor id -> points
    winner_id: Optional[str] = None
    tie: bool = False


def aggregate_heat_scores(
    scores: Iterable[JudgeCategoryScore],
    cup_codes: Mapping[str, Optional[str]],
) -> HeatScoreSummary:
    """
    Sum every scorecard into per-competitor totals and pick the winner.

    cup_codes maps competitor id -> that competitor's cup code (None when not
    assigned; such a competitor earns nothing). The winner is the single
    competitor with the strictly highest total; equal leaders give no winner
    and tie=True. No tie-break is applied here. Fewer than two competitors
    never produce a winner.
    """
    totals: Dict[str, int] = {competitor_id: 0 for competitor_id in cup_codes}
    per_judge: Dict[str, Dict[str, int]] = {}

    for score in scores:
        judge_totals = per_judge.setdefault(score.judge_id, {competitor_id: 0 for competitor_id in cup_codes})
        for competitor_id, cup_code in cup_codes.items():
            points = points_for_cup(score, cup_code)
            totals[competitor_id] += points
            judge_totals[competitor_id] += points

    winner_id: Optional[str] = None
    tie = False
    if len(totals) >= 2:
        best = max(totals.values())
        leaders = [competitor_id for competitor_id, total in totals.items() if total == best]
        if len(leaders) == 1:
            winner_id = leaders[0]
        else:
            tie = True

    return HeatScoreSummary(totals=totals, per_judge=per_judge, winner_id=winner_id, tie=tie)
