"""
Judge completion gate.

A heat's scoring is complete only when every assigned judge has filled every
category their role requires:

  CAPPUCCINO judge -> Cappuccino scorecard: visual + taste/tactile/flavour/overall
  ESPRESSO judge   -> Espresso scorecard:   taste/tactile/flavour/overall (no visual)

A heat is complete when that gate is clear AND every segment has ended.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from coffee_bracket.services.heat_segments import SegmentState, all_segments_ended
from coffee_bracket.services.score_aggregator import (
    ALL_CATEGORIES,
    BEVERAGE_CAPPUCCINO,
    BEVERAGE_ESPRESSO,
    SENSORY_CATEGORIES,
    JudgeCategoryScore,
)

ROLE_CAPPUCCINO = "CAPPUCCINO"
ROLE_ESPRESSO = "ESPRESSO"
JUDGE_ROLES = (ROLE_CAPPUCCINO, ROLE_ESPRESSO)

ROLE_BEVERAGE: Dict[str, str] = {
    ROLE_CAPPUCCINO: BEVERAGE_CAPPUCCINO,
    ROLE_ESPRESSO: BEVERAGE_ESPRESSO,
}

ROLE_REQUIRED_CATEGORIES: Dict[str, Sequence[str]] = {
    ROLE_CAPPUCCINO: ALL_CATEGORIES,
    ROLE_ESPRESSO: SENSORY_CATEGORIES,
}


@dataclass
class JudgeAssignment:
    judge_id: str
    role: str


@dataclass
class JudgeCompletion:
    judge_id: str
    role: str
    completed: bool
    categories: Dict[str, bool] = field(default_factory=dict)

    @property
    def missing_categories(self) -> List[str]:
        return [category for category, done in self.categories.items() if not done]


@dataclass
class HeatCompletion:
    segments_ended: bool
    judges_complete: bool
    judges: List[JudgeCompletion] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.segments_ended and self.judges_complete


def required_categories(role: str) -> List[str]:
    if role not in ROLE_REQUIRED_CATEGORIES:
        raise ValueError(f"Unknown judge role: {role}")
    return list(ROLE_REQUIRED_CATEGORIES[role])


def _scorecard_for(
    assignment: JudgeAssignment, scores: Iterable[JudgeCategoryScore]
) -> Optional[JudgeCategoryScore]:
    beverage = ROLE_BEVERAGE[assignment.role]
    for score in scores:
        if score.judge_id == assignment.judge_id and score.beverage == beverage:
            return score
    return None


def judge_completion(assignment: JudgeAssignment, scores: Iterable[JudgeCategoryScore]) -> JudgeCompletion:
    scorecard = _scorecard_for(assignment, scores)
    categories = {
        category: scorecard is not None and scorecard.pick(category) is not None
        for category in required_categories(assignment.role)
    }
    return JudgeCompletion(
        judge_id=assignment.judge_id,
        role=assignment.role,
        completed=all(categories.values()),
        categories=categories,
    )


def heat_completion(
    segments: Iterable[SegmentState],
    assignments: Iterable[JudgeAssignment],
    scores: Iterable[JudgeCategoryScore],
) -> HeatCompletion:
    score_list = list(scores)
    judges = [judge_completion(a, score_list) for a in assignments]
    return HeatCompletion(
        segments_ended=all_segments_ended(segments),
        judges_complete=all(j.completed for j in judges),
        judges=judges,
    )
