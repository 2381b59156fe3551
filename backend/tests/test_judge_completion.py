from dataclasses import replace
from datetime import datetime

import pytest

from coffee_bracket.services.heat_segments import SEGMENT_ENDED, plan_segments
from coffee_bracket.services.judge_completion import (
    ROLE_CAPPUCCINO,
    ROLE_ESPRESSO,
    JudgeAssignment,
    heat_completion,
    judge_completion,
    required_categories,
)
from coffee_bracket.services.score_aggregator import BEVERAGE_CAPPUCCINO, BEVERAGE_ESPRESSO, JudgeCategoryScore


def full_card(judge: str, beverage: str, **overrides) -> JudgeCategoryScore:
    picks = dict(visual="left", taste="left", tactile="right", flavour="left", overall="right")
    picks.update(overrides)
    return JudgeCategoryScore(
        judge_id=judge, heat_id="R1-H0", beverage=beverage, left_cup_code="K7", right_cup_code="M3", **picks
    )


def ended_segments():
    return [replace(s, status=SEGMENT_ENDED, ended_at=datetime(2026, 3, 14)) for s in plan_segments()]


def test_required_categories_per_role():
    assert required_categories(ROLE_CAPPUCCINO) == ["visual", "taste", "tactile", "flavour", "overall"]
    assert required_categories(ROLE_ESPRESSO) == ["taste", "tactile", "flavour", "overall"]
    with pytest.raises(ValueError):
        required_categories("LATTE")


def test_espresso_judge_does_not_need_visual():
    card = full_card("J2", BEVERAGE_ESPRESSO, visual=None)
    result = judge_completion(JudgeAssignment("J2", ROLE_ESPRESSO), [card])
    assert result.completed
    assert result.missing_categories == []


def test_cappuccino_judge_missing_visual_is_incomplete():
    card = full_card("J1", BEVERAGE_CAPPUCCINO, visual=None)
    result = judge_completion(JudgeAssignment("J1", ROLE_CAPPUCCINO), [card])
    assert not result.completed
    assert result.missing_categories == ["visual"]


def test_scorecard_for_other_beverage_does_not_count():
    card = full_card("J1", BEVERAGE_ESPRESSO)
    result = judge_completion(JudgeAssignment("J1", ROLE_CAPPUCCINO), [card])
    assert not result.completed


def test_heat_needs_segments_and_judges():
    judges = [JudgeAssignment("J1", ROLE_CAPPUCCINO), JudgeAssignment("J2", ROLE_ESPRESSO)]
    cards = [full_card("J1", BEVERAGE_CAPPUCCINO), full_card("J2", BEVERAGE_ESPRESSO)]

    open_segments = heat_completion(plan_segments(), judges, cards)
    assert open_segments.judges_complete
    assert not open_segments.segments_ended
    assert not open_segments.complete

    done = heat_completion(ended_segments(), judges, cards)
    assert done.complete

    missing_card = heat_completion(ended_segments(), judges, cards[:1])
    assert not missing_card.complete
    assert [j.judge_id for j in missing_card.judges if not j.completed] == ["J2"]
