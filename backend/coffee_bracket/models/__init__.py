from coffee_bracket.models.bracket_heat import BracketHeat
from coffee_bracket.models.heat_judge import HeatJudge
from coffee_bracket.models.heat_segment import HeatSegment
from coffee_bracket.models.judge_score import JudgeScore
from coffee_bracket.models.participant import Participant
from coffee_bracket.models.round_segment_time import RoundSegmentTime
from coffee_bracket.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Participant",
    "BracketHeat",
    "HeatSegment",
    "HeatJudge",
    "JudgeScore",
    "RoundSegmentTime",
]
