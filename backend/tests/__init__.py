# Force SQLModel table registration at test discovery time
from coffee_bracket.models.bracket_heat import BracketHeat  # noqa: F401
from coffee_bracket.models.heat_judge import HeatJudge  # noqa: F401
from coffee_bracket.models.heat_segment import HeatSegment  # noqa: F401
from coffee_bracket.models.judge_score import JudgeScore  # noqa: F401
from coffee_bracket.models.participant import Participant  # noqa: F401
from coffee_bracket.models.round_segment_time import RoundSegmentTime  # noqa: F401
from coffee_bracket.models.tournament import Tournament  # noqa: F401
