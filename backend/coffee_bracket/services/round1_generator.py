"""
Round 1 generation.

Competitors are seeded by signup order. The bracket is padded to the next
power of two and the padding is given out as byes to the earliest signups.
"""
from dataclasses import replace
from typing import List, Sequence

from coffee_bracket.services.bracket_types import (
    STATUS_ACTIVE,
    STATUS_BYE,
    Competitor,
    Heat,
    Round,
    heat_code,
)
from coffee_bracket.utils.bracket_math import calculate_byes


def generate_round1(competitors: Sequence[Competitor]) -> Round:
    """
    Build Round 1 from competitors.

    The first `byes` competitors (by signup order) get status 'bye'; everybody
    else keeps their status or defaults to 'active'. Heats pair indices
    [0,1], [2,3], ... Input competitors are never mutated.
    """
    if not competitors:
        return Round(round_number=1, heats=[])

    ordered = sorted(competitors, key=lambda c: c.signup_order)
    calc = calculate_byes(len(ordered))

    seeded: List[Competitor] = [
        replace(c, status=STATUS_BYE if index < calc.byes else (c.status or STATUS_ACTIVE))
        for index, c in enumerate(ordered)
    ]

    heats: List[Heat] = []
    for slot in range(calc.bracket_size // 2):
        index_a = slot * 2
        index_b = slot * 2 + 1
        heats.append(
            Heat(
                id=heat_code(1, slot),
                round=1,
                slot=slot,
                competitor_a=seeded[index_a] if index_a < len(seeded) else None,
                competitor_b=seeded[index_b] if index_b < len(seeded) else None,
            )
        )

    return Round(round_number=1, heats=heats)
