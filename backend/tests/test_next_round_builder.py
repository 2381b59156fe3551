import logging

from coffee_bracket.services.bracket_types import STATUS_ACTIVE, STATUS_BYE, Competitor, Heat, Round
from coffee_bracket.services.heat_resolver import resolve_heat
from coffee_bracket.services.next_round_builder import advancing_competitor, build_next_round


def decided_round(heat_count: int, round_number: int = 1) -> Round:
    heats = []
    for slot in range(heat_count):
        a = Competitor(id=f"c{slot * 2 + 1}", name=f"A{slot}", signup_order=slot * 2 + 1, status=STATUS_ACTIVE)
        b = Competitor(id=f"c{slot * 2 + 2}", name=f"B{slot}", signup_order=slot * 2 + 2, status=STATUS_ACTIVE)
        heats.append(
            Heat(id=f"R{round_number}-H{slot}", round=round_number, slot=slot, competitor_a=a, competitor_b=b, winner_id=a.id)
        )
    return Round(round_number=round_number, heats=heats)


def test_eight_decided_heats_build_four_heat_round_two():
    round2 = build_next_round(decided_round(8))

    assert round2.round_number == 2
    assert [h.id for h in round2.heats] == ["R2-H0", "R2-H1", "R2-H2", "R2-H3"]
    assert (round2.heats[0].competitor_a.id, round2.heats[0].competitor_b.id) == ("c1", "c3")
    assert (round2.heats[3].competitor_a.id, round2.heats[3].competitor_b.id) == ("c13", "c15")
    assert all(h.winner_id is None and h.note is None for h in round2.heats)


def test_winners_are_paired_by_slot_not_list_order():
    prev = decided_round(4)
    prev.heats.reverse()

    round2 = build_next_round(prev)

    assert [(h.competitor_a.id, h.competitor_b.id) for h in round2.heats] == [("c1", "c3"), ("c5", "c7")]


def test_undecided_heat_sends_no_opponent_placeholder():
    prev = decided_round(2)
    prev.heats[1].winner_id = None

    round2 = build_next_round(prev)
    placeholder = round2.heats[0].competitor_b

    assert placeholder.id == "BYE-R1-H1"
    assert placeholder.name == "NO OPPONENT"
    assert placeholder.status == STATUS_BYE


def test_unknown_winner_id_becomes_placeholder(caplog):
    heat = decided_round(1).heats[0]
    heat.winner_id = "ghost"

    with caplog.at_level(logging.WARNING):
        competitor = advancing_competitor(heat)

    assert competitor.id == "ghost"
    assert competitor.name == "UNKNOWN WINNER"
    assert competitor.status == STATUS_BYE
    assert "matches neither side" in caplog.text


def test_final_round_produces_no_heats():
    assert build_next_round(decided_round(1)).heats == []


def test_advanced_bye_competitor_keeps_bye_status_into_next_round():
    bye = Competitor(id="c1", name="Ana", signup_order=1, status=STATUS_BYE)
    r1h0 = resolve_heat(Heat(id="R1-H0", round=1, slot=0, competitor_a=bye))
    r1h1 = decided_round(2).heats[1]

    round2 = build_next_round(Round(round_number=1, heats=[r1h0, r1h1]))

    assert round2.heats[0].competitor_a.id == "c1"
    assert round2.heats[0].competitor_b.id == "c3"
