"""Heat runtime: ordered segments, judge panel, blind scorecards and completion."""
import pytest
from fastapi.testclient import TestClient

PANEL = [
    {"judge_name": "Judge Ana", "role": "CAPPUCCINO"},
    {"judge_name": "Judge Bo", "role": "CAPPUCCINO"},
    {"judge_name": "Judge Cy", "role": "espresso"},
]


@pytest.fixture
def heat(client: TestClient):
    """A contested Round 1 heat between Barista A (cup K1) and Barista B (cup M2)."""
    tournament = client.post("/api/tournaments", json={"name": "Runtime Cup"}).json()
    participants = []
    for name, cup in (("Barista A", "K1"), ("Barista B", "M2")):
        response = client.post(
            f"/api/tournaments/{tournament['id']}/participants", json={"name": name, "cup_code": cup}
        )
        participants.append(response.json())
    heats = client.post(f"/api/tournaments/{tournament['id']}/bracket").json()
    return {"tournament": tournament, "participants": participants, "heat": heats[0]}


def run_all_segments(client: TestClient, heat_id: int):
    for code in ("DIAL_IN", "CAPPUCCINO", "ESPRESSO"):
        assert client.post(f"/api/heats/{heat_id}/segments/{code}/start").status_code == 200
        assert client.post(f"/api/heats/{heat_id}/segments/{code}/stop").status_code == 200


def scorecard(judge: str, beverage: str, left: str, right: str, pick: str, visual: bool = True) -> dict:
    card = {
        "judge_name": judge,
        "sensory_beverage": beverage,
        "left_cup_code": left,
        "right_cup_code": right,
        "taste": pick,
        "tactile": pick,
        "flavour": pick,
        "overall": pick,
    }
    if visual:
        card["visual"] = pick
    return card


def test_segments_listed_in_order(client: TestClient, heat):
    heat_id = heat["heat"]["id"]
    response = client.get(f"/api/heats/{heat_id}/segments")

    assert response.status_code == 200
    body = response.json()
    assert body["active_segment"] == "DIAL_IN"
    assert [s["segment"] for s in body["segments"]] == ["DIAL_IN", "CAPPUCCINO", "ESPRESSO"]
    assert all(s["status"] == "NOT_STARTED" for s in body["segments"])

    validation = client.get(f"/api/heats/{heat_id}/segments/validate").json()
    assert validation["is_valid"] is True
    assert validation["missing"] == []


def test_segment_order_is_enforced(client: TestClient, heat):
    heat_id = heat["heat"]["id"]

    out_of_order = client.post(f"/api/heats/{heat_id}/segments/CAPPUCCINO/start")
    assert out_of_order.status_code == 422
    assert "out of order" in out_of_order.json()["detail"]

    not_running = client.post(f"/api/heats/{heat_id}/segments/DIAL_IN/stop")
    assert not_running.status_code == 422

    started = client.post(f"/api/heats/{heat_id}/segments/dial_in/start")
    assert started.status_code == 200
    assert started.json()["active_segment"] == "DIAL_IN"
    assert started.json()["segments"][0]["status"] == "RUNNING"
    assert started.json()["segments"][0]["started_at"] is not None

    assert client.post(f"/api/heats/{heat_id}/segments/DIAL_IN/start").status_code == 422
    assert client.post(f"/api/heats/{heat_id}/segments/LATTE_ART/start").status_code == 422

    rounds = client.get(f"/api/tournaments/{heat['tournament']['id']}/rounds").json()
    assert rounds[0]["heats"][0]["status"] == "RUNNING"


def test_judge_panel_roles_are_validated(client: TestClient, heat):
    heat_id = heat["heat"]["id"]

    bad_role = client.put(f"/api/heats/{heat_id}/judges", json={"judges": [{"judge_name": "X", "role": "LATTE"}]})
    assert bad_role.status_code == 422

    duplicate = client.put(
        f"/api/heats/{heat_id}/judges",
        json={"judges": [{"judge_name": "X", "role": "ESPRESSO"}, {"judge_name": "X", "role": "CAPPUCCINO"}]},
    )
    assert duplicate.status_code == 422

    response = client.put(f"/api/heats/{heat_id}/judges", json={"judges": PANEL})
    assert response.status_code == 200
    assert [(j["judge_name"], j["role"]) for j in response.json()] == [
        ("Judge Ana", "CAPPUCCINO"),
        ("Judge Bo", "CAPPUCCINO"),
        ("Judge Cy", "ESPRESSO"),
    ]

    replaced = client.put(f"/api/heats/{heat_id}/judges", json={"judges": PANEL[:1]})
    assert len(replaced.json()) == 1
    assert len(client.get(f"/api/heats/{heat_id}/judges").json()) == 1


def test_scorecard_must_come_from_panel_and_match_role(client: TestClient, heat):
    heat_id = heat["heat"]["id"]
    client.put(f"/api/heats/{heat_id}/judges", json={"judges": PANEL})

    stranger = client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Nobody", "Cappuccino", "K1", "M2", "left"))
    assert stranger.status_code == 422

    wrong_beverage = client.put(
        f"/api/heats/{heat_id}/scores", json=scorecard("Judge Cy", "Cappuccino", "K1", "M2", "left")
    )
    assert wrong_beverage.status_code == 422

    bad_pick = client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Ana", "Cappuccino", "K1", "M2", "up"))
    assert bad_pick.status_code == 422


def test_scores_are_aggregated_through_each_judges_cups(client: TestClient, heat):
    heat_id = heat["heat"]["id"]
    a_id = str(heat["participants"][0]["id"])
    b_id = str(heat["participants"][1]["id"])
    client.put(f"/api/heats/{heat_id}/judges", json={"judges": PANEL})

    # Ana sees K1 on the left and picks left everywhere: A gets 3+1+1+1+5
    client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Ana", "Cappuccino", "K1", "M2", "left"))
    # Bo sees the cups swapped and picks left everywhere: B gets 11
    client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Bo", "Cappuccino", "M2", "K1", "left"))
    # Cy judges espresso: visual is not scored, right = K1, so A gets 1+1+1+5
    client.put(
        f"/api/heats/{heat_id}/scores",
        json=scorecard("Judge Cy", "Espresso", "M2", "K1", "RIGHT", visual=False),
    )

    summary = client.get(f"/api/heats/{heat_id}/scores").json()
    assert summary["totals"] == {a_id: 19, b_id: 11}
    assert summary["winner_id"] == a_id
    assert summary["tie"] is False
    assert summary["per_judge"]["Judge Bo"] == {a_id: 0, b_id: 11}
    assert len(summary["scorecards"]) == 3

    # Resubmitting overwrites the earlier scorecard
    client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Bo", "Cappuccino", "M2", "K1", "right"))
    summary = client.get(f"/api/heats/{heat_id}/scores").json()
    assert summary["totals"] == {a_id: 30, b_id: 0}
    assert len(summary["scorecards"]) == 3


def test_completion_gate_and_scored_winner(client: TestClient, heat):
    heat_id = heat["heat"]["id"]
    a_id = str(heat["participants"][0]["id"])
    client.put(f"/api/heats/{heat_id}/judges", json={"judges": PANEL})
    client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Ana", "Cappuccino", "K1", "M2", "left"))
    client.put(
        f"/api/heats/{heat_id}/scores", json=scorecard("Judge Bo", "Cappuccino", "K1", "M2", "left", visual=False)
    )

    completion = client.get(f"/api/heats/{heat_id}/completion").json()
    assert completion["complete"] is False
    assert completion["segments_ended"] is False
    judges = {j["judge_name"]: j for j in completion["judges"]}
    assert judges["Judge Ana"]["completed"] is True
    assert judges["Judge Bo"]["missing_categories"] == ["visual"]
    assert judges["Judge Cy"]["completed"] is False

    not_ready = client.post(f"/api/heats/{heat_id}/complete")
    assert not_ready.status_code == 409

    run_all_segments(client, heat_id)
    client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Bo", "Cappuccino", "K1", "M2", "left"))
    client.put(
        f"/api/heats/{heat_id}/scores", json=scorecard("Judge Cy", "Espresso", "K1", "M2", "right", visual=False)
    )
    assert client.get(f"/api/heats/{heat_id}/completion").json()["complete"] is True

    response = client.post(f"/api/heats/{heat_id}/complete")
    assert response.status_code == 200
    body = response.json()
    assert body["decided_by"] == "scores"
    assert body["heat"]["winner_id"] == a_id
    assert body["heat"]["status"] == "DONE"
    assert body["heat"]["score_a"] == 22
    assert body["heat"]["score_b"] == 8

    # A finished heat is frozen
    assert client.post(f"/api/heats/{heat_id}/complete").status_code == 409
    assert client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Ana", "Cappuccino", "K1", "M2", "right")).status_code == 409

    # Two-competitor bracket: this heat was the final
    tournament = client.get(f"/api/tournaments/{heat['tournament']['id']}").json()
    assert tournament["status"] == "COMPLETED"
    assert tournament["winner_id"] == a_id


def test_tied_scores_need_an_admin_decision(client: TestClient, heat):
    heat_id = heat["heat"]["id"]
    b_id = str(heat["participants"][1]["id"])
    panel = [{"judge_name": "Judge Ana", "role": "CAPPUCCINO"}, {"judge_name": "Judge Bo", "role": "CAPPUCCINO"}]
    client.put(f"/api/heats/{heat_id}/judges", json={"judges": panel})
    client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Ana", "Cappuccino", "K1", "M2", "left"))
    client.put(f"/api/heats/{heat_id}/scores", json=scorecard("Judge Bo", "Cappuccino", "K1", "M2", "right"))
    run_all_segments(client, heat_id)

    tied = client.post(f"/api/heats/{heat_id}/complete")
    assert tied.status_code == 409
    assert "tied" in tied.json()["detail"]

    outsider = client.post(f"/api/heats/{heat_id}/complete", json={"winner_id": "someone-else"})
    assert outsider.status_code == 422

    decided = client.post(f"/api/heats/{heat_id}/complete", json={"winner_id": b_id})
    assert decided.status_code == 200
    assert decided.json()["decided_by"] == "admin"
    assert decided.json()["heat"]["winner_id"] == b_id
    assert decided.json()["totals"] == {str(heat["participants"][0]["id"]): 11, b_id: 11}


def test_no_show_is_decided_without_scores(client: TestClient, heat):
    heat_id = heat["heat"]["id"]
    a = heat["participants"][0]
    client.patch(f"/api/participants/{a['id']}", json={"status": "no-show"})

    response = client.post(f"/api/heats/{heat_id}/complete")

    assert response.status_code == 200
    body = response.json()
    assert body["decided_by"] == "resolution"
    assert body["heat"]["winner_id"] == str(heat["participants"][1]["id"])
    assert body["heat"]["note"] == "Barista A NO SHOW"
    assert body["totals"] is None


def test_unknown_heat_is_404(client: TestClient):
    assert client.get("/api/heats/999999/segments").status_code == 404
    assert client.post("/api/heats/999999/complete").status_code == 404
    assert client.put("/api/heats/999999/judges", json={"judges": []}).status_code == 404
