"""
Tests for the delay negotiation endpoints.
"""
from fastapi.testclient import TestClient


def scheduled_match(client: TestClient, league):
    return client.post(
        "/api/matches",
        json={
            "box_id": league["box"],
            "player_a_id": league["ann"],
            "player_b_id": league["ben"],
            "scheduled_at": "2024-05-10T18:00:00",
        },
    ).json()


def act(client: TestClient, match_id: str, action: str, player_id: str):
    return client.post(f"/api/matches/{match_id}/{action}-delay", json={"player_id": player_id})


def test_request_then_accept(client: TestClient, league):
    match = scheduled_match(client, league)

    response = act(client, match["id"], "request", league["ann"])
    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "pending"
    assert body["requested_by"] == league["ann"]
    assert body["allowed_actions"] == ["cancel"]

    view = client.get(f"/api/matches/{match['id']}/delay", params={"player_id": league["ben"]}).json()
    assert view["allowed_actions"] == ["accept", "reject"]

    response = act(client, match["id"], "accept", league["ben"])
    assert response.status_code == 200
    assert response.json()["state"] == "accepted"
    assert response.json()["resolved_at"] is not None


def test_reject_then_request_again(client: TestClient, league):
    match = scheduled_match(client, league)
    act(client, match["id"], "request", league["ann"])
    assert act(client, match["id"], "reject", league["ben"]).json()["state"] == "rejected"

    body = act(client, match["id"], "request", league["ben"]).json()
    assert body["state"] == "pending"
    assert body["resolved_at"] is None


def test_requester_cannot_accept(client: TestClient, league):
    match = scheduled_match(client, league)
    act(client, match["id"], "request", league["ann"])

    response = act(client, match["id"], "accept", league["ann"])
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "requester_cannot_answer"

    # Failed attempt left the request pending
    state = client.get(f"/api/matches/{match['id']}/delay").json()
    assert state["state"] == "pending"


def test_cancel_by_requester_only(client: TestClient, league):
    match = scheduled_match(client, league)
    act(client, match["id"], "request", league["ann"])

    assert act(client, match["id"], "cancel", league["ben"]).status_code == 409
    assert act(client, match["id"], "cancel", league["ann"]).json()["state"] == "cancelled"


def test_outsider_and_played_match_refused(client: TestClient, league):
    match = scheduled_match(client, league)
    assert act(client, match["id"], "request", league["cid"]).json()["detail"]["code"] == "not_a_participant"

    client.put(f"/api/matches/{match['id']}/result", json={"score_a": 3, "score_b": 2})
    response = act(client, match["id"], "request", league["ann"])
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "already_played"


def test_unknown_match(client: TestClient, league):
    assert act(client, "nope", "request", league["ann"]).status_code == 404
    assert client.get("/api/matches/nope/delay").status_code == 404
