from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from memgrid.app.main import create_app
from memgrid.app.runtime import build_runtime
from memgrid.core.config.settings import AppSettings
from memgrid.core.engine.scheduler import ManualScheduler
from memgrid.core.events.game import GameStarted
from memgrid.leaderboard.store import InMemoryLeaderboardStore


@pytest.fixture()
def api(scripted_tiles):
    sched = ManualScheduler()
    runtime = build_runtime(
        AppSettings(env="local", leaderboard_backend="memory"),
        scheduler=sched,
        store=InMemoryLeaderboardStore(),
        rng_factory=lambda: scripted_tiles([3, 1, 4, 1, 5]),
    )
    return TestClient(create_app(runtime)), sched


def _play_to_input(client: TestClient, sched: ManualScheduler, game_id: str) -> dict:
    sched.run_until_idle()
    return client.get(f"/api/games/{game_id}").json()


def test_health(api) -> None:
    client, _ = api
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "environment": "local"}


def test_game_flow_over_http(api) -> None:
    client, sched = api
    game_id = client.post("/api/games").json()["game_id"]

    started = client.post(f"/api/games/{game_id}/start")
    assert started.status_code == 200
    assert started.json()["round_state"] == "displaying"
    assert client.post(f"/api/games/{game_id}/start").status_code == 409

    # taps during playback are ignored
    res = client.post(f"/api/games/{game_id}/taps", json={"index": 3})
    assert res.json()["outcome"] == "ignored"

    # rounds: (3), (3,1), (3,1,4) -> 10 + 20 + 30
    for expected in ([3], [3, 1], [3, 1, 4]):
        assert _play_to_input(client, sched, game_id)["round_state"] == "awaiting_input"
        for i, tile in enumerate(expected):
            out = client.post(f"/api/games/{game_id}/taps", json={"index": tile}).json()["outcome"]
            assert out == ("round_complete" if i == len(expected) - 1 else "accepted")

    game = _play_to_input(client, sched, game_id)
    assert (game["level"], game["score"]) == (4, 60)

    res = client.post(f"/api/games/{game_id}/taps", json={"index": 99})
    assert res.json()["outcome"] == "ignored"

    res = client.post(f"/api/games/{game_id}/taps", json={"index": 0})
    assert res.json()["outcome"] == "mismatch"
    sched.run_until_idle()

    game = client.get(f"/api/games/{game_id}").json()
    assert game["round_state"] == "game_over"
    assert game["high_score"] == 60
    assert game["offer_save"] is True
    assert game["message"] == "Game Over! Your score: 60"

    saved = client.post(f"/api/games/{game_id}/score", json={"name": "Rin"})
    assert saved.status_code == 200
    assert saved.json()["saved"] is True
    assert saved.json()["game"]["score_saved"] is True

    # offer consumed
    assert client.post(f"/api/games/{game_id}/score", json={"name": "Rin"}).status_code == 409

    board = client.get("/api/leaderboard").json()["entries"]
    assert [(e["rank"], e["player_name"], e["score"]) for e in board] == [(1, "Rin", 60)]


def test_unknown_game_is_404(api) -> None:
    client, _ = api
    assert client.get("/api/games/nope").status_code == 404
    assert client.post("/api/games/nope/taps", json={"index": 1}).status_code == 404
    assert client.delete("/api/games/nope").status_code == 404


def test_delete_game_removes_it(api) -> None:
    client, _ = api
    game_id = client.post("/api/games").json()["game_id"]
    client.post(f"/api/games/{game_id}/start")

    assert client.delete(f"/api/games/{game_id}").status_code == 204
    assert client.get(f"/api/games/{game_id}").status_code == 404
    assert client.get("/api/games").json()["games"] == []


def test_leaderboard_endpoints(api) -> None:
    client, _ = api
    for i, score in enumerate([70, 300, 120, 55, 90, 210, 64, 180, 99, 150, 77]):
        res = client.post("/api/leaderboard/scores", json={"score": score, "name": f"p{i}"})
        assert res.json() == {"saved": True}

    entries = client.get("/api/leaderboard").json()["entries"]
    assert len(entries) == 10
    assert [e["score"] for e in entries] == sorted((e["score"] for e in entries), reverse=True)
    assert [e["rank"] for e in entries] == list(range(1, 11))

    top3 = client.get("/api/leaderboard", params={"limit": 3}).json()["entries"]
    assert [e["score"] for e in top3] == [300, 210, 180]

    assert client.get("/api/leaderboard", params={"limit": 0}).status_code == 422


def test_name_too_long_is_rejected(api) -> None:
    client, _ = api
    res = client.post("/api/leaderboard/scores", json={"score": 60, "name": "x" * 21})
    assert res.status_code == 422


def test_delete_unwires_the_board(api) -> None:
    client, _ = api
    game_id = client.post("/api/games").json()["game_id"]
    rec = client.app.state.runtime.registry.get(game_id=game_id)
    assert rec.handle.bus.subscribers_for(GameStarted.event_type) != ()

    assert client.delete(f"/api/games/{game_id}").status_code == 204
    assert rec.handle.bus.subscribers_for(GameStarted.event_type) == ()


def test_personal_best_by_client_id(api) -> None:
    client, _ = api
    assert client.get("/api/leaderboard/me", params={"client_id": "c1"}).json() == {"personal_best": None}

    for score, name in ((120, "Ivy"), (90, "Ivy again")):
        client.post("/api/leaderboard/scores", json={"score": score, "name": name, "client_id": "c1"})

    best = client.get("/api/leaderboard/me", params={"client_id": "c1"}).json()["personal_best"]
    assert (best["player_name"], best["score"]) == ("Ivy", 120)
    assert client.get("/api/leaderboard/me").status_code == 422


def test_board_leaderboard_and_personal_best(api) -> None:
    client, sched = api
    for score in (70, 300):
        client.post("/api/leaderboard/scores", json={"score": score, "name": f"p{score}"})

    game_id = client.post("/api/games").json()["game_id"]
    assert client.get(f"/api/games/{game_id}/personal-best").json() == {"personal_best": None}

    client.post(f"/api/games/{game_id}/start")
    for expected in ([3], [3, 1], [3, 1, 4]):
        sched.run_until_idle()
        for tile in expected:
            client.post(f"/api/games/{game_id}/taps", json={"index": tile})
    sched.run_until_idle()
    client.post(f"/api/games/{game_id}/taps", json={"index": 0})
    sched.run_until_idle()
    client.post(f"/api/games/{game_id}/score", json={"name": "Rin"})

    entries = client.get(f"/api/games/{game_id}/leaderboard", params={"limit": 2}).json()["entries"]
    assert [(e["rank"], e["player_name"], e["score"]) for e in entries] == [(1, "p300", 300), (2, "p70", 70)]

    best = client.get(f"/api/games/{game_id}/personal-best").json()["personal_best"]
    assert (best["player_name"], best["score"]) == ("Rin", 60)

    assert client.get("/api/games/nope/leaderboard").status_code == 404
