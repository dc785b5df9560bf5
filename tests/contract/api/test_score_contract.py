"""
Contract tests for the leaderboard, rank, history and statistics endpoints.
"""

import pytest


@pytest.fixture
async def players(user_factory):
    """(user, headers) for three players: 80 points, 80 points and 20 points"""
    return [
        await user_factory("ada@example.com", points=80, username="ada"),
        await user_factory("bob@example.com", points=80, telegram_id="555"),
        await user_factory("cy@example.com", points=20),
    ]


async def test_leaderboard_contract(client, players):
    _, headers = players[0]

    response = await client.get("/score/leaderboard", headers=headers)

    assert response.status_code == 200
    entries = response.json()["data"]
    assert [e["rank"] for e in entries] == [1, 2, 3]
    assert [e["points"] for e in entries] == [80, 80, 20]
    assert entries[0]["username"] == "ada"
    assert entries[1]["username"] == "555"
    assert set(entries[0]) == {"rank", "userId", "username", "points", "tier"}


async def test_leaderboard_limit(client, players):
    _, headers = players[0]
    response = await client.get("/score/leaderboard", headers=headers, params={"limit": 1})
    assert len(response.json()["data"]) == 1


async def test_rank_shares_ties(client, players):
    for (user, headers), expected in zip(players, [1, 1, 3]):
        response = await client.get("/score/rank", headers=headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["rank"] == expected
        assert data["userId"] == str(user.id)


async def test_history_contract(client, user_factory):
    _, headers = await user_factory()
    await client.post("/quiz/add-points", headers=headers, json={"points": 5, "dailyTaskId": "checkin"})

    response = await client.get("/score/history", headers=headers)

    assert response.status_code == 200
    page = response.json()["data"]
    assert page["total"] == 1
    assert page["limit"] == 20
    assert page["offset"] == 0
    assert page["items"][0]["type"] == "daily"
    assert page["items"][0]["score"] == 5


async def test_history_limit_bounds(client, user_factory):
    _, headers = await user_factory()
    assert (await client.get("/score/history", headers=headers, params={"limit": 0})).status_code == 400
    assert (await client.get("/score/history", headers=headers, params={"limit": 101})).status_code == 400


async def test_stats_contract(client, user_factory):
    _, headers = await user_factory(points=7)

    response = await client.get("/score/stats", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"] == {
        "totalQuizzes": 0,
        "totalScore": 0,
        "averageScore": 0,
        "highestScore": 0,
        "todayActivities": 0,
        "totalPoints": 7,
    }


async def test_score_routes_require_player_token(client, admin_headers):
    assert (await client.get("/score/leaderboard")).status_code == 401
    assert (await client.get("/score/rank", headers=admin_headers)).status_code == 401
