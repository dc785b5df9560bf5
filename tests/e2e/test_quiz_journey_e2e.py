"""
End-to-end flow through actual HTTP requests: an admin publishes content,
a player signs up by email, plays a tier and shows up on the leaderboard.
"""

OPTIONS = ["Mercury", "Venus", "Earth", "Mars"]


class TestQuizJourneyE2E:

    async def _admin_headers(self, client) -> dict:
        admin = {"email": "ops@example.com", "username": "ops", "password": "launch-codes"}
        assert (await client.post("/admin/auth/create", json=admin)).status_code == 201
        response = await client.post(
            "/admin/auth/login", json={"email": admin["email"], "password": admin["password"]}
        )
        return {"Authorization": f"Bearer {response.json()['data']['tokens']['accessToken']}"}

    async def _player_session(self, client, email_sender, email: str) -> dict:
        assert (await client.post("/auth/signup", json={"email": email})).status_code == 200
        response = await client.post(
            "/auth/verify-otp", json={"email": email, "otp": email_sender.last_code(email)}
        )
        assert response.status_code == 200
        return response.json()["data"]

    async def test_full_quiz_journey(self, client, email_sender):
        admin = await self._admin_headers(client)

        response = await client.post(
            "/quiz/categories", headers=admin, json={"name": "Space", "orderRank": 1}
        )
        category_id = response.json()["data"]["id"]
        response = await client.post("/quiz/questions", headers=admin, json={
            "categoryOrderRank": 1,
            "tier": {"name": "Starter", "orderRank": 1},
            "questions": [{
                "questionText": "Which planet is closest to the sun?",
                "options": OPTIONS,
                "correctOptionIndex": 0,
                "translations": [{
                    "languageCode": "es",
                    "questionText": "¿Qué planeta está más cerca del sol?",
                    "options": ["Mercurio", "Venus", "Tierra", "Marte"],
                }],
            }],
        })
        tier_id = response.json()["data"]["tier"]["id"]

        session = await self._player_session(client, email_sender, "astro@example.com")
        player = {"Authorization": f"Bearer {session['accessToken']}"}
        response = await client.patch("/auth/profile", headers=player, json={"languagePreference": "es"})
        assert response.status_code == 200

        response = await client.get(
            "/quiz/question", headers=player, params={"categoryId": category_id, "tierId": tier_id}
        )
        question = response.json()["data"]
        assert question["languageCode"] == "es"
        assert question["options"][0] == "Mercurio"

        response = await client.post(
            "/quiz/submit-answer", headers=player,
            json={"questionId": question["id"], "selectedOptionIndex": 0}
        )
        assert response.json()["data"]["totalPoints"] == 10

        response = await client.post("/quiz/complete-tier", headers=player, json={
            "tierId": tier_id, "totalCorrectAnswers": 1, "totalQuestions": 1,
        })
        assert response.json()["data"]["totalPoints"] == 110

        response = await client.post(
            "/quiz/add-points", headers=player, json={"points": 15, "dailyTaskId": "daily-login"}
        )
        assert response.json()["data"]["totalPoints"] == 125

        response = await client.get("/score/leaderboard", headers=player)
        assert response.json()["data"][0]["points"] == 125

        response = await client.get("/score/history", headers=player)
        assert [item["type"] for item in response.json()["data"]["items"]] == ["daily", "quiz"]

        response = await client.get("/admin/dashboard/stats", headers=admin)
        assert response.json()["data"]["totalUsers"] == 1
        assert response.json()["data"]["activeUsers"] == 1

        response = await client.post("/auth/refresh-token", json={"refreshToken": session["refreshToken"]})
        assert response.status_code == 200
