"""
Integration tests for meals, nutrition goals and the daily summary.
"""

from datetime import date, timedelta

from sqlalchemy import select

from app.models.nutrition import NutritionGoal

MEALS_URL = "/api/nutrition/meals"
GOALS_URL = "/api/nutrition/goals"


async def log_meal(client, headers, actor, **overrides):
    payload = {"meal_type": "lunch", "name": "Chicken bowl", "calories": 400, "proteins": 35, **overrides}
    response = await client.post(MEALS_URL, json=payload, headers=headers(actor))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestMeals:

    async def test_meal_defaults_to_today(self, client, headers, client_a):
        meal = await log_meal(client, headers, client_a)

        assert meal["date"] == date.today().isoformat()
        assert meal["client_id"] == client_a.id

    async def test_negative_calories_rejected(self, client, headers, client_a):
        response = await client.post(
            MEALS_URL, json={"meal_type": "lunch", "name": "Odd", "calories": -5}, headers=headers(client_a)
        )
        assert response.status_code == 400

    async def test_client_cannot_log_for_someone_else(self, client, headers, client_a, client_b):
        response = await client.post(
            MEALS_URL,
            json={"meal_type": "lunch", "name": "Sneaky", "client_id": client_b.id},
            headers=headers(client_a),
        )
        assert response.status_code == 404

    async def test_coach_logs_for_linked_client(self, client, headers, coach, client_a, client_b):
        ok = await client.post(
            MEALS_URL,
            json={"meal_type": "dinner", "name": "Salmon", "client_id": client_a.id},
            headers=headers(coach),
        )
        missing_client = await client.post(MEALS_URL, json={"meal_type": "dinner", "name": "Salmon"}, headers=headers(coach))
        unlinked = await client.post(
            MEALS_URL,
            json={"meal_type": "dinner", "name": "Salmon", "client_id": client_b.id},
            headers=headers(coach),
        )

        assert ok.status_code == 201
        assert missing_client.status_code == 400
        assert unlinked.status_code == 403

    async def test_list_update_delete(self, client, headers, client_a, client_b):
        meal = await log_meal(client, headers, client_a)
        url = f"{MEALS_URL}/{meal['id']}"

        listed = await client.get(MEALS_URL, headers=headers(client_a))
        assert listed.json()["pagination"]["total"] == 1

        updated = await client.put(url, json={"calories": 550}, headers=headers(client_a))
        assert updated.json()["data"]["calories"] == 550
        assert updated.json()["data"]["name"] == "Chicken bowl"

        assert (await client.get(url, headers=headers(client_b))).status_code == 404

        deleted = await client.delete(url, headers=headers(client_a))
        assert deleted.status_code == 200
        assert (await client.get(url, headers=headers(client_a))).status_code == 404

    async def test_required_fields_cannot_be_cleared(self, client, headers, client_a):
        meal = await log_meal(client, headers, client_a)
        url = f"{MEALS_URL}/{meal['id']}"

        for field in ("name", "meal_type", "calories"):
            response = await client.put(url, json={field: None}, headers=headers(client_a))
            assert response.status_code == 400, field

        detail = await client.get(url, headers=headers(client_a))
        assert detail.json()["data"]["calories"] == 400

    async def test_list_by_date(self, client, headers, client_a):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        await log_meal(client, headers, client_a, date=yesterday)
        await log_meal(client, headers, client_a)

        response = await client.get(f"{MEALS_URL}?date={yesterday}", headers=headers(client_a))

        assert response.json()["pagination"]["total"] == 1
        assert response.json()["data"][0]["date"] == yesterday


class TestSummary:

    async def test_daily_totals(self, client, headers, client_a):
        # Arrange: three meals adding up to 1200 kcal
        await log_meal(client, headers, client_a, meal_type="breakfast", calories=300, proteins=20)
        await log_meal(client, headers, client_a, meal_type="lunch", calories=500, proteins=40)
        await log_meal(client, headers, client_a, meal_type="dinner", calories=400, proteins=30)

        # Act
        response = await client.get(f"/api/nutrition/summary/{client_a.id}", headers=headers(client_a))

        # Assert
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["summary"]["total_calories"] == 1200
        assert data["summary"]["total_proteins"] == 90
        assert data["summary"]["total_meals"] == 3
        assert data["meal_breakdown"]["lunch"] == {"count": 1, "calories": 500}
        assert data["meal_breakdown"]["snack"] == {"count": 0, "calories": 0}
        assert data["goals"] is None
        assert data["remaining"] is None

    async def test_remaining_against_goal(self, client, headers, coach, client_a):
        await log_meal(client, headers, client_a, calories=1200)
        await client.post(GOALS_URL, json={"client_id": client_a.id, "daily_calories": 2000}, headers=headers(coach))

        response = await client.get(f"/api/nutrition/summary/{client_a.id}", headers=headers(coach))

        data = response.json()["data"]
        assert data["goals"]["daily_calories"] == 2000
        assert data["remaining"] == {"daily_calories": 800}

    async def test_summary_of_unrelated_client_forbidden(self, client, headers, other_coach, client_a, client_b):
        await log_meal(client, headers, client_a)

        by_client = await client.get(f"/api/nutrition/summary/{client_a.id}", headers=headers(client_b))
        by_coach = await client.get(f"/api/nutrition/summary/{client_a.id}", headers=headers(other_coach))

        assert by_client.status_code == 403
        assert by_coach.status_code == 403

    async def test_progress(self, client, headers, client_a):
        await log_meal(client, headers, client_a, calories=700)
        await log_meal(client, headers, client_a, calories=500, date=(date.today() - timedelta(days=2)).isoformat())

        response = await client.get(f"/api/nutrition/progress/{client_a.id}?days=7", headers=headers(client_a))

        data = response.json()["data"]
        assert data["days"] == 7
        assert len(data["daily"]) == 7
        assert data["daily"][-1]["date"] == date.today().isoformat()
        assert data["daily"][-1]["total_calories"] == 700
        assert data["daily"][-3]["total_calories"] == 500
        assert data["daily"][0]["meal_count"] == 0


class TestGoals:

    async def test_client_cannot_set_goal(self, client, headers, client_a):
        response = await client.post(GOALS_URL, json={"client_id": client_a.id, "daily_calories": 1800},
                                     headers=headers(client_a))
        assert response.status_code == 403

    async def test_new_goal_replaces_active_goal(self, client, headers, coach, client_a, session_factory):
        first = await client.post(GOALS_URL, json={"client_id": client_a.id, "daily_calories": 2000},
                                  headers=headers(coach))
        second = await client.post(GOALS_URL, json={"client_id": client_a.id, "daily_calories": 1800},
                                   headers=headers(coach))
        assert first.status_code == 201
        assert second.status_code == 201

        current = await client.get(GOALS_URL, headers=headers(client_a))
        assert current.json()["data"]["id"] == second.json()["data"]["id"]
        assert current.json()["data"]["daily_calories"] == 1800

        async with session_factory() as session:
            goals = (await session.execute(
                select(NutritionGoal).where(NutritionGoal.client_id == client_a.id).order_by(NutritionGoal.id)
            )).scalars().all()
        assert [g.is_active for g in goals] == [False, True]

    async def test_no_goal_yet(self, client, headers, client_a):
        response = await client.get(GOALS_URL, headers=headers(client_a))
        assert response.status_code == 200
        assert response.json()["data"] is None

    async def test_update_and_deactivate_goal(self, client, headers, coach, client_a):
        created = await client.post(GOALS_URL, json={"client_id": client_a.id, "daily_calories": 2000},
                                    headers=headers(coach))
        url = f"{GOALS_URL}/{created.json()['data']['id']}"

        updated = await client.put(url, json={"daily_proteins": 150}, headers=headers(coach))
        assert updated.json()["data"]["daily_proteins"] == 150
        assert updated.json()["data"]["daily_calories"] == 2000

        deactivated = await client.delete(url, headers=headers(coach))
        assert deactivated.json()["data"]["is_active"] is False

        again = await client.put(url, json={"daily_proteins": 160}, headers=headers(coach))
        assert again.status_code == 400

    async def test_coach_reads_goal_of_linked_client_only(self, client, headers, coach, other_coach, client_a):
        await client.post(GOALS_URL, json={"client_id": client_a.id, "daily_calories": 2000}, headers=headers(coach))

        linked = await client.get(f"{GOALS_URL}?client_id={client_a.id}", headers=headers(coach))
        unlinked = await client.get(f"{GOALS_URL}?client_id={client_a.id}", headers=headers(other_coach))

        assert linked.json()["data"]["daily_calories"] == 2000
        assert unlinked.status_code == 403
