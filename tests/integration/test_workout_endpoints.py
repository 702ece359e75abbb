"""
Integration tests for workouts, their ordered exercise entries and the
exercise catalog.
"""

WORKOUTS_URL = "/api/workouts"


async def create_workout(client, headers, coach, client_id, **overrides):
    payload = {
        "client_id": client_id,
        "name": "Lower body",
        "scheduled_date": "2030-01-07",
        "exercises": [
            {"name": "Back squat", "sets": 5, "reps": 5, "weight_kg": 100},
            {"name": "Romanian deadlift", "sets": 3, "reps": 8},
            {"name": "Walking lunge", "sets": 3, "reps": 12},
        ],
        **overrides,
    }
    response = await client.post(WORKOUTS_URL, json=payload, headers=headers(coach))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestWorkoutCreation:

    async def test_exercises_keep_their_order(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)

        assert workout["status"] == "scheduled"
        assert [e["name"] for e in workout["exercises"]] == ["Back squat", "Romanian deadlift", "Walking lunge"]
        assert [e["order_index"] for e in workout["exercises"]] == [1, 2, 3]
        assert workout["exercises"][0]["weight_kg"] == 100
        assert workout["exercises"][0]["completed"] is False

    async def test_catalog_exercise_supplies_the_name(self, client, headers, coach, client_a):
        catalog = await client.post(
            "/api/exercises", json={"name": "Kettlebell swing", "category": "strength"}, headers=headers(coach)
        )
        assert catalog.status_code == 201

        workout = await create_workout(
            client, headers, coach, client_a.id,
            exercises=[{"exercise_id": catalog.json()["data"]["id"], "sets": 4, "reps": 15}],
        )

        assert workout["exercises"][0]["name"] == "Kettlebell swing"
        assert workout["exercises"][0]["exercise_id"] == catalog.json()["data"]["id"]

    async def test_entry_needs_name_or_catalog_id(self, client, headers, coach, client_a):
        response = await client.post(
            WORKOUTS_URL,
            json={"client_id": client_a.id, "name": "Bad", "exercises": [{"sets": 3}]},
            headers=headers(coach),
        )
        assert response.status_code == 400

    async def test_client_cannot_create(self, client, headers, client_a):
        response = await client.post(
            WORKOUTS_URL, json={"client_id": client_a.id, "name": "Self made"}, headers=headers(client_a)
        )
        assert response.status_code == 403

    async def test_coach_needs_a_link_to_the_client(self, client, headers, coach, client_b):
        response = await client.post(
            WORKOUTS_URL, json={"client_id": client_b.id, "name": "Stranger"}, headers=headers(coach)
        )
        assert response.status_code == 403

    async def test_program_must_belong_to_client(self, client, headers, coach, client_a):
        program = await client.post("/api/programs", json={"name": "Unassigned"}, headers=headers(coach))

        response = await client.post(
            WORKOUTS_URL,
            json={"client_id": client_a.id, "program_id": program.json()["data"]["id"], "name": "Mismatch"},
            headers=headers(coach),
        )
        assert response.status_code == 400

    async def test_client_is_notified(self, client, headers, coach, client_a):
        await create_workout(client, headers, coach, client_a.id)

        response = await client.get("/api/notifications", headers=headers(client_a))

        assert response.json()["data"][0]["type"] == "workout"


class TestWorkoutProgress:

    async def test_client_completes_workout(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)
        url = f"{WORKOUTS_URL}/{workout['id']}"

        response = await client.put(
            url, json={"status": "completed", "completion_rating": 4, "calories_burned": 350},
            headers=headers(client_a),
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["status"] == "completed"
        assert data["completion_rating"] == 4
        assert data["completed_at"] is not None

        reopened = await client.put(url, json={"status": "in_progress"}, headers=headers(coach))
        assert reopened.status_code == 400

    async def test_client_cannot_rename(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)

        response = await client.put(
            f"{WORKOUTS_URL}/{workout['id']}", json={"name": "Easy day"}, headers=headers(client_a)
        )

        assert response.status_code == 403

    async def test_required_fields_cannot_be_cleared(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)
        url = f"{WORKOUTS_URL}/{workout['id']}"

        by_client = await client.put(url, json={"status": None}, headers=headers(client_a))
        by_coach = await client.put(url, json={"name": None}, headers=headers(coach))
        detail = await client.get(url, headers=headers(coach))

        assert by_client.status_code == 400
        assert by_client.json()["error"] == "status cannot be null"
        assert by_coach.status_code == 400
        assert detail.json()["data"]["status"] == "scheduled"
        assert detail.json()["data"]["name"] == "Lower body"

    async def test_rating_out_of_range(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)

        response = await client.put(
            f"{WORKOUTS_URL}/{workout['id']}", json={"completion_rating": 6}, headers=headers(client_a)
        )
        assert response.status_code == 400

    async def test_entries_added_at_the_end(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)

        response = await client.post(
            f"{WORKOUTS_URL}/{workout['id']}/exercises", json={"name": "Calf raise", "sets": 3},
            headers=headers(coach),
        )

        assert response.status_code == 201
        assert response.json()["data"]["order_index"] == 4

    async def test_client_ticks_off_an_entry_but_cannot_remove_it(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)
        entry_url = f"{WORKOUTS_URL}/{workout['id']}/exercises/{workout['exercises'][0]['id']}"

        ticked = await client.put(entry_url, json={"completed": True, "reps": 4}, headers=headers(client_a))
        removed_by_client = await client.delete(entry_url, headers=headers(client_a))
        removed_by_coach = await client.delete(entry_url, headers=headers(coach))
        detail = await client.get(f"{WORKOUTS_URL}/{workout['id']}", headers=headers(client_a))

        assert ticked.json()["data"]["completed"] is True
        assert ticked.json()["data"]["reps"] == 4
        assert removed_by_client.status_code == 403
        assert removed_by_coach.status_code == 200
        assert [e["name"] for e in detail.json()["data"]["exercises"]] == ["Romanian deadlift", "Walking lunge"]


class TestWorkoutQueries:

    async def test_visibility(self, client, headers, coach, other_coach, client_a, client_b):
        workout = await create_workout(client, headers, coach, client_a.id)
        url = f"{WORKOUTS_URL}/{workout['id']}"

        assert (await client.get(url, headers=headers(client_a))).status_code == 200
        assert (await client.get(url, headers=headers(client_b))).status_code == 404
        assert (await client.get(url, headers=headers(other_coach))).status_code == 404

    async def test_filters(self, client, headers, coach, client_a):
        await create_workout(client, headers, coach, client_a.id, name="Early", scheduled_date="2030-01-01")
        late = await create_workout(client, headers, coach, client_a.id, name="Late", scheduled_date="2030-03-01")
        await client.put(f"{WORKOUTS_URL}/{late['id']}", json={"status": "skipped"}, headers=headers(client_a))

        by_date = await client.get(f"{WORKOUTS_URL}?date_from=2030-02-01", headers=headers(coach))
        by_status = await client.get(f"{WORKOUTS_URL}?status=scheduled", headers=headers(coach))

        assert [w["name"] for w in by_date.json()["data"]] == ["Late"]
        assert [w["name"] for w in by_status.json()["data"]] == ["Early"]

    async def test_delete(self, client, headers, coach, client_a):
        workout = await create_workout(client, headers, coach, client_a.id)
        url = f"{WORKOUTS_URL}/{workout['id']}"

        assert (await client.delete(url, headers=headers(client_a))).status_code == 403
        assert (await client.delete(url, headers=headers(coach))).status_code == 200
        assert (await client.get(url, headers=headers(coach))).status_code == 404


class TestExerciseCatalog:

    async def test_private_exercises_stay_private(self, client, headers, coach, other_coach):
        await client.post(
            "/api/exercises", json={"name": "Secret drill", "category": "balance", "is_public": False},
            headers=headers(coach),
        )
        await client.post("/api/exercises", json={"name": "Plank", "category": "strength"}, headers=headers(coach))

        own = await client.get("/api/exercises", headers=headers(coach))
        other = await client.get("/api/exercises", headers=headers(other_coach))

        assert {e["name"] for e in own.json()["data"]} == {"Secret drill", "Plank"}
        assert [e["name"] for e in other.json()["data"]] == ["Plank"]

    async def test_client_cannot_add_to_catalog(self, client, headers, client_a):
        response = await client.post(
            "/api/exercises", json={"name": "Mine", "category": "cardio"}, headers=headers(client_a)
        )
        assert response.status_code == 403

    async def test_search_and_category(self, client, headers, coach):
        for name, category in (("Rowing", "cardio"), ("Running", "cardio"), ("Row, bent over", "strength")):
            await client.post("/api/exercises", json={"name": name, "category": category}, headers=headers(coach))

        response = await client.get("/api/exercises?search=row&category=cardio", headers=headers(coach))

        assert [e["name"] for e in response.json()["data"]] == ["Rowing"]
