"""
Integration tests for training programs: ownership, visibility,
assignment and status changes.
"""

PROGRAMS_URL = "/api/programs"


async def create_program(client, headers, coach, **overrides):
    payload = {"name": "Strength Block", "type": "strength", "difficulty": "intermediate", **overrides}
    response = await client.post(PROGRAMS_URL, json=payload, headers=headers(coach))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestProgramCreation:

    async def test_coach_creates_program_for_assigned_client(self, client, headers, coach, client_a):
        program = await create_program(client, headers, coach, client_id=client_a.id, duration_weeks=8)

        assert program["coach_id"] == coach.id
        assert program["client_id"] == client_a.id
        assert program["status"] == "active"
        assert program["duration_weeks"] == 8
        assert program["coach"]["name"] == "Casey Coach"
        assert program["client"]["id"] == client_a.id

    async def test_client_cannot_create_program(self, client, headers, client_a):
        response = await client.post(PROGRAMS_URL, json={"name": "Mine"}, headers=headers(client_a))

        assert response.status_code == 403
        assert response.json()["error"] == "Only coaches can create programs"

    async def test_coach_cannot_assign_unlinked_client(self, client, headers, coach, client_b):
        response = await client.post(
            PROGRAMS_URL, json={"name": "Nope", "client_id": client_b.id}, headers=headers(coach)
        )
        assert response.status_code == 403

    async def test_admin_creates_on_behalf_of_coach(self, client, headers, admin, coach, client_b):
        response = await client.post(
            PROGRAMS_URL,
            json={"name": "Admin made", "coach_id": coach.id, "client_id": client_b.id},
            headers=headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["data"]["coach_id"] == coach.id

    async def test_end_before_start_rejected(self, client, headers, coach):
        response = await client.post(
            PROGRAMS_URL,
            json={"name": "Backwards", "start_date": "2030-02-01", "end_date": "2030-01-01"},
            headers=headers(coach),
        )
        assert response.status_code == 400

    async def test_assignment_notifies_client(self, client, headers, coach, client_a):
        await create_program(client, headers, coach, client_id=client_a.id)

        response = await client.get("/api/notifications", headers=headers(client_a))

        notifications = response.json()["data"]
        assert len(notifications) == 1
        assert notifications[0]["type"] == "program"
        assert notifications[0]["reference_type"] == "program"


class TestProgramVisibility:

    async def test_assigned_client_sees_program_others_do_not(
        self, client, headers, coach, other_coach, client_a, client_b
    ):
        program = await create_program(client, headers, coach, client_id=client_a.id)

        mine = await client.get(PROGRAMS_URL, headers=headers(client_a))
        theirs = await client.get(PROGRAMS_URL, headers=headers(client_b))

        assert mine.json()["pagination"]["total"] == 1
        assert mine.json()["data"][0]["id"] == program["id"]
        assert theirs.json()["pagination"]["total"] == 0
        assert theirs.json()["data"] == []

        # Out-of-scope lookups by id look like missing rows
        assert (await client.get(f"{PROGRAMS_URL}/{program['id']}", headers=headers(client_b))).status_code == 404
        assert (await client.get(f"{PROGRAMS_URL}/{program['id']}", headers=headers(other_coach))).status_code == 404
        assert (await client.get(f"{PROGRAMS_URL}/{program['id']}", headers=headers(client_a))).status_code == 200

    async def test_pagination_envelope(self, client, headers, coach):
        for index in range(3):
            await create_program(client, headers, coach, name=f"Program {index}")

        response = await client.get(f"{PROGRAMS_URL}?page=2&limit=2", headers=headers(coach))

        body = response.json()
        assert body["success"] is True
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
        assert len(body["data"]) == 1

    async def test_status_filter(self, client, headers, coach):
        await create_program(client, headers, coach, name="Live")
        await create_program(client, headers, coach, name="Draft", status="draft")

        response = await client.get(f"{PROGRAMS_URL}?status=draft", headers=headers(coach))

        assert [p["name"] for p in response.json()["data"]] == ["Draft"]

    async def test_limit_above_maximum_rejected(self, client, headers, coach):
        response = await client.get(f"{PROGRAMS_URL}?limit=1000", headers=headers(coach))
        assert response.status_code == 400

    async def test_missing_program_is_404(self, client, headers, coach):
        response = await client.get(f"{PROGRAMS_URL}/9999", headers=headers(coach))
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Program not found"}


class TestProgramUpdates:

    async def test_status_transitions(self, client, headers, coach):
        program = await create_program(client, headers, coach)
        url = f"{PROGRAMS_URL}/{program['id']}"

        paused = await client.put(url, json={"status": "paused"}, headers=headers(coach))
        resumed = await client.put(url, json={"status": "active"}, headers=headers(coach))
        completed = await client.put(url, json={"status": "completed"}, headers=headers(coach))
        reopened = await client.put(url, json={"status": "active"}, headers=headers(coach))

        assert paused.json()["data"]["status"] == "paused"
        assert resumed.json()["data"]["status"] == "active"
        assert completed.json()["data"]["status"] == "completed"
        assert reopened.status_code == 400

    async def test_draft_cannot_jump_to_completed(self, client, headers, coach):
        program = await create_program(client, headers, coach, status="draft")

        response = await client.put(
            f"{PROGRAMS_URL}/{program['id']}", json={"status": "completed"}, headers=headers(coach)
        )
        assert response.status_code == 400

    async def test_partial_update_keeps_other_fields(self, client, headers, coach):
        program = await create_program(client, headers, coach, description="Original")

        response = await client.put(
            f"{PROGRAMS_URL}/{program['id']}", json={"name": "Renamed"}, headers=headers(coach)
        )

        data = response.json()["data"]
        assert data["name"] == "Renamed"
        assert data["description"] == "Original"
        assert data["type"] == "strength"

    async def test_required_fields_cannot_be_cleared(self, client, headers, coach):
        program = await create_program(client, headers, coach)
        url = f"{PROGRAMS_URL}/{program['id']}"

        cleared_name = await client.put(url, json={"name": None}, headers=headers(coach))
        cleared_type = await client.put(url, json={"type": None}, headers=headers(coach))
        detail = await client.get(url, headers=headers(coach))

        assert cleared_name.status_code == 400
        assert cleared_name.json()["error"] == "name cannot be null"
        assert cleared_type.status_code == 400
        assert detail.json()["data"]["name"] == "Strength Block"

    async def test_client_cannot_update(self, client, headers, coach, client_a):
        program = await create_program(client, headers, coach, client_id=client_a.id)

        response = await client.put(
            f"{PROGRAMS_URL}/{program['id']}", json={"name": "Mine now"}, headers=headers(client_a)
        )
        assert response.status_code == 403

    async def test_assign_program(self, client, headers, coach, client_a):
        program = await create_program(client, headers, coach)

        response = await client.post(
            f"{PROGRAMS_URL}/{program['id']}/assign", json={"client_id": client_a.id}, headers=headers(coach)
        )

        assert response.status_code == 200
        assert response.json()["data"]["client_id"] == client_a.id
        listed = await client.get(PROGRAMS_URL, headers=headers(client_a))
        assert listed.json()["pagination"]["total"] == 1

    async def test_assign_to_coach_account_rejected(self, client, headers, coach, other_coach):
        program = await create_program(client, headers, coach)

        response = await client.post(
            f"{PROGRAMS_URL}/{program['id']}/assign", json={"client_id": other_coach.id}, headers=headers(coach)
        )
        assert response.status_code == 400

    async def test_delete_program(self, client, headers, coach, client_a):
        program = await create_program(client, headers, coach, client_id=client_a.id)
        workout = await client.post(
            "/api/workouts",
            json={"client_id": client_a.id, "program_id": program["id"], "name": "Day 1"},
            headers=headers(coach),
        )
        assert workout.status_code == 201

        response = await client.delete(f"{PROGRAMS_URL}/{program['id']}", headers=headers(coach))

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert (await client.get(f"{PROGRAMS_URL}/{program['id']}", headers=headers(coach))).status_code == 404
        workout_id = workout.json()["data"]["id"]
        assert (await client.get(f"/api/workouts/{workout_id}", headers=headers(coach))).status_code == 404
