"""
Integration tests for notifications: private to their owner, marked read
one at a time or all at once.
"""

NOTIFICATIONS_URL = "/api/notifications"


async def message(client, headers, sender, recipient, content="Hi"):
    response = await client.post(
        "/api/messages", json={"recipient_id": recipient.id, "content": content}, headers=headers(sender)
    )
    assert response.status_code == 201


class TestNotifications:

    async def test_unread_count_and_mark_read(self, client, headers, coach, client_a):
        await message(client, headers, client_a, coach, "First")
        await message(client, headers, client_a, coach, "Second")

        count = await client.get(f"{NOTIFICATIONS_URL}/unread-count", headers=headers(coach))
        assert count.json()["data"]["unread_count"] == 2

        listed = await client.get(NOTIFICATIONS_URL, headers=headers(coach))
        newest = listed.json()["data"][0]
        assert newest["message"] == "Second"

        marked = await client.put(f"{NOTIFICATIONS_URL}/{newest['id']}/read", headers=headers(coach))
        assert marked.json()["data"]["is_read"] is True
        assert marked.json()["data"]["read_at"] is not None

        unread = await client.get(f"{NOTIFICATIONS_URL}?unread_only=true", headers=headers(coach))
        assert [n["message"] for n in unread.json()["data"]] == ["First"]

    async def test_mark_all_read(self, client, headers, coach, client_a):
        for text in ("a", "b", "c"):
            await message(client, headers, client_a, coach, text)

        response = await client.put(f"{NOTIFICATIONS_URL}/read-all", headers=headers(coach))
        count = await client.get(f"{NOTIFICATIONS_URL}/unread-count", headers=headers(coach))

        assert response.json()["data"]["updated"] == 3
        assert count.json()["data"]["unread_count"] == 0

    async def test_notifications_are_private(self, client, headers, coach, client_a, admin):
        await message(client, headers, client_a, coach)
        listed = await client.get(NOTIFICATIONS_URL, headers=headers(coach))
        notification_id = listed.json()["data"][0]["id"]

        by_client = await client.put(f"{NOTIFICATIONS_URL}/{notification_id}/read", headers=headers(client_a))
        by_admin = await client.put(f"{NOTIFICATIONS_URL}/{notification_id}/read", headers=headers(admin))
        admin_list = await client.get(NOTIFICATIONS_URL, headers=headers(admin))

        assert by_client.status_code == 404
        assert by_admin.status_code == 404
        assert admin_list.json()["pagination"]["total"] == 0

    async def test_since_filter(self, client, headers, coach, client_a):
        await message(client, headers, client_a, coach)

        response = await client.get(
            f"{NOTIFICATIONS_URL}?since=2100-01-01T00:00:00Z", headers=headers(coach)
        )

        assert response.json()["data"] == []
