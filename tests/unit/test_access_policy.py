"""
Unit tests for AccessPolicy: coaching links, messaging rules and row scoping.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.models.appointment import Appointment
from app.models.nutrition import Meal
from app.models.program import Program
from app.models.user import User
from app.services.access_policy import AccessPolicy


async def add_appointment(db, coach_id, client_id, status="scheduled"):
    start = datetime(2030, 1, 7, 10, tzinfo=timezone.utc)
    db.add(Appointment(
        coach_id=coach_id,
        client_id=client_id,
        scheduled_at=start,
        ends_at=start + timedelta(hours=1),
        duration_minutes=60,
        status=status,
    ))
    await db.commit()


class TestCoachingLinks:

    async def test_assigned_client_is_linked(self, db_session, coach, client_a):
        assert await AccessPolicy.is_linked(db_session, coach.id, client_a.id) is True

    async def test_unrelated_client_is_not_linked(self, db_session, coach, client_b):
        assert await AccessPolicy.is_linked(db_session, coach.id, client_b.id) is False

    async def test_program_creates_a_link(self, db_session, coach, client_b):
        db_session.add(Program(coach_id=coach.id, client_id=client_b.id, name="Base building"))
        await db_session.commit()

        assert await AccessPolicy.is_linked(db_session, coach.id, client_b.id) is True

    async def test_open_appointment_creates_a_link(self, db_session, coach, client_b):
        await add_appointment(db_session, coach.id, client_b.id)
        assert await AccessPolicy.is_linked(db_session, coach.id, client_b.id) is True

    async def test_cancelled_appointment_does_not_link(self, db_session, coach, client_b):
        await add_appointment(db_session, coach.id, client_b.id, status="cancelled")
        assert await AccessPolicy.is_linked(db_session, coach.id, client_b.id) is False

    async def test_link_is_per_coach(self, db_session, other_coach, client_a):
        assert await AccessPolicy.is_linked(db_session, other_coach.id, client_a.id) is False

    async def test_client_access(self, db_session, coach, other_coach, admin, client_a, client_b):
        assert await AccessPolicy.can_access_client(db_session, client_a, client_a.id) is True
        assert await AccessPolicy.can_access_client(db_session, client_b, client_a.id) is False
        assert await AccessPolicy.can_access_client(db_session, coach, client_a.id) is True
        assert await AccessPolicy.can_access_client(db_session, other_coach, client_a.id) is False
        assert await AccessPolicy.can_access_client(db_session, admin, client_b.id) is True

    async def test_ensure_client_access_raises_forbidden(self, db_session, other_coach, client_a):
        with pytest.raises(PermissionDeniedError):
            await AccessPolicy.ensure_client_access(db_session, other_coach, client_a.id)


class TestMessagingRules:

    async def test_linked_coach_and_client(self, db_session, coach, client_a):
        assert await AccessPolicy.can_message(db_session, client_a, coach) is True
        assert await AccessPolicy.can_message(db_session, coach, client_a) is True

    async def test_unlinked_coach_and_client(self, db_session, coach, client_b):
        assert await AccessPolicy.can_message(db_session, client_b, coach) is False

    async def test_two_clients(self, db_session, client_a, client_b):
        assert await AccessPolicy.can_message(db_session, client_a, client_b) is False

    async def test_two_coaches(self, db_session, coach, other_coach):
        assert await AccessPolicy.can_message(db_session, coach, other_coach) is False

    async def test_admin_reaches_everyone(self, db_session, admin, client_b, other_coach):
        assert await AccessPolicy.can_message(db_session, admin, client_b) is True
        assert await AccessPolicy.can_message(db_session, other_coach, admin) is True


class TestScoping:

    async def test_get_visible_hides_foreign_rows(self, db_session, coach, client_a, client_b):
        meal = Meal(client_id=client_a.id, date=datetime(2030, 1, 7).date(), meal_type="lunch", name="Salad")
        db_session.add(meal)
        await db_session.commit()

        assert (await AccessPolicy.get_visible(db_session, client_a, Meal, meal.id)).id == meal.id
        assert (await AccessPolicy.get_visible(db_session, coach, Meal, meal.id)).id == meal.id
        with pytest.raises(NotFoundError):
            await AccessPolicy.get_visible(db_session, client_b, Meal, meal.id)

    async def test_admin_is_unscoped(self, admin):
        assert AccessPolicy.scope_clause(admin, Program) is None

    def test_require_role(self):
        AccessPolicy.require_role(User(role="coach"), "coach", "admin")
        with pytest.raises(PermissionDeniedError):
            AccessPolicy.require_role(User(role="client"), "coach", "admin")
