"""
Unit tests for the scheduling helpers.

Covers half-open interval overlap, slot generation across the working
window and the appointment status rules per role.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.exceptions import PermissionDeniedError, ValidationError
from app.services.scheduling import (
    appointment_window,
    as_utc,
    generate_available_slots,
    intervals_overlap,
    overlaps_any,
    validate_status_change,
)

DAY = date(2030, 1, 7)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(DAY.year, DAY.month, DAY.day, hour, minute, tzinfo=timezone.utc)


class TestIntervalOverlap:
    """Half-open [start, end) semantics."""

    def test_partial_overlap(self):
        assert intervals_overlap(at(10), at(11), at(10, 30), at(11, 30)) is True

    def test_containment_overlaps(self):
        assert intervals_overlap(at(10), at(12), at(10, 30), at(11)) is True
        assert intervals_overlap(at(10, 30), at(11), at(10), at(12)) is True

    def test_touching_intervals_do_not_overlap(self):
        # 10:00-11:00 and 11:00-11:30 share only the boundary instant
        assert intervals_overlap(at(10), at(11), at(11), at(11, 30)) is False
        assert intervals_overlap(at(11), at(11, 30), at(10), at(11)) is False

    def test_disjoint(self):
        assert intervals_overlap(at(8), at(9), at(14), at(15)) is False

    def test_overlaps_any(self):
        busy = [(at(9), at(10)), (at(13), at(14))]
        assert overlaps_any((at(9, 30), at(10, 30)), busy) is True
        assert overlaps_any((at(10), at(13)), busy) is False


class TestAppointmentWindow:

    def test_window_end_is_start_plus_duration(self):
        start, end = appointment_window(at(10), 45)
        assert start == at(10)
        assert end == at(10, 45)

    def test_naive_start_is_treated_as_utc(self):
        start, end = appointment_window(datetime(2030, 1, 7, 10, 0), 30)
        assert start.tzinfo is not None
        assert start == at(10)
        assert end == at(10, 30)

    def test_offset_start_is_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        start, _ = appointment_window(datetime(2030, 1, 7, 12, 0, tzinfo=plus_two), 30)
        assert start == at(10)

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValidationError):
            appointment_window(at(10), 0)

    def test_as_utc_keeps_utc_values(self):
        assert as_utc(at(9)) == at(9)


class TestAvailableSlots:

    def test_empty_calendar_fills_the_working_window(self):
        slots = generate_available_slots(DAY, 60, [])

        assert len(slots) == 10
        assert slots[0] == at(8)
        assert slots[-1] == at(17)

    def test_busy_interval_removes_the_overlapping_slot(self):
        slots = generate_available_slots(DAY, 60, [(at(10), at(11))])

        assert at(10) not in slots
        assert at(9) in slots
        assert at(11) in slots
        assert len(slots) == 9

    def test_partial_busy_interval_blocks_whole_slot(self):
        slots = generate_available_slots(DAY, 60, [(at(10, 30), at(10, 45))])
        assert at(10) not in slots
        assert at(11) in slots

    def test_slots_must_end_inside_the_window(self):
        slots = generate_available_slots(DAY, 90, [])

        # 08:00, 09:30, 11:00, 12:30, 14:00, 15:30; 17:00 would end at 18:30
        assert slots == [at(8), at(9, 30), at(11), at(12, 30), at(14), at(15, 30)]

    def test_slots_before_not_before_are_dropped(self):
        slots = generate_available_slots(DAY, 60, [], not_before=at(12))
        assert slots[0] == at(12)
        assert len(slots) == 6

    def test_naive_busy_intervals_are_read_as_utc(self):
        naive_busy = [(datetime(2030, 1, 7, 8, 0), datetime(2030, 1, 7, 9, 0))]
        slots = generate_available_slots(DAY, 60, naive_busy)
        assert at(8) not in slots

    def test_custom_window(self):
        slots = generate_available_slots(DAY, 30, [], window_start_hour=9, window_end_hour=10)
        assert slots == [at(9), at(9, 30)]

    def test_invalid_arguments(self):
        with pytest.raises(ValidationError):
            generate_available_slots(DAY, 0, [])
        with pytest.raises(ValidationError):
            generate_available_slots(DAY, 30, [], window_start_hour=18, window_end_hour=8)


class TestStatusRules:

    def test_client_may_confirm_scheduled(self):
        validate_status_change("client", "scheduled", "confirmed")

    def test_client_may_cancel_open_appointment(self):
        validate_status_change("client", "scheduled", "cancelled")
        validate_status_change("client", "confirmed", "cancelled")

    @pytest.mark.parametrize("new_status", ["completed", "no_show", "scheduled"])
    def test_client_cannot_set_coach_statuses(self, new_status):
        with pytest.raises(PermissionDeniedError):
            validate_status_change("client", "confirmed", new_status)

    def test_client_cannot_touch_finished_appointment(self):
        with pytest.raises(ValidationError):
            validate_status_change("client", "completed", "cancelled")

    def test_client_cannot_reconfirm_cancelled(self):
        with pytest.raises(ValidationError):
            validate_status_change("client", "cancelled", "confirmed")

    def test_unchanged_status_is_always_allowed(self):
        validate_status_change("client", "completed", "completed")

    @pytest.mark.parametrize("role", ["coach", "admin"])
    def test_coach_and_admin_may_set_any_status(self, role):
        validate_status_change(role, "scheduled", "completed")
        validate_status_change(role, "confirmed", "no_show")
        validate_status_change(role, "cancelled", "scheduled")
