"""Unit tests for scheduler: fixed slots, occupancy, today's cutoff in the studio time zone."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from src.braids_studio.models import Appointment
from src.braids_studio.scheduler import (
    TIME_SLOTS,
    available_slots,
    format_date_br,
    is_slot_taken,
    local_now,
    today_str,
)


def sp_time(year, month, day, hour=10, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=ZoneInfo("America/Sao_Paulo"))


def _appt(date_str, time_str, status="scheduled", id_="a1"):
    return Appointment(
        id=id_, client_id="1", date=date_str, time=time_str,
        type="Box Braids", status=status, price=250, duration=240,
    )


def test_future_date_offers_every_slot():
    now = sp_time(2024, 6, 1, 22)
    assert available_slots("2024-06-10", [], now) == list(TIME_SLOTS)
    assert available_slots("2024-06-02", [], now) == ["08:00", "13:00", "14:00"]


def test_occupied_slot_is_not_offered():
    now = sp_time(2024, 6, 1)
    booked = [_appt("2024-06-10", "13:00")]
    assert available_slots("2024-06-10", booked, now) == ["08:00", "14:00"]
    # Other days are unaffected
    assert available_slots("2024-06-11", booked, now) == list(TIME_SLOTS)


def test_cancelled_appointment_frees_the_slot():
    now = sp_time(2024, 6, 1)
    booked = [_appt("2024-06-10", "13:00", status="cancelled")]
    assert available_slots("2024-06-10", booked, now) == list(TIME_SLOTS)
    assert not is_slot_taken("2024-06-10", "13:00", booked)


def test_completed_appointment_still_occupies():
    booked = [_appt("2024-06-10", "08:00", status="completed")]
    assert is_slot_taken("2024-06-10", "08:00", booked)


def test_today_drops_slots_before_current_hour():
    assert available_slots("2024-06-10", [], sp_time(2024, 6, 10, 9, 30)) == ["13:00", "14:00"]
    # The current hour itself is still offered
    assert available_slots("2024-06-10", [], sp_time(2024, 6, 10, 13, 45)) == ["13:00", "14:00"]
    assert available_slots("2024-06-10", [], sp_time(2024, 6, 10, 14, 5)) == ["14:00"]
    assert available_slots("2024-06-10", [], sp_time(2024, 6, 10, 15, 0)) == []
    assert available_slots("2024-06-10", [], sp_time(2024, 6, 10, 7, 59)) == list(TIME_SLOTS)


def test_today_cutoff_and_occupancy_combine():
    booked = [_appt("2024-06-10", "14:00")]
    assert available_slots("2024-06-10", booked, sp_time(2024, 6, 10, 12)) == ["13:00"]


def test_past_and_invalid_dates_have_no_slots():
    now = sp_time(2024, 6, 10, 7)
    assert available_slots("2024-06-09", [], now) == []
    assert available_slots("not-a-date", [], now) == []
    assert available_slots("", [], now) == []


def test_today_is_resolved_in_sao_paulo():
    # 02:00 UTC on the 10th is still the evening of the 9th in São Paulo (UTC-3)
    utc_now = datetime(2024, 6, 10, 2, 0)
    assert today_str(utc_now) == "2024-06-09"
    assert local_now(utc_now).hour == 23
    # So the 9th still counts as today: only slots at or after 23h would remain
    assert available_slots("2024-06-09", [], utc_now) == []
    assert available_slots("2024-06-10", [], utc_now) == list(TIME_SLOTS)


def test_format_date_br():
    assert format_date_br("2024-06-10") == "10/06/2024"
    assert format_date_br("amanhã") == "amanhã"
