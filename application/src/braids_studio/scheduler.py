"""Fixed daily slots and availability, resolved in the studio's time zone."""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from .models import Appointment

# Three sessions a day; each one takes most of a morning or afternoon.
TIME_SLOTS = ("08:00", "13:00", "14:00")
DEFAULT_TZ = "America/Sao_Paulo"


def _tz() -> ZoneInfo:
    try:
        return ZoneInfo(os.environ.get("TIMEZONE", DEFAULT_TZ))
    except Exception:
        return ZoneInfo(DEFAULT_TZ)


def local_now(now: datetime | None = None) -> datetime:
    """Current wall-clock time in the studio time zone. Naive `now` is taken as UTC."""
    if now is None:
        return datetime.now(_tz())
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(_tz())


def today_str(now: datetime | None = None) -> str:
    return local_now(now).date().isoformat()


def tomorrow_str(now: datetime | None = None) -> str:
    return (local_now(now).date() + timedelta(days=1)).isoformat()


def _slot_hour(time_str: str) -> int:
    return int(time_str.split(":", 1)[0])


def is_slot_taken(date_str: str, time_str: str, appointments: Iterable[Appointment]) -> bool:
    """True if a non-cancelled appointment already holds (date, time)."""
    return any(
        a.date == date_str and a.time == time_str and a.status != "cancelled"
        for a in appointments
    )


def available_slots(
    date_str: str,
    appointments: Iterable[Appointment],
    now: datetime | None = None,
) -> list[str]:
    """
    Return the TIME_SLOTS still open on date_str.

    Past dates and unparseable dates have no slots. On today's date, slots whose
    hour is before the current hour are dropped (the current hour is still offered).
    """
    try:
        target = date.fromisoformat(date_str)
    except (ValueError, TypeError):
        return []
    current = local_now(now)
    today = current.date()
    if target < today:
        return []

    booked = list(appointments)
    out: list[str] = []
    for slot in TIME_SLOTS:
        if target == today and _slot_hour(slot) < current.hour:
            continue
        if is_slot_taken(target.isoformat(), slot, booked):
            continue
        out.append(slot)
    return out


def format_date_br(date_str: str) -> str:
    """'2024-06-10' -> '10/06/2024'. Unparseable input is returned unchanged."""
    try:
        return date.fromisoformat(date_str).strftime("%d/%m/%Y")
    except (ValueError, TypeError):
        return date_str
