from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from barberai.domain.entities.appointment import Appointment
from barberai.domain.entities.business_hours import BusinessHours


def available_slots(
    day: date,
    appointments: Iterable[Appointment],
    hours: BusinessHours,
    timezone: ZoneInfo,
    not_before: datetime | None = None,
) -> list[time]:
    """
    Free slot start times on ``day``, in chronological order.

    A slot is taken when any appointment overlaps it (appointments are treated as
    occupying one slot length). Closed weekdays give an empty list, as do slots
    starting before ``not_before`` (used to hide past times when ``day`` is today).
    """
    if not hours.is_open_on(day):
        return []

    slot_length = timedelta(minutes=hours.slot_minutes)
    taken = [
        appt.starts_at.astimezone(timezone)
        for appt in appointments
        if appt.starts_at.astimezone(timezone).date() == day
    ]

    free: list[time] = []
    for slot in hours.slot_template():
        start = datetime.combine(day, slot, tzinfo=timezone)
        if not_before is not None and start < not_before:
            continue
        if any(other < start + slot_length and start < other + slot_length for other in taken):
            continue
        free.append(slot)
    return free


def is_slot_free(
    starts_at: datetime,
    appointments: Iterable[Appointment],
    hours: BusinessHours,
    timezone: ZoneInfo,
    not_before: datetime | None = None,
) -> bool:
    local = starts_at.astimezone(timezone)
    slot = local.time().replace(second=0, microsecond=0)
    return slot in available_slots(local.date(), appointments, hours, timezone, not_before)


def format_slot(slot: time) -> str:
    return f"{slot.hour:02d}:{slot.minute:02d}"
