from __future__ import annotations

from datetime import datetime
from typing import Any

from barberai.domain.entities.appointment import Appointment, Customer
from barberai.domain.entities.channel import Channel


def serialize_appointment(appointment: Appointment) -> dict[str, Any]:
    return {
        "id": appointment.id,
        "datetimeIso": appointment.datetime_iso,
        "service": appointment.service,
        "customer": {
            "name": appointment.customer.name,
            "contact": appointment.customer.contact,
        },
        "reminder": appointment.reminder,
        "channel": appointment.channel.value,
        "conversationId": appointment.conversation_id,
    }


def deserialize_appointment(data: dict[str, Any]) -> Appointment:
    """Raises KeyError/ValueError/TypeError on malformed records; callers skip them."""
    raw = str(data["datetimeIso"])
    if raw.endswith(("Z", "z")):
        # UTC written with a "Z" suffix; fromisoformat only accepts it from 3.11 on
        raw = raw[:-1] + "+00:00"
    starts_at = datetime.fromisoformat(raw)
    if starts_at.tzinfo is None:
        raise ValueError("datetimeIso must carry a UTC offset")

    customer = data.get("customer") or {}
    if isinstance(customer, str):
        customer = {"name": customer}

    return Appointment(
        id=str(data["id"]),
        starts_at=starts_at,
        service=str(data["service"]),
        customer=Customer(name=str(customer.get("name") or ""), contact=customer.get("contact")),
        reminder=bool(data.get("reminder", False)),
        channel=Channel(data.get("channel") or Channel.WEBSITE.value),
        conversation_id=data.get("conversationId"),
    )


def same_slot(first: Appointment, second: Appointment) -> bool:
    return first.starts_at == second.starts_at
