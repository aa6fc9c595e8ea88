from __future__ import annotations

from datetime import date, datetime
from typing import Any

from barberai.domain.entities.booking_state import BookingState
from barberai.domain.entities.channel import Channel
from barberai.domain.entities.conversation_state import ConversationState, Phase
from barberai.domain.entities.message import Message, Role


def serialize_state(state: ConversationState) -> dict[str, Any]:
    """Serialize ConversationState to a JSON-compatible dict."""
    return {
        "phase": state.phase.value,
        "booking": serialize_booking_state(state.booking),
        "channel": state.channel.value,
        "language": state.language,
        "customer_name": state.customer_name,
        "customer_contact": state.customer_contact,
        "conversation_id": state.conversation_id,
        "turn": state.turn,
    }


def deserialize_state(data: dict[str, Any]) -> ConversationState:
    """Deserialize dict to ConversationState. Unknown enum values fall back to defaults."""
    try:
        phase = Phase(data.get("phase", Phase.GREETING.value))
    except ValueError:
        phase = Phase.GREETING
    try:
        channel = Channel(data.get("channel", Channel.WEBSITE.value))
    except ValueError:
        channel = Channel.WEBSITE

    return ConversationState(
        phase=phase,
        booking=deserialize_booking_state(data.get("booking") or {}),
        channel=channel,
        language=data.get("language"),
        customer_name=data.get("customer_name"),
        customer_contact=data.get("customer_contact"),
        conversation_id=data.get("conversation_id"),
        turn=int(data.get("turn") or 0),
    )


def serialize_booking_state(state: BookingState) -> dict[str, Any]:
    return {
        "service_key": state.service_key,
        "date": state.date.isoformat() if state.date else None,
        "time": state.time,
        "offered_times": list(state.offered_times),
    }


def deserialize_booking_state(data: dict[str, Any]) -> BookingState:
    booked_date = None
    if data.get("date"):
        try:
            booked_date = date.fromisoformat(data["date"])
        except (ValueError, TypeError):
            pass

    return BookingState(
        service_key=data.get("service_key"),
        date=booked_date,
        time=data.get("time"),
        offered_times=tuple(data.get("offered_times") or ()),
    )


def serialize_message(message: Message) -> dict[str, Any]:
    return {
        "id": message.id,
        "role": message.role.value,
        "text": message.text,
        "timestamp": message.timestamp.isoformat(),
    }


def deserialize_message(data: dict[str, Any]) -> Message:
    return Message(
        id=data["id"],
        role=Role(data["role"]),
        text=data["text"],
        timestamp=datetime.fromisoformat(data["timestamp"]),
    )
