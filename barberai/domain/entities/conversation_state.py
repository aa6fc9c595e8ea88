from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from barberai.domain.entities.booking_state import BookingState
from barberai.domain.entities.channel import Channel


class Phase(str, Enum):
    GREETING = "greeting"
    COLLECTING_SERVICE = "collecting_service"
    COLLECTING_DATE = "collecting_date"
    COLLECTING_TIME = "collecting_time"
    COLLECTING_CONTACT = "collecting_contact"
    CONFIRMING = "confirming"
    DONE = "done"


@dataclass(frozen=True)
class ConversationState:
    phase: Phase = Phase.GREETING
    booking: BookingState = BookingState()
    channel: Channel = Channel.WEBSITE
    language: str | None = None  # "en" | "ar", from the latest user message with letters
    customer_name: str | None = None
    customer_contact: str | None = None
    conversation_id: str | None = None
    turn: int = 0


def create_initial_state(
    channel: Channel = Channel.WEBSITE,
    conversation_id: str | None = None,
    customer_contact: str | None = None,
) -> ConversationState:
    """Fresh state for a new conversation.

    WhatsApp transports know the sender's number up front and pass it as
    ``customer_contact`` so the assistant only has to ask for a name.
    """
    return ConversationState(
        channel=channel,
        conversation_id=conversation_id,
        customer_contact=customer_contact,
    )
