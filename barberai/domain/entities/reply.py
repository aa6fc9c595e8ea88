from __future__ import annotations

from dataclasses import dataclass

from barberai.domain.entities.appointment import Appointment
from barberai.domain.entities.conversation_state import ConversationState
from barberai.domain.entities.message import Message


@dataclass(frozen=True)
class EngineReply:
    messages: tuple[Message, ...]
    next: ConversationState
    reminder_delay_ms: int | None = None
    appointment: Appointment | None = None  # set only on the turn that booked it
