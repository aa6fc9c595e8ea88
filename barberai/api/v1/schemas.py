from datetime import datetime

from pydantic import BaseModel, Field

from barberai.domain.entities.channel import Channel
from barberai.domain.entities.conversation_state import Phase
from barberai.domain.entities.message import Role


class StartConversationRequestSchema(BaseModel):
    channel: Channel = Channel.WEBSITE
    customer_contact: str | None = None


class SendMessageRequestSchema(BaseModel):
    text: str = Field(default="", max_length=2000)
    channel: Channel | None = None


class MessageSchema(BaseModel):
    id: str
    role: Role
    text: str
    timestamp: datetime


class AppointmentSchema(BaseModel):
    id: str
    datetime_iso: str
    service: str
    customer_name: str
    customer_contact: str | None = None
    reminder: bool


class ConversationReplySchema(BaseModel):
    conversation_id: str
    phase: Phase
    language: str | None = None
    messages: list[MessageSchema]
    reminder_delay_ms: int | None = None
    appointment: AppointmentSchema | None = None


class HistoryResponseSchema(BaseModel):
    conversation_id: str
    phase: Phase
    messages: list[MessageSchema]


class AvailabilityResponseSchema(BaseModel):
    date: str
    open: bool
    times: list[str]
