from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from barberai.api.v1.schemas import (
    AppointmentSchema,
    AvailabilityResponseSchema,
    ConversationReplySchema,
    HistoryResponseSchema,
    MessageSchema,
    SendMessageRequestSchema,
    StartConversationRequestSchema,
)
from barberai.application.exceptions import ConversationNotFoundError
from barberai.application.use_cases.availability import available_slots, format_slot
from barberai.domain.entities.message import Message
from barberai.domain.entities.reply import EngineReply
from barberai.wiring.dependencies import Container, get_container

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/conversations", response_model=ConversationReplySchema, status_code=201)
def start_conversation(
    req: StartConversationRequestSchema,
    container: Container = Depends(get_container),
):
    conversation_id, reply = container.use_case.start_conversation(
        channel=req.channel,
        customer_contact=req.customer_contact,
    )
    return _reply_schema(conversation_id, reply)


@router.post("/conversations/{conversation_id}/messages", response_model=ConversationReplySchema)
def send_message(
    conversation_id: str,
    req: SendMessageRequestSchema,
    container: Container = Depends(get_container),
):
    try:
        reply = container.use_case.handle(conversation_id, req.text, req.channel)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return _reply_schema(conversation_id, reply)


@router.get("/conversations/{conversation_id}/messages", response_model=HistoryResponseSchema)
def get_messages(
    conversation_id: str,
    container: Container = Depends(get_container),
):
    try:
        history = container.use_case.history(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    state = container.conversations.get_state(conversation_id)
    return HistoryResponseSchema(
        conversation_id=conversation_id,
        phase=state.phase,
        messages=[_message_schema(m) for m in history],
    )


@router.get("/availability", response_model=AvailabilityResponseSchema)
def get_availability(
    day: date = Query(..., alias="date"),
    container: Container = Depends(get_container),
):
    now = datetime.now(container.timezone)
    slots = available_slots(
        day,
        container.appointments.load(),
        container.hours,
        container.timezone,
        not_before=now,
    )
    return AvailabilityResponseSchema(
        date=day.isoformat(),
        open=container.hours.is_open_on(day),
        times=[format_slot(slot) for slot in slots],
    )


def _message_schema(message: Message) -> MessageSchema:
    return MessageSchema(id=message.id, role=message.role, text=message.text, timestamp=message.timestamp)


def _reply_schema(conversation_id: str, reply: EngineReply) -> ConversationReplySchema:
    appointment = reply.appointment
    return ConversationReplySchema(
        conversation_id=conversation_id,
        phase=reply.next.phase,
        language=reply.next.language,
        messages=[_message_schema(m) for m in reply.messages],
        reminder_delay_ms=reply.reminder_delay_ms,
        appointment=(
            AppointmentSchema(
                id=appointment.id,
                datetime_iso=appointment.datetime_iso,
                service=appointment.service,
                customer_name=appointment.customer.name,
                customer_contact=appointment.customer.contact,
                reminder=appointment.reminder,
            )
            if appointment else None
        ),
    )
