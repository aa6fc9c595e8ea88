from __future__ import annotations

import logging
import threading
import uuid
import weakref
from datetime import datetime

from barberai.application.exceptions import ConversationNotFoundError
from barberai.application.ports.conversation_store import ConversationStorePort
from barberai.application.use_cases.conversation_engine import ConversationEngine
from barberai.application.use_cases.reminders import ReminderService
from barberai.domain.entities.channel import Channel
from barberai.domain.entities.conversation_state import create_initial_state
from barberai.domain.entities.message import Message, Role, build_message_id
from barberai.domain.entities.reply import EngineReply


class HandleIncomingMessageUseCase:
    """
    Threads ConversationState through the engine for one conversation at a time,
    keeps the message log and arms reminders the engine asks for.
    """

    def __init__(
        self,
        engine: ConversationEngine,
        conversations: ConversationStorePort,
        reminders: ReminderService | None,
    ) -> None:
        self._engine = engine
        self._conversations = conversations
        self._reminders = reminders
        # Entries vanish once no turn holds the lock
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def start_conversation(
        self,
        channel: Channel = Channel.WEBSITE,
        customer_contact: str | None = None,
        now: datetime | None = None,
        conversation_id: str | None = None,
    ) -> tuple[str, EngineReply]:
        conversation_id = conversation_id or uuid.uuid4().hex
        state = create_initial_state(channel, conversation_id, customer_contact)
        with self._lock_for(conversation_id):
            self._conversations.set_state(conversation_id, state)
            reply = self._engine.respond("", state, channel, now)
            self._conversations.append_messages(conversation_id, list(reply.messages))
            self._conversations.set_state(conversation_id, reply.next)
        self._logger.info(
            "Conversation started",
            extra={"conversation_id": conversation_id, "channel": Channel(channel).value},
        )
        return conversation_id, reply

    def handle(
        self,
        conversation_id: str,
        text: str,
        channel: Channel | str | None = None,
        now: datetime | None = None,
    ) -> EngineReply:
        if not self._conversations.has_conversation(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        with self._lock_for(conversation_id):
            state = self._conversations.get_state(conversation_id)
            now = self._engine.localize(now)
            if (text or "").strip():
                self._conversations.append_messages(
                    conversation_id,
                    [
                        Message(
                            id=build_message_id(conversation_id, state.turn + 1, "user"),
                            role=Role.USER,
                            text=text,
                            timestamp=now,
                        )
                    ],
                )
            reply = self._engine.respond(text, state, channel, now)
            self._conversations.append_messages(conversation_id, list(reply.messages))
            self._conversations.set_state(conversation_id, reply.next)

        if reply.appointment is not None and reply.reminder_delay_ms and self._reminders is not None:
            self._reminders.schedule(reply.appointment, reply.reminder_delay_ms)
        return reply

    def history(self, conversation_id: str) -> list[Message]:
        if not self._conversations.has_conversation(conversation_id):
            raise ConversationNotFoundError(conversation_id)
        return self._conversations.get_history(conversation_id)

    def _lock_for(self, conversation_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(conversation_id, threading.Lock())
