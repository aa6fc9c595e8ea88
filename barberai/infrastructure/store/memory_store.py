from __future__ import annotations

import threading

from barberai.application.ports.conversation_store import ConversationStorePort
from barberai.domain.entities.conversation_state import ConversationState
from barberai.domain.entities.message import Message


class MemoryConversationStore(ConversationStorePort):
    def __init__(self) -> None:
        self._messages: dict[str, list[Message]] = {}
        self._states: dict[str, ConversationState] = {}
        self._lock = threading.Lock()

    def has_conversation(self, conversation_id: str) -> bool:
        return conversation_id in self._states

    def get_history(self, conversation_id: str) -> list[Message]:
        with self._lock:
            return list(self._messages.get(conversation_id, []))

    def append_messages(self, conversation_id: str, messages: list[Message]) -> None:
        with self._lock:
            self._messages.setdefault(conversation_id, []).extend(messages)

    def get_state(self, conversation_id: str) -> ConversationState:
        return self._states.get(conversation_id, ConversationState(conversation_id=conversation_id))

    def set_state(self, conversation_id: str, state: ConversationState) -> None:
        self._states[conversation_id] = state
