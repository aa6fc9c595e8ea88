from __future__ import annotations

import json
import logging
import threading
import weakref
from pathlib import Path
from typing import Any

from barberai.application.ports.conversation_store import ConversationStorePort
from barberai.domain.entities.conversation_state import ConversationState
from barberai.domain.entities.message import Message
from barberai.infrastructure.store.state_codec import (
    deserialize_message,
    deserialize_state,
    serialize_message,
    serialize_state,
)


class JsonConversationStore(ConversationStorePort):
    """One JSON file per conversation holding its state and full message log."""

    def __init__(self, data_dir: str = "./data/conversations") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, conversation_id: str) -> threading.Lock:
        """Get or create a lock for a conversation_id."""
        with self._lock_lock:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[conversation_id] = lock
            return lock

    def _get_file_path(self, conversation_id: str) -> Path:
        return self._data_dir / f"{conversation_id}.json"

    def _load_conversation_data(self, conversation_id: str) -> dict[str, Any]:
        """Load conversation data from JSON file, return defaults if missing or corrupted."""
        file_path = self._get_file_path(conversation_id)
        default = {
            "conversation_id": conversation_id,
            "state": serialize_state(ConversationState(conversation_id=conversation_id)),
            "messages": [],
            "version": 1,
        }
        if not file_path.exists():
            return default

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            self._logger.warning(
                "Conversation file unreadable, starting fresh",
                extra={"conversation_id": conversation_id},
            )
            return default
        if "version" not in data:
            data["version"] = 1
        data.setdefault("messages", [])
        return data

    def _save_conversation_data(self, conversation_id: str, data: dict[str, Any]) -> None:
        """Save conversation data to JSON file atomically."""
        file_path = self._get_file_path(conversation_id)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError:
            if temp_path.is_file():
                temp_path.unlink()
            raise

    def has_conversation(self, conversation_id: str) -> bool:
        return self._get_file_path(conversation_id).exists()

    def get_history(self, conversation_id: str) -> list[Message]:
        with self._get_lock(conversation_id):
            data = self._load_conversation_data(conversation_id)
        messages = []
        for raw in data.get("messages", []):
            try:
                messages.append(deserialize_message(raw))
            except (KeyError, ValueError, TypeError):
                self._logger.warning(
                    "Skipping malformed message",
                    extra={"conversation_id": conversation_id, "reason": str(raw)[:80]},
                )
        return messages

    def append_messages(self, conversation_id: str, messages: list[Message]) -> None:
        if not messages:
            return
        with self._get_lock(conversation_id):
            data = self._load_conversation_data(conversation_id)
            data["messages"].extend(serialize_message(message) for message in messages)
            self._save_conversation_data(conversation_id, data)

    def get_state(self, conversation_id: str) -> ConversationState:
        with self._get_lock(conversation_id):
            data = self._load_conversation_data(conversation_id)
            return deserialize_state(data.get("state", {}))

    def set_state(self, conversation_id: str, state: ConversationState) -> None:
        with self._get_lock(conversation_id):
            data = self._load_conversation_data(conversation_id)
            data["state"] = serialize_state(state)
            self._save_conversation_data(conversation_id, data)
