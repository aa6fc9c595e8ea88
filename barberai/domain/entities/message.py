from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    text: str
    timestamp: datetime


def build_message_id(*parts: object) -> str:
    """Stable id derived from the conversation position, so replays produce identical ids."""
    raw = ":".join("" if p is None else str(p) for p in parts)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]
