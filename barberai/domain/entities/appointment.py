from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from barberai.domain.entities.channel import Channel


@dataclass(frozen=True)
class Customer:
    name: str
    contact: str | None = None


@dataclass(frozen=True)
class Appointment:
    id: str
    starts_at: datetime  # timezone-aware
    service: str
    customer: Customer
    reminder: bool = False
    channel: Channel = Channel.WEBSITE
    conversation_id: str | None = None

    @property
    def datetime_iso(self) -> str:
        return self.starts_at.isoformat()
