from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class BookingState:
    service_key: str | None = None
    date: date | None = None
    time: str | None = None  # HH:MM, always one of offered_times
    offered_times: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return self.service_key is None and self.date is None and self.time is None
