from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable


class ReminderSchedulerPort(ABC):
    @abstractmethod
    def arm(self, delay_ms: int, on_fire: Callable[[], None]) -> Any:
        """Schedule a one-shot call of on_fire after delay_ms. Returns a handle for cancel()."""
        raise NotImplementedError

    @abstractmethod
    def cancel(self, handle: Any) -> bool:
        """Cancel a pending reminder. Returns True if it had not fired yet."""
        raise NotImplementedError

    @abstractmethod
    def shutdown(self) -> None:
        raise NotImplementedError
