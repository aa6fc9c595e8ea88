from __future__ import annotations

from abc import ABC, abstractmethod

from barberai.domain.entities.appointment import Appointment


class AppointmentStorePort(ABC):
    @abstractmethod
    def load(self) -> list[Appointment]:
        """Return every stored appointment. Order is not guaranteed."""
        raise NotImplementedError

    @abstractmethod
    def save(self, appointment: Appointment) -> None:
        """
        Append an appointment.
        Check-and-insert is atomic: raises ConflictError if the slot is already occupied.
        """
        raise NotImplementedError
