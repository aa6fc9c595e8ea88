from __future__ import annotations

import threading

from barberai.application.exceptions import ConflictError
from barberai.application.ports.appointment_store import AppointmentStorePort
from barberai.domain.entities.appointment import Appointment
from barberai.infrastructure.store.appointment_codec import same_slot


class MemoryAppointmentStore(AppointmentStorePort):
    def __init__(self, appointments: list[Appointment] | None = None) -> None:
        self._appointments: list[Appointment] = list(appointments or [])
        self._lock = threading.Lock()

    def load(self) -> list[Appointment]:
        with self._lock:
            return list(self._appointments)

    def save(self, appointment: Appointment) -> None:
        with self._lock:
            if any(same_slot(existing, appointment) for existing in self._appointments):
                raise ConflictError(f"Slot {appointment.datetime_iso} is already booked")
            self._appointments.append(appointment)
