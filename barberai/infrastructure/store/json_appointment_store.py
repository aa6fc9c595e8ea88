from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from barberai.application.exceptions import AppointmentStoreError, ConflictError
from barberai.application.ports.appointment_store import AppointmentStorePort
from barberai.domain.entities.appointment import Appointment
from barberai.infrastructure.store.appointment_codec import (
    deserialize_appointment,
    same_slot,
    serialize_appointment,
)


class JsonAppointmentStore(AppointmentStorePort):
    """
    Appointments persisted as a JSON list in a single file.

    save() reloads the file, checks the slot and rewrites it under one lock,
    so check-and-insert is atomic within the process.
    """

    def __init__(self, file_path: str = "./data/appointments.json") -> None:
        self._file_path = Path(file_path)
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def load(self) -> list[Appointment]:
        with self._lock:
            records = self._read_records()
        return self._decode(records)

    def save(self, appointment: Appointment) -> None:
        with self._lock:
            records = self._read_records()
            for existing in self._decode(records):
                if same_slot(existing, appointment):
                    raise ConflictError(f"Slot {appointment.datetime_iso} is already booked")
            records.append(serialize_appointment(appointment))
            try:
                self._write_records(records)
            except OSError as e:
                raise AppointmentStoreError(f"Could not write {self._file_path}: {e}") from e

    def _read_records(self) -> list[Any]:
        if not self._file_path.exists():
            return []
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            self._logger.warning(
                "Appointment file unreadable, treating as empty",
                extra={"reason": str(self._file_path)},
            )
            return []
        if not isinstance(data, list):
            self._logger.warning("Appointment file is not a list", extra={"reason": str(self._file_path)})
            return []
        return data

    def _decode(self, records: list[Any]) -> list[Appointment]:
        appointments = []
        for record in records:
            try:
                appointments.append(deserialize_appointment(record))
            except (KeyError, ValueError, TypeError, AttributeError):
                self._logger.warning(
                    "Skipping malformed appointment record",
                    extra={"reason": str(record)[:120]},
                )
        return appointments

    def _write_records(self, records: list[Any]) -> None:
        """Save records to the JSON file atomically."""
        temp_path = self._file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._file_path)
        except OSError:
            if temp_path.is_file():
                temp_path.unlink()
            raise
