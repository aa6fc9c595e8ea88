from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable
from zoneinfo import ZoneInfo

from barberai.application.ports.appointment_store import AppointmentStorePort
from barberai.application.ports.conversation_store import ConversationStorePort
from barberai.application.ports.message_platform import MessagePlatformPort
from barberai.application.ports.reminder_scheduler import ReminderSchedulerPort
from barberai.application.ports.service_catalog import ServiceCatalogPort
from barberai.application.use_cases.reply_composer import ReplyComposer
from barberai.application.utils.language import detect_language, has_language_signal
from barberai.domain.entities.appointment import Appointment
from barberai.domain.entities.message import Message, Role, build_message_id


def reminder_delay_ms(starts_at: datetime, now: datetime, lead: timedelta = timedelta(hours=3)) -> int | None:
    """Milliseconds from ``now`` until the reminder is due, or None when that moment has passed."""
    delay = int((starts_at - lead - now).total_seconds() * 1000)
    return delay if delay > 0 else None


class ReminderService:
    """
    Arms one-shot reminders through the scheduler port and delivers them.

    Delivery appends the reminder to the conversation log and sends the same
    plain text through the message platform.
    """

    def __init__(
        self,
        appointments: AppointmentStorePort,
        scheduler: ReminderSchedulerPort,
        platform: MessagePlatformPort,
        conversations: ConversationStorePort,
        catalog: ServiceCatalogPort,
        composer: ReplyComposer,
        timezone: ZoneInfo,
        lead: timedelta = timedelta(hours=3),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._appointments = appointments
        self._scheduler = scheduler
        self._platform = platform
        self._conversations = conversations
        self._catalog = catalog
        self._composer = composer
        self._timezone = timezone
        self._lead = lead
        self._clock = clock or (lambda: datetime.now(timezone))
        self._handles: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def schedule(self, appointment: Appointment, delay_ms: int) -> Any:
        # Held across arm() so a timer firing at once waits until its handle is recorded
        with self._lock:
            previous = self._handles.pop(appointment.id, None)
            if previous is not None:
                self._scheduler.cancel(previous)
            handle = self._scheduler.arm(delay_ms, lambda: self.fire(appointment))
            self._handles[appointment.id] = handle
        self._logger.info(
            "Reminder armed",
            extra={
                "appointment_id": appointment.id,
                "conversation_id": appointment.conversation_id,
                "reason": f"delay_ms={delay_ms}",
            },
        )
        return handle

    def arm(self, appointment: Appointment, now: datetime | None = None) -> Any:
        """Schedule the reminder for an appointment. Returns None when no reminder is due."""
        if not appointment.reminder:
            return None
        delay = reminder_delay_ms(appointment.starts_at, now or self._clock(), self._lead)
        if delay is None:
            return None
        return self.schedule(appointment, delay)

    def rearm_pending(self, now: datetime | None = None) -> int:
        """Re-arm every stored reminder that is still ahead. Returns how many were armed."""
        now = now or self._clock()
        armed = 0
        for appointment in self._appointments.load():
            if not appointment.reminder:
                continue
            with self._lock:
                if appointment.id in self._handles:
                    continue
            if self.arm(appointment, now) is None:
                self._logger.info(
                    "Reminder skipped",
                    extra={"appointment_id": appointment.id, "reason": "lead time passed"},
                )
                continue
            armed += 1
        self._logger.info("Pending reminders re-armed", extra={"reason": f"armed={armed}"})
        return armed

    def fire(self, appointment: Appointment) -> bool:
        """Deliver a reminder. A reminder firing after the appointment started is dropped."""
        with self._lock:
            self._handles.pop(appointment.id, None)

        now = self._clock()
        if now >= appointment.starts_at:
            self._logger.info(
                "Reminder dropped",
                extra={"appointment_id": appointment.id, "reason": "appointment already started"},
            )
            return False

        language = self._language_for(appointment)
        entry = self._catalog.get_service(appointment.service)
        service = entry.display_name(language) if entry else appointment.service
        local = appointment.starts_at.astimezone(self._timezone)
        text = self._composer.reminder_text(service, local.date(), local.time(), language)

        conversation_id = appointment.conversation_id
        if conversation_id and self._conversations.has_conversation(conversation_id):
            self._conversations.append_messages(
                conversation_id,
                [
                    Message(
                        id=build_message_id(conversation_id, "reminder", appointment.id),
                        role=Role.ASSISTANT,
                        text=text,
                        timestamp=now,
                    )
                ],
            )

        recipient = appointment.customer.contact or conversation_id
        if recipient:
            self._platform.send_text(recipient_id=recipient, text=text)
        self._logger.info(
            "Reminder delivered",
            extra={"appointment_id": appointment.id, "conversation_id": conversation_id, "language": language},
        )
        return True

    def cancel(self, appointment_id: str) -> bool:
        with self._lock:
            handle = self._handles.pop(appointment_id, None)
        if handle is None:
            return False
        return self._scheduler.cancel(handle)

    def pending(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def shutdown(self) -> None:
        with self._lock:
            self._handles.clear()
        self._scheduler.shutdown()

    def _language_for(self, appointment: Appointment) -> str:
        conversation_id = appointment.conversation_id
        if conversation_id and self._conversations.has_conversation(conversation_id):
            for message in reversed(self._conversations.get_history(conversation_id)):
                if message.role == Role.USER and has_language_signal(message.text):
                    return detect_language(message.text).value
        return detect_language(appointment.customer.name).value
