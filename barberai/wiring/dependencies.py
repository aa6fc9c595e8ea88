from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from barberai.application.ports.appointment_store import AppointmentStorePort
from barberai.application.ports.conversation_store import ConversationStorePort
from barberai.application.ports.message_platform import MessagePlatformPort
from barberai.application.ports.service_catalog import ServiceCatalogPort
from barberai.application.use_cases.conversation_engine import ConversationEngine
from barberai.application.use_cases.handle_incoming_message import HandleIncomingMessageUseCase
from barberai.application.use_cases.reminders import ReminderService
from barberai.core.config import Settings, settings
from barberai.domain.entities.business_hours import BusinessHours
from barberai.infrastructure.knowledge.service_catalog_store import ServiceCatalogStore
from barberai.infrastructure.platform.mock_platform import LoggingMessagePlatform
from barberai.infrastructure.scheduler.thread_scheduler import ThreadingReminderScheduler
from barberai.infrastructure.store.json_appointment_store import JsonAppointmentStore
from barberai.infrastructure.store.json_store import JsonConversationStore
from barberai.infrastructure.store.memory_appointment_store import MemoryAppointmentStore
from barberai.infrastructure.store.memory_store import MemoryConversationStore


@dataclass(frozen=True)
class Container:
    use_case: HandleIncomingMessageUseCase
    engine: ConversationEngine
    appointments: AppointmentStorePort
    conversations: ConversationStorePort
    reminders: ReminderService
    platform: MessagePlatformPort
    hours: BusinessHours
    timezone: ZoneInfo


def get_business_hours(config: Settings = settings) -> BusinessHours:
    return BusinessHours(
        open_hour=config.OPEN_HOUR,
        close_hour=config.CLOSE_HOUR,
        slot_minutes=config.SLOT_MINUTES,
        closed_weekdays=tuple(config.CLOSED_WEEKDAYS),
    )


def get_timezone(config: Settings = settings) -> ZoneInfo:
    return ZoneInfo(config.BUSINESS_TIMEZONE)


def get_service_catalog() -> ServiceCatalogPort:
    return ServiceCatalogStore()


def get_appointment_store(config: Settings = settings) -> AppointmentStorePort:
    if config.STORE_PROVIDER.lower() == "memory":
        return MemoryAppointmentStore()
    return JsonAppointmentStore(str(Path(config.DATA_DIR) / "appointments.json"))


def get_conversation_store(config: Settings = settings) -> ConversationStorePort:
    if config.STORE_PROVIDER.lower() == "memory":
        return MemoryConversationStore()
    return JsonConversationStore(str(Path(config.DATA_DIR) / "conversations"))


def build_container(config: Settings = settings) -> Container:
    logger = logging.getLogger(__name__)
    timezone = get_timezone(config)
    hours = get_business_hours(config)
    lead = timedelta(hours=config.REMINDER_LEAD_HOURS)
    catalog = get_service_catalog()
    appointments = get_appointment_store(config)
    conversations = get_conversation_store(config)
    platform = LoggingMessagePlatform()

    engine = ConversationEngine(
        appointments=appointments,
        catalog=catalog,
        hours=hours,
        timezone=timezone,
        business_name=config.BUSINESS_NAME,
        reminder_lead=lead,
        reminders_enabled=config.REMINDERS_ENABLED,
    )
    reminders = ReminderService(
        appointments=appointments,
        scheduler=ThreadingReminderScheduler(),
        platform=platform,
        conversations=conversations,
        catalog=catalog,
        composer=engine.composer,
        timezone=timezone,
        lead=lead,
    )
    use_case = HandleIncomingMessageUseCase(
        engine=engine,
        conversations=conversations,
        reminders=reminders if config.REMINDERS_ENABLED else None,
    )
    logger.info(
        "Container built",
        extra={"reason": f"store={config.STORE_PROVIDER} tz={config.BUSINESS_TIMEZONE} env={config.ENV}"},
    )
    return Container(
        use_case=use_case,
        engine=engine,
        appointments=appointments,
        conversations=conversations,
        reminders=reminders,
        platform=platform,
        hours=hours,
        timezone=timezone,
    )


@lru_cache
def get_container() -> Container:
    return build_container(settings)
