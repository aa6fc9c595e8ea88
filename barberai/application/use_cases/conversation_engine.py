from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from barberai.application.exceptions import AppointmentStoreError, ConflictError
from barberai.application.ports.appointment_store import AppointmentStorePort
from barberai.application.ports.service_catalog import ServiceCatalogPort
from barberai.application.use_cases.availability import available_slots, format_slot, is_slot_free
from barberai.application.use_cases.reminders import reminder_delay_ms
from barberai.application.use_cases.reply_composer import ReplyComposer
from barberai.application.utils.date_parser import RELATIVE_DAYS, candidate_times, parse_date_preference
from barberai.application.utils.language import DEFAULT_LANGUAGE, resolve_language
from barberai.application.utils.message_rules import (
    classify_confirmation,
    extract_contact,
    is_restart_request,
    wants_no_reminder,
)
from barberai.domain.entities.appointment import Appointment, Customer
from barberai.domain.entities.booking_state import BookingState
from barberai.domain.entities.business_hours import BusinessHours
from barberai.domain.entities.channel import Channel
from barberai.domain.entities.conversation_state import ConversationState, Phase
from barberai.domain.entities.message import Message, Role, build_message_id
from barberai.domain.entities.reply import EngineReply
from barberai.domain.entities.service_catalog import ServiceCatalogEntry


@dataclass(frozen=True)
class TurnContext:
    now: datetime
    language: str
    channel: Channel


@dataclass(frozen=True)
class TurnOutcome:
    texts: tuple[str, ...]
    state: ConversationState
    reminder_delay_ms: int | None = None
    appointment: Appointment | None = None


class ConversationEngine:
    """
    Booking dialogue as a state machine over ConversationState.

    respond() never reads the clock except to default ``now`` at the call boundary,
    and its only side effect is AppointmentStorePort.save on a confirmed booking.
    """

    def __init__(
        self,
        appointments: AppointmentStorePort,
        catalog: ServiceCatalogPort,
        hours: BusinessHours,
        timezone: ZoneInfo,
        business_name: str,
        reminder_lead: timedelta = timedelta(hours=3),
        reminders_enabled: bool = True,
    ) -> None:
        self._appointments = appointments
        self._catalog = catalog
        self._hours = hours
        self._timezone = timezone
        self._reminder_lead = reminder_lead
        self._reminders_enabled = reminders_enabled
        self._composer = ReplyComposer(business_name, int(reminder_lead.total_seconds() // 3600))
        self._handlers: dict[Phase, Callable[[str, ConversationState, TurnContext], TurnOutcome]] = {
            Phase.GREETING: self._on_greeting,
            Phase.COLLECTING_SERVICE: self._on_collecting_service,
            Phase.COLLECTING_DATE: self._on_collecting_date,
            Phase.COLLECTING_TIME: self._on_collecting_time,
            Phase.COLLECTING_CONTACT: self._on_collecting_contact,
            Phase.CONFIRMING: self._on_confirming,
            Phase.DONE: self._on_done,
        }
        self._logger = logging.getLogger(__name__)

    @property
    def composer(self) -> ReplyComposer:
        return self._composer

    def localize(self, now: datetime | None) -> datetime:
        if now is None:
            return datetime.now(self._timezone)
        if now.tzinfo is None:
            return now.replace(tzinfo=self._timezone)
        return now.astimezone(self._timezone)

    def respond(
        self,
        text: str,
        state: ConversationState,
        channel: Channel | str | None = None,
        now: datetime | None = None,
    ) -> EngineReply:
        """
        Process one user turn. ``text == ""`` is the kickoff sentinel: it starts
        the conversation, or re-emits the current prompt when resuming.
        """
        now = self.localize(now)
        channel = Channel(channel) if channel else state.channel
        stripped = (text or "").strip()

        if stripped:
            language = resolve_language(stripped, state.language)
            state = replace(state, channel=channel, language=language)
        else:
            language = state.language or DEFAULT_LANGUAGE.value
            state = replace(state, channel=channel)
        ctx = TurnContext(now=now, language=language, channel=channel)

        try:
            if not stripped:
                outcome = self._kickoff(state, ctx)
            elif self._is_restart(stripped, state):
                outcome = self._restart(state, ctx)
            else:
                outcome = self._handlers[state.phase](stripped, state, ctx)
        except Exception:
            self._logger.exception(
                "Engine handler failed",
                extra={"conversation_id": state.conversation_id, "phase": state.phase.value},
            )
            outcome = TurnOutcome(
                (self._composer.render("fallback", ctx.language), self._phase_prompt(state, ctx)),
                state,
            )

        self._logger.info(
            "Engine turn",
            extra={
                "conversation_id": state.conversation_id,
                "phase": f"{state.phase.value}->{outcome.state.phase.value}",
                "language": ctx.language,
                "channel": ctx.channel.value,
            },
        )
        return self._build_reply(outcome, ctx)

    def _is_restart(self, text: str, state: ConversationState) -> bool:
        if state.phase == Phase.GREETING or not is_restart_request(text):
            return False
        # An affirmative while confirming books; restart words there only qualify it.
        return not (state.phase == Phase.CONFIRMING and classify_confirmation(text) == "yes")

    # Phase handlers

    def _kickoff(self, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        if state.phase == Phase.GREETING:
            return TurnOutcome(
                (self._composer.render("greeting", ctx.language), self._ask_service(ctx)),
                replace(state, phase=Phase.COLLECTING_SERVICE),
            )
        return TurnOutcome((self._phase_prompt(state, ctx),), state)

    def _restart(self, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        return TurnOutcome(
            (self._composer.render("restart", ctx.language), self._composer.render("greeting", ctx.language)),
            replace(state, phase=Phase.GREETING, booking=BookingState()),
        )

    def _on_greeting(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        greeting = self._composer.render("greeting", ctx.language)
        entry = self._catalog.match_service(text)
        if entry is None:
            return TurnOutcome(
                (greeting, self._ask_service(ctx)),
                replace(state, phase=Phase.COLLECTING_SERVICE),
            )
        outcome = self._select_service(entry, text, state, ctx)
        return replace(outcome, texts=(greeting,) + outcome.texts)

    def _on_collecting_service(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        entry = self._catalog.match_service(text)
        if entry is None:
            services = self._services_list(ctx)
            return TurnOutcome(
                (self._composer.render("service_not_recognized", ctx.language, services=services),),
                state,
            )
        return self._select_service(entry, text, state, ctx)

    def _on_collecting_date(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        day = parse_date_preference(text, ctx.now.date())
        if day is None:
            return TurnOutcome((self._composer.render("date_not_recognized", ctx.language),), state)
        return self._offer_day(day, text, state, ctx)

    def _on_collecting_time(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        booking = state.booking
        if booking.date is None or not booking.offered_times:
            return TurnOutcome(
                (self._composer.render("ask_date", ctx.language),),
                replace(state, phase=Phase.COLLECTING_DATE),
            )

        new_day = parse_date_preference(text, ctx.now.date())
        if new_day is not None and new_day != booking.date:
            return self._offer_day(new_day, text, state, ctx)

        chosen = _pick_offered(text, booking.offered_times)
        if chosen is None:
            return TurnOutcome(
                (
                    self._composer.render(
                        "time_not_offered",
                        ctx.language,
                        date=self._composer.format_date(booking.date, ctx.language),
                        slots=self._composer.format_slots(list(booking.offered_times), ctx.language, ctx.channel),
                    ),
                ),
                state,
            )
        return self._accept_time(chosen, state, ctx)

    def _on_collecting_contact(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        name, phone = extract_contact(text, ignore=RELATIVE_DAYS)
        if phone:
            state = replace(state, customer_contact=phone)
        if not name:
            return TurnOutcome((self._composer.render("contact_not_recognized", ctx.language),), state)
        return self._confirm_prompt(replace(state, customer_name=name), ctx)

    def _on_confirming(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        answer = classify_confirmation(text)
        if answer == "yes":
            return self._book(text, state, ctx)
        if answer == "no":
            return TurnOutcome(
                (self._composer.render("booking_discarded", ctx.language), self._ask_service(ctx)),
                replace(state, phase=Phase.COLLECTING_SERVICE, booking=BookingState()),
            )
        return TurnOutcome((self._composer.render("confirm_reprompt", ctx.language),), state)

    def _on_done(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        state = replace(state, booking=BookingState())
        entry = self._catalog.match_service(text)
        if entry is None:
            services = self._services_list(ctx)
            return TurnOutcome(
                (self._composer.render("ask_another", ctx.language, services=services),),
                replace(state, phase=Phase.COLLECTING_SERVICE),
            )
        return self._select_service(entry, text, state, ctx)

    # Steps shared between phases

    def _select_service(
        self,
        entry: ServiceCatalogEntry,
        text: str,
        state: ConversationState,
        ctx: TurnContext,
    ) -> TurnOutcome:
        service = entry.display_name(ctx.language)
        state = replace(state, phase=Phase.COLLECTING_DATE, booking=BookingState(service_key=entry.service_key))
        day = parse_date_preference(text, ctx.now.date())
        if day is None:
            return TurnOutcome(
                (self._composer.render("service_ack_ask_date", ctx.language, service=service),),
                state,
            )
        outcome = self._offer_day(day, text, state, ctx)
        ack = self._composer.render("service_ack", ctx.language, service=service)
        return replace(outcome, texts=(ack,) + outcome.texts)

    def _offer_day(self, day: date, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        label = self._composer.format_date(day, ctx.language)
        cleared = replace(
            state,
            phase=Phase.COLLECTING_DATE,
            booking=BookingState(service_key=state.booking.service_key),
        )

        if not self._hours.is_open_on(day):
            return TurnOutcome((self._composer.render("closed_day", ctx.language, date=label),), cleared)

        slots = [
            format_slot(slot)
            for slot in available_slots(day, self._appointments.load(), self._hours, self._timezone, not_before=ctx.now)
        ]
        if not slots:
            self._logger.info(
                "No free slots",
                extra={"conversation_id": state.conversation_id, "reason": day.isoformat()},
            )
            return TurnOutcome((self._composer.render("no_slots", ctx.language, date=label),), cleared)

        state = replace(
            state,
            phase=Phase.COLLECTING_TIME,
            booking=BookingState(service_key=state.booking.service_key, date=day, offered_times=tuple(slots)),
        )
        chosen = _pick_offered(text, state.booking.offered_times)
        if chosen is not None:
            return self._accept_time(chosen, state, ctx)

        offer = self._composer.render(
            "slots_offer",
            ctx.language,
            date=label,
            slots=self._composer.format_slots(slots, ctx.language, ctx.channel),
        )
        return TurnOutcome((offer,), state)

    def _accept_time(self, chosen: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        state = replace(state, booking=replace(state.booking, time=chosen))
        if not state.customer_name:
            return TurnOutcome(
                (self._composer.render("ask_contact", ctx.language),),
                replace(state, phase=Phase.COLLECTING_CONTACT),
            )
        return self._confirm_prompt(state, ctx)

    def _confirm_prompt(self, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        state = replace(state, phase=Phase.CONFIRMING)
        return TurnOutcome((self._summary(state, ctx),), state)

    def _book(self, text: str, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        booking = state.booking
        if booking.service_key is None or booking.date is None or booking.time is None:
            return TurnOutcome(
                (self._composer.render("ask_date", ctx.language),),
                replace(state, phase=Phase.COLLECTING_DATE, booking=BookingState(service_key=booking.service_key)),
            )

        starts_at = self._slot_start(booking)
        if not is_slot_free(starts_at, self._appointments.load(), self._hours, self._timezone, not_before=ctx.now):
            return self._slot_taken(state, ctx)

        wants_reminder = self._reminders_enabled and not wants_no_reminder(text)
        delay = reminder_delay_ms(starts_at, ctx.now, self._reminder_lead) if wants_reminder else None
        appointment = Appointment(
            id="apt_" + build_message_id(state.conversation_id, starts_at.isoformat(), state.turn),
            starts_at=starts_at,
            service=booking.service_key,
            customer=Customer(name=state.customer_name or "", contact=state.customer_contact),
            reminder=wants_reminder and starts_at > ctx.now,
            channel=ctx.channel,
            conversation_id=state.conversation_id,
        )

        try:
            self._appointments.save(appointment)
        except ConflictError:
            self._logger.info(
                "Slot taken on save",
                extra={"conversation_id": state.conversation_id, "appointment_id": appointment.id},
            )
            return self._slot_taken(state, ctx)
        except AppointmentStoreError:
            self._logger.error(
                "Appointment save failed",
                extra={"conversation_id": state.conversation_id, "appointment_id": appointment.id},
            )
            return TurnOutcome((self._composer.render("store_failed", ctx.language),), state)

        self._logger.info(
            "Appointment booked",
            extra={"conversation_id": state.conversation_id, "appointment_id": appointment.id},
        )
        texts = [
            self._composer.render(
                "booked",
                ctx.language,
                service=self._service_name(booking.service_key, ctx.language),
                date=self._composer.format_date(booking.date, ctx.language),
                time=booking.time,
                name=appointment.customer.name,
            )
        ]
        if delay is not None:
            texts.append(self._composer.render("reminder_note", ctx.language))
        return TurnOutcome(
            tuple(texts),
            replace(state, phase=Phase.DONE, booking=BookingState()),
            reminder_delay_ms=delay,
            appointment=appointment,
        )

    def _slot_taken(self, state: ConversationState, ctx: TurnContext) -> TurnOutcome:
        booking = state.booking
        text = self._composer.render(
            "slot_taken",
            ctx.language,
            time=booking.time,
            date=self._composer.format_date(booking.date, ctx.language),
        )
        return TurnOutcome(
            (text,),
            replace(state, phase=Phase.COLLECTING_DATE, booking=BookingState(service_key=booking.service_key)),
        )

    # Rendering helpers

    def _phase_prompt(self, state: ConversationState, ctx: TurnContext) -> str:
        phase = state.phase
        booking = state.booking
        if phase in (Phase.GREETING, Phase.COLLECTING_SERVICE):
            return self._ask_service(ctx)
        if phase == Phase.COLLECTING_TIME and booking.date is not None and booking.offered_times:
            return self._composer.render(
                "slots_offer",
                ctx.language,
                date=self._composer.format_date(booking.date, ctx.language),
                slots=self._composer.format_slots(list(booking.offered_times), ctx.language, ctx.channel),
            )
        if phase in (Phase.COLLECTING_DATE, Phase.COLLECTING_TIME):
            return self._composer.render("ask_date", ctx.language)
        if phase == Phase.COLLECTING_CONTACT:
            return self._composer.render("ask_contact", ctx.language)
        if phase == Phase.CONFIRMING:
            if booking.service_key and booking.date is not None and booking.time:
                return self._summary(state, ctx)
            return self._composer.render("confirm_reprompt", ctx.language)
        return self._composer.render("ask_another", ctx.language, services=self._services_list(ctx))

    def _summary(self, state: ConversationState, ctx: TurnContext) -> str:
        booking = state.booking
        details = [
            ("service", self._service_name(booking.service_key, ctx.language)),
            ("date", self._composer.format_date(booking.date, ctx.language)),
            ("time", booking.time),
            ("name", state.customer_name or ""),
        ]
        if state.customer_contact:
            details.append(("contact", state.customer_contact))
        summary = self._composer.render(
            "confirm_summary",
            ctx.language,
            details=self._composer.format_details(details, ctx.language, ctx.channel),
        )
        if self._reminders_enabled and reminder_delay_ms(self._slot_start(booking), ctx.now, self._reminder_lead):
            summary = f"{summary}\n{self._composer.render('reminder_hint', ctx.language)}"
        return summary

    def _ask_service(self, ctx: TurnContext) -> str:
        return self._composer.render("ask_service", ctx.language, services=self._services_list(ctx))

    def _services_list(self, ctx: TurnContext) -> str:
        return self._composer.format_services(self._catalog.list_services(), ctx.language, ctx.channel)

    def _service_name(self, service_key: str | None, language: str) -> str:
        entry = self._catalog.get_service(service_key) if service_key else None
        return entry.display_name(language) if entry else (service_key or "")

    def _slot_start(self, booking: BookingState) -> datetime:
        hour, minute = (int(part) for part in booking.time.split(":"))
        return datetime(
            booking.date.year, booking.date.month, booking.date.day, hour, minute, tzinfo=self._timezone
        )

    def _build_reply(self, outcome: TurnOutcome, ctx: TurnContext) -> EngineReply:
        turn = outcome.state.turn + 1
        messages = tuple(
            Message(
                id=build_message_id(outcome.state.conversation_id, turn, index),
                role=Role.ASSISTANT,
                text=text,
                timestamp=ctx.now + timedelta(milliseconds=index + 1),
            )
            for index, text in enumerate(outcome.texts)
        )
        return EngineReply(
            messages=messages,
            next=replace(outcome.state, turn=turn),
            reminder_delay_ms=outcome.reminder_delay_ms,
            appointment=outcome.appointment,
        )


def _pick_offered(text: str, offered: tuple[str, ...]) -> str | None:
    for candidate in candidate_times(text):
        if candidate in offered:
            return candidate
    return None
