from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from barberai.application.exceptions import AppointmentStoreError, ConflictError
from barberai.application.use_cases.availability import available_slots
from barberai.application.use_cases.conversation_engine import ConversationEngine
from barberai.domain.entities.appointment import Appointment, Customer
from barberai.domain.entities.booking_state import BookingState
from barberai.domain.entities.business_hours import BusinessHours
from barberai.domain.entities.channel import Channel
from barberai.domain.entities.conversation_state import ConversationState, Phase, create_initial_state
from barberai.domain.entities.message import Role
from barberai.infrastructure.knowledge.service_catalog_store import ServiceCatalogStore
from barberai.infrastructure.store.memory_appointment_store import MemoryAppointmentStore

TZ = ZoneInfo("Asia/Riyadh")
NOW = datetime(2026, 10, 19, 9, 0, tzinfo=TZ)  # Monday, before opening
TUESDAY = date(2026, 10, 20)


def _engine(store=None, catalog=None, **kwargs):
    store = store if store is not None else MemoryAppointmentStore()
    engine = ConversationEngine(
        appointments=store,
        catalog=catalog or ServiceCatalogStore(),
        hours=BusinessHours(),
        timezone=TZ,
        business_name="Test Barber",
        **kwargs,
    )
    return engine, store


def _texts(reply) -> str:
    return "\n".join(m.text for m in reply.messages)


def _confirming_state(day: date = TUESDAY, time: str = "16:00", language: str = "en") -> ConversationState:
    return ConversationState(
        phase=Phase.CONFIRMING,
        booking=BookingState(service_key="haircut", date=day, time=time, offered_times=(time,)),
        language=language,
        customer_name="Ali",
        customer_contact="0501234567",
        conversation_id="conv_1",
    )


def _fill_day(store: MemoryAppointmentStore, day: date) -> None:
    for index, slot in enumerate(BusinessHours().slot_template()):
        store.save(
            Appointment(
                id=f"full_{index}",
                starts_at=datetime(day.year, day.month, day.day, slot.hour, slot.minute, tzinfo=TZ),
                service="haircut",
                customer=Customer(name="Someone"),
            )
        )


def test_kickoff_greets_and_asks_for_service():
    engine, _ = _engine()
    reply = engine.respond("", create_initial_state(conversation_id="c1"), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_SERVICE
    assert len(reply.messages) >= 1
    assert "Test Barber" in reply.messages[0].text
    assert all(m.role == Role.ASSISTANT for m in reply.messages)
    assert reply.reminder_delay_ms is None


def test_service_recognised_moves_to_date():
    engine, _ = _engine()
    reply = engine.respond("haircut", ConversationState(phase=Phase.COLLECTING_SERVICE), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert reply.next.booking.service_key == "haircut"
    assert "Haircut" in _texts(reply)


def test_fully_booked_date_is_reported():
    engine, store = _engine()
    _fill_day(store, TUESDAY)
    state = ConversationState(phase=Phase.COLLECTING_DATE, booking=BookingState(service_key="haircut"))

    reply = engine.respond("tomorrow", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert "no free slots" in _texts(reply)
    assert reply.next.booking.offered_times == ()


def test_confirming_books_and_schedules_reminder():
    engine, store = _engine()
    now = datetime(2026, 10, 20, 12, 0, tzinfo=TZ)

    reply = engine.respond("yes", _confirming_state(time="16:00"), now=now)

    assert reply.next.phase == Phase.DONE
    assert len(store.load()) == 1
    assert reply.reminder_delay_ms == 3_600_000
    assert reply.appointment is not None
    assert reply.appointment.reminder is True
    assert reply.appointment.starts_at == datetime(2026, 10, 20, 16, 0, tzinfo=TZ)
    assert reply.next.booking == BookingState()
    assert reply.next.customer_name == "Ali"


def test_confirming_in_arabic():
    engine, store = _engine()
    now = datetime(2026, 10, 20, 12, 0, tzinfo=TZ)

    reply = engine.respond("نعم", _confirming_state(time="16:00"), now=now)

    assert reply.next.phase == Phase.DONE
    assert reply.next.language == "ar"
    assert "تم" in _texts(reply)
    assert len(store.load()) == 1


def test_repeated_yes_after_booking_saves_nothing_more():
    engine, store = _engine()
    now = datetime(2026, 10, 20, 12, 0, tzinfo=TZ)

    booked = engine.respond("yes", _confirming_state(time="16:00"), now=now)
    assert len(store.load()) == 1

    again = engine.respond("yes", booked.next, now=now)
    assert again.next.phase == Phase.COLLECTING_SERVICE
    assert again.appointment is None
    assert again.reminder_delay_ms is None

    once_more = engine.respond("yes", again.next, now=now)
    assert once_more.appointment is None
    assert len(store.load()) == 1


def test_cancelling_only_the_reminder_still_books():
    for text, language in (("yes, but cancel the reminder", "en"), ("نعم بس الغي التذكير", "ar")):
        engine, store = _engine()
        now = datetime(2026, 10, 20, 12, 0, tzinfo=TZ)

        reply = engine.respond(text, _confirming_state(time="16:00"), now=now)

        assert reply.next.phase == Phase.DONE
        assert reply.next.language == language
        assert len(store.load()) == 1
        assert reply.appointment.reminder is False
        assert reply.reminder_delay_ms is None


def test_cancel_without_affirmative_restarts_from_confirming():
    engine, store = _engine()
    reply = engine.respond("cancel", _confirming_state(), now=NOW)

    assert reply.next.phase == Phase.GREETING
    assert reply.next.booking == BookingState()
    assert store.load() == []


def test_contact_step_ignores_confirmation_and_day_words():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_CONTACT,
        booking=BookingState(service_key="haircut", date=TUESDAY, time="16:00", offered_times=("16:00",)),
    )

    reply = engine.respond("ok", state, now=NOW)
    assert reply.next.phase == Phase.COLLECTING_CONTACT
    assert reply.next.customer_name is None

    reply = engine.respond("Ali, tomorrow 0501234567", reply.next, now=NOW)
    assert reply.next.phase == Phase.CONFIRMING
    assert reply.next.customer_name == "Ali"
    assert reply.next.customer_contact == "0501234567"


def test_unrecognised_service_reprompts_in_same_phase():
    engine, _ = _engine()
    state = ConversationState(phase=Phase.COLLECTING_SERVICE)
    for text in ("blah", "what is the weather like", "١٢٣", "مرحبا كيف الحال", "?!"):
        reply = engine.respond(text, state, now=NOW)
        assert reply.next.phase == Phase.COLLECTING_SERVICE
        assert len(reply.messages) >= 1


def test_greeting_phase_without_service():
    engine, _ = _engine()
    reply = engine.respond("hello", create_initial_state(), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_SERVICE
    assert len(reply.messages) == 2


def test_greeting_phase_with_service_and_date():
    engine, _ = _engine()
    reply = engine.respond("I want a haircut tomorrow", create_initial_state(), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_TIME
    assert reply.next.booking.date == TUESDAY
    assert reply.next.booking.offered_times[0] == "10:00"
    assert len(reply.messages) == 3


def test_full_booking_in_english():
    engine, store = _engine()
    state = create_initial_state(conversation_id="conv_en")
    for text in ("", "haircut", "tomorrow", "5pm", "Ali 0501234567"):
        reply = engine.respond(text, state, now=NOW)
        state = reply.next

    assert state.phase == Phase.CONFIRMING
    assert state.customer_name == "Ali"
    assert state.customer_contact == "0501234567"
    assert "17:00" in _texts(reply)

    reply = engine.respond("yes", state, now=NOW)
    assert reply.next.phase == Phase.DONE
    # Tuesday 17:00 minus 3h, measured from Monday 09:00
    assert reply.reminder_delay_ms == int(timedelta(hours=29).total_seconds() * 1000)

    free = available_slots(TUESDAY, store.load(), BusinessHours(), TZ)
    assert all(slot.hour != 17 for slot in free)


def test_full_booking_in_arabic():
    engine, store = _engine()
    state = create_initial_state(conversation_id="conv_ar")
    reply = engine.respond("", state, now=NOW)
    state = reply.next

    reply = engine.respond("أبي قص شعر بكرة", state, now=NOW)
    assert reply.next.phase == Phase.COLLECTING_TIME
    assert reply.next.language == "ar"
    assert "المواعيد المتاحة" in _texts(reply)

    reply = engine.respond("الساعة 5 المساء", reply.next, now=NOW)
    assert reply.next.phase == Phase.COLLECTING_CONTACT
    assert reply.next.booking.time == "17:00"

    reply = engine.respond("اسمي أحمد", reply.next, now=NOW)
    assert reply.next.phase == Phase.CONFIRMING
    assert reply.next.customer_name == "أحمد"

    reply = engine.respond("نعم", reply.next, now=NOW)
    assert reply.next.phase == Phase.DONE
    assert store.load()[0].customer.name == "أحمد"


def test_language_follows_latest_message():
    engine, _ = _engine()
    state = ConversationState(phase=Phase.COLLECTING_SERVICE, language="ar")
    reply = engine.respond("haircut", state, now=NOW)

    assert reply.next.language == "en"
    assert "Great choice" in _texts(reply)


def test_text_without_letters_keeps_language():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_TIME,
        booking=BookingState(service_key="haircut", date=TUESDAY, offered_times=("16:00", "17:00")),
        language="ar",
    )
    reply = engine.respond("17:00", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_CONTACT
    assert reply.next.language == "ar"
    assert "اسم" in _texts(reply)


def test_time_not_offered_is_rejected():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_TIME,
        booking=BookingState(service_key="haircut", date=TUESDAY, offered_times=("10:00", "11:00")),
    )
    reply = engine.respond("3pm", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_TIME
    assert reply.next.booking.offered_times == ("10:00", "11:00")
    assert "10:00" in _texts(reply)


def test_bare_hour_matches_afternoon_slot():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_TIME,
        booking=BookingState(service_key="haircut", date=TUESDAY, offered_times=("15:00",)),
        customer_name="Ali",
    )
    reply = engine.respond("3", state, now=NOW)

    assert reply.next.phase == Phase.CONFIRMING
    assert reply.next.booking.time == "15:00"


def test_new_date_during_time_selection():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_TIME,
        booking=BookingState(service_key="haircut", date=TUESDAY, offered_times=("10:00",)),
    )
    reply = engine.respond("saturday instead", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_TIME
    assert reply.next.booking.date == date(2026, 10, 24)
    assert len(reply.next.booking.offered_times) == 11


def test_closed_day():
    engine, _ = _engine()
    state = ConversationState(phase=Phase.COLLECTING_DATE, booking=BookingState(service_key="haircut"))
    reply = engine.respond("friday", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert "closed" in _texts(reply)


def test_past_times_today_are_not_offered():
    engine, _ = _engine()
    late = datetime(2026, 10, 19, 20, 30, tzinfo=TZ)
    state = ConversationState(phase=Phase.COLLECTING_DATE, booking=BookingState(service_key="haircut"))
    reply = engine.respond("today", state, now=late)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert "no free slots" in _texts(reply)


def test_unparsable_date():
    engine, _ = _engine()
    state = ConversationState(phase=Phase.COLLECTING_DATE, booking=BookingState(service_key="haircut"))
    reply = engine.respond("whenever", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert len(reply.messages) == 1


def test_contact_requires_a_name():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_CONTACT,
        booking=BookingState(service_key="haircut", date=TUESDAY, time="16:00", offered_times=("16:00",)),
    )
    reply = engine.respond("0501234567", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_CONTACT
    assert reply.next.customer_contact == "0501234567"

    reply = engine.respond("Ali", reply.next, now=NOW)
    assert reply.next.phase == Phase.CONFIRMING
    assert reply.next.customer_contact == "0501234567"


def test_whatsapp_contact_is_seeded_and_formatting_applies():
    engine, _ = _engine()
    state = replace(
        create_initial_state(Channel.WHATSAPP, "wa_1", "+966500000000"),
        phase=Phase.COLLECTING_CONTACT,
        booking=BookingState(service_key="haircut", date=TUESDAY, time="16:00", offered_times=("16:00",)),
    )
    reply = engine.respond("Omar", state, now=NOW)

    assert reply.next.phase == Phase.CONFIRMING
    assert "*Phone:* +966500000000" in _texts(reply)
    assert "*Name:* Omar" in _texts(reply)


def test_channel_changes_formatting_only():
    engine, _ = _engine()
    state = ConversationState(phase=Phase.COLLECTING_DATE, booking=BookingState(service_key="haircut"))
    website = engine.respond("tomorrow", state, channel=Channel.WEBSITE, now=NOW)
    whatsapp = engine.respond("tomorrow", state, channel=Channel.WHATSAPP, now=NOW)

    assert website.next.phase == whatsapp.next.phase == Phase.COLLECTING_TIME
    assert website.next.booking == whatsapp.next.booking
    assert "▪️ *10:00*" in _texts(whatsapp)
    assert "• 10:00, 11:00" in _texts(website)
    assert whatsapp.next.channel == Channel.WHATSAPP


def test_negative_confirmation_discards_booking():
    engine, store = _engine()
    reply = engine.respond("no", _confirming_state(), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_SERVICE
    assert reply.next.booking == BookingState()
    assert store.load() == []


def test_unclear_confirmation_reprompts():
    engine, store = _engine()
    state = _confirming_state()
    reply = engine.respond("hmm maybe", state, now=NOW)

    assert reply.next.phase == Phase.CONFIRMING
    assert reply.next.booking == state.booking
    assert store.load() == []


def test_reminder_opt_out():
    engine, store = _engine()
    reply = engine.respond("yes, no reminder", _confirming_state(), now=NOW)

    assert reply.next.phase == Phase.DONE
    assert reply.reminder_delay_ms is None
    assert store.load()[0].reminder is False


def test_reminders_disabled():
    engine, store = _engine(reminders_enabled=False)
    reply = engine.respond("yes", _confirming_state(), now=NOW)

    assert reply.reminder_delay_ms is None
    assert store.load()[0].reminder is False


def test_appointment_inside_lead_time_has_no_delay():
    engine, store = _engine()
    now = datetime(2026, 10, 20, 14, 0, tzinfo=TZ)
    reply = engine.respond("yes", _confirming_state(time="16:00"), now=now)

    assert reply.next.phase == Phase.DONE
    assert reply.reminder_delay_ms is None
    assert store.load()[0].reminder is True


class _RacingStore(MemoryAppointmentStore):
    def save(self, appointment: Appointment) -> None:
        raise ConflictError("taken")


class _BrokenStore(MemoryAppointmentStore):
    def save(self, appointment: Appointment) -> None:
        raise AppointmentStoreError("disk full")


def test_conflict_on_save_returns_to_date():
    engine, store = _engine(store=_RacingStore())
    reply = engine.respond("yes", _confirming_state(), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert reply.next.booking == BookingState(service_key="haircut")
    assert "just taken" in _texts(reply)
    assert reply.appointment is None


def test_failed_recheck_returns_to_date():
    engine, store = _engine()
    store.save(
        Appointment(
            id="other",
            starts_at=datetime(2026, 10, 20, 16, 0, tzinfo=TZ),
            service="shave",
            customer=Customer(name="Omar"),
        )
    )
    reply = engine.respond("yes", _confirming_state(time="16:00"), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert len(store.load()) == 1


def test_store_failure_keeps_phase():
    engine, _ = _engine(store=_BrokenStore())
    reply = engine.respond("yes", _confirming_state(), now=NOW)

    assert reply.next.phase == Phase.CONFIRMING
    assert "couldn't save" in _texts(reply)


def test_done_starts_a_new_booking():
    engine, _ = _engine()
    done = ConversationState(phase=Phase.DONE, customer_name="Ali", customer_contact="0501234567")

    reply = engine.respond("beard trim please", done, now=NOW)
    assert reply.next.phase == Phase.COLLECTING_DATE
    assert reply.next.booking.service_key == "beard_trim"
    assert reply.next.customer_name == "Ali"

    reply = engine.respond("thanks", done, now=NOW)
    assert reply.next.phase == Phase.COLLECTING_SERVICE
    assert "another" in _texts(reply)


def test_returning_customer_skips_contact_step():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_TIME,
        booking=BookingState(service_key="haircut", date=TUESDAY, offered_times=("16:00",)),
        customer_name="Ali",
    )
    reply = engine.respond("4pm", state, now=NOW)
    assert reply.next.phase == Phase.CONFIRMING


def test_restart_from_any_phase():
    engine, _ = _engine()
    state = ConversationState(
        phase=Phase.COLLECTING_TIME,
        booking=BookingState(service_key="haircut", date=TUESDAY, offered_times=("16:00",)),
        customer_name="Ali",
    )
    reply = engine.respond("start over", state, now=NOW)
    assert reply.next.phase == Phase.GREETING
    assert reply.next.booking == BookingState()

    reply = engine.respond("ابدأ من جديد", _confirming_state(), now=NOW)
    assert reply.next.phase == Phase.GREETING
    assert reply.next.language == "ar"


def test_kickoff_resumes_current_phase():
    engine, _ = _engine()
    state = ConversationState(phase=Phase.COLLECTING_DATE, booking=BookingState(service_key="haircut"))
    reply = engine.respond("", state, now=NOW)

    assert reply.next.phase == Phase.COLLECTING_DATE
    assert len(reply.messages) == 1


class _ExplodingCatalog(ServiceCatalogStore):
    def match_service(self, text: str):
        raise RuntimeError("boom")


def test_handler_errors_become_reprompts():
    engine, _ = _engine(catalog=_ExplodingCatalog())
    reply = engine.respond("haircut", ConversationState(phase=Phase.COLLECTING_SERVICE), now=NOW)

    assert reply.next.phase == Phase.COLLECTING_SERVICE
    assert "went wrong" in reply.messages[0].text
    assert len(reply.messages) == 2


def test_replaying_a_trace_is_deterministic():
    trace = ("", "hi", "haircut", "tomorrow", "5pm", "Ali", "yes")

    def run():
        engine, _ = _engine()
        state = create_initial_state(conversation_id="replay")
        log = []
        for text in trace:
            reply = engine.respond(text, state, now=NOW)
            log.extend((m.id, m.text, m.timestamp) for m in reply.messages)
            state = reply.next
        return log, state

    assert run() == run()


def test_messages_are_stamped_after_now_and_ids_are_unique():
    engine, _ = _engine()
    state = create_initial_state(conversation_id="stamps")
    seen: set[str] = set()
    for text in ("", "haircut tomorrow"):
        reply = engine.respond(text, state, now=NOW)
        timestamps = [m.timestamp for m in reply.messages]
        assert all(ts > NOW for ts in timestamps)
        assert timestamps == sorted(timestamps)
        for message in reply.messages:
            assert message.id not in seen
            seen.add(message.id)
        state = reply.next
    assert state.turn == 2


def test_naive_now_is_business_time():
    engine, _ = _engine()
    assert engine.localize(datetime(2026, 10, 19, 9, 0)) == NOW
