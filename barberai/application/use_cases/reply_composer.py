from __future__ import annotations

from datetime import date, time

from barberai.domain.entities.channel import Channel
from barberai.domain.entities.service_catalog import ServiceCatalogEntry


TEMPLATES: dict[str, dict[str, str]] = {
    "greeting": {
        "en": "Hello, welcome to {business}! 💈 I can book your next appointment.",
        "ar": "أهلاً وسهلاً في {business}! 💈 يسعدني أحجز لك موعدك.",
    },
    "ask_service": {
        "en": "Which service would you like?\n{services}",
        "ar": "أي خدمة تحب تحجز؟\n{services}",
    },
    "service_not_recognized": {
        "en": "Sorry, I didn't catch which service you need. We offer:\n{services}\nWhich one would you like?",
        "ar": "عذراً، ما فهمت الخدمة المطلوبة. خدماتنا:\n{services}\nأي وحدة تناسبك؟",
    },
    "ask_another": {
        "en": "Would you like to book another appointment? Just tell me the service:\n{services}",
        "ar": "تحب تحجز موعد ثاني؟ اكتب لي الخدمة:\n{services}",
    },
    "service_ack": {
        "en": "Great choice: {service}.",
        "ar": "اختيار ممتاز: {service}.",
    },
    "service_ack_ask_date": {
        "en": "Great choice: {service}. Which day suits you? (for example today, tomorrow, Saturday or 25/10)",
        "ar": "اختيار ممتاز: {service}. أي يوم يناسبك؟ (مثلاً اليوم، بكرة، السبت أو 25/10)",
    },
    "ask_date": {
        "en": "Which day suits you? (for example today, tomorrow, Saturday or 25/10)",
        "ar": "أي يوم يناسبك؟ (مثلاً اليوم، بكرة، السبت أو 25/10)",
    },
    "date_not_recognized": {
        "en": "I couldn't work out the day. Try \"tomorrow\", a weekday like \"Saturday\" or a date like 25/10.",
        "ar": "ما قدرت أحدد اليوم. جرّب \"بكرة\" أو اسم يوم مثل \"السبت\" أو تاريخ مثل 25/10.",
    },
    "closed_day": {
        "en": "We're closed on {date}. Please pick another day.",
        "ar": "المحل مغلق يوم {date}. اختر يوم ثاني من فضلك.",
    },
    "no_slots": {
        "en": "Sorry, there are no free slots left on {date}. Please pick another day.",
        "ar": "عذراً، ما في مواعيد متاحة يوم {date}. اختر يوم ثاني من فضلك.",
    },
    "slots_offer": {
        "en": "Free times on {date}:\n{slots}\nWhich time works for you?",
        "ar": "المواعيد المتاحة يوم {date}:\n{slots}\nأي وقت يناسبك؟",
    },
    "time_not_offered": {
        "en": "That time isn't available on {date}. Please choose one of these:\n{slots}",
        "ar": "هذا الوقت غير متاح يوم {date}. اختر واحد من هذه المواعيد:\n{slots}",
    },
    "ask_contact": {
        "en": "Almost done! What name should I book under? You can add your phone number too.",
        "ar": "باقي خطوة! على أي اسم أسجل الحجز؟ وتقدر تضيف رقم جوالك.",
    },
    "contact_not_recognized": {
        "en": "Please send your name, and your phone number if you like (for example: Ali 0501234567).",
        "ar": "أرسل اسمك من فضلك، ورقم جوالك إذا حاب (مثال: علي 0501234567).",
    },
    "confirm_summary": {
        "en": "Please confirm your booking:\n{details}\nReply yes to confirm or no to change it.",
        "ar": "أكد حجزك من فضلك:\n{details}\nرد بـ نعم للتأكيد أو لا للتعديل.",
    },
    "reminder_hint": {
        "en": "I'll send you a reminder {lead} hours before. Say \"no reminder\" if you'd rather not get one.",
        "ar": "راح أرسل لك تذكير قبل الموعد بـ {lead} ساعات. اكتب \"بدون تذكير\" إذا ما تبيه.",
    },
    "confirm_reprompt": {
        "en": "Shall I confirm this booking? Please reply yes or no.",
        "ar": "أأكد الحجز؟ رد بـ نعم أو لا من فضلك.",
    },
    "booked": {
        "en": "Done! Your {service} is booked for {date} at {time}. See you soon, {name}!",
        "ar": "تم! حجزنا لك {service} يوم {date} الساعة {time}. نشوفك قريب يا {name}!",
    },
    "reminder_note": {
        "en": "I'll remind you {lead} hours before your appointment.",
        "ar": "راح أذكرك قبل موعدك بـ {lead} ساعات.",
    },
    "booking_discarded": {
        "en": "No problem, I've cancelled that booking request.",
        "ar": "ولا يهمك، ألغيت طلب الحجز.",
    },
    "slot_taken": {
        "en": "Sorry, {time} on {date} was just taken by someone else. Which day would you like instead?",
        "ar": "عذراً، موعد الساعة {time} يوم {date} انحجز للتو. أي يوم ثاني يناسبك؟",
    },
    "store_failed": {
        "en": "Sorry, I couldn't save your booking just now. Please reply yes to try again.",
        "ar": "عذراً، ما قدرت أحفظ الحجز الآن. رد بـ نعم عشان نحاول مرة ثانية.",
    },
    "restart": {
        "en": "Okay, let's start over.",
        "ar": "تمام، نبدأ من جديد.",
    },
    "fallback": {
        "en": "Sorry, something went wrong on my side.",
        "ar": "عذراً، صار خطأ عندي.",
    },
    "reminder": {
        "en": "Reminder: your {service} appointment at {business} is on {date} at {time}. See you soon!",
        "ar": "تذكير: موعدك لـ {service} في {business} يوم {date} الساعة {time}. بانتظارك!",
    },
}

LABELS: dict[str, dict[str, str]] = {
    "service": {"en": "Service", "ar": "الخدمة"},
    "date": {"en": "Date", "ar": "التاريخ"},
    "time": {"en": "Time", "ar": "الوقت"},
    "name": {"en": "Name", "ar": "الاسم"},
    "contact": {"en": "Phone", "ar": "الجوال"},
    "currency": {"en": "SAR", "ar": "ريال"},
}

WEEKDAYS = {
    "en": ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
    "ar": ("الاثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت", "الأحد"),
}

MONTHS = {
    "en": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    "ar": (
        "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
        "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
    ),
}


class ReplyComposer:
    """Bilingual reply rendering. Channel only changes markup, never wording."""

    def __init__(self, business_name: str, reminder_lead_hours: int = 3) -> None:
        self._business_name = business_name
        self._reminder_lead_hours = reminder_lead_hours

    def render(self, key: str, language: str, **params: object) -> str:
        template = TEMPLATES[key][_lang(language)]
        return template.format(business=self._business_name, lead=self._reminder_lead_hours, **params)

    def format_date(self, day: date, language: str) -> str:
        lang = _lang(language)
        return f"{WEEKDAYS[lang][day.weekday()]} {day.day} {MONTHS[lang][day.month - 1]}"

    def format_slots(self, slots: list[str], language: str, channel: Channel) -> str:
        if channel == Channel.WHATSAPP:
            return "\n".join(f"▪️ *{slot}*" for slot in slots)
        separator = "، " if _lang(language) == "ar" else ", "
        return "• " + separator.join(slots)

    def format_services(self, services: list[ServiceCatalogEntry], language: str, channel: Channel) -> str:
        lang = _lang(language)
        lines = []
        for entry in services:
            name = entry.display_name(lang)
            if channel == Channel.WHATSAPP:
                name = f"*{name}*"
            price = f" ({entry.price} {LABELS['currency'][lang]})" if entry.price is not None else ""
            bullet = "▪️" if channel == Channel.WHATSAPP else "•"
            lines.append(f"{bullet} {name}{price}")
        return "\n".join(lines)

    def format_details(self, details: list[tuple[str, str]], language: str, channel: Channel) -> str:
        """Booking summary lines from (label key, value) pairs."""
        lang = _lang(language)
        lines = []
        for label_key, value in details:
            label = LABELS[label_key][lang]
            if channel == Channel.WHATSAPP:
                lines.append(f"*{label}:* {value}")
            else:
                lines.append(f"• {label}: {value}")
        return "\n".join(lines)

    def reminder_text(self, service: str, day: date, slot: time, language: str) -> str:
        """Plain-text notification payload, no channel markup."""
        return self.render(
            "reminder",
            language,
            service=service,
            date=self.format_date(day, language),
            time=f"{slot.hour:02d}:{slot.minute:02d}",
        )


def _lang(language: str | None) -> str:
    return "ar" if language == "ar" else "en"
