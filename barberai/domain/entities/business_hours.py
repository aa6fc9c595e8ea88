from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time


@dataclass(frozen=True)
class BusinessHours:
    open_hour: int = 10
    close_hour: int = 21
    slot_minutes: int = 60
    closed_weekdays: tuple[int, ...] = (4,)  # date.weekday(), 4 = Friday

    def is_open_on(self, day: date) -> bool:
        return day.weekday() not in self.closed_weekdays

    def slot_template(self) -> list[time]:
        """Start times of every bookable slot in a working day, in order."""
        slots: list[time] = []
        minutes = self.open_hour * 60
        end = self.close_hour * 60
        while minutes + self.slot_minutes <= end:
            slots.append(time(minutes // 60, minutes % 60))
            minutes += self.slot_minutes
        return slots
