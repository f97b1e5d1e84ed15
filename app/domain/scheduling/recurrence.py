"""
Recurring Shift Expansion

Daily, weekly and monthly patterns anchored on a shift's first date.
Weekdays follow Python's ``date.weekday()``: 0=Monday, 6=Sunday.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator, Optional, Tuple

DAILY = "DAILY"
WEEKLY = "WEEKLY"
MONTHLY = "MONTHLY"


@dataclass(frozen=True)
class RecurrenceRule:
    anchor: date
    is_recurring: bool = False
    frequency: Optional[str] = None
    days_of_week: Tuple[int, ...] = field(default_factory=tuple)
    end_date: Optional[date] = None

    @property
    def last_date(self) -> Optional[date]:
        """Final possible occurrence, None when open-ended"""
        if not self.is_recurring:
            return self.anchor
        return self.end_date

    def occurs_on(self, day: date) -> bool:
        if day < self.anchor:
            return False
        if not self.is_recurring:
            return day == self.anchor
        if self.end_date and day > self.end_date:
            return False

        if self.frequency == DAILY:
            return True
        if self.frequency == WEEKLY:
            weekdays = self.days_of_week or (self.anchor.weekday(),)
            return day.weekday() in weekdays
        if self.frequency == MONTHLY:
            return day.day == self.anchor.day
        return day == self.anchor

    def dates_between(self, start: date, end: date) -> Iterator[date]:
        """Occurrences inside ``[start, end]``"""
        day = max(start, self.anchor)
        last = self.last_date
        if last is not None:
            end = min(end, last)
        while day <= end:
            if self.occurs_on(day):
                yield day
            day += timedelta(days=1)


def first_common_date(
    rule_a: RecurrenceRule,
    rule_b: RecurrenceRule,
    horizon_days: int
) -> Optional[date]:
    """Earliest date on which both rules produce an occurrence"""
    start = max(rule_a.anchor, rule_b.anchor)
    limits = [start + timedelta(days=horizon_days)]
    limits.extend(d for d in (rule_a.last_date, rule_b.last_date) if d is not None)
    end = min(limits)

    for day in rule_a.dates_between(start, end):
        if rule_b.occurs_on(day):
            return day
    return None
