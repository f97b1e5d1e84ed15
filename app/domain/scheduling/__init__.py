# Scheduling engine: pure interval, slot and recurrence logic
from app.domain.scheduling.intervals import (
    MINUTES_PER_DAY,
    Interval,
    find_overlaps,
    format_hhmm,
    from_minutes,
    intersect,
    normalize,
    overlaps,
    parse_hhmm,
    subtract,
    to_minutes,
)
from app.domain.scheduling.slots import (
    generate_slots,
    is_peak,
    merge_by_time,
    next_after_last_booking,
    round_up,
)
from app.domain.scheduling.recurrence import RecurrenceRule, first_common_date

__all__ = [
    "MINUTES_PER_DAY",
    "Interval",
    "RecurrenceRule",
    "find_overlaps",
    "first_common_date",
    "format_hhmm",
    "from_minutes",
    "generate_slots",
    "intersect",
    "is_peak",
    "merge_by_time",
    "next_after_last_booking",
    "normalize",
    "overlaps",
    "parse_hhmm",
    "round_up",
    "subtract",
    "to_minutes",
]
