"""
Slot Enumeration

Turns free working windows into bookable start times.
"""

from typing import Dict, Hashable, Iterable, List, Optional, Tuple

from app.domain.scheduling.intervals import Interval, normalize


def round_up(minutes: int, step: int) -> int:
    """Round a minute offset up to the next multiple of ``step``"""
    return -(-minutes // step) * step


def is_peak(start_minutes: int, peak_start_hour: int, peak_end_hour: int) -> bool:
    return peak_start_hour <= start_minutes // 60 < peak_end_hour


def generate_slots(
    windows: Iterable[Interval],
    duration: int,
    step: int,
    booked: Iterable[Interval] = (),
    not_before: Optional[int] = None
) -> List[int]:
    """
    Candidate start minutes for a booking of ``duration`` minutes.

    Starts are stepped from each window's opening; a candidate survives
    when it fits the window, misses every booked interval and, if
    ``not_before`` is given, starts strictly after it.
    """
    if duration <= 0 or step <= 0:
        raise ValueError("Duration and step must be positive")

    booked = list(booked)
    starts = set()
    for window in normalize(windows):
        start = window.start
        while start + duration <= window.end:
            candidate = Interval(start, start + duration)
            if not_before is not None and start <= not_before:
                start += step
                continue
            if not any(candidate.overlaps(block) for block in booked):
                starts.add(start)
            start += step
    return sorted(starts)


def merge_by_time(per_key: Dict[Hashable, List[int]]) -> List[Tuple[int, List[Hashable]]]:
    """Group start minutes of several dentists into ``(start, [keys])`` ordered by start"""
    grouped: Dict[int, List[Hashable]] = {}
    for key, starts in per_key.items():
        for start in starts:
            grouped.setdefault(start, []).append(key)
    return [(start, grouped[start]) for start in sorted(grouped)]


def next_after_last_booking(
    open_minutes: int,
    close_minutes: int,
    booked: Iterable[Interval],
    duration: int,
    step: int,
    not_before: Optional[int] = None
) -> Optional[int]:
    """First start after the latest booked end, or None if it no longer fits the day"""
    ends = [interval.end for interval in booked]
    candidate = max([open_minutes] + ends)
    if not_before is not None:
        candidate = max(candidate, round_up(not_before + 1, step))
    if candidate + duration > close_minutes:
        return None
    return candidate
