"""
Time Interval Primitives

Minute-of-day arithmetic for the scheduling rules. Every interval is
half-open, ``[start, end)``, so back-to-back bookings do not collide.
"""

from dataclasses import dataclass
from datetime import time
from typing import Callable, Iterable, List, Optional, TypeVar
import re

MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

T = TypeVar("T")


def to_minutes(value: time) -> int:
    """Minutes elapsed since midnight"""
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    """Inverse of to_minutes for values inside a single day"""
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def parse_hhmm(value: str) -> time:
    """Parse a 24h ``HH:MM`` string"""
    match = _HHMM_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid time format '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value) -> str:
    """Format a time or a minute offset as ``HH:MM``; 1440 renders as 24:00"""
    minutes = to_minutes(value) if isinstance(value, time) else int(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True, order=True)
class Interval:
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end > MINUTES_PER_DAY:
            raise ValueError("Interval must lie within a single day")
        if self.end <= self.start:
            raise ValueError("Interval end must be after its start")

    @classmethod
    def from_times(cls, start: time, end: time) -> "Interval":
        return cls(to_minutes(start), to_minutes(end))

    @classmethod
    def from_duration(cls, start: time, duration_minutes: int) -> "Interval":
        begin = to_minutes(start)
        return cls(begin, begin + duration_minutes)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def label(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and b_start < a_end


def find_overlaps(
    target: Interval,
    items: Iterable[T],
    key: Optional[Callable[[T], Interval]] = None
) -> List[T]:
    """Items whose interval overlaps ``target``, in input order"""
    key = key or (lambda item: item)
    return [item for item in items if target.overlaps(key(item))]


def normalize(windows: Iterable[Interval]) -> List[Interval]:
    """Sort and merge overlapping or touching windows"""
    merged: List[Interval] = []
    for window in sorted(windows):
        if merged and window.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, window.end))
        else:
            merged.append(window)
    return merged


def intersect(
    windows_a: Iterable[Interval],
    windows_b: Iterable[Interval]
) -> List[Interval]:
    """Pairwise intersection of two window sets"""
    result = []
    windows_b = list(windows_b)
    for a in windows_a:
        for b in windows_b:
            start, end = max(a.start, b.start), min(a.end, b.end)
            if start < end:
                result.append(Interval(start, end))
    return normalize(result)


def subtract(
    windows: Iterable[Interval],
    blocked: Iterable[Interval]
) -> List[Interval]:
    """Remove every blocked interval from the windows"""
    remaining = normalize(windows)
    for block in normalize(blocked):
        pieces = []
        for window in remaining:
            if not window.overlaps(block):
                pieces.append(window)
                continue
            if window.start < block.start:
                pieces.append(Interval(window.start, block.start))
            if block.end < window.end:
                pieces.append(Interval(block.end, window.end))
        remaining = pieces
    return remaining
