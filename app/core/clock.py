"""Clinic-local wall clock used by the scheduling rules."""

from datetime import date, datetime


def now() -> datetime:
    return datetime.now().replace(second=0, microsecond=0)


def today() -> date:
    return now().date()
