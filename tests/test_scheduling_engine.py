import pytest
from datetime import date, time

from app.domain.scheduling import (
    Interval, RecurrenceRule, find_overlaps, first_common_date, format_hhmm,
    from_minutes, generate_slots, intersect, is_peak, merge_by_time,
    next_after_last_booking, normalize, parse_hhmm, round_up, subtract, to_minutes
)


@pytest.mark.unit
class TestIntervals:
    """Half-open minute-of-day intervals."""

    def test_minutes_conversion(self):
        assert to_minutes(time(9, 30)) == 570
        assert from_minutes(570) == time(9, 30)
        with pytest.raises(ValueError):
            from_minutes(24 * 60)

    def test_parse_and_format(self):
        assert parse_hhmm("07:05") == time(7, 5)
        assert format_hhmm(time(14, 0)) == "14:00"
        assert format_hhmm(1440) == "24:00"
        for bad in ("7:05", "24:00", "12:60", ""):
            with pytest.raises(ValueError):
                parse_hhmm(bad)

    def test_back_to_back_intervals_do_not_overlap(self):
        first = Interval.from_duration(time(9, 0), 30)
        second = Interval.from_duration(time(9, 30), 30)
        assert not first.overlaps(second)
        assert not second.overlaps(first)

    def test_partial_and_nested_overlap(self):
        booked = Interval(600, 660)
        assert Interval(630, 690).overlaps(booked)
        assert Interval(610, 620).overlaps(booked)
        assert Interval(570, 720).overlaps(booked)

    def test_invalid_intervals_rejected(self):
        with pytest.raises(ValueError):
            Interval(600, 600)
        with pytest.raises(ValueError):
            Interval(1430, 1450)

    def test_find_overlaps_keeps_input_order(self):
        items = [Interval(540, 570), Interval(600, 660), Interval(650, 700)]
        assert find_overlaps(Interval(640, 655), items) == [Interval(600, 660), Interval(650, 700)]

    def test_normalize_merges_touching_windows(self):
        merged = normalize([Interval(780, 1020), Interval(540, 720), Interval(720, 780)])
        assert merged == [Interval(540, 1020)]

    def test_subtract_break_splits_window(self):
        remaining = subtract([Interval(540, 1020)], [Interval(720, 780)])
        assert remaining == [Interval(540, 720), Interval(780, 1020)]

    def test_intersect_clips_to_opening_hours(self):
        clipped = intersect([Interval(480, 1080)], [Interval(540, 1020)])
        assert clipped == [Interval(540, 1020)]
        assert intersect([Interval(480, 540)], [Interval(540, 1020)]) == []


@pytest.mark.unit
class TestSlotEnumeration:
    """Candidate start times inside free windows."""

    def test_slots_step_from_window_opening(self):
        slots = generate_slots([Interval(540, 660)], duration=30, step=30)
        assert slots == [540, 570, 600, 630]

    def test_slot_must_fit_window(self):
        assert generate_slots([Interval(540, 600)], duration=45, step=30) == [540]

    def test_booked_interval_removes_overlapping_starts(self):
        slots = generate_slots([Interval(540, 660)], 30, 30, booked=[Interval(570, 600)])
        assert slots == [540, 600, 630]

    def test_not_before_is_exclusive(self):
        slots = generate_slots([Interval(540, 660)], 30, 30, not_before=570)
        assert slots == [600, 630]

    def test_invalid_duration_rejected(self):
        with pytest.raises(ValueError):
            generate_slots([Interval(540, 660)], 0, 30)

    def test_merge_by_time_groups_dentists(self):
        merged = merge_by_time({"adams": [540, 570], "brown": [570, 600]})
        assert merged == [(540, ["adams"]), (570, ["adams", "brown"]), (600, ["brown"])]

    def test_peak_hours(self):
        assert is_peak(600, 10, 14)
        assert not is_peak(840, 10, 14)
        assert not is_peak(570, 10, 14)

    def test_round_up(self):
        assert round_up(571, 30) == 600
        assert round_up(600, 30) == 600


@pytest.mark.unit
class TestNextAfterLastBooking:

    def test_empty_day_starts_at_opening(self):
        assert next_after_last_booking(540, 1020, [], 30, 30) == 540

    def test_starts_at_latest_booking_end(self):
        booked = [Interval(540, 600), Interval(660, 705)]
        assert next_after_last_booking(540, 1020, booked, 30, 30) == 705

    def test_none_when_no_room_left(self):
        assert next_after_last_booking(540, 1020, [Interval(960, 1000)], 30, 30) is None

    def test_respects_current_time(self):
        assert next_after_last_booking(540, 1020, [], 30, 30, not_before=610) == 630


@pytest.mark.unit
class TestRecurrence:
    """Daily, weekly and monthly shift patterns."""

    def test_one_off_occurs_only_on_anchor(self):
        rule = RecurrenceRule(anchor=date(2030, 1, 7))
        assert rule.occurs_on(date(2030, 1, 7))
        assert not rule.occurs_on(date(2030, 1, 14))

    def test_weekly_days_of_week(self):
        rule = RecurrenceRule(
            anchor=date(2030, 1, 7), is_recurring=True, frequency="WEEKLY", days_of_week=(0, 2)
        )
        dates = list(rule.dates_between(date(2030, 1, 7), date(2030, 1, 16)))
        assert dates == [date(2030, 1, 7), date(2030, 1, 9), date(2030, 1, 14), date(2030, 1, 16)]

    def test_monthly_uses_anchor_day(self):
        rule = RecurrenceRule(anchor=date(2030, 1, 31), is_recurring=True, frequency="MONTHLY")
        dates = list(rule.dates_between(date(2030, 1, 1), date(2030, 4, 30)))
        assert dates == [date(2030, 1, 31), date(2030, 3, 31)]

    def test_end_date_bounds_daily_rule(self):
        rule = RecurrenceRule(
            anchor=date(2030, 1, 7), is_recurring=True, frequency="DAILY", end_date=date(2030, 1, 9)
        )
        assert not rule.occurs_on(date(2030, 1, 10))
        assert len(list(rule.dates_between(date(2030, 1, 1), date(2030, 2, 1)))) == 3

    def test_first_common_date_of_recurring_and_one_off(self):
        weekly = RecurrenceRule(
            anchor=date(2030, 1, 7), is_recurring=True, frequency="WEEKLY", days_of_week=(3,)
        )
        one_off = RecurrenceRule(anchor=date(2030, 1, 24))
        assert first_common_date(weekly, one_off, 180) == date(2030, 1, 24)

    def test_disjoint_weekdays_never_meet(self):
        mondays = RecurrenceRule(
            anchor=date(2030, 1, 7), is_recurring=True, frequency="WEEKLY", days_of_week=(0,)
        )
        tuesdays = RecurrenceRule(
            anchor=date(2030, 1, 8), is_recurring=True, frequency="WEEKLY", days_of_week=(1,)
        )
        assert first_common_date(mondays, tuesdays, 180) is None

    def test_horizon_limits_search(self):
        month_end = RecurrenceRule(anchor=date(2030, 1, 31), is_recurring=True, frequency="MONTHLY")
        fridays = RecurrenceRule(
            anchor=date(2030, 1, 7), is_recurring=True, frequency="WEEKLY", days_of_week=(4,)
        )
        assert first_common_date(month_end, fridays, 30) is None
        assert first_common_date(month_end, fridays, 180) == date(2030, 5, 31)
