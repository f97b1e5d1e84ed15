"""
Staff Scheduling Service Layer

Shift assignment for dentists and support staff. Recurring shifts are
expanded on demand; two shifts of the same person conflict when some date
hosts both and their time windows overlap.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import date
from collections import defaultdict
import logging
import uuid

from app.core.config import settings
from app.core.exceptions import (
    NotFoundError, BusinessLogicError, ValidationError, SchedulingConflictError
)
from app.domain.auth.repository import UserRepository
from app.domain.clinics.service import ClinicService
from app.domain.notifications.models import NotificationType, NotificationPriority
from app.domain.notifications.service import NotificationService
from app.domain.scheduling import Interval, RecurrenceRule, first_common_date, format_hhmm
from app.domain.staff_scheduling.models import (
    StaffSchedule, StaffScheduleStatus, RecurrenceFrequency, ShiftType
)
from app.domain.staff_scheduling.repository import StaffScheduleRepository

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = (
    "date", "start_time", "end_time", "shift_type", "status",
    "is_recurring", "recurrence_frequency", "recurrence_days_of_week", "recurrence_end_date",
    "notify_email", "notify_sms", "notify_in_app", "reminder_minutes", "notes",
)


def rule_from(values: Dict[str, Any]) -> RecurrenceRule:
    frequency = values.get("recurrence_frequency")
    return RecurrenceRule(
        anchor=values["date"],
        is_recurring=bool(values.get("is_recurring")),
        frequency=frequency.value if frequency else None,
        days_of_week=tuple(values.get("recurrence_days_of_week") or ()),
        end_date=values.get("recurrence_end_date"),
    )


def shift_label(values: Dict[str, Any]) -> str:
    return f"{values['date'].strftime('%A, %B %d, %Y')} {format_hhmm(values['start_time'])}-{format_hhmm(values['end_time'])}"


class StaffScheduleService:
    """Service layer for staff shift management"""

    def __init__(self, db):
        self.db = db
        self.schedule_repo = StaffScheduleRepository(db)
        self.user_repo = UserRepository(db)
        self.clinic_service = ClinicService(db)
        self.notification_service = NotificationService(db)

    def _validate(self, values: Dict[str, Any]) -> None:
        if values["start_time"] >= values["end_time"]:
            raise ValidationError(
                "Start time must be before end time",
                error_code="INVALID_TIME_RANGE"
            )
        if not values.get("is_recurring"):
            return

        frequency = values.get("recurrence_frequency")
        if not frequency:
            raise ValidationError(
                "Recurring schedules need a recurrence frequency",
                error_code="INVALID_RECURRENCE"
            )
        days = values.get("recurrence_days_of_week") or []
        if frequency == RecurrenceFrequency.WEEKLY and not days:
            raise ValidationError(
                "Weekly recurrence needs at least one day of week",
                error_code="INVALID_RECURRENCE"
            )
        if any(day < 0 or day > 6 for day in days):
            raise ValidationError(
                "Days of week must be between 0 (Monday) and 6 (Sunday)",
                error_code="INVALID_RECURRENCE"
            )
        end_date = values.get("recurrence_end_date")
        if end_date and end_date < values["date"]:
            raise ValidationError(
                "Recurrence end date must be on or after the schedule date",
                error_code="INVALID_RECURRENCE"
            )

    def find_conflicts(
        self,
        staff_id: uuid.UUID,
        values: Dict[str, Any],
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[Tuple[StaffSchedule, date]]:
        """Scheduled shifts of the same person clashing with ``values``"""
        window = Interval.from_times(values["start_time"], values["end_time"])
        rule = rule_from(values)
        conflicts = []
        for existing in self.schedule_repo.get_for_staff(staff_id, exclude_id=exclude_id):
            if not window.overlaps(Interval.from_times(existing.start_time, existing.end_time)):
                continue
            clash = first_common_date(
                rule, existing.recurrence_rule(), settings.RECURRENCE_CONFLICT_HORIZON_DAYS
            )
            if clash is not None:
                conflicts.append((existing, clash))
        return conflicts

    def _raise_conflict(self, staff, values: Dict[str, Any], conflicts: List[Tuple[StaffSchedule, date]]) -> None:
        first_date = min(clash for _, clash in conflicts)
        details = {
            "first_conflict_date": first_date.isoformat(),
            "conflicts": [
                {
                    "id": str(existing.id),
                    "date": existing.date.isoformat(),
                    "start_time": format_hhmm(existing.start_time),
                    "end_time": format_hhmm(existing.end_time),
                    "conflict_date": clash.isoformat(),
                }
                for existing, clash in conflicts
            ],
        }
        self.notification_service.notify_user(
            staff,
            NotificationType.SCHEDULE_CONFLICT,
            "Schedule Conflict",
            f"A shift on {shift_label(values)} conflicts with {len(conflicts)} existing shift(s), "
            f"first on {first_date.isoformat()}",
            priority=NotificationPriority.HIGH,
            email=bool(values.get("notify_email", True)),
            data=details
        )
        logger.warning(f"Schedule conflict for staff {staff.id} on {first_date}")
        raise SchedulingConflictError(
            "Schedule conflicts with existing shifts",
            details=details,
            error_code="SCHEDULE_CONFLICT"
        )

    def _notify(self, schedule: StaffSchedule, type: NotificationType, title: str, message: str, **references) -> None:
        self.notification_service.notify_user(
            schedule.staff,
            type,
            title,
            message,
            email=bool(schedule.notify_email),
            sms=bool(schedule.notify_sms),
            in_app=bool(schedule.notify_in_app),
            **references
        )

    def create_schedule(
        self,
        staff_id: uuid.UUID,
        clinic_id: uuid.UUID,
        schedule_data: Dict[str, Any],
        created_by: Optional[uuid.UUID] = None
    ) -> StaffSchedule:
        """Assign a shift to a staff member"""
        clinic = self.clinic_service.get_clinic(clinic_id)
        staff = self.user_repo.get_by_id(staff_id)
        if not staff:
            raise NotFoundError("Staff member not found", error_code="STAFF_NOT_FOUND")
        if not staff.is_active or not staff.is_assigned_to(clinic.id):
            raise BusinessLogicError(
                "Staff member is not assigned to this clinic",
                error_code="STAFF_NOT_ASSIGNED"
            )

        values = {key: schedule_data[key] for key in SCHEDULE_FIELDS if key in schedule_data}
        if not values.get("is_recurring"):
            values.update(recurrence_frequency=None, recurrence_days_of_week=None, recurrence_end_date=None)
        self._validate(values)

        conflicts = self.find_conflicts(staff.id, values)
        if conflicts:
            self._raise_conflict(staff, values, conflicts)

        schedule = self.schedule_repo.create({
            **values,
            "staff_id": staff.id,
            "clinic_id": clinic.id,
            "status": values.get("status") or StaffScheduleStatus.SCHEDULED,
            "created_by": created_by,
        })
        logger.info(f"Staff schedule {schedule.id} created for {staff.id} at clinic {clinic.id}")

        self._notify(
            schedule,
            NotificationType.SCHEDULE_ASSIGNMENT,
            "New Shift Assigned",
            f"You have been scheduled at {clinic.name} on {shift_label(values)}",
            staff_schedule_id=schedule.id
        )
        return schedule

    def get_schedule(self, schedule_id: uuid.UUID) -> StaffSchedule:
        schedule = self.schedule_repo.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError("Staff schedule not found", error_code="STAFF_SCHEDULE_NOT_FOUND")
        return schedule

    def get_schedules(self, skip: int = 0, limit: int = 100, **filters) -> Tuple[List[StaffSchedule], int]:
        return (
            self.schedule_repo.get_all(skip=skip, limit=limit, **filters),
            self.schedule_repo.count(**filters)
        )

    def update_schedule(self, schedule_id: uuid.UUID, update_data: Dict[str, Any]) -> StaffSchedule:
        """Update a shift, re-checking conflicts"""
        schedule = self.get_schedule(schedule_id)
        values = {key: getattr(schedule, key) for key in SCHEDULE_FIELDS}
        values.update(update_data)
        if not values.get("is_recurring"):
            values.update(recurrence_frequency=None, recurrence_days_of_week=None, recurrence_end_date=None)
        self._validate(values)

        if values["status"] == StaffScheduleStatus.SCHEDULED:
            conflicts = self.find_conflicts(schedule.staff_id, values, exclude_id=schedule.id)
            if conflicts:
                self._raise_conflict(schedule.staff, values, conflicts)

        moved = any(
            values[key] != getattr(schedule, key) for key in ("date", "start_time", "end_time")
        )
        schedule = self.schedule_repo.update(
            schedule, {key: values[key] for key in SCHEDULE_FIELDS}
        )

        if moved:
            self._notify(
                schedule,
                NotificationType.SCHEDULE_CHANGE,
                "Shift Changed",
                f"Your shift at {schedule.clinic.name} is now on {shift_label(values)}",
                staff_schedule_id=schedule.id
            )
        return schedule

    def delete_schedule(self, schedule_id: uuid.UUID) -> None:
        """Delete a shift and tell the staff member"""
        schedule = self.get_schedule(schedule_id)
        values = {key: getattr(schedule, key) for key in ("date", "start_time", "end_time")}
        staff, clinic_name = schedule.staff, schedule.clinic.name
        flags = {
            "email": bool(schedule.notify_email),
            "sms": bool(schedule.notify_sms),
            "in_app": bool(schedule.notify_in_app),
        }

        self.schedule_repo.delete(schedule)
        logger.info(f"Staff schedule {schedule_id} deleted")

        self.notification_service.notify_user(
            staff,
            NotificationType.SCHEDULE_CANCELLED,
            "Shift Cancelled",
            f"Your shift at {clinic_name} on {shift_label(values)} has been cancelled",
            data={"staff_schedule_id": str(schedule_id)},
            **flags
        )

    def availability(self, clinic_id: uuid.UUID, target_date: date) -> Dict[str, Any]:
        """Who is on shift at a clinic on a date"""
        clinic = self.clinic_service.get_clinic(clinic_id)
        shifts_by_staff = defaultdict(list)
        for shift in self.schedule_repo.get_occurring_between(clinic.id, target_date, target_date):
            if shift.recurrence_rule().occurs_on(target_date):
                shifts_by_staff[shift.staff_id].append(shift)

        members = []
        for user in self.clinic_service.get_assigned_staff(clinic.id):
            shifts = shifts_by_staff.get(user.id, [])
            members.append({
                "user_id": user.id,
                "name": user.full_name,
                "role": user.role.value,
                "is_scheduled": bool(shifts),
                "shifts": [
                    {
                        "id": shift.id,
                        "start_time": format_hhmm(shift.start_time),
                        "end_time": format_hhmm(shift.end_time),
                        "shift_type": shift.shift_type,
                        "status": shift.status,
                    }
                    for shift in shifts
                ],
            })

        return {
            "clinic_id": clinic.id,
            "date": target_date,
            "scheduled_count": sum(1 for m in members if m["is_scheduled"]),
            "available_count": sum(1 for m in members if not m["is_scheduled"]),
            "staff": members,
        }

    def analytics(self, clinic_id: uuid.UUID, start_date: date, end_date: date) -> Dict[str, Any]:
        """Shift counts and hours over expanded occurrences"""
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date", error_code="INVALID_DATE_RANGE")
        clinic = self.clinic_service.get_clinic(clinic_id)

        by_status = {status.value: {"count": 0, "hours": 0.0} for status in StaffScheduleStatus}
        by_shift_type = {shift_type.value: 0 for shift_type in ShiftType}
        per_staff: Dict[uuid.UUID, Dict[str, Any]] = {}
        total_shifts, total_hours = 0, 0.0

        shifts = self.schedule_repo.get_occurring_between(
            clinic.id, start_date, end_date, exclude_cancelled=False
        )
        for shift in shifts:
            occurrences = sum(1 for _ in shift.recurrence_rule().dates_between(start_date, end_date))
            if not occurrences:
                continue
            hours = shift.duration_hours * occurrences

            by_status[shift.status.value]["count"] += occurrences
            by_status[shift.status.value]["hours"] += hours
            by_shift_type[shift.shift_type.value] += occurrences
            entry = per_staff.setdefault(shift.staff_id, {
                "staff_id": shift.staff_id,
                "name": shift.staff.full_name if shift.staff else None,
                "shifts": 0,
                "hours": 0.0,
            })
            entry["shifts"] += occurrences
            entry["hours"] += hours
            total_shifts += occurrences
            total_hours += hours

        for bucket in by_status.values():
            bucket["hours"] = round(bucket["hours"], 2)
        utilization = sorted(per_staff.values(), key=lambda e: e["hours"], reverse=True)
        for entry in utilization:
            entry["hours"] = round(entry["hours"], 2)

        return {
            "clinic_id": clinic.id,
            "start_date": start_date,
            "end_date": end_date,
            "total_shifts": total_shifts,
            "total_hours": round(total_hours, 2),
            "by_status": by_status,
            "shift_type_distribution": by_shift_type,
            "staff_utilization": utilization,
        }
