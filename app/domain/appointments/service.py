"""
Appointments Service Layer

Business logic for dental appointment booking, dentist schedules and leaves.

Booking runs one validation chain for create, reschedule and duration
changes: timing, dentist assignment, clinic operating hours, the dentist's
working window, leave and finally interval conflicts. Emergency bookings for
the current day skip the opening-hours and working-window checks but are
still conflict-checked.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, date, time, timedelta
import logging
import uuid

from app.core import clock
from app.core.config import settings
from app.core.exceptions import (
    BaseCustomException, BusinessLogicError, ConflictError, NotFoundError,
    ValidationError, SchedulingConflictError, OutsideOperatingHoursError,
    OutsideWorkingHoursError, InvalidStatusTransitionError
)
from app.domain.appointments.models import (
    Appointment, AppointmentStatus, ServiceType,
    DoctorSchedule, DoctorLeave, LeaveStatus, LeaveType
)
from app.domain.appointments.repository import (
    AppointmentRepository, DoctorScheduleRepository, DoctorLeaveRepository
)
from app.domain.auth.models import User, UserRole
from app.domain.auth.repository import UserRepository
from app.domain.clinics.models import Clinic
from app.domain.clinics.service import ClinicService
from app.domain.notifications.models import NotificationType, NotificationPriority
from app.domain.notifications.service import NotificationService
from app.domain.patients.models import Patient
from app.domain.patients.repository import PatientRepository
from app.domain.scheduling import (
    MINUTES_PER_DAY, Interval, find_overlaps, format_hhmm, from_minutes,
    generate_slots, intersect, is_peak, merge_by_time,
    next_after_last_booking, subtract, to_minutes
)
from app.infrastructure import notifications as channels

logger = logging.getLogger(__name__)

RESCHEDULABLE_STATUSES = (
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.URGENT,
)

CLOSED_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
)


def appointment_interval(appointment: Appointment) -> Interval:
    return Interval.from_duration(appointment.start_time, appointment.duration_minutes)


def describe_service(service_type: ServiceType) -> str:
    return service_type.value.replace("_", " ").lower()


def append_note(notes: Optional[str], line: str) -> str:
    return f"{notes}\n{line}" if notes else line


class DoctorScheduleService:
    """Service layer for dentist working schedules"""

    def __init__(self, db):
        self.db = db
        self.schedule_repo = DoctorScheduleRepository(db)
        self.leave_repo = DoctorLeaveRepository(db)
        self.user_repo = UserRepository(db)
        self.clinic_service = ClinicService(db)

    def _validate_window(
        self,
        day_of_week: int,
        start_time: time,
        end_time: time,
        break_start: Optional[time],
        break_end: Optional[time]
    ) -> None:
        if day_of_week < 0 or day_of_week > 6:
            raise ValidationError(
                "Day of week must be between 0 (Monday) and 6 (Sunday)",
                error_code="INVALID_DAY_OF_WEEK"
            )
        if start_time >= end_time:
            raise ValidationError(
                "Start time must be before end time",
                error_code="INVALID_TIME_RANGE"
            )
        if (break_start is None) != (break_end is None):
            raise ValidationError(
                "Break start and break end must be provided together",
                error_code="INVALID_BREAK"
            )
        if break_start is not None:
            if not (start_time <= break_start < break_end <= end_time):
                raise ValidationError(
                    "Break must fall inside the working window",
                    error_code="INVALID_BREAK"
                )

    def _get_dentist(self, doctor_id: uuid.UUID) -> User:
        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor:
            raise NotFoundError("Dentist not found", error_code="DENTIST_NOT_FOUND")
        if doctor.role != UserRole.DENTIST:
            raise BusinessLogicError(
                "Schedules can only be created for dentists",
                error_code="INVALID_ROLE"
            )
        return doctor

    def _check_conflicts(
        self,
        doctor_id: uuid.UUID,
        day_of_week: int,
        start_time: time,
        end_time: time,
        effective_from: date,
        effective_until: Optional[date],
        exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        """A dentist cannot hold overlapping windows on the same weekday, at any clinic"""
        window = Interval.from_times(start_time, end_time)
        candidates = self.schedule_repo.get_overlapping_candidates(
            doctor_id, day_of_week, effective_from, effective_until, exclude_id
        )
        for existing in candidates:
            if window.overlaps(Interval.from_times(existing.start_time, existing.end_time)):
                raise SchedulingConflictError(
                    f"Schedule conflicts with existing schedule from "
                    f"{format_hhmm(existing.start_time)} to {format_hhmm(existing.end_time)}",
                    details={
                        "conflicting_schedule_id": str(existing.id),
                        "clinic_id": str(existing.clinic_id),
                        "day_of_week": existing.day_of_week,
                    },
                    error_code="SCHEDULE_CONFLICT"
                )

    def create_schedule(
        self,
        doctor_id: uuid.UUID,
        clinic_id: uuid.UUID,
        day_of_week: int,
        start_time: time,
        end_time: time,
        effective_from: Optional[date] = None,
        effective_until: Optional[date] = None,
        break_start: Optional[time] = None,
        break_end: Optional[time] = None,
        notes: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None
    ) -> DoctorSchedule:
        """Create a new dentist schedule"""
        effective_from = effective_from or clock.today()
        if effective_until and effective_until < effective_from:
            raise ValidationError(
                "Effective until must be on or after effective from",
                error_code="INVALID_EFFECTIVE_PERIOD"
            )

        self._validate_window(day_of_week, start_time, end_time, break_start, break_end)
        self._get_dentist(doctor_id)
        self.clinic_service.get_clinic(clinic_id)
        self._check_conflicts(
            doctor_id, day_of_week, start_time, end_time, effective_from, effective_until
        )

        schedule = self.schedule_repo.create({
            "doctor_id": doctor_id,
            "clinic_id": clinic_id,
            "day_of_week": day_of_week,
            "start_time": start_time,
            "end_time": end_time,
            "break_start": break_start,
            "break_end": break_end,
            "effective_from": effective_from,
            "effective_until": effective_until,
            "notes": notes,
            "created_by": created_by,
            "is_active": True
        })
        logger.info(
            f"Schedule {schedule.id} created for dentist {doctor_id} on day {day_of_week} "
            f"{format_hhmm(start_time)}-{format_hhmm(end_time)}"
        )
        return schedule

    def bulk_create_schedules(
        self,
        items: List[Dict[str, Any]],
        created_by: Optional[uuid.UUID] = None
    ) -> Dict[str, Any]:
        """Create several schedules, collecting per-item failures"""
        created, errors = [], []
        for index, item in enumerate(items):
            try:
                created.append(self.create_schedule(created_by=created_by, **item))
            except BaseCustomException as e:
                self.db.rollback()
                errors.append({"index": index, "message": e.message, "error_code": e.error_code})
        return {"created": created, "errors": errors}

    def get_schedule(self, schedule_id: uuid.UUID) -> DoctorSchedule:
        schedule = self.schedule_repo.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found", error_code="SCHEDULE_NOT_FOUND")
        return schedule

    def get_schedules(
        self,
        doctor_id: Optional[uuid.UUID] = None,
        clinic_id: Optional[uuid.UUID] = None,
        day_of_week: Optional[int] = None,
        active_only: bool = True
    ) -> List[DoctorSchedule]:
        return self.schedule_repo.get_all(doctor_id, clinic_id, day_of_week, active_only)

    def update_schedule(self, schedule_id: uuid.UUID, update_data: dict) -> DoctorSchedule:
        """Update a schedule, re-checking the window and conflicts"""
        schedule = self.get_schedule(schedule_id)
        merged = {
            "day_of_week": schedule.day_of_week,
            "start_time": schedule.start_time,
            "end_time": schedule.end_time,
            "break_start": schedule.break_start,
            "break_end": schedule.break_end,
            "effective_from": schedule.effective_from,
            "effective_until": schedule.effective_until,
            "is_active": schedule.is_active,
        }
        merged.update(update_data)

        self._validate_window(
            merged["day_of_week"], merged["start_time"], merged["end_time"],
            merged["break_start"], merged["break_end"]
        )
        if merged["effective_until"] and merged["effective_until"] < merged["effective_from"]:
            raise ValidationError(
                "Effective until must be on or after effective from",
                error_code="INVALID_EFFECTIVE_PERIOD"
            )
        if merged["is_active"]:
            self._check_conflicts(
                schedule.doctor_id, merged["day_of_week"], merged["start_time"], merged["end_time"],
                merged["effective_from"], merged["effective_until"], exclude_id=schedule.id
            )
        return self.schedule_repo.update(schedule, update_data)

    def deactivate_schedule(self, schedule_id: uuid.UUID) -> None:
        """Soft-delete a schedule"""
        if not self.schedule_repo.deactivate(schedule_id):
            raise NotFoundError("Schedule not found", error_code="SCHEDULE_NOT_FOUND")
        logger.info(f"Schedule {schedule_id} deactivated")

    def get_available_doctors(
        self,
        clinic_id: uuid.UUID,
        target_date: Optional[date] = None,
        day_of_week: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Dentists working at a clinic on a date or weekday, grouped by dentist"""
        if target_date is None and day_of_week is None:
            raise ValidationError(
                "Either date or day_of_week is required",
                error_code="MISSING_DAY"
            )
        self.clinic_service.get_clinic(clinic_id)
        if target_date is not None:
            day_of_week = target_date.weekday()

        grouped: Dict[uuid.UUID, Dict[str, Any]] = {}
        for schedule in self.schedule_repo.get_effective_for_clinic(clinic_id, day_of_week, target_date):
            doctor = schedule.doctor
            if not doctor or not doctor.is_active:
                continue
            if target_date is not None and self.leave_blocks(doctor.id, target_date)[0]:
                continue
            entry = grouped.setdefault(doctor.id, {
                "doctor_id": doctor.id,
                "doctor_name": doctor.full_name,
                "specialization": doctor.specialization,
                "schedules": [],
            })
            entry["schedules"].append(schedule)
        return sorted(grouped.values(), key=lambda entry: entry["doctor_name"])

    def working_windows(
        self,
        doctor_id: uuid.UUID,
        clinic_id: uuid.UUID,
        target_date: date
    ) -> List[Interval]:
        """Working windows at a clinic on a date, with breaks removed"""
        windows, breaks = [], []
        for schedule in self.schedule_repo.get_schedules_for_date(doctor_id, target_date, clinic_id):
            windows.append(Interval.from_times(schedule.start_time, schedule.end_time))
            if schedule.break_start and schedule.break_end:
                breaks.append(Interval.from_times(schedule.break_start, schedule.break_end))
        return subtract(windows, breaks)

    def leave_blocks(self, doctor_id: uuid.UUID, target_date: date) -> Tuple[bool, List[Interval]]:
        """(on full-day leave, partial-day leave intervals) for a date"""
        full_day, blocks = False, []
        for leave in self.leave_repo.get_approved_on(doctor_id, target_date):
            if leave.is_partial_day:
                blocks.append(Interval.from_times(leave.start_time, leave.end_time))
            else:
                full_day = True
        return full_day, blocks


class DoctorLeaveService:
    """Service layer for dentist leave management"""

    def __init__(self, db):
        self.db = db
        self.leave_repo = DoctorLeaveRepository(db)
        self.user_repo = UserRepository(db)

    def request_leave(
        self,
        doctor_id: uuid.UUID,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str] = None,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None
    ) -> DoctorLeave:
        """Request a new leave"""
        if start_date > end_date:
            raise ValidationError(
                "Start date must be before or equal to end date",
                error_code="INVALID_LEAVE_DATES"
            )
        if start_date < clock.today():
            raise ValidationError(
                "Cannot request leave for past dates",
                error_code="PAST_DATE"
            )
        if (start_time is None) != (end_time is None):
            raise ValidationError(
                "Partial-day leave needs both start and end time",
                error_code="INVALID_LEAVE_TIMES"
            )
        if start_time is not None and start_time >= end_time:
            raise ValidationError(
                "Leave start time must be before end time",
                error_code="INVALID_LEAVE_TIMES"
            )

        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor or doctor.role != UserRole.DENTIST:
            raise NotFoundError("Dentist not found", error_code="DENTIST_NOT_FOUND")

        existing = self.leave_repo.get_leaves_for_date_range(
            doctor_id, start_date, end_date,
            statuses=(LeaveStatus.PENDING, LeaveStatus.APPROVED)
        )
        if existing:
            raise ConflictError(
                "Leave already exists for this period",
                details={"leave_ids": [str(leave.id) for leave in existing]},
                error_code="LEAVE_CONFLICT"
            )

        return self.leave_repo.create({
            "doctor_id": doctor_id,
            "leave_type": leave_type,
            "start_date": start_date,
            "end_date": end_date,
            "start_time": start_time,
            "end_time": end_time,
            "reason": reason,
            "status": LeaveStatus.PENDING
        })

    def get_doctor_leaves(
        self,
        doctor_id: uuid.UUID,
        status: Optional[LeaveStatus] = None
    ) -> List[DoctorLeave]:
        """Get all leaves for a dentist"""
        return self.leave_repo.get_by_doctor_id(doctor_id, status)

    def approve_leave(self, leave_id: uuid.UUID, approved_by: uuid.UUID) -> DoctorLeave:
        """Approve a leave request"""
        leave = self.leave_repo.approve(leave_id, approved_by)
        if not leave:
            raise NotFoundError(
                "Leave request not found or already processed",
                error_code="LEAVE_NOT_FOUND"
            )
        logger.info(f"Leave {leave_id} approved by {approved_by}")
        return leave

    def reject_leave(self, leave_id: uuid.UUID, approved_by: uuid.UUID, reason: Optional[str]) -> DoctorLeave:
        """Reject a leave request"""
        if not reason:
            raise ValidationError("Rejection reason is required", error_code="REJECTION_REASON_REQUIRED")
        leave = self.leave_repo.reject(leave_id, approved_by, reason)
        if not leave:
            raise NotFoundError(
                "Leave request not found or already processed",
                error_code="LEAVE_NOT_FOUND"
            )
        return leave

    def cancel_leave(self, leave_id: uuid.UUID) -> DoctorLeave:
        """Cancel a leave request"""
        leave = self.leave_repo.get_by_id(leave_id)
        if not leave:
            raise NotFoundError("Leave request not found", error_code="LEAVE_NOT_FOUND")

        if leave.status not in [LeaveStatus.PENDING, LeaveStatus.APPROVED]:
            raise BusinessLogicError(
                "Cannot cancel this leave request",
                error_code="LEAVE_NOT_CANCELLABLE"
            )

        return self.leave_repo.update(leave, {"status": LeaveStatus.CANCELLED})


class AppointmentService:
    """Service layer for appointment management"""

    def __init__(self, db):
        self.db = db
        self.appointment_repo = AppointmentRepository(db)
        self.schedule_service = DoctorScheduleService(db)
        self.clinic_service = ClinicService(db)
        self.patient_repo = PatientRepository(db)
        self.user_repo = UserRepository(db)
        self.notification_service = NotificationService(db)

    # ==================== Validation chain ====================

    def _generate_appointment_number(self) -> str:
        """Generate unique appointment number"""
        today = clock.today()
        count = self.appointment_repo.count_created_on(today)
        return f"APT-{today.strftime('%Y%m%d')}-{str(count + 1).zfill(4)}"

    def _get_patient(self, patient_id: uuid.UUID) -> Patient:
        patient = self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient not found", error_code="PATIENT_NOT_FOUND")
        return patient

    def _get_dentist(self, dentist_id: uuid.UUID, clinic_id: uuid.UUID) -> User:
        dentist = self.user_repo.get_by_id(dentist_id)
        if not dentist:
            raise NotFoundError("Dentist not found", error_code="DENTIST_NOT_FOUND")
        if dentist.role != UserRole.DENTIST or not dentist.is_active:
            raise BusinessLogicError(
                "Selected user is not an active dentist",
                error_code="INVALID_DENTIST"
            )
        if not dentist.is_assigned_to(clinic_id):
            raise BusinessLogicError(
                "Dentist is not assigned to this clinic",
                error_code="DENTIST_NOT_ASSIGNED"
            )
        return dentist

    def _validate_duration(self, duration: int) -> None:
        if not settings.MIN_APPOINTMENT_DURATION <= duration <= settings.MAX_APPOINTMENT_DURATION:
            raise ValidationError(
                f"Duration must be between {settings.MIN_APPOINTMENT_DURATION} "
                f"and {settings.MAX_APPOINTMENT_DURATION} minutes",
                error_code="INVALID_DURATION"
            )

    def _interval_for(self, start_time: time, duration: int) -> Interval:
        self._validate_duration(duration)
        if to_minutes(start_time) + duration > MINUTES_PER_DAY:
            raise ValidationError(
                "Appointment must end by midnight",
                error_code="APPOINTMENT_PAST_MIDNIGHT"
            )
        return Interval.from_duration(start_time, duration)

    def _validate_timing(
        self,
        appointment_date: date,
        start_time: time,
        duration: int,
        is_emergency: bool
    ) -> Interval:
        interval = self._interval_for(start_time, duration)

        now = clock.now()
        if appointment_date < now.date():
            raise ValidationError(
                "Cannot book appointments for past dates",
                error_code="PAST_DATE"
            )
        if appointment_date == now.date():
            start, current = to_minutes(start_time), to_minutes(now.time())
            if is_emergency and start < current:
                raise ValidationError(
                    "Emergency appointment time cannot be in the past",
                    error_code="PAST_TIME"
                )
            if not is_emergency and start <= current:
                raise ValidationError(
                    "Appointment time must be in the future",
                    error_code="PAST_TIME"
                )
        return interval

    def _check_operating_hours(self, clinic: Clinic, appointment_date: date, interval: Interval) -> None:
        hours = self.clinic_service.hours_for(clinic, appointment_date)
        if hours is None:
            return
        day_name = appointment_date.strftime("%A")
        if hours.is_closed:
            raise OutsideOperatingHoursError(
                f"The clinic is closed on {day_name}",
                details={"day": day_name},
                error_code="CLINIC_CLOSED"
            )
        opening = Interval.from_times(hours.open_time, hours.close_time)
        if not opening.contains(interval):
            raise OutsideOperatingHoursError(
                f"Appointment must be within clinic operating hours "
                f"{format_hhmm(opening.start)} - {format_hhmm(opening.end)}",
                details={
                    "open_time": format_hhmm(opening.start),
                    "close_time": format_hhmm(opening.end),
                }
            )

    def _check_working_window(
        self,
        dentist: User,
        clinic_id: uuid.UUID,
        appointment_date: date,
        interval: Interval
    ) -> None:
        schedules = self.schedule_service.schedule_repo.get_schedules_for_date(
            dentist.id, appointment_date, clinic_id
        )
        day_name = appointment_date.strftime("%A")
        if not schedules:
            raise OutsideWorkingHoursError(
                f"Dr. {dentist.last_name} is not scheduled to work at this clinic on {day_name}",
                details={"dentist_id": str(dentist.id), "day": day_name},
                error_code="DENTIST_NOT_SCHEDULED"
            )

        for schedule in schedules:
            window = Interval.from_times(schedule.start_time, schedule.end_time)
            if not window.contains(interval):
                continue
            if schedule.break_start and schedule.break_end and interval.overlaps(
                Interval.from_times(schedule.break_start, schedule.break_end)
            ):
                continue
            return

        raise OutsideWorkingHoursError(
            f"Appointment time is outside Dr. {dentist.last_name}'s working hours",
            details={
                "dentist_id": str(dentist.id),
                "available_hours": [
                    {
                        "start_time": format_hhmm(s.start_time),
                        "end_time": format_hhmm(s.end_time),
                        "break": (
                            f"{format_hhmm(s.break_start)}-{format_hhmm(s.break_end)}"
                            if s.break_start and s.break_end else None
                        ),
                    }
                    for s in schedules
                ],
            }
        )

    def _check_leave(self, dentist: User, appointment_date: date, interval: Interval) -> None:
        full_day, blocks = self.schedule_service.leave_blocks(dentist.id, appointment_date)
        if full_day or any(interval.overlaps(block) for block in blocks):
            raise BusinessLogicError(
                f"Dr. {dentist.last_name} is on leave at the requested time",
                error_code="DENTIST_ON_LEAVE"
            )

    def _conflict_payload(self, appointment: Appointment) -> Dict[str, Any]:
        interval = appointment_interval(appointment)
        return {
            "id": str(appointment.id),
            "dentist_id": str(appointment.dentist_id) if appointment.dentist_id else None,
            "patient_name": appointment.patient.full_name if appointment.patient else None,
            "date": appointment.appointment_date.isoformat(),
            "time": format_hhmm(interval.start),
            "end_time": format_hhmm(interval.end),
            "duration": appointment.duration_minutes,
            "status": appointment.status.value,
        }

    def find_conflicts(
        self,
        dentist_id: uuid.UUID,
        appointment_date: date,
        interval: Interval,
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[Appointment]:
        """Active appointments of a dentist overlapping the interval"""
        booked = self.appointment_repo.get_active_for_dentist_on(dentist_id, appointment_date, exclude_id)
        return find_overlaps(interval, booked, key=appointment_interval)

    def _check_dentist_availability(
        self,
        dentist: User,
        clinic: Clinic,
        appointment_date: date,
        interval: Interval,
        skip_hours: bool,
        exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        if not skip_hours:
            self._check_working_window(dentist, clinic.id, appointment_date, interval)
        self._check_leave(dentist, appointment_date, interval)

        conflicts = self.find_conflicts(dentist.id, appointment_date, interval, exclude_id)
        if conflicts:
            raise SchedulingConflictError(
                f"Dr. {dentist.last_name} already has an appointment at this time",
                details={"conflicts": [self._conflict_payload(a) for a in conflicts]}
            )

    def _validate_booking(
        self,
        clinic: Clinic,
        appointment_date: date,
        interval: Interval,
        is_emergency: bool,
        dentist: Optional[User] = None,
        exclude_id: Optional[uuid.UUID] = None
    ) -> Optional[User]:
        """Run the booking checks and return the dentist to book with"""
        skip_hours = is_emergency and appointment_date == clock.today()
        if not skip_hours:
            self._check_operating_hours(clinic, appointment_date, interval)

        if dentist is not None:
            self._check_dentist_availability(
                dentist, clinic, appointment_date, interval, skip_hours, exclude_id
            )
            return dentist

        for candidate in self.clinic_service.get_assigned_dentists(clinic.id):
            try:
                self._check_dentist_availability(
                    candidate, clinic, appointment_date, interval, skip_hours, exclude_id
                )
            except (BusinessLogicError, ConflictError):
                continue
            logger.info(f"Auto-assigned dentist {candidate.id} for {appointment_date} {interval.label()}")
            return candidate

        logger.warning(
            f"No dentist available at clinic {clinic.id} for {appointment_date} "
            f"{interval.label()}, booking left unassigned"
        )
        return None

    # ==================== Booking ====================

    def create_appointment(
        self,
        patient_id: uuid.UUID,
        clinic_id: uuid.UUID,
        appointment_date: date,
        start_time: time,
        duration_minutes: Optional[int] = None,
        dentist_id: Optional[uuid.UUID] = None,
        service_type: ServiceType = ServiceType.CHECKUP,
        is_emergency: bool = False,
        notes: Optional[str] = None,
        reminder_hours: Optional[List[int]] = None,
        created_by: Optional[uuid.UUID] = None
    ) -> Appointment:
        """Book a new appointment"""
        clinic = self.clinic_service.get_active_clinic(clinic_id)
        patient = self._get_patient(patient_id)
        duration = duration_minutes or settings.DEFAULT_APPOINTMENT_DURATION

        interval = self._validate_timing(appointment_date, start_time, duration, is_emergency)
        dentist = self._get_dentist(dentist_id, clinic.id) if dentist_id else None
        dentist = self._validate_booking(clinic, appointment_date, interval, is_emergency, dentist)

        appointment = self.appointment_repo.create({
            "appointment_number": self._generate_appointment_number(),
            "patient_id": patient.id,
            "dentist_id": dentist.id if dentist else None,
            "clinic_id": clinic.id,
            "appointment_date": appointment_date,
            "start_time": start_time,
            "duration_minutes": duration,
            "service_type": service_type,
            "status": AppointmentStatus.URGENT if is_emergency else AppointmentStatus.SCHEDULED,
            "is_emergency": is_emergency,
            "notes": notes,
            "reminder_hours": reminder_hours or patient.reminder_hours or list(settings.DEFAULT_REMINDER_HOURS),
            "created_by": created_by
        })
        logger.info(
            f"Appointment {appointment.appointment_number} booked at clinic {clinic.id} "
            f"for {appointment_date} {interval.label()} (emergency={is_emergency})"
        )

        self._notify_booked(appointment, patient, clinic, dentist)
        self._schedule_reminders(appointment)
        return appointment

    def auto_book_first_available(
        self,
        patient_id: uuid.UUID,
        clinic_id: uuid.UUID,
        target_date: date,
        duration_minutes: Optional[int] = None,
        service_type: ServiceType = ServiceType.CHECKUP,
        notes: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None
    ) -> Appointment:
        """Book the earliest free slot at a clinic on a date"""
        availability = self.get_available_slots(clinic_id, target_date, duration_minutes)
        if not availability["slots"]:
            raise NotFoundError(
                "No available slots for the requested date",
                details={"clinic_id": str(clinic_id), "date": target_date.isoformat()},
                error_code="NO_AVAILABLE_SLOTS"
            )

        first = availability["slots"][0]
        return self.create_appointment(
            patient_id=patient_id,
            clinic_id=clinic_id,
            appointment_date=target_date,
            start_time=from_minutes(first["start_minutes"]),
            duration_minutes=availability["duration_minutes"],
            dentist_id=first["available_dentists"][0]["id"],
            service_type=service_type,
            notes=notes,
            created_by=created_by
        )

    # ==================== Lifecycle ====================

    def get_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        """Get appointment by ID"""
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found", error_code="APPOINTMENT_NOT_FOUND")
        return appointment

    def _transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        extra: Optional[Dict[str, Any]] = None
    ) -> Appointment:
        if not appointment.can_transition_to(target):
            raise InvalidStatusTransitionError(appointment.status.value, target.value)
        previous = appointment.status
        appointment = self.appointment_repo.update(appointment, {"status": target, **(extra or {})})
        logger.info(f"Appointment {appointment.id} moved from {previous.value} to {target.value}")
        return appointment

    def confirm_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        """Confirm an appointment"""
        appointment = self._transition(self.get_appointment(appointment_id), AppointmentStatus.CONFIRMED)
        self.notification_service.notify_patient(
            appointment.patient,
            NotificationType.APPOINTMENT_STATUS,
            "Appointment Confirmed",
            f"Your appointment on {self._when(appointment)} has been confirmed",
            appointment_id=appointment.id
        )
        return appointment

    def start_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        """Mark the patient as in the chair"""
        return self._transition(
            self.get_appointment(appointment_id),
            AppointmentStatus.IN_PROGRESS,
            {"started_at": datetime.utcnow()}
        )

    def complete_appointment(
        self,
        appointment_id: uuid.UUID,
        treatment_provided: Optional[str] = None,
        follow_up_required: bool = False,
        follow_up_date: Optional[date] = None,
        notes: Optional[str] = None
    ) -> Appointment:
        """Complete an in-progress appointment"""
        appointment = self.get_appointment(appointment_id)
        if follow_up_date and follow_up_date <= appointment.appointment_date:
            raise ValidationError(
                "Follow-up date must be after the appointment date",
                error_code="INVALID_FOLLOW_UP_DATE"
            )

        extra = {
            "completed_at": datetime.utcnow(),
            "treatment_provided": treatment_provided,
            "follow_up_required": follow_up_required,
            "follow_up_date": follow_up_date,
        }
        if notes:
            extra["notes"] = append_note(appointment.notes, notes)
        return self._transition(appointment, AppointmentStatus.COMPLETED, extra)

    def mark_no_show(self, appointment_id: uuid.UUID) -> Appointment:
        """Record that the patient did not attend"""
        return self._transition(self.get_appointment(appointment_id), AppointmentStatus.NO_SHOW)

    def cancel_appointment(
        self,
        appointment_id: uuid.UUID,
        cancelled_by: uuid.UUID,
        reason: str
    ) -> Appointment:
        """Cancel an upcoming appointment"""
        appointment = self.get_appointment(appointment_id)
        if appointment.status not in RESCHEDULABLE_STATUSES:
            raise InvalidStatusTransitionError(
                appointment.status.value, AppointmentStatus.CANCELLED.value
            )
        if appointment.get_datetime() < clock.now():
            raise BusinessLogicError(
                "Past appointments cannot be cancelled",
                error_code="APPOINTMENT_IN_PAST"
            )

        appointment = self._transition(appointment, AppointmentStatus.CANCELLED, {
            "cancelled_at": datetime.utcnow(),
            "cancelled_by": cancelled_by,
            "cancelled_reason": reason,
            "notes": append_note(appointment.notes, f"Cancelled: {reason}"),
        })

        message = f"Your appointment on {self._when(appointment)} has been cancelled. Reason: {reason}"
        self.notification_service.notify_patient(
            appointment.patient,
            NotificationType.APPOINTMENT_CANCELLED,
            "Appointment Cancelled",
            message,
            appointment_id=appointment.id
        )
        if appointment.dentist:
            self.notification_service.notify_user(
                appointment.dentist,
                NotificationType.APPOINTMENT_CANCELLED,
                "Appointment Cancelled",
                f"Appointment with {appointment.patient.full_name} on {self._when(appointment)} was cancelled",
                email=False,
                appointment_id=appointment.id
            )
        return appointment

    def reschedule_appointment(
        self,
        appointment_id: uuid.UUID,
        new_date: date,
        new_time: time,
        rescheduled_by: Optional[uuid.UUID] = None,
        reason: Optional[str] = None,
        dentist_id: Optional[uuid.UUID] = None,
        duration_minutes: Optional[int] = None
    ) -> Appointment:
        """Move an appointment to a new date and time in place"""
        appointment = self.get_appointment(appointment_id)
        if appointment.status not in RESCHEDULABLE_STATUSES:
            raise BusinessLogicError(
                "Only scheduled, confirmed or urgent appointments can be rescheduled",
                details={"status": appointment.status.value},
                error_code="CANNOT_RESCHEDULE"
            )
        if appointment.get_datetime() < clock.now():
            raise BusinessLogicError(
                "Past appointments cannot be rescheduled",
                error_code="APPOINTMENT_IN_PAST"
            )

        duration = duration_minutes or appointment.duration_minutes
        interval = self._validate_timing(new_date, new_time, duration, appointment.is_emergency)
        target_dentist_id = dentist_id or appointment.dentist_id
        dentist = self._get_dentist(target_dentist_id, appointment.clinic_id) if target_dentist_id else None
        dentist = self._validate_booking(
            appointment.clinic, new_date, interval, appointment.is_emergency,
            dentist, exclude_id=appointment.id
        )

        previous = self._when(appointment)
        note = f"Rescheduled: {reason}" if reason else f"Rescheduled from {previous}"
        appointment = self.appointment_repo.update(appointment, {
            "appointment_date": new_date,
            "start_time": new_time,
            "duration_minutes": duration,
            "dentist_id": dentist.id if dentist else None,
            "notes": append_note(appointment.notes, note),
            "reminder_sent": False,
            "reminder_sent_at": None,
            "reminder_offsets_sent": [],
        })
        logger.info(f"Appointment {appointment.id} rescheduled by {rescheduled_by} to {new_date} {interval.label()}")

        self.notification_service.notify_patient(
            appointment.patient,
            NotificationType.APPOINTMENT_RESCHEDULED,
            "Appointment Rescheduled",
            f"Your appointment has been moved from {previous} to {self._when(appointment)}",
            appointment_id=appointment.id
        )
        self._schedule_reminders(appointment)
        return appointment

    def update_appointment(self, appointment_id: uuid.UUID, update_data: dict) -> Appointment:
        """Update service type, notes, reminders or duration"""
        appointment = self.get_appointment(appointment_id)
        if appointment.status in CLOSED_STATUSES:
            raise BusinessLogicError(
                "Cannot modify completed or cancelled appointments",
                error_code="APPOINTMENT_CLOSED"
            )

        # service type and duration are NOT NULL columns
        update_data = {
            key: value for key, value in update_data.items()
            if value is not None or key not in ("service_type", "duration_minutes")
        }

        duration = update_data.get("duration_minutes")
        if duration and duration != appointment.duration_minutes:
            interval = self._interval_for(appointment.start_time, duration)
            dentist = self._validate_booking(
                appointment.clinic, appointment.appointment_date, interval,
                appointment.is_emergency, appointment.dentist, exclude_id=appointment.id
            )
            if appointment.dentist_id is None and dentist is not None:
                update_data["dentist_id"] = dentist.id

        return self.appointment_repo.update(appointment, update_data)

    # ==================== Queries ====================

    def get_appointments(
        self,
        skip: int = 0,
        limit: int = 20,
        **filters
    ) -> Tuple[List[Appointment], int]:
        """Get appointments with filtering and pagination"""
        return (
            self.appointment_repo.get_all(skip=skip, limit=limit, **filters),
            self.appointment_repo.count(**filters)
        )

    def get_today_appointments(
        self,
        clinic_id: Optional[uuid.UUID] = None,
        dentist_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None
    ) -> List[Appointment]:
        today = clock.today()
        return self.appointment_repo.get_in_range(
            today, today, clinic_id=clinic_id, dentist_id=dentist_id, patient_id=patient_id
        )

    def get_upcoming_appointments(
        self,
        days: int = 7,
        clinic_id: Optional[uuid.UUID] = None,
        dentist_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None
    ) -> List[Appointment]:
        """Active appointments from now through the next ``days`` days"""
        now = clock.now()
        appointments = self.appointment_repo.get_in_range(
            now.date(), now.date() + timedelta(days=days),
            clinic_id=clinic_id, dentist_id=dentist_id, patient_id=patient_id,
            active_only=True
        )
        return [a for a in appointments if a.get_datetime() >= now]

    def get_appointments_by_date_range(
        self,
        start_date: date,
        end_date: date,
        clinic_id: Optional[uuid.UUID] = None,
        dentist_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None
    ) -> List[Appointment]:
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date", error_code="INVALID_DATE_RANGE")
        return self.appointment_repo.get_in_range(
            start_date, end_date, clinic_id=clinic_id, dentist_id=dentist_id, patient_id=patient_id
        )

    def get_statistics(
        self,
        clinic_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Dict[str, Any]:
        """Status breakdown with completion and cancellation rates"""
        breakdown = self.appointment_repo.status_breakdown(clinic_id, date_from, date_to)
        by_status = {status.value: breakdown.get(status, 0) for status in AppointmentStatus}
        total = sum(by_status.values())

        def rate(count: int) -> float:
            return round(count / total * 100, 2) if total else 0.0

        return {
            "total": total,
            "by_status": by_status,
            "completion_rate": rate(by_status[AppointmentStatus.COMPLETED.value]),
            "cancellation_rate": rate(by_status[AppointmentStatus.CANCELLED.value]),
            "no_show_rate": rate(by_status[AppointmentStatus.NO_SHOW.value]),
        }

    # ==================== Availability ====================

    def _free_windows(self, dentist: User, clinic: Clinic, target_date: date) -> List[Interval]:
        """Dentist working windows clipped to clinic hours, minus breaks and leave"""
        hours = self.clinic_service.hours_for(clinic, target_date)
        if hours is not None and hours.is_closed:
            return []

        full_day, leave_blocks = self.schedule_service.leave_blocks(dentist.id, target_date)
        if full_day:
            return []

        windows = self.schedule_service.working_windows(dentist.id, clinic.id, target_date)
        if hours is not None:
            windows = intersect(windows, [Interval.from_times(hours.open_time, hours.close_time)])
        return subtract(windows, leave_blocks)

    def _slot_starts(self, dentist: User, clinic: Clinic, target_date: date, duration: int) -> List[int]:
        windows = self._free_windows(dentist, clinic, target_date)
        if not windows:
            return []
        # Bookings at any clinic block the dentist
        booked = [
            appointment_interval(a)
            for a in self.appointment_repo.get_active_for_dentist_on(dentist.id, target_date)
        ]
        now = clock.now()
        not_before = to_minutes(now.time()) if target_date == now.date() else None
        return generate_slots(windows, duration, settings.SLOT_INCREMENT_MINUTES, booked, not_before)

    def _slot_payload(self, start: int, duration: int) -> Dict[str, Any]:
        return {
            "time": format_hhmm(start),
            "end_time": format_hhmm(start + duration),
            "start_minutes": start,
            "is_peak": is_peak(start, settings.PEAK_HOURS_START, settings.PEAK_HOURS_END),
        }

    def get_available_slots(
        self,
        clinic_id: uuid.UUID,
        target_date: date,
        duration_minutes: Optional[int] = None,
        dentist_id: Optional[uuid.UUID] = None
    ) -> Dict[str, Any]:
        """Free start times for one dentist, or clinic-wide grouped by time"""
        clinic = self.clinic_service.get_active_clinic(clinic_id)
        duration = duration_minutes or settings.DEFAULT_APPOINTMENT_DURATION
        self._validate_duration(duration)
        if target_date < clock.today():
            raise ValidationError("Cannot get slots for past dates", error_code="PAST_DATE")

        result = {
            "clinic_id": clinic.id,
            "date": target_date,
            "duration_minutes": duration,
            "dentist_id": dentist_id,
            "slots": [],
            "message": None,
        }

        if dentist_id:
            dentist = self._get_dentist(dentist_id, clinic.id)
            result["slots"] = [
                self._slot_payload(start, duration)
                for start in self._slot_starts(dentist, clinic, target_date, duration)
            ]
            return result

        dentists = {d.id: d for d in self.clinic_service.get_assigned_dentists(clinic.id)}
        if not dentists:
            result["message"] = "No dentists are assigned to this clinic"
            return result

        per_dentist = {
            dentist.id: self._slot_starts(dentist, clinic, target_date, duration)
            for dentist in dentists.values()
        }
        for start, dentist_ids in merge_by_time(per_dentist):
            slot = self._slot_payload(start, duration)
            slot["available_dentists"] = [
                {
                    "id": dentists[d].id,
                    "name": dentists[d].full_name,
                    "specialization": dentists[d].specialization,
                }
                for d in dentist_ids
            ]
            result["slots"].append(slot)
        return result

    def get_next_slot_after_last_booking(
        self,
        clinic_id: uuid.UUID,
        target_date: date,
        duration_minutes: Optional[int] = None
    ) -> Dict[str, Any]:
        """Earliest start after the clinic's last booking of the day"""
        clinic = self.clinic_service.get_active_clinic(clinic_id)
        duration = duration_minutes or settings.DEFAULT_APPOINTMENT_DURATION
        self._validate_duration(duration)
        today = clock.today()
        if target_date < today:
            raise ValidationError("Cannot get slots for past dates", error_code="PAST_DATE")

        result = {
            "clinic_id": clinic.id,
            "date": target_date,
            "duration_minutes": duration,
            "next_slot": None,
            "last_booking_end": None,
            "message": None,
        }

        hours = self.clinic_service.hours_for(clinic, target_date)
        if hours is None:
            raise BusinessLogicError(
                "Clinic has no operating hours configured",
                error_code="NO_OPERATING_HOURS"
            )
        if hours.is_closed:
            result["message"] = f"The clinic is closed on {target_date.strftime('%A')}"
            return result

        booked = [
            appointment_interval(a)
            for a in self.appointment_repo.get_active_for_clinic_on(clinic.id, target_date)
        ]
        if booked:
            result["last_booking_end"] = format_hhmm(max(i.end for i in booked))

        not_before = to_minutes(clock.now().time()) if target_date == today else None
        start = next_after_last_booking(
            to_minutes(hours.open_time), to_minutes(hours.close_time),
            booked, duration, settings.SLOT_INCREMENT_MINUTES, not_before
        )
        if start is None:
            result["message"] = "No time left after the last booking today"
        else:
            result["next_slot"] = {
                "time": format_hhmm(start),
                "end_time": format_hhmm(start + duration),
            }
        return result

    def check_conflicts(
        self,
        clinic_id: uuid.UUID,
        appointment_date: date,
        start_time: time,
        duration_minutes: Optional[int] = None,
        dentist_id: Optional[uuid.UUID] = None,
        exclude_id: Optional[uuid.UUID] = None
    ) -> Dict[str, Any]:
        """Report bookings that overlap a proposed interval"""
        duration = duration_minutes or settings.DEFAULT_APPOINTMENT_DURATION
        self._validate_duration(duration)
        if to_minutes(start_time) + duration > MINUTES_PER_DAY:
            raise ValidationError("Appointment must end by midnight", error_code="APPOINTMENT_PAST_MIDNIGHT")
        interval = Interval.from_duration(start_time, duration)

        if dentist_id:
            conflicts = self.find_conflicts(dentist_id, appointment_date, interval, exclude_id)
        else:
            booked = self.appointment_repo.get_active_for_clinic_on(
                clinic_id, appointment_date, exclude_id=exclude_id
            )
            conflicts = find_overlaps(interval, booked, key=appointment_interval)

        return {
            "has_conflict": bool(conflicts),
            "conflicts": [self._conflict_payload(a) for a in conflicts],
        }

    def get_booked_slots(
        self,
        clinic_id: uuid.UUID,
        target_date: date,
        dentist_id: Optional[uuid.UUID] = None
    ) -> List[Dict[str, Any]]:
        """Intervals held by active appointments at a clinic on a date"""
        booked = []
        for appointment in self.appointment_repo.get_active_for_clinic_on(clinic_id, target_date, dentist_id):
            interval = appointment_interval(appointment)
            booked.append({
                "appointment_id": appointment.id,
                "dentist_id": appointment.dentist_id,
                "start_time": format_hhmm(interval.start),
                "end_time": format_hhmm(interval.end),
                "duration_minutes": appointment.duration_minutes,
                "status": appointment.status,
            })
        return booked

    # ==================== Notifications & reminders ====================

    def _when(self, appointment: Appointment) -> str:
        return f"{appointment.appointment_date.strftime('%A, %B %d, %Y')} at {format_hhmm(appointment.start_time)}"

    def _notify_booked(
        self,
        appointment: Appointment,
        patient: Patient,
        clinic: Clinic,
        dentist: Optional[User]
    ) -> None:
        service = describe_service(appointment.service_type)
        with_dentist = f" with Dr. {dentist.last_name}" if dentist else ""
        data = {"appointment_number": appointment.appointment_number}

        if appointment.is_emergency:
            self.notification_service.notify_patient(
                patient,
                NotificationType.URGENT_APPOINTMENT,
                "Urgent Appointment Scheduled",
                f"Your urgent {service} appointment at {clinic.name} is booked for "
                f"{self._when(appointment)}{with_dentist}",
                priority=NotificationPriority.HIGH,
                appointment_id=appointment.id,
                data=data
            )
            if dentist:
                self.notification_service.notify_user(
                    dentist,
                    NotificationType.URGENT_APPOINTMENT,
                    "Urgent Appointment Assigned",
                    f"Emergency {service} for {patient.full_name} on {self._when(appointment)}",
                    priority=NotificationPriority.URGENT,
                    sms=True,
                    appointment_id=appointment.id,
                    data=data
                )
            return

        self.notification_service.notify_patient(
            patient,
            NotificationType.APPOINTMENT_CONFIRMATION,
            "Appointment Booked",
            f"Your {service} appointment at {clinic.name} is scheduled for "
            f"{self._when(appointment)}{with_dentist}",
            appointment_id=appointment.id,
            data=data
        )

    def _schedule_reminders(self, appointment: Appointment) -> int:
        """Queue one reminder per configured offset that is still ahead"""
        start = appointment.get_datetime()
        now = clock.now()
        queued = 0
        for hours in appointment.reminder_hours or []:
            eta = start - timedelta(hours=hours)
            if eta <= now:
                continue
            try:
                channels.schedule_reminder(str(appointment.id), hours, start.isoformat(), eta.astimezone())
                queued += 1
            except Exception as e:
                logger.error(f"Failed to schedule {hours}h reminder for appointment {appointment.id}: {e}")
        return queued

    def _notify_reminder(self, appointment: Appointment, hours_before: Optional[int] = None) -> None:
        lead = f" in {hours_before} hours" if hours_before else ""
        self.notification_service.notify_patient(
            appointment.patient,
            NotificationType.APPOINTMENT_REMINDER,
            "Appointment Reminder",
            f"Reminder: your {describe_service(appointment.service_type)} appointment at "
            f"{appointment.clinic.name}{lead} is on {self._when(appointment)}",
            appointment_id=appointment.id
        )
        changes = {"reminder_sent": True, "reminder_sent_at": datetime.utcnow()}
        if hours_before:
            changes["reminder_offsets_sent"] = list(appointment.reminder_offsets_sent or []) + [hours_before]
        self.appointment_repo.update(appointment, changes)

    def send_reminder(
        self,
        appointment_id: uuid.UUID,
        hours_before: int,
        expected_start: Optional[str] = None
    ) -> bool:
        """Send one queued reminder once, unless the appointment changed meanwhile"""
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if not appointment or not appointment.is_active:
            logger.info(f"Skipping reminder for inactive appointment {appointment_id}")
            return False
        if expected_start and appointment.get_datetime().isoformat() != expected_start:
            logger.info(f"Skipping stale reminder for rescheduled appointment {appointment_id}")
            return False
        if hours_before in (appointment.reminder_offsets_sent or []):
            logger.info(f"{hours_before}h reminder for appointment {appointment_id} already sent")
            return False
        self._notify_reminder(appointment, hours_before)
        return True

    def send_daily_reminders(self, target_date: Optional[date] = None) -> int:
        """Remind every patient booked for tomorrow who has not been reminded"""
        target_date = target_date or clock.today() + timedelta(days=1)
        sent = 0
        for appointment in self.appointment_repo.get_due_reminders(target_date):
            self._notify_reminder(appointment)
            sent += 1
        logger.info(f"Sent {sent} reminders for {target_date}")
        return sent
