"""
Appointments Repository Layer

Provides data access operations for appointments, dentist schedules and leaves.
"""

from typing import Optional, List
from sqlalchemy import and_, or_, func
from sqlalchemy.orm import joinedload
from datetime import datetime, date
import uuid

from app.domain.appointments.models import (
    Appointment, AppointmentStatus, ACTIVE_STATUSES,
    DoctorSchedule, DoctorLeave, LeaveStatus
)


class DoctorScheduleRepository:
    """Repository for dentist schedule data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, schedule_data: dict, commit: bool = True) -> DoctorSchedule:
        """Create a new dentist schedule"""
        schedule = DoctorSchedule(**schedule_data)
        self.db.add(schedule)
        if commit:
            self.db.commit()
            self.db.refresh(schedule)
        else:
            self.db.flush()
        return schedule

    def get_by_id(self, schedule_id: uuid.UUID) -> Optional[DoctorSchedule]:
        """Get schedule by ID"""
        return self.db.query(DoctorSchedule).filter(
            DoctorSchedule.id == schedule_id
        ).first()

    def get_all(
        self,
        doctor_id: Optional[uuid.UUID] = None,
        clinic_id: Optional[uuid.UUID] = None,
        day_of_week: Optional[int] = None,
        active_only: bool = True
    ) -> List[DoctorSchedule]:
        """Get schedules with filtering"""
        query = self.db.query(DoctorSchedule)
        if doctor_id:
            query = query.filter(DoctorSchedule.doctor_id == doctor_id)
        if clinic_id:
            query = query.filter(DoctorSchedule.clinic_id == clinic_id)
        if day_of_week is not None:
            query = query.filter(DoctorSchedule.day_of_week == day_of_week)
        if active_only:
            query = query.filter(DoctorSchedule.is_active == True)
        return query.order_by(
            DoctorSchedule.day_of_week,
            DoctorSchedule.start_time
        ).all()

    def get_schedules_for_date(
        self,
        doctor_id: uuid.UUID,
        target_date: date,
        clinic_id: Optional[uuid.UUID] = None
    ) -> List[DoctorSchedule]:
        """Active schedules that apply on a specific date"""
        query = self.db.query(DoctorSchedule).filter(
            and_(
                DoctorSchedule.doctor_id == doctor_id,
                DoctorSchedule.day_of_week == target_date.weekday(),
                DoctorSchedule.is_active == True,
                DoctorSchedule.effective_from <= target_date,
                or_(
                    DoctorSchedule.effective_until.is_(None),
                    DoctorSchedule.effective_until >= target_date
                )
            )
        )
        if clinic_id:
            query = query.filter(DoctorSchedule.clinic_id == clinic_id)
        return query.order_by(DoctorSchedule.start_time).all()

    def get_overlapping_candidates(
        self,
        doctor_id: uuid.UUID,
        day_of_week: int,
        effective_from: date,
        effective_until: Optional[date],
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[DoctorSchedule]:
        """Active schedules on the same weekday whose validity period overlaps"""
        query = self.db.query(DoctorSchedule).filter(
            and_(
                DoctorSchedule.doctor_id == doctor_id,
                DoctorSchedule.day_of_week == day_of_week,
                DoctorSchedule.is_active == True,
                or_(
                    DoctorSchedule.effective_until.is_(None),
                    DoctorSchedule.effective_until >= effective_from
                )
            )
        )
        if effective_until is not None:
            query = query.filter(DoctorSchedule.effective_from <= effective_until)
        if exclude_id:
            query = query.filter(DoctorSchedule.id != exclude_id)
        return query.all()

    def get_effective_for_clinic(
        self,
        clinic_id: uuid.UUID,
        day_of_week: int,
        target_date: Optional[date] = None
    ) -> List[DoctorSchedule]:
        """Active schedules at a clinic for a weekday, optionally effective on a date"""
        query = self.db.query(DoctorSchedule).options(
            joinedload(DoctorSchedule.doctor)
        ).filter(
            and_(
                DoctorSchedule.clinic_id == clinic_id,
                DoctorSchedule.day_of_week == day_of_week,
                DoctorSchedule.is_active == True
            )
        )
        if target_date is not None:
            query = query.filter(
                DoctorSchedule.effective_from <= target_date,
                or_(
                    DoctorSchedule.effective_until.is_(None),
                    DoctorSchedule.effective_until >= target_date
                )
            )
        return query.order_by(DoctorSchedule.start_time).all()

    def update(self, schedule: DoctorSchedule, update_data: dict) -> DoctorSchedule:
        """Update schedule"""
        for key, value in update_data.items():
            setattr(schedule, key, value)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def deactivate(self, schedule_id: uuid.UUID) -> bool:
        """Deactivate a schedule"""
        result = self.db.query(DoctorSchedule).filter(
            DoctorSchedule.id == schedule_id,
            DoctorSchedule.is_active == True
        ).update({"is_active": False})
        self.db.commit()
        return result > 0


class DoctorLeaveRepository:
    """Repository for dentist leave data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, leave_data: dict) -> DoctorLeave:
        """Create a new leave request"""
        leave = DoctorLeave(**leave_data)
        self.db.add(leave)
        self.db.commit()
        self.db.refresh(leave)
        return leave

    def get_by_id(self, leave_id: uuid.UUID) -> Optional[DoctorLeave]:
        """Get leave by ID"""
        return self.db.query(DoctorLeave).filter(DoctorLeave.id == leave_id).first()

    def get_by_doctor_id(
        self,
        doctor_id: uuid.UUID,
        status: Optional[LeaveStatus] = None
    ) -> List[DoctorLeave]:
        """Get all leaves for a dentist"""
        query = self.db.query(DoctorLeave).filter(
            DoctorLeave.doctor_id == doctor_id
        )
        if status:
            query = query.filter(DoctorLeave.status == status)
        return query.order_by(DoctorLeave.start_date.desc()).all()

    def get_leaves_for_date_range(
        self,
        doctor_id: uuid.UUID,
        start_date: date,
        end_date: date,
        statuses: tuple = (LeaveStatus.APPROVED,)
    ) -> List[DoctorLeave]:
        """Get leaves touching a date range"""
        return self.db.query(DoctorLeave).filter(
            and_(
                DoctorLeave.doctor_id == doctor_id,
                DoctorLeave.status.in_(statuses),
                DoctorLeave.start_date <= end_date,
                DoctorLeave.end_date >= start_date
            )
        ).all()

    def get_approved_on(self, doctor_id: uuid.UUID, check_date: date) -> List[DoctorLeave]:
        """Approved leaves covering a specific date"""
        return self.get_leaves_for_date_range(doctor_id, check_date, check_date)

    def update(self, leave: DoctorLeave, update_data: dict) -> DoctorLeave:
        """Update leave request"""
        for key, value in update_data.items():
            setattr(leave, key, value)
        self.db.commit()
        self.db.refresh(leave)
        return leave

    def approve(self, leave_id: uuid.UUID, approved_by: uuid.UUID) -> Optional[DoctorLeave]:
        """Approve a leave request"""
        leave = self.get_by_id(leave_id)
        if leave and leave.status == LeaveStatus.PENDING:
            return self.update(leave, {
                "status": LeaveStatus.APPROVED,
                "approved_by": approved_by,
                "approved_at": datetime.utcnow(),
            })
        return None

    def reject(self, leave_id: uuid.UUID, approved_by: uuid.UUID, reason: str) -> Optional[DoctorLeave]:
        """Reject a leave request"""
        leave = self.get_by_id(leave_id)
        if leave and leave.status == LeaveStatus.PENDING:
            return self.update(leave, {
                "status": LeaveStatus.REJECTED,
                "approved_by": approved_by,
                "approved_at": datetime.utcnow(),
                "rejection_reason": reason,
            })
        return None


class AppointmentRepository:
    """Repository for appointment data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, appointment_data: dict) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**appointment_data)
        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def get_by_id(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        """Get appointment by ID with relationships"""
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.dentist),
            joinedload(Appointment.clinic)
        ).filter(Appointment.id == appointment_id).first()

    def _filtered(
        self,
        patient_id: Optional[uuid.UUID] = None,
        dentist_id: Optional[uuid.UUID] = None,
        clinic_id: Optional[uuid.UUID] = None,
        status: Optional[AppointmentStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        is_emergency: Optional[bool] = None
    ):
        query = self.db.query(Appointment)
        if patient_id:
            query = query.filter(Appointment.patient_id == patient_id)
        if dentist_id:
            query = query.filter(Appointment.dentist_id == dentist_id)
        if clinic_id:
            query = query.filter(Appointment.clinic_id == clinic_id)
        if status:
            query = query.filter(Appointment.status == status)
        if date_from:
            query = query.filter(Appointment.appointment_date >= date_from)
        if date_to:
            query = query.filter(Appointment.appointment_date <= date_to)
        if is_emergency is not None:
            query = query.filter(Appointment.is_emergency == is_emergency)
        return query

    def get_all(self, skip: int = 0, limit: int = 20, **filters) -> List[Appointment]:
        """Get appointments with filtering, newest first"""
        return self._filtered(**filters).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.dentist)
        ).order_by(
            Appointment.appointment_date.desc(),
            Appointment.start_time.desc()
        ).offset(skip).limit(limit).all()

    def count(self, **filters) -> int:
        """Count appointments with filters"""
        return self._filtered(**filters).count()

    def get_in_range(
        self,
        date_from: date,
        date_to: date,
        clinic_id: Optional[uuid.UUID] = None,
        dentist_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None,
        active_only: bool = False
    ) -> List[Appointment]:
        """Appointments in a date range in chronological order"""
        query = self._filtered(
            patient_id=patient_id,
            dentist_id=dentist_id,
            clinic_id=clinic_id,
            date_from=date_from,
            date_to=date_to
        ).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.dentist)
        )
        if active_only:
            query = query.filter(Appointment.status.in_(ACTIVE_STATUSES))
        return query.order_by(
            Appointment.appointment_date,
            Appointment.start_time
        ).all()

    def get_active_for_dentist_on(
        self,
        dentist_id: uuid.UUID,
        appointment_date: date,
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[Appointment]:
        """Active appointments of a dentist on a date, across all clinics"""
        query = self.db.query(Appointment).options(
            joinedload(Appointment.patient)
        ).filter(
            and_(
                Appointment.dentist_id == dentist_id,
                Appointment.appointment_date == appointment_date,
                Appointment.status.in_(ACTIVE_STATUSES)
            )
        )
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.start_time).all()

    def get_active_for_clinic_on(
        self,
        clinic_id: uuid.UUID,
        appointment_date: date,
        dentist_id: Optional[uuid.UUID] = None,
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[Appointment]:
        """Active appointments at a clinic on a date"""
        query = self.db.query(Appointment).options(
            joinedload(Appointment.patient)
        ).filter(
            and_(
                Appointment.clinic_id == clinic_id,
                Appointment.appointment_date == appointment_date,
                Appointment.status.in_(ACTIVE_STATUSES)
            )
        )
        if dentist_id:
            query = query.filter(Appointment.dentist_id == dentist_id)
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.start_time).all()

    def get_due_reminders(self, target_date: date) -> List[Appointment]:
        """Active appointments on a date that have not been reminded yet"""
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.clinic)
        ).filter(
            and_(
                Appointment.appointment_date == target_date,
                Appointment.status.in_(ACTIVE_STATUSES),
                Appointment.reminder_sent == False
            )
        ).order_by(Appointment.start_time).all()

    def status_breakdown(
        self,
        clinic_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> dict:
        """Appointment counts grouped by status"""
        query = self.db.query(Appointment.status, func.count(Appointment.id))
        if clinic_id:
            query = query.filter(Appointment.clinic_id == clinic_id)
        if date_from:
            query = query.filter(Appointment.appointment_date >= date_from)
        if date_to:
            query = query.filter(Appointment.appointment_date <= date_to)
        return {status: count for status, count in query.group_by(Appointment.status).all()}

    def count_created_on(self, created_date: date) -> int:
        """Appointments booked on a calendar day, for numbering"""
        return self.db.query(func.count(Appointment.id)).filter(
            Appointment.appointment_number.like(f"APT-{created_date.strftime('%Y%m%d')}-%")
        ).scalar()

    def update(self, appointment: Appointment, update_data: dict) -> Appointment:
        """Update appointment"""
        for key, value in update_data.items():
            setattr(appointment, key, value)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment
