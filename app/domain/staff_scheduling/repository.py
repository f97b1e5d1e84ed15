"""
Staff Scheduling Repository Layer

Provides data access operations for staff shifts.
"""

from typing import Optional, List, Sequence
from sqlalchemy import and_, or_
from sqlalchemy.orm import joinedload
from datetime import date
import uuid

from app.domain.staff_scheduling.models import (
    StaffSchedule, StaffScheduleStatus, ShiftType
)


class StaffScheduleRepository:
    """Repository for staff schedule data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, schedule_data: dict) -> StaffSchedule:
        """Create a new staff schedule"""
        schedule = StaffSchedule(**schedule_data)
        self.db.add(schedule)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def get_by_id(self, schedule_id: uuid.UUID) -> Optional[StaffSchedule]:
        """Get staff schedule by ID"""
        return self.db.query(StaffSchedule).options(
            joinedload(StaffSchedule.staff),
            joinedload(StaffSchedule.clinic)
        ).filter(StaffSchedule.id == schedule_id).first()

    def _filtered(
        self,
        clinic_id: Optional[uuid.UUID] = None,
        staff_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[StaffScheduleStatus] = None,
        shift_type: Optional[ShiftType] = None
    ):
        query = self.db.query(StaffSchedule)
        if clinic_id:
            query = query.filter(StaffSchedule.clinic_id == clinic_id)
        if staff_id:
            query = query.filter(StaffSchedule.staff_id == staff_id)
        if date_from:
            query = query.filter(StaffSchedule.date >= date_from)
        if date_to:
            query = query.filter(StaffSchedule.date <= date_to)
        if status:
            query = query.filter(StaffSchedule.status == status)
        if shift_type:
            query = query.filter(StaffSchedule.shift_type == shift_type)
        return query

    def get_all(self, skip: int = 0, limit: int = 100, **filters) -> List[StaffSchedule]:
        """Get staff schedules with filtering and pagination"""
        return self._filtered(**filters).options(
            joinedload(StaffSchedule.staff)
        ).order_by(
            StaffSchedule.date,
            StaffSchedule.start_time
        ).offset(skip).limit(limit).all()

    def count(self, **filters) -> int:
        """Count staff schedules with filtering"""
        return self._filtered(**filters).count()

    def get_for_staff(
        self,
        staff_id: uuid.UUID,
        statuses: Sequence[StaffScheduleStatus] = (StaffScheduleStatus.SCHEDULED,),
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[StaffSchedule]:
        """Shifts of one staff member, used for conflict detection"""
        query = self.db.query(StaffSchedule).filter(
            StaffSchedule.staff_id == staff_id,
            StaffSchedule.status.in_(statuses)
        )
        if exclude_id:
            query = query.filter(StaffSchedule.id != exclude_id)
        return query.order_by(StaffSchedule.date, StaffSchedule.start_time).all()

    def get_occurring_between(
        self,
        clinic_id: uuid.UUID,
        start_date: date,
        end_date: date,
        exclude_cancelled: bool = True
    ) -> List[StaffSchedule]:
        """Shifts that may have an occurrence in the date range"""
        query = self.db.query(StaffSchedule).options(
            joinedload(StaffSchedule.staff)
        ).filter(
            StaffSchedule.clinic_id == clinic_id,
            StaffSchedule.date <= end_date,
            or_(
                and_(
                    StaffSchedule.is_recurring == False,
                    StaffSchedule.date >= start_date
                ),
                and_(
                    StaffSchedule.is_recurring == True,
                    or_(
                        StaffSchedule.recurrence_end_date.is_(None),
                        StaffSchedule.recurrence_end_date >= start_date
                    )
                )
            )
        )
        if exclude_cancelled:
            query = query.filter(StaffSchedule.status != StaffScheduleStatus.CANCELLED)
        return query.order_by(StaffSchedule.start_time).all()

    def update(self, schedule: StaffSchedule, update_data: dict) -> StaffSchedule:
        """Update staff schedule"""
        for key, value in update_data.items():
            setattr(schedule, key, value)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def delete(self, schedule: StaffSchedule) -> None:
        """Delete staff schedule"""
        self.db.delete(schedule)
        self.db.commit()
