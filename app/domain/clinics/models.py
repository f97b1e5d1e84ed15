"""
Clinic Domain Models

Clinics, their weekly operating hours and staff assignments.
"""

from sqlalchemy import (
    Column, String, Boolean, DateTime, ForeignKey, Integer, Time, Table,
    CheckConstraint, UniqueConstraint, Uuid
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
import uuid


clinic_staff = Table(
    "clinic_staff",
    Base.metadata,
    Column("clinic_id", Uuid, ForeignKey("clinics.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Clinic(Base):
    """Dental clinic location"""
    __tablename__ = "clinics"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    code = Column(String(20), unique=True, nullable=False, index=True)
    address = Column(String(500))
    phone = Column(String(20))
    email = Column(String(255))
    timezone = Column(String(50), default="UTC")
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    operating_hours = relationship(
        "ClinicOperatingHours",
        back_populates="clinic",
        cascade="all, delete-orphan",
        order_by="ClinicOperatingHours.day_of_week"
    )
    staff = relationship("User", secondary=clinic_staff, back_populates="clinics")

    def hours_for_day(self, day_of_week: int):
        """Operating hours row for a weekday, None when no hours are configured"""
        for hours in self.operating_hours:
            if hours.day_of_week == day_of_week:
                return hours
        return None


class ClinicOperatingHours(Base):
    """Opening hours for one weekday (0=Monday, 6=Sunday)"""
    __tablename__ = "clinic_operating_hours"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    clinic_id = Column(Uuid, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    is_closed = Column(Boolean, default=False)

    clinic = relationship("Clinic", back_populates="operating_hours")

    __table_args__ = (
        CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_hours_day_of_week'),
        CheckConstraint('open_time < close_time', name='check_hours_order'),
        UniqueConstraint('clinic_id', 'day_of_week', name='unique_clinic_day'),
    )
