from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
import uuid


class Patient(Base):
    """Patient record with contact details and reminder preferences"""
    __tablename__ = "patients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_number = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), unique=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255))
    phone = Column(String(20))

    # Notification preferences
    notifications_enabled = Column(Boolean, default=True)
    notify_email = Column(Boolean, default=True)
    notify_sms = Column(Boolean, default=False)
    notify_in_app = Column(Boolean, default=True)
    reminder_hours = Column(JSON)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
    appointments = relationship("Appointment", back_populates="patient")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
