from typing import Optional
import uuid

from app.domain.patients.models import Patient


class PatientRepository:
    """Repository for patient lookups used by scheduling"""

    def __init__(self, db):
        self.db = db

    def get_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.user_id == user_id).first()
