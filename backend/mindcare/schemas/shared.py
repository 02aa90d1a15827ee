# mindcare/schemas/shared.py
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from mindcare.config.constants import AppointmentStatus

class Role(str, Enum):
    doctor = "doctor"
    patient = "patient"
    admin = "admin"

class CurrentUser(BaseModel):
    """The acting principal, as supplied by the session token."""
    user_id: int
    role: Role

class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    service_id: int
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
