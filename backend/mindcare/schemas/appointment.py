# mindcare/schemas/appointment.py

from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mindcare.config.constants import AppointmentStatus

LongText = Annotated[str, Field(min_length=1, max_length=2000)]


class AppointmentCreate(BaseModel):
    model_config = ConfigDict(extra='forbid')

    doctor_id: Annotated[int, Field(gt=0)]
    service_id: Annotated[int, Field(gt=0)]
    starts_at: datetime
    notes: Optional[LongText] = None
    # admins book on behalf of a patient; ignored for patients
    patient_id: Optional[Annotated[int, Field(gt=0)]] = None


class AppointmentCancel(BaseModel):
    model_config = ConfigDict(extra='forbid')

    cancellation_reason: LongText

    @field_validator("cancellation_reason")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Cancellation reason is required")
        return value


class AppointmentReschedule(BaseModel):
    model_config = ConfigDict(extra='forbid')

    starts_at: datetime


class AppointmentStatusUpdate(BaseModel):
    model_config = ConfigDict(extra='forbid')

    status: AppointmentStatus


class AppointmentFilters(BaseModel):
    doctor_id: Optional[int] = None
    patient_id: Optional[int] = None
    status: Optional[AppointmentStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class OpenSlotsOut(BaseModel):
    doctor_id: int
    service_id: int
    date: date
    slots: List[datetime]
