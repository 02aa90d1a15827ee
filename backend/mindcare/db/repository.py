# mindcare/db/repository.py
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from mindcare.config.constants import AppointmentStatus, DayOfWeek
from mindcare.db.crud import appointment as appointment_crud
from mindcare.db.crud import doctor as doctor_crud
from mindcare.db.models.appointment import AppointmentModel
from mindcare.db.models.doctor import DoctorModel
from mindcare.db.models.schedule import ScheduleModel
from mindcare.scheduling.interfaces import CancellationGuard, ServiceOffering


class SchedulingRepository:
    """Data access for the scheduling core, bound to one request's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_doctor(self, doctor_id: int) -> Optional[DoctorModel]:
        return await doctor_crud.get_doctor(self.db, doctor_id)

    async def lock_doctor(self, doctor_id: int) -> Optional[DoctorModel]:
        return await doctor_crud.lock_doctor_row(self.db, doctor_id)

    async def find_availability(self, doctor_id: int, day: DayOfWeek) -> List[ScheduleModel]:
        return await doctor_crud.get_doctor_schedules_for_day(self.db, doctor_id, day)

    async def find_service_offering(
        self, doctor_id: int, service_id: int
    ) -> Optional[ServiceOffering]:
        return await doctor_crud.get_service_offering(self.db, doctor_id, service_id)

    async def find_overlapping(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[AppointmentModel]:
        return await appointment_crud.find_overlapping_appointments(
            self.db, doctor_id, start, end, exclude_appointment_id
        )

    async def insert_appointment(self, **values: Any) -> AppointmentModel:
        return await appointment_crud.create_appointment(self.db, **values)

    async def conditional_cancel(
        self, appointment_id: int, reason: str, guard: CancellationGuard
    ) -> Optional[AppointmentModel]:
        return await appointment_crud.cancel_appointment_if(self.db, appointment_id, reason, guard)

    async def conditional_update(
        self,
        appointment_id: int,
        expected_statuses: Sequence[AppointmentStatus],
        values: Dict[str, Any],
        min_notice: Optional[timedelta] = None,
    ) -> Optional[AppointmentModel]:
        return await appointment_crud.update_appointment_if(
            self.db, appointment_id, expected_statuses, values, min_notice
        )

    async def find_appointment(self, appointment_id: int) -> Optional[AppointmentModel]:
        return await appointment_crud.get_appointment(self.db, appointment_id)

    async def list_appointments(
        self, filters: Dict[str, Any], offset: int, limit: int
    ) -> Tuple[List[AppointmentModel], int]:
        return await appointment_crud.get_appointments(self.db, filters, offset, limit)

    async def soft_delete_appointment(self, appointment_id: int) -> Optional[AppointmentModel]:
        return await appointment_crud.soft_delete_appointment(self.db, appointment_id)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
