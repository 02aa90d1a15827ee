# mindcare/db/crud/doctor.py
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindcare.config.constants import DayOfWeek
from mindcare.db.models.doctor import DoctorModel
from mindcare.db.models.schedule import ScheduleModel
from mindcare.db.models.service import DoctorServiceModel, ServiceModel
from mindcare.scheduling.interfaces import ServiceOffering

logger = logging.getLogger(__name__)


async def get_doctor(db: AsyncSession, doctor_id: int) -> Optional[DoctorModel]:
    result = await db.execute(select(DoctorModel).where(DoctorModel.user_id == doctor_id))
    return result.scalar_one_or_none()


async def lock_doctor_row(db: AsyncSession, doctor_id: int) -> Optional[DoctorModel]:
    """
    SELECT the doctor's row FOR UPDATE.

    Held until the transaction ends; every booking for the doctor takes it
    first, which serialises overlap-check-then-insert per doctor.
    """
    result = await db.execute(
        select(DoctorModel).where(DoctorModel.user_id == doctor_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def get_doctor_schedules_for_day(
    db: AsyncSession, doctor_id: int, day: DayOfWeek
) -> List[ScheduleModel]:
    """All weekly availability windows of a doctor on ``day``."""
    result = await db.execute(
        select(ScheduleModel)
        .where(ScheduleModel.doctor_id == doctor_id, ScheduleModel.day == day.value)
        .order_by(ScheduleModel.start_time)
    )
    return list(result.scalars().all())


async def get_service_offering(
    db: AsyncSession, doctor_id: int, service_id: int
) -> Optional[ServiceOffering]:
    """The doctor's price and the service's duration, or None if not offered."""
    result = await db.execute(
        select(DoctorServiceModel.amount, ServiceModel.duration_minutes)
        .join(ServiceModel, ServiceModel.id == DoctorServiceModel.service_id)
        .where(
            DoctorServiceModel.doctor_id == doctor_id,
            DoctorServiceModel.service_id == service_id,
        )
    )
    row = result.first()
    if row is None:
        return None
    return ServiceOffering(
        doctor_id=doctor_id,
        service_id=service_id,
        duration_minutes=row.duration_minutes,
        price=row.amount,
    )
