import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from mindcare.config.constants import BLOCKING_STATUSES, AppointmentStatus
from mindcare.db.models.appointment import AppointmentModel
from mindcare.scheduling.interfaces import (
    CancellationGuard,
    MissingReferenceError,
    SlotTakenError,
)

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "excl_appointments_doctor_overlap"
EXCLUSION_VIOLATION = "23P01"
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(error: IntegrityError):
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _translate_integrity_error(error: IntegrityError) -> Exception:
    """Map a constraint violation to the store's exceptions; other violations pass through."""
    code = _sqlstate(error)
    if code == EXCLUSION_VIOLATION or OVERLAP_CONSTRAINT in str(error.orig):
        return SlotTakenError(str(error.orig))
    if code == FOREIGN_KEY_VIOLATION:
        return MissingReferenceError(str(error.orig))
    return error


def _status_values(statuses: Sequence[AppointmentStatus]) -> List[str]:
    return [AppointmentStatus(s).value for s in statuses]


async def find_overlapping_appointments(
    db: AsyncSession,
    doctor_id: int,
    starts_at: datetime,
    ends_at: datetime,
    exclude_appointment_id: Optional[int] = None,
) -> List[AppointmentModel]:
    """
    Get the doctor's appointments that intersect ``[starts_at, ends_at)``.

    Only scheduled/confirmed/completed, non-deleted rows take part; the
    comparison is the half-open test used by ``overlaps()``.
    """
    conditions = [
        AppointmentModel.doctor_id == doctor_id,
        AppointmentModel.status.in_(_status_values(BLOCKING_STATUSES)),
        AppointmentModel.deleted_at.is_(None),
        starts_at < AppointmentModel.ends_at,  # new starts before existing ends
        ends_at > AppointmentModel.starts_at,  # new ends after existing starts
    ]
    if exclude_appointment_id is not None:
        conditions.append(AppointmentModel.id != exclude_appointment_id)

    result = await db.execute(
        select(AppointmentModel).where(and_(*conditions)).order_by(AppointmentModel.starts_at)
    )
    return list(result.scalars().all())


async def create_appointment(
    db: AsyncSession,
    patient_id: int,
    doctor_id: int,
    service_id: int,
    starts_at: datetime,  # Should be UTC datetime
    ends_at: datetime,  # Should be UTC datetime
    notes: Optional[str] = None,
) -> AppointmentModel:
    """
    Insert a 'scheduled' appointment inside the caller's transaction (no commit).

    Raises:
        SlotTakenError: the overlap exclusion constraint rejected the row.
        MissingReferenceError: the patient, doctor or service does not exist.
    """
    logger.info(
        f"CRUD: Inserting appointment for patient_id={patient_id} with doctor_id={doctor_id} "
        f"from {starts_at} to {ends_at}"
    )
    stmt = (
        insert(AppointmentModel)
        .values(
            patient_id=patient_id,
            doctor_id=doctor_id,
            service_id=service_id,
            starts_at=starts_at,
            ends_at=ends_at,
            notes=notes,
            status=AppointmentStatus.SCHEDULED.value,
        )
        .returning(AppointmentModel)
    )
    try:
        result = await db.execute(stmt)
    except IntegrityError as e:
        logger.warning(f"CRUD: Integrity error inserting appointment: {e.orig}")
        translated = _translate_integrity_error(e)
        if translated is e:
            raise
        raise translated from e
    return result.scalar_one()


async def cancel_appointment_if(
    db: AsyncSession, appointment_id: int, reason: str, guard: CancellationGuard
) -> Optional[AppointmentModel]:
    """
    Atomically cancel an appointment when ``guard`` holds (no commit).

    Produces a single ``UPDATE ... WHERE ... RETURNING``; the notice window is
    compared against the database clock. Returns None if no row matched.
    """
    conditions = [
        AppointmentModel.id == appointment_id,
        AppointmentModel.deleted_at.is_(None),
        AppointmentModel.status.in_(_status_values(guard.statuses)),
    ]
    if guard.min_notice is not None:
        conditions.append(AppointmentModel.starts_at >= func.now() + guard.min_notice)

    stmt = (
        update(AppointmentModel)
        .where(and_(*conditions))
        .values(
            status=AppointmentStatus.CANCELLED.value,
            cancellation_reason=reason,
            updated_at=func.now(),
        )
        .returning(AppointmentModel)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    result = await db.execute(stmt)
    cancelled = result.scalar_one_or_none()
    if cancelled is None:
        logger.info(f"CRUD: Conditional cancel matched no row for appointment_id={appointment_id}")
    return cancelled


async def update_appointment_if(
    db: AsyncSession,
    appointment_id: int,
    expected_statuses: Sequence[AppointmentStatus],
    values: Dict[str, Any],
    min_notice: Optional[timedelta] = None,
) -> Optional[AppointmentModel]:
    """
    Apply ``values`` only while the appointment is in ``expected_statuses`` (no commit).

    With ``min_notice`` the row must also still start at least that far after
    the database clock, checked against the stored ``starts_at``.
    """
    conditions = [
        AppointmentModel.id == appointment_id,
        AppointmentModel.deleted_at.is_(None),
        AppointmentModel.status.in_(_status_values(expected_statuses)),
    ]
    if min_notice is not None:
        conditions.append(AppointmentModel.starts_at >= func.now() + min_notice)

    stmt = (
        update(AppointmentModel)
        .where(and_(*conditions))
        .values(**values, updated_at=func.now())
        .returning(AppointmentModel)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    try:
        result = await db.execute(stmt)
    except IntegrityError as e:
        logger.warning(f"CRUD: Integrity error updating appointment {appointment_id}: {e.orig}")
        translated = _translate_integrity_error(e)
        if translated is e:
            raise
        raise translated from e
    return result.scalar_one_or_none()


async def get_appointment(db: AsyncSession, appointment_id: int) -> Optional[AppointmentModel]:
    """Get a non-deleted appointment by ID."""
    result = await db.execute(
        select(AppointmentModel).where(
            AppointmentModel.id == appointment_id,
            AppointmentModel.deleted_at.is_(None),
        )
    )
    return result.scalars().first()


async def get_appointments(
    db: AsyncSession,
    filters: Dict[str, Any],
    offset: int = 0,
    limit: int = 20,
) -> Tuple[List[AppointmentModel], int]:
    """
    Get a page of non-deleted appointments plus the total matching count.

    Supported filters: doctor_id, patient_id, status, start_date, end_date
    (the latter two bound ``starts_at``, inclusive). Newest first.
    """
    conditions = [AppointmentModel.deleted_at.is_(None)]
    if filters.get("doctor_id") is not None:
        conditions.append(AppointmentModel.doctor_id == int(filters["doctor_id"]))
    if filters.get("patient_id") is not None:
        conditions.append(AppointmentModel.patient_id == int(filters["patient_id"]))
    if filters.get("status") is not None:
        conditions.append(AppointmentModel.status == AppointmentStatus(filters["status"]).value)
    if filters.get("start_date") is not None:
        conditions.append(AppointmentModel.starts_at >= filters["start_date"])
    if filters.get("end_date") is not None:
        conditions.append(AppointmentModel.starts_at <= filters["end_date"])

    logger.debug(f"CRUD get_appointments: filters={filters} offset={offset} limit={limit}")

    total = await db.scalar(
        select(func.count(AppointmentModel.id)).where(and_(*conditions))
    )
    result = await db.execute(
        select(AppointmentModel)
        .where(and_(*conditions))
        .order_by(AppointmentModel.starts_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)


async def soft_delete_appointment(
    db: AsyncSession, appointment_id: int
) -> Optional[AppointmentModel]:
    """Mark an appointment deleted (no commit). Appointments are never hard deleted."""
    stmt = (
        update(AppointmentModel)
        .where(
            AppointmentModel.id == appointment_id,
            AppointmentModel.deleted_at.is_(None),
        )
        .values(deleted_at=func.now(), updated_at=func.now())
        .returning(AppointmentModel)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
