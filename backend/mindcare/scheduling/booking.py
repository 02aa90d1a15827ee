import logging
from datetime import datetime, timedelta
from typing import Optional

from mindcare.config.constants import (
    CANCELLABLE_STATUSES,
    FailureKind,
)
from mindcare.config.settings import settings
from mindcare.schemas.shared import Role
from mindcare.scheduling.cancellation import CANCELLATION_MIN_NOTICE
from mindcare.scheduling.interfaces import MissingReferenceError, SchedulingStore, SlotTakenError
from mindcare.scheduling.intervals import ensure_utc, utc_now
from mindcare.scheduling.overlap import CONFLICT_MESSAGE
from mindcare.scheduling.results import Outcome
from mindcare.scheduling.validator import check_advance_notice, validate_slot

logger = logging.getLogger(__name__)

RESCHEDULE_NOTICE_MESSAGE = (
    "Appointments can only be rescheduled at least "
    f"{settings.cancellation_min_notice_hours} hours in advance"
)


async def _lock_bookable_doctor(repo: SchedulingStore, doctor_id: int) -> Optional[Outcome]:
    """Take the per-doctor lock; returns a failure outcome if the doctor can't be booked."""
    doctor = await repo.lock_doctor(doctor_id)
    if doctor is None:
        return Outcome.failure(FailureKind.NOT_FOUND, "Doctor not found")
    if not doctor.is_active:
        return Outcome.failure(
            FailureKind.SCHEDULE_VIOLATION, "Doctor is not currently accepting appointments"
        )
    return None


async def book_appointment(
    repo: SchedulingStore,
    patient_id: int,
    doctor_id: int,
    service_id: int,
    start: datetime,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Outcome:
    """
    Validate and insert a new appointment in one transaction.

    The doctor's row lock is held from the overlap check to the commit, so two
    concurrent bookings for the same doctor are serialised; the database
    exclusion constraint backs this up and surfaces as ``SlotTakenError``.

    Returns:
        Outcome with ``appointment`` (status 'scheduled') on success.
    """
    start = ensure_utc(start)
    logger.info(
        f"Booking request: patient_id={patient_id} doctor_id={doctor_id} "
        f"service_id={service_id} start={start}"
    )
    try:
        refused = await _lock_bookable_doctor(repo, doctor_id)
        if refused is not None:
            await repo.rollback()
            return refused

        slot = await validate_slot(repo, doctor_id, service_id, start, now=now)
        if not slot.ok:
            await repo.rollback()
            return slot

        # the first check may have passed a moment before the deadline
        notice = check_advance_notice(start, now if now is not None else utc_now())
        if not notice.ok:
            await repo.rollback()
            return notice

        try:
            appointment = await repo.insert_appointment(
                patient_id=patient_id,
                doctor_id=doctor_id,
                service_id=service_id,
                starts_at=start,
                ends_at=slot.end,
                notes=notes,
            )
        except SlotTakenError:
            logger.warning(
                f"Booking for doctor_id={doctor_id} at {start} lost the race at insert time"
            )
            await repo.rollback()
            return Outcome.failure(FailureKind.SCHEDULING_CONFLICT, CONFLICT_MESSAGE)
        except MissingReferenceError:
            logger.warning(f"Booking refused: patient_id={patient_id} does not exist")
            await repo.rollback()
            return Outcome.failure(FailureKind.NOT_FOUND, "Patient not found")

        await repo.commit()
    except Exception:
        await repo.rollback()
        raise

    logger.info(f"Created appointment_id={appointment.id} [{start}, {slot.end})")
    return Outcome.success(appointment=appointment, end=slot.end, price=slot.price)


async def reschedule_appointment(
    repo: SchedulingStore,
    appointment,
    start: datetime,
    actor_role: Role,
    now: Optional[datetime] = None,
) -> Outcome:
    """
    Move an active appointment to ``start``, keeping doctor and service.

    The slot is re-validated with the appointment itself excluded from the
    conflict set. A patient may only move an appointment that is still at
    least the cancellation notice away, since moving releases the old slot.
    """
    start = ensure_utc(start)
    current_time = ensure_utc(now) if now is not None else utc_now()
    # read before any rollback expires the instance
    appointment_id = appointment.id
    doctor_id = appointment.doctor_id
    service_id = appointment.service_id

    if appointment.status not in CANCELLABLE_STATUSES:
        return Outcome.failure(
            FailureKind.ALREADY_TERMINAL,
            f"Cannot reschedule an appointment with status '{appointment.status}'",
        )
    min_notice = CANCELLATION_MIN_NOTICE if actor_role == Role.patient else None
    if min_notice is not None and ensure_utc(appointment.starts_at) - current_time < min_notice:
        return Outcome.failure(FailureKind.ADVANCE_NOTICE_VIOLATION, RESCHEDULE_NOTICE_MESSAGE)

    try:
        refused = await _lock_bookable_doctor(repo, doctor_id)
        if refused is not None:
            await repo.rollback()
            return refused

        slot = await validate_slot(
            repo,
            doctor_id,
            service_id,
            start,
            exclude_appointment_id=appointment_id,
            now=current_time,
        )
        if not slot.ok:
            await repo.rollback()
            return slot

        try:
            moved = await repo.conditional_update(
                appointment_id,
                CANCELLABLE_STATUSES,
                {"starts_at": start, "ends_at": slot.end},
                min_notice=min_notice,
            )
        except SlotTakenError:
            await repo.rollback()
            return Outcome.failure(FailureKind.SCHEDULING_CONFLICT, CONFLICT_MESSAGE)

        if moved is None:
            await repo.rollback()
            return await _explain_missed_update(repo, appointment_id, min_notice)

        await repo.commit()
    except Exception:
        await repo.rollback()
        raise

    logger.info(f"Rescheduled appointment_id={appointment_id} to [{start}, {slot.end})")
    return Outcome.success(appointment=moved, end=slot.end)


async def _explain_missed_update(
    repo: SchedulingStore, appointment_id: int, min_notice: Optional[timedelta]
) -> Outcome:
    """Re-read after a conditional update matched no row, to report why."""
    current = await repo.find_appointment(appointment_id)
    if current is None:
        return Outcome.failure(FailureKind.NOT_FOUND, "Appointment not found")
    if current.status in CANCELLABLE_STATUSES and min_notice is not None:
        logger.info(f"Reschedule of appointment_id={appointment_id} refused: inside notice window")
        return Outcome.failure(FailureKind.ADVANCE_NOTICE_VIOLATION, RESCHEDULE_NOTICE_MESSAGE)
    return Outcome.failure(
        FailureKind.ALREADY_TERMINAL,
        f"Cannot update appointment with status '{current.status}'",
    )
