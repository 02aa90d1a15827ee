import logging
from datetime import datetime, timedelta
from typing import Optional

from mindcare.config.constants import FailureKind
from mindcare.config.settings import settings
from mindcare.scheduling.availability import check_schedule
from mindcare.scheduling.interfaces import SchedulingStore
from mindcare.scheduling.intervals import ensure_utc, utc_now
from mindcare.scheduling.overlap import check_overlap
from mindcare.scheduling.results import Outcome

logger = logging.getLogger(__name__)

BOOKING_MIN_NOTICE = timedelta(hours=settings.booking_min_notice_hours)


def calculate_end(start: datetime, duration_minutes: int) -> datetime:
    return start + timedelta(minutes=duration_minutes)


def check_advance_notice(
    start: datetime, now: Optional[datetime] = None, min_notice: timedelta = BOOKING_MIN_NOTICE
) -> Outcome:
    now = ensure_utc(now) if now is not None else utc_now()
    if ensure_utc(start) - now < min_notice:
        hours = int(min_notice.total_seconds() // 3600)
        return Outcome.failure(
            FailureKind.SCHEDULE_VIOLATION,
            f"Appointments must be booked at least {hours} hours in advance",
        )
    return Outcome.success()


async def validate_slot(
    repo: SchedulingStore,
    doctor_id: int,
    service_id: int,
    start: datetime,
    exclude_appointment_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Outcome:
    """Decide whether a booking at ``start`` is legal.

    Checks run in order and stop at the first failure:

    1. minimum advance notice,
    2. the doctor offers the service (gives the duration and ``end``),
    3. ``start`` is inside the doctor's weekly availability,
    4. ``[start, end)`` overlaps no blocking appointment.

    On success the outcome carries ``end`` and ``price`` so the caller can
    persist the appointment without re-deriving them. Callers that insert
    afterwards must hold the doctor's lock for the whole sequence.
    """
    start = ensure_utc(start)

    notice = check_advance_notice(start, now)
    if not notice.ok:
        return notice

    offering = await repo.find_service_offering(doctor_id, service_id)
    if offering is None:
        logger.info(f"Doctor {doctor_id} does not offer service {service_id}")
        return Outcome.failure(
            FailureKind.SCHEDULE_VIOLATION, "Doctor does not offer this service"
        )
    end = calculate_end(start, offering.duration_minutes)

    schedule = await check_schedule(repo, doctor_id, start)
    if not schedule.ok:
        return schedule

    overlap = await check_overlap(
        repo, doctor_id, start, end, exclude_appointment_id=exclude_appointment_id
    )
    if not overlap.ok:
        return overlap

    return Outcome.success(end=end, price=offering.price)
