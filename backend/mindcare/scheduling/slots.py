import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from mindcare.config.constants import DayOfWeek
from mindcare.scheduling.interfaces import SchedulingStore
from mindcare.scheduling.intervals import overlaps
from mindcare.scheduling.validator import calculate_end, check_advance_notice

logger = logging.getLogger(__name__)


async def list_open_slots(
    repo: SchedulingStore,
    doctor_id: int,
    service_id: int,
    target_date: date,
    now: Optional[datetime] = None,
) -> Optional[List[datetime]]:
    """
    Get bookable start times (UTC) for a doctor's service on a date.

    Each availability window of that weekday is walked in steps of the
    service duration from its start. A start is listed if it satisfies the
    advance-notice rule and its interval overlaps no blocking appointment.

    Returns:
        Sorted start times, or None if the doctor is unknown or does not
        offer the service. An inactive doctor has no open slots.
    """
    doctor = await repo.find_doctor(doctor_id)
    if doctor is None:
        return None
    if not doctor.is_active:
        logger.info(f"Doctor {doctor_id} is not accepting appointments; no open slots")
        return []

    offering = await repo.find_service_offering(doctor_id, service_id)
    if offering is None:
        return None

    day = DayOfWeek.from_weekday(target_date.weekday())
    windows = await repo.find_availability(doctor_id, day)
    if not windows:
        return []

    step = timedelta(minutes=offering.duration_minutes)
    day_start = datetime.combine(target_date, datetime.min.time(), tzinfo=timezone.utc)
    day_end = day_start + timedelta(days=1) + step
    booked = await repo.find_overlapping(doctor_id, day_start, day_end)

    slots = set()
    for window in windows:
        current = datetime.combine(target_date, window.start_time, tzinfo=timezone.utc)
        window_end = datetime.combine(target_date, window.end_time, tzinfo=timezone.utc)
        while current < window_end:
            end = calculate_end(current, offering.duration_minutes)
            if check_advance_notice(current, now).ok and not any(
                overlaps(current, end, a.starts_at, a.ends_at) for a in booked
            ):
                slots.add(current)
            current += step

    logger.debug(f"Open slots for doctor {doctor_id} on {target_date}: {len(slots)}")
    return sorted(slots)
