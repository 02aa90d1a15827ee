import logging
from datetime import datetime, time
from typing import Sequence

from mindcare.config.constants import DayOfWeek, FailureKind
from mindcare.scheduling.interfaces import SchedulingStore
from mindcare.scheduling.intervals import ensure_utc
from mindcare.scheduling.results import Outcome

logger = logging.getLogger(__name__)


def day_of_week(moment: datetime) -> DayOfWeek:
    """Day of week of ``moment`` in UTC, never the server's local zone."""
    return DayOfWeek.from_weekday(ensure_utc(moment).weekday())


def time_of_day(moment: datetime) -> time:
    """UTC wall-clock time of ``moment`` truncated to whole seconds."""
    return ensure_utc(moment).time().replace(microsecond=0)


def window_covers(window, moment_time: time) -> bool:
    return window.start_time <= moment_time < window.end_time


def _format_hours(windows: Sequence) -> str:
    ordered = sorted(windows, key=lambda w: w.start_time)
    return ", ".join(
        f"{w.start_time.isoformat()} - {w.end_time.isoformat()}" for w in ordered
    )


async def check_schedule(repo: SchedulingStore, doctor_id: int, start: datetime) -> Outcome:
    """Is ``start`` inside one of the doctor's weekly windows for that UTC day?

    Any of the day's windows may satisfy the check. Only the start instant
    is tested; an appointment may run past the end of its window.
    """
    day = day_of_week(start)
    windows = await repo.find_availability(doctor_id, day)

    if not windows:
        logger.info(f"Doctor {doctor_id} has no availability on {day.value}")
        return Outcome.failure(
            FailureKind.SCHEDULE_VIOLATION, f"Doctor is not available on {day.value}s"
        )

    start_time = time_of_day(start)
    if any(window_covers(w, start_time) for w in windows):
        return Outcome.success()

    logger.info(
        f"Doctor {doctor_id} not available at {start_time} on {day.value} "
        f"({len(windows)} window(s) checked)"
    )
    return Outcome.failure(
        FailureKind.SCHEDULE_VIOLATION,
        f"Doctor is not available at this time. Available hours: {_format_hours(windows)}",
    )
