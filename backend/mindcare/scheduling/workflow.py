import logging

from mindcare.config.constants import (
    STATUS_TRANSITIONS,
    TERMINAL_STATUSES,
    AppointmentStatus,
    FailureKind,
)
from mindcare.scheduling.interfaces import SchedulingStore
from mindcare.scheduling.results import Outcome

logger = logging.getLogger(__name__)


async def transition_status(
    repo: SchedulingStore, appointment, new_status: AppointmentStatus
) -> Outcome:
    """Advance an appointment along scheduled -> confirmed -> completed.

    Applied as a conditional update on the status we read, so a concurrent
    cancel or transition makes this one fail instead of overwriting it.
    """
    appointment_id = appointment.id
    current = AppointmentStatus(appointment.status)
    if current in TERMINAL_STATUSES:
        return Outcome.failure(
            FailureKind.ALREADY_TERMINAL,
            f"Cannot update appointment with status '{current.value}'",
        )
    if new_status not in STATUS_TRANSITIONS.get(current, ()):
        return Outcome.failure(
            FailureKind.INVALID_TRANSITION,
            f"Invalid status transition from '{current.value}' to '{new_status.value}'",
        )

    try:
        updated = await repo.conditional_update(
            appointment_id, (current,), {"status": new_status.value}
        )
        if updated is None:
            await repo.rollback()
            logger.warning(
                f"Status of appointment_id={appointment_id} changed before transition to {new_status.value}"
            )
            return Outcome.failure(
                FailureKind.ALREADY_TERMINAL,
                f"Appointment is no longer '{current.value}'",
            )
        await repo.commit()
    except Exception:
        await repo.rollback()
        raise

    logger.info(f"Appointment_id={appointment_id}: {current.value} -> {new_status.value}")
    return Outcome.success(appointment=updated)
