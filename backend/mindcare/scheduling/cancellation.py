import logging
from datetime import timedelta

from mindcare.config.constants import CANCELLABLE_STATUSES, AppointmentStatus, FailureKind
from mindcare.config.settings import settings
from mindcare.schemas.shared import Role
from mindcare.scheduling.interfaces import CancellationGuard, SchedulingStore
from mindcare.scheduling.results import Outcome

logger = logging.getLogger(__name__)

CANCELLATION_MIN_NOTICE = timedelta(hours=settings.cancellation_min_notice_hours)

ADVANCE_NOTICE_MESSAGE = (
    f"Appointments can only be cancelled at least {settings.cancellation_min_notice_hours} "
    "hours in advance. Please contact support for assistance."
)


def cancellation_guard(actor_role: Role) -> CancellationGuard:
    """Patients must cancel ahead of time; admins and the assigned doctor need not."""
    if actor_role == Role.patient:
        return CancellationGuard(statuses=CANCELLABLE_STATUSES, min_notice=CANCELLATION_MIN_NOTICE)
    return CancellationGuard(statuses=CANCELLABLE_STATUSES)


async def cancel_appointment(
    repo: SchedulingStore, appointment_id: int, reason: str, actor_role: Role
) -> Outcome:
    """
    Cancel an appointment with one conditional UPDATE.

    The status and advance-notice guards are evaluated by the database in the
    same statement that writes, so the deadline cannot pass between a check
    and the write. When no row changes, the appointment is re-read only to
    report why.

    Args:
        repo: Scheduling store bound to the request's session.
        appointment_id: Appointment to cancel.
        reason: Cancellation reason, already validated as non-empty.
        actor_role: Role of the acting user; only patients are held to the notice rule.

    Returns:
        Outcome with the cancelled ``appointment`` on success, otherwise one of
        NOT_FOUND, ALREADY_TERMINAL or ADVANCE_NOTICE_VIOLATION.
    """
    guard = cancellation_guard(actor_role)
    logger.info(
        f"Cancelling appointment_id={appointment_id} as {actor_role.value} "
        f"(min_notice={guard.min_notice})"
    )
    try:
        cancelled = await repo.conditional_cancel(appointment_id, reason, guard)
        if cancelled is not None:
            await repo.commit()
            logger.info(f"Cancelled appointment_id={appointment_id}")
            return Outcome.success(appointment=cancelled)
        await repo.rollback()
    except Exception:
        await repo.rollback()
        raise

    current = await repo.find_appointment(appointment_id)
    if current is None:
        return Outcome.failure(FailureKind.NOT_FOUND, "Appointment not found")
    if current.status == AppointmentStatus.CANCELLED:
        return Outcome.failure(FailureKind.ALREADY_TERMINAL, "Appointment is already cancelled")
    if current.status == AppointmentStatus.COMPLETED:
        return Outcome.failure(
            FailureKind.ALREADY_TERMINAL, "Cannot cancel a completed appointment"
        )
    if guard.min_notice is not None:
        logger.info(f"Cancellation of appointment_id={appointment_id} refused: inside notice window")
        return Outcome.failure(FailureKind.ADVANCE_NOTICE_VIOLATION, ADVANCE_NOTICE_MESSAGE)

    # guard had no time condition, so the row changed under us
    logger.warning(
        f"Appointment_id={appointment_id} changed concurrently (status='{current.status}')"
    )
    return Outcome.failure(
        FailureKind.ALREADY_TERMINAL,
        f"Cannot cancel appointment with status '{current.status}'",
    )
