import logging
from datetime import datetime
from typing import Optional

from mindcare.config.constants import FailureKind
from mindcare.scheduling.interfaces import SchedulingStore
from mindcare.scheduling.results import Outcome

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "This time slot conflicts with an existing appointment"


async def check_overlap(
    repo: SchedulingStore,
    doctor_id: int,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[int] = None,
) -> Outcome:
    """Fail if ``[start, end)`` intersects any blocking appointment of the doctor.

    Cancelled and soft-deleted appointments never block. When moving an
    existing appointment pass its id as ``exclude_appointment_id``.
    """
    conflicts = await repo.find_overlapping(
        doctor_id, start, end, exclude_appointment_id=exclude_appointment_id
    )
    if conflicts:
        logger.warning(
            f"Scheduling conflict for doctor_id={doctor_id} on [{start}, {end}): "
            f"conflicts with appointment_ids={[c.id for c in conflicts]}"
        )
        return Outcome.failure(FailureKind.SCHEDULING_CONFLICT, CONFLICT_MESSAGE)
    return Outcome.success()
