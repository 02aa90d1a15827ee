from datetime import date
import logging

from fastapi import APIRouter, Depends, Query

from mindcare.core.errors import ApiError
from mindcare.core.middleware import get_current_user, get_scheduling_repository
from mindcare.db.repository import SchedulingRepository
from mindcare.scheduling import list_open_slots
from mindcare.schemas.appointment import OpenSlotsOut
from mindcare.schemas.envelope import Envelope
from mindcare.schemas.shared import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.get(
    "/{doctor_id}/open-slots",
    response_model=Envelope[OpenSlotsOut],
    response_model_exclude_none=True,
)
async def get_open_slots_route(
    doctor_id: int,
    service_id: int = Query(..., gt=0),
    target_date: date = Query(..., alias="date"),
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Bookable start times for a doctor's service on a given UTC date"""
    slots = await list_open_slots(repo, doctor_id, service_id, target_date)
    if slots is None:
        raise ApiError(404, "Doctor or service not found", "NOT_FOUND")
    return Envelope(
        data=OpenSlotsOut(doctor_id=doctor_id, service_id=service_id, date=target_date, slots=slots)
    )
