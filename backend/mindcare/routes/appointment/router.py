from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import datetime
import logging

from mindcare.config.constants import AppointmentStatus
from mindcare.core.errors import ApiError, raise_for_outcome
from mindcare.core.middleware import get_current_user, get_scheduling_repository, require_roles
from mindcare.core.pagination import calculate_pagination_metadata, get_pagination_params
from mindcare.core.permissions import Action, can_access_appointment, scope_filters
from mindcare.db.repository import SchedulingRepository
from mindcare.scheduling import (
    book_appointment,
    cancel_appointment,
    reschedule_appointment,
    transition_status,
)
from mindcare.schemas.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentReschedule,
    AppointmentStatusUpdate,
)
from mindcare.schemas.envelope import Envelope
from mindcare.schemas.shared import AppointmentOut, CurrentUser, Role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


async def _load_for(
    repo: SchedulingRepository, appointment_id: int, user: CurrentUser, action: Action
):
    """Fetch an appointment and check the user may perform ``action`` on it."""
    appointment = await repo.find_appointment(appointment_id)
    if appointment is None:
        raise ApiError(404, "Appointment not found", "NOT_FOUND")
    if not can_access_appointment(user, appointment, action):
        logger.warning(
            f"User {user.user_id} ({user.role.value}) denied '{action.value}' on appointment {appointment_id}"
        )
        raise ApiError(403, "Not authorized to access this appointment", "FORBIDDEN")
    return appointment


@router.post(
    "/",
    response_model=Envelope[AppointmentOut],
    status_code=201,
    response_model_exclude_none=True,
)
async def create_appointment_route(
    appointment: AppointmentCreate,
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(require_roles([Role.patient, Role.admin])),
):
    """Book an appointment; patients book for themselves, admins for any patient"""
    if current_user.role == Role.admin:
        if appointment.patient_id is None:
            raise ApiError(400, "patient_id is required when booking as admin", "VALIDATION_ERROR")
        patient_id = appointment.patient_id
    else:
        patient_id = current_user.user_id

    outcome = await book_appointment(
        repo,
        patient_id=patient_id,
        doctor_id=appointment.doctor_id,
        service_id=appointment.service_id,
        start=appointment.starts_at,
        notes=appointment.notes,
    )
    raise_for_outcome(outcome)
    return Envelope(
        data=AppointmentOut.model_validate(outcome.appointment),
        message="Appointment created successfully",
    )


@router.get(
    "/",
    response_model=Envelope[List[AppointmentOut]],
    response_model_exclude_none=True,
)
async def list_appointments_route(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    doctor_id: Optional[int] = None,
    patient_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """List appointments visible to the current user"""
    page, limit, offset = get_pagination_params(page, limit)
    filters = AppointmentFilters(
        doctor_id=doctor_id,
        patient_id=patient_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
    ).model_dump()
    appointments, total = await repo.list_appointments(
        scope_filters(current_user, filters), offset, limit
    )
    return Envelope(
        data=[AppointmentOut.model_validate(a) for a in appointments],
        pagination=calculate_pagination_metadata(page, limit, total),
    )


@router.get(
    "/{appointment_id}",
    response_model=Envelope[AppointmentOut],
    response_model_exclude_none=True,
)
async def get_appointment_route(
    appointment_id: int,
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Get a specific appointment by ID"""
    appointment = await _load_for(repo, appointment_id, current_user, Action.READ)
    return Envelope(data=AppointmentOut.model_validate(appointment))


@router.post(
    "/{appointment_id}/cancel",
    response_model=Envelope[AppointmentOut],
    response_model_exclude_none=True,
)
async def cancel_appointment_route(
    appointment_id: int,
    body: AppointmentCancel,
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Cancel an appointment; patients must do so at least 24 hours ahead"""
    await _load_for(repo, appointment_id, current_user, Action.CANCEL)
    outcome = await cancel_appointment(
        repo, appointment_id, body.cancellation_reason, current_user.role
    )
    raise_for_outcome(outcome)
    return Envelope(
        data=AppointmentOut.model_validate(outcome.appointment),
        message="Appointment cancelled successfully",
    )


@router.patch(
    "/{appointment_id}/status",
    response_model=Envelope[AppointmentOut],
    response_model_exclude_none=True,
)
async def update_status_route(
    appointment_id: int,
    body: AppointmentStatusUpdate,
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(require_roles([Role.doctor, Role.admin])),
):
    """Confirm or complete an appointment (doctor or admin)"""
    if body.status == AppointmentStatus.CANCELLED:
        raise ApiError(
            400, "Use the cancel endpoint to cancel appointments", "VALIDATION_ERROR"
        )
    appointment = await _load_for(repo, appointment_id, current_user, Action.UPDATE_STATUS)
    outcome = await transition_status(repo, appointment, body.status)
    raise_for_outcome(outcome)
    return Envelope(
        data=AppointmentOut.model_validate(outcome.appointment),
        message="Appointment updated successfully",
    )


@router.patch(
    "/{appointment_id}/reschedule",
    response_model=Envelope[AppointmentOut],
    response_model_exclude_none=True,
)
async def reschedule_appointment_route(
    appointment_id: int,
    body: AppointmentReschedule,
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Move an appointment to a new start time with the same doctor and service"""
    appointment = await _load_for(repo, appointment_id, current_user, Action.RESCHEDULE)
    outcome = await reschedule_appointment(repo, appointment, body.starts_at, current_user.role)
    raise_for_outcome(outcome)
    return Envelope(
        data=AppointmentOut.model_validate(outcome.appointment),
        message="Appointment rescheduled successfully",
    )


@router.delete(
    "/{appointment_id}",
    response_model=Envelope[AppointmentOut],
    response_model_exclude_none=True,
)
async def delete_appointment_route(
    appointment_id: int,
    repo: SchedulingRepository = Depends(get_scheduling_repository),
    current_user: CurrentUser = Depends(require_roles([Role.admin])),
):
    """Soft delete an appointment (admin only)"""
    logger.info(f"Attempting to delete appointment {appointment_id} by user: {current_user.user_id}")
    try:
        deleted = await repo.soft_delete_appointment(appointment_id)
        if deleted is None:
            await repo.rollback()
            raise ApiError(404, "Appointment not found", "NOT_FOUND")
        await repo.commit()
    except ApiError:
        raise
    except Exception:
        await repo.rollback()
        raise
    return Envelope(
        data=AppointmentOut.model_validate(deleted),
        message="Appointment deleted successfully",
    )
