from enum import Enum

from mindcare.schemas.shared import CurrentUser, Role


class Action(str, Enum):
    READ = "read"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    UPDATE_STATUS = "update_status"


# Which actions each role may take on an appointment it is party to.
# Admins may take every action on every appointment.
_PARTY_ACTIONS = {
    Role.patient: {Action.READ, Action.CANCEL, Action.RESCHEDULE},
    Role.doctor: {Action.READ, Action.CANCEL, Action.UPDATE_STATUS},
}


def can_access_appointment(user: CurrentUser, appointment, action: Action) -> bool:
    """Patients act on their own appointments, doctors on those assigned to them."""
    if user.role == Role.admin:
        return True
    if action not in _PARTY_ACTIONS.get(user.role, set()):
        return False
    if user.role == Role.patient:
        return appointment.patient_id == user.user_id
    return appointment.doctor_id == user.user_id


def scope_filters(user: CurrentUser, filters: dict) -> dict:
    """Narrow list filters to what the user may see."""
    scoped = dict(filters)
    if user.role == Role.patient:
        scoped["patient_id"] = user.user_id
    elif user.role == Role.doctor:
        scoped["doctor_id"] = user.user_id
    return scoped
