from mindcare.scheduling.availability import check_schedule
from mindcare.scheduling.booking import book_appointment, reschedule_appointment
from mindcare.scheduling.cancellation import cancel_appointment
from mindcare.scheduling.intervals import overlaps
from mindcare.scheduling.overlap import check_overlap
from mindcare.scheduling.results import Outcome
from mindcare.scheduling.slots import list_open_slots
from mindcare.scheduling.validator import validate_slot
from mindcare.scheduling.workflow import transition_status

__all__ = [
    "Outcome",
    "overlaps",
    "check_schedule",
    "check_overlap",
    "validate_slot",
    "book_appointment",
    "reschedule_appointment",
    "cancel_appointment",
    "transition_status",
    "list_open_slots",
]
