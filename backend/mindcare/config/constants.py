from enum import Enum


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that occupy a doctor's time and therefore block new bookings.
BLOCKING_STATUSES = (
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
)
CANCELLABLE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)
TERMINAL_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)

# scheduled -> confirmed -> completed; cancellation has its own endpoint
STATUS_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: (AppointmentStatus.CONFIRMED,),
    AppointmentStatus.CONFIRMED: (AppointmentStatus.COMPLETED,),
}


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_weekday(cls, weekday: int) -> "DayOfWeek":
        """Map ``date.weekday()`` (Monday == 0) to a DayOfWeek."""
        return list(cls)[weekday]


class FailureKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    SCHEDULE_VIOLATION = "SCHEDULE_VIOLATION"
    SCHEDULING_CONFLICT = "SCHEDULING_CONFLICT"
    ALREADY_TERMINAL = "ALREADY_TERMINAL"
    ADVANCE_NOTICE_VIOLATION = "ADVANCE_NOTICE_VIOLATION"
    INVALID_TRANSITION = "INVALID_TRANSITION"
