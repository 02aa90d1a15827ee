"""Narrow data-access contract the scheduling core depends on.

`mindcare.db.repository.SchedulingRepository` implements it over an
``AsyncSession``; the tests provide an in-memory implementation.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from mindcare.config.constants import AppointmentStatus, DayOfWeek


class SlotTakenError(Exception):
    """Raised by the store when the insert itself loses an overlap race."""


class MissingReferenceError(Exception):
    """Raised by the store when a referenced patient, doctor or service row does not exist."""


@dataclass(frozen=True)
class ServiceOffering:
    doctor_id: int
    service_id: int
    duration_minutes: int
    price: int


@dataclass(frozen=True)
class CancellationGuard:
    """Declarative guard evaluated by the store inside the cancelling UPDATE.

    ``min_notice`` of ``None`` means no advance-notice requirement.
    """

    statuses: Tuple[AppointmentStatus, ...]
    min_notice: Optional[timedelta] = None


class SchedulingStore(Protocol):
    async def find_doctor(self, doctor_id: int) -> Optional[Any]: ...

    async def lock_doctor(self, doctor_id: int) -> Optional[Any]: ...

    async def find_availability(self, doctor_id: int, day: DayOfWeek) -> Sequence[Any]: ...

    async def find_service_offering(
        self, doctor_id: int, service_id: int
    ) -> Optional[ServiceOffering]: ...

    async def find_overlapping(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> Sequence[Any]: ...

    async def insert_appointment(
        self,
        patient_id: int,
        doctor_id: int,
        service_id: int,
        starts_at: datetime,
        ends_at: datetime,
        notes: Optional[str] = None,
    ) -> Any: ...

    async def conditional_cancel(
        self, appointment_id: int, reason: str, guard: CancellationGuard
    ) -> Optional[Any]: ...

    async def conditional_update(
        self,
        appointment_id: int,
        expected_statuses: Sequence[AppointmentStatus],
        values: Dict[str, Any],
        min_notice: Optional[timedelta] = None,
    ) -> Optional[Any]: ...

    async def find_appointment(self, appointment_id: int) -> Optional[Any]: ...

    async def list_appointments(
        self, filters: Dict[str, Any], offset: int, limit: int
    ) -> Tuple[List[Any], int]: ...

    async def soft_delete_appointment(self, appointment_id: int) -> Optional[Any]: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
