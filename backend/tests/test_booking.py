# tests/test_booking.py
import asyncio
from types import SimpleNamespace
from datetime import time, timedelta

import pytest

from mindcare.config.constants import FailureKind
from mindcare.schemas.shared import Role
from mindcare.scheduling.booking import (
    RESCHEDULE_NOTICE_MESSAGE,
    book_appointment,
    reschedule_appointment,
)
from mindcare.scheduling.interfaces import MissingReferenceError
from mindcare.scheduling.overlap import CONFLICT_MESSAGE
from _fakes import DOCTOR_ID, MONDAY, SERVICE_ID, FakeDatabase, FakeSchedulingRepository, at

PATIENT_ID = 100


async def _book(repo, start, now, patient_id=PATIENT_ID, **kwargs):
    return await book_appointment(
        repo,
        patient_id=patient_id,
        doctor_id=kwargs.pop("doctor_id", DOCTOR_ID),
        service_id=kwargs.pop("service_id", SERVICE_ID),
        start=start,
        now=now,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_booking_creates_a_scheduled_appointment(fake_db, repo, now):
    outcome = await _book(repo, at(MONDAY, 10), now, notes="First session")

    assert outcome.ok
    appointment = outcome.appointment
    assert appointment.status == "scheduled"
    assert appointment.starts_at == at(MONDAY, 10)
    assert appointment.ends_at == at(MONDAY, 10, 45)
    assert appointment.notes == "First session"
    assert outcome.price == 120
    assert repo.commits == 1
    assert fake_db.live(appointment.id) is appointment


@pytest.mark.asyncio
async def test_back_to_back_bookings_both_succeed(fake_db, now):
    first = await _book(FakeSchedulingRepository(fake_db), at(MONDAY, 10), now)
    second = await _book(FakeSchedulingRepository(fake_db), at(MONDAY, 10, 45), now, patient_id=101)

    assert first.ok and second.ok


@pytest.mark.asyncio
async def test_overlapping_booking_is_rejected_and_rolled_back(fake_db, now):
    await _book(FakeSchedulingRepository(fake_db), at(MONDAY, 10), now)
    repo = FakeSchedulingRepository(fake_db)

    outcome = await _book(repo, at(MONDAY, 10, 30), now, patient_id=101)

    assert outcome.kind == FailureKind.SCHEDULING_CONFLICT
    assert outcome.reason == CONFLICT_MESSAGE
    assert repo.rollbacks == 1
    assert len(fake_db.appointments) == 1


@pytest.mark.asyncio
async def test_cancelled_slot_can_be_booked_again(fake_db, repo, now):
    fake_db.add_appointment(DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), status="cancelled")

    outcome = await _book(repo, at(MONDAY, 10), now)

    assert outcome.ok


@pytest.mark.asyncio
async def test_concurrent_bookings_for_the_same_slot_yield_one_success(fake_db, now):
    outcomes = await asyncio.gather(
        _book(FakeSchedulingRepository(fake_db), at(MONDAY, 10), now, patient_id=101),
        _book(FakeSchedulingRepository(fake_db), at(MONDAY, 10), now, patient_id=102),
    )

    assert sorted(o.ok for o in outcomes) == [False, True]
    loser = next(o for o in outcomes if not o.ok)
    assert loser.kind == FailureKind.SCHEDULING_CONFLICT
    assert len(fake_db.blocking(DOCTOR_ID, at(MONDAY, 0), at(MONDAY, 23))) == 1


@pytest.mark.asyncio
async def test_many_concurrent_overlapping_bookings_never_double_book(fake_db, now):
    starts = [at(MONDAY, 10, minute) for minute in (0, 10, 20, 30, 40)]
    outcomes = await asyncio.gather(
        *(
            _book(FakeSchedulingRepository(fake_db), start, now, patient_id=200 + i)
            for i, start in enumerate(starts)
        )
    )

    assert sum(o.ok for o in outcomes) == 1
    assert not fake_db.locks[DOCTOR_ID].locked()


@pytest.mark.asyncio
async def test_insert_race_is_reported_as_conflict(fake_db, now):
    class RacingRepository(FakeSchedulingRepository):
        # another writer commits between the overlap check and the insert
        async def insert_appointment(self, **values):
            self.db.add_appointment(DOCTOR_ID, values["starts_at"], values["ends_at"])
            return await super().insert_appointment(**values)

    repo = RacingRepository(fake_db)
    outcome = await _book(repo, at(MONDAY, 10), now)

    assert outcome.kind == FailureKind.SCHEDULING_CONFLICT
    assert repo.rollbacks == 1
    assert not fake_db.locks[DOCTOR_ID].locked()


@pytest.mark.asyncio
async def test_unknown_doctor_is_not_found(repo, now):
    outcome = await _book(repo, at(MONDAY, 10), now, doctor_id=999)

    assert outcome.kind == FailureKind.NOT_FOUND
    assert outcome.reason == "Doctor not found"


@pytest.mark.asyncio
async def test_inactive_doctor_cannot_be_booked(fake_db, repo, now):
    fake_db.doctors[DOCTOR_ID].is_active = False

    outcome = await _book(repo, at(MONDAY, 10), now)

    assert outcome.kind == FailureKind.SCHEDULE_VIOLATION
    assert outcome.reason == "Doctor is not currently accepting appointments"
    assert not fake_db.locks[DOCTOR_ID].locked()


@pytest.mark.asyncio
async def test_storage_errors_propagate_after_rollback(fake_db, now):
    class BrokenRepository(FakeSchedulingRepository):
        async def find_overlapping(self, *args, **kwargs):
            raise ConnectionError("database unavailable")

    repo = BrokenRepository(fake_db)
    with pytest.raises(ConnectionError):
        await _book(repo, at(MONDAY, 10), now)

    assert repo.rollbacks == 1
    assert not fake_db.locks[DOCTOR_ID].locked()


# ---- reschedule ---------------------------------------------------------------------


@pytest.mark.asyncio
async def test_reschedule_moves_the_appointment(fake_db, repo, now):
    fake_db.clock = now
    existing = fake_db.add_appointment(
        DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), service_id=SERVICE_ID
    )

    outcome = await reschedule_appointment(repo, existing, at(MONDAY, 14), Role.patient, now=now)

    assert outcome.ok
    assert existing.starts_at == at(MONDAY, 14)
    assert existing.ends_at == at(MONDAY, 14, 45)
    assert repo.commits == 1


@pytest.mark.asyncio
async def test_reschedule_may_overlap_its_own_old_slot(fake_db, repo, now):
    existing = fake_db.add_appointment(
        DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), service_id=SERVICE_ID
    )

    outcome = await reschedule_appointment(repo, existing, at(MONDAY, 10, 15), Role.admin, now=now)

    assert outcome.ok
    assert existing.ends_at == at(MONDAY, 11)


@pytest.mark.asyncio
async def test_reschedule_onto_another_appointment_conflicts(fake_db, repo, now):
    fake_db.add_appointment(DOCTOR_ID, at(MONDAY, 14), at(MONDAY, 15))
    existing = fake_db.add_appointment(
        DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), service_id=SERVICE_ID
    )

    outcome = await reschedule_appointment(repo, existing, at(MONDAY, 14, 30), Role.admin, now=now)

    assert outcome.kind == FailureKind.SCHEDULING_CONFLICT
    assert existing.starts_at == at(MONDAY, 10)


@pytest.mark.asyncio
async def test_patient_cannot_reschedule_inside_the_notice_window(fake_db, repo):
    existing = fake_db.add_appointment(
        DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), service_id=SERVICE_ID
    )
    next_week = MONDAY + timedelta(days=7)

    outcome = await reschedule_appointment(
        repo, existing, at(next_week, 10), Role.patient, now=at(MONDAY - timedelta(days=1), 12)
    )

    assert outcome.kind == FailureKind.ADVANCE_NOTICE_VIOLATION
    assert repo.commits == 0


@pytest.mark.asyncio
async def test_admin_can_reschedule_inside_the_notice_window(fake_db, repo):
    existing = fake_db.add_appointment(
        DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), service_id=SERVICE_ID
    )
    next_week = MONDAY + timedelta(days=7)

    outcome = await reschedule_appointment(
        repo, existing, at(next_week, 10), Role.admin, now=at(MONDAY - timedelta(days=1), 12)
    )

    assert outcome.ok


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["cancelled", "completed"])
async def test_terminal_appointments_cannot_be_rescheduled(fake_db, repo, now, status):
    existing = fake_db.add_appointment(
        DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), status=status, service_id=SERVICE_ID
    )

    outcome = await reschedule_appointment(repo, existing, at(MONDAY, 14), Role.admin, now=now)

    assert outcome.kind == FailureKind.ALREADY_TERMINAL


@pytest.mark.asyncio
async def test_talk_therapy_monday_scenario(now):
    db = FakeDatabase()
    db.add_doctor(21)
    db.add_window(21, "monday", time(9, 0), time(12, 0))
    db.add_offering(21, 5, duration_minutes=60, price=90)

    first = await _book(FakeSchedulingRepository(db), at(MONDAY, 9), now, doctor_id=21, service_id=5)
    second = await _book(
        FakeSchedulingRepository(db), at(MONDAY, 9, 30), now, patient_id=101, doctor_id=21, service_id=5
    )

    assert first.ok
    assert first.end == at(MONDAY, 10)
    assert first.appointment.status == "scheduled"
    assert second.kind == FailureKind.SCHEDULING_CONFLICT


@pytest.mark.asyncio
async def test_booking_for_a_missing_patient_is_not_found(fake_db, now):
    class NoPatientRepository(FakeSchedulingRepository):
        async def insert_appointment(self, **values):
            raise MissingReferenceError("appointments_patient_id_fkey")

    repo = NoPatientRepository(fake_db)
    outcome = await _book(repo, at(MONDAY, 10), now, patient_id=999)

    assert outcome.kind == FailureKind.NOT_FOUND
    assert outcome.reason == "Patient not found"
    assert repo.rollbacks == 1
    assert not fake_db.locks[DOCTOR_ID].locked()


@pytest.mark.asyncio
async def test_patient_reschedule_checks_the_stored_start(fake_db, repo):
    stored = fake_db.add_appointment(
        DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 10, 45), service_id=SERVICE_ID
    )
    sunday_noon = at(MONDAY - timedelta(days=1), 12)
    fake_db.clock = sunday_noon
    # an earlier read, taken before the appointment was moved to Monday
    earlier_read = SimpleNamespace(
        id=stored.id,
        doctor_id=DOCTOR_ID,
        service_id=SERVICE_ID,
        status="scheduled",
        starts_at=at(MONDAY + timedelta(days=1), 10),
    )
    next_week = MONDAY + timedelta(days=7)

    outcome = await reschedule_appointment(
        repo, earlier_read, at(next_week, 10), Role.patient, now=sunday_noon
    )

    assert outcome.kind == FailureKind.ADVANCE_NOTICE_VIOLATION
    assert outcome.reason == RESCHEDULE_NOTICE_MESSAGE
    assert stored.starts_at == at(MONDAY, 10)
    assert repo.rollbacks == 1
    assert not fake_db.locks[DOCTOR_ID].locked()
