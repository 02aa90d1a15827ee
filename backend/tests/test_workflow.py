# tests/test_workflow.py
from types import SimpleNamespace

import pytest

from mindcare.config.constants import AppointmentStatus, FailureKind
from mindcare.scheduling.workflow import transition_status
from _fakes import DOCTOR_ID, MONDAY, at


@pytest.fixture
def appointment(fake_db):
    return fake_db.add_appointment(DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 11))


@pytest.mark.asyncio
async def test_scheduled_to_confirmed_to_completed(repo, appointment):
    confirmed = await transition_status(repo, appointment, AppointmentStatus.CONFIRMED)
    assert confirmed.ok
    assert appointment.status == "confirmed"

    completed = await transition_status(repo, appointment, AppointmentStatus.COMPLETED)
    assert completed.ok
    assert appointment.status == "completed"
    assert repo.commits == 2


@pytest.mark.asyncio
async def test_skipping_confirmation_is_invalid(repo, appointment):
    outcome = await transition_status(repo, appointment, AppointmentStatus.COMPLETED)

    assert outcome.kind == FailureKind.INVALID_TRANSITION
    assert outcome.reason == "Invalid status transition from 'scheduled' to 'completed'"


@pytest.mark.asyncio
async def test_going_backwards_is_invalid(repo, appointment):
    appointment.status = "confirmed"

    outcome = await transition_status(repo, appointment, AppointmentStatus.SCHEDULED)

    assert outcome.kind == FailureKind.INVALID_TRANSITION


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["cancelled", "completed"])
async def test_terminal_statuses_are_final(repo, appointment, status):
    appointment.status = status

    outcome = await transition_status(repo, appointment, AppointmentStatus.CONFIRMED)

    assert outcome.kind == FailureKind.ALREADY_TERMINAL


@pytest.mark.asyncio
async def test_concurrent_change_is_not_overwritten(fake_db, repo):
    stored = fake_db.add_appointment(DOCTOR_ID, at(MONDAY, 12), at(MONDAY, 13), status="cancelled")
    # what the caller read before the cancel landed
    stale_read = SimpleNamespace(id=stored.id, status="scheduled")

    outcome = await transition_status(repo, stale_read, AppointmentStatus.CONFIRMED)

    assert outcome.kind == FailureKind.ALREADY_TERMINAL
    assert stored.status == "cancelled"
    assert repo.rollbacks == 1
