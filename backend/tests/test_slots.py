# tests/test_slots.py
from datetime import time, timedelta

import pytest

from mindcare.scheduling.slots import list_open_slots
from _fakes import DOCTOR_ID, MONDAY, SERVICE_ID, at

ALL_MONDAY_SLOTS = [
    at(MONDAY, 9), at(MONDAY, 9, 45), at(MONDAY, 10, 30), at(MONDAY, 11, 15),
    at(MONDAY, 12), at(MONDAY, 12, 45), at(MONDAY, 13, 30), at(MONDAY, 14, 15),
    at(MONDAY, 15), at(MONDAY, 15, 45), at(MONDAY, 16, 30),
]


@pytest.mark.asyncio
async def test_empty_day_is_split_by_service_duration(repo, now):
    slots = await list_open_slots(repo, DOCTOR_ID, SERVICE_ID, MONDAY.date(), now=now)
    assert slots == ALL_MONDAY_SLOTS


@pytest.mark.asyncio
async def test_booked_time_is_left_out(fake_db, repo, now):
    fake_db.add_appointment(DOCTOR_ID, at(MONDAY, 10), at(MONDAY, 11))
    fake_db.add_appointment(DOCTOR_ID, at(MONDAY, 15), at(MONDAY, 16), status="cancelled")

    slots = await list_open_slots(repo, DOCTOR_ID, SERVICE_ID, MONDAY.date(), now=now)

    assert at(MONDAY, 9) in slots
    assert at(MONDAY, 9, 45) not in slots
    assert at(MONDAY, 10, 30) not in slots
    assert at(MONDAY, 11, 15) in slots
    assert at(MONDAY, 15) in slots


@pytest.mark.asyncio
async def test_slots_inside_the_notice_window_are_left_out(repo):
    sunday_noon = at(MONDAY - timedelta(days=1), 12)

    slots = await list_open_slots(repo, DOCTOR_ID, SERVICE_ID, MONDAY.date(), now=sunday_noon)

    assert slots[0] == at(MONDAY, 12)


@pytest.mark.asyncio
async def test_several_windows_are_merged_in_order(fake_db, repo, now):
    fake_db.add_window(DOCTOR_ID, "monday", time(7, 0), time(8, 0))

    slots = await list_open_slots(repo, DOCTOR_ID, SERVICE_ID, MONDAY.date(), now=now)

    assert slots[:3] == [at(MONDAY, 7), at(MONDAY, 7, 45), at(MONDAY, 9)]
    assert slots == sorted(slots)


@pytest.mark.asyncio
async def test_day_without_windows_has_no_slots(repo, now):
    tuesday = (MONDAY + timedelta(days=1)).date()
    assert await list_open_slots(repo, DOCTOR_ID, SERVICE_ID, tuesday, now=now) == []


@pytest.mark.asyncio
async def test_service_not_offered_returns_none(repo, now):
    assert await list_open_slots(repo, DOCTOR_ID, SERVICE_ID + 1, MONDAY.date(), now=now) is None


@pytest.mark.asyncio
async def test_unknown_doctor_returns_none(repo, now):
    assert await list_open_slots(repo, DOCTOR_ID + 1, SERVICE_ID, MONDAY.date(), now=now) is None


@pytest.mark.asyncio
async def test_inactive_doctor_has_no_slots(fake_db, repo, now):
    fake_db.doctors[DOCTOR_ID].is_active = False

    assert await list_open_slots(repo, DOCTOR_ID, SERVICE_ID, MONDAY.date(), now=now) == []
