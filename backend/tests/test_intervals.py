# tests/test_intervals.py
from datetime import datetime, timedelta, timezone

import pytest

from mindcare.scheduling.intervals import ensure_utc, overlaps
from _fakes import MONDAY, at

A_START, A_END = at(MONDAY, 10), at(MONDAY, 11)


def test_back_to_back_intervals_do_not_overlap():
    assert not overlaps(A_START, A_END, at(MONDAY, 11), at(MONDAY, 12))
    assert not overlaps(at(MONDAY, 9), at(MONDAY, 10), A_START, A_END)


@pytest.mark.parametrize(
    "start,end",
    [
        (at(MONDAY, 10, 30), at(MONDAY, 11, 30)),
        (at(MONDAY, 9, 30), at(MONDAY, 10, 30)),
        (at(MONDAY, 9), at(MONDAY, 12)),
        (at(MONDAY, 10, 15), at(MONDAY, 10, 45)),
        (A_START, A_END),
    ],
)
def test_intervals_sharing_an_instant_overlap(start, end):
    assert overlaps(start, end, A_START, A_END)
    assert overlaps(A_START, A_END, start, end)


def test_ensure_utc_treats_naive_values_as_utc():
    naive = datetime(2026, 10, 19, 10, 0)
    assert ensure_utc(naive) == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def test_ensure_utc_converts_offsets():
    cairo = timezone(timedelta(hours=3))
    value = datetime(2026, 10, 19, 13, 0, tzinfo=cairo)
    converted = ensure_utc(value)
    assert converted.tzinfo == timezone.utc
    assert converted.hour == 10
