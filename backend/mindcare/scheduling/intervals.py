from datetime import datetime, timezone


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval intersection: ``[a_start, a_end)`` vs ``[b_start, b_end)``.

    Back-to-back intervals (``a_end == b_start``) do not overlap. The
    database exclusion constraint uses ``tstzrange(..., '[)')`` so both
    layers agree on the boundary.
    """
    return a_start < b_end and a_end > b_start


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
