from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_z(dt_value: datetime) -> str:
    """
    Format a datetime as ISO-8601 UTC with millisecond precision and a ``Z`` suffix.

    Naive datetimes are assumed to already be UTC.
    """
    if dt_value.tzinfo is not None:
        dt_value = dt_value.astimezone(timezone.utc).replace(tzinfo=None)
    return dt_value.isoformat(timespec="milliseconds") + "Z"
