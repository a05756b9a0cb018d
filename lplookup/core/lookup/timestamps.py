from __future__ import annotations

from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_millis_to_datetime(millis: int) -> datetime:
    """Convert milliseconds since the Unix epoch to an aware UTC datetime.

    Integer arithmetic only (no float seconds), so the result is exact to the
    millisecond.

    Raises:
      TypeError: millis is not an int (bool is rejected too)
      OverflowError: result is outside the datetime range
    """

    if isinstance(millis, bool) or not isinstance(millis, int):
        raise TypeError(f"epoch milliseconds must be an integer, got {type(millis).__name__}")
    return _EPOCH + timedelta(milliseconds=millis)


def format_rfc3339(dt: datetime) -> str:
    """Format as RFC 3339 in UTC with a literal Z.

    Whole seconds render without a fraction; otherwise three fractional digits.
    """

    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    u = dt.astimezone(timezone.utc)
    base = (
        f"{u.year:04d}-{u.month:02d}-{u.day:02d}"
        f"T{u.hour:02d}:{u.minute:02d}:{u.second:02d}"
    )
    millis = u.microsecond // 1000
    if millis:
        return f"{base}.{millis:03d}Z"
    return f"{base}Z"


def epoch_millis_to_rfc3339(millis: int) -> str:
    return format_rfc3339(epoch_millis_to_datetime(millis))
