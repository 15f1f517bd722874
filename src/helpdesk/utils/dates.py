from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def localize(date: datetime, tz_name: str) -> datetime:
    """
    Convert `date` to the `tz_name` timezone; naive values are treated as UTC.

    SQLite hands back naive datetimes even for `DateTime(timezone=True)`
    columns, everything stored by the repositories is UTC.
    """
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date.astimezone(ZoneInfo(tz_name))


def format_short(date: datetime, tz_name: str) -> str:
    """Render as `Mar 5, 2024 09:07` (day without leading zero)."""
    local = localize(date, tz_name)
    return f"{local:%b} {local.day}, {local:%Y %H:%M}"
