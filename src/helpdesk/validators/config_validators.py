from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def to_uppercase(value: str | None) -> str | None:
    """
    Uppercase a raw settings value, passing None through untouched.
    """
    if value is None:
        return None
    return value.upper()

def to_lowercase(value: str | None) -> str | None:
    if value is None:
        return None
    return value.lower()

def ensure_timezone(value: str) -> str:
    """
    Return `value` unchanged if it names a known IANA timezone (e.g. "Europe/Paris").

    Raises:
        ValueError: unknown zone name; pydantic turns it into a ValidationError.
    """
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {value!r}") from e
    return value
