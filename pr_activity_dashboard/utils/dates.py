"""
Date parsing helpers

Timestamps are stored as naive UTC datetimes so SQLite and Postgres compare
them the same way.
"""

from datetime import UTC, date, datetime, time

from ..exceptions import ConfigurationError


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse a GitHub ISO 8601 timestamp into a naive UTC datetime

    Args:
        value: Timestamp such as "2025-01-15T10:00:00Z"

    Returns:
        Naive UTC datetime, or None when value is empty
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def parse_date_input(value: str | date, field_name: str) -> date:
    """
    Parse a YYYY-MM-DD filter value

    Raises:
        ConfigurationError: If the value is not a valid date
    """
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise ConfigurationError(f"Invalid {field_name}: {value!r}. Please use YYYY-MM-DD format.") from e


def day_start(day: date) -> datetime:
    """First instant of the day"""
    return datetime.combine(day, time.min)


def day_end(day: date) -> datetime:
    """Last instant of the day, so end dates are inclusive"""
    return datetime.combine(day, time.max)

