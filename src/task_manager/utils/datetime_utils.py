"""Due-date parsing, normalization and display formatting.

The list store keeps due dates as UTC instants. Two display conventions are
rendered from them: ``YYYY-MM-DD`` for edit forms and a locale pattern for
list and dashboard views.
"""

from __future__ import annotations

import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as dateutil_parser

DEFAULT_LOCALE_DATE_FORMAT = "{month}/{day}/{year}"


def parse_rfc3339_datetime(value: Optional[str]) -> Optional[datetime.datetime]:
    """Best-effort conversion of an RFC3339 string to an aware datetime in UTC.

    Args:
        value: RFC3339, ISO 8601 datetime or ``YYYY-MM-DD`` date string

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not value:
        return None

    try:
        parsed = dateutil_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    else:
        parsed = parsed.astimezone(datetime.timezone.utc)

    return parsed


def normalize_rfc3339(dt_value: datetime.datetime) -> str:
    """Return a second-precision RFC3339 string in UTC with a 'Z' suffix.

    Naive datetimes are taken to be UTC.
    """
    if dt_value.tzinfo is None:
        dt_value = dt_value.replace(tzinfo=datetime.timezone.utc)
    normalized = dt_value.astimezone(datetime.timezone.utc).replace(microsecond=0)
    return normalized.strftime("%Y-%m-%dT%H:%M:%SZ")


def to_store_instant(value: str) -> str:
    """Normalize a user supplied due date to the instant format the store expects.

    ``2025-03-04`` becomes ``2025-03-04T00:00:00Z``; datetimes with an offset
    are converted to UTC and fractional seconds are dropped.

    Raises:
        ValueError: when the value cannot be parsed as a date or datetime
    """
    parsed = parse_rfc3339_datetime(value)
    if parsed is None:
        raise ValueError(f"Invalid due date: {value!r}")
    return normalize_rfc3339(parsed)


def _localize(
    iso_value: Optional[str], tz: datetime.tzinfo | str
) -> Optional[datetime.datetime]:
    parsed = parse_rfc3339_datetime(iso_value)
    if parsed is None:
        return None
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    return parsed.astimezone(zone)


def format_edit_date(
    iso_value: Optional[str], tz: datetime.tzinfo | str = "UTC"
) -> str:
    """Render a stored instant as ``YYYY-MM-DD`` in ``tz``; empty when unset."""

    local = _localize(iso_value, tz)
    if local is None:
        return ""
    return f"{local.year:04d}-{local.month:02d}-{local.day:02d}"


def format_locale_date(
    iso_value: Optional[str],
    tz: datetime.tzinfo | str = "UTC",
    pattern: str = DEFAULT_LOCALE_DATE_FORMAT,
) -> str:
    """Render a stored instant with a locale date pattern.

    ``pattern`` is a ``str.format`` template that may use ``{year}``,
    ``{month}``, ``{day}`` and the zero padded ``{month2}`` / ``{day2}``.
    The default matches the en-US short date (``3/4/2025``).
    """
    local = _localize(iso_value, tz)
    if local is None:
        return ""
    return pattern.format(
        year=local.year,
        month=local.month,
        day=local.day,
        month2=f"{local.month:02d}",
        day2=f"{local.day:02d}",
    )


def parse_form_date(value: Optional[str]) -> Optional[datetime.date]:
    """Parse the date typed into a form field, returning None when invalid."""

    if not value:
        return None
    parsed = parse_rfc3339_datetime(value.strip())
    if parsed is None:
        return None
    return parsed.date()


__all__ = [
    "DEFAULT_LOCALE_DATE_FORMAT",
    "parse_rfc3339_datetime",
    "normalize_rfc3339",
    "to_store_instant",
    "format_edit_date",
    "format_locale_date",
    "parse_form_date",
]
