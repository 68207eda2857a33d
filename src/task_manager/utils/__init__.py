"""Utility helpers for the task manager services."""

from .datetime_utils import (
    format_edit_date,
    format_locale_date,
    normalize_rfc3339,
    parse_rfc3339_datetime,
    to_store_instant,
)

__all__ = [
    "format_edit_date",
    "format_locale_date",
    "normalize_rfc3339",
    "parse_rfc3339_datetime",
    "to_store_instant",
]
