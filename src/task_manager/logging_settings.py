"""Helpers for parsing the simple logging settings file.

The file holds ``key = value`` lines, for example::

    # where log lines go
    terminal = info
    service = debug
    retention_hours = 48
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

_LEVEL_MAP: dict[str, int | None] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": None,
}

_LEVEL_KEYS = ("terminal", "service")
_DEFAULT_LEVELS: dict[str, str] = {"terminal": "info", "service": "off"}
_DEFAULT_RETENTION_HOURS = 48


@dataclass(frozen=True)
class LoggingSettings:
    terminal_level: int | None
    service_level: int | None
    retention_hours: int

    @property
    def writes_files(self) -> bool:
        return self.service_level is not None


def _resolve_level(value: str, fallback: str) -> int | None:
    return _LEVEL_MAP.get(value.strip().lower(), _LEVEL_MAP[fallback])


def parse_logging_settings(path: Path) -> LoggingSettings:
    """Parse the logging settings file; a missing file yields the defaults."""

    levels: dict[str, int | None] = {
        key: _LEVEL_MAP[_DEFAULT_LEVELS[key]] for key in _LEVEL_KEYS
    }
    retention_hours = _DEFAULT_RETENTION_HOURS

    if path.exists():
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = (part.strip() for part in line.split("=", 1))
            normalized_key = key.lower()
            if normalized_key == "retention_hours":
                try:
                    retention_hours = max(0, int(value))
                except ValueError:
                    retention_hours = _DEFAULT_RETENTION_HOURS
            elif normalized_key in _LEVEL_KEYS:
                levels[normalized_key] = _resolve_level(
                    value, _DEFAULT_LEVELS[normalized_key]
                )

    return LoggingSettings(
        terminal_level=levels["terminal"],
        service_level=levels["service"],
        retention_hours=retention_hours,
    )


__all__ = ["LoggingSettings", "parse_logging_settings"]
