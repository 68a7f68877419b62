"""Field mapper: pull the time, level and body fields out of a log record."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from log2avro.config import RFC3339, Config
from log2avro.errors import (
    InvalidLevelError,
    InvalidTimeError,
    NoLevelError,
    NoTimeError,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MICROSECOND = timedelta(microseconds=1)

_RFC3339_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})[Tt]"
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)

# ---------------------------------------------------------------------------
# Value conversions
# ---------------------------------------------------------------------------


def parse_rfc3339(text: str) -> datetime:
    """Parse an RFC 3339 timestamp with optional fractional seconds.

    Fractions finer than a microsecond are truncated.

    Raises:
        ValueError: If *text* is not a valid RFC 3339 timestamp.
    """
    match = _RFC3339_RE.match(text)
    if not match:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")

    offset = match.group("offset")
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"time zone offset out of range: {offset}")
        delta = timedelta(hours=hours, minutes=minutes)
        tz = timezone(-delta if offset[0] == "-" else delta)

    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")
    return datetime(
        int(match.group("year")),
        int(match.group("month")),
        int(match.group("day")),
        int(match.group("hour")),
        int(match.group("minute")),
        int(match.group("second")),
        int(fraction),
        tzinfo=tz,
    )


def time_parser(time_format: str = RFC3339) -> Callable[[Any], datetime]:
    """Return a value -> datetime converter for the given textual format.

    ``rfc3339`` selects :func:`parse_rfc3339`; anything else is handed to
    :meth:`datetime.strptime`, and naive results are taken as UTC.
    """

    def parse_text(text: str) -> datetime:
        if time_format == RFC3339:
            return parse_rfc3339(text)
        parsed = datetime.strptime(text, time_format)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_time(value: Any) -> datetime:
        if not isinstance(value, str):
            raise InvalidTimeError(f"invalid time: {value!r}")
        try:
            return parse_text(value)
        except ValueError as exc:
            raise InvalidTimeError(f"invalid time: {exc}") from exc

    return to_time


def parse_level(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidLevelError(f"invalid level: {value!r}")
    return value


def to_unix_micros(ts: datetime) -> int:
    """Exact microseconds since the Unix epoch; naive datetimes are UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - EPOCH) // _ONE_MICROSECOND


# ---------------------------------------------------------------------------
# Mapper
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MapperConfig:
    """Key names of the distinguished fields plus their value converters."""

    time_key: str = "time"
    level_key: str = "level"
    body_key: str = "body"
    to_time: Callable[[Any], datetime] = time_parser()
    to_level: Callable[[Any], str] = parse_level

    @classmethod
    def from_config(cls, config: Config) -> MapperConfig:
        return cls(
            time_key=config.time_key,
            level_key=config.level_key,
            body_key=config.body_key,
            to_time=time_parser(config.time_format),
        )

    def to_mapper(self) -> Mapper:
        return Mapper(self)


class Mapper:
    """Extracts the distinguished fields of a record.

    Each ``extract_*`` method deletes the key it consumed from the record, so
    whatever is left afterwards is the record's attribute set. The key is
    deleted even when its value fails to convert.
    """

    def __init__(self, config: MapperConfig | None = None):
        self._config = config or MapperConfig()

    def extract_time(self, record: dict) -> datetime:
        key = self._config.time_key
        if key not in record:
            raise NoTimeError(key)
        return self._config.to_time(record.pop(key))

    def extract_level(self, record: dict) -> str:
        key = self._config.level_key
        if key not in record:
            raise NoLevelError(key)
        return self._config.to_level(record.pop(key))

    def extract_body(self, record: dict) -> Any:
        """Return the body value as-is, or None when the record has none."""
        return record.pop(self._config.body_key, None)
