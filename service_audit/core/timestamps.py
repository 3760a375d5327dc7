# Docstring for service_audit/core/timestamps module
"""
timestamps.py

Timestamp construction and minute arithmetic for service records.

Source files carry a calendar date and a local clock time in separate columns.
This module turns them into timezone-aware instants so that start times and
durations can be compared across datasets.

Timezone strategies
-------------------
The strategy is chosen once, when a TimestampBuilder is constructed:

- "zone_database": full IANA database via pytz. Daylight-saving aware.
- "fixed_offset": lookup in config.FIXED_UTC_OFFSETS. This is an
  APPROXIMATION: offsets never change across the year, so instants near a DST
  transition can be off by the DST shift. Zones missing from the table are
  treated as UTC and flagged with a UserWarning.

The active strategy is logged at construction.

Public API
----------
- parse_clock_time(value) -> tuple[int, int, int]
- parse_iso_date(value) -> datetime.date
- TimestampBuilder(timezone=DEFAULT_TIMEZONE, strategy="zone_database")
    .build_instant(iso_date, clock_time) -> datetime
    .is_approximate -> bool
- build_instant(iso_date, clock_time, timezone_id, strategy=...) -> datetime
- minutes_between(a, b) -> int
- duration_minutes(start, end) -> int
"""

from __future__ import annotations

import logging
import warnings
from datetime import date, datetime, timedelta
from datetime import timezone as dt_timezone
from typing import Any

import pytz

from ..config import (
    DEFAULT_TIMEZONE,
    FIXED_UTC_OFFSETS,
    TZ_STRATEGIES,
    TZ_STRATEGY_FIXED_OFFSET,
    TZ_STRATEGY_ZONE_DATABASE,
)
from ..exceptions import ConfigurationError, InvalidTimeFormat

logger = logging.getLogger(__name__)


def parse_clock_time(value: Any) -> tuple[int, int, int]:
    """Parse 'H', 'H:M' or 'H:M:S' into integers; missing parts default to 0."""
    if value is None:
        raise InvalidTimeFormat(value)
    text = str(value).strip()
    if not text:
        raise InvalidTimeFormat(value)

    parts = [p.strip() for p in text.split(":")]
    if len(parts) > 3:
        raise InvalidTimeFormat(value)

    numbers: list[int] = []
    for part in parts:
        if part == "":
            numbers.append(0)
        elif part.isascii() and part.isdigit():
            numbers.append(int(part))
        else:
            raise InvalidTimeFormat(value)
    while len(numbers) < 3:
        numbers.append(0)

    hour, minute, second = numbers
    if hour > 23 or minute > 59 or second > 59:
        raise InvalidTimeFormat(
            value, f"Invalid time format: {value!r}. Clock time out of range."
        )
    return hour, minute, second


def parse_iso_date(value: Any) -> date:
    """Parse a YYYY-MM-DD string. Raises ValueError when it is not a calendar date."""
    return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()


class TimestampBuilder:

    """

    Build absolute instants from a service date and a local clock time.

    Args:
        timezone:
            IANA zone identifier. Defaults to config.DEFAULT_TIMEZONE.
        strategy:
            "zone_database" or "fixed_offset".

    Raises:
        ConfigurationError: unknown strategy, or a zone the database does not know.

    """

    def __init__(
            self,
            timezone: str = DEFAULT_TIMEZONE,
            strategy: str = TZ_STRATEGY_ZONE_DATABASE,
    ) -> None:
        if strategy not in TZ_STRATEGIES:
            raise ConfigurationError(
                "tz_strategy",
                f"{strategy!r}. Expected one of {', '.join(TZ_STRATEGIES)}.",
            )
        self.timezone = timezone or DEFAULT_TIMEZONE
        self.strategy = strategy
        self._zone = None
        self._offset = None

        if strategy == TZ_STRATEGY_ZONE_DATABASE:
            try:
                self._zone = pytz.timezone(self.timezone)
            except pytz.UnknownTimeZoneError as exc:
                raise ConfigurationError("timezone", f"unknown zone {self.timezone!r}.") from exc
            logger.info("Timestamp strategy: zone database (%s)", self.timezone)
        else:
            self._offset = self._fixed_offset(self.timezone)
            logger.warning(
                "Timestamp strategy: fixed offset %s for %s (daylight-saving transitions ignored)",
                self._offset,
                self.timezone,
            )

    @staticmethod
    def _fixed_offset(zone_id: str) -> dt_timezone:
        minutes = FIXED_UTC_OFFSETS.get(zone_id.lower())
        if minutes is None:
            warnings.warn(
                f"No fixed offset configured for {zone_id!r}; treating it as UTC.",
                stacklevel=3,
            )
            minutes = 0
        return dt_timezone(timedelta(minutes=minutes))

    @property
    def is_approximate(self) -> bool:
        return self.strategy == TZ_STRATEGY_FIXED_OFFSET

    def build_instant(self, iso_date: Any, clock_time: Any) -> datetime:
        """
        Combine a YYYY-MM-DD date and an H:M[:S] clock time into a tz-aware datetime.

        Seconds are validated but dropped: instants are built at minute
        resolution.
        """
        hour, minute, _ = parse_clock_time(clock_time)
        day = parse_iso_date(iso_date)
        naive = datetime(day.year, day.month, day.day, hour, minute)
        if self._zone is not None:
            return self._zone.localize(naive)
        return naive.replace(tzinfo=self._offset)


def build_instant(
    iso_date: Any,
    clock_time: Any,
    timezone_id: str = DEFAULT_TIMEZONE,
    *,
    strategy: str = TZ_STRATEGY_ZONE_DATABASE,
) -> datetime:
    """One-shot helper; prefer a shared TimestampBuilder when converting many rows."""
    return TimestampBuilder(timezone_id, strategy).build_instant(iso_date, clock_time)


def minutes_between(a: datetime, b: datetime) -> int:
    """Absolute difference in whole minutes."""
    return abs(round((a - b).total_seconds() / 60))


def duration_minutes(start: datetime, end: datetime) -> int:
    """end - start in whole minutes. Negative when end precedes start."""
    return round((end - start).total_seconds() / 60)
