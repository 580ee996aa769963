"""Partial-precision date values.

A proper date metadata tag has three components:

1. The date and time the event occurred (in local time).
2. The timezone of the event.
3. The precision of the date and time.

:class:`DateValue` holds all three and parses/formats them according to the
W3CDTF profile of ISO 8601, which encodes all three components in a single
string. Lower precision values include only the parts that are significant,
so ``"2018"`` is just a year.

Precision is measured in significant digits:

======  ===========
Digits  Meaning
======  ===========
4       year
6       month
8       day
10      hour
12      minute
14      second
17      millisecond
20      microsecond
21      tick (100 ns)
======  ===========

Example:
    >>> value = DateValue.parse("2018-11-28T13:25:04-05:00")
    >>> value.precision
    14
    >>> value.timezone.offset_minutes
    -300
    >>> str(value)
    '2018-11-28T13:25:04-05:00'
    >>> DateValue.parse("2018-11").format()
    '2018-11'
"""

from __future__ import annotations

import calendar
from datetime import datetime, tzinfo
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from photofinish.core.errors import FormatError
from photofinish.core.instant import (
    TICKS_PER_MICROSECOND,
    TICKS_PER_MILLISECOND,
    TICKS_PER_SECOND,
    Instant,
    InstantKind,
)
from photofinish.core.timezone import (
    FORCE_LOCAL,
    FORCE_UTC,
    UNKNOWN_TIMEZONE,
    TimeZoneKind,
    TimeZoneValue,
)

# =============================================================================
# Precision Constants
# =============================================================================

PRECISION_MIN = 4
PRECISION_YEAR = 4
PRECISION_MONTH = 6
PRECISION_DAY = 8
PRECISION_HOUR = 10
PRECISION_MINUTE = 12
PRECISION_SECOND = 14
PRECISION_MILLISECOND = 17
PRECISION_MICROSECOND = 20
PRECISION_TICK = 21
PRECISION_MAX = 21

_FRACTION_DIGITS = PRECISION_TICK - PRECISION_SECOND


def clamp_precision(precision: int) -> int:
    """Limit a precision value to the supported range."""
    return max(PRECISION_MIN, min(PRECISION_MAX, precision))


class DateValue(BaseModel):
    """Immutable date with timezone and precision.

    The instant is always local-tagged unless the timezone is ``FORCE_UTC``
    (or unknown and the caller supplied a UTC instant).

    Attributes:
        instant: The calendar timestamp.
        timezone: Timezone of the event. Irrelevant below hour precision.
        precision: Significant digits, between 4 and 21.

    Notes:
        When ``timezone`` is omitted it follows the instant's kind: local
        gives ``FORCE_LOCAL``, UTC gives ``FORCE_UTC`` and unspecified gives
        ``UNKNOWN``. When ``precision`` is omitted it is detected from the
        sub-second ticks (see :meth:`detect_precision`); explicit values are
        clamped to [4, 21].
    """

    model_config = ConfigDict(frozen=True)

    instant: Instant
    timezone: TimeZoneValue
    precision: int

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data: Any) -> Any:
        """Default the timezone and precision and normalize the instant kind."""
        if not isinstance(data, dict):
            return data

        instant = data.get("instant")
        if isinstance(instant, datetime):
            instant = Instant.from_datetime(instant)
        elif isinstance(instant, dict):
            instant = Instant(**instant)
        if not isinstance(instant, Instant):
            return data

        tz = data.get("timezone")
        if isinstance(tz, dict):
            tz = TimeZoneValue(**tz)
        if tz is None:
            tz = {
                InstantKind.LOCAL: FORCE_LOCAL,
                InstantKind.UTC: FORCE_UTC,
            }.get(instant.kind, UNKNOWN_TIMEZONE)
        elif tz.kind == TimeZoneKind.NORMAL:
            instant = tz.to_local(instant).with_kind(InstantKind.LOCAL)
        elif tz.kind == TimeZoneKind.FORCE_LOCAL:
            instant = instant.with_kind(InstantKind.LOCAL)
        elif tz.kind == TimeZoneKind.FORCE_UTC:
            instant = instant.with_kind(InstantKind.UTC)

        precision = data.get("precision")
        if precision is None:
            precision = cls.detect_precision(instant)
        else:
            precision = clamp_precision(int(precision))

        return {"instant": instant, "timezone": tz, "precision": precision}

    # -------------------------------------------------------------------------
    # Construction and parsing
    # -------------------------------------------------------------------------

    @classmethod
    def of(
        cls,
        value: Instant | datetime,
        timezone: TimeZoneValue | None = None,
        precision: int | None = None,
    ) -> DateValue:
        """Positional convenience constructor."""
        return cls(instant=value, timezone=timezone, precision=precision)

    @staticmethod
    def detect_precision(instant: Instant) -> int:
        """Detect sub-second precision from trailing zero digits.

        Returns:
            ``PRECISION_SECOND`` (14), ``PRECISION_MILLISECOND`` (17),
            ``PRECISION_MICROSECOND`` (20) or ``PRECISION_TICK`` (21).
        """
        ticks = instant.ticks
        if ticks % TICKS_PER_SECOND == 0:
            return PRECISION_SECOND
        if ticks % TICKS_PER_MILLISECOND == 0:
            return PRECISION_MILLISECOND
        if ticks % TICKS_PER_MICROSECOND == 0:
            return PRECISION_MICROSECOND
        return PRECISION_TICK

    @classmethod
    def try_parse(cls, text: str | None) -> DateValue | None:
        """Parse a W3CDTF date, returning None on any structural violation.

        The grammar is
        ``YYYY[-MM[-DD[(T| )hh[:mm[:ss[.fraction]]]]]][timezone]``; each
        level is attempted only when its separator is followed by more text.
        A missing timezone gives ``FORCE_LOCAL``; ``Z`` gives ``FORCE_UTC``.

        Args:
            text: The date text.

        Returns:
            The parsed value or None.
        """
        if text is None or len(text) < 4:
            return None

        year = _digits(text, 0, 4)
        if year is None or not 1 <= year <= 9999:
            return None
        month, day, hour, minute, second, ticks = 1, 1, 12, 0, 0, 0
        precision = PRECISION_YEAR
        pos = 4

        if len(text) > 5 and text[4] == "-":
            month = _digits(text, 5, 2)
            if month is None or not 1 <= month <= 12:
                return None
            precision, pos = PRECISION_MONTH, 7

            if len(text) > 8 and text[7] == "-":
                day = _digits(text, 8, 2)
                if day is None or not 1 <= day <= calendar.monthrange(year, month)[1]:
                    return None
                precision, pos = PRECISION_DAY, 10

                # W3CDTF requires 'T' but a space is tolerated.
                if len(text) > 11 and text[10] in ("T", " "):
                    hour = _digits(text, 11, 2)
                    if hour is None or hour > 23:
                        return None
                    precision, pos = PRECISION_HOUR, 13

                    if len(text) > 14 and text[13] == ":":
                        minute = _digits(text, 14, 2)
                        if minute is None or minute > 59:
                            return None
                        precision, pos = PRECISION_MINUTE, 16

                        if len(text) > 17 and text[16] == ":":
                            second = _digits(text, 17, 2)
                            if second is None or second > 59:
                                return None
                            precision, pos = PRECISION_SECOND, 19

                            if len(text) > 20 and text[19] == ".":
                                anchor = pos = 20
                                while pos < len(text) and "0" <= text[pos] <= "9":
                                    pos += 1
                                fraction = text[anchor:pos]
                                if not fraction:
                                    return None
                                precision = clamp_precision(PRECISION_SECOND + len(fraction))
                                ticks = int(fraction[:_FRACTION_DIGITS].ljust(_FRACTION_DIGITS, "0"))

        if pos < len(text):
            tz = TimeZoneValue.try_parse(text[pos:])
            if tz is None:
                return None
            kind = InstantKind.UTC if tz.kind == TimeZoneKind.FORCE_UTC else InstantKind.LOCAL
        else:
            tz = FORCE_LOCAL
            kind = InstantKind.LOCAL

        instant = Instant.from_parts(year, month, day, hour, minute, second, ticks, kind=kind)
        return cls(instant=instant, timezone=tz, precision=precision)

    @classmethod
    def parse(cls, text: str) -> DateValue:
        """Parse a W3CDTF date, raising on failure.

        Raises:
            FormatError: If the text is not a supported date format.
        """
        result = cls.try_parse(text)
        if result is None:
            raise FormatError(text, "date")
        return result

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    def as_datetime(self) -> datetime:
        """Naive ``datetime`` of the stored wall-clock value."""
        return self.instant.to_datetime()

    def to_utc(self) -> Instant:
        """The instant converted to UTC via the timezone.

        With ``FORCE_LOCAL`` the value cannot be converted and is returned
        unchanged; call :meth:`resolve_timezone` first if that matters.
        """
        return self.timezone.to_utc(self.instant)

    def to_local(self) -> Instant:
        """The instant converted to local time via the timezone."""
        return self.timezone.to_local(self.instant)

    def with_timezone(self, timezone: TimeZoneValue) -> DateValue:
        return DateValue(instant=self.instant, timezone=timezone, precision=self.precision)

    def with_precision(self, precision: int) -> DateValue:
        return DateValue(instant=self.instant, timezone=self.timezone, precision=precision)

    def resolve_timezone(self, zone: tzinfo) -> DateValue:
        """Replace a non-numeric timezone with ``zone``'s offset at this date.

        Does nothing when the timezone is already ``NORMAL``.

        Args:
            zone: The default zone, e.g. ``zoneinfo.ZoneInfo("America/Denver")``.

        Returns:
            A value whose timezone is ``NORMAL``.
        """
        if self.timezone.is_normal:
            return self
        if self.instant.kind == InstantKind.UTC:
            try:
                offset = self.instant.to_aware_datetime().astimezone(zone).utcoffset()
            except OverflowError:
                # At the ends of the calendar, use the offset at the same wall time
                offset = zone.utcoffset(self.as_datetime())
            instant = self.instant
        else:
            offset = zone.utcoffset(self.as_datetime())
            instant = self.instant.with_kind(InstantKind.LOCAL)
        if offset is None:
            return self
        return DateValue(
            instant=instant,
            timezone=TimeZoneValue.from_timedelta(offset),
            precision=self.precision,
        )

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def format(self) -> str:
        """Format as W3CDTF including only the significant components.

        A ``NORMAL`` timezone paired with a UTC-tagged instant is rendered in
        local time. The value itself is not changed.
        """
        instant = self.instant
        if self.timezone.is_normal and instant.kind == InstantKind.UTC:
            instant = self.timezone.to_local(instant)

        dt = instant.to_datetime()
        parts = [f"{dt.year:04d}"]
        if self.precision >= PRECISION_MONTH:
            parts.append(f"-{dt.month:02d}")
        if self.precision >= PRECISION_DAY:
            parts.append(f"-{dt.day:02d}")
        if self.precision >= PRECISION_HOUR:
            parts.append(f"T{dt.hour:02d}")
        if self.precision >= PRECISION_MINUTE:
            parts.append(f":{dt.minute:02d}")
        if self.precision >= PRECISION_SECOND:
            parts.append(f":{dt.second:02d}")
        if self.precision > PRECISION_SECOND:
            decimals = min(self.precision - PRECISION_SECOND, _FRACTION_DIGITS)
            fraction = f"{instant.sub_second_ticks:07d}"
            parts.append("." + fraction[:decimals])
        if self.timezone.kind in (TimeZoneKind.NORMAL, TimeZoneKind.FORCE_UTC):
            parts.append(self.timezone.format())
        return "".join(parts)

    def __str__(self) -> str:
        return self.format()


def _digits(text: str, start: int, count: int) -> int | None:
    """Parse exactly ``count`` ASCII digits at ``start``."""
    chunk = text[start : start + count]
    if len(chunk) != count or not all("0" <= c <= "9" for c in chunk):
        return None
    return int(chunk)
