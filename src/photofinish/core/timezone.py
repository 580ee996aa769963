"""Timezone values for date metadata.

A :class:`TimeZoneValue` represents the timezone portion of a W3CDTF
(ISO 8601 profile) date such as ``2018-11-28T13:25:04-05:00``, or the value
of a dedicated ``timezone`` metadata tag. Besides a plain numeric offset it
can say "unknown", "treat as local" or "this is explicitly UTC":

- ``NORMAL``: a concrete offset from UTC in minutes.
- ``FORCE_LOCAL``: the timezone is unknown; treat the stored time as already
  local to wherever it matters.
- ``FORCE_UTC``: explicitly UTC. Offset zero, but semantically distinct from
  a local time that happens to be at offset zero.
- ``UNKNOWN``: nothing is known about the disposition.

Example:
    >>> tz = TimeZoneValue.parse("-05:00")
    >>> tz.offset_minutes
    -300
    >>> str(tz)
    '-05:00'
    >>> TimeZoneValue.parse("Z") == FORCE_UTC
    True
"""

from __future__ import annotations

import re
from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

from photofinish.core.errors import FormatError
from photofinish.core.instant import TICKS_PER_MINUTE, Instant, InstantKind, clamp_ticks

# =============================================================================
# Constants
# =============================================================================

UTC_MARKER = "Z"
LOCAL_MARKER = "0"
MAX_OFFSET_MINUTES = 24 * 60 - 1

_OFFSET_RE = re.compile(r"([+-])([0-9]{1,2})(?::([0-9]{2}))?")
_MAKER_NOTE_RE = re.compile(r"([+-]?)([0-9]{1,2})(?::([0-9]{1,2}))?")


class TimeZoneKind(str, Enum):
    """Disposition of a timezone value."""

    UNKNOWN = "unknown"
    NORMAL = "normal"
    FORCE_LOCAL = "force_local"
    FORCE_UTC = "force_utc"


class TimeZoneValue(BaseModel):
    """Immutable timezone descriptor.

    Attributes:
        kind: The timezone disposition.
        offset_minutes: Signed minutes east of UTC. Always zero unless
            ``kind`` is ``NORMAL``.
    """

    model_config = ConfigDict(frozen=True)

    kind: TimeZoneKind = TimeZoneKind.NORMAL
    offset_minutes: int = 0

    @model_validator(mode="before")
    @classmethod
    def normalize_offset(cls, data: object) -> object:
        """Force the offset to zero for non-normal kinds."""
        if isinstance(data, dict):
            kind = TimeZoneKind(data.get("kind", TimeZoneKind.NORMAL))
            if kind != TimeZoneKind.NORMAL:
                data = {**data, "kind": kind, "offset_minutes": 0}
        return data

    @model_validator(mode="after")
    def check_range(self) -> TimeZoneValue:
        """Normal offsets must be less than a full day."""
        if abs(self.offset_minutes) > MAX_OFFSET_MINUTES:
            raise ValueError(f"Timezone offset out of range: {self.offset_minutes} minutes")
        return self

    # -------------------------------------------------------------------------
    # Construction and parsing
    # -------------------------------------------------------------------------

    @classmethod
    def from_offset(cls, minutes: int) -> TimeZoneValue:
        """A ``NORMAL`` timezone at ``minutes`` east of UTC."""
        return cls(kind=TimeZoneKind.NORMAL, offset_minutes=minutes)

    @classmethod
    def from_timedelta(cls, offset: timedelta) -> TimeZoneValue:
        """A ``NORMAL`` timezone from a ``timedelta`` offset (whole minutes)."""
        return cls.from_offset(int(offset.total_seconds() // 60))

    @classmethod
    def try_parse(cls, text: str | None) -> TimeZoneValue | None:
        """Parse a timezone suffix or tag value.

        Accepts ``Z`` (UTC), ``0`` (force local), and ``+hh:mm``, ``-hh:mm``,
        ``+hh``, ``-hh``.

        Args:
            text: The text to parse.

        Returns:
            The parsed value, or None if the text is empty or malformed.
        """
        if not text:
            return None
        if text == UTC_MARKER:
            return FORCE_UTC
        if text == LOCAL_MARKER:
            return FORCE_LOCAL

        match = _OFFSET_RE.fullmatch(text)
        if match is None:
            return None
        sign, hours_text, minutes_text = match.groups()
        hours = int(hours_text)
        minutes = int(minutes_text) if minutes_text else 0
        if hours > 23 or minutes > 59:
            return None

        total = hours * 60 + minutes
        return cls.from_offset(-total if sign == "-" else total)

    @classmethod
    def parse(cls, text: str) -> TimeZoneValue:
        """Parse a timezone, raising on failure.

        Raises:
            FormatError: If the text is not a recognized timezone.
        """
        result = cls.try_parse(text)
        if result is None:
            raise FormatError(text, "timezone")
        return result

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def is_normal(self) -> bool:
        return self.kind == TimeZoneKind.NORMAL

    @property
    def utc_offset(self) -> timedelta:
        return timedelta(minutes=self.offset_minutes)

    @property
    def offset_ticks(self) -> int:
        return self.offset_minutes * TICKS_PER_MINUTE

    # -------------------------------------------------------------------------
    # Conversions
    # -------------------------------------------------------------------------

    def to_local(self, instant: Instant) -> Instant:
        """Convert a UTC-tagged instant to local time using this offset.

        Only ``NORMAL`` timezones convert; any other combination returns the
        instant unchanged. Results past either end of the calendar saturate
        at the first or last representable tick.
        """
        if self.kind != TimeZoneKind.NORMAL or instant.kind != InstantKind.UTC:
            return instant
        ticks = clamp_ticks(instant.ticks + self.offset_ticks)
        return Instant(ticks=ticks, kind=InstantKind.LOCAL)

    def to_utc(self, instant: Instant) -> Instant:
        """Convert a local-tagged instant to UTC using this offset (saturating)."""
        if self.kind != TimeZoneKind.NORMAL or instant.kind != InstantKind.LOCAL:
            return instant
        ticks = clamp_ticks(instant.ticks - self.offset_ticks)
        return Instant(ticks=ticks, kind=InstantKind.UTC)

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def format(self) -> str:
        """Format as a date suffix.

        ``NORMAL`` gives ``+hh:mm``/``-hh:mm``, ``FORCE_UTC`` gives ``Z`` and
        the other kinds give an empty string.
        """
        if self.kind == TimeZoneKind.FORCE_UTC:
            return UTC_MARKER
        if self.kind != TimeZoneKind.NORMAL:
            return ""
        sign = "-" if self.offset_minutes < 0 else "+"
        hours, minutes = divmod(abs(self.offset_minutes), 60)
        return f"{sign}{hours:02d}:{minutes:02d}"

    def to_tag(self) -> str | None:
        """Value stored in a ``timezone`` inline tag, or None if unknown."""
        if self.kind == TimeZoneKind.UNKNOWN:
            return None
        if self.kind == TimeZoneKind.FORCE_LOCAL:
            return LOCAL_MARKER
        return self.format()

    def describe(self) -> str:
        """Human-readable form used in progress messages."""
        if self.kind != TimeZoneKind.NORMAL:
            return f"({self.kind.value})"
        return self.format()

    def __str__(self) -> str:
        return self.format()


UNKNOWN_TIMEZONE = TimeZoneValue(kind=TimeZoneKind.UNKNOWN)
FORCE_LOCAL = TimeZoneValue(kind=TimeZoneKind.FORCE_LOCAL)
FORCE_UTC = TimeZoneValue(kind=TimeZoneKind.FORCE_UTC)


def parse_maker_note_timezone(text: str | None) -> TimeZoneValue | None:
    """Parse the timezone field reported by the external metadata tool.

    Camera maker notes are looser than W3CDTF: the sign is optional and the
    hour may be a single digit, e.g. ``-05:00``, ``-5``, ``+6``, ``10:30``.

    Returns:
        A ``NORMAL`` timezone, or None if the text is not recognized.
    """
    if not text:
        return None
    match = _MAKER_NOTE_RE.fullmatch(text.strip())
    if match is None:
        return None
    sign, hours_text, minutes_text = match.groups()
    hours = int(hours_text)
    minutes = int(minutes_text) if minutes_text else 0
    if hours > 23 or minutes > 59:
        return None
    total = hours * 60 + minutes
    return TimeZoneValue.from_offset(-total if sign == "-" else total)
