"""Tick-precision calendar timestamps.

An :class:`Instant` is a calendar timestamp measured in 100-nanosecond ticks
since 0001-01-01T00:00:00, tagged with how the wall-clock value should be
interpreted (local, UTC, or unspecified). It is not a true universal moment
until it is combined with a timezone; see
:class:`photofinish.core.timezone.TimeZoneValue`.

Python's ``datetime`` stops at microseconds, so instants keep the extra tick
digit themselves and truncate it when converting back to ``datetime``.

Example:
    >>> from datetime import datetime
    >>> instant = Instant.from_parts(2021, 6, 1, 14, 0, 0, kind=InstantKind.LOCAL)
    >>> instant.hour
    14
    >>> instant.to_datetime()
    datetime.datetime(2021, 6, 1, 14, 0)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Constants
# =============================================================================

TICKS_PER_MICROSECOND = 10
TICKS_PER_MILLISECOND = 10_000
TICKS_PER_SECOND = 10_000_000
TICKS_PER_MINUTE = 60 * TICKS_PER_SECOND
TICKS_PER_HOUR = 60 * TICKS_PER_MINUTE
TICKS_PER_DAY = 24 * TICKS_PER_HOUR

_EPOCH = datetime(1, 1, 1)
MAX_TICKS = ((datetime.max - _EPOCH) // timedelta(microseconds=1) + 1) * TICKS_PER_MICROSECOND - 1


class InstantKind(str, Enum):
    """How the wall-clock value of an instant is to be interpreted.

    Attributes:
        UNSPECIFIED: Unknown; neither local nor UTC.
        LOCAL: Local wall-clock time of wherever the event occurred.
        UTC: Coordinated Universal Time.
    """

    UNSPECIFIED = "unspecified"
    LOCAL = "local"
    UTC = "utc"


class Instant(BaseModel):
    """Immutable tick-precision timestamp with a local/UTC disposition.

    Attributes:
        ticks: 100 ns ticks since 0001-01-01T00:00:00.
        kind: Whether the ticks denote local or UTC wall-clock time.
    """

    model_config = ConfigDict(frozen=True)

    ticks: int = Field(ge=0, le=MAX_TICKS)
    kind: InstantKind = InstantKind.LOCAL

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_parts(
        cls,
        year: int,
        month: int = 1,
        day: int = 1,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        ticks: int = 0,
        kind: InstantKind = InstantKind.LOCAL,
    ) -> Instant:
        """Build an instant from calendar fields.

        Raises:
            ValueError: If any field is out of range for the calendar.
        """
        if not 0 <= ticks < TICKS_PER_SECOND:
            raise ValueError(f"Sub-second ticks out of range: {ticks}")
        base = datetime(year, month, day, hour, minute, second)
        return cls(ticks=_datetime_ticks(base) + ticks, kind=kind)

    @classmethod
    def from_datetime(cls, value: datetime, kind: InstantKind | None = None) -> Instant:
        """Convert a ``datetime``.

        An aware datetime is converted to UTC and tagged UTC. A naive datetime
        keeps its wall-clock value and is tagged with ``kind`` (local by
        default).
        """
        if value.tzinfo is not None and value.utcoffset() is not None:
            utc = value.astimezone(timezone.utc).replace(tzinfo=None)
            return cls(ticks=_datetime_ticks(utc), kind=InstantKind.UTC)
        naive = value.replace(tzinfo=None)
        return cls(ticks=_datetime_ticks(naive), kind=kind or InstantKind.LOCAL)

    # -------------------------------------------------------------------------
    # Calendar fields
    # -------------------------------------------------------------------------

    def to_datetime(self) -> datetime:
        """Naive ``datetime`` of the wall-clock value (ticks truncated to µs)."""
        return _EPOCH + timedelta(microseconds=self.ticks // TICKS_PER_MICROSECOND)

    def to_aware_datetime(self) -> datetime:
        """UTC-aware ``datetime``; only meaningful for UTC-tagged instants."""
        return self.to_datetime().replace(tzinfo=timezone.utc)

    @property
    def year(self) -> int:
        return self.to_datetime().year

    @property
    def month(self) -> int:
        return self.to_datetime().month

    @property
    def day(self) -> int:
        return self.to_datetime().day

    @property
    def hour(self) -> int:
        return self.to_datetime().hour

    @property
    def minute(self) -> int:
        return self.to_datetime().minute

    @property
    def second(self) -> int:
        return self.to_datetime().second

    @property
    def sub_second_ticks(self) -> int:
        """Ticks past the whole second (0 to 9,999,999)."""
        return self.ticks % TICKS_PER_SECOND

    @property
    def time_of_day_ticks(self) -> int:
        """Ticks past midnight."""
        return self.ticks % TICKS_PER_DAY

    @property
    def date_ticks(self) -> int:
        """Ticks of midnight on the instant's calendar date."""
        return self.ticks - self.time_of_day_ticks

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def add_ticks(self, ticks: int) -> Instant:
        """Return a new instant shifted by ``ticks``; the kind is preserved."""
        return Instant(ticks=self.ticks + ticks, kind=self.kind)

    def add(self, delta: timedelta) -> Instant:
        """Return a new instant shifted by ``delta``."""
        return self.add_ticks(timedelta_to_ticks(delta))

    def with_kind(self, kind: InstantKind) -> Instant:
        """Same wall-clock value with a different disposition."""
        if kind == self.kind:
            return self
        return Instant(ticks=self.ticks, kind=kind)

    def __str__(self) -> str:
        suffix = {"local": "", "utc": "Z", "unspecified": "?"}[self.kind.value]
        return f"{self.to_datetime().isoformat()}{suffix}"


# =============================================================================
# Helpers
# =============================================================================


def _datetime_ticks(value: datetime) -> int:
    return ((value - _EPOCH) // timedelta(microseconds=1)) * TICKS_PER_MICROSECOND


def clamp_ticks(ticks: int) -> int:
    """Limit ``ticks`` to the representable calendar range."""
    return max(0, min(MAX_TICKS, ticks))


def timedelta_to_ticks(delta: timedelta) -> int:
    """Convert a ``timedelta`` to ticks."""
    return (delta // timedelta(microseconds=1)) * TICKS_PER_MICROSECOND


def ticks_to_timedelta(ticks: int) -> timedelta:
    """Convert ticks to a ``timedelta`` (truncated to microseconds)."""
    sign = -1 if ticks < 0 else 1
    return timedelta(microseconds=sign * (abs(ticks) // TICKS_PER_MICROSECOND))
