"""Manual date and timezone adjustments.

These operate on a :class:`ReconciliationResult` after reconciliation, for
when the user knows better than the metadata:

- :func:`set_date` replaces the creation date.
- :func:`shift_date` moves it by a fixed amount (a camera clock set wrong).
- :func:`set_timezone` keeps the local wall time and assigns a zone, for
  files whose local time is right but whose timezone is missing.
- :func:`change_timezone` keeps the UTC moment and re-expresses it in another
  zone, for cameras left on home time while travelling.

Both timezone operations return ``(result, dst_active)``. When used
together, set the timezone first.

Example:
    >>> result = set_timezone(result, resolve_zone("MT"))[0]
    >>> result = change_timezone(result, resolve_zone("Europe/Paris"))[0]
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from photofinish.core.dates import DateValue
from photofinish.core.errors import AdjustmentError
from photofinish.core.instant import TICKS_PER_MICROSECOND, Instant, InstantKind
from photofinish.core.timezone import TimeZoneValue
from photofinish.reconcile.candidates import DateSource, TimezoneSource
from photofinish.reconcile.reconciler import ReconciliationResult

logger = logging.getLogger(__name__)

# Common abbreviations accepted in place of IANA zone ids.
ZONE_ABBREVIATIONS: dict[str, str] = {
    "hawaii": "Pacific/Honolulu",
    "alaska": "America/Anchorage",
    "pt": "America/Los_Angeles",
    "mt": "America/Denver",
    "arizona": "America/Phoenix",
    "ct": "America/Chicago",
    "et": "America/New_York",
    "utc": "UTC",
    "gmt": "Etc/GMT",
}


def resolve_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone id or one of :data:`ZONE_ABBREVIATIONS`.

    Raises:
        AdjustmentError: If the name is not a known zone.
    """
    key = ZONE_ABBREVIATIONS.get(name.strip().lower(), name.strip())
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise AdjustmentError(f"Unknown timezone: {name!r}") from e


def set_date(result: ReconciliationResult, date: DateValue) -> ReconciliationResult:
    """Replace the creation date.

    A ``NORMAL`` timezone carried by ``date`` also becomes the timezone.
    """
    update: dict[str, object] = {
        "creation_date": date,
        "date_source": DateSource.MANUAL,
        "always_store": True,
    }
    if date.timezone.is_normal:
        update["timezone"] = date.timezone
        update["timezone_source"] = TimezoneSource.MANUAL
    logger.info(f"Date set to: {date}")
    return result.model_copy(update=update)


def shift_date(result: ReconciliationResult, delta: timedelta) -> ReconciliationResult:
    """Shift the creation date by ``delta``.

    Raises:
        AdjustmentError: If there is no creation date or the shifted date
            falls outside the calendar.
    """
    date = _require_date(result, "shift date")
    try:
        instant = date.instant.add(delta)
    except ValueError as e:
        raise AdjustmentError(f"Cannot shift {date} by {delta}; out of range.") from e
    shifted = DateValue(instant=instant, timezone=date.timezone, precision=date.precision)
    logger.info(f"Date shifted to: {shifted}")
    return result.model_copy(update={"creation_date": shifted, "always_store": True})


def set_timezone(result: ReconciliationResult, zone: tzinfo) -> tuple[ReconciliationResult, bool]:
    """Assign ``zone`` keeping the local wall time.

    Returns:
        The updated result and whether daylight saving time is in effect.

    Raises:
        AdjustmentError: If there is no creation date.
    """
    date = _require_date(result, "set timezone")
    if result.timezone is not None:
        date = date.with_timezone(result.timezone)
    instant = date.instant
    if instant.kind == InstantKind.UTC:
        local = _in_zone(instant.to_aware_datetime(), zone)
    else:
        local = instant.to_datetime().replace(tzinfo=zone)
    return _assign(result, date, local, "set")


def change_timezone(
    result: ReconciliationResult, zone: tzinfo
) -> tuple[ReconciliationResult, bool]:
    """Re-express the creation moment in ``zone`` keeping the UTC time.

    Returns:
        The updated result and whether daylight saving time is in effect.

    Raises:
        AdjustmentError: If there is no creation date or no existing
            ``NORMAL`` timezone.
    """
    date = _require_date(result, "change timezone")
    if result.timezone is None or not result.timezone.is_normal:
        raise AdjustmentError(
            "Cannot change timezone; file does not have an existing timezone. "
            "Set the timezone first."
        )
    date = date.with_timezone(result.timezone)
    local = _in_zone(date.to_utc().to_aware_datetime(), zone)
    return _assign(result, date, local, "changed")


def _assign(
    result: ReconciliationResult, date: DateValue, local: datetime, verb: str
) -> tuple[ReconciliationResult, bool]:
    offset = local.utcoffset()
    if offset is None:
        raise AdjustmentError(f"Timezone {local.tzinfo} has no offset at {local:%Y-%m-%d %H:%M}")
    dst = local.dst()
    dst_active = bool(dst)

    timezone = TimeZoneValue.from_timedelta(offset)
    sub_microsecond = date.instant.ticks % TICKS_PER_MICROSECOND
    instant = Instant.from_datetime(local.replace(tzinfo=None)).add_ticks(sub_microsecond)
    creation = DateValue.of(instant, timezone, date.precision)
    logger.info(f"Timezone {verb} to: {timezone} {'(DST)' if dst_active else '(Standard)'}")
    updated = result.model_copy(
        update={
            "creation_date": creation,
            "timezone": timezone,
            "timezone_source": TimezoneSource.MANUAL,
            "always_store": True,
        }
    )
    return updated, dst_active


def _in_zone(moment: datetime, zone: tzinfo) -> datetime:
    try:
        return moment.astimezone(zone)
    except OverflowError as e:
        raise AdjustmentError(
            f"Cannot express {moment:%Y-%m-%d %H:%M} in {zone}; out of range."
        ) from e


def _require_date(result: ReconciliationResult, action: str) -> DateValue:
    if result.creation_date is None:
        raise AdjustmentError(f"Cannot {action}; file does not have a creation date.")
    return result.creation_date
