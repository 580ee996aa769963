"""Fuzzy timezone offset detection.

Given the same moment recorded once as local wall time and once as UTC, the
difference is the timezone offset. Clocks drift and writers disagree by a
few seconds, so the difference is rounded to the nearest half hour (every
real-world offset is a multiple of 15 minutes and nearly all of 30) and
accepted only when the rounding residual is small.

Some devices stamp the container at the *end* of recording, so the
duration-aware variant also tries the UTC value shifted by the media
duration in both directions.

Example:
    >>> from photofinish.core.instant import Instant, InstantKind
    >>> local = Instant.from_parts(2021, 6, 1, 14, 0, 30)
    >>> utc = Instant.from_parts(2021, 6, 1, 6, 0, 0, kind=InstantKind.UTC)
    >>> try_offset(local, utc)
    480
"""

from __future__ import annotations

import logging
from datetime import timedelta

from photofinish.core.instant import (
    MAX_TICKS,
    TICKS_PER_HOUR,
    TICKS_PER_MINUTE,
    TICKS_PER_SECOND,
    Instant,
    timedelta_to_ticks,
)

logger = logging.getLogger(__name__)

MAX_OFFSET_TICKS = 24 * TICKS_PER_HOUR
MAX_RESIDUAL_TICKS = 60 * TICKS_PER_SECOND
OFFSET_STEP_TICKS = 30 * TICKS_PER_MINUTE


def try_offset(local: Instant, utc: Instant) -> int | None:
    """Detect the timezone offset between a local and a UTC reading.

    Args:
        local: Local wall time of the event.
        utc: UTC time of the same event.

    Returns:
        Offset in minutes east of UTC, or None if the readings do not line
        up on a half-hour boundary within tolerance.
    """
    diff = local.ticks - utc.ticks
    if abs(diff) > MAX_OFFSET_TICKS:
        return None

    steps = (diff + OFFSET_STEP_TICKS // 2) // OFFSET_STEP_TICKS
    rounded = steps * OFFSET_STEP_TICKS
    if abs(diff - rounded) > MAX_RESIDUAL_TICKS:
        return None
    if abs(rounded) >= MAX_OFFSET_TICKS:
        return None
    return rounded // TICKS_PER_MINUTE


def try_offset_with_duration(
    local: Instant,
    utc: Instant,
    duration: timedelta | None,
) -> int | None:
    """Like :func:`try_offset`, also trying ``utc`` shifted by ``duration``.

    Attempts the direct comparison, then ``utc + duration``, then
    ``utc - duration``; the first match wins.
    """
    offset = try_offset(local, utc)
    if offset is not None or not duration:
        return offset

    shift = timedelta_to_ticks(duration)
    for candidate in (utc.ticks + shift, utc.ticks - shift):
        if not 0 <= candidate <= MAX_TICKS:
            continue
        offset = try_offset(local, Instant(ticks=candidate, kind=utc.kind))
        if offset is not None:
            logger.debug(f"Offset matched after shifting by duration {duration}")
            return offset
    return None
