"""Dates embedded in camera-style filenames.

Phones and cameras commonly name files after the capture time, for example
``20210601_140000.mp4`` or ``2021-06-01 14.00.00.jpg``. The digits must start
the name, so ``IMG-2021-06-01.jpg`` is not matched.

The leading run of at most 14 digits is collected, skipping ``-``, ``.``,
``_``, ``T`` and space separators between them:

- 14 digits give ``YYYYMMDDhhmmss`` at second precision.
- 8 to 13 digits give ``YYYYMMDD`` at day precision.
- Fewer digits give nothing.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime

from photofinish.core.dates import PRECISION_DAY, PRECISION_SECOND, DateValue
from photofinish.core.instant import Instant, InstantKind
from photofinish.core.timezone import FORCE_LOCAL

logger = logging.getLogger(__name__)

_SEPARATORS = frozenset("-._T ")
_MAX_DIGITS = 14
_MIN_DIGITS = 8


def leading_digits(name: str) -> str:
    """Collect the leading run of digits, skipping separators between them."""
    digits: list[str] = []
    for ch in name:
        if "0" <= ch <= "9":
            digits.append(ch)
            if len(digits) == _MAX_DIGITS:
                break
        elif ch in _SEPARATORS and digits:
            continue
        else:
            break
    return "".join(digits)


def parse_filename_date(
    filename: str | None,
    modified: datetime | None = None,
) -> DateValue | None:
    """Parse the capture date from a filename.

    Args:
        filename: File name or path; only the base name is examined.
        modified: File system modification time as naive local wall time.
            When the filename only yields a date and that date equals the
            modification date, the modification time of day is used.

    Returns:
        A local (``FORCE_LOCAL``) date, or None if no date was found.
    """
    if not filename:
        return None
    name = os.path.basename(filename)
    digits = leading_digits(name)
    if len(digits) < _MIN_DIGITS:
        return None

    year, month, day = int(digits[0:4]), int(digits[4:6]), int(digits[6:8])
    hour, minute, second = 12, 0, 0
    precision = PRECISION_DAY
    if len(digits) == _MAX_DIGITS:
        hour, minute, second = int(digits[8:10]), int(digits[10:12]), int(digits[12:14])
        precision = PRECISION_SECOND

    try:
        instant = Instant.from_parts(year, month, day, hour, minute, second)
    except ValueError:
        logger.debug(f"Filename digits are not a valid date: {name!r}")
        return None

    if precision == PRECISION_DAY and modified is not None:
        local = modified.replace(tzinfo=None, microsecond=0)
        if local.date() == instant.to_datetime().date():
            instant = Instant.from_datetime(local, InstantKind.LOCAL)
            precision = PRECISION_SECOND

    return DateValue(instant=instant, timezone=FORCE_LOCAL, precision=precision)
