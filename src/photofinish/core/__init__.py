"""Core value types for photofinish.

This package contains the foundational, I/O-free building blocks that the
reconciler depends on:

- **Instant**: tick-precision timestamp tagged local or UTC
- **TimeZoneValue**: offset or disposition (unknown, force local, force UTC)
- **DateValue**: W3CDTF date with timezone and precision
- **Inline tags**: ``&key=value`` metadata embedded in free text

Example:
    >>> from photofinish.core import DateValue, TagSet
    >>> date = DateValue.parse("2021-06-01T14:00:00+08:00")
    >>> comment = TagSet({"timezone": date.timezone.to_tag()}).embed_and_update("Beach")
    >>> comment
    'Beach &timezone=+08:00'
"""

from photofinish.core.dates import (
    PRECISION_DAY,
    PRECISION_HOUR,
    PRECISION_MAX,
    PRECISION_MICROSECOND,
    PRECISION_MILLISECOND,
    PRECISION_MIN,
    PRECISION_MINUTE,
    PRECISION_MONTH,
    PRECISION_SECOND,
    PRECISION_TICK,
    PRECISION_YEAR,
    DateValue,
    clamp_precision,
)
from photofinish.core.errors import AdjustmentError, FormatError, PhotoFinishError
from photofinish.core.instant import Instant, InstantKind
from photofinish.core.tags import (
    InlineTagCodec,
    TagSet,
    decode_value,
    embed_and_update,
    encode_value,
    extract_tags,
    format_tag,
    get_tag_codec,
    parse_tag,
    try_parse_tag,
)
from photofinish.core.timezone import (
    FORCE_LOCAL,
    FORCE_UTC,
    UNKNOWN_TIMEZONE,
    TimeZoneKind,
    TimeZoneValue,
    parse_maker_note_timezone,
)

__all__ = [
    # Dates
    "DateValue",
    "clamp_precision",
    "PRECISION_MIN",
    "PRECISION_YEAR",
    "PRECISION_MONTH",
    "PRECISION_DAY",
    "PRECISION_HOUR",
    "PRECISION_MINUTE",
    "PRECISION_SECOND",
    "PRECISION_MILLISECOND",
    "PRECISION_MICROSECOND",
    "PRECISION_TICK",
    "PRECISION_MAX",
    # Instants
    "Instant",
    "InstantKind",
    # Timezones
    "TimeZoneKind",
    "TimeZoneValue",
    "FORCE_LOCAL",
    "FORCE_UTC",
    "UNKNOWN_TIMEZONE",
    "parse_maker_note_timezone",
    # Tags
    "InlineTagCodec",
    "TagSet",
    "decode_value",
    "embed_and_update",
    "encode_value",
    "extract_tags",
    "format_tag",
    "get_tag_codec",
    "parse_tag",
    "try_parse_tag",
    # Errors
    "PhotoFinishError",
    "FormatError",
    "AdjustmentError",
]
