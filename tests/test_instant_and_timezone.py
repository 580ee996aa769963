"""Tests for tick-precision instants and timezone values."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from photofinish.core import (
    FORCE_LOCAL,
    FORCE_UTC,
    UNKNOWN_TIMEZONE,
    FormatError,
    Instant,
    InstantKind,
    TimeZoneKind,
    TimeZoneValue,
    parse_maker_note_timezone,
)
from photofinish.core.instant import ticks_to_timedelta, timedelta_to_ticks

# =============================================================================
# Instant Tests
# =============================================================================


class TestInstant:
    """Tests for Instant construction and conversion."""

    def test_from_parts_calendar_fields(self) -> None:
        """Test calendar fields come back out unchanged."""
        instant = Instant.from_parts(2021, 6, 1, 14, 5, 9)

        assert (instant.year, instant.month, instant.day) == (2021, 6, 1)
        assert (instant.hour, instant.minute, instant.second) == (14, 5, 9)
        assert instant.kind == InstantKind.LOCAL
        assert instant.to_datetime() == datetime(2021, 6, 1, 14, 5, 9)

    def test_sub_second_ticks_preserved(self) -> None:
        """Test the seventh fractional digit survives inside the instant."""
        instant = Instant.from_parts(2021, 6, 1, ticks=1234567)

        assert instant.sub_second_ticks == 1234567
        assert instant.to_datetime().microsecond == 123456

    def test_from_parts_rejects_invalid_calendar(self) -> None:
        """Test impossible dates raise ValueError."""
        with pytest.raises(ValueError):
            Instant.from_parts(2021, 2, 30)

    def test_negative_ticks_rejected(self) -> None:
        """Test ticks before year 1 are not representable."""
        with pytest.raises(ValidationError):
            Instant(ticks=-1)

    def test_from_aware_datetime_is_utc(self) -> None:
        """Test aware datetimes become UTC-tagged instants."""
        aware = datetime(2021, 6, 1, 14, 0, tzinfo=timezone(timedelta(hours=8)))
        instant = Instant.from_datetime(aware)

        assert instant.kind == InstantKind.UTC
        assert instant.hour == 6

    def test_from_naive_datetime_uses_kind(self) -> None:
        """Test naive datetimes keep wall time and take the given kind."""
        instant = Instant.from_datetime(datetime(2021, 6, 1, 14), InstantKind.UTC)

        assert instant.kind == InstantKind.UTC
        assert instant.hour == 14

    def test_add_and_with_kind(self) -> None:
        """Test arithmetic keeps the kind and re-tagging keeps the ticks."""
        instant = Instant.from_parts(2021, 6, 1, 23, 30)
        later = instant.add(timedelta(hours=1))

        assert later.day == 2
        assert later.hour == 0
        assert later.kind == InstantKind.LOCAL
        assert instant.with_kind(InstantKind.UTC).ticks == instant.ticks

    def test_str_marks_utc(self) -> None:
        """Test the display form marks UTC instants with Z."""
        local = Instant.from_parts(2021, 6, 1, 14)

        assert str(local) == "2021-06-01T14:00:00"
        assert str(local.with_kind(InstantKind.UTC)) == "2021-06-01T14:00:00Z"

    def test_tick_conversions_are_sign_safe(self) -> None:
        """Test tick/timedelta conversions truncate toward zero."""
        assert timedelta_to_ticks(timedelta(seconds=1)) == 10_000_000
        assert ticks_to_timedelta(15) == timedelta(microseconds=1)
        assert ticks_to_timedelta(-15) == timedelta(microseconds=-1)


# =============================================================================
# TimeZoneValue Tests
# =============================================================================


class TestTimeZoneParsing:
    """Tests for TimeZoneValue.try_parse and parse."""

    @pytest.mark.parametrize(
        ("text", "minutes"),
        [
            ("-05:00", -300),
            ("+05:30", 330),
            ("+08", 480),
            ("-5", -300),
            ("+00:00", 0),
            ("+23:59", 1439),
        ],
    )
    def test_numeric_offsets(self, text: str, minutes: int) -> None:
        """Test numeric offsets parse to NORMAL timezones."""
        tz = TimeZoneValue.try_parse(text)

        assert tz is not None
        assert tz.kind == TimeZoneKind.NORMAL
        assert tz.offset_minutes == minutes

    def test_markers(self) -> None:
        """Test Z is force-UTC and 0 is force-local."""
        assert TimeZoneValue.try_parse("Z") == FORCE_UTC
        assert TimeZoneValue.try_parse("0") == FORCE_LOCAL

    @pytest.mark.parametrize("text", ["", None, "05:00", "+24:00", "+05:60", "EST", "+5:0", "z"])
    def test_invalid_returns_none(self, text: str | None) -> None:
        """Test malformed timezones give no result."""
        assert TimeZoneValue.try_parse(text) is None

    def test_parse_raises_format_error(self) -> None:
        """Test the throwing wrapper raises FormatError (a ValueError)."""
        with pytest.raises(FormatError):
            TimeZoneValue.parse("EST")
        with pytest.raises(ValueError):
            TimeZoneValue.parse("")


class TestTimeZoneValue:
    """Tests for TimeZoneValue invariants, conversion and formatting."""

    def test_non_normal_kinds_have_zero_offset(self) -> None:
        """Test the offset is forced to zero for non-normal kinds."""
        tz = TimeZoneValue(kind=TimeZoneKind.FORCE_UTC, offset_minutes=60)

        assert tz.offset_minutes == 0
        assert tz == FORCE_UTC

    def test_offset_range_enforced(self) -> None:
        """Test offsets of a full day or more are rejected."""
        with pytest.raises(ValidationError):
            TimeZoneValue.from_offset(1440)
        with pytest.raises(ValidationError):
            TimeZoneValue.from_offset(-1440)

    def test_immutable(self) -> None:
        """Test values cannot be mutated."""
        tz = TimeZoneValue.from_offset(60)
        with pytest.raises(ValidationError):
            tz.offset_minutes = 120  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("tz", "expected"),
        [
            (TimeZoneValue.from_offset(-300), "-05:00"),
            (TimeZoneValue.from_offset(330), "+05:30"),
            (TimeZoneValue.from_offset(0), "+00:00"),
            (FORCE_UTC, "Z"),
            (FORCE_LOCAL, ""),
            (UNKNOWN_TIMEZONE, ""),
        ],
    )
    def test_format(self, tz: TimeZoneValue, expected: str) -> None:
        """Test the W3CDTF suffix form of each kind."""
        assert tz.format() == expected
        assert str(tz) == expected

    def test_to_tag(self) -> None:
        """Test the persisted tag form distinguishes force-local and unknown."""
        assert FORCE_LOCAL.to_tag() == "0"
        assert UNKNOWN_TIMEZONE.to_tag() is None
        assert FORCE_UTC.to_tag() == "Z"
        assert TimeZoneValue.from_offset(-300).to_tag() == "-05:00"

    def test_describe(self) -> None:
        """Test the display form of non-normal kinds."""
        assert FORCE_LOCAL.describe() == "(force_local)"
        assert TimeZoneValue.from_offset(480).describe() == "+08:00"

    def test_to_local_converts_utc_instants(self) -> None:
        """Test a NORMAL timezone shifts a UTC instant to local."""
        utc = Instant.from_parts(2021, 6, 1, 6, kind=InstantKind.UTC)
        local = TimeZoneValue.from_offset(480).to_local(utc)

        assert local.kind == InstantKind.LOCAL
        assert local.hour == 14

    def test_to_local_leaves_other_combinations(self) -> None:
        """Test local instants and non-normal kinds pass through."""
        local = Instant.from_parts(2021, 6, 1, 14)
        utc = local.with_kind(InstantKind.UTC)

        assert TimeZoneValue.from_offset(480).to_local(local) == local
        assert FORCE_UTC.to_local(utc) == utc
        assert FORCE_LOCAL.to_utc(local) == local

    def test_to_utc_converts_local_instants(self) -> None:
        """Test a NORMAL timezone shifts a local instant to UTC."""
        local = Instant.from_parts(2021, 6, 1, 1)
        utc = TimeZoneValue.from_offset(-300).to_utc(local)

        assert utc.kind == InstantKind.UTC
        assert utc.hour == 6

    def test_from_timedelta(self) -> None:
        """Test construction from a timedelta offset."""
        tz = TimeZoneValue.from_timedelta(timedelta(hours=-6))

        assert tz.offset_minutes == -360
        assert tz.utc_offset == timedelta(hours=-6)


class TestMakerNoteTimezone:
    """Tests for the lenient maker-note timezone parser."""

    @pytest.mark.parametrize(
        ("text", "minutes"),
        [("-05:00", -300), ("-5", -300), ("+6", 360), ("10:30", 630), (" 9 ", 540)],
    )
    def test_lenient_forms(self, text: str, minutes: int) -> None:
        """Test optional signs and single-digit hours are accepted."""
        tz = parse_maker_note_timezone(text)

        assert tz is not None
        assert tz.offset_minutes == minutes

    @pytest.mark.parametrize("text", [None, "", "abc", "+25", "5:75"])
    def test_rejects_garbage(self, text: str | None) -> None:
        """Test unrecognized values give no result."""
        assert parse_maker_note_timezone(text) is None
