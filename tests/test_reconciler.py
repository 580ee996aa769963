"""Tests for creation date and timezone reconciliation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from photofinish.config import AppConfig
from photofinish.core import FORCE_LOCAL, FORCE_UTC, InstantKind, TimeZoneValue
from photofinish.reconcile import (
    CandidateOrigin,
    ContainerValues,
    DateSource,
    ExifToolValues,
    FileSystemValues,
    MediaCandidates,
    PropertyStoreValues,
    ReconciliationResult,
    TemporalReconciler,
    TimezoneSource,
)

CONTAINER_UTC = datetime(2021, 6, 1, 6, 0, 0)


def _container(**kwargs: object) -> ContainerValues:
    return ContainerValues(creation_time=CONTAINER_UTC, **kwargs)


# =============================================================================
# Creation Date Cascade
# =============================================================================


class TestCreationDate:
    """Tests for determine_creation_date."""

    def test_date_taken_wins(self, reconciler: TemporalReconciler) -> None:
        """Test the property store date taken outranks every other source."""
        candidates = MediaCandidates(
            property_store=PropertyStoreValues(
                date_taken=datetime(2021, 7, 1, 12),
                date_encoded=datetime(2020, 1, 1),
            ),
            container=_container(),
            original_filename="20190101_000000.jpg",
        )

        determination = reconciler.determine_creation_date(candidates)

        assert determination is not None
        assert determination.source == DateSource.DATE_TAKEN
        assert determination.source.origin == CandidateOrigin.PROPERTY_STORE
        assert determination.always_store is False
        assert determination.date.format() == "2021-07-01T12:00:00"

    def test_date_encoded_second(self, reconciler: TemporalReconciler) -> None:
        """Test date encoded is used when there is no date taken."""
        candidates = MediaCandidates(
            property_store=PropertyStoreValues(date_encoded=datetime(2020, 1, 1, 8)),
            container=_container(),
        )

        determination = reconciler.determine_creation_date(candidates)

        assert determination is not None
        assert determination.source == DateSource.DATE_ENCODED
        assert determination.always_store is False

    def test_container_third(self, reconciler: TemporalReconciler) -> None:
        """Test the container time is UTC and must be stored."""
        candidates = MediaCandidates(
            container=_container(),
            exif_tool=ExifToolValues(date_time_original=datetime(2021, 6, 1, 14)),
        )

        determination = reconciler.determine_creation_date(candidates)

        assert determination is not None
        assert determination.source == DateSource.CONTAINER
        assert determination.always_store is True
        assert determination.date.timezone == FORCE_UTC
        assert determination.date.instant.kind == InstantKind.UTC

    def test_exif_fourth(self, reconciler: TemporalReconciler) -> None:
        """Test the external tool date is used before the filename."""
        candidates = MediaCandidates(
            exif_tool=ExifToolValues(date_time_original=datetime(2021, 6, 1, 14)),
            original_filename="20190101_000000.jpg",
        )

        determination = reconciler.determine_creation_date(candidates)

        assert determination is not None
        assert determination.source == DateSource.EXIF_TOOL
        assert determination.always_store is True

    def test_filename_last(self, reconciler: TemporalReconciler) -> None:
        """Test the filename is the final fallback."""
        candidates = MediaCandidates(original_filename="20190101_000000.jpg")

        determination = reconciler.determine_creation_date(candidates)

        assert determination is not None
        assert determination.source == DateSource.FILENAME
        assert determination.date.format() == "2019-01-01T00:00:00"

    def test_nothing_found(self, reconciler: TemporalReconciler) -> None:
        """Test no sources give no determination."""
        assert reconciler.determine_creation_date(MediaCandidates()) is None

    def test_aware_date_taken_keeps_offset(self, reconciler: TemporalReconciler) -> None:
        """Test an aware property store value becomes a NORMAL timezone."""
        taken = datetime(2021, 7, 1, 12, tzinfo=timezone(timedelta(hours=-6)))
        candidates = MediaCandidates(property_store=PropertyStoreValues(date_taken=taken))

        result = reconciler.reconcile(candidates)

        assert result.creation_date is not None
        assert result.creation_date.format() == "2021-07-01T12:00:00-06:00"
        assert result.timezone is None
        resolved = result.resolved_date()
        assert resolved is not None
        assert resolved.format() == "2021-07-01T12:00:00-06:00"

    @pytest.mark.parametrize(
        ("comment", "precision"),
        [
            ("&datePrecision=8", 8),
            ("&datePrecision=20", 14),
            ("&datePrecision=3", 14),
            ("&datePrecision=abc", 14),
            ("no tags", 14),
        ],
    )
    def test_precision_hint(
        self, reconciler: TemporalReconciler, comment: str, precision: int
    ) -> None:
        """Test the datePrecision tag can only lower the detected precision."""
        candidates = MediaCandidates(
            property_store=PropertyStoreValues(date_taken=datetime(2021, 7, 1, 12)),
            comment=comment,
        )

        determination = reconciler.determine_creation_date(candidates)

        assert determination is not None
        assert determination.date.precision == precision


# =============================================================================
# Timezone Cascade
# =============================================================================


class TestTimezone:
    """Tests for determine_timezone."""

    def test_timezone_tag_first(self, reconciler: TemporalReconciler) -> None:
        """Test an existing timezone tag outranks everything."""
        candidates = MediaCandidates(
            container=_container(),
            exif_tool=ExifToolValues(timezone="+09:00"),
            original_filename="20210601_140000.mp4",
            comment="Trip &timezone=-05:00",
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == TimeZoneValue.from_offset(-300)
        assert result.timezone_source == TimezoneSource.TIMEZONE_TAG

    def test_force_local_tag(self, reconciler: TemporalReconciler) -> None:
        """Test a zero tag restores force-local."""
        candidates = MediaCandidates(container=_container(), comment="&timezone=0")

        result = reconciler.reconcile(candidates)

        assert result.timezone == FORCE_LOCAL
        assert result.timezone_source == TimezoneSource.TIMEZONE_TAG

    def test_malformed_tag_falls_through(self, reconciler: TemporalReconciler) -> None:
        """Test an unparseable tag is ignored."""
        candidates = MediaCandidates(
            exif_tool=ExifToolValues(timezone="+9"),
            comment="&timezone=EST",
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == TimeZoneValue.from_offset(540)
        assert result.timezone_source == TimezoneSource.MAKER_NOTE

    def test_maker_note(self, reconciler: TemporalReconciler) -> None:
        """Test the maker-note timezone is used before any matching."""
        candidates = MediaCandidates(
            container=_container(),
            exif_tool=ExifToolValues(
                date_time_original=datetime(2021, 6, 1, 14), timezone="-5"
            ),
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == TimeZoneValue.from_offset(-300)
        assert result.timezone_source == TimezoneSource.MAKER_NOTE

    def test_exif_match(self, reconciler: TemporalReconciler) -> None:
        """Test container UTC matched against DateTimeOriginal."""
        candidates = MediaCandidates(
            container=_container(),
            exif_tool=ExifToolValues(date_time_original=datetime(2021, 6, 1, 14, 0, 20)),
            original_filename="20210601_010000.mp4",
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == TimeZoneValue.from_offset(480)
        assert result.timezone_source == TimezoneSource.EXIF_TOOL

    def test_exif_mismatch_falls_through_to_filename(
        self, reconciler: TemporalReconciler
    ) -> None:
        """Test a DateTimeOriginal that does not line up is skipped."""
        candidates = MediaCandidates(
            container=_container(),
            exif_tool=ExifToolValues(date_time_original=datetime(2021, 6, 1, 14, 17)),
            original_filename="20210601_010000.mp4",
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == TimeZoneValue.from_offset(-300)
        assert result.timezone_source == TimezoneSource.FILENAME

    def test_filename_match_end_to_end(
        self,
        reconciler: TemporalReconciler,
        end_to_end_candidates: MediaCandidates,
    ) -> None:
        """Test a phone video resolves to local time with its offset."""
        result = reconciler.reconcile(end_to_end_candidates)

        assert result.date_source == DateSource.CONTAINER
        assert result.always_store is True
        assert result.timezone == TimeZoneValue.from_offset(480)
        assert result.timezone_source == TimezoneSource.FILENAME
        resolved = result.resolved_date()
        assert resolved is not None
        assert resolved.format() == "2021-06-01T14:00:00+08:00"

    def test_duration_from_property_store(self, reconciler: TemporalReconciler) -> None:
        """Test a container stamped at the end of recording still matches."""
        candidates = MediaCandidates(
            property_store=PropertyStoreValues(duration=timedelta(minutes=5)),
            container=ContainerValues(creation_time=datetime(2021, 6, 1, 6, 5)),
            original_filename="20210601_140000.mp4",
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == TimeZoneValue.from_offset(480)
        assert result.timezone_source == TimezoneSource.FILENAME

    def test_zero_offset_is_force_local(self, reconciler: TemporalReconciler) -> None:
        """Test a matched zero offset is reported as force-local."""
        candidates = MediaCandidates(
            container=_container(),
            original_filename="20210601_060000.mp4",
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == FORCE_LOCAL
        assert result.timezone_source == TimezoneSource.FILENAME
        resolved = result.resolved_date()
        assert resolved is not None
        assert resolved.format() == "2021-06-01T06:00:00"

    def test_date_only_filename_not_matched(self, reconciler: TemporalReconciler) -> None:
        """Test a filename without a time of day is not used for matching."""
        candidates = MediaCandidates(
            container=ContainerValues(creation_time=datetime(2021, 6, 1, 4)),
            original_filename="20210601.mp4",
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone is None

    def test_file_created_zero_offset(self, reconciler: TemporalReconciler) -> None:
        """Test a file creation time equal to the container time is trusted."""
        candidates = MediaCandidates(
            container=_container(),
            file_system=FileSystemValues(creation_time=CONTAINER_UTC),
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == FORCE_LOCAL
        assert result.timezone_source == TimezoneSource.FILE_CREATED

    def test_file_modified_zero_offset(self, reconciler: TemporalReconciler) -> None:
        """Test modification time is tried after creation time."""
        candidates = MediaCandidates(
            container=_container(),
            file_system=FileSystemValues(
                creation_time=datetime(2022, 1, 1),
                modification_time=CONTAINER_UTC,
            ),
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone == FORCE_LOCAL
        assert result.timezone_source == TimezoneSource.FILE_MODIFIED

    def test_file_system_nonzero_offset_rejected(
        self, reconciler: TemporalReconciler
    ) -> None:
        """Test file system times only ever confirm a zero offset."""
        candidates = MediaCandidates(
            container=_container(),
            file_system=FileSystemValues(creation_time=datetime(2021, 6, 1, 14)),
        )

        result = reconciler.reconcile(candidates)

        assert result.timezone is None
        assert result.timezone_source is None

    def test_aware_file_system_time_uses_local_zone(self) -> None:
        """Test aware file system times are converted to the configured zone."""
        created = datetime(2021, 6, 1, 14, tzinfo=timezone(timedelta(hours=8)))
        candidates = MediaCandidates(
            container=_container(),
            file_system=FileSystemValues(creation_time=created),
        )

        in_utc = TemporalReconciler(local_zone=ZoneInfo("UTC")).reconcile(candidates)
        in_tokyo = TemporalReconciler(local_zone=ZoneInfo("Asia/Tokyo")).reconcile(candidates)

        assert in_utc.timezone == FORCE_LOCAL
        assert in_utc.timezone_source == TimezoneSource.FILE_CREATED
        assert in_tokyo.timezone is None

    def test_file_system_dates_disabled(self) -> None:
        """Test file system times are ignored when disabled."""
        candidates = MediaCandidates(
            container=_container(),
            file_system=FileSystemValues(creation_time=CONTAINER_UTC),
        )
        reconciler = TemporalReconciler(
            local_zone=ZoneInfo("UTC"), use_file_system_dates=False
        )

        assert reconciler.reconcile(candidates).timezone is None

    def test_filename_dates_disabled(self, end_to_end_candidates: MediaCandidates) -> None:
        """Test filename dates are ignored when disabled."""
        reconciler = TemporalReconciler(local_zone=ZoneInfo("UTC"), use_filename_dates=False)

        result = reconciler.reconcile(end_to_end_candidates)

        assert result.date_source == DateSource.CONTAINER
        assert result.timezone is None
        assert reconciler.reconcile(MediaCandidates(original_filename="20210601.jpg")) == (
            ReconciliationResult()
        )

    def test_local_default(
        self,
        reconciler: TemporalReconciler,
        local_photo_candidates: MediaCandidates,
    ) -> None:
        """Test a local date with no container time is force-local."""
        result = reconciler.reconcile(local_photo_candidates)

        assert result.date_source == DateSource.DATE_TAKEN
        assert result.timezone == FORCE_LOCAL
        assert result.timezone_source == TimezoneSource.LOCAL_DEFAULT
        assert result.always_store is False

    def test_unmatched_container_gives_no_timezone(
        self, reconciler: TemporalReconciler
    ) -> None:
        """Test a container time that matches nothing leaves the timezone unknown."""
        candidates = MediaCandidates(
            property_store=PropertyStoreValues(date_taken=datetime(2021, 6, 1, 14, 17)),
            container=_container(),
        )

        result = reconciler.reconcile(candidates)

        assert result.date_source == DateSource.DATE_TAKEN
        assert result.timezone is None

    def test_empty_candidates(self, reconciler: TemporalReconciler) -> None:
        """Test nothing in gives nothing out."""
        result = reconciler.reconcile(MediaCandidates())

        assert result == ReconciliationResult()
        assert result.has_creation_date is False
        assert result.resolved_date() is None

    def test_resolved_date_at_calendar_end(self, reconciler: TemporalReconciler) -> None:
        """Test localizing the last day of the calendar saturates instead of failing."""
        candidates = MediaCandidates(
            container=ContainerValues(creation_time=datetime(9999, 12, 31, 23, 0, 0)),
            comment="&timezone=+08:00",
        )

        result = reconciler.reconcile(candidates)
        resolved = result.resolved_date()

        assert result.timezone_source == TimezoneSource.TIMEZONE_TAG
        assert resolved is not None
        assert resolved.format() == "9999-12-31T23:59:59+08:00"


# =============================================================================
# Configuration
# =============================================================================


class TestFromConfig:
    """Tests for TemporalReconciler.from_config."""

    def test_settings_applied(self) -> None:
        """Test the reconcile section configures the reconciler."""
        config = AppConfig(
            reconcile={
                "local_timezone": "MT",
                "use_file_system_dates": False,
                "use_filename_dates": False,
            }
        )

        reconciler = TemporalReconciler.from_config(config)

        assert reconciler.local_zone == ZoneInfo("America/Denver")
        assert reconciler.use_file_system_dates is False
        assert reconciler.use_filename_dates is False

    def test_defaults(self) -> None:
        """Test the default config uses the system zone and all sources."""
        reconciler = TemporalReconciler.from_config(AppConfig())

        assert reconciler.local_zone is None
        assert reconciler.use_file_system_dates is True
        assert reconciler.use_filename_dates is True
