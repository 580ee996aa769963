"""Creation date and timezone reconciliation.

Media files carry their capture time in several places, none of them
reliable on its own. Images usually have a local "date taken" and no
timezone. Videos usually have a UTC container timestamp and no local time.
Filenames, camera maker notes and file system timestamps fill some of the
gaps. :class:`TemporalReconciler` picks the best creation date from a
priority cascade, then infers the timezone by comparing a UTC reading with
a local reading of the same moment.

Creation date cascade (first present value wins):

1. Property store "date taken" (images).
2. Property store "date encoded" (audio/video).
3. Container creation time (UTC).
4. External tool DateTimeOriginal (local).
5. Filename date (local).

Timezone cascade (first success wins):

1. ``timezone`` inline tag in the existing comment.
2. Maker-note timezone reported by the external tool.
3. Container UTC matched against external tool local time.
4. Container UTC matched against the filename date.
5. Container UTC matched against file creation time (zero offset only).
6. Container UTC matched against file modification time (zero offset only).
7. A local creation date with no container time at all is ``FORCE_LOCAL``.

A matched offset of zero is reported as ``FORCE_LOCAL`` rather than UTC:
many devices that cannot determine the timezone write local time into
fields that are supposed to be UTC, so a zero offset says more about the
device than about where the picture was taken.

Example:
    >>> from datetime import datetime, timedelta
    >>> from photofinish.reconcile.candidates import ContainerValues, MediaCandidates
    >>> candidates = MediaCandidates(
    ...     container=ContainerValues(
    ...         creation_time=datetime(2021, 6, 1, 6, 0, 0),
    ...         duration=timedelta(seconds=30),
    ...     ),
    ...     original_filename="20210601_140000.mp4",
    ... )
    >>> result = TemporalReconciler().reconcile(candidates)
    >>> str(result.resolved_date())
    '2021-06-01T14:00:00+08:00'
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from photofinish.core.dates import PRECISION_MIN, PRECISION_SECOND, DateValue
from photofinish.core.instant import Instant, InstantKind
from photofinish.core.timezone import (
    FORCE_LOCAL,
    TimeZoneValue,
    parse_maker_note_timezone,
)
from photofinish.reconcile.candidates import DateSource, MediaCandidates, TimezoneSource
from photofinish.reconcile.filename import parse_filename_date
from photofinish.reconcile.matching import try_offset_with_duration

if TYPE_CHECKING:
    from photofinish.config import AppConfig

logger = logging.getLogger(__name__)

TIMEZONE_TAG = "timezone"
DATE_PRECISION_TAG = "datePrecision"


# =============================================================================
# Results
# =============================================================================


class DateDetermination(BaseModel):
    """A chosen creation date and where it came from.

    Attributes:
        date: The creation date.
        source: The cascade step that produced it.
        always_store: True when the date did not come from the property
            store and should therefore be written back even if nothing
            else changed.
    """

    model_config = ConfigDict(frozen=True)

    date: DateValue
    source: DateSource
    always_store: bool = False


class TimezoneDetermination(BaseModel):
    """A chosen timezone and where it came from."""

    model_config = ConfigDict(frozen=True)

    timezone: TimeZoneValue
    source: TimezoneSource


class ReconciliationResult(BaseModel):
    """Outcome of reconciling one media file.

    Attributes:
        creation_date: Best creation date, or None if nothing was found.
        date_source: Source of ``creation_date``.
        timezone: Best timezone, or None if nothing could be inferred.
        timezone_source: Source of ``timezone``.
        always_store: True when the creation date must be persisted.
    """

    model_config = ConfigDict(frozen=True)

    creation_date: DateValue | None = None
    date_source: DateSource | None = None
    timezone: TimeZoneValue | None = None
    timezone_source: TimezoneSource | None = None
    always_store: bool = False

    @property
    def has_creation_date(self) -> bool:
        return self.creation_date is not None

    def resolved_date(self) -> DateValue | None:
        """The creation date expressed in the determined timezone.

        A ``NORMAL`` timezone converts a UTC creation date to local time;
        ``FORCE_LOCAL`` re-tags a UTC value as local wall time. Without a
        timezone the creation date is returned as is.
        """
        if self.creation_date is None:
            return None
        if self.timezone is None:
            return self.creation_date
        return self.creation_date.with_timezone(self.timezone)


# =============================================================================
# Reconciler
# =============================================================================


class TemporalReconciler:
    """Picks the best creation date and timezone for a media file.

    The reconciler holds only configuration and may be shared between
    threads.

    Args:
        local_zone: Zone used to interpret aware file system timestamps.
            None uses the system local zone.
        use_file_system_dates: Consult file system timestamps.
        use_filename_dates: Consult dates embedded in the filename.
    """

    def __init__(
        self,
        local_zone: tzinfo | None = None,
        use_file_system_dates: bool = True,
        use_filename_dates: bool = True,
    ) -> None:
        self.local_zone = local_zone
        self.use_file_system_dates = use_file_system_dates
        self.use_filename_dates = use_filename_dates

    @classmethod
    def from_config(cls, config: AppConfig) -> TemporalReconciler:
        """Create a reconciler from the ``reconcile`` config section."""
        section = config.reconcile
        return cls(
            local_zone=section.zone(),
            use_file_system_dates=section.use_file_system_dates,
            use_filename_dates=section.use_filename_dates,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def reconcile(self, candidates: MediaCandidates) -> ReconciliationResult:
        """Determine the creation date, then the timezone."""
        creation = self.determine_creation_date(candidates)
        zone = self.determine_timezone(candidates, creation.date if creation else None)

        result = ReconciliationResult(
            creation_date=creation.date if creation else None,
            date_source=creation.source if creation else None,
            timezone=zone.timezone if zone else None,
            timezone_source=zone.source if zone else None,
            always_store=creation.always_store if creation else False,
        )
        logger.debug(
            f"Reconciled {candidates.original_filename or '<unnamed>'}: "
            f"date={result.creation_date} ({result.date_source}), "
            f"timezone={result.timezone.describe() if result.timezone else None} "
            f"({result.timezone_source})"
        )
        return result

    def determine_creation_date(self, candidates: MediaCandidates) -> DateDetermination | None:
        """Pick the creation date from the highest-priority source present.

        Returns:
            The determination, or None when no source has a date.
        """
        determination = self._first_creation_date(candidates)
        if determination is None:
            logger.debug("No creation date found in any source")
            return None

        hint = self._precision_hint(candidates)
        date = determination.date
        if hint is not None and hint < date.precision:
            logger.debug(f"Precision hint {hint} lowers detected precision {date.precision}")
            determination = determination.model_copy(update={"date": date.with_precision(hint)})
        return determination

    def determine_timezone(
        self,
        candidates: MediaCandidates,
        creation: DateValue | None,
    ) -> TimezoneDetermination | None:
        """Infer the timezone from tags, maker notes and offset matching.

        Args:
            candidates: All candidate values for the file.
            creation: The creation date already chosen, if any.

        Returns:
            The determination, or None when nothing could be inferred.
        """
        tag_value = candidates.tags().get(TIMEZONE_TAG)
        if tag_value is not None:
            zone = TimeZoneValue.try_parse(tag_value)
            if zone is not None:
                return TimezoneDetermination(timezone=zone, source=TimezoneSource.TIMEZONE_TAG)
            logger.debug(f"Ignoring malformed timezone tag: {tag_value!r}")

        maker_note = candidates.exif_tool.timezone
        if maker_note:
            zone = parse_maker_note_timezone(maker_note)
            if zone is not None:
                return TimezoneDetermination(timezone=zone, source=TimezoneSource.MAKER_NOTE)
            logger.debug(f"Ignoring unrecognized maker-note timezone: {maker_note!r}")

        utc = self._container_utc(candidates)
        if utc is not None:
            duration = candidates.duration

            exif_local = self._exif_local(candidates)
            if exif_local is not None:
                zone = self._match(exif_local, utc, duration, "DateTimeOriginal")
                if zone is not None:
                    return TimezoneDetermination(timezone=zone, source=TimezoneSource.EXIF_TOOL)

            filename_local = self._filename_local(candidates)
            if filename_local is not None:
                zone = self._match(filename_local, utc, duration, "filename date")
                if zone is not None:
                    return TimezoneDetermination(timezone=zone, source=TimezoneSource.FILENAME)

            if self.use_file_system_dates:
                file_system = candidates.file_system
                for value, source in (
                    (file_system.creation_time, TimezoneSource.FILE_CREATED),
                    (file_system.modification_time, TimezoneSource.FILE_MODIFIED),
                ):
                    if value is None:
                        continue
                    local = Instant.from_datetime(self._to_local_wall(value), InstantKind.LOCAL)
                    zone = self._match(local, utc, duration, source.value)
                    if zone is None:
                        continue
                    if zone == FORCE_LOCAL:
                        return TimezoneDetermination(timezone=zone, source=source)
                    logger.debug(f"{source.value} offset {zone.describe()} rejected; only zero is trusted")

        elif (
            creation is not None
            and creation.instant.kind == InstantKind.LOCAL
            and not creation.timezone.is_normal
        ):
            return TimezoneDetermination(timezone=FORCE_LOCAL, source=TimezoneSource.LOCAL_DEFAULT)

        logger.debug("No timezone could be determined")
        return None

    # -------------------------------------------------------------------------
    # Creation date sources
    # -------------------------------------------------------------------------

    def _first_creation_date(self, candidates: MediaCandidates) -> DateDetermination | None:
        store = candidates.property_store
        if store.date_taken is not None:
            return DateDetermination(date=_local_date(store.date_taken), source=DateSource.DATE_TAKEN)
        if store.date_encoded is not None:
            return DateDetermination(
                date=_local_date(store.date_encoded), source=DateSource.DATE_ENCODED
            )

        utc = self._container_utc(candidates)
        if utc is not None:
            return DateDetermination(
                date=DateValue(instant=utc), source=DateSource.CONTAINER, always_store=True
            )

        original = candidates.exif_tool.date_time_original
        if original is not None:
            return DateDetermination(
                date=_local_date(original), source=DateSource.EXIF_TOOL, always_store=True
            )

        filename_date = self._filename_date(candidates)
        if filename_date is not None:
            return DateDetermination(
                date=filename_date, source=DateSource.FILENAME, always_store=True
            )
        return None

    @staticmethod
    def _precision_hint(candidates: MediaCandidates) -> int | None:
        text = candidates.tags().get(DATE_PRECISION_TAG)
        if text is None:
            return None
        try:
            precision = int(text)
        except ValueError:
            logger.debug(f"Ignoring malformed {DATE_PRECISION_TAG} tag: {text!r}")
            return None
        if precision < PRECISION_MIN:
            logger.debug(f"Ignoring out-of-range {DATE_PRECISION_TAG} tag: {precision}")
            return None
        return precision

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _container_utc(candidates: MediaCandidates) -> Instant | None:
        value = candidates.container.creation_time
        if value is None:
            return None
        return Instant.from_datetime(value, InstantKind.UTC)

    @staticmethod
    def _exif_local(candidates: MediaCandidates) -> Instant | None:
        value = candidates.exif_tool.date_time_original
        if value is None:
            return None
        return Instant.from_datetime(value.replace(tzinfo=None), InstantKind.LOCAL)

    def _filename_date(self, candidates: MediaCandidates) -> DateValue | None:
        if not self.use_filename_dates:
            return None
        modified = candidates.file_system.modification_time
        if modified is not None:
            modified = self._to_local_wall(modified) if self.use_file_system_dates else None
        return parse_filename_date(candidates.original_filename, modified)

    def _filename_local(self, candidates: MediaCandidates) -> Instant | None:
        date = self._filename_date(candidates)
        if date is None:
            return None
        if date.precision < PRECISION_SECOND:
            logger.debug(f"Filename date {date} lacks a time of day; not matched")
            return None
        return date.instant

    def _to_local_wall(self, value: datetime) -> datetime:
        """Naive local wall time of a file system timestamp."""
        if value.tzinfo is None:
            return value
        return value.astimezone(self.local_zone).replace(tzinfo=None)

    @staticmethod
    def _match(
        local: Instant, utc: Instant, duration: timedelta | None, label: str
    ) -> TimeZoneValue | None:
        offset = try_offset_with_duration(local, utc, duration)
        if offset is None:
            logger.debug(f"{label} {local} does not line up with container time {utc}")
            return None
        if offset == 0:
            return FORCE_LOCAL
        return TimeZoneValue.from_offset(offset)


def _local_date(value: datetime) -> DateValue:
    """DateValue for a local reading; aware values keep their offset."""
    offset = value.utcoffset()
    if offset is None:
        return DateValue(instant=Instant.from_datetime(value, InstantKind.LOCAL))
    wall = Instant.from_datetime(value.replace(tzinfo=None), InstantKind.LOCAL)
    return DateValue(instant=wall, timezone=TimeZoneValue.from_timedelta(offset))
