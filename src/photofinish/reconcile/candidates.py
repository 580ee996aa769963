"""Candidate values harvested from a media file's metadata sources.

The reconciler does not read files. Collaborators (a property-store reader,
an ISO media container reader, an external metadata tool, the file system)
populate a :class:`MediaCandidates` bag and hand it over. Every field is
optional; an absent value simply means that source has nothing to offer.

Datetime conventions:
    - Property store, external tool and file system values are local wall
      time when naive.
    - Container header values are UTC when naive.
    - Aware datetimes are always honored as absolute moments.

Example:
    >>> from datetime import datetime, timedelta
    >>> candidates = MediaCandidates(
    ...     container=ContainerValues(
    ...         creation_time=datetime(2021, 6, 1, 6, 0, 0),
    ...         duration=timedelta(seconds=30),
    ...     ),
    ...     original_filename="20210601_140000.mp4",
    ... )
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from photofinish.core.tags import TagSet

# =============================================================================
# Enums
# =============================================================================


class CandidateOrigin(str, Enum):
    """Where a candidate value came from."""

    PROPERTY_STORE = "property-store"
    CONTAINER = "container"
    EXIF_TOOL = "exif-tool"
    FILENAME = "filename"
    INLINE_TAG = "inline-tag"
    FILE_SYSTEM = "file-system"
    MANUAL = "manual"


class DateSource(str, Enum):
    """Source of a determined creation date, in cascade priority order.

    Attributes:
        DATE_TAKEN: Property store "date taken" (images).
        DATE_ENCODED: Property store "date encoded" (audio/video).
        CONTAINER: ISO media container creation time (UTC).
        EXIF_TOOL: External tool DateTimeOriginal.
        FILENAME: Date embedded in the original filename.
        MANUAL: Set explicitly by the user.
    """

    DATE_TAKEN = "DateTaken"
    DATE_ENCODED = "DateEncoded"
    CONTAINER = "ContainerCreationTime"
    EXIF_TOOL = "ExifDateTimeOriginal"
    FILENAME = "Filename"
    MANUAL = "Manual"

    @property
    def origin(self) -> CandidateOrigin:
        return _DATE_ORIGINS[self]


class TimezoneSource(str, Enum):
    """Source of a determined timezone, in cascade priority order.

    Attributes:
        TIMEZONE_TAG: ``timezone`` inline tag in the existing comment.
        MAKER_NOTE: External tool maker-note timezone field.
        EXIF_TOOL: Container UTC time matched against DateTimeOriginal.
        FILENAME: Container UTC time matched against the filename date.
        FILE_CREATED: Container UTC time matched against file creation time.
        FILE_MODIFIED: Container UTC time matched against file modification time.
        LOCAL_DEFAULT: Local creation date with no UTC source to compare.
        MANUAL: Set explicitly by the user.
    """

    TIMEZONE_TAG = "TimezoneTag"
    MAKER_NOTE = "MakerNote"
    EXIF_TOOL = "ExifTool"
    FILENAME = "Filename"
    FILE_CREATED = "FileCreated"
    FILE_MODIFIED = "FileModified"
    LOCAL_DEFAULT = "LocalDefault"
    MANUAL = "Manual"

    @property
    def origin(self) -> CandidateOrigin:
        return _TIMEZONE_ORIGINS[self]


_DATE_ORIGINS = {
    DateSource.DATE_TAKEN: CandidateOrigin.PROPERTY_STORE,
    DateSource.DATE_ENCODED: CandidateOrigin.PROPERTY_STORE,
    DateSource.CONTAINER: CandidateOrigin.CONTAINER,
    DateSource.EXIF_TOOL: CandidateOrigin.EXIF_TOOL,
    DateSource.FILENAME: CandidateOrigin.FILENAME,
    DateSource.MANUAL: CandidateOrigin.MANUAL,
}

_TIMEZONE_ORIGINS = {
    TimezoneSource.TIMEZONE_TAG: CandidateOrigin.INLINE_TAG,
    TimezoneSource.MAKER_NOTE: CandidateOrigin.EXIF_TOOL,
    TimezoneSource.EXIF_TOOL: CandidateOrigin.EXIF_TOOL,
    TimezoneSource.FILENAME: CandidateOrigin.FILENAME,
    TimezoneSource.FILE_CREATED: CandidateOrigin.FILE_SYSTEM,
    TimezoneSource.FILE_MODIFIED: CandidateOrigin.FILE_SYSTEM,
    TimezoneSource.LOCAL_DEFAULT: CandidateOrigin.PROPERTY_STORE,
    TimezoneSource.MANUAL: CandidateOrigin.MANUAL,
}


# =============================================================================
# Source Records
# =============================================================================


class PropertyStoreValues(BaseModel):
    """Values from the operating system's property store.

    Attributes:
        date_taken: Image "date taken", local wall time.
        date_encoded: Audio/video "date encoded", local wall time.
        duration: Media duration.
    """

    model_config = ConfigDict(frozen=True)

    date_taken: datetime | None = None
    date_encoded: datetime | None = None
    duration: timedelta | None = None


class ContainerValues(BaseModel):
    """Values from an ISO media container's movie header (``mvhd``).

    Attributes:
        creation_time: Creation time, UTC.
        modification_time: Modification time, UTC.
        duration: Media duration.
    """

    model_config = ConfigDict(frozen=True)

    creation_time: datetime | None = None
    modification_time: datetime | None = None
    duration: timedelta | None = None


class ExifToolValues(BaseModel):
    """Values reported by the external EXIF/MakerNote tool.

    Attributes:
        date_time_original: EXIF DateTimeOriginal, local wall time.
        timezone: Raw maker-note timezone text such as ``"-5"`` or ``"+09:00"``.
    """

    model_config = ConfigDict(frozen=True)

    date_time_original: datetime | None = None
    timezone: str | None = None


class FileSystemValues(BaseModel):
    """File system timestamps of the original file.

    Attributes:
        creation_time: Creation time; naive values are local wall time.
        modification_time: Modification time; naive values are local wall time.
    """

    model_config = ConfigDict(frozen=True)

    creation_time: datetime | None = None
    modification_time: datetime | None = None


class MediaCandidates(BaseModel):
    """All candidate values for one media file.

    Attributes:
        property_store: Property store values, if any.
        container: Container header values, if any.
        exif_tool: External tool values, if any.
        file_system: File system timestamps, if any.
        original_filename: The file's original on-disk name.
        comment: Existing free-text comment that may hold inline tags.
    """

    model_config = ConfigDict(frozen=True)

    property_store: PropertyStoreValues = Field(default_factory=PropertyStoreValues)
    container: ContainerValues = Field(default_factory=ContainerValues)
    exif_tool: ExifToolValues = Field(default_factory=ExifToolValues)
    file_system: FileSystemValues = Field(default_factory=FileSystemValues)
    original_filename: str | None = None
    comment: str | None = None

    def tags(self) -> TagSet:
        """Inline tags embedded in the existing comment."""
        return TagSet.from_text(self.comment)

    @property
    def duration(self) -> timedelta | None:
        """Best known media duration: property store first, then container."""
        return self.property_store.duration or self.container.duration
