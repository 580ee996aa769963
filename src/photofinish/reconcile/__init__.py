"""Date and timezone reconciliation for media files.

Example:
    >>> from photofinish.reconcile import MediaCandidates, TemporalReconciler
    >>> candidates = MediaCandidates(original_filename="20210601_140000.jpg")
    >>> result = TemporalReconciler().reconcile(candidates)
    >>> result.date_source
    <DateSource.FILENAME: 'Filename'>
"""

from photofinish.reconcile.adjust import (
    ZONE_ABBREVIATIONS,
    change_timezone,
    resolve_zone,
    set_date,
    set_timezone,
    shift_date,
)
from photofinish.reconcile.candidates import (
    CandidateOrigin,
    ContainerValues,
    DateSource,
    ExifToolValues,
    FileSystemValues,
    MediaCandidates,
    PropertyStoreValues,
    TimezoneSource,
)
from photofinish.reconcile.commit import CommitPlan, build_commit_plan
from photofinish.reconcile.filename import parse_filename_date
from photofinish.reconcile.matching import try_offset, try_offset_with_duration
from photofinish.reconcile.reconciler import (
    DateDetermination,
    ReconciliationResult,
    TemporalReconciler,
    TimezoneDetermination,
)

__all__ = [
    # Candidates
    "CandidateOrigin",
    "ContainerValues",
    "DateSource",
    "ExifToolValues",
    "FileSystemValues",
    "MediaCandidates",
    "PropertyStoreValues",
    "TimezoneSource",
    # Reconciliation
    "DateDetermination",
    "ReconciliationResult",
    "TemporalReconciler",
    "TimezoneDetermination",
    "parse_filename_date",
    "try_offset",
    "try_offset_with_duration",
    # Adjustments
    "ZONE_ABBREVIATIONS",
    "change_timezone",
    "resolve_zone",
    "set_date",
    "set_timezone",
    "shift_date",
    # Commit
    "CommitPlan",
    "build_commit_plan",
]
