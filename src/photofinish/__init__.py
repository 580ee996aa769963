"""photofinish - capture date and timezone reconciliation for photos and videos.

Media files record when they were taken in several inconsistent places: a
local "date taken", a UTC container timestamp, the file name, camera maker
notes, file system times. photofinish models partial-precision dates with
explicit timezones, picks the most trustworthy creation date, infers the
timezone by fuzzy-matching local and UTC readings, and persists the outcome
as ``&key=value`` inline tags in the file's comment.

Example:
    >>> from photofinish import MediaCandidates, TemporalReconciler, build_commit_plan
    >>> result = TemporalReconciler().reconcile(candidates)
    >>> plan = build_commit_plan(result, candidates.comment)
    >>> plan.comment
    'Beach day &datePrecision=14 &timezone=+08:00'
"""

__version__ = "0.1.0"

from photofinish.core import (
    DateValue,
    FormatError,
    Instant,
    InstantKind,
    PhotoFinishError,
    TagSet,
    TimeZoneKind,
    TimeZoneValue,
    embed_and_update,
)
from photofinish.reconcile import (
    MediaCandidates,
    ReconciliationResult,
    TemporalReconciler,
    build_commit_plan,
)

__all__ = [
    "__version__",
    "DateValue",
    "FormatError",
    "Instant",
    "InstantKind",
    "PhotoFinishError",
    "TagSet",
    "TimeZoneKind",
    "TimeZoneValue",
    "embed_and_update",
    "MediaCandidates",
    "ReconciliationResult",
    "TemporalReconciler",
    "build_commit_plan",
]
