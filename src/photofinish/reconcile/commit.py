"""Metadata commit planning.

After reconciliation the results are persisted as inline tags in the file's
comment field so the next run (and other tools) can see them. This module
works out the new comment without touching the file; a writer collaborator
applies the plan.

Tags written:
    - ``timezone``: the determined timezone (``0`` for force-local).
    - ``datePrecision``: significant digits of the creation date.
    - ``originalFilename``: the original file name, only if absent.
    - ``uuid``: a unique identifier, only if absent.

Example:
    >>> plan = build_commit_plan(result, "Beach day", set_uuid=False)
    >>> plan.comment
    'Beach day &datePrecision=14 &timezone=+08:00'
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from photofinish.core.dates import PRECISION_MIN
from photofinish.core.tags import TagSet
from photofinish.reconcile.reconciler import (
    DATE_PRECISION_TAG,
    TIMEZONE_TAG,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)

ORIGINAL_FILENAME_TAG = "originalFilename"
UUID_TAG = "uuid"


class CommitPlan(BaseModel):
    """What should be written back to a media file.

    Attributes:
        comment: The updated comment text.
        date_text: Resolved creation date in W3CDTF, or None.
        timezone_text: Display form of the timezone, or None.
        tags: The tags that were embedded (None values were removed).
        changed: Whether the comment text changed.
        must_store: Whether metadata should be written at all.
    """

    model_config = ConfigDict(frozen=True)

    comment: str
    date_text: str | None = None
    timezone_text: str | None = None
    tags: dict[str, str | None] = Field(default_factory=dict)
    changed: bool = False
    must_store: bool = False


def build_commit_plan(
    result: ReconciliationResult,
    comment: str | None,
    *,
    original_filename: str | None = None,
    save_original_filename: bool = False,
    set_uuid: bool = False,
    uuid_factory: Callable[[], uuid.UUID] = uuid.uuid4,
) -> CommitPlan:
    """Compute the updated comment and store decision for ``result``.

    Args:
        result: The reconciliation result.
        comment: Existing comment text; may be None.
        original_filename: The file's original name.
        save_original_filename: Add ``originalFilename`` if not present.
        set_uuid: Add ``uuid`` if not present.
        uuid_factory: Source of new identifiers.

    Returns:
        The plan.
    """
    existing = TagSet.from_text(comment)
    desired = TagSet()

    if result.timezone is not None:
        desired[TIMEZONE_TAG] = result.timezone.to_tag()
    if result.creation_date is not None and result.creation_date.precision >= PRECISION_MIN:
        desired[DATE_PRECISION_TAG] = str(result.creation_date.precision)
    if save_original_filename and original_filename and ORIGINAL_FILENAME_TAG not in existing:
        desired[ORIGINAL_FILENAME_TAG] = os.path.basename(original_filename)
    if set_uuid and UUID_TAG not in existing:
        desired[UUID_TAG] = str(uuid_factory())

    original = comment or ""
    updated = desired.embed_and_update(original)
    changed = updated != original
    resolved = result.resolved_date()

    if changed:
        logger.debug(f"Comment updated: {original!r} -> {updated!r}")
    return CommitPlan(
        comment=updated,
        date_text=resolved.format() if resolved else None,
        timezone_text=result.timezone.describe() if result.timezone else None,
        tags=dict(desired),
        changed=changed,
        must_store=changed or result.always_store,
    )
