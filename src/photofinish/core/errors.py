"""Exception hierarchy for the photofinish core.

The core follows a fail-soft contract: parsing functions named ``try_*``
return ``None`` for malformed input. The exceptions below are raised only by
the convenience wrappers that callers use when they want an exception, and
by operations that are misused (for example adjusting a timezone on a file
that has no creation date).
"""

from __future__ import annotations


class PhotoFinishError(Exception):
    """Base exception for all photofinish errors.

    All photofinish exceptions inherit from this class to allow for easy
    exception handling at a higher level.
    """

    pass


class FormatError(PhotoFinishError, ValueError):
    """Raised when text is not in a recognized date, timezone, or tag format.

    Attributes:
        text: The text that failed to parse.
        expected: Short name of the expected format.
    """

    def __init__(self, text: str, expected: str) -> None:
        self.text = text
        self.expected = expected
        super().__init__(f"Invalid {expected}: {text!r}")


class AdjustmentError(PhotoFinishError):
    """Raised when a manual date or timezone adjustment cannot be applied.

    Raised when:
    - The file has no creation date to adjust
    - A timezone change is requested but no existing timezone is known
    - A timezone name cannot be resolved
    """

    pass
