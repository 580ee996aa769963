"""Inline metadata tags embedded in free text.

An inline tag is like a hashtag in that it can be embedded wherever text is
stored. Where a hashtag is only a label, an inline tag has a name and a
value, so custom metadata can live in existing text fields such as a photo's
comment::

    &author=Brandt
    &subject="MetaTag Format"
    &date=2018-12-17T21:22:05-06:00
    &ref=https://en.wikipedia.org/wiki/Metadata

Format:
    - An ampersand.
    - A name of one or more word characters (letters, marks, decimal digits
      and connector punctuation such as the underscore).
    - An equals sign.
    - A value in plain or quoted form. Plain form is one or more characters
      that are neither whitespace nor quotes. Quoted form is text between
      quotation marks; whitespace and newlines are permitted and a doubled
      quotation mark stands for a single one.

Example:
    >>> format_tag("subject", "a b")
    '&subject="a b"'
    >>> embed_and_update("hello", {"b": "2", "a": "1"})
    'hello &a=1 &b=2'
    >>> embed_and_update("&a=1 &b=2", {"a": None})
    '&b=2'
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Iterator, Mapping

import regex

from photofinish.core.errors import FormatError

# =============================================================================
# Constants
# =============================================================================

# &            an ampersand
# (KEY)        the key: letters, marks, decimal digits, connector punctuation
# =            the equals sign
# [^\s"]+      plain form
# (?:"[^"]*")+ quoted form, possibly with embedded doubled quotes
KEY_PATTERN = r"[\p{L}\p{M}\p{Nd}\p{Pc}]+"
TAG_PATTERN = r'&(' + KEY_PATTERN + r')=([^\s"]+|(?:"[^"]*")+)'

_QUOTE_REQUIRED = regex.compile(r'[\s"]')


# =============================================================================
# Codec
# =============================================================================


class InlineTagCodec:
    """Compiled matcher plus encode/decode rules for inline tags.

    Instances are immutable after construction and safe to share between
    threads. Use :func:`get_tag_codec` for the process-wide instance.
    """

    __slots__ = ("_embedded", "_key", "_pattern")

    def __init__(self, pattern: str = TAG_PATTERN, key_pattern: str = KEY_PATTERN) -> None:
        self._pattern = pattern
        self._embedded = regex.compile(pattern)
        self._key = regex.compile(key_pattern)

    @property
    def pattern(self) -> str:
        return self._pattern

    @staticmethod
    def encode_value(value: str) -> str:
        """Encode a value, quoting it when it holds whitespace or quotes.

        The empty string is quoted too, otherwise the tag would not match.
        """
        if value == "" or _QUOTE_REQUIRED.search(value):
            return '"' + value.replace('"', '""') + '"'
        return value

    @staticmethod
    def decode_value(token: str) -> str:
        """Decode the raw value portion of a tag."""
        if token.startswith('"'):
            return token[1:-1].replace('""', '"')
        return token

    def is_valid_key(self, key: str) -> bool:
        return self._key.fullmatch(key) is not None

    def check_key(self, key: str) -> str:
        """Validate a tag key and return it.

        Raises:
            FormatError: If the key would not be matched when scanning text.
        """
        if not self.is_valid_key(key):
            raise FormatError(key, "tag key")
        return key

    def format_tag(self, key: str, value: str) -> str:
        """Format ``key`` and ``value`` as ``&key=value``.

        Raises:
            FormatError: If ``key`` is not a valid tag key.
        """
        self.check_key(key)
        return f"&{key}={self.encode_value(value)}"

    def try_parse(self, text: str) -> tuple[str, str] | None:
        """Parse a string that consists of exactly one tag.

        Returns:
            ``(key, value)`` or None when the whole string is not one tag.
        """
        match = self._embedded.fullmatch(text)
        if match is None:
            return None
        return match.group(1), self.decode_value(match.group(2))

    def finditer(self, text: str) -> Iterator[regex.Match]:
        """Iterate over raw matches embedded in ``text``."""
        return self._embedded.finditer(text)

    def extract(self, text: str | None) -> Iterator[tuple[str, str]]:
        """Yield every ``(key, value)`` embedded in ``text`` in order."""
        for match in self.finditer(text or ""):
            yield match.group(1), self.decode_value(match.group(2))


@functools.lru_cache(maxsize=1)
def get_tag_codec() -> InlineTagCodec:
    """Get the shared, read-only tag codec."""
    return InlineTagCodec()


# =============================================================================
# Module-Level Functions
# =============================================================================


def encode_value(value: str) -> str:
    return InlineTagCodec.encode_value(value)


def decode_value(token: str) -> str:
    return InlineTagCodec.decode_value(token)


def format_tag(key: str, value: str) -> str:
    return get_tag_codec().format_tag(key, value)


def try_parse_tag(text: str) -> tuple[str, str] | None:
    return get_tag_codec().try_parse(text)


def parse_tag(text: str) -> tuple[str, str]:
    """Parse a string that is exactly one tag.

    Raises:
        FormatError: If the string is not a single well-formed tag.
    """
    result = try_parse_tag(text)
    if result is None:
        raise FormatError(text, "inline tag")
    return result


def extract_tags(text: str | None) -> Iterator[tuple[str, str]]:
    """Yield all tags embedded in ``text`` (duplicates included)."""
    return get_tag_codec().extract(text)


def embed_and_update(
    text: str | None,
    desired: Mapping[str, str | None] | Iterable[tuple[str, str | None]],
    codec: InlineTagCodec | None = None,
) -> str:
    """Embed tags into text, updating or removing existing ones.

    Existing tags whose key is in ``desired`` are updated in place so they
    keep their position. Existing tags whose key maps to None are removed, as
    are repeated occurrences of a key already seen. Tags not mentioned in
    ``desired`` are left alone. Keys in ``desired`` that do not yet appear are
    appended in case-insensitive alphabetical order, unless their value is
    None. Running the function again with the same ``desired`` is a no-op.

    Args:
        text: Existing text, such as a comment. May be empty or None.
        desired: Key to new value (None to remove). For an iterable of
            pairs, the last value for a key wins.
        codec: Codec to use; defaults to :func:`get_tag_codec`.

    Returns:
        The updated text.

    Raises:
        FormatError: If a key in ``desired`` is not a valid tag key.
    """
    codec = codec or get_tag_codec()
    text = text or ""
    wanted = dict(desired.items() if isinstance(desired, Mapping) else desired)
    for key in wanted:
        codec.check_key(key)

    out: list[str] = []
    handled: set[str] = set()
    pos = 0

    for match in codec.finditer(text):
        out.append(text[pos : match.start()])
        pos = match.end()
        key = match.group(1)
        value = codec.decode_value(match.group(2))

        if key in handled or (key in wanted and wanted[key] is None):
            _trim_trailing_whitespace(out)
            if not out:
                while pos < len(text) and text[pos].isspace():
                    pos += 1
            elif pos < len(text) and not text[pos].isspace():
                out.append(" ")
        elif key in wanted and wanted[key] != value:
            out.append(codec.format_tag(key, wanted[key]))
        else:
            out.append(match.group(0))
        handled.add(key)

    out.append(text[pos:])
    result = "".join(out)

    remaining = sorted(
        ((k, v) for k, v in wanted.items() if k not in handled and v is not None),
        key=lambda pair: pair[0].casefold(),
    )
    for key, value in remaining:
        if result and not result[-1].isspace():
            result += " "
        result += codec.format_tag(key, value)
    return result


def _trim_trailing_whitespace(parts: list[str]) -> None:
    while parts:
        stripped = parts[-1].rstrip()
        if stripped:
            parts[-1] = stripped
            return
        parts.pop()


# =============================================================================
# Tag Set
# =============================================================================


class TagSet(dict[str, str | None]):
    """A set of inline tags, typically loaded from a comment field.

    Holds one value per key. A None value marks the key for removal when
    the set is embedded.

    Example:
        >>> tags = TagSet.from_text('Beach day &timezone=-05:00')
        >>> tags["timezone"]
        '-05:00'
        >>> tags["uuid"] = "6f1c..."
        >>> tags.embed_and_update('Beach day &timezone=-05:00')
        'Beach day &timezone=-05:00 &uuid=6f1c...'
    """

    @classmethod
    def from_text(cls, text: str | None) -> TagSet:
        tags = cls()
        tags.load(text)
        return tags

    def load(self, text: str | None) -> None:
        """Load tags from ``text``; later occurrences of a key win."""
        for key, value in extract_tags(text):
            self[key] = value

    def embed_and_update(self, text: str | None) -> str:
        return embed_and_update(text, self)
