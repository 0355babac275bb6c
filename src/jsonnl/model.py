"""Read-only records shared by the scanner, locator and mapper."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class Position(NamedTuple):
    """Zero-based line/character pair."""

    line: int
    character: int


@dataclass(frozen=True)
class StringSpan:
    """One JSON string literal.

    ``start`` is the opening quote, ``end`` is one past the closing quote.
    ``content`` is the raw text between the quotes, escapes intact.
    """

    start: int
    end: int
    content: str
    has_newline_escape: bool = False

    @property
    def content_start(self) -> int:
        return self.start + 1

    @property
    def content_end(self) -> int:
        return self.end - 1

    def contains(self, offset: int) -> bool:
        """True if *offset* is between the quotes (both boundaries included)."""
        return self.content_start <= offset <= self.content_end

    def contains_range(self, start: int, end: int) -> bool:
        return self.content_start <= start and end <= self.content_end

    def intersects(self, start: int, end: int) -> bool:
        return start < self.end and end > self.start


@dataclass(frozen=True)
class NewlineOccurrence:
    """A real ``\\n`` escape located inside a string literal."""

    offset_in_document: int
    end_offset_in_document: int
    index_within_string: int
    owner_span: StringSpan | None
    text_before: str
    text_after: str
