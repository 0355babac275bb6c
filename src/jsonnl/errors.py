"""Exceptions raised and recovered inside the jsonnl core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jsonnl.scanner import Diagnostic


class JsonNewlineError(Exception):
    """Base exception for jsonnl."""


class DocumentInvalid(JsonNewlineError):
    """Text failed the strict JSON parse."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


class UnterminatedLiteral(JsonNewlineError):
    """A string literal has no closing quote before the end of the text."""

    def __init__(self, start: int) -> None:
        super().__init__(f"unterminated string literal at offset {start}")
        self.start = start


class TransformationConflict(JsonNewlineError):
    """A counter-edit could not be applied to the document."""


class ResourceLimitExceeded(JsonNewlineError):
    """The scan cap was reached and output was truncated."""

    def __init__(self, limit: str, value: int) -> None:
        super().__init__(f"{limit} exceeded ({value})")
        self.limit = limit
        self.value = value


class EngineClosed(JsonNewlineError):
    """A change arrived for a document that is no longer open."""

    def __init__(self, doc_id: str) -> None:
        super().__init__(f"{doc_id}: engine is closed")
        self.doc_id = doc_id
