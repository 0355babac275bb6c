"""Find the string literals of a JSON document."""

from __future__ import annotations

import bisect
import json
import logging
from dataclasses import dataclass
from functools import cached_property

from jsonnl.config import Settings
from jsonnl.errors import DocumentInvalid, ResourceLimitExceeded, UnterminatedLiteral
from jsonnl.locator import has_newline_escape, locate_detailed
from jsonnl.model import NewlineOccurrence, StringSpan

logger = logging.getLogger(__name__)

_HEX = frozenset("0123456789abcdefABCDEF")


@dataclass(frozen=True)
class Diagnostic:
    message: str
    offset: int | None = None
    line: int | None = None
    column: int | None = None


@dataclass(frozen=True)
class ScanLimits:
    max_chars: int = Settings.max_scan_chars
    max_literals: int = Settings.max_literals

    @classmethod
    def from_settings(cls, settings: Settings) -> ScanLimits:
        return cls(settings.max_scan_chars, settings.max_literals)


@dataclass(frozen=True)
class ParseResult:
    is_valid: bool
    spans: tuple[StringSpan, ...] = ()
    diagnostic: Diagnostic | None = None
    truncated: bool = False

    @cached_property
    def _starts(self) -> list[int]:
        return [s.start for s in self.spans]

    @cached_property
    def occurrences(self) -> tuple[NewlineOccurrence, ...]:
        """All real newline escapes in document order."""
        found: list[NewlineOccurrence] = []
        for span in self.spans:
            if span.has_newline_escape:
                found.extend(locate_detailed(span.content, span))
        return tuple(found)

    def span_at(self, offset: int) -> StringSpan | None:
        """Return the span whose content holds *offset*, if any."""
        idx = bisect.bisect_left(self._starts, offset) - 1
        if idx < 0:
            return None
        span = self.spans[idx]
        return span if span.contains(offset) else None

    def spans_in(self, start: int, end: int) -> list[StringSpan]:
        """Spans intersecting the half-open range [start, end)."""
        stop = max(end, start + 1)
        hi = bisect.bisect_left(self._starts, stop)
        return [s for s in self.spans[:hi] if s.intersects(start, stop)]


def scan(text: str, limits: ScanLimits | None = None) -> ParseResult:
    """Validate *text* as JSON and return its string literal spans.

    Invalid documents always yield zero spans.
    """
    limits = limits or ScanLimits()
    try:
        _validate(text)
    except DocumentInvalid as exc:
        logger.debug("invalid JSON: %s", exc.diagnostic.message)
        return ParseResult(is_valid=False, diagnostic=exc.diagnostic)

    raw: list[tuple[int, int]] = []
    truncated = False
    try:
        _collect_literals(text, limits, raw)
    except ResourceLimitExceeded as exc:
        logger.warning("scan truncated: %s", exc)
        truncated = True

    spans = tuple(
        StringSpan(
            start=start,
            end=end,
            content=text[start + 1 : end - 1],
            has_newline_escape=has_newline_escape(text[start + 1 : end - 1]),
        )
        for start, end in raw
    )
    return ParseResult(is_valid=True, spans=spans, truncated=truncated)


def occurrences(result: ParseResult) -> list[NewlineOccurrence]:
    return list(result.occurrences)


def span_at(result: ParseResult, offset: int) -> StringSpan | None:
    return result.span_at(offset)


# -- Validation -------------------------------------------------------------


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-standard constant {name}")


def _validate(text: str) -> None:
    try:
        json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise DocumentInvalid(_diagnose(text, exc)) from exc
    except (ValueError, RecursionError) as exc:
        raise DocumentInvalid(Diagnostic(message=f"Invalid JSON: {exc}")) from exc


def _diagnose(text: str, exc: json.JSONDecodeError) -> Diagnostic:
    pos = exc.pos
    if exc.msg.startswith("Unterminated string"):
        kind = "Unterminated string"
    elif not text[pos:].strip():
        kind = "Unexpected end of input"
    else:
        kind = f"Unexpected token {text[pos]!r}"
    return Diagnostic(
        message=f"{kind} ({exc.msg})",
        offset=pos,
        line=exc.lineno - 1,
        column=exc.colno - 1,
    )


# -- Literal extraction -----------------------------------------------------


def _collect_literals(
    text: str, limits: ScanLimits, out: list[tuple[int, int]]
) -> None:
    """Append (start, end) of each literal to *out* until a limit is hit."""
    stop = min(len(text), limits.max_chars)
    i = 0
    while i < stop:
        if text[i] != '"':
            i += 1
            continue
        if len(out) >= limits.max_literals:
            raise ResourceLimitExceeded("max_literals", limits.max_literals)
        try:
            end = _read_literal(text, i, stop)
        except UnterminatedLiteral as exc:
            logger.debug("%s", exc)
            break
        out.append((i, end))
        i = end
    if len(text) > limits.max_chars:
        raise ResourceLimitExceeded("max_scan_chars", limits.max_chars)


def _read_literal(text: str, start: int, stop: int) -> int:
    """Return the offset one past the closing quote of the literal at *start*."""
    i = start + 1
    while i < stop:
        ch = text[i]
        if ch == "\\":
            if (
                i + 1 < stop
                and text[i + 1] == "u"
                and i + 6 <= stop
                and all(c in _HEX for c in text[i + 2 : i + 6])
            ):
                i += 6
            else:
                i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    raise UnterminatedLiteral(start)
