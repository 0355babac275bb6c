"""Convert text fragments between actual and visual form."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

from jsonnl.locator import backslash_run_before, locate
from jsonnl.model import StringSpan
from jsonnl.scanner import ParseResult

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def _decorated(span: StringSpan | None) -> bool:
    return span is not None and span.has_newline_escape


def to_visual(
    fragment: str, context_span: StringSpan | None, offset: int | None = None
) -> str:
    """Replace each real newline escape in *fragment* with a line break.

    *offset* is the document offset of ``fragment[0]``; when it falls inside
    *context_span* the backslashes before it are taken into account.
    """
    if not _decorated(context_span):
        return fragment
    leading = 0
    if offset is not None and context_span.contains(offset):
        leading = backslash_run_before(
            context_span.content, offset - context_span.content_start
        )
    hits = locate(fragment, leading)
    if not hits:
        return fragment
    parts: list[str] = []
    prev = 0
    for i in hits:
        parts.append(fragment[prev:i])
        parts.append("\n")
        prev = i + 2
    parts.append(fragment[prev:])
    return "".join(parts)


def to_actual(fragment: str, context_span: StringSpan | None) -> str:
    """Replace each line break in *fragment* with the two-character escape."""
    if not _decorated(context_span):
        return fragment
    return _LINE_BREAK_RE.sub(lambda _m: "\\n", fragment)


# -- Clipboard ----------------------------------------------------------------


def copy_text(result: ParseResult, text: str, start: int, end: int) -> str:
    """Text for the clipboard when [start, end) is copied.

    Parts of the selection inside decorated strings are given in visual form.
    """
    selected = text[start:end]
    decorated = [s for s in result.spans_in(start, end) if s.has_newline_escape]
    if not decorated:
        return selected
    parts: list[str] = []
    pos = start
    for span in decorated:
        seg_start = max(start, span.content_start)
        seg_end = min(end, span.content_end)
        if seg_start >= seg_end:
            continue
        parts.append(text[pos:seg_start])
        parts.append(to_visual(text[seg_start:seg_end], span, offset=seg_start))
        pos = seg_end
    parts.append(text[pos:end])
    return "".join(parts)


def paste_text(result: ParseResult, offset: int, clipboard: str) -> str:
    """Text to insert when *clipboard* is pasted at *offset*."""
    return to_actual(clipboard, result.span_at(offset))


@dataclass(frozen=True)
class PasteCheck:
    is_valid: bool
    needs_transformation: bool
    text: str
    errors: list[str] = field(default_factory=list)


def validate_paste(result: ParseResult, offset: int, clipboard: str) -> PasteCheck:
    """Check whether pasting *clipboard* at *offset* keeps the literal valid."""
    span = result.span_at(offset)
    if span is None:
        return PasteCheck(True, False, clipboard)
    transformed = to_actual(clipboard, span)
    rel = offset - span.content_start
    literal = '"' + span.content[:rel] + transformed + span.content[rel:] + '"'
    errors: list[str] = []
    try:
        json.loads(literal)
    except json.JSONDecodeError as exc:
        errors.append(f"pasted content would create invalid JSON: {exc.msg}")
    return PasteCheck(not errors, transformed != clipboard, transformed, errors)
