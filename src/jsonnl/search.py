"""Find and replace that understands rendered line breaks."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from jsonnl.locator import locate
from jsonnl.model import Position
from jsonnl.sync import Mutation, SyncEngine
from jsonnl.transform import to_actual

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchPatterns:
    visual: str
    actual: str
    needs_transformation: bool


@dataclass(frozen=True)
class SearchMatch:
    start: int
    end: int
    text: str
    in_decorated_span: bool
    visual_start: Position
    visual_end: Position


def search_patterns(query: str) -> SearchPatterns:
    """Return the visual and actual form of a search *query*.

    A query typed with real line breaks is looking for rendered breaks; a
    query containing ``\\n`` escapes is looking for the stored form.
    """
    if "\n" in query:
        return SearchPatterns(query, query.replace("\n", "\\n"), True)
    if "\\n" in query:
        return SearchPatterns(query.replace("\\n", "\n"), query, True)
    return SearchPatterns(query, query, False)


def _compile(
    pattern: str, *, match_case: bool, whole_word: bool, regex: bool
) -> re.Pattern[str] | None:
    flags = 0 if match_case else re.IGNORECASE
    if not regex:
        pattern = re.escape(pattern)
        if whole_word:
            pattern = rf"\b{pattern}\b"
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        logger.warning("invalid search pattern %r: %s", pattern, exc)
        return None


def find(
    engine: SyncEngine,
    query: str,
    *,
    match_case: bool = False,
    whole_word: bool = False,
    regex: bool = False,
) -> list[SearchMatch]:
    """Find *query* in the document.

    Literal queries are matched against the actual text in their actual form;
    a newline escape in the query only matches a real escape of the document.
    Regex queries are used as written.
    """
    if not query:
        return []
    pattern = query if regex else search_patterns(query).actual
    escapes = [] if regex else locate(pattern)
    real = {o.offset_in_document for o in engine.occurrences} if escapes else set()
    compiled = _compile(pattern, match_case=match_case, whole_word=whole_word, regex=regex)
    if compiled is None:
        return []

    text = engine.text
    mapper = engine.mapper
    matches: list[SearchMatch] = []
    for m in compiled.finditer(text):
        if m.start() == m.end():
            continue
        if any(m.start() + i not in real for i in escapes):
            continue
        span = engine.span_at(m.start())
        matches.append(
            SearchMatch(
                start=m.start(),
                end=m.end(),
                text=m.group(0),
                in_decorated_span=span is not None and span.has_newline_escape,
                visual_start=mapper.actual_to_visual(m.start()),
                visual_end=mapper.actual_to_visual(m.end()),
            )
        )
    return matches


def replace(
    engine: SyncEngine, matches: list[SearchMatch], replacement: str
) -> list[Mutation]:
    """Build the edits that replace each match with *replacement*.

    Replacements landing in a decorated string get line breaks escaped. The
    edits are ordered back to front so each one's offsets are still valid when
    applied in sequence.
    """
    edits: list[Mutation] = []
    for match in sorted(matches, key=lambda m: m.start, reverse=True):
        text = replacement
        if match.in_decorated_span:
            text = to_actual(replacement, engine.span_at(match.start))
        edits.append(Mutation(match.start, match.end, text))
    return edits


def replace_all(engine: SyncEngine, query: str, replacement: str, **options) -> int:
    """Replace every match of *query*, feeding each edit through *engine*.

    Returns the number of replacements.
    """
    edits = replace(engine, find(engine, query, **options), replacement)
    for edit in edits:
        engine.handle_change(edit)
    return len(edits)
