"""Locate real newline escapes inside raw string literal content.

A backslash followed by ``n`` is a newline escape only when the run of
backslashes right before it has even length; otherwise the backslash is the
second half of an escaped ``\\\\`` and the ``n`` is a plain character::

    \\n        -> one escape at 0
    \\\\n      -> none
    \\\\\\n    -> one escape at 2

The run length is carried forward while scanning, so each call is linear in
the length of the content.
"""

from __future__ import annotations

from jsonnl.model import NewlineOccurrence, StringSpan


def locate(content: str, leading_run: int = 0) -> list[int]:
    """Return offsets within *content* where a real newline escape starts.

    *leading_run* is the number of backslashes that precede *content* in the
    enclosing literal, for callers that scan a fragment instead of a whole
    literal.
    """
    found: list[int] = []
    n = len(content)
    run = leading_run
    i = 0
    while i < n:
        if content[i] == "\\":
            if run % 2 == 0 and i + 1 < n and content[i + 1] == "n":
                found.append(i)
                run = 0
                i += 2
                continue
            run += 1
        else:
            run = 0
        i += 1
    return found


def locate_detailed(
    content: str, span: StringSpan | None = None
) -> list[NewlineOccurrence]:
    """Like :func:`locate` but returns full occurrence records.

    Offsets are made absolute using ``span.content_start`` when *span* is
    given.
    """
    base = span.content_start if span is not None else 0
    result: list[NewlineOccurrence] = []
    for index, i in enumerate(locate(content)):
        result.append(
            NewlineOccurrence(
                offset_in_document=base + i,
                end_offset_in_document=base + i + 2,
                index_within_string=index,
                owner_span=span,
                text_before=content[:i],
                text_after=content[i + 2 :],
            )
        )
    return result


def has_newline_escape(content: str) -> bool:
    return bool(locate(content))


def count_newline_escapes(content: str) -> int:
    return len(locate(content))


def backslash_run_before(content: str, index: int) -> int:
    """Length of the backslash run ending right before *index*."""
    run = 0
    j = index - 1
    while j >= 0 and content[j] == "\\":
        run += 1
        j -= 1
    return run
