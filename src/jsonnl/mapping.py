"""Actual <-> visual coordinate conversion.

In the visual projection every real ``\\n`` escape is rendered as a line
break, so the two characters of the escape disappear and the text after it
starts a new line. Real line feeds of the document stay line breaks in both
spaces.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass

from jsonnl.model import NewlineOccurrence, Position
from jsonnl.scanner import ScanLimits, scan


@dataclass(frozen=True)
class Breakpoint:
    actual_offset: int
    visual_line: int
    visual_column: int


class CoordinateMapper:
    """Coordinate tables for one revision of a document."""

    def __init__(self, text: str, occurrences: Sequence[NewlineOccurrence]) -> None:
        self.text = text
        self._occurrences = tuple(occurrences)
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(text) if ch == "\n"]
        self._visual_starts, self._visual_ends = self._build_visual_lines()
        self._breakpoints = self._build_breakpoints()

    @classmethod
    def from_text(cls, text: str, limits: ScanLimits | None = None) -> CoordinateMapper:
        return cls(text, scan(text, limits).occurrences)

    # -- Construction ------------------------------------------------------

    def _build_visual_lines(self) -> tuple[list[int], list[int]]:
        # (break offset, width in actual characters)
        breaks = [(s - 1, 1) for s in self._line_starts[1:]]
        breaks.extend((o.offset_in_document, 2) for o in self._occurrences)
        breaks.sort()
        starts = [0]
        ends: list[int] = []
        for offset, width in breaks:
            ends.append(offset)
            starts.append(offset + width)
        ends.append(len(self.text))
        return starts, ends

    def _build_breakpoints(self) -> tuple[Breakpoint, ...]:
        points = []
        for occ in self._occurrences:
            line = bisect.bisect_right(self._visual_starts, occ.offset_in_document) - 1
            points.append(
                Breakpoint(
                    actual_offset=occ.offset_in_document,
                    visual_line=line,
                    visual_column=occ.offset_in_document - self._visual_starts[line],
                )
            )
        return tuple(points)

    # -- Properties --------------------------------------------------------

    @property
    def breakpoints(self) -> tuple[Breakpoint, ...]:
        return self._breakpoints

    @property
    def occurrences(self) -> tuple[NewlineOccurrence, ...]:
        return self._occurrences

    @property
    def visual_line_count(self) -> int:
        return len(self._visual_starts)

    @property
    def actual_line_count(self) -> int:
        return len(self._line_starts)

    def visual_line(self, line: int) -> str:
        return self.text[self._visual_starts[line] : self._visual_ends[line]]

    def visual_lines(self) -> list[str]:
        return [
            self.text[s:e] for s, e in zip(self._visual_starts, self._visual_ends)
        ]

    def visual_text(self) -> str:
        return "\n".join(self.visual_lines())

    def visual_line_span(self, line: int) -> tuple[int, int]:
        """Actual (start, end) offsets covered by visual *line*."""
        return self._visual_starts[line], self._visual_ends[line]

    def is_continuation(self, line: int) -> bool:
        """True if visual *line* starts right after a rendered escape."""
        if line <= 0:
            return False
        return self._visual_starts[line] - self._visual_ends[line - 1] == 2

    # -- Actual space ------------------------------------------------------

    def _clamp(self, offset: int) -> int:
        return max(0, min(offset, len(self.text)))

    def offset_at(self, position: Position) -> int:
        line = max(0, min(position.line, len(self._line_starts) - 1))
        start = self._line_starts[line]
        if line + 1 < len(self._line_starts):
            end = self._line_starts[line + 1] - 1
        else:
            end = len(self.text)
        return start + max(0, min(position.character, end - start))

    def position_at(self, offset: int) -> Position:
        offset = self._clamp(offset)
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(line, offset - self._line_starts[line])

    # -- Conversions -------------------------------------------------------

    def actual_to_visual(self, target: int | Position) -> Position:
        """Map an actual offset or position to a visual position.

        An escape ending at or before the target precedes it; an offset
        between the backslash and the ``n`` snaps to the backslash.
        """
        if isinstance(target, Position):
            offset = self.offset_at(target)
        else:
            offset = self._clamp(target)
        line = bisect.bisect_right(self._visual_starts, offset) - 1
        start = self._visual_starts[line]
        column = min(offset, self._visual_ends[line]) - start
        return Position(line, column)

    def visual_to_actual_offset(self, position: Position) -> int:
        line = max(0, min(position.line, len(self._visual_starts) - 1))
        start = self._visual_starts[line]
        width = self._visual_ends[line] - start
        return start + max(0, min(position.character, width))

    def visual_to_actual(self, position: Position) -> Position:
        return self.position_at(self.visual_to_actual_offset(position))
