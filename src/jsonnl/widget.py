"""Textual widget that shows JSON with ``\\n`` escapes rendered as line breaks."""

from __future__ import annotations

import re
from dataclasses import dataclass

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from jsonnl.config import Settings
from jsonnl.model import Position
from jsonnl.sync import EngineRegistry, Mutation, SyncEngine, SyncState


class NewlineJsonView(Widget, can_focus=True):
    """Edit a JSON document in its visual form.

    Keys:
      arrows home end    move in visual coordinates
      typing Enter       insert (Enter inside a decorated string stores ``\\n``)
      Backspace Delete   remove the visual character (a rendered break removes
                         its escape)
      ctrl+s             validate and request save
      ctrl+g             jump to the JSON error
      escape             quit
    """

    DEFAULT_CSS = """
    NewlineJsonView {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    # -- Messages ----------------------------------------------------------

    @dataclass
    class DocumentValidated(Message):
        content: str
        valid: bool
        error: str = ""
        offset: int | None = None

    @dataclass
    class SaveRequested(Message):
        content: str

    @dataclass
    class Quit(Message):
        pass

    # -- Init --------------------------------------------------------------

    def __init__(
        self,
        initial_content: str = "",
        *,
        doc_id: str = "untitled",
        language_id: str = "json",
        settings: Settings | None = None,
        registry: EngineRegistry | None = None,
        read_only: bool = False,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.read_only = read_only
        self.doc_id = doc_id
        self.language_id = language_id
        self.registry = registry if registry is not None else EngineRegistry(settings)
        self.engine = self._open(initial_content)
        self.cursor: int = 0
        self.status_msg: str = ""
        self._scroll_top: int = 0
        self._style_cache: tuple[int, list[str]] | None = None

    # -- Public API --------------------------------------------------------

    def get_content(self) -> str:
        return self.engine.text

    def _open(self, content: str) -> SyncEngine:
        engine = self.registry.open(self.doc_id, content, self.language_id)
        if engine is None:
            raise ValueError(f"{self.language_id!r} documents are not enabled")
        return engine

    def set_content(self, content: str) -> None:
        self.registry.close(self.doc_id)
        self.engine = self._open(content)
        self.cursor = 0
        self._scroll_top = 0
        self._style_cache = None
        self.refresh()

    def on_unmount(self) -> None:
        self.registry.close(self.doc_id)

    @property
    def cursor_visual(self) -> Position:
        return self.engine.actual_to_visual(self.cursor)

    def move_to_visual(self, line: int, character: int) -> None:
        self.cursor = self.engine.visual_to_actual_offset(Position(line, character))

    def jump_to_diagnostic(self) -> bool:
        diag = self.engine.diagnostic
        if diag is None or diag.offset is None:
            return False
        self.cursor = min(diag.offset, len(self.engine.text))
        return True

    # -- Editing -----------------------------------------------------------

    def _edit(self, mutation: Mutation) -> None:
        """Apply *mutation* to the buffer and settle any counter-edit."""
        engine = self.engine
        edit = engine.handle_change(mutation)
        if edit is None:
            self.cursor = mutation.start + len(mutation.text)
            return
        engine.handle_change(edit.as_mutation())
        engine.complete_counter_edit(edit, True)
        self.cursor = edit.cursor_after

    def _insert(self, text: str) -> None:
        self._edit(Mutation.insert(self.cursor, text))

    def _previous_offset(self) -> int:
        line, col = self.cursor_visual
        if col > 0:
            return self.engine.visual_to_actual_offset(Position(line, col - 1))
        if line == 0:
            return self.cursor
        prev = self.engine.mapper.visual_line(line - 1)
        return self.engine.visual_to_actual_offset(Position(line - 1, len(prev)))

    def _next_offset(self) -> int:
        mapper = self.engine.mapper
        line, col = self.cursor_visual
        if col < len(mapper.visual_line(line)):
            return mapper.visual_to_actual_offset(Position(line, col + 1))
        if line + 1 >= mapper.visual_line_count:
            return self.cursor
        return mapper.visual_to_actual_offset(Position(line + 1, 0))

    def _backspace(self) -> None:
        start = self._previous_offset()
        if start < self.cursor:
            self._edit(Mutation.delete(start, self.cursor))

    def _delete(self) -> None:
        end = self._next_offset()
        if end > self.cursor:
            self._edit(Mutation.delete(self.cursor, end))

    # -- Validation --------------------------------------------------------

    def _validate(self) -> bool:
        content = self.engine.text
        diag = self.engine.diagnostic
        if diag is None:
            self.status_msg = "JSON valid"
            self.post_message(self.DocumentValidated(content=content, valid=True))
            return True
        self.status_msg = diag.message
        self.post_message(
            self.DocumentValidated(
                content=content, valid=False, error=diag.message, offset=diag.offset
            )
        )
        return False

    # =====================================================================
    # Key handling
    # =====================================================================

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        self._handle_key(event)
        self.refresh()

    def _handle_key(self, event) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            self.post_message(self.Quit())
            return
        if key == "ctrl+s":
            if self._validate():
                self.post_message(self.SaveRequested(content=self.engine.text))
            return
        if key == "ctrl+g":
            if not self.jump_to_diagnostic():
                self.status_msg = "no JSON error"
            return

        line, col = self.cursor_visual
        if key == "left":
            self.cursor = self._previous_offset()
            return
        if key == "right":
            self.cursor = self._next_offset()
            return
        if key in ("up", "down"):
            self.move_to_visual(line + (-1 if key == "up" else 1), col)
            return
        if key == "home":
            self.move_to_visual(line, 0)
            return
        if key == "end":
            self.move_to_visual(line, len(self.engine.mapper.visual_line(line)))
            return

        if self.read_only:
            self.status_msg = "[readonly]"
            return
        if key == "enter":
            self._insert("\n")
        elif key == "backspace":
            self._backspace()
        elif key == "delete":
            self._delete()
        elif key == "tab":
            self._insert("    ")
        elif char and char.isprintable():
            self._insert(char)

    # =====================================================================
    # Rendering
    # =====================================================================

    _BRACKET = frozenset("{}[]")
    _DIGIT = frozenset("0123456789.-+eE")
    _KEYWORD_RE = re.compile(r"true|false|null")
    _STATE_STYLE = {
        SyncState.CLEAN: "bold white on dark_green",
        SyncState.DIRTY: "bold white on dark_orange",
        SyncState.APPLYING_COUNTER_EDIT: "bold white on dark_orange",
        SyncState.DEGRADED: "bold white on dark_red",
    }

    def _compute_styles(self) -> list[str]:
        """Style for every actual offset of the document, cached per version."""
        engine = self.engine
        if self._style_cache and self._style_cache[0] == engine.version:
            return self._style_cache[1]
        text = engine.text
        styles = ["white"] * len(text)
        in_str = [False] * len(text)
        for span in engine.spans:
            rest = text[span.end :].lstrip()
            style = "cyan" if rest.startswith(":") else "green"
            for i in range(span.start, span.end):
                styles[i] = style
                in_str[i] = True
        for occ in engine.occurrences:
            for i in range(occ.offset_in_document, occ.end_offset_in_document):
                styles[i] = "dim green"
        for i, ch in enumerate(text):
            if in_str[i]:
                continue
            if ch in self._BRACKET:
                styles[i] = "bold white"
            elif ch in self._DIGIT:
                styles[i] = "yellow"
        for m in self._KEYWORD_RE.finditer(text):
            if not in_str[m.start()]:
                for j in range(m.start(), m.end()):
                    styles[j] = "magenta"
        self._style_cache = (engine.version, styles)
        return styles

    def _ensure_cursor_visible(self, content_height: int) -> None:
        line = self.cursor_visual.line
        if line < self._scroll_top:
            self._scroll_top = line
        elif line >= self._scroll_top + content_height:
            self._scroll_top = line - content_height + 1

    def render(self) -> Text:
        width = self.content_region.width
        height = self.content_region.height
        if height < 2 or width < 10:
            return Text("(too small)")
        return self._render_text(width, height)

    def _render_text(self, width: int, height: int) -> Text:
        engine = self.engine
        mapper = engine.mapper
        text = engine.text
        styles = self._compute_styles()
        content_height = height - 1
        self._ensure_cursor_visible(content_height)
        cur_line, cur_col = self.cursor_visual

        ln_width = max(3, len(str(mapper.actual_line_count)))
        result = Text()
        rows_used = 0
        line_idx = self._scroll_top
        while rows_used < content_height and line_idx < mapper.visual_line_count:
            start, end = mapper.visual_line_span(line_idx)
            if mapper.is_continuation(line_idx):
                result.append(f"{'↳':>{ln_width}} ", style="dim green")
            else:
                actual_line = mapper.position_at(start).line
                result.append(f"{actual_line + 1:>{ln_width}} ", style="dim cyan")
            visible_end = min(end, start + max(1, width - ln_width - 2))
            col = start
            while col < visible_end:
                if line_idx == cur_line and col - start == cur_col:
                    result.append(text[col], style=f"reverse {styles[col]}")
                    col += 1
                    continue
                sty = styles[col]
                stop = col + 1
                while (
                    stop < visible_end
                    and styles[stop] == sty
                    and not (line_idx == cur_line and stop - start == cur_col)
                ):
                    stop += 1
                result.append(text[col:stop], style=sty)
                col = stop
            if line_idx == cur_line and cur_col >= end - start:
                result.append(" ", style="reverse")
            result.append("\n")
            rows_used += 1
            line_idx += 1

        while rows_used < content_height:
            result.append(f"{'~':>{ln_width}} \n", style="dim blue")
            rows_used += 1

        state = engine.state
        label = " INVALID " if state is SyncState.DEGRADED else f" {state.name} "
        result.append(label, style=self._STATE_STYLE[state])
        if self.read_only:
            result.append(" RO ", style="bold white on grey37")
        pos = f" Ln {cur_line + 1}/{mapper.visual_line_count}, Col {cur_col + 1} "
        spacer = max(0, width - len(label) - len(pos) - len(self.status_msg) - 6)
        result.append(f"  {self.status_msg}")
        result.append(" " * spacer)
        result.append(pos, style="bold")
        return result
