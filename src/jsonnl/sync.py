"""Keep the actual document valid JSON while it is edited in visual form.

Each open document gets one :class:`SyncEngine`, owned by an
:class:`EngineRegistry`. The engine mirrors the document text, rescans it
after every mutation and, when the user types a line break inside a string
that is rendered with visual breaks, answers with a counter-edit that puts the
``\\n`` escape back::

    CLEAN --MUTATION--> DIRTY --SCAN_VALID--> CLEAN
                          |  \\--SCAN_INVALID--> DEGRADED
                          \\--COUNTER_EDIT_SUBMITTED--> APPLYING_COUNTER_EDIT
    APPLYING_COUNTER_EDIT --COUNTER_EDIT_APPLIED/FAILED--> DIRTY
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from enum import Enum, auto

from jsonnl.config import Settings
from jsonnl.errors import EngineClosed, TransformationConflict
from jsonnl.mapping import CoordinateMapper
from jsonnl.model import NewlineOccurrence, Position, StringSpan
from jsonnl.scanner import Diagnostic, ParseResult, ScanLimits, scan
from jsonnl.transform import PasteCheck, copy_text, paste_text, to_actual, validate_paste

logger = logging.getLogger(__name__)


class SyncState(Enum):
    CLEAN = auto()
    DIRTY = auto()
    APPLYING_COUNTER_EDIT = auto()
    DEGRADED = auto()  # last scan was invalid JSON


class SyncEvent(Enum):
    MUTATION = auto()
    COUNTER_EDIT_SUBMITTED = auto()
    COUNTER_EDIT_ECHO = auto()
    COUNTER_EDIT_APPLIED = auto()
    COUNTER_EDIT_FAILED = auto()
    SCAN_VALID = auto()
    SCAN_INVALID = auto()


_S = SyncState
_E = SyncEvent

TRANSITIONS: dict[tuple[SyncState, SyncEvent], SyncState] = {
    (_S.CLEAN, _E.MUTATION): _S.DIRTY,
    (_S.DIRTY, _E.MUTATION): _S.DIRTY,
    (_S.DEGRADED, _E.MUTATION): _S.DIRTY,
    (_S.CLEAN, _E.SCAN_VALID): _S.CLEAN,
    (_S.DIRTY, _E.SCAN_VALID): _S.CLEAN,
    (_S.DIRTY, _E.SCAN_INVALID): _S.DEGRADED,
    (_S.DEGRADED, _E.SCAN_VALID): _S.CLEAN,
    (_S.DEGRADED, _E.SCAN_INVALID): _S.DEGRADED,
    (_S.DIRTY, _E.COUNTER_EDIT_SUBMITTED): _S.APPLYING_COUNTER_EDIT,
    # Reentrant notifications are mirrored but never trigger another edit.
    (_S.APPLYING_COUNTER_EDIT, _E.COUNTER_EDIT_ECHO): _S.APPLYING_COUNTER_EDIT,
    (_S.APPLYING_COUNTER_EDIT, _E.MUTATION): _S.APPLYING_COUNTER_EDIT,
    (_S.APPLYING_COUNTER_EDIT, _E.COUNTER_EDIT_APPLIED): _S.DIRTY,
    (_S.APPLYING_COUNTER_EDIT, _E.COUNTER_EDIT_FAILED): _S.DIRTY,
}


@dataclass(frozen=True)
class Mutation:
    """A change already applied by the host.

    ``start``/``end`` are actual offsets in the text before the change.
    """

    start: int
    end: int
    text: str = ""

    @classmethod
    def insert(cls, offset: int, text: str) -> Mutation:
        return cls(offset, offset, text)

    @classmethod
    def delete(cls, start: int, end: int) -> Mutation:
        return cls(start, end, "")

    @property
    def is_deletion(self) -> bool:
        return not self.text and self.end > self.start

    def apply(self, text: str) -> str:
        if not 0 <= self.start <= self.end <= len(text):
            raise ValueError(
                f"mutation [{self.start}, {self.end}) outside document of "
                f"length {len(text)}"
            )
        return text[: self.start] + self.text + text[self.end :]


@dataclass(frozen=True)
class CounterEdit:
    """Replacement for ``original`` that now occupies [start, end)."""

    start: int
    end: int
    text: str
    original: str

    @property
    def cursor_after(self) -> int:
        return self.start + len(self.text)

    def as_mutation(self) -> Mutation:
        return Mutation(self.start, self.end, self.text)


ApplyFn = Callable[[CounterEdit], "Awaitable[bool] | bool"]


class SyncEngine:
    """Derived state and edit synchronization for one document."""

    def __init__(
        self, doc_id: str, text: str, settings: Settings | None = None
    ) -> None:
        self.doc_id = doc_id
        self.settings = settings or Settings()
        self._limits = ScanLimits.from_settings(self.settings)
        self._text = text
        self.version = 0
        self._state = SyncState.DIRTY
        self._result: ParseResult | None = None
        self._mapper: CoordinateMapper | None = None
        self._pending: CounterEdit | None = None
        self._echo_seen = False
        self.closed = False
        self._rescan()

    # -- State machine -----------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    def _fire(self, event: SyncEvent) -> None:
        nxt = TRANSITIONS.get((self._state, event))
        if nxt is None:
            logger.debug("%s: %s ignored in %s", self.doc_id, event.name, self._state.name)
            return
        self._state = nxt

    def _rescan(self) -> ParseResult:
        result = scan(self._text, self._limits)
        self._result = result
        self._mapper = None
        self._fire(SyncEvent.SCAN_VALID if result.is_valid else SyncEvent.SCAN_INVALID)
        return result

    # -- Mutations ---------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def pending_edit(self) -> CounterEdit | None:
        return self._pending

    def _mirror(self, mutation: Mutation) -> None:
        self._text = mutation.apply(self._text)
        self.version += 1
        self._result = None
        self._mapper = None

    def handle_change(self, mutation: Mutation) -> CounterEdit | None:
        """Process one change notification, in arrival order.

        Returns the counter-edit the host must apply, if any. Raises
        :class:`EngineClosed` once the document has been closed.
        """
        if self.closed:
            raise EngineClosed(self.doc_id)
        if self._state is SyncState.APPLYING_COUNTER_EDIT:
            self._mirror(mutation)
            if not self._echo_seen and mutation == self._pending.as_mutation():
                self._echo_seen = True
                self._fire(SyncEvent.COUNTER_EDIT_ECHO)
            else:
                self._fire(SyncEvent.MUTATION)
            return None

        if self._state is SyncState.DIRTY:
            self._rescan()
        before = self._result if self._state is SyncState.CLEAN else None

        self._mirror(mutation)
        self._fire(SyncEvent.MUTATION)

        edit = self._counter_edit_for(before, mutation) if before is not None else None
        if edit is not None:
            self._pending = edit
            self._echo_seen = False
            self._fire(SyncEvent.COUNTER_EDIT_SUBMITTED)
            logger.debug("%s: counter-edit %r", self.doc_id, edit)
            return edit

        if before is not None and mutation.is_deletion:
            for occ in before.occurrences:
                start, end = occ.offset_in_document, occ.end_offset_in_document
                if start < mutation.end and end > mutation.start:
                    logger.debug("%s: deletion removed escape at %d", self.doc_id, start)
        self._rescan()
        return None

    def _counter_edit_for(
        self, before: ParseResult, mutation: Mutation
    ) -> CounterEdit | None:
        if "\n" not in mutation.text and "\r" not in mutation.text:
            return None
        span = before.span_at(mutation.start)
        if span is None or not span.has_newline_escape:
            return None
        if not span.contains_range(mutation.start, mutation.end):
            return None
        converted = to_actual(mutation.text, span)
        if converted == mutation.text:
            return None
        return CounterEdit(
            start=mutation.start,
            end=mutation.start + len(mutation.text),
            text=converted,
            original=mutation.text,
        )

    def complete_counter_edit(self, edit: CounterEdit, applied: bool) -> None:
        """Continuation run once the host has tried to apply *edit*.

        Safe to call more than once; only the pending edit has any effect.
        """
        if edit is not self._pending:
            logger.debug("%s: stale counter-edit completion ignored", self.doc_id)
            return
        self._pending = None
        try:
            if not applied:
                raise TransformationConflict("host rejected counter-edit")
            if not self._echo_seen:
                self._settle_unreported(edit)
        except TransformationConflict as exc:
            logger.warning("%s: %s", self.doc_id, exc)
            self._fire(SyncEvent.COUNTER_EDIT_FAILED)
            return
        self._fire(SyncEvent.COUNTER_EDIT_APPLIED)
        self._rescan()

    def _settle_unreported(self, edit: CounterEdit) -> None:
        """Bring the mirror up to date for a host that did not echo *edit*."""
        if self._text[edit.start : edit.start + len(edit.text)] == edit.text:
            return
        if self._text[edit.start : edit.end] != edit.original:
            raise TransformationConflict(
                f"document changed under counter-edit at {edit.start}"
            )
        self._mirror(edit.as_mutation())

    async def process(self, mutation: Mutation, apply: ApplyFn) -> CounterEdit | None:
        """Handle *mutation* and, if needed, apply the counter-edit via *apply*."""
        edit = self.handle_change(mutation)
        if edit is None:
            return None
        try:
            outcome = apply(edit)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            logger.warning("%s: counter-edit apply raised: %s", self.doc_id, exc)
            outcome = False
        self.complete_counter_edit(edit, bool(outcome))
        return edit

    # -- Queries -----------------------------------------------------------

    @property
    def result(self) -> ParseResult:
        if self._result is None:
            return self._rescan()
        return self._result

    @property
    def is_valid(self) -> bool:
        return self.result.is_valid

    @property
    def diagnostic(self) -> Diagnostic | None:
        return self.result.diagnostic

    @property
    def spans(self) -> tuple[StringSpan, ...]:
        return self.result.spans

    @property
    def occurrences(self) -> tuple[NewlineOccurrence, ...]:
        return self.result.occurrences

    @property
    def mapper(self) -> CoordinateMapper:
        if self._mapper is None:
            self._mapper = CoordinateMapper(self._text, self.result.occurrences)
        return self._mapper

    def span_at(self, offset: int) -> StringSpan | None:
        return self.result.span_at(offset)

    def actual_to_visual(self, target: int | Position) -> Position:
        return self.mapper.actual_to_visual(target)

    def visual_to_actual(self, position: Position) -> Position:
        return self.mapper.visual_to_actual(position)

    def visual_to_actual_offset(self, position: Position) -> int:
        return self.mapper.visual_to_actual_offset(position)

    def copy_text(self, start: int, end: int) -> str:
        return copy_text(self.result, self._text, start, end)

    def paste_text(self, offset: int, clipboard: str) -> str:
        return paste_text(self.result, offset, clipboard)

    def validate_paste(self, offset: int, clipboard: str) -> PasteCheck:
        return validate_paste(self.result, offset, clipboard)


class EngineRegistry:
    """One engine per open document id, created on open and dropped on close."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._engines: dict[str, SyncEngine] = {}

    def open(self, doc_id: str, text: str, language_id: str = "json") -> SyncEngine | None:
        if not self.settings.accepts(language_id):
            return None
        engine = self._engines.get(doc_id)
        if engine is not None:
            logger.debug("%s: already open", doc_id)
            return engine
        engine = SyncEngine(doc_id, text, self.settings)
        self._engines[doc_id] = engine
        return engine

    def get(self, doc_id: str) -> SyncEngine | None:
        return self._engines.get(doc_id)

    def close(self, doc_id: str) -> bool:
        engine = self._engines.pop(doc_id, None)
        if engine is None:
            return False
        engine.closed = True
        return True

    def close_all(self) -> None:
        for doc_id in list(self._engines):
            self.close(doc_id)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._engines)
