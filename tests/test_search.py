"""Tests for find and replace."""

import logging

from jsonnl.model import Position
from jsonnl.search import find, replace, replace_all, search_patterns
from jsonnl.sync import Mutation, SyncEngine, SyncState

MESSAGE = r'{"message": "Hello\nWorld"}'


def _engine(text: str = MESSAGE) -> SyncEngine:
    return SyncEngine("doc", text)


class TestSearchPatterns:
    def test_visual_query(self):
        patterns = search_patterns("Hello\nWorld")
        assert patterns.actual == r"Hello\nWorld"
        assert patterns.visual == "Hello\nWorld"
        assert patterns.needs_transformation

    def test_escaped_query(self):
        patterns = search_patterns(r"Hello\nWorld")
        assert patterns.visual == "Hello\nWorld"
        assert patterns.actual == r"Hello\nWorld"

    def test_plain_query(self):
        patterns = search_patterns("Hello")
        assert patterns.visual == patterns.actual == "Hello"
        assert not patterns.needs_transformation


class TestFind:
    def test_visual_query_matches_escaped_text(self):
        matches = find(_engine(), "Hello\nWorld")
        assert len(matches) == 1
        match = matches[0]
        assert (match.start, match.end) == (13, 25)
        assert match.text == r"Hello\nWorld"
        assert match.in_decorated_span
        assert match.visual_start == Position(0, 13)
        assert match.visual_end == Position(1, 5)

    def test_case_insensitive_by_default(self):
        assert len(find(_engine(), "hello")) == 1
        assert find(_engine(), "hello", match_case=True) == []

    def test_whole_word(self):
        engine = _engine('{"a": "cat concat"}')
        assert len(find(engine, "cat")) == 2
        assert len(find(engine, "cat", whole_word=True)) == 1

    def test_regex_used_as_written(self):
        matches = find(_engine(), r"W\w+", regex=True)
        assert [m.text for m in matches] == ["World"]

    def test_invalid_regex(self, caplog):
        with caplog.at_level(logging.WARNING, logger="jsonnl.search"):
            assert find(_engine(), "(", regex=True) == []
        assert "invalid search pattern" in caplog.text

    def test_empty_query(self):
        assert find(_engine(), "") == []

    def test_match_outside_decorated_span(self):
        matches = find(_engine(), "message")
        assert not matches[0].in_decorated_span


class TestReplace:
    def test_edits_back_to_front(self):
        engine = _engine(r'{"a": "x\ny", "b": "x"}')
        edits = replace(engine, find(engine, "x"), "p\nq")
        assert edits == [
            Mutation(20, 21, "p\nq"),
            Mutation(7, 8, r"p\nq"),
        ]

    def test_replace_all(self):
        engine = _engine()
        assert replace_all(engine, "World", "Earth\nMoon") == 1
        assert engine.text == r'{"message": "Hello\nEarth\nMoon"}'
        assert engine.state is SyncState.CLEAN

    def test_replace_all_visual_query(self):
        engine = _engine()
        assert replace_all(engine, "Hello\nWorld", "Hi") == 1
        assert engine.text == '{"message": "Hi"}'

    def test_replace_all_with_options(self):
        engine = _engine()
        assert replace_all(engine, "world", "x", match_case=True) == 0
        assert engine.text == MESSAGE


class TestEscapedBackslash:
    """Only real escapes match a line break in the query."""

    MIXED = r'{"p": "C:\\new", "m": "a\nb"}'

    def test_find_skips_incidental_sequence(self):
        engine = _engine(self.MIXED)
        matches = find(engine, "\n")
        assert [m.start for m in matches] == [self.MIXED.index(r"a\nb") + 1]

    def test_escaped_query_matches_real_escape_only(self):
        engine = _engine(self.MIXED)
        assert len(find(engine, r"\n")) == 1

    def test_stored_form_of_escaped_backslash_still_found(self):
        engine = _engine(self.MIXED)
        matches = find(engine, r"C:\\new")
        assert [m.text for m in matches] == [r"C:\\new"]

    def test_replace_all_keeps_document_valid(self):
        engine = _engine(self.MIXED)
        assert replace_all(engine, "\n", " ") == 1
        assert engine.text == r'{"p": "C:\\new", "m": "a b"}'
        assert engine.state is SyncState.CLEAN
