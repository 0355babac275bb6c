"""Tests for fragment transformation and clipboard handling."""

from jsonnl.model import StringSpan
from jsonnl.scanner import scan
from jsonnl.transform import copy_text, paste_text, to_actual, to_visual, validate_paste


def _span(content: str, start: int = 0) -> StringSpan:
    return StringSpan(
        start=start,
        end=start + len(content) + 2,
        content=content,
        has_newline_escape="\\n" in content,
    )


DECORATED = _span(r"Hello\nWorld")
PLAIN = _span("plain")


class TestToVisual:
    def test_escape_becomes_line_break(self):
        assert to_visual(r"Hello\nWorld", DECORATED) == "Hello\nWorld"

    def test_incidental_sequence_kept(self):
        assert to_visual(r"C:\\new\n", DECORATED) == "C:\\\\new\n"

    def test_identity_outside_decorated_span(self):
        assert to_visual(r"a\nb", None) == r"a\nb"
        assert to_visual(r"a\nb", PLAIN) == r"a\nb"

    def test_offset_carries_preceding_backslashes(self):
        # content is  a \\ \n b ; fragment starts after the escaped backslash
        span = _span(r"a\\\nb", start=10)
        fragment = span.content[3:]
        assert to_visual(fragment, span, offset=span.content_start + 3) == "\nb"
        # fragment starting on the second backslash of the pair
        fragment = span.content[2:]
        assert to_visual(fragment, span, offset=span.content_start + 2) == "\\\nb"


class TestToActual:
    def test_line_feed(self):
        assert to_actual("Hello\nWorld", DECORATED) == r"Hello\nWorld"

    def test_crlf_and_cr_collapse_to_one_escape(self):
        assert to_actual("a\r\nb\rc", DECORATED) == r"a\nb\nc"

    def test_identity_outside_decorated_span(self):
        assert to_actual("a\nb", None) == "a\nb"
        assert to_actual("a\nb", PLAIN) == "a\nb"

    def test_round_trip_over_substrings(self):
        content = r"line one\nline two\n\nend"
        span = _span(content)
        starts = [0] + [i + 2 for i in range(len(content)) if content[i : i + 2] == r"\n"]
        for a in starts:
            for b in range(a, len(content) + 1):
                piece = content[a:b]
                if piece.endswith("\\"):
                    continue
                assert to_actual(to_visual(piece, span), span) == piece


class TestCopy:
    def test_selection_inside_decorated_string(self):
        text = r'{"message": "Hello\nWorld"}'
        result = scan(text)
        start = text.index("Hello")
        end = text.index("World") + len("World")
        assert copy_text(result, text, start, end) == "Hello\nWorld"

    def test_selection_across_structure(self):
        text = r'{"a": "x\ny", "b": "p\\nq"}'
        result = scan(text)
        assert copy_text(result, text, 0, len(text)) == '{"a": "x\ny", "b": "p\\\\nq"}'

    def test_plain_document_unchanged(self):
        text = '{"a": "b"}'
        assert copy_text(scan(text), text, 0, len(text)) == text

    def test_invalid_document_unchanged(self):
        text = r'{"a": "x\ny"'
        assert copy_text(scan(text), text, 0, len(text)) == text


class TestPaste:
    def test_into_decorated_string(self):
        text = r'{"message": "Hello\nWorld"}'
        result = scan(text)
        offset = text.index("World")
        assert paste_text(result, offset, "one\ntwo") == r"one\ntwo"

    def test_outside_string_unchanged(self):
        text = r'{"message": "Hello\nWorld"}'
        assert paste_text(scan(text), 0, "one\ntwo") == "one\ntwo"

    def test_into_plain_string_unchanged(self):
        text = '{"a": "xyz"}'
        assert paste_text(scan(text), text.index("y"), "p\nq") == "p\nq"


class TestValidatePaste:
    def test_transformed_paste_is_valid(self):
        text = r'{"message": "Hello\nWorld"}'
        check = validate_paste(scan(text), text.index("World"), "a\nb")
        assert check.is_valid
        assert check.needs_transformation
        assert check.text == r"a\nb"
        assert check.errors == []

    def test_raw_line_break_into_plain_string(self):
        text = '{"a": "xyz"}'
        check = validate_paste(scan(text), text.index("y"), "p\nq")
        assert not check.is_valid
        assert not check.needs_transformation
        assert "invalid JSON" in check.errors[0]

    def test_unescaped_quote(self):
        text = r'{"message": "Hello\nWorld"}'
        check = validate_paste(scan(text), text.index("World"), 'say "hi"')
        assert not check.is_valid

    def test_outside_string_not_checked(self):
        check = validate_paste(scan('{"a": 1}'), 0, "anything")
        assert check.is_valid
        assert check.text == "anything"
