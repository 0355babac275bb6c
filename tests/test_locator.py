"""Tests for newline escape location."""

from jsonnl.locator import (
    backslash_run_before,
    count_newline_escapes,
    has_newline_escape,
    locate,
    locate_detailed,
)
from jsonnl.model import StringSpan


class TestLocate:
    """Real vs incidental \\n classification."""

    def test_single_escape(self):
        assert locate(r"\n") == [0]

    def test_escaped_backslash_then_n(self):
        assert locate(r"\\n") == []

    def test_real_escape_then_escaped_backslash(self):
        assert locate(r"\n\\n") == [0]

    def test_escaped_backslash_then_real_escape(self):
        assert locate(r"\\\n") == [2]

    def test_multiple(self):
        assert locate(r"a\nb\nc") == [1, 4]

    def test_plain_text(self):
        assert locate("hello world") == []

    def test_empty(self):
        assert locate("") == []

    def test_trailing_backslash(self):
        assert locate("abc\\") == []

    def test_other_escapes_are_skipped(self):
        assert locate(r'\"n\tn\u000an\/n') == []

    def test_escaped_quote_before_real_escape(self):
        assert locate(r'\"\n') == [2]

    def test_parity_law(self):
        for k in range(8):
            even = "\\" * (2 * k) + "\\n"
            odd = "\\" * (2 * k + 1) + "\\n"
            assert locate(even) == [2 * k], k
            assert locate(odd) == [], k

    def test_long_backslash_run(self):
        content = "\\" * 100_000 + "\\n"
        assert locate(content) == [100_000]

    def test_leading_run_odd_escapes_first_backslash(self):
        assert locate(r"\n", leading_run=1) == []

    def test_leading_run_even(self):
        assert locate(r"\n", leading_run=2) == [0]

    def test_leading_run_odd_then_real_escape(self):
        # "\" before the fragment pairs with its first backslash
        assert locate(r"\\n", leading_run=1) == [1]


class TestLocateDetailed:
    """Occurrence records."""

    def test_offsets_relative_without_span(self):
        occ = locate_detailed(r"a\nb")
        assert len(occ) == 1
        assert occ[0].offset_in_document == 1
        assert occ[0].end_offset_in_document == 3
        assert occ[0].owner_span is None

    def test_offsets_absolute_with_span(self):
        content = r"a\nb\nc"
        span = StringSpan(start=10, end=10 + len(content) + 2, content=content)
        occ = locate_detailed(content, span)
        assert [o.offset_in_document for o in occ] == [12, 15]
        assert [o.index_within_string for o in occ] == [0, 1]
        assert occ[0].owner_span is span

    def test_text_before_after(self):
        occ = locate_detailed(r"a\nb\nc")
        assert occ[0].text_before == "a"
        assert occ[0].text_after == r"b\nc"
        assert occ[1].text_before == r"a\nb"
        assert occ[1].text_after == "c"

    def test_skips_incidental(self):
        assert locate_detailed(r"C:\\new") == []


class TestHelpers:
    def test_has_newline_escape(self):
        assert has_newline_escape(r"x\ny")
        assert not has_newline_escape(r"x\\ny")

    def test_count(self):
        assert count_newline_escapes(r"\n\n\\n\n") == 3

    def test_backslash_run_before(self):
        assert backslash_run_before(r"ab\\\n", 5) == 3
        assert backslash_run_before("abc", 2) == 0
        assert backslash_run_before("\\\\", 0) == 0
