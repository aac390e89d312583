import pandas as pd
import pytest

from cm_dashboard.boq_query.constants import MATCH_ALL, MATCH_ANY
from cm_dashboard.boq_query.query import (
    compile_query,
    description_matches,
    split_keywords,
    highlight_segments,
    highlight_html,
)


class TestCompileQuery:

    def test_all_requires_every_word(self):
        pattern = compile_query("ผนัง 200mm", MATCH_ALL)
        assert pattern.search("ผนังอิฐ 100mm") is None

    def test_any_requires_one_word(self):
        pattern = compile_query("ผนัง 200mm", MATCH_ANY)
        assert pattern.search("ผนังอิฐ 100mm") is not None

    def test_all_ignores_word_order(self):
        pattern = compile_query("100mm ผนัง", MATCH_ALL)
        assert pattern.search("ผนังอิฐ 100mm") is not None

    def test_case_insensitive(self):
        assert compile_query("concrete").search("Concrete Beam") is not None

    def test_special_characters_are_literal(self):
        pattern = compile_query("C+M")
        assert pattern.search("tiles C+M") is not None
        assert pattern.search("CCM") is None

    @pytest.mark.parametrize("text", ["", "   ", None, "\t\n"])
    def test_blank_text_gives_no_pattern(self, text):
        assert compile_query(text) is None

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            compile_query("x", "some")

    def test_split_keywords_collapses_whitespace(self):
        assert split_keywords("  a   b\tc ") == ['a', 'b', 'c']


def test_description_matches_treats_missing_as_empty():
    pattern = compile_query("brick")
    mask = description_matches(pattern, pd.Series(["Brick wall", None, "block"]))
    assert mask.tolist() == [True, False, False]


class TestHighlight:

    def test_segments(self):
        segments = highlight_segments("ผนังอิฐ 100mm", ["ผนัง", "100MM"])
        assert segments == [("ผนัง", True), ("อิฐ ", False), ("100mm", True)]

    def test_no_keywords(self):
        assert highlight_segments("abc", []) == [("abc", False)]
        assert highlight_segments("", ["a"]) == []

    def test_html_is_escaped(self):
        out = highlight_html("<b>C+M</b>", ["C+M"], color="#ff0")
        assert "&lt;b&gt;" in out
        assert '<mark style="background:#ff0;padding:0 2px;">C+M</mark>' in out
