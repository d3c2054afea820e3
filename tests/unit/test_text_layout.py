"""Unit tests for text layout."""

import pytest

from pagestamp.core.exceptions import UnsupportedScriptRendering
from pagestamp.core.models import Orientation
from pagestamp.layout.text_layout import (
    FontSelector,
    contains_hebrew,
    layout_block,
    line_height,
    wrap_text,
)


def measure(text, size):
    """Every character is half the font size wide."""
    return len(text) * size * 0.5


def test_wrap_fits_width():
    """Words are packed greedily up to the width."""
    assert wrap_text("aaa bbb ccc", measure, 10, 35) == ["aaa bbb", "ccc"]


def test_wrap_never_exceeds_width_for_multiword_lines():
    """Only single-word lines may be wider than the box."""
    texts = [
        "The quick brown fox jumps over the lazy dog",
        "a bb ccc dddd eeeee ffffff",
        "one two\nthree four five six seven",
    ]
    for text in texts:
        for width in (20, 45, 80, 150):
            for line in wrap_text(text, measure, 10, width):
                if " " in line:
                    assert measure(line, 10) <= width


def test_long_word_stays_whole():
    """A word wider than the box gets its own line."""
    assert wrap_text("a verylongwordhere b", measure, 10, 20) == ["a", "verylongwordhere", "b"]


def test_wrap_preserves_words():
    """Wrapping only moves line breaks."""
    text = "The quick brown fox jumps over the lazy dog"
    assert " ".join(wrap_text(text, measure, 10, 60)).split() == text.split()


def test_wrap_empty_input():
    """Empty or blank text gives one empty line."""
    assert wrap_text("", measure, 10, 100) == [""]
    assert wrap_text("   ", measure, 10, 100) == [""]
    assert wrap_text(None, measure, 10, 100) == [""]


def test_wrap_explicit_newlines():
    """Newlines start new paragraphs."""
    assert wrap_text("one\ntwo", measure, 10, 500) == ["one", "two"]
    assert wrap_text("one\n\ntwo\n", measure, 10, 500) == ["one", "", "two"]


def test_line_height():
    assert line_height(10) == pytest.approx(12)
    assert line_height(10, 1.5) == pytest.approx(15)


def test_block_centered_pdf():
    """Three lines at size 10 straddle the center, first line highest."""
    placed = layout_block(["ab", "cd", "ef"], measure, 10, (100, 500), Orientation.PDF)
    assert [line.y for line in placed] == pytest.approx([512, 500, 488])
    assert placed[0].x == pytest.approx(95)
    assert placed[0].width == pytest.approx(10)


def test_block_centered_svg():
    """In SVG the first line has the smallest Y."""
    placed = layout_block(["ab", "cd", "ef"], measure, 10, (100, 500), Orientation.SVG)
    assert [line.y for line in placed] == pytest.approx([488, 500, 512])


def test_single_line_sits_on_center():
    placed = layout_block(["hello"], measure, 10, (50, 50), Orientation.PDF)
    assert placed[0].y == pytest.approx(50)


def test_contains_hebrew():
    """Detection looks at the Hebrew block only."""
    assert contains_hebrew("שלום")
    assert contains_hebrew("hello שלום")
    assert not contains_hebrew("hello")
    assert not contains_hebrew("")


class TestFontSelector:
    """Font choice by script and weight."""

    latin = {"regular": "R", "bold": "B", "italic": "I", "boldItalic": "BI"}

    def test_latin_variants(self):
        selector = FontSelector(self.latin)
        assert selector.select("hi") == "R"
        assert selector.select("hi", bold=True) == "B"
        assert selector.select("hi", italic=True) == "I"
        assert selector.select("hi", bold=True, italic=True) == "BI"

    def test_missing_variant_falls_back_to_regular(self):
        selector = FontSelector({"regular": "R"})
        assert selector.select("hi", bold=True, italic=True) == "R"

    def test_hebrew_face(self):
        """Hebrew uses the Hebrew face and ignores italic."""
        selector = FontSelector(self.latin, {"regular": "HR", "bold": "HB"})
        assert selector.has_hebrew
        assert selector.select("שלום") == "HR"
        assert selector.select("שלום", bold=True, italic=True) == "HB"
        assert selector.select("שלום", italic=True) == "HR"

    def test_hebrew_without_font_raises(self):
        selector = FontSelector(self.latin)
        assert not selector.has_hebrew
        with pytest.raises(UnsupportedScriptRendering):
            selector.select("שלום")

    def test_regular_latin_required(self):
        with pytest.raises(ValueError):
            FontSelector({"bold": "B"})
