"""Test stroke-font text and Batak script rendering.

Tests for plotgraph.text:
    - transliterate_toba(): open and closed syllables, NG, vowels, passthrough
    - Purity: repeated calls give identical output
    - render_text(): advance, newlines, unknown characters
    - render_glyphs(): mark placement and advance
    - parse_glyph_table(): key formats and validation

Run:
    pytest tests/test_text.py -v
"""

from __future__ import annotations

import numpy as np
import pytest

from plotgraph.graph.errors import ParameterError
from plotgraph.graph.model import NodeType
from plotgraph.graph.params import GlyphModel, validate_params
from plotgraph.text.script_glyphs import (
    DEFAULT_GLYPHS,
    Anchor,
    GlyphSpec,
    glyph_from_model,
    parse_glyph_table,
)
from plotgraph.text.script_text import render_glyphs, render_script_text
from plotgraph.text.stroke_font import glyph_strokes, render_text
from plotgraph.text.transliteration import (
    LETTER_A,
    LETTER_I,
    PANGOLAT,
    SIGN_NG,
    is_batak,
    transliterate_toba,
)


class TestTransliteration:
    def test_horas(self) -> None:
        assert transliterate_toba("horas") == "\u1BC2\u1BEC\u1BCB\u1BCE\u1BF2"

    def test_case_insensitive(self) -> None:
        assert transliterate_toba("HORAS") == transliterate_toba("horas")

    def test_open_syllables(self) -> None:
        # ba + tu
        assert transliterate_toba("batu") == "\u1BC4\u1BCD\u1BEB"

    def test_closing_ng(self) -> None:
        # ba + dang: NG sign after the (inherent) vowel
        assert transliterate_toba("bang") == "\u1BC4" + SIGN_NG

    def test_ng_letter(self) -> None:
        assert transliterate_toba("nga") == "\u1BD1"

    def test_bare_consonant(self) -> None:
        assert transliterate_toba("k") == "\u1BC3"

    def test_initial_vowels(self) -> None:
        assert transliterate_toba("a") == LETTER_A
        assert transliterate_toba("o") == LETTER_I + "\u1BEC"

    def test_closed_syllable_mid_word_stays_open(self) -> None:
        # The closing consonant starts the next syllable instead
        out = transliterate_toba("tapa")
        assert PANGOLAT not in out
        assert out == "\u1BCD\u1BC5"

    def test_punctuation_closes_a_word(self) -> None:
        assert transliterate_toba("horas!") == transliterate_toba("horas") + "!"
        assert transliterate_toba("bang.") == "\u1BC4" + SIGN_NG + "."

    def test_passthrough(self) -> None:
        assert transliterate_toba("ba 1!") == "\u1BC4 1!"

    def test_repeatable(self) -> None:
        first = transliterate_toba("horas bah")
        assert transliterate_toba("horas bah") == first
        assert transliterate_toba("horas") == "\u1BC2\u1BEC\u1BCB\u1BCE\u1BF2"

    def test_is_batak(self) -> None:
        assert is_batak(transliterate_toba("horas"))
        assert not is_batak("horas")


class TestStrokeFont:
    def test_lowercase_falls_back(self) -> None:
        assert glyph_strokes("q") is not None
        assert glyph_strokes("\u00e9") is None

    def test_advance(self) -> None:
        one = render_text("I", 0.0, 0.0, 10.0, spacing=1.2)
        two = render_text("II", 0.0, 0.0, 10.0, spacing=1.2)
        assert len(two) == 2 * len(one)
        shift = two[len(one)][:, 0] - one[0][:, 0]
        assert shift == pytest.approx(np.full(shift.shape, 12.0))

    def test_newline(self) -> None:
        one = render_text("I", 0.0, 0.0, 10.0)
        two = render_text("\nI", 0.0, 0.0, 10.0, line_height=1.5)
        assert two[0][:, 1] - one[0][:, 1] == pytest.approx(np.full(one[0].shape[0], 21.0))

    def test_unknown_and_space_draw_nothing(self) -> None:
        assert render_text(" \u00e9 ", 0.0, 0.0, 10.0) == []

    def test_unknown_still_advances(self) -> None:
        one = render_text("I", 0.0, 0.0, 10.0)
        two = render_text("\u00e9I", 0.0, 0.0, 10.0)
        assert two[0][:, 0] - one[0][:, 0] == pytest.approx(np.full(one[0].shape[0], 12.0))


class TestScriptRendering:
    def test_paths_in_box(self) -> None:
        paths = render_script_text("horas", 0.0, 0.0, 10.0)
        assert paths
        pts = np.vstack(paths)
        assert pts[:, 0].min() >= -1e-9
        assert pts[:, 1].min() >= -2.0

    def test_deterministic(self) -> None:
        a = render_script_text("horas", 5.0, 5.0, 20.0)
        b = render_script_text("horas", 5.0, 5.0, 20.0)
        assert len(a) == len(b)
        assert all(np.array_equal(p, q) for p, q in zip(a, b))

    def test_mark_without_advance_keeps_pen(self) -> None:
        table = {
            "b": GlyphSpec(paths=(((0.0, 0.0), (1.0, 0.0)),), advance=1.0),
            "m": parse_glyph_table({"m": {"paths": [[[0, 0], [0, 1]]], "is_mark": True}})["m"],
        }
        with_mark = render_glyphs("bmb", 0.0, 0.0, 10.0, table)
        without = render_glyphs("bb", 0.0, 0.0, 10.0, table)
        assert with_mark[-1] == pytest.approx(without[-1])
        # Base-anchored mark sits at the base origin
        assert with_mark[1][0] == pytest.approx([0.0, 0.0])

    def test_newline_resets_pen(self) -> None:
        paths = render_glyphs("\u1BC2\n\u1BC2", 0.0, 0.0, 10.0)
        first = paths[0]
        second = paths[len(paths) // 2]
        assert second[0, 0] == pytest.approx(first[0, 0])
        assert second[0, 1] - first[0, 1] == pytest.approx(15.0)


class TestGlyphTable:
    @pytest.mark.parametrize("key", ["\u1BC2", "1BC2", "U+1BC2", "0x1bc2"])
    def test_key_formats(self, key: str) -> None:
        table = parse_glyph_table({key: {"paths": [[[0, 0], [1, 1]]]}})
        assert table["\u1BC2"].paths == (((0.0, 0.0), (1.0, 1.0)),)
        assert table["\u1BC3"] is DEFAULT_GLYPHS["\u1BC3"]

    def test_mark_default_advance(self) -> None:
        table = parse_glyph_table({"x": {"paths": [], "is_mark": True}})
        assert table["x"].advance == 0.0

    def test_bad_anchor(self) -> None:
        with pytest.raises(ParameterError, match="anchor"):
            parse_glyph_table({"x": {"paths": [], "anchor": {"mode": "left"}}})

    def test_non_mapping(self) -> None:
        with pytest.raises(ParameterError, match="dictionary"):
            parse_glyph_table({"x": [1, 2]})

    def test_bad_point(self) -> None:
        with pytest.raises(ParameterError):
            parse_glyph_table({"x": {"paths": [[[0]]]}})

    def test_negative_advance(self) -> None:
        with pytest.raises(ParameterError, match="advance"):
            parse_glyph_table({"x": {"paths": [], "advance": -1}})

    def test_bad_key(self) -> None:
        with pytest.raises(ParameterError, match="not a character or hex code point"):
            parse_glyph_table({"U+ZZ": {"paths": []}})

    def test_camel_case_fields(self) -> None:
        table = parse_glyph_table({"x": {"paths": [], "isMark": True, "anchor": {"mode": "right", "dx": 0.1}}})
        assert table["x"].is_mark
        assert table["x"].anchor == Anchor("right", 0.1)

    def test_params_validate_glyphs(self) -> None:
        params = validate_params(NodeType.SCRIPT_TEXT, {"glyphs": {"U+1BC2": {"paths": [[[0, 0], [1, 0]]]}}})
        assert isinstance(params.glyphs["\u1BC2"], GlyphModel)
        assert glyph_from_model(params.glyphs["\u1BC2"]).advance == 0.8
