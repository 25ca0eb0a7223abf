"""Text rendering: stroke font, Batak transliteration and script glyphs."""

from .script_text import render_glyphs, render_script_text
from .stroke_font import GLYPHS, glyph_strokes, render_text
from .transliteration import is_batak, transliterate_toba

__all__ = [
    "GLYPHS",
    "glyph_strokes",
    "is_batak",
    "render_glyphs",
    "render_script_text",
    "render_text",
    "transliterate_toba",
]
