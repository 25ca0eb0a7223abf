"""Render Latin text as Batak script strokes.

The Latin input is transliterated first, then each code point is drawn
from the glyph table.  Base glyphs advance the pen; marks are placed
against the most recent base glyph using their anchor (see
``plotgraph.text.script_glyphs``).
"""

from __future__ import annotations

import logging
from typing import Mapping

import numpy as np

from plotgraph.text.script_glyphs import DEFAULT_GLYPHS, GlyphSpec
from plotgraph.text.transliteration import transliterate_toba
from plotgraph.utils.geometry import PathSet, drop_close_points

logger = logging.getLogger(__name__)

SPACE_ADVANCE = 0.5
LINE_ADVANCE = 1.5
SIMPLIFY_FRACTION = 0.01


def _mark_x(glyph: GlyphSpec, base_x: float, base_advance: float, pen_x: float, size: float) -> float:
    mode = glyph.anchor.mode
    dx = glyph.anchor.dx
    if mode == "center":
        return base_x + ((base_advance - glyph.width) / 2.0 + dx) * size
    if mode == "right":
        return pen_x + dx * size
    return base_x + dx * size


def render_glyphs(
    script: str,
    x: float,
    y: float,
    size: float,
    glyphs: Mapping[str, GlyphSpec] | None = None,
) -> PathSet:
    """Draw an already-transliterated string.

    Parameters
    ----------
    script : str
        Code points to draw.
    x, y : float
        Pen start; *y* is the top of the first line.
    size : float
        Scale of one glyph unit.
    glyphs : Mapping[str, GlyphSpec], optional
        Glyph table; defaults to ``DEFAULT_GLYPHS``.

    Returns
    -------
    list[np.ndarray]
        Strokes in drawing order with points closer than ``0.01 * size``
        merged away.
    """
    table = DEFAULT_GLYPHS if glyphs is None else glyphs
    min_dist = SIMPLIFY_FRACTION * size
    paths: PathSet = []

    pen_x = x
    line_y = y
    base_x = x
    base_advance = 0.0

    for char in script:
        if char == "\n":
            pen_x = base_x = x
            base_advance = 0.0
            line_y += LINE_ADVANCE * size
            continue

        glyph = table.get(char)
        if glyph is None:
            if not char.isspace():
                logger.debug("No glyph for %r (U+%04X), leaving a gap", char, ord(char))
            pen_x += SPACE_ADVANCE * size
            continue

        if glyph.is_mark:
            origin_x = _mark_x(glyph, base_x, base_advance, pen_x, size)
        else:
            origin_x = pen_x

        for stroke in glyph.paths:
            unit = np.asarray(stroke, dtype=np.float64)
            if unit.shape[0] < 2:
                continue
            placed = np.column_stack(
                [origin_x + unit[:, 0] * size, line_y + unit[:, 1] * size]
            )
            placed = drop_close_points(placed, min_dist)
            if placed.shape[0] >= 2:
                paths.append(placed)

        if not glyph.is_mark:
            base_x = pen_x
            base_advance = glyph.advance
        pen_x += glyph.advance * size

    return paths


def render_script_text(
    text: str,
    x: float,
    y: float,
    size: float,
    glyphs: Mapping[str, GlyphSpec] | None = None,
) -> PathSet:
    """Transliterate Latin *text* to Toba Batak and draw it."""
    return render_glyphs(transliterate_toba(text), x, y, size, glyphs)
