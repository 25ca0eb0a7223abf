"""Single-stroke vector font.

Provides:
    - GLYPHS: character -> tuple of strokes, normalized to a unit cell
    - glyph_strokes(): lookup with lowercase -> uppercase fallback
    - render_text(): lay out a string as stroke Paths

Glyphs are drawn on a 5 x 7 design grid (x right, y down, 0..5 and 0..7)
and normalized by the grid size, so a descender reaches y > 1.  Rendering
flips each character's vertical axis (``y + (1 - py) * char_height``);
the preview and plotter back-ends flip the page once more, which makes
the text read upright on paper.

Used by:
    - nodes text evaluator
    - raster.ascii_art (one glyph per cell)
"""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from plotgraph.utils.geometry import PathSet

GRID_W = 5.0
GRID_H = 7.0

Stroke = Tuple[Tuple[float, float], ...]

# Compact source table: strokes separated by "|", points by spaces, "x,y".
_SOURCE: Dict[str, str] = {
    # -- Uppercase -------------------------------------------------------
    'A': "0,7 2.5,0 5,7 | 1,4 4,4",
    'B': "0,0 0,7 3.5,7 5,5.5 5,5 3.5,3.5 0,3.5 | 3.5,3.5 5,2 5,1.5 3.5,0 0,0",
    'C': "5,1 4,0 1,0 0,1 0,6 1,7 4,7 5,6",
    'D': "0,0 0,7 3,7 5,5 5,2 3,0 0,0",
    'E': "5,0 0,0 0,7 5,7 | 0,3.5 4,3.5",
    'F': "5,0 0,0 0,7 | 0,3.5 4,3.5",
    'G': "5,1 4,0 1,0 0,1 0,6 1,7 4,7 5,6 5,4 3,4",
    'H': "0,0 0,7 | 5,0 5,7 | 0,3.5 5,3.5",
    'I': "1,0 4,0 | 2.5,0 2.5,7 | 1,7 4,7",
    'J': "1,0 5,0 | 3.5,0 3.5,6 2.5,7 1,7 0,6",
    'K': "0,0 0,7 | 5,0 0,3.5 5,7",
    'L': "0,0 0,7 5,7",
    'M': "0,7 0,0 2.5,4 5,0 5,7",
    'N': "0,7 0,0 5,7 5,0",
    'O': "1,0 4,0 5,1 5,6 4,7 1,7 0,6 0,1 1,0",
    'P': "0,7 0,0 4,0 5,1 5,3 4,4 0,4",
    'Q': "1,0 4,0 5,1 5,6 4,7 1,7 0,6 0,1 1,0 | 3,5 5,7",
    'R': "0,7 0,0 4,0 5,1 5,3 4,4 0,4 | 3,4 5,7",
    'S': "5,1 4,0 1,0 0,1 0,2.5 1,3.5 4,3.5 5,4.5 5,6 4,7 1,7 0,6",
    'T': "0,0 5,0 | 2.5,0 2.5,7",
    'U': "0,0 0,6 1,7 4,7 5,6 5,0",
    'V': "0,0 2.5,7 5,0",
    'W': "0,0 1,7 2.5,3 4,7 5,0",
    'X': "0,0 5,7 | 5,0 0,7",
    'Y': "0,0 2.5,3.5 5,0 | 2.5,3.5 2.5,7",
    'Z': "0,0 5,0 0,7 5,7",
    # -- Digits ----------------------------------------------------------
    '0': "1,0 4,0 5,1 5,6 4,7 1,7 0,6 0,1 1,0 | 1,6 4,1",
    '1': "1,1 2.5,0 2.5,7 | 1,7 4,7",
    '2': "0,1 1,0 4,0 5,1 5,2.5 0,7 5,7",
    '3': "0,0 5,0 5,3 2.5,3.5 5,4 5,6 4,7 1,7 0,6",
    '4': "4,7 4,0 0,4.5 5,4.5",
    '5': "5,0 0,0 0,3 4,3 5,4 5,6 4,7 1,7 0,6",
    '6': "4,0 1,0 0,1 0,6 1,7 4,7 5,6 5,4 4,3 0,3",
    '7': "0,0 5,0 2,7",
    '8': "1,3.5 0,2.5 0,1 1,0 4,0 5,1 5,2.5 4,3.5 1,3.5 0,4.5 0,6 1,7 4,7 5,6 5,4.5 4,3.5",
    '9': "5,4 1,4 0,3 0,1 1,0 4,0 5,1 5,6 4,7 1,7",
    # -- Punctuation -----------------------------------------------------
    '.': "2,7 3,7 3,6 2,6 2,7",
    ',': "2.5,6 2.5,7 2,8",
    '!': "2.5,0 2.5,4.5 | 2.5,6 2.5,7",
    '?': "0,1 1,0 4,0 5,1 5,2 2.5,4 | 2.5,6 2.5,7",
    '-': "1,3.5 4,3.5",
    '+': "2.5,1.5 2.5,5.5 | 0.5,3.5 4.5,3.5",
    '=': "0.5,2.5 4.5,2.5 | 0.5,4.5 4.5,4.5",
    '/': "0,7 5,0",
    ':': "2.5,2 2.5,2.5 | 2.5,5.5 2.5,6",
    '(': "3,0 1.5,1.5 1.5,5.5 3,7",
    ')': "2,0 3.5,1.5 3.5,5.5 2,7",
    ';': "2.5,2 2.5,2.5 | 2.5,5.5 2.5,7 2,8",
    "'": "2.5,0 2.5,2",
    '"': "1.5,0 1.5,2 | 3.5,0 3.5,2",
    '*': "2.5,1.5 2.5,5.5 | 0.8,2.5 4.2,4.5 | 4.2,2.5 0.8,4.5",
    '#': "1.5,1 1,6 | 4,1 3.5,6 | 0.5,2.5 5,2.5 | 0,4.5 4.5,4.5",
    '%': "0,7 5,0 | 0.5,0.5 1.5,0.5 1.5,1.5 0.5,1.5 0.5,0.5 | 3.5,5.5 4.5,5.5 4.5,6.5 3.5,6.5 3.5,5.5",
    '@': "3.5,4.5 3.5,2.5 1.5,2.5 1.5,4.5 3.5,4.5 5,4.5 5,1 4,0 1,0 0,1 0,6 1,7 4.5,7",
    '<': "4.5,1 0.5,3.5 4.5,6",
    '>': "0.5,1 4.5,3.5 0.5,6",
    '_': "0,7 5,7",
    '|': "2.5,0 2.5,7",
    '[': "3.5,0 1.5,0 1.5,7 3.5,7",
    ']': "1.5,0 3.5,0 3.5,7 1.5,7",
    '~': "0,4 1,3 2.5,3.5 4,4 5,3",
    '\\': "0,0 5,7",
    '^': "1,2 2.5,0 4,2",
    '`': "2,0 3,1.5",
    ' ': "",
    # -- Lowercase (x-height 3..7, descenders to 9.5) --------------------
    'a': "1,3 4,3 5,4 5,7 1,7 0,6 0,5 1,4 5,4",
    'b': "0,0 0,7 4,7 5,6 5,4 4,3 0,3",
    'c': "5,4 4,3 1,3 0,4 0,6 1,7 4,7 5,6",
    'd': "5,0 5,7 1,7 0,6 0,4 1,3 5,3",
    'e': "0,5 5,5 5,4 4,3 1,3 0,4 0,6 1,7 4,7 5,6",
    'f': "5,1 4,0 2.5,0 1.5,1 1.5,7 | 0,3 3.5,3",
    'g': "5,3 1,3 0,4 0,6 1,7 5,7 5,8.5 4,9.5 1,9.5",
    'h': "0,0 0,7 | 0,4 4,3 5,4 5,7",
    'i': "2.5,1 2.5,1.5 | 2.5,3 2.5,7",
    'j': "3,1 3,1.5 | 3,3 3,8.5 2,9.5 1,9.5",
    'k': "0,0 0,7 | 5,3 0,5 5,7",
    'l': "2,0 2.5,0 2.5,6 3,7 4,7",
    'm': "0,7 0,3 1,3 2.5,4.5 2.5,7 | 2.5,4.5 4,3 5,3 5,7",
    'n': "0,7 0,3 4,3 5,4 5,7",
    'o': "1,3 4,3 5,4 5,6 4,7 1,7 0,6 0,4 1,3",
    'p': "0,9.5 0,3 4,3 5,4 5,6 4,7 0,7",
    'q': "5,9.5 5,3 1,3 0,4 0,6 1,7 5,7",
    'r': "0,7 0,3 2,3 4,3 5,4",
    's': "5,4 4,3 1,3 0,4 1,5 4,5 5,6 4,7 1,7 0,6",
    't': "2.5,0 2.5,6 3.5,7 4.5,7 | 0.5,3 4.5,3",
    'u': "0,3 0,6 1,7 5,7 5,3",
    'v': "0,3 2.5,7 5,3",
    'w': "0,3 1,7 2.5,5 4,7 5,3",
    'x': "0,3 5,7 | 5,3 0,7",
    'y': "0,3 2.5,6 | 5,3 2.5,6 1,9.5",
    'z': "0,3 5,3 0,7 5,7",
}


def _parse(source: str) -> Tuple[Stroke, ...]:
    strokes = []
    for chunk in source.split('|'):
        pts = tuple(
            (float(x) / GRID_W, float(y) / GRID_H)
            for x, y in (pair.split(',') for pair in chunk.split())
        )
        if pts:
            strokes.append(pts)
    return tuple(strokes)


GLYPHS: Dict[str, Tuple[Stroke, ...]] = {ch: _parse(src) for ch, src in _SOURCE.items()}
"""Normalized strokes per character; ``' '`` maps to no strokes."""


def glyph_strokes(char: str) -> Tuple[Stroke, ...] | None:
    """Strokes for *char*, falling back to its uppercase form.

    Returns ``None`` for characters the font does not cover.
    """
    strokes = GLYPHS.get(char)
    if strokes is None:
        strokes = GLYPHS.get(char.upper())
    return strokes


def render_text(
    text: str,
    x: float,
    y: float,
    size: float,
    spacing: float = 1.2,
    line_height: float = 1.5,
) -> PathSet:
    """Lay out *text* as stroke paths.

    Parameters
    ----------
    text : str
        Characters to draw; ``\\n`` starts a new line.
    x, y : float
        Top-left of the first character cell.
    size : float
        Cell width; cell height is ``size * 7 / 5``.
    spacing : float
        Horizontal advance as a multiple of *size*.
    line_height : float
        Line advance as a multiple of the cell height.

    Returns
    -------
    list[np.ndarray]
        One path per stroke, in reading order.  Unknown characters
        advance the cursor without drawing.
    """
    paths: PathSet = []
    advance = size * spacing
    char_height = size * (GRID_H / GRID_W)
    line_step = char_height * line_height

    cursor_x, cursor_y = x, y
    for char in text:
        if char == '\n':
            cursor_x = x
            cursor_y += line_step
            continue

        for stroke in glyph_strokes(char) or ():
            if len(stroke) < 2:
                continue
            unit = np.asarray(stroke, dtype=np.float64)
            path = np.empty_like(unit)
            path[:, 0] = cursor_x + unit[:, 0] * size
            path[:, 1] = cursor_y + (1.0 - unit[:, 1]) * char_height
            paths.append(path)

        cursor_x += advance

    return paths
