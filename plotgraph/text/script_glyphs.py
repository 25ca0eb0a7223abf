"""Batak glyph table keyed by code point.

Provides:
    - Anchor, GlyphSpec: immutable glyph description
    - DEFAULT_GLYPHS: built-in single-stroke Batak letters and marks
    - glyph_from_model(): validated override entry -> GlyphSpec
    - parse_glyph_table(): validate a user-supplied override table (pydantic)

Glyph units: 1.0 == render size; x grows right from the glyph origin,
y grows down from the top of the line (baseline at y = 1).  Marks are
drawn relative to the base glyph they follow:

    base    at the base origin, shifted by ``dx``
    center  centred over the base advance, shifted by ``dx``
    right   at the pen position after the base, shifted by ``dx``

A mark with a non-zero ``advance`` moves the pen (pangolat and the
right-hand vowel signs); other marks do not.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from pydantic import TypeAdapter, ValidationError

from plotgraph.graph.errors import ParameterError
from plotgraph.graph.params import GlyphKey, GlyphModel, format_validation_error

AnchorMode = Literal["base", "center", "right"]

Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class Anchor:
    mode: AnchorMode = "base"
    dx: float = 0.0


@dataclass(frozen=True, slots=True)
class GlyphSpec:
    """One glyph of the script font.

    Parameters
    ----------
    paths : tuple[tuple[Point, ...], ...]
        Strokes in glyph units.
    advance : float
        Pen advance in glyph units.
    is_mark : bool
        Marks attach to the preceding base glyph.
    anchor : Anchor
        Placement of a mark; ignored for base glyphs.
    """

    paths: tuple[tuple[Point, ...], ...]
    advance: float = 0.8
    is_mark: bool = False
    anchor: Anchor = Anchor()

    @property
    def width(self) -> float:
        """Horizontal extent of the strokes (0 for an empty glyph)."""
        xs = [p[0] for path in self.paths for p in path]
        return max(xs) - min(xs) if xs else 0.0


def _strokes(source: str) -> tuple[tuple[Point, ...], ...]:
    strokes = []
    for chunk in source.split('|'):
        pts = tuple(
            (float(x), float(y)) for x, y in (pair.split(',') for pair in chunk.split())
        )
        if pts:
            strokes.append(pts)
    return tuple(strokes)


def _base(source: str, advance: float = 0.8) -> GlyphSpec:
    return GlyphSpec(paths=_strokes(source), advance=advance)


def _mark(source: str, mode: AnchorMode, dx: float = 0.0, advance: float = 0.0) -> GlyphSpec:
    return GlyphSpec(
        paths=_strokes(source), advance=advance, is_mark=True, anchor=Anchor(mode, dx)
    )


DEFAULT_GLYPHS: dict[str, GlyphSpec] = {
    # -- independent vowels ----------------------------------------------
    '\u1BC0': _base("0.05,0.95 0.05,0.4 0.35,0.15 0.7,0.4 0.7,0.95 | 0.05,0.6 0.7,0.6"),
    '\u1BC1': _base("0.05,0.3 0.35,0.1 0.65,0.3 0.65,0.95 | 0.05,0.3 0.05,0.95", 0.75),
    # -- consonants ------------------------------------------------------
    '\u1BC2': _base("0.05,0.95 0.05,0.2 0.7,0.2 0.7,0.95 | 0.05,0.55 0.7,0.55"),
    '\u1BC3': _base("0.05,0.2 0.7,0.95 | 0.05,0.95 0.35,0.6 | 0.45,0.45 0.7,0.2"),
    '\u1BC4': _base("0.05,0.95 0.05,0.2 0.4,0.55 0.7,0.2 0.7,0.95"),
    '\u1BC5': _base("0.05,0.2 0.7,0.2 0.7,0.95 0.05,0.95 0.05,0.55 0.45,0.55"),
    '\u1BC6': _base("0.05,0.95 0.35,0.2 0.7,0.95 | 0.2,0.6 0.55,0.6"),
    '\u1BC7': _base("0.05,0.2 0.2,0.95 0.375,0.45 0.55,0.95 0.7,0.2", 0.8),
    '\u1BC8': _base("0.7,0.3 0.5,0.15 0.15,0.15 0.05,0.35 0.05,0.8 0.2,0.95 0.7,0.95 0.7,0.55 0.4,0.55"),
    '\u1BC9': _base("0.05,0.2 0.7,0.2 | 0.4,0.2 0.4,0.95 0.05,0.75"),
    '\u1BCA': _base("0.05,0.2 0.05,0.95 0.45,0.95 0.7,0.7 0.7,0.45 0.45,0.2 0.05,0.2"),
    '\u1BCB': _base("0.05,0.95 0.05,0.2 0.55,0.2 0.7,0.35 0.55,0.55 0.05,0.55 | 0.35,0.55 0.7,0.95"),
    '\u1BCC': _base("0.05,0.95 0.05,0.2 0.375,0.6 0.7,0.2 0.7,0.95 | 0.05,0.95 0.7,0.95", 0.8),
    '\u1BCD': _base("0.05,0.2 0.7,0.2 | 0.375,0.2 0.375,0.95 | 0.15,0.95 0.6,0.95"),
    '\u1BCE': _base("0.7,0.2 0.05,0.2 0.05,0.55 0.7,0.55 0.7,0.95 0.05,0.95"),
    '\u1BCF': _base("0.05,0.2 0.05,0.95 0.7,0.95 | 0.05,0.55 0.45,0.2"),
    '\u1BD0': _base("0.05,0.2 0.375,0.55 0.7,0.2 | 0.375,0.55 0.375,0.95"),
    '\u1BD1': _base("0.05,0.95 0.05,0.2 0.7,0.95 0.7,0.2 | 0.05,0.55 0.25,0.55"),
    # -- vowel signs -----------------------------------------------------
    '\u1BE7': _mark("0.0,0.05 0.3,0.0", "base", dx=0.1),
    '\u1BEA': _mark("0.0,0.3 0.15,0.15 0.2,0.45", "right", dx=0.02, advance=0.25),
    '\u1BEB': _mark("0.0,1.05 0.15,1.2 0.3,1.05", "center"),
    '\u1BEC': _mark("0.0,0.35 0.15,0.35 0.15,0.7 0.0,0.7", "right", dx=0.02, advance=0.25),
    # -- consonant sign NG and pangolat ----------------------------------
    '\u1BF0': _mark("0.0,0.0 0.1,-0.1 0.2,-0.1 0.3,0.0", "center"),
    '\u1BF2': _mark("0.0,0.1 0.15,0.85", "right", dx=0.03, advance=0.22),
}


# ---------------------------------------------------------------------------
# Override tables
# ---------------------------------------------------------------------------

_GLYPH_TABLE = TypeAdapter(dict[GlyphKey, GlyphModel])


def glyph_from_model(model: GlyphModel) -> GlyphSpec:
    """Convert a validated override entry to a ``GlyphSpec``."""
    advance = model.advance
    if advance is None:
        advance = 0.0 if model.is_mark else 0.8
    return GlyphSpec(
        paths=tuple(tuple(path) for path in model.paths),
        advance=advance,
        is_mark=model.is_mark,
        anchor=Anchor(model.anchor.mode, model.anchor.dx),
    )


def parse_glyph_table(table: Mapping[str, Any]) -> dict[str, GlyphSpec]:
    """Validate an override table and merge it over ``DEFAULT_GLYPHS``.

    Parameters
    ----------
    table : Mapping[str, Any]
        ``{key: {"paths": [[[x, y], ...], ...], "advance": float,
        "is_mark": bool, "anchor": {"mode": str, "dx": float}}}`` where
        *key* is the character or its hex code point.  Entries may also
        be ``GlyphModel`` instances already validated by
        ``ScriptTextParams``.

    Returns
    -------
    dict[str, GlyphSpec]
        Defaults with the overridden entries replaced.

    Raises
    ------
    ParameterError
        If a key or glyph record is malformed.
    """
    try:
        glyphs = _GLYPH_TABLE.validate_python(dict(table))
    except ValidationError as exc:
        raise ParameterError(format_validation_error(exc)) from None
    merged = dict(DEFAULT_GLYPHS)
    merged.update({char: glyph_from_model(model) for char, model in glyphs.items()})
    return merged
