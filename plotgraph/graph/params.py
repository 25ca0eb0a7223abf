"""Per-node-type parameter validation.

Provides one pydantic model per ``NodeType`` so every evaluator receives a
typed, range-checked record.  Field names are snake_case; the editor's
camelCase keys (``startAngle``, ``spacingX``) are accepted as aliases and
unknown keys are ignored.

Ranges follow the editor's property panels.  A value outside them fails
the node with ``ParameterError`` instead of being clamped silently.

Usage:
    from plotgraph.graph.params import validate_params
    params = validate_params(NodeType.CIRCLE, {"radius": 12, "segments": 48})
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Optional

import numpy as np
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from plotgraph.graph.errors import ParameterError
from plotgraph.graph.model import NodeType


class NodeParams(BaseModel):
    """Base for all parameter records (frozen, camelCase aliases)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        arbitrary_types_allowed=True,
    )


# ============================================================================
# SHAPES
# ============================================================================

class LineParams(NodeParams):
    x1: float = Field(0.0, description="Start x")
    y1: float = Field(0.0, description="Start y")
    x2: float = Field(0.0, description="End x")
    y2: float = Field(0.0, description="End y")


class RectParams(NodeParams):
    x: float = 0.0
    y: float = 0.0
    width: float = Field(20.0, ge=0.0)
    height: float = Field(20.0, ge=0.0)


class CircleParams(NodeParams):
    cx: float = 50.0
    cy: float = 50.0
    radius: float = Field(20.0, ge=0.0)
    segments: int = Field(36, ge=3, le=360, description="Polyline resolution")


class EllipseParams(NodeParams):
    cx: float = 50.0
    cy: float = 50.0
    rx: float = Field(30.0, ge=0.0)
    ry: float = Field(20.0, ge=0.0)
    segments: int = Field(36, ge=3, le=360)


class ArcParams(NodeParams):
    cx: float = 50.0
    cy: float = 50.0
    radius: float = Field(20.0, ge=0.0)
    start_angle: float = Field(0.0, ge=-360.0, le=360.0, description="Degrees")
    end_angle: float = Field(90.0, ge=-360.0, le=360.0, description="Degrees")
    segments: int = Field(24, ge=1, le=360)


class PolygonParams(NodeParams):
    sides: int = Field(6, ge=3, le=100)
    cx: float = 50.0
    cy: float = 50.0
    radius: float = Field(20.0, ge=0.0)


# ============================================================================
# TEXT
# ============================================================================

class TextParams(NodeParams):
    text: str = "Hello"
    x: float = 0.0
    y: float = 0.0
    size: float = Field(10.0, ge=1.0, le=500.0)
    spacing: float = Field(1.2, ge=0.0, le=10.0, description="Advance, in char widths")
    line_height: float = Field(1.5, ge=0.0, le=10.0, description="In char heights")


def glyph_key_to_char(key: str) -> str:
    """Accept the character itself, ``"1BC2"``, ``"U+1BC2"`` or ``"0x1BC2"``."""
    if len(key) == 1:
        return key
    text = key.upper()
    for prefix in ("U+", "0X"):
        if text.startswith(prefix):
            text = text[len(prefix):]
    try:
        return chr(int(text, 16))
    except (ValueError, OverflowError):
        raise ValueError(f"glyph key {key!r} is not a character or hex code point") from None


GlyphKey = Annotated[str, AfterValidator(glyph_key_to_char)]


class AnchorModel(NodeParams):
    """Where a mark sits relative to the base glyph before it."""

    mode: Literal["base", "center", "right"] = "base"
    dx: float = Field(0.0, description="Extra shift in glyph units")


class GlyphModel(NodeParams):
    """One entry of a script glyph override table (glyph units)."""

    paths: list[list[tuple[float, float]]] = Field(default_factory=list)
    advance: Optional[float] = Field(None, ge=0.0, description="None: 0 for marks, 0.8 otherwise")
    is_mark: bool = False
    anchor: AnchorModel = Field(default_factory=AnchorModel)


class ScriptTextParams(NodeParams):
    text: str = "horas"
    x: float = 10.0
    y: float = 50.0
    size: float = Field(30.0, ge=1.0, le=500.0)
    glyphs: Optional[dict[GlyphKey, GlyphModel]] = Field(
        None, description="Glyph table override keyed by character or hex code point"
    )


# ============================================================================
# ITERATION / TRANSFORM
# ============================================================================

class RepeatParams(NodeParams):
    count: int = Field(5, ge=1, le=1000)
    offset_x: float = 10.0
    offset_y: float = 0.0
    rotation: float = Field(0.0, description="Degrees per step")
    scale: float = Field(1.0, ge=0.01, le=100.0, description="Scale per step")


class GridParams(NodeParams):
    cols: int = Field(3, ge=1, le=100)
    rows: int = Field(3, ge=1, le=100)
    spacing_x: float = 30.0
    spacing_y: float = 30.0
    start_x: float = 0.0
    start_y: float = 0.0


class RadialParams(NodeParams):
    count: int = Field(8, ge=1, le=360)
    cx: float = 75.0
    cy: float = 60.0
    radius: float = Field(40.0, ge=0.0)
    start_angle: float = 0.0


class TranslateParams(NodeParams):
    dx: float = 0.0
    dy: float = 0.0


class RotateParams(NodeParams):
    angle: float = Field(0.0, description="Degrees, positive is clockwise on screen")
    cx: float = 0.0
    cy: float = 0.0


class ScaleParams(NodeParams):
    sx: float = Field(1.0, ge=0.001)
    sy: float = Field(1.0, ge=0.001)
    cx: float = 0.0
    cy: float = 0.0


class PathLayoutParams(NodeParams):
    path_type: Literal["circle", "arc", "line", "wave", "spiral"] = "circle"
    mode: Literal["warp", "distribute"] = "warp"
    cx: float = 75.0
    cy: float = 60.0
    radius: float = Field(40.0, ge=0.0)
    start_angle: float = 0.0
    end_angle: float = 180.0
    x1: float = 10.0
    y1: float = 60.0
    x2: float = 140.0
    y2: float = 60.0
    amplitude: float = 20.0
    frequency: float = Field(2.0, ge=0.0)
    turns: float = Field(3.0, ge=0.0)
    growth: float = 5.0
    align: Literal["start", "center", "end"] = "start"
    spacing: float = Field(1.0, ge=0.0)
    reverse: bool = False


# ============================================================================
# ALGORITHMIC
# ============================================================================

class BytebeatParams(NodeParams):
    formula: str = Field("t*(t>>5|t>>8)", min_length=1, max_length=2000)
    count: int = Field(16, ge=1, le=10000)
    mode: Literal["position", "rotation", "scale", "all"] = "position"
    x_scale: float = 0.5
    y_scale: float = 0.5
    rot_scale: float = 1.0
    scl_scale: float = 0.01
    base_x: float = 75.0
    base_y: float = 60.0


class AttractorParams(NodeParams):
    type: Literal["clifford", "dejong", "bedhead", "tinkerbell", "gumowski"] = "clifford"
    iterations: int = Field(5000, ge=100, le=100000)
    a: Optional[float] = Field(None, description="None takes the family preset")
    b: Optional[float] = None
    c: Optional[float] = None
    d: Optional[float] = None
    scale: float = Field(20.0, ge=0.1)
    center_x: float = 75.0
    center_y: float = 60.0
    recenter: bool = True


class LSystemParams(NodeParams):
    axiom: str = Field("F", min_length=1, max_length=100)
    rules: str = Field("F=F+F-F-F+F", max_length=1000)
    iterations: int = Field(3, ge=0, le=10)
    angle: float = 90.0
    step_size: float = Field(10.0, ge=0.1)
    start_x: float = 75.0
    start_y: float = 100.0
    start_angle: float = -90.0
    scale_per_iter: float = Field(1.0, ge=0.1, le=2.0)


class CustomCodeParams(NodeParams):
    code: str = "return input"
    seed: Optional[int] = Field(None, description="None uses the configured sandbox seed")


# ============================================================================
# IMPORT / IMAGE-DERIVED
# ============================================================================

class SvgImportParams(NodeParams):
    paths: list[list[tuple[float, float]]] = Field(
        default_factory=list, description="Already-parsed outlines"
    )
    scale: float = Field(1.0, ge=0.1, le=10.0)
    offset_x: float = 0.0
    offset_y: float = 0.0


class ImageImportParams(NodeParams):
    pixels: Any = Field(..., description="HxW, HxWx3, HxWx4 array or PIL image")
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = Field(None, gt=0.0)
    height: Optional[float] = Field(None, gt=0.0)

    @field_validator("pixels")
    @classmethod
    def to_luminance(cls, v: Any) -> np.ndarray:
        from plotgraph.raster.image import luminance_from_pixels

        return luminance_from_pixels(v)


class HalftoneParams(NodeParams):
    mode: Literal["sine", "zigzag", "square", "triangle"] = "sine"
    line_spacing: float = Field(2.0, ge=0.5, le=20.0)
    wave_length: float = Field(4.0, ge=0.5, le=50.0)
    min_amplitude: float = Field(0.1, ge=0.0, le=10.0)
    max_amplitude: float = Field(1.5, ge=0.1, le=10.0)
    angle: float = Field(0.0, ge=-180.0, le=180.0)
    sample_resolution: int = Field(100, ge=10, le=500)
    invert: bool = False
    flip_x: bool = False
    flip_y: bool = True
    skip_white: bool = False
    white_threshold: float = Field(0.95, ge=0.0, le=1.0)
    output_width: float = Field(100.0, ge=10.0, le=500.0)
    output_height: float = Field(100.0, ge=10.0, le=500.0)
    x: float = 0.0
    y: float = 0.0


class AsciiParams(NodeParams):
    charset: str = Field(" .:-=+*#%@", min_length=1, description="Ordered light to dark")
    cell_width: float = Field(3.0, ge=0.5, le=20.0)
    cell_height: float = Field(4.0, ge=0.5, le=30.0)
    font_size: float = Field(3.0, ge=0.5, le=20.0)
    output_width: float = Field(100.0, ge=10.0, le=500.0)
    output_height: float = Field(100.0, ge=10.0, le=500.0)
    invert: bool = False
    flip_x: bool = False
    flip_y: bool = True
    x: float = 0.0
    y: float = 0.0


class MaskParams(NodeParams):
    threshold: float = Field(0.5, ge=0.0, le=1.0)
    invert: bool = False
    feather: float = Field(0.0, ge=0.0, le=20.0)
    mode: Literal["points", "paths"] = "points"


class OutputParams(NodeParams):
    pass


# ============================================================================
# CATALOGUE
# ============================================================================

PARAM_MODELS: dict[NodeType, type[NodeParams]] = {
    NodeType.LINE: LineParams,
    NodeType.RECT: RectParams,
    NodeType.CIRCLE: CircleParams,
    NodeType.ELLIPSE: EllipseParams,
    NodeType.ARC: ArcParams,
    NodeType.POLYGON: PolygonParams,
    NodeType.TEXT: TextParams,
    NodeType.SCRIPT_TEXT: ScriptTextParams,
    NodeType.REPEAT: RepeatParams,
    NodeType.GRID: GridParams,
    NodeType.RADIAL: RadialParams,
    NodeType.TRANSLATE: TranslateParams,
    NodeType.ROTATE: RotateParams,
    NodeType.SCALE: ScaleParams,
    NodeType.PATH_LAYOUT: PathLayoutParams,
    NodeType.BYTEBEAT: BytebeatParams,
    NodeType.ATTRACTOR: AttractorParams,
    NodeType.L_SYSTEM: LSystemParams,
    NodeType.CUSTOM_CODE: CustomCodeParams,
    NodeType.SVG_IMPORT: SvgImportParams,
    NodeType.IMAGE_IMPORT: ImageImportParams,
    NodeType.HALFTONE: HalftoneParams,
    NodeType.ASCII: AsciiParams,
    NodeType.MASK: MaskParams,
    NodeType.OUTPUT: OutputParams,
}

_missing = set(NodeType) - set(PARAM_MODELS)
if _missing:
    raise RuntimeError(f"No parameter model for node types: {sorted(t.value for t in _missing)}")


def format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<record>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def validate_params(node_type: NodeType, raw: Mapping[str, Any]) -> NodeParams:
    """Validate a raw parameter record for *node_type*.

    Parameters
    ----------
    node_type : NodeType
        Selects the model.
    raw : Mapping[str, Any]
        Record from the editor; snake_case or camelCase keys.

    Returns
    -------
    NodeParams
        Frozen, typed record.

    Raises
    ------
    ParameterError
        If a field is missing, has the wrong type or is out of range.
    """
    model = PARAM_MODELS[node_type]
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        raise ParameterError(format_validation_error(exc)) from None
