"""Test shape, iteration, transform, import and text node evaluators.

Tests for plotgraph.nodes:
    - Primitive shapes: point counts, closure, radius, orientation
    - Repeat composes T^k; N copies of M paths give N x M paths
    - Grid and radial placement of the input centroid
    - Translate / rotate / scale
    - svg-import scaling and dropping of degenerate outlines
    - image-import emits a Raster and no paths
    - text and script-text evaluators

Run:
    pytest tests/test_nodes.py -v
"""

from __future__ import annotations

import numpy as np
import pytest

from plotgraph.graph.errors import ParameterError
from plotgraph.graph.model import NodeType
from plotgraph.graph.params import validate_params
from plotgraph.nodes.base import NodeInputs
from plotgraph.nodes.imports import evaluate_image_import, evaluate_svg_import
from plotgraph.nodes.iteration import (
    evaluate_grid,
    evaluate_radial,
    evaluate_repeat,
    repeat_instances,
)
from plotgraph.nodes.shapes import (
    evaluate_arc,
    evaluate_circle,
    evaluate_line,
    evaluate_polygon,
    evaluate_rect,
)
from plotgraph.nodes.text import evaluate_script_text, evaluate_text
from plotgraph.nodes.transforms import evaluate_rotate, evaluate_scale, evaluate_translate
from plotgraph.utils.geometry import paths_centroid


def _params(node_type: NodeType, **raw):
    return validate_params(node_type, raw)


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


class TestShapes:
    def test_circle(self, ctx) -> None:
        params = _params(NodeType.CIRCLE, cx=0, cy=0, radius=5, segments=12)
        (path,) = evaluate_circle(params, NodeInputs(), ctx).paths
        assert path.shape == (13, 2)
        assert np.hypot(path[:, 0], path[:, 1]) == pytest.approx(np.full(13, 5.0))
        assert path[0] == pytest.approx(path[-1])

    def test_line(self, ctx) -> None:
        params = _params(NodeType.LINE, x1=1, y1=2, x2=3, y2=4)
        (path,) = evaluate_line(params, NodeInputs(), ctx).paths
        assert path == pytest.approx([[1.0, 2.0], [3.0, 4.0]])

    def test_rect_closed(self, ctx) -> None:
        params = _params(NodeType.RECT, x=1, y=1, width=4, height=2)
        (path,) = evaluate_rect(params, NodeInputs(), ctx).paths
        assert path.shape == (5, 2)
        assert path[0] == pytest.approx(path[-1])
        assert path[2] == pytest.approx([5.0, 3.0])

    def test_arc_starts_on_start_angle(self, ctx) -> None:
        params = _params(NodeType.ARC, cx=0, cy=0, radius=10, startAngle=0, endAngle=90, segments=8)
        (path,) = evaluate_arc(params, NodeInputs(), ctx).paths
        assert path.shape == (9, 2)
        assert path[0] == pytest.approx([10.0, 0.0])
        # Positive sweep turns toward +y
        assert path[-1] == pytest.approx([0.0, 10.0], abs=1e-9)

    def test_polygon_first_vertex_up(self, ctx) -> None:
        params = _params(NodeType.POLYGON, sides=6, cx=0, cy=0, radius=10)
        (path,) = evaluate_polygon(params, NodeInputs(), ctx).paths
        assert path.shape == (7, 2)
        assert path[0] == pytest.approx([0.0, -10.0], abs=1e-9)

    def test_polygon_too_few_sides(self) -> None:
        with pytest.raises(ParameterError):
            _params(NodeType.POLYGON, sides=2)


# ---------------------------------------------------------------------------
# Iteration
# ---------------------------------------------------------------------------


class TestRepeat:
    def test_offsets_accumulate(self, ctx, square, make_inputs) -> None:
        params = _params(NodeType.REPEAT, count=3, offsetX=10, offsetY=0)
        out = evaluate_repeat(params, make_inputs(square), ctx).paths
        assert len(out) == 3
        for k, path in enumerate(out):
            assert path == pytest.approx(square + (10.0 * k, 0.0))

    def test_counts_multiply(self, ctx, square, make_inputs) -> None:
        params = _params(NodeType.REPEAT, count=4)
        out = evaluate_repeat(params, make_inputs(square, square + 50.0), ctx).paths
        assert len(out) == 8
        # Instance order, input order within each instance
        assert out[1] == pytest.approx(square + 50.0)

    def test_rotation_composes(self, square) -> None:
        out = repeat_instances([square], 3, 0.0, 0.0, 90.0, 1.0)
        # 90 deg clockwise about (5, 5) moves (0, 0) to (10, 0)
        assert out[1][0] == pytest.approx([10.0, 0.0], abs=1e-9)
        # Two steps make a half turn
        assert out[2][0] == pytest.approx([10.0, 10.0], abs=1e-9)

    def test_scale_compounds(self, square) -> None:
        out = repeat_instances([square], 3, 0.0, 0.0, 0.0, 2.0)
        widths = [p[:, 0].max() - p[:, 0].min() for p in out]
        assert widths == pytest.approx([10.0, 20.0, 40.0])

    def test_empty_input(self, ctx) -> None:
        params = _params(NodeType.REPEAT, count=5)
        assert evaluate_repeat(params, NodeInputs(), ctx).paths == []


class TestGrid:
    def test_row_major_placement(self, ctx, square, make_inputs) -> None:
        params = _params(NodeType.GRID, cols=2, rows=3, spacingX=30, spacingY=20)
        out = evaluate_grid(params, make_inputs(square), ctx).paths
        assert len(out) == 6
        assert paths_centroid([out[0]]) == pytest.approx((0.0, 0.0))
        assert paths_centroid([out[1]]) == pytest.approx((30.0, 0.0))
        assert paths_centroid([out[2]]) == pytest.approx((0.0, 20.0))
        assert paths_centroid([out[5]]) == pytest.approx((30.0, 40.0))

    def test_empty_input(self, ctx) -> None:
        assert evaluate_grid(_params(NodeType.GRID), NodeInputs(), ctx).paths == []


class TestRadial:
    def test_copies_on_circle(self, ctx, square, make_inputs) -> None:
        params = _params(NodeType.RADIAL, count=4, cx=0, cy=0, radius=10)
        out = evaluate_radial(params, make_inputs(square), ctx).paths
        assert len(out) == 4
        targets = [(10.0, 0.0), (0.0, 10.0), (-10.0, 0.0), (0.0, -10.0)]
        for path, target in zip(out, targets):
            assert paths_centroid([path]) == pytest.approx(target, abs=1e-9)

    def test_copies_face_outward(self, ctx, make_inputs) -> None:
        arrow = np.array([[0.0, 0.0], [2.0, 0.0]])
        params = _params(NodeType.RADIAL, count=4, cx=0, cy=0, radius=10)
        out = evaluate_radial(params, make_inputs(arrow), ctx).paths
        # Copy at 90 deg points along +y
        direction = out[1][1] - out[1][0]
        assert direction == pytest.approx([0.0, 2.0], abs=1e-9)

    def test_empty_input(self, ctx) -> None:
        assert evaluate_radial(_params(NodeType.RADIAL), NodeInputs(), ctx).paths == []


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


class TestTransforms:
    def test_translate(self, ctx, square, make_inputs) -> None:
        out = evaluate_translate(_params(NodeType.TRANSLATE, dx=3, dy=-2), make_inputs(square), ctx)
        assert out.paths[0] == pytest.approx(square + (3.0, -2.0))

    def test_rotate(self, ctx, make_inputs) -> None:
        seg = np.array([[1.0, 0.0], [2.0, 0.0]])
        out = evaluate_rotate(_params(NodeType.ROTATE, angle=90), make_inputs(seg), ctx)
        assert out.paths[0] == pytest.approx([[0.0, 1.0], [0.0, 2.0]], abs=1e-12)

    def test_scale_about_pivot(self, ctx, square, make_inputs) -> None:
        params = _params(NodeType.SCALE, sx=2, sy=0.5, cx=5, cy=5)
        out = evaluate_scale(params, make_inputs(square), ctx).paths[0]
        assert out[0] == pytest.approx([-5.0, 2.5])
        assert out[2] == pytest.approx([15.0, 7.5])

    def test_multiple_inputs_concatenate(self, ctx, square, make_inputs) -> None:
        out = evaluate_translate(_params(NodeType.TRANSLATE), make_inputs(square, square), ctx)
        assert len(out.paths) == 2


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


class TestImports:
    def test_svg_import(self, ctx) -> None:
        params = _params(
            NodeType.SVG_IMPORT,
            paths=[[(0, 0), (1, 1)], [(5, 5)]],
            scale=2,
            offsetX=1,
            offsetY=1,
        )
        out = evaluate_svg_import(params, NodeInputs(), ctx).paths
        assert len(out) == 1
        assert out[0] == pytest.approx([[1.0, 1.0], [3.0, 3.0]])

    def test_image_import(self, ctx) -> None:
        pixels = np.zeros((4, 8), dtype=np.uint8)
        params = _params(NodeType.IMAGE_IMPORT, pixels=pixels, x=5, width=100)
        out = evaluate_image_import(params, NodeInputs(), ctx)
        assert out.paths == []
        assert out.raster is not None
        assert out.raster.shape == (4, 8)
        assert (out.raster.x, out.raster.width, out.raster.height) == (5.0, 100.0, 4.0)
        assert out.raster.lum.max() == 0.0

    def test_image_import_bad_pixels(self) -> None:
        with pytest.raises(ParameterError, match="pixels"):
            _params(NodeType.IMAGE_IMPORT, pixels=np.zeros((2, 2, 2)))


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class TestTextNodes:
    def test_text(self, ctx) -> None:
        params = _params(NodeType.TEXT, text="A", x=0, y=0, size=10)
        out = evaluate_text(params, NodeInputs(), ctx).paths
        assert len(out) == 2
        pts = np.vstack(out)
        assert pts[:, 0].min() >= 0.0 and pts[:, 0].max() <= 10.0
        assert pts[:, 1].min() >= 0.0 and pts[:, 1].max() <= 14.0

    def test_script_text(self, ctx) -> None:
        out = evaluate_script_text(_params(NodeType.SCRIPT_TEXT, text="horas"), NodeInputs(), ctx)
        assert len(out.paths) > 0
        assert all(p.shape[0] >= 2 for p in out.paths)

    def test_script_text_glyph_override(self, ctx) -> None:
        glyphs = {"U+1BC2": {"paths": [[[0, 0], [1, 0]]], "advance": 1.0}}
        params = _params(NodeType.SCRIPT_TEXT, text="h", x=0, y=0, size=10, glyphs=glyphs)
        out = evaluate_script_text(params, NodeInputs(), ctx).paths
        assert len(out) == 1
        assert out[0] == pytest.approx([[0.0, 0.0], [10.0, 0.0]])

    def test_script_text_bad_glyph_key(self) -> None:
        with pytest.raises(ParameterError, match="zz"):
            _params(NodeType.SCRIPT_TEXT, glyphs={"zz": {"paths": []}})

    def test_script_text_bad_anchor(self) -> None:
        with pytest.raises(ParameterError, match="anchor"):
            _params(NodeType.SCRIPT_TEXT, glyphs={"x": {"anchor": {"mode": "left"}}})
