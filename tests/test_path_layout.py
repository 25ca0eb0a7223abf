"""Test laying paths along curves.

Tests for plotgraph.generators.path_layout:
    - Curve sampling (circle, line, wave, arc) and measured length
    - Warp maps input x to arc length and y to the normal
    - Alignment and reversal
    - Distribute spaces whole paths evenly and turns them to the tangent
    - Empty input and zero-length curves

Run:
    pytest tests/test_path_layout.py -v
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from plotgraph.generators.path_layout import (
    curve_length,
    distribute_paths,
    evaluate_path_layout,
    point_on_curve,
    warp_paths,
)
from plotgraph.graph.model import NodeType
from plotgraph.graph.params import PathLayoutParams, validate_params
from plotgraph.nodes.base import NodeInputs
from plotgraph.utils.geometry import paths_centroid


def _layout(**raw) -> PathLayoutParams:
    return validate_params(NodeType.PATH_LAYOUT, raw)


@pytest.fixture
def line_layout() -> PathLayoutParams:
    """Horizontal line of length 100 along y = 0."""
    return _layout(pathType="line", x1=0, y1=0, x2=100, y2=0)


class TestCurves:
    def test_circle_starts_at_top(self) -> None:
        params = _layout(pathType="circle", cx=0, cy=0, radius=10)
        x, y, tangent = point_on_curve(params, 0.0)
        assert (x, y) == pytest.approx((0.0, -10.0), abs=1e-9)
        assert tangent == pytest.approx(0.0)

    def test_circle_quarter_turn(self) -> None:
        params = _layout(pathType="circle", cx=0, cy=0, radius=10)
        x, y, tangent = point_on_curve(params, 0.25)
        assert (x, y) == pytest.approx((10.0, 0.0), abs=1e-9)
        assert tangent == pytest.approx(90.0)

    def test_t_is_clamped(self, line_layout: PathLayoutParams) -> None:
        assert point_on_curve(line_layout, 1.5)[:2] == pytest.approx((100.0, 0.0))
        assert point_on_curve(line_layout, -1.0)[:2] == pytest.approx((0.0, 0.0))

    def test_line_length(self, line_layout: PathLayoutParams) -> None:
        assert curve_length(line_layout) == pytest.approx(100.0)

    def test_circle_length_from_samples(self) -> None:
        params = _layout(pathType="circle", cx=0, cy=0, radius=10)
        expected = 100 * 2 * 10 * math.sin(math.pi / 100)
        assert curve_length(params) == pytest.approx(expected)

    def test_wave_width(self) -> None:
        params = _layout(pathType="wave", cx=50, cy=20, radius=10, amplitude=5)
        assert point_on_curve(params, 0.0)[:2] == pytest.approx((35.0, 20.0))
        assert point_on_curve(params, 1.0)[0] == pytest.approx(65.0)

    def test_arc_direction(self) -> None:
        params = _layout(pathType="arc", cx=0, cy=0, radius=10, startAngle=0, endAngle=90)
        x, y, tangent = point_on_curve(params, 1.0)
        assert (x, y) == pytest.approx((0.0, 10.0), abs=1e-9)
        assert tangent == pytest.approx(180.0)


class TestWarp:
    def test_x_maps_to_arc_length(self, line_layout: PathLayoutParams) -> None:
        out = warp_paths([np.array([[0.0, 5.0], [10.0, 5.0]])], line_layout)
        assert out[0] == pytest.approx([[0.0, 0.0], [10.0, 0.0]], abs=1e-9)

    def test_y_maps_to_normal(self, line_layout: PathLayoutParams) -> None:
        out = warp_paths([np.array([[0.0, 0.0], [10.0, 4.0]])], line_layout)
        # Box centre y = 2; the lower point stays below the line
        assert out[0] == pytest.approx([[0.0, -2.0], [10.0, 2.0]], abs=1e-9)

    def test_spacing_stretches(self) -> None:
        params = _layout(pathType="line", x1=0, y1=0, x2=100, y2=0, spacing=2)
        out = warp_paths([np.array([[0.0, 0.0], [10.0, 0.0]])], params)
        assert out[0][-1] == pytest.approx([20.0, 0.0], abs=1e-9)

    def test_align_end(self) -> None:
        params = _layout(pathType="line", x1=0, y1=0, x2=100, y2=0, align="end")
        out = warp_paths([np.array([[0.0, 0.0], [10.0, 0.0]])], params)
        assert out[0] == pytest.approx([[90.0, 0.0], [100.0, 0.0]], abs=1e-9)

    def test_align_center(self) -> None:
        params = _layout(pathType="line", x1=0, y1=0, x2=100, y2=0, align="center")
        out = warp_paths([np.array([[0.0, 0.0], [10.0, 0.0]])], params)
        assert out[0] == pytest.approx([[45.0, 0.0], [55.0, 0.0]], abs=1e-9)

    def test_reverse(self) -> None:
        params = _layout(pathType="line", x1=0, y1=0, x2=100, y2=0, reverse=True)
        out = warp_paths([np.array([[0.0, 0.0], [10.0, 0.0]])], params)
        assert out[0] == pytest.approx([[100.0, 0.0], [90.0, 0.0]], abs=1e-9)

    def test_onto_circle(self) -> None:
        params = _layout(pathType="circle", cx=0, cy=0, radius=10)
        out = warp_paths([np.array([[0.0, 0.0], [5.0, 0.0]])], params)
        radii = np.hypot(out[0][:, 0], out[0][:, 1])
        assert radii == pytest.approx([10.0, 10.0])

    def test_zero_length_curve(self) -> None:
        params = _layout(pathType="line", x1=5, y1=5, x2=5, y2=5)
        assert warp_paths([np.array([[0.0, 0.0], [1.0, 0.0]])], params) == []


class TestDistribute:
    def test_even_pitch(self) -> None:
        params = _layout(pathType="line", x1=0, y1=50, x2=100, y2=50, mode="distribute")
        paths = [np.array([[10.0 * i, 0.0], [10.0 * i + 10.0, 0.0]]) for i in range(3)]
        out = distribute_paths(paths, params)
        assert len(out) == 3
        for i, path in enumerate(out):
            assert paths_centroid([path]) == pytest.approx((10.0 * i + 5.0, 50.0))

    def test_turned_to_tangent(self) -> None:
        params = _layout(pathType="line", x1=0, y1=0, x2=0, y2=100, mode="distribute")
        out = distribute_paths([np.array([[0.0, 0.0], [4.0, 0.0]])], params)
        direction = out[0][1] - out[0][0]
        # Line runs along +y, so the path turns 90 degrees
        assert direction == pytest.approx([0.0, 4.0], abs=1e-9)


class TestNode:
    def test_empty_input(self, ctx) -> None:
        assert evaluate_path_layout(_layout(), NodeInputs(), ctx).paths == []

    def test_mode_dispatch(self, ctx, square, make_inputs) -> None:
        params = _layout(pathType="line", x1=0, y1=0, x2=100, y2=0, mode="distribute")
        out = evaluate_path_layout(params, make_inputs(square), ctx).paths
        assert len(out) == 1
        # One path of width 10 is centred at arc length 5
        assert paths_centroid(out) == pytest.approx((5.0, 0.0))
