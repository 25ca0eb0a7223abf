"""Primitive shape generators.

Each evaluator ignores its inputs and returns exactly one Path built from
its parameters.  Closed outlines repeat the first point at the end, so a
circle with ``segments = s`` has ``s + 1`` points.

Angles are in degrees; 0 points along +x and positive angles turn toward
+y (clockwise on a y-down screen).
"""

from __future__ import annotations

import math

import numpy as np

from plotgraph.graph.params import (
    ArcParams,
    CircleParams,
    EllipseParams,
    LineParams,
    PolygonParams,
    RectParams,
)
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output


# ---------------------------------------------------------------------------
# Geometry (plain functions, reused by the script API)
# ---------------------------------------------------------------------------


def ellipse_points(cx: float, cy: float, rx: float, ry: float, segments: int) -> np.ndarray:
    """Closed ellipse outline with ``segments + 1`` points."""
    theta = np.linspace(0.0, 2.0 * math.pi, segments + 1)
    pts = np.column_stack([cx + rx * np.cos(theta), cy + ry * np.sin(theta)])
    pts[-1] = pts[0]
    return pts


def arc_points(
    cx: float, cy: float, radius: float, start_deg: float, end_deg: float, segments: int
) -> np.ndarray:
    """Open arc from *start_deg* to *end_deg*; the sign of the sweep sets direction."""
    theta = np.radians(np.linspace(start_deg, end_deg, segments + 1))
    return np.column_stack([cx + radius * np.cos(theta), cy + radius * np.sin(theta)])


def polygon_points(cx: float, cy: float, radius: float, sides: int) -> np.ndarray:
    """Regular polygon with its first vertex straight up, closed."""
    theta = -math.pi / 2.0 + np.arange(sides + 1) * (2.0 * math.pi / sides)
    pts = np.column_stack([cx + radius * np.cos(theta), cy + radius * np.sin(theta)])
    pts[-1] = pts[0]
    return pts


def rect_points(x: float, y: float, width: float, height: float) -> np.ndarray:
    """Closed rectangle, clockwise on screen from the top-left corner."""
    return np.array(
        [[x, y], [x + width, y], [x + width, y + height], [x, y + height], [x, y]],
        dtype=np.float64,
    )


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------


def evaluate_line(params: LineParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output([np.array([[params.x1, params.y1], [params.x2, params.y2]], dtype=np.float64)])


def evaluate_rect(params: RectParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output([rect_points(params.x, params.y, params.width, params.height)])


def evaluate_circle(params: CircleParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output(
        [ellipse_points(params.cx, params.cy, params.radius, params.radius, params.segments)]
    )


def evaluate_ellipse(params: EllipseParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output(
        [ellipse_points(params.cx, params.cy, params.rx, params.ry, params.segments)]
    )


def evaluate_arc(params: ArcParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output([
        arc_points(
            params.cx, params.cy, params.radius,
            params.start_angle, params.end_angle, params.segments,
        )
    ])


def evaluate_polygon(params: PolygonParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output([polygon_points(params.cx, params.cy, params.radius, params.sides)])
