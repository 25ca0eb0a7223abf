"""Lay input paths along a parametric curve (text on a path).

Provides:
    - point_on_curve(): position and tangent angle at t in [0, 1]
    - curve_length(): length from 100-segment sampling
    - warp_paths(): bend every point onto the curve
    - distribute_paths(): move whole paths onto the curve
    - evaluate_path_layout(): node evaluator

Curves (all parameters from ``PathLayoutParams``):
    circle  full circle from the top, clockwise on screen
    arc     start_angle -> end_angle about (cx, cy)
    line    (x1, y1) -> (x2, y2)
    wave    sine across a width of 3 * radius centred on cx
    spiral  ``turns`` turns, radius growing from ``growth`` to growth + radius

The input's horizontal extent maps to arc length: one drawing unit of
input covers one unit along the curve (times ``spacing``), starting at
the curve start, centred, or ending at the curve end per ``align``.
"""

from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np

from plotgraph.graph.params import PathLayoutParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.utils.geometry import (
    PathSet,
    apply_affine,
    paths_bbox,
    paths_centroid,
    polyline_length,
    rotation,
    translation,
)

logger = logging.getLogger(__name__)

LENGTH_SAMPLES = 100


def point_on_curve(params: PathLayoutParams, t: float) -> Tuple[float, float, float]:
    """(x, y, tangent_deg) at parameter *t* (clamped to [0, 1])."""
    t = min(1.0, max(0.0, t))
    cx, cy, r = params.cx, params.cy, params.radius
    kind = params.path_type

    if kind == "circle":
        a = -math.pi / 2.0 + t * 2.0 * math.pi
        return cx + math.cos(a) * r, cy + math.sin(a) * r, math.degrees(a) + 90.0
    if kind == "arc":
        start = math.radians(params.start_angle)
        end = math.radians(params.end_angle)
        a = start + t * (end - start)
        tangent = math.degrees(a) + (90.0 if end >= start else -90.0)
        return cx + math.cos(a) * r, cy + math.sin(a) * r, tangent
    if kind == "line":
        dx = params.x2 - params.x1
        dy = params.y2 - params.y1
        return params.x1 + t * dx, params.y1 + t * dy, math.degrees(math.atan2(dy, dx))
    if kind == "wave":
        width = r * 3.0
        phase = t * 2.0 * math.pi * params.frequency
        x = cx - width / 2.0 + t * width
        y = cy + math.sin(phase) * params.amplitude
        if width > 0:
            slope = params.amplitude * params.frequency * 2.0 * math.pi / width * math.cos(phase)
            tangent = math.degrees(math.atan(slope))
        else:
            tangent = 90.0
        return x, y, tangent
    # spiral
    a = t * 2.0 * math.pi * params.turns
    rad = params.growth + t * r
    x = cx + math.cos(a) * rad
    y = cy + math.sin(a) * rad
    # d/dt of the position, so the tangent includes the radial growth
    dxdt = r * math.cos(a) - rad * math.sin(a) * 2.0 * math.pi * params.turns
    dydt = r * math.sin(a) + rad * math.cos(a) * 2.0 * math.pi * params.turns
    if dxdt == 0.0 and dydt == 0.0:
        return x, y, math.degrees(a) + 90.0
    return x, y, math.degrees(math.atan2(dydt, dxdt))


def curve_length(params: PathLayoutParams) -> float:
    pts = np.array(
        [point_on_curve(params, i / LENGTH_SAMPLES)[:2] for i in range(LENGTH_SAMPLES + 1)]
    )
    return polyline_length(pts)


def _start_t(params: PathLayoutParams, span: float, length: float) -> float:
    if params.align == "center":
        return 0.5 - span / length / 2.0
    if params.align == "end":
        return 1.0 - span / length
    return 0.0


def _place(params: PathLayoutParams, t: float) -> Tuple[float, float, float]:
    """Curve sample honouring ``reverse`` (heading flips with direction)."""
    if params.reverse:
        x, y, tangent = point_on_curve(params, 1.0 - t)
        return x, y, tangent + 180.0
    return point_on_curve(params, t)


def warp_paths(paths: PathSet, params: PathLayoutParams) -> PathSet:
    """Bend *paths* so the bounding-box x axis follows the curve.

    A point's x-offset from the box's left edge becomes arc length along
    the curve; its y-offset from the box centre becomes a displacement
    along the curve normal (tangent turned +90 degrees, so points below
    the centre stay below the curve on a left-to-right line).
    """
    length = curve_length(params)
    if length <= 0:
        return []
    xmin, ymin, xmax, ymax = paths_bbox(paths)
    mid_y = (ymin + ymax) / 2.0
    span = (xmax - xmin) * params.spacing
    t0 = _start_t(params, span, length)

    out: PathSet = []
    for path in paths:
        warped = np.empty_like(path)
        for i, (px, py) in enumerate(path):
            t = t0 + (px - xmin) * params.spacing / length
            x, y, tangent = _place(params, t)
            rad = math.radians(tangent)
            off = py - mid_y
            warped[i] = (x - math.sin(rad) * off, y + math.cos(rad) * off)
        out.append(warped)
    return out


def distribute_paths(paths: PathSet, params: PathLayoutParams) -> PathSet:
    """Move each path so its centroid sits on the curve, turned to the tangent.

    Paths are spaced evenly: the input width divided by the path count,
    times ``spacing``, per path.
    """
    length = curve_length(params)
    if length <= 0:
        return []
    xmin, _, xmax, _ = paths_bbox(paths)
    n = len(paths)
    pitch = (xmax - xmin) / n * params.spacing
    t0 = _start_t(params, pitch * n, length)

    out: PathSet = []
    for i, path in enumerate(paths):
        cx, cy = paths_centroid([path])
        x, y, tangent = _place(params, t0 + (i + 0.5) * pitch / length)
        m = translation(x - cx, y - cy) @ rotation(tangent, cx, cy)
        out.extend(apply_affine([path], m))
    return out


def evaluate_path_layout(params: PathLayoutParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    paths = inputs.paths()
    if not paths:
        return NodeOutput.empty()
    if params.mode == "distribute":
        return paths_output(distribute_paths(paths, params))
    return paths_output(warp_paths(paths, params))
