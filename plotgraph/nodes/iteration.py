"""Iteration nodes: fan one upstream PathSet out into many instances.

Every evaluator returns instances in order, each instance holding the
input paths in their input order, so chaining iterations multiplies path
counts (``repeat`` of N over M paths gives N x M paths).  Empty input
gives empty output.

Pivots are the vertex centroid of the whole input PathSet
(``geometry.paths_centroid``).
"""

from __future__ import annotations

import logging
import math

import numpy as np

from plotgraph.graph.params import GridParams, RadialParams, RepeatParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.utils.geometry import (
    PathSet,
    apply_affine,
    paths_centroid,
    pivot_transform,
    rotation,
    translation,
)

logger = logging.getLogger(__name__)


def repeat_instances(
    paths: PathSet,
    count: int,
    offset_x: float,
    offset_y: float,
    rotation_deg: float,
    scale: float,
) -> PathSet:
    """Instances ``T^k(paths)`` for k = 0..count-1.

    ``T`` scales and rotates about the input centroid, then translates by
    (offset_x, offset_y).  Powers compose, so later steps inherit the
    rotation of earlier ones and spirals emerge from a non-zero rotation.
    """
    if not paths:
        return []
    cx, cy = paths_centroid(paths)
    step = pivot_transform(offset_x, offset_y, rotation_deg, scale, cx, cy)

    out: PathSet = []
    current = np.eye(3)
    for _ in range(count):
        out.extend(apply_affine(paths, current))
        current = step @ current
    return out


def evaluate_repeat(params: RepeatParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    paths = inputs.paths()
    return paths_output(
        repeat_instances(
            paths, params.count, params.offset_x, params.offset_y,
            params.rotation, params.scale,
        )
    )


def evaluate_grid(params: GridParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """Place the input centroid on each lattice point, row-major."""
    paths = inputs.paths()
    if not paths:
        return NodeOutput.empty()
    cx, cy = paths_centroid(paths)

    out: PathSet = []
    for row in range(params.rows):
        for col in range(params.cols):
            tx = params.start_x + col * params.spacing_x - cx
            ty = params.start_y + row * params.spacing_y - cy
            out.extend(p + (tx, ty) for p in paths)
    return paths_output(out)


def evaluate_radial(params: RadialParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """Copies around a circle, each turned so its local +x faces outward.

    Copy i sits at angle ``start_angle + 360 * i / count``; it is rotated
    by that angle about its own centroid and then moved onto the circle.
    """
    paths = inputs.paths()
    if not paths:
        return NodeOutput.empty()
    cx, cy = paths_centroid(paths)

    out: PathSet = []
    for i in range(params.count):
        angle = params.start_angle + 360.0 * i / params.count
        rad = math.radians(angle)
        target_x = params.cx + params.radius * math.cos(rad)
        target_y = params.cy + params.radius * math.sin(rad)
        m = translation(target_x - cx, target_y - cy) @ rotation(angle, cx, cy)
        out.extend(apply_affine(paths, m))
    return paths_output(out)
