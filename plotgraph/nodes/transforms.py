"""Single affine transforms applied to every point of every input path."""

from __future__ import annotations

from plotgraph.graph.params import RotateParams, ScaleParams, TranslateParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.utils.geometry import apply_affine, rotation, scaling


def evaluate_translate(params: TranslateParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output([p + (params.dx, params.dy) for p in inputs.paths()])


def evaluate_rotate(params: RotateParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """Rotate about (cx, cy); positive angles turn clockwise on screen."""
    return paths_output(apply_affine(inputs.paths(), rotation(params.angle, params.cx, params.cy)))


def evaluate_scale(params: ScaleParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output(
        apply_affine(inputs.paths(), scaling(params.sx, params.sy, params.cx, params.cy))
    )
