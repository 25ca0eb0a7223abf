"""Node type -> evaluator table.

Every ``NodeType`` must have an entry; a missing one fails at import.
"""

from __future__ import annotations

from plotgraph.generators.attractor import evaluate_attractor
from plotgraph.generators.bytebeat import evaluate_bytebeat
from plotgraph.generators.lsystem import evaluate_lsystem
from plotgraph.generators.path_layout import evaluate_path_layout
from plotgraph.graph.model import NodeType
from plotgraph.graph.params import OutputParams
from plotgraph.nodes.base import EvalContext, Evaluator, NodeInputs, NodeOutput, paths_output
from plotgraph.nodes.imports import evaluate_image_import, evaluate_svg_import
from plotgraph.nodes.iteration import evaluate_grid, evaluate_radial, evaluate_repeat
from plotgraph.nodes.shapes import (
    evaluate_arc,
    evaluate_circle,
    evaluate_ellipse,
    evaluate_line,
    evaluate_polygon,
    evaluate_rect,
)
from plotgraph.nodes.text import evaluate_script_text, evaluate_text
from plotgraph.nodes.transforms import evaluate_rotate, evaluate_scale, evaluate_translate
from plotgraph.raster.ascii_art import evaluate_ascii
from plotgraph.raster.halftone import evaluate_halftone
from plotgraph.raster.mask import evaluate_mask
from plotgraph.sandbox.runner import evaluate_custom_code


def evaluate_output(params: OutputParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """Concatenate every input in edge order."""
    return paths_output(inputs.paths())


EVALUATORS: dict[NodeType, Evaluator] = {
    NodeType.LINE: evaluate_line,
    NodeType.RECT: evaluate_rect,
    NodeType.CIRCLE: evaluate_circle,
    NodeType.ELLIPSE: evaluate_ellipse,
    NodeType.ARC: evaluate_arc,
    NodeType.POLYGON: evaluate_polygon,
    NodeType.TEXT: evaluate_text,
    NodeType.SCRIPT_TEXT: evaluate_script_text,
    NodeType.REPEAT: evaluate_repeat,
    NodeType.GRID: evaluate_grid,
    NodeType.RADIAL: evaluate_radial,
    NodeType.TRANSLATE: evaluate_translate,
    NodeType.ROTATE: evaluate_rotate,
    NodeType.SCALE: evaluate_scale,
    NodeType.PATH_LAYOUT: evaluate_path_layout,
    NodeType.BYTEBEAT: evaluate_bytebeat,
    NodeType.ATTRACTOR: evaluate_attractor,
    NodeType.L_SYSTEM: evaluate_lsystem,
    NodeType.CUSTOM_CODE: evaluate_custom_code,
    NodeType.SVG_IMPORT: evaluate_svg_import,
    NodeType.IMAGE_IMPORT: evaluate_image_import,
    NodeType.HALFTONE: evaluate_halftone,
    NodeType.ASCII: evaluate_ascii,
    NodeType.MASK: evaluate_mask,
    NodeType.OUTPUT: evaluate_output,
}

_missing = set(NodeType) - set(EVALUATORS)
if _missing:
    raise RuntimeError(f"No evaluator for node types: {sorted(t.value for t in _missing)}")
