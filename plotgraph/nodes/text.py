"""Text nodes: stroke-font Latin text and transliterated Batak script."""

from __future__ import annotations

from plotgraph.graph.params import ScriptTextParams, TextParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.text.script_glyphs import parse_glyph_table
from plotgraph.text.script_text import render_script_text
from plotgraph.text.stroke_font import render_text


def evaluate_text(params: TextParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    return paths_output(
        render_text(
            params.text, params.x, params.y, params.size,
            spacing=params.spacing, line_height=params.line_height,
        )
    )


def evaluate_script_text(params: ScriptTextParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """Render *text* in Toba Batak; ``glyphs`` overrides individual entries."""
    table = parse_glyph_table(params.glyphs) if params.glyphs else None
    return paths_output(render_script_text(params.text, params.x, params.y, params.size, table))
