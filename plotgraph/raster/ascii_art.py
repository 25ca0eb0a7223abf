"""ASCII art: one stroke-font character per cell, picked by darkness."""

from __future__ import annotations

import logging

import numpy as np

from plotgraph.graph.params import AsciiParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.raster.image import Raster
from plotgraph.text.stroke_font import render_text
from plotgraph.utils.geometry import PathSet

logger = logging.getLogger(__name__)


def cell_grid(params: AsciiParams) -> tuple[int, int]:
    """(cols, rows) that fit the output region; at least one of each."""
    cols = max(1, int(params.output_width // params.cell_width))
    rows = max(1, int(params.output_height // params.cell_height))
    return cols, rows


def charset_indices(raster: Raster, params: AsciiParams) -> np.ndarray:
    """Charset index per cell, shape (rows, cols), row 0 at the top of the output.

    The charset runs light to dark, so black cells take the last character
    (the first one when ``invert``).
    """
    cols, rows = cell_grid(params)
    lum = raster.box_resample(cols, rows)
    if params.flip_y:
        lum = lum[::-1, :]
    if params.flip_x:
        lum = lum[:, ::-1]
    darkness = lum if params.invert else 1.0 - lum
    top = len(params.charset) - 1
    return np.clip(np.rint(darkness * top), 0, top).astype(np.int64)


def ascii_paths(raster: Raster, params: AsciiParams) -> PathSet:
    indices = charset_indices(raster, params)
    out: PathSet = []
    rows, cols = indices.shape
    for row in range(rows):
        for col in range(cols):
            char = params.charset[indices[row, col]]
            if char.isspace():
                continue
            out.extend(
                render_text(
                    char,
                    params.x + col * params.cell_width,
                    params.y + row * params.cell_height,
                    params.font_size,
                )
            )
    return out


def evaluate_ascii(params: AsciiParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    raster = inputs.raster()
    if raster is None:
        return NodeOutput.empty()
    return paths_output(ascii_paths(raster, params))
