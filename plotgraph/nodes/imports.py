"""Source nodes fed by the external loaders.

The editor decodes SVG and image files itself; these nodes only receive
the decoded data as parameters.  ``svg-import`` carries already-parsed
outlines, ``image-import`` carries pixels and emits a ``Raster`` for the
image-derived converters (no paths).
"""

from __future__ import annotations

import logging

import numpy as np

from plotgraph.graph.params import ImageImportParams, SvgImportParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.raster.image import Raster

logger = logging.getLogger(__name__)


def evaluate_svg_import(params: SvgImportParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    out = []
    for outline in params.paths:
        if len(outline) < 2:
            continue
        pts = np.asarray(outline, dtype=np.float64) * params.scale
        out.append(pts + (params.offset_x, params.offset_y))
    return paths_output(out)


def evaluate_image_import(params: ImageImportParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """Place the luminance grid at (x, y); extent defaults to the pixel size."""
    lum = params.pixels
    h, w = lum.shape
    raster = Raster(
        lum=lum,
        x=params.x,
        y=params.y,
        width=float(params.width if params.width is not None else w),
        height=float(params.height if params.height is not None else h),
    )
    logger.debug("image %dx%d placed at (%.1f, %.1f)", w, h, params.x, params.y)
    return NodeOutput(paths=[], raster=raster)
