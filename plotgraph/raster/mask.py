"""Mask node: keep the parts of a PathSet where a mask is light enough.

Ports:
    paths   the PathSet to filter
    mask    an image-import raster, or paths whose closed outlines act as
            black shapes on white paper

A point passes when its mask luminance is >= ``threshold`` (the opposite
when ``invert``).  With no mask connected everything passes.

Feathering softens the mask edge before thresholding: rasters get a
Gaussian blur with sigma ``feather`` drawing units, polygon masks a linear
ramp of half-width ``feather`` across the outline.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np
import shapely
from shapely.geometry import Polygon
from shapely.ops import unary_union

from plotgraph.graph.params import MaskParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.raster.image import Raster
from plotgraph.utils.geometry import PathSet, split_runs

logger = logging.getLogger(__name__)

LuminanceFn = Callable[[np.ndarray], np.ndarray]


def raster_luminance(raster: Raster, feather: float) -> LuminanceFn:
    """Sampler over the raster's own region; white outside it."""
    if feather > 0:
        h, w = raster.shape
        px_per_unit = (w / raster.width + h / raster.height) / 2.0
        raster = raster.blurred(feather * px_per_unit)

    def sample(points: np.ndarray) -> np.ndarray:
        return raster.sample(points[:, 0], points[:, 1], outside=1.0)

    return sample


def polygon_luminance(outlines: PathSet, feather: float) -> Optional[LuminanceFn]:
    """Sampler for filled outlines: 0 inside, 1 outside, ramped over *feather*.

    Outlines with fewer than 3 points enclose nothing and are skipped.
    Self-intersecting outlines are repaired with ``shapely.make_valid``.
    """
    shapes = [shapely.make_valid(Polygon(p)) for p in outlines if p.shape[0] >= 3]
    shapes = [s for s in shapes if not s.is_empty]
    if not shapes:
        return None
    region = unary_union(shapes)
    shapely.prepare(region)
    boundary = region.boundary

    def sample(points: np.ndarray) -> np.ndarray:
        inside = shapely.contains_xy(region, points[:, 0], points[:, 1])
        if feather <= 0:
            return np.where(inside, 0.0, 1.0)
        dist = shapely.distance(boundary, shapely.points(points))
        signed = np.where(inside, -dist, dist)
        return np.clip(0.5 + signed / (2.0 * feather), 0.0, 1.0)

    return sample


def mask_paths(paths: PathSet, luminance: LuminanceFn, params: MaskParams) -> PathSet:
    out: PathSet = []
    for path in paths:
        keep = luminance(path) >= params.threshold
        if params.invert:
            keep = ~keep
        if params.mode == "paths":
            if keep.all():
                out.append(path)
        else:
            out.extend(split_runs(path, keep))
    return out


def evaluate_mask(params: MaskParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    paths = inputs.paths("paths")
    if not paths:
        return NodeOutput.empty()

    raster = inputs.raster("mask")
    if raster is not None:
        luminance = raster_luminance(raster, params.feather)
    else:
        luminance = polygon_luminance(inputs.paths("mask"), params.feather)
    if luminance is None:
        logger.debug("mask %s has no mask input; passing paths through", ctx.node_id)
        return paths_output(paths)
    return paths_output(mask_paths(paths, luminance, params))
