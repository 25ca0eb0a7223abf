"""Wave halftone: parallel carrier lines whose amplitude follows darkness.

The output region ``[x, x + output_width] x [y, y + output_height]`` is
covered by lines at ``angle`` spaced ``line_spacing`` apart.  Each line is
sampled densely; at each sample the image is read bilinearly, darkness is
turned into an amplitude in ``[min_amplitude, max_amplitude]`` and the
carrier waveform is displaced along the line normal by that amplitude.

The whole image is stretched over the output region.  ``flip_y`` (on by
default) reads the image bottom row first, matching consumers that flip
the y axis when drawing.

Used by:
    - plotgraph.engine.dispatch (halftone node)
"""

from __future__ import annotations

import logging
import math

import numpy as np

from plotgraph.graph.params import HalftoneParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.raster.image import Raster
from plotgraph.utils.geometry import PathSet, split_runs

logger = logging.getLogger(__name__)

SAMPLES_PER_WAVE = 8


def carrier(mode: str, phase: np.ndarray) -> np.ndarray:
    """Unit waveform in [-1, 1]; *phase* is in cycles."""
    frac = np.mod(phase, 1.0)
    if mode == "sine":
        return np.sin(2.0 * np.pi * phase)
    if mode == "zigzag":
        return 2.0 * frac - 1.0
    if mode == "triangle":
        return 1.0 - 4.0 * np.abs(frac - 0.5)
    if mode == "square":
        return np.where(frac < 0.5, 1.0, -1.0)
    raise ValueError(f"Unknown halftone mode: {mode}")


def halftone_paths(raster: Raster, params: HalftoneParams) -> PathSet:
    """Trace halftone lines over the output region.

    Parameters
    ----------
    raster : Raster
        Source luminance; only its grid is used, not its placement.
    params : HalftoneParams
        Layout and waveform settings.

    Returns
    -------
    list[np.ndarray]
        One path per pen-down run, lines in order of their normal offset.
    """
    w, h = params.output_width, params.output_height
    cx, cy = params.x + w / 2.0, params.y + h / 2.0
    half_diag = math.hypot(w, h) / 2.0

    rad = math.radians(params.angle)
    direction = np.array([math.cos(rad), math.sin(rad)])
    normal = np.array([-math.sin(rad), math.cos(rad)])

    du = min(2.0 * half_diag / params.sample_resolution, params.wave_length / SAMPLES_PER_WAVE)
    along = np.arange(-half_diag, half_diag + du / 2.0, du)
    phase = (along + half_diag) / params.wave_length
    wave = carrier(params.mode, phase)
    amp_range = params.max_amplitude - params.min_amplitude

    out: PathSet = []
    offset = -half_diag
    while offset <= half_diag:
        base = np.array([cx, cy]) + normal * offset + along[:, None] * direction
        u = (base[:, 0] - params.x) / w
        v = (base[:, 1] - params.y) / h
        inside = (u >= 0.0) & (u <= 1.0) & (v >= 0.0) & (v <= 1.0)
        if inside.any():
            su = 1.0 - u if params.flip_x else u
            sv = 1.0 - v if params.flip_y else v
            lum = raster.sample_unit(su, sv, outside=1.0)
            darkness = lum if params.invert else 1.0 - lum
            amp = np.clip(
                params.min_amplitude + darkness * amp_range,
                params.min_amplitude,
                params.max_amplitude,
            )
            pts = base + (amp * wave)[:, None] * normal
            keep = inside
            if params.skip_white:
                keep = keep & (darkness > 1.0 - params.white_threshold)
            out.extend(split_runs(pts, keep))
        offset += params.line_spacing
    return out


def evaluate_halftone(params: HalftoneParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    raster = inputs.raster()
    if raster is None:
        logger.debug("halftone %s has no image input", ctx.node_id)
        return NodeOutput.empty()
    paths = halftone_paths(raster, params)
    logger.debug("halftone: %d runs", len(paths))
    return paths_output(paths)
