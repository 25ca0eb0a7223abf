"""Strange attractors traced as a single polyline.

Provides:
    - PRESETS: named (a, b, c, d) coefficient sets per family
    - START_POINTS: fixed orbit seed per family
    - step(): one iteration of a family's recurrence
    - trace(): raw orbit as an (N, 2) array
    - evaluate_attractor(): node evaluator (scale + placement)

The orbit is deterministic: identical parameters give byte-identical
points.  Iteration stops early when a coordinate becomes non-finite or
exceeds ``limits.attractor_divergence`` in magnitude.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Tuple

import numpy as np

from plotgraph.graph.errors import ParameterError
from plotgraph.graph.params import AttractorParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output

logger = logging.getLogger(__name__)

Coefficients = Tuple[float, float, float, float]

PRESETS: Dict[str, Dict[str, Coefficients]] = {
    "clifford": {
        "classic": (-1.4, 1.6, 1.0, 0.7),
        "spiral": (1.7, 1.7, 0.6, 1.2),
        "leaf": (-1.7, 1.3, -0.1, -1.2),
        "wings": (1.5, -1.8, 1.6, 0.9),
    },
    "dejong": {
        "classic": (-2.0, -2.0, -1.2, 2.0),
        "swirl": (1.4, -2.3, 2.4, -2.1),
        "heart": (-2.7, -0.09, -0.86, -2.2),
    },
    "bedhead": {
        "classic": (-0.81, -0.92, 0.0, 0.0),
        "swirl": (0.06, 0.98, 0.0, 0.0),
    },
    "tinkerbell": {
        "classic": (0.9, -0.6, 2.0, 0.5),
        "tight": (0.3, 0.6, 2.0, 0.27),
    },
    "gumowski": {
        "classic": (-0.2, 0.01, 0.0, 0.0),
        "complex": (0.008, 0.05, 0.0, 0.0),
    },
}

START_POINTS: Dict[str, Tuple[float, float]] = {
    "clifford": (0.1, 0.1),
    "dejong": (0.1, 0.1),
    "bedhead": (1.0, 1.0),
    "tinkerbell": (-0.72, -0.64),
    "gumowski": (0.1, 0.1),
}


# ---------------------------------------------------------------------------
# Recurrences
# ---------------------------------------------------------------------------


def _clifford(x, y, a, b, c, d):
    return math.sin(a * y) + c * math.cos(a * x), math.sin(b * x) + d * math.cos(b * y)


def _dejong(x, y, a, b, c, d):
    return math.sin(a * y) - math.cos(b * x), math.sin(c * x) - math.cos(d * y)


def _bedhead(x, y, a, b, c, d):
    return math.sin(x * y / b) * y + math.cos(a * x - y), x + math.sin(y) / b


def _tinkerbell(x, y, a, b, c, d):
    return x * x - y * y + a * x + b * y, 2.0 * x * y + c * x + d * y


def _gumowski(x, y, a, b, c, d):
    def g(v):
        return a * v + 2.0 * (1.0 - a) * v * v / (1.0 + v * v)

    nx = b * y + g(x)
    return nx, -x + g(nx)


_RECURRENCES: Dict[str, Callable[..., Tuple[float, float]]] = {
    "clifford": _clifford,
    "dejong": _dejong,
    "bedhead": _bedhead,
    "tinkerbell": _tinkerbell,
    "gumowski": _gumowski,
}


def step(family: str, x: float, y: float, coeffs: Coefficients) -> Tuple[float, float]:
    """Apply one iteration of *family* to (x, y)."""
    return _RECURRENCES[family](x, y, *coeffs)


def resolve_coefficients(params: AttractorParams) -> Coefficients:
    """Fill unset coefficients from the family's classic preset."""
    preset = PRESETS[params.type]["classic"]
    given = (params.a, params.b, params.c, params.d)
    coeffs = tuple(p if v is None else float(v) for v, p in zip(given, preset))
    if params.type == "bedhead" and coeffs[1] == 0.0:
        raise ParameterError("bedhead attractor requires b != 0")
    return coeffs  # type: ignore[return-value]


def trace(
    family: str,
    coeffs: Coefficients,
    iterations: int,
    divergence: float = 1.0e6,
) -> np.ndarray:
    """Orbit of *family* from its start point.

    Parameters
    ----------
    family : str
        Key of ``START_POINTS``.
    coeffs : tuple
        (a, b, c, d).
    iterations : int
        Maximum number of points, the start point included.
    divergence : float
        Magnitude above which the orbit is treated as escaped.

    Returns
    -------
    np.ndarray
        float64 (N, 2) with 1 <= N <= iterations.
    """
    x, y = START_POINTS[family]
    pts = np.empty((iterations, 2), dtype=np.float64)
    pts[0] = (x, y)
    n = 1
    while n < iterations:
        try:
            x, y = step(family, x, y, coeffs)
        except (OverflowError, ValueError):
            break
        if not (math.isfinite(x) and math.isfinite(y)) or abs(x) > divergence or abs(y) > divergence:
            break
        pts[n] = (x, y)
        n += 1
    if n < iterations:
        logger.debug("%s orbit diverged after %d points", family, n)
    return pts[:n]


def evaluate_attractor(params: AttractorParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    limits = ctx.config.limits
    coeffs = resolve_coefficients(params)
    iterations = min(params.iterations, limits.max_attractor_iterations)
    pts = trace(params.type, coeffs, iterations, limits.attractor_divergence) * params.scale

    if params.recenter and pts.shape[0]:
        mid = (pts.min(axis=0) + pts.max(axis=0)) / 2.0
        pts = pts - mid
    pts = pts + (params.center_x, params.center_y)
    return paths_output([pts])
