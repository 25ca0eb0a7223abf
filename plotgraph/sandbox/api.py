"""Helper API handed to custom-code scripts as ``api``.

Scripts work with plain Python data: a path is a list of ``(x, y)``
tuples and a path set is a list of paths.  Every helper accepts that form
(or numpy arrays) and returns it.

Randomness is reproducible: ``random`` and the Perlin permutation behind
``noise`` both come from ``numpy.random.default_rng`` seeded with the
node's seed, so a script gives the same drawing on every run until it
calls ``random_seed`` / ``noise_seed`` itself.

Segment and side counts are clamped to the ranges the shape nodes accept
(3-360 segments, 1-360 for arcs, 3-100 sides).

Angles are degrees throughout, including ``sin``, ``cos``, ``tan`` and
``atan2``.
"""

from __future__ import annotations

import math
from types import SimpleNamespace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from plotgraph.nodes.shapes import arc_points, ellipse_points, polygon_points, rect_points
from plotgraph.utils import geometry

Point = Tuple[float, float]
ScriptPath = List[Point]


def to_script(paths: Sequence[np.ndarray]) -> List[ScriptPath]:
    """Engine paths -> lists of float tuples."""
    return [[(float(x), float(y)) for x, y in p] for p in paths]


def _pts(path) -> ScriptPath:
    return [(float(x), float(y)) for x, y in np.asarray(path, dtype=np.float64).reshape(-1, 2)]


def _arrays(paths) -> List[np.ndarray]:
    return [np.asarray(p, dtype=np.float64).reshape(-1, 2) for p in paths]


def _count(n, lo: int, hi: int) -> int:
    """Clamp a segment or side count to the range the shape nodes accept."""
    return min(max(int(n), lo), hi)


# ---------------------------------------------------------------------------
# Perlin noise
# ---------------------------------------------------------------------------


def _fade(t: float) -> float:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def _grad(h: int, x: float, y: float, z: float) -> float:
    h &= 15
    u = x if h < 8 else y
    v = y if h < 4 else (x if h in (12, 14) else z)
    return (u if h & 1 == 0 else -u) + (v if h & 2 == 0 else -v)


class PerlinNoise:
    """Improved Perlin noise in [0, 1] with a seeded permutation table."""

    def __init__(self, seed: int):
        self.reseed(seed)

    def reseed(self, seed: int) -> None:
        perm = np.random.default_rng(seed).permutation(256)
        self._p = [int(v) for v in np.concatenate([perm, perm])]

    def __call__(self, x: float, y: float = 0.0, z: float = 0.0) -> float:
        p = self._p
        xi, yi, zi = int(math.floor(x)) & 255, int(math.floor(y)) & 255, int(math.floor(z)) & 255
        x -= math.floor(x)
        y -= math.floor(y)
        z -= math.floor(z)
        u, v, w = _fade(x), _fade(y), _fade(z)
        a = p[xi] + yi
        aa, ab = p[a] + zi, p[a + 1] + zi
        b = p[xi + 1] + yi
        ba, bb = p[b] + zi, p[b + 1] + zi
        value = _lerp(
            _lerp(
                _lerp(_grad(p[aa], x, y, z), _grad(p[ba], x - 1, y, z), u),
                _lerp(_grad(p[ab], x, y - 1, z), _grad(p[bb], x - 1, y - 1, z), u),
                v,
            ),
            _lerp(
                _lerp(_grad(p[aa + 1], x, y, z - 1), _grad(p[ba + 1], x - 1, y, z - 1), u),
                _lerp(_grad(p[ab + 1], x, y - 1, z - 1), _grad(p[bb + 1], x - 1, y - 1, z - 1), u),
                v,
            ),
            w,
        )
        return value * 0.5 + 0.5


# ---------------------------------------------------------------------------
# API object
# ---------------------------------------------------------------------------


class ScriptApi:
    """Drawing helpers exposed to scripts.

    Only public attributes are reachable from a script; the runner rejects
    any attribute access starting with ``_``.
    """

    PI = math.pi
    TWO_PI = math.pi * 2.0
    HALF_PI = math.pi / 2.0

    def __init__(self, seed: int):
        self._noise = PerlinNoise(seed)
        self._rng = np.random.default_rng(seed)

    # -- shapes --------------------------------------------------------------

    def line(self, x1: float, y1: float, x2: float, y2: float) -> ScriptPath:
        return [(float(x1), float(y1)), (float(x2), float(y2))]

    def rect(self, x: float, y: float, w: float, h: float) -> ScriptPath:
        return _pts(rect_points(x, y, w, h))

    def circle(self, cx: float, cy: float, r: float, segments: int = 36) -> ScriptPath:
        return _pts(ellipse_points(cx, cy, r, r, _count(segments, 3, 360)))

    def ellipse(self, cx: float, cy: float, rx: float, ry: float, segments: int = 36) -> ScriptPath:
        return _pts(ellipse_points(cx, cy, rx, ry, _count(segments, 3, 360)))

    def arc(self, cx: float, cy: float, r: float, start_angle: float, end_angle: float,
            segments: int = 24) -> ScriptPath:
        return _pts(arc_points(cx, cy, r, start_angle, end_angle, _count(segments, 1, 360)))

    def polygon(self, sides: int, cx: float, cy: float, r: float) -> ScriptPath:
        return _pts(polygon_points(cx, cy, r, _count(sides, 3, 100)))

    def polyline(self, pts) -> ScriptPath:
        return [(float(p[0]), float(p[1])) for p in pts]

    # -- transforms ----------------------------------------------------------

    def transform(self, paths, tx: float, ty: float, rotation: float = 0.0, scale: float = 1.0,
                  cx: float = 0.0, cy: float = 0.0) -> List[ScriptPath]:
        return to_script(geometry.transform_paths(_arrays(paths), tx, ty, rotation, scale, cx, cy))

    def translate(self, paths, dx: float, dy: float) -> List[ScriptPath]:
        return to_script(geometry.apply_affine(_arrays(paths), geometry.translation(dx, dy)))

    def rotate(self, paths, angle: float, cx: float = 0.0, cy: float = 0.0) -> List[ScriptPath]:
        return to_script(geometry.apply_affine(_arrays(paths), geometry.rotation(angle, cx, cy)))

    def scale(self, paths, sx: float, sy: Optional[float] = None,
              cx: float = 0.0, cy: float = 0.0) -> List[ScriptPath]:
        m = geometry.scaling(sx, sx if sy is None else sy, cx, cy)
        return to_script(geometry.apply_affine(_arrays(paths), m))

    def centroid(self, paths) -> Point:
        return geometry.paths_centroid(_arrays(paths))

    def bounds(self, paths) -> dict:
        xmin, ymin, xmax, ymax = geometry.paths_bbox(_arrays(paths))
        return {"min_x": xmin, "min_y": ymin, "max_x": xmax, "max_y": ymax}

    # -- noise / random ------------------------------------------------------

    def noise(self, x: float, y: float = 0.0, z: float = 0.0) -> float:
        return self._noise(float(x), float(y), float(z))

    def noise_seed(self, seed: int) -> None:
        self._noise.reseed(int(seed))

    def random(self, lo: Optional[float] = None, hi: Optional[float] = None) -> float:
        """``random()`` in [0, 1), ``random(hi)`` in [0, hi), ``random(lo, hi)``."""
        r = float(self._rng.random())
        if lo is None:
            return r
        if hi is None:
            return r * lo
        return lo + r * (hi - lo)

    def random_seed(self, seed: int) -> None:
        self._rng = np.random.default_rng(int(seed))

    # -- math ----------------------------------------------------------------

    def map(self, value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
        if in_max == in_min:
            return out_min
        return (value - in_min) / (in_max - in_min) * (out_max - out_min) + out_min

    def lerp(self, a: float, b: float, t: float) -> float:
        return a + (b - a) * t

    def constrain(self, value: float, lo: float, hi: float) -> float:
        return max(lo, min(hi, value))

    def dist(self, x1: float, y1: float, x2: float, y2: float) -> float:
        return math.hypot(x2 - x1, y2 - y1)

    def sin(self, deg: float) -> float:
        return math.sin(math.radians(deg))

    def cos(self, deg: float) -> float:
        return math.cos(math.radians(deg))

    def tan(self, deg: float) -> float:
        return math.tan(math.radians(deg))

    def atan2(self, y: float, x: float) -> float:
        return math.degrees(math.atan2(y, x))

    def radians(self, deg: float) -> float:
        return math.radians(deg)

    def degrees(self, rad: float) -> float:
        return math.degrees(rad)

    # Editor-style spellings
    randomSeed = random_seed
    noiseSeed = noise_seed


def script_math(api: ScriptApi) -> SimpleNamespace:
    """Restricted ``math`` namespace; its ``random`` draws from *api*."""
    return SimpleNamespace(
        abs=abs,
        ceil=math.ceil,
        floor=math.floor,
        round=round,
        min=min,
        max=max,
        pow=math.pow,
        sqrt=math.sqrt,
        hypot=math.hypot,
        sin=math.sin,
        cos=math.cos,
        tan=math.tan,
        atan=math.atan,
        atan2=math.atan2,
        asin=math.asin,
        acos=math.acos,
        log=math.log,
        exp=math.exp,
        pi=math.pi,
        e=math.e,
        PI=math.pi,
        E=math.e,
        random=api.random,
    )
