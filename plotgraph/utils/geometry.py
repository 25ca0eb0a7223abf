"""Geometric operations on points, polylines and path sets.

Provides:
    - Path coercion: as_path()
    - Polyline measures: length, bbox
    - PathSet measures: bbox over all paths, centroid of all points
    - Homogeneous 2-D affine helpers (translate, rotate, scale about a pivot)
    - transform_paths(): the scale → rotate → translate pivot transform
      every iteration node is built on
    - Pen-lift helpers: split_runs(), drop_close_points()

Used by:
    - nodes: shapes, iteration, transforms
    - generators: bytebeat, lsystem, path_layout
    - text and raster converters
    - engine: degenerate-path filtering

Coordinate conventions:
    - A Path is a float64 array of shape (N, 2)
    - y grows downward (screen space), so a positive rotation angle turns
      clockwise on screen
    - Angles are in degrees at every public boundary
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

Path = np.ndarray
"""Polyline vertices, float64 array of shape (N, 2)."""

PathSet = list
"""Ordered list of Paths."""


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def as_path(points) -> Path:
    """Coerce a sequence of (x, y) pairs into a float64 (N, 2) array.

    Parameters
    ----------
    points : array-like
        Sequence of pairs, or an (N, 2) array

    Returns
    -------
    np.ndarray
        New float64 array of shape (N, 2); (0, 2) when empty

    Raises
    ------
    ValueError
        If the data cannot be shaped as (N, 2)
    """
    arr = np.array(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Path must have shape (N, 2), got {arr.shape}")
    return arr


def is_drawable(path: Path) -> bool:
    """True when *path* has at least two points, all finite."""
    return path.shape[0] >= 2 and bool(np.isfinite(path).all())


# ---------------------------------------------------------------------------
# Measures
# ---------------------------------------------------------------------------


def polyline_length(points: Path) -> float:
    """Compute total length of polyline.

    Parameters
    ----------
    points : np.ndarray
        Polyline vertices, shape (N, 2)

    Returns
    -------
    float
        Sum of Euclidean distances between consecutive points; 0.0 for N < 2
    """
    if points.shape[0] < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(points, axis=0), axis=1).sum())


def polyline_bbox(points: Path) -> Tuple[float, float, float, float]:
    """Compute axis-aligned bounding box of polyline.

    Returns
    -------
    Tuple[float, float, float, float]
        (xmin, ymin, xmax, ymax); (0, 0, 0, 0) if no points
    """
    if points.shape[0] == 0:
        return (0.0, 0.0, 0.0, 0.0)
    xmin, ymin = points.min(axis=0)
    xmax, ymax = points.max(axis=0)
    return (float(xmin), float(ymin), float(xmax), float(ymax))


def paths_bbox(paths: Sequence[Path]) -> Tuple[float, float, float, float]:
    """Bounding box over every point of every path; zeros when empty."""
    non_empty = [p for p in paths if p.shape[0] > 0]
    if not non_empty:
        return (0.0, 0.0, 0.0, 0.0)
    return polyline_bbox(np.concatenate(non_empty, axis=0))


def paths_centroid(paths: Sequence[Path]) -> Tuple[float, float]:
    """Mean of all points across *paths*; (0, 0) when there are none.

    Notes
    -----
    This is the vertex centroid, not the area centroid: densely sampled
    regions pull it toward them.
    """
    non_empty = [p for p in paths if p.shape[0] > 0]
    if not non_empty:
        return (0.0, 0.0)
    cx, cy = np.concatenate(non_empty, axis=0).mean(axis=0)
    return (float(cx), float(cy))


# ---------------------------------------------------------------------------
# Affine transforms (homogeneous 3x3, column vectors)
# ---------------------------------------------------------------------------


def translation(dx: float, dy: float) -> np.ndarray:
    m = np.eye(3)
    m[0, 2] = dx
    m[1, 2] = dy
    return m


def rotation(angle_deg: float, cx: float = 0.0, cy: float = 0.0) -> np.ndarray:
    """Rotation by *angle_deg* about (cx, cy)."""
    rad = math.radians(angle_deg)
    c, s = math.cos(rad), math.sin(rad)
    r = np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
    return translation(cx, cy) @ r @ translation(-cx, -cy)


def scaling(sx: float, sy: float, cx: float = 0.0, cy: float = 0.0) -> np.ndarray:
    """Non-uniform scale about (cx, cy)."""
    s = np.diag([sx, sy, 1.0])
    return translation(cx, cy) @ s @ translation(-cx, -cy)


def pivot_transform(
    tx: float,
    ty: float,
    rotation_deg: float = 0.0,
    scale: float = 1.0,
    cx: float = 0.0,
    cy: float = 0.0,
) -> np.ndarray:
    """Scale and rotate about (cx, cy), then translate by (tx, ty).

    Parameters
    ----------
    tx, ty : float
        Translation applied last
    rotation_deg : float
        Rotation about the pivot, degrees
    scale : float
        Uniform scale about the pivot
    cx, cy : float
        Pivot

    Returns
    -------
    np.ndarray
        3x3 homogeneous matrix
    """
    return (
        translation(tx, ty)
        @ rotation(rotation_deg, cx, cy)
        @ scaling(scale, scale, cx, cy)
    )


def apply_affine(paths: Sequence[Path], matrix: np.ndarray) -> PathSet:
    """Apply a 3x3 homogeneous matrix to every point of every path."""
    linear = matrix[:2, :2]
    offset = matrix[:2, 2]
    return [p @ linear.T + offset for p in paths]


def transform_paths(
    paths: Sequence[Path],
    tx: float,
    ty: float,
    rotation_deg: float = 0.0,
    scale: float = 1.0,
    cx: float = 0.0,
    cy: float = 0.0,
) -> PathSet:
    """Shorthand for ``apply_affine(paths, pivot_transform(...))``."""
    return apply_affine(paths, pivot_transform(tx, ty, rotation_deg, scale, cx, cy))


# ---------------------------------------------------------------------------
# Pen-lift helpers
# ---------------------------------------------------------------------------


def split_runs(points: Path, keep: np.ndarray) -> PathSet:
    """Split *points* into maximal runs where *keep* is True.

    Parameters
    ----------
    points : np.ndarray
        Polyline vertices, shape (N, 2)
    keep : np.ndarray
        Boolean mask, shape (N,)

    Returns
    -------
    list[np.ndarray]
        Runs in order; runs shorter than 2 points are dropped
    """
    runs: PathSet = []
    if points.shape[0] == 0:
        return runs
    keep = np.asarray(keep, dtype=bool)
    # Boundaries where the mask flips
    edges = np.flatnonzero(np.diff(keep.astype(np.int8))) + 1
    start = 0
    for stop in list(edges) + [points.shape[0]]:
        if keep[start] and stop - start >= 2:
            runs.append(points[start:stop].copy())
        start = stop
    return runs


def drop_close_points(points: Path, min_dist: float) -> Path:
    """Remove points closer than *min_dist* to the previously kept point.

    The last point is always kept so closed outlines stay closed.
    """
    if points.shape[0] < 3 or min_dist <= 0:
        return points
    kept = [points[0]]
    for pt in points[1:-1]:
        if math.hypot(pt[0] - kept[-1][0], pt[1] - kept[-1][1]) >= min_dist:
            kept.append(pt)
    kept.append(points[-1])
    return np.array(kept, dtype=np.float64)
