"""Luminance rasters handed to the image-derived converters.

Provides:
    - luminance_from_pixels(): decoded pixel data -> float luminance [0, 1]
    - Raster: luminance grid placed on a rectangle of the drawing

The external loader decodes files; the engine only ever sees pixel
arrays or ``PIL.Image`` objects.  Colour input is reduced with Pillow's
``L`` conversion (ITU-R 601-2 luma) after compositing any alpha channel
over white, so transparent areas read as paper.

Sampling is bilinear (``scipy.ndimage.map_coordinates``) on pixel
centres.  Coordinates outside the rectangle read as white.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image
from scipy import ndimage


def _to_unit_range(arr: np.ndarray) -> np.ndarray:
    """Map integer data to [0, 1] by /255 and leave float data in [0, 1] as is."""
    if np.issubdtype(arr.dtype, np.integer) or np.issubdtype(arr.dtype, np.bool_):
        return arr.astype(np.float64) / (1.0 if arr.dtype == np.bool_ else 255.0)
    arr = arr.astype(np.float64)
    if arr.size and np.nanmax(arr) > 1.0:
        arr = arr / 255.0
    return arr


def luminance_from_pixels(pixels) -> np.ndarray:
    """Convert decoded pixel data into a luminance grid.

    Parameters
    ----------
    pixels : np.ndarray | PIL.Image.Image | nested list
        (H, W) grey, (H, W, 3) RGB or (H, W, 4) RGBA.  Integer data is
        read as 0..255; float data as 0..1 (or 0..255 if it exceeds 1).

    Returns
    -------
    np.ndarray
        float64 (H, W), 0 = black, 1 = white, read-only.

    Raises
    ------
    ValueError
        If the data is empty, ragged, non-finite or has an unsupported shape.
    """
    if isinstance(pixels, Image.Image):
        img = pixels
        if img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info):
            img = img.convert("RGBA")
            white = Image.new("RGBA", img.size, (255, 255, 255, 255))
            img = Image.alpha_composite(white, img)
        lum = np.asarray(img.convert("L"), dtype=np.float64) / 255.0
    else:
        arr = np.asarray(pixels)
        if arr.dtype == object:
            raise ValueError("pixels must be a numeric array")
        if arr.size == 0:
            raise ValueError("pixels must not be empty")
        if arr.ndim == 2:
            lum = np.clip(_to_unit_range(arr), 0.0, 1.0)
        elif arr.ndim == 3 and arr.shape[2] in (3, 4):
            unit = np.clip(_to_unit_range(arr), 0.0, 1.0)
            rgb = unit[:, :, :3]
            if arr.shape[2] == 4:
                alpha = unit[:, :, 3:4]
                rgb = rgb * alpha + (1.0 - alpha)
            rgb8 = np.round(rgb * 255.0).astype(np.uint8)
            lum = np.asarray(Image.fromarray(rgb8).convert("L"), dtype=np.float64) / 255.0
        else:
            raise ValueError(f"pixels must have shape (H, W), (H, W, 3) or (H, W, 4), got {arr.shape}")

    if not np.isfinite(lum).all():
        raise ValueError("pixels contain non-finite values")
    lum = np.ascontiguousarray(lum, dtype=np.float64)
    lum.flags.writeable = False
    return lum


@dataclass(frozen=True)
class Raster:
    """Luminance grid covering ``[x, x + width] x [y, y + height]``.

    Parameters
    ----------
    lum : np.ndarray
        float64 (H, W) in [0, 1]; row 0 is the top of the image.
    x, y : float
        Top-left corner in drawing units.
    width, height : float
        Extent in drawing units (> 0).
    """

    lum: np.ndarray
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def __post_init__(self) -> None:
        if self.lum.ndim != 2 or self.lum.size == 0:
            raise ValueError(f"lum must be a non-empty 2-D array, got shape {self.lum.shape}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Raster extent must be positive, got {self.width} x {self.height}")

    @classmethod
    def from_pixels(cls, pixels, x: float = 0.0, y: float = 0.0,
                    width: float | None = None, height: float | None = None) -> "Raster":
        """Build a raster; width/height default to the pixel dimensions."""
        lum = luminance_from_pixels(pixels)
        h, w = lum.shape
        return cls(lum=lum, x=x, y=y,
                   width=float(w if width is None else width),
                   height=float(h if height is None else height))

    @property
    def shape(self) -> tuple[int, int]:
        return self.lum.shape

    def sample_unit(self, u: np.ndarray, v: np.ndarray, outside: float = 1.0) -> np.ndarray:
        """Bilinear luminance at normalized image coordinates.

        Parameters
        ----------
        u, v : np.ndarray
            0..1 across the width (left to right) and height (top to bottom).
        outside : float
            Value returned where (u, v) leaves the unit square.

        Returns
        -------
        np.ndarray
            Luminance, same shape as *u*.
        """
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        h, w = self.lum.shape
        cols = u * w - 0.5
        rows = v * h - 0.5
        values = ndimage.map_coordinates(
            self.lum, [rows.ravel(), cols.ravel()], order=1, mode="nearest"
        ).reshape(u.shape)
        inside = (u >= 0.0) & (u <= 1.0) & (v >= 0.0) & (v <= 1.0)
        return np.where(inside, values, outside)

    def sample(self, px: np.ndarray, py: np.ndarray, outside: float = 1.0) -> np.ndarray:
        """Bilinear luminance at drawing coordinates."""
        u = (np.asarray(px, dtype=np.float64) - self.x) / self.width
        v = (np.asarray(py, dtype=np.float64) - self.y) / self.height
        return self.sample_unit(u, v, outside)

    def blurred(self, sigma_px: float) -> "Raster":
        """Gaussian-blurred copy; ``sigma_px <= 0`` returns self."""
        if sigma_px <= 0:
            return self
        lum = ndimage.gaussian_filter(self.lum, sigma=sigma_px, mode="nearest")
        lum.flags.writeable = False
        return Raster(lum=lum, x=self.x, y=self.y, width=self.width, height=self.height)

    def box_resample(self, cols: int, rows: int) -> np.ndarray:
        """Area-average the grid down (or up) to ``rows x cols`` with Pillow BOX."""
        img = Image.fromarray(np.ascontiguousarray(self.lum, dtype=np.float32))
        small = img.resize((max(1, cols), max(1, rows)), Image.Resampling.BOX)
        return np.clip(np.asarray(small, dtype=np.float64), 0.0, 1.0)
