"""Image-derived converters: luminance rasters, halftone, ASCII art, masks."""

from .image import Raster, luminance_from_pixels

__all__ = ["Raster", "luminance_from_pixels"]
