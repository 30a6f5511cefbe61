"""
Crop normalization for Photo Booth Print Compositor.

Guests pick a crop rectangle in the browser; the rectangle arrives in source
image pixels and may be absent, zero-sized or partially outside the photo.
A malformed crop never fails a request: it degrades to "use the whole image".
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger

from .layout import round_half_up


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in source image pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def box(self):
        """PIL crop box (left, upper, right, lower)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['CropRect']:
        """Build from a wire dict like {"x": 0, "y": 0, "width": 10, "height": 10}."""
        if not data:
            return None
        try:
            return cls(
                x=float(data['x']),
                y=float(data['y']),
                width=float(data['width']),
                height=float(data['height'])
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed crop area {data!r}: {e}")
            return None

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


@dataclass(frozen=True)
class NormalizedCrop:
    """Result of normalizing a crop against a source image."""
    rect: Optional[CropRect]

    @property
    def has_valid_crop(self) -> bool:
        return self.rect is not None


NO_CROP = NormalizedCrop(None)


def normalize_crop(crop: Optional[CropRect], source_width: int, source_height: int) -> NormalizedCrop:
    """
    Clamp a requested crop to the source bounds.

    left/top are clamped to the image, width/height are cut at the image edge.
    A NaN/infinite value or a negative coordinate drops the crop, and so
    does a non-positive resulting size.
    """
    if crop is None:
        return NO_CROP

    if source_width <= 0 or source_height <= 0:
        logger.warning(f"Cannot crop an empty {source_width}x{source_height} image")
        return NO_CROP

    if not all(math.isfinite(value) for value in (crop.x, crop.y, crop.width, crop.height)):
        logger.warning(f"Invalid crop area {crop.to_dict()}: non-finite value, using whole image")
        return NO_CROP

    if crop.x < 0 or crop.y < 0:
        logger.warning(f"Invalid crop area {crop.to_dict()}: negative origin, using whole image")
        return NO_CROP

    left = max(0, min(round_half_up(crop.x), source_width - 1))
    top = max(0, min(round_half_up(crop.y), source_height - 1))
    width = min(round_half_up(crop.width), source_width - left)
    height = min(round_half_up(crop.height), source_height - top)

    if width <= 0 or height <= 0:
        logger.warning(f"Invalid crop area {crop.to_dict()} for {source_width}x{source_height} "
                       f"image, using whole image")
        return NO_CROP

    normalized = CropRect(left, top, width, height)
    if normalized != crop:
        logger.debug(f"Clamped crop {crop.to_dict()} -> {normalized.to_dict()}")
    return NormalizedCrop(normalized)
