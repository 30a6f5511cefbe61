"""
Photo rendering module for Photo Booth Print Compositor.

This module handles:
- Decoding uploaded photo bytes
- Applying EXIF auto-orientation and the guest's 90 degree rotations
- Cropping to the guest's normalized crop rectangle
- Resizing to the slot with the fit-mode policy (exact-fill after a crop,
  centered cover-fit otherwise)
"""

import io
import math
from enum import Enum
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError
from loguru import logger

from .crop import CropRect, NormalizedCrop, normalize_crop
from .errors import DecodeFailureError
from .layout import round_half_up


RESAMPLE = Image.Resampling.LANCZOS

# Clockwise rotation in degrees -> PIL transpose (PIL rotates counter-clockwise)
_ROTATIONS = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


class FitMode(str, Enum):
    """How a photo is resized into its slot."""
    EXACT_FILL = 'exact-fill'
    COVER = 'cover'


class PhotoTile:
    """A photo resized to exactly fill one slot."""

    def __init__(self, image: Image.Image, fit_mode: FitMode, crop: NormalizedCrop, index: int = 0):
        self.image = image
        self.fit_mode = fit_mode
        self.crop = crop
        self.index = index

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def __repr__(self) -> str:
        return f"PhotoTile(#{self.index}, {self.image.size}, {self.fit_mode.value})"


def decode_image(data: bytes, source: str = 'photo') -> Image.Image:
    """Decode raw image bytes, raising DecodeFailureError on anything unreadable."""
    if not data:
        raise DecodeFailureError(source, 'empty buffer')

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.error(f"Failed to decode {source}: {e}")
        raise DecodeFailureError(source, str(e))

    logger.debug(f"Decoded {source}: {image.format} {image.size} {image.mode}")
    return image


def normalize_rotation(degrees) -> int:
    """Reduce a clockwise rotation to 0, 90, 180 or 270, snapping to 90 degree steps."""
    if not degrees:
        return 0
    try:
        value = float(degrees)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric rotation {degrees!r}")
        return 0
    if not math.isfinite(value):
        logger.warning(f"Ignoring non-finite rotation {degrees!r}")
        return 0

    snapped = round_half_up(value / 90) * 90
    if snapped != value:
        logger.warning(f"Rotation {degrees} is not a multiple of 90, using {snapped}")
    return snapped % 360


def orient(image: Image.Image, rotation: int = 0) -> Image.Image:
    """Apply EXIF orientation, then the caller's clockwise rotation."""
    oriented = ImageOps.exif_transpose(image)
    rotation = normalize_rotation(rotation)
    if rotation:
        oriented = oriented.transpose(_ROTATIONS[rotation])
    return oriented


def to_rgb(image: Image.Image, matte: Tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Convert to RGB, flattening any transparency onto a solid matte."""
    if image.mode == 'RGB':
        return image
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        rgba = image.convert('RGBA')
        flattened = Image.new('RGB', rgba.size, matte)
        flattened.paste(rgba, mask=rgba.getchannel('A'))
        return flattened
    return image.convert('RGB')


def render_photo(image: Image.Image,
                 target_size: Tuple[int, int],
                 crop: Optional[CropRect] = None,
                 rotation: int = 0,
                 index: int = 0) -> PhotoTile:
    """
    Render one photo into a tile of exactly ``target_size``.

    The crop is normalized against the oriented image. A valid crop is
    already at the slot's aspect ratio, so it is stretched to fill exactly;
    cover-fitting it again would cut into the guest's selection.
    """
    oriented = to_rgb(orient(image, rotation))
    normalized = normalize_crop(crop, oriented.width, oriented.height)

    if normalized.has_valid_crop:
        cropped = oriented.crop(normalized.rect.box)
        tile = cropped.resize(target_size, RESAMPLE)
        fit_mode = FitMode.EXACT_FILL
    else:
        tile = ImageOps.fit(oriented, target_size, method=RESAMPLE, centering=(0.5, 0.5))
        fit_mode = FitMode.COVER

    logger.debug(f"Photo {index + 1}: {image.size} -> {tile.size} ({fit_mode.value}, "
                 f"crop={normalized.rect.to_dict() if normalized.has_valid_crop else None})")
    return PhotoTile(tile, fit_mode, normalized, index)


def render_photo_bytes(data: bytes,
                       target_size: Tuple[int, int],
                       crop: Optional[CropRect] = None,
                       rotation: int = 0,
                       index: int = 0) -> PhotoTile:
    """Decode and render one uploaded photo."""
    image = decode_image(data, f"photo {index + 1}")
    return render_photo(image, target_size, crop, rotation, index)
