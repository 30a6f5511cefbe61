"""
Logo rendering module for Photo Booth Print Compositor.

This module handles:
- Parsing event logo settings (nine preset anchors or custom center coordinates)
- Scaling the logo to a percentage of the canvas (or strip) width
- Resolving the logo's absolute position inside the logo region

An unreadable or missing logo is not an error: the renderer returns None and
the print is composed without a logo.
"""

import io
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, model_validator
from pydantic import ValidationError as PydanticValidationError

from .canvas import CanvasSpec, DEFAULT_CANVAS
from .layout import SlotRect, round_half_up


class LogoAnchor(str, Enum):
    """Where the logo sits inside its region."""

    TOP_LEFT = 'top-left'
    TOP_CENTER = 'top-center'
    TOP_RIGHT = 'top-right'
    CENTER_LEFT = 'center-left'
    CENTER = 'center'
    CENTER_RIGHT = 'center-right'
    BOTTOM_LEFT = 'bottom-left'
    BOTTOM_CENTER = 'bottom-center'
    BOTTOM_RIGHT = 'bottom-right'
    CUSTOM = 'custom'

    @property
    def vertical(self) -> str:
        if self in (LogoAnchor.CENTER, LogoAnchor.CUSTOM):
            return 'center'
        return self.value.split('-')[0]

    @property
    def horizontal(self) -> str:
        if self in (LogoAnchor.CENTER, LogoAnchor.CUSTOM):
            return 'center'
        return self.value.split('-')[1]

    @classmethod
    def parse(cls, value) -> 'LogoAnchor':
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace('_', '-').replace(' ', '-')
        if normalized in ('center-center', 'middle'):
            return cls.CENTER
        return cls(normalized)


class LogoSettings(BaseModel):
    """
    Event logo placement.

    ``size_percent`` is a percentage of the canvas width. ``custom_x`` and
    ``custom_y`` are the logo's center as percentages of the canvas width and
    the logo region height; they are only used with the custom anchor.
    Accepts the wire names ``position``, ``size``, ``x`` and ``y`` as well.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    anchor: LogoAnchor = Field(default=LogoAnchor.BOTTOM_CENTER,
                               validation_alias=AliasChoices('anchor', 'position'))
    size_percent: float = Field(default=80.0, gt=0, le=200,
                                validation_alias=AliasChoices('size_percent', 'size'))
    custom_x: Optional[float] = Field(default=None, allow_inf_nan=False,
                                      validation_alias=AliasChoices('custom_x', 'x'))
    custom_y: Optional[float] = Field(default=None, allow_inf_nan=False,
                                      validation_alias=AliasChoices('custom_y', 'y'))

    @model_validator(mode='before')
    @classmethod
    def _parse_anchor(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        key = 'position' if 'position' in data else 'anchor'
        if data.get(key) is not None:
            data[key] = LogoAnchor.parse(data[key])

        if data.get(key) == LogoAnchor.CUSTOM:
            x = data.get('custom_x', data.get('x'))
            y = data.get('custom_y', data.get('y'))
            if x is None or y is None:
                logger.warning("Custom logo anchor without x/y coordinates, using bottom-center")
                data[key] = LogoAnchor.BOTTOM_CENTER
        return data

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> 'LogoSettings':
        """Parse settings from event configuration, falling back to defaults."""
        if not data:
            return cls()
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except (PydanticValidationError, ValueError) as e:
            logger.error(f"Invalid logo settings {data!r}, using defaults: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position': self.anchor.value,
            'size': self.size_percent,
            'x': self.custom_x,
            'y': self.custom_y,
        }


DEFAULT_LOGO_SETTINGS = LogoSettings()


class LogoTile:
    """A scaled logo and its top-left position on the canvas."""

    def __init__(self, image: Image.Image, left: int, top: int):
        self.image = image
        self.left = left
        self.top = top

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    @property
    def origin(self) -> Tuple[int, int]:
        return (self.left, self.top)

    def __repr__(self) -> str:
        return f"LogoTile({self.image.size} at ({self.left}, {self.top}))"


def load_logo_bytes(path: Union[str, Path, None]) -> Optional[bytes]:
    """Read a logo asset from disk; None if it is missing or unreadable."""
    if not path:
        return None
    logo_path = Path(path)
    if not logo_path.is_file():
        logger.warning(f"Logo asset not found: {logo_path}")
        return None
    try:
        return logo_path.read_bytes()
    except OSError as e:
        logger.warning(f"Failed to read logo asset {logo_path}: {e}")
        return None


def decode_logo(data: Union[bytes, Image.Image, None]) -> Optional[Image.Image]:
    """Decode logo bytes to RGBA, or None when the logo is unavailable."""
    if data is None:
        return None
    if isinstance(data, Image.Image):
        return data.convert('RGBA')
    try:
        logo = Image.open(io.BytesIO(data))
        logo.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning(f"Logo unavailable, composing without it: {e}")
        return None
    return ImageOps.exif_transpose(logo).convert('RGBA')


def scale_logo(logo: Image.Image, target_width: int) -> Image.Image:
    """Scale proportionally to ``target_width``; enlarging is allowed."""
    target_width = max(1, target_width)
    target_height = max(1, round_half_up(logo.height * target_width / logo.width))
    if (target_width, target_height) == logo.size:
        return logo
    return logo.resize((target_width, target_height), Image.Resampling.LANCZOS)


def resolve_logo_position(logo_size: Tuple[int, int],
                          settings: LogoSettings,
                          region: SlotRect,
                          reference_width: int = None,
                          canvas: CanvasSpec = DEFAULT_CANVAS) -> Tuple[int, int]:
    """
    Top-left canvas position of a logo of ``logo_size`` inside ``region``.

    Horizontal offsets are measured across ``reference_width`` starting at
    the region's left edge. The result is clamped so the logo never fully
    leaves the canvas sideways and its top stays on the canvas; it may
    extend upwards into the photo region.
    """
    logo_width, logo_height = logo_size
    reference_width = reference_width or region.width
    inset = canvas.logo_inset

    if settings.anchor == LogoAnchor.CUSTOM:
        center_x = region.left + round_half_up(settings.custom_x / 100 * reference_width)
        center_y = region.top + round_half_up(settings.custom_y / 100 * region.height)
        left = center_x - round_half_up(logo_width / 2)
        top = center_y - round_half_up(logo_height / 2)
    else:
        horizontal = settings.anchor.horizontal
        if horizontal == 'left':
            left = region.left + inset
        elif horizontal == 'right':
            left = region.left + reference_width - logo_width - inset
        else:
            left = region.left + round_half_up((reference_width - logo_width) / 2)

        vertical = settings.anchor.vertical
        if vertical == 'top':
            top = region.top + inset
        elif vertical == 'bottom':
            top = region.bottom - logo_height - inset
        else:
            top = region.top + round_half_up((region.height - logo_height) / 2)

    left = max(-logo_width, min(left, canvas.width))
    top = max(0, min(top, canvas.height))
    return left, top


def render_logo(logo: Union[bytes, Image.Image, None],
                settings: Optional[LogoSettings],
                region: SlotRect,
                reference_width: int = None,
                canvas: CanvasSpec = DEFAULT_CANVAS) -> Optional[LogoTile]:
    """
    Scale and place the logo for one logo region.

    ``reference_width`` is the width ``size_percent`` applies to: the full
    canvas width for the logo area, the strip width for a four-cut strip.
    Returns None when the logo is unavailable.
    """
    settings = settings or DEFAULT_LOGO_SETTINGS
    decoded = decode_logo(logo)
    if decoded is None:
        return None

    reference_width = reference_width or canvas.width
    target_width = round_half_up(reference_width * settings.size_percent / 100)
    scaled = scale_logo(decoded, target_width)
    left, top = resolve_logo_position(scaled.size, settings, region, reference_width, canvas)

    logger.debug(f"Logo positioned at ({left}, {top}), size: {scaled.size}, "
                 f"anchor: {settings.anchor.value}, size_percent: {settings.size_percent}%")
    return LogoTile(scaled, left, top)
