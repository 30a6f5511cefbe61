"""
Canvas configuration for Photo Booth Print Compositor.

This module holds:
- The closed set of collage layouts (LayoutKind) and their photo counts
- The 4x6 inch canvas and the margin/gap constants every layout is built from
- Per-layout defaults (background color, whether a logo layer exists)
"""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict


class LayoutKind(str, Enum):
    """Collage layouts a guest can print. Values are the wire identifiers."""

    SINGLE = 'single'
    SINGLE_WITH_LOGO = 'single-with-logo'
    FOUR_CUT_DUAL_STRIP = 'four-cut'
    TWO_BY_TWO = 'two-by-two'
    VERTICAL_TWO = 'vertical-two'
    ONE_PLUS_TWO = 'one-plus-two'

    @property
    def photo_count(self) -> int:
        return _PHOTO_COUNTS[self]

    @property
    def is_single_photo(self) -> bool:
        return self.photo_count == 1

    @property
    def has_logo_layer(self) -> bool:
        """Layouts whose logo sits beneath the photo tiles."""
        return self in (LayoutKind.SINGLE_WITH_LOGO, LayoutKind.FOUR_CUT_DUAL_STRIP)

    @property
    def display_name(self) -> str:
        return _DISPLAY[self][0]

    @property
    def description(self) -> str:
        return _DISPLAY[self][1]

    @property
    def default_background(self) -> str:
        return '#FFFFFF' if self.is_single_photo else '#000000'

    @classmethod
    def parse(cls, value) -> 'LayoutKind':
        """Accept an enum member or its wire identifier (case-insensitive)."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace('_', '-')
        for kind in cls:
            if kind.value == normalized:
                return kind
        from .errors import UnknownLayoutError
        raise UnknownLayoutError(str(value), [kind.value for kind in cls])


_PHOTO_COUNTS = {
    LayoutKind.SINGLE: 1,
    LayoutKind.SINGLE_WITH_LOGO: 1,
    LayoutKind.FOUR_CUT_DUAL_STRIP: 4,
    LayoutKind.TWO_BY_TWO: 4,
    LayoutKind.VERTICAL_TWO: 2,
    LayoutKind.ONE_PLUS_TWO: 3,
}

_DISPLAY = {
    LayoutKind.SINGLE: ('Single Photo', 'One photo filling the whole print'),
    LayoutKind.SINGLE_WITH_LOGO: ('Single Photo + Logo', 'One photo above the event logo'),
    LayoutKind.FOUR_CUT_DUAL_STRIP: ('Four-Cut', 'Two identical strips of 4 photos'),
    LayoutKind.TWO_BY_TWO: ('2x2 Grid', 'Four photos in a grid'),
    LayoutKind.VERTICAL_TWO: ('Vertical 2', 'Two photos stacked'),
    LayoutKind.ONE_PLUS_TWO: ('1+2 Layout', 'One photo on top, two below'),
}


class CanvasSpec(BaseModel):
    """Fixed geometry of the printed sheet (4x6 inch @ 300 DPI)."""

    model_config = ConfigDict(frozen=True)

    width: int = 1000
    height: int = 1500
    dpi: int = 300

    # Four-cut dual strip
    margin_outer: int = 20
    gap_center: int = 10
    gap_between_photos: int = 10

    # Grid-style layouts (two-by-two, vertical-two, one-plus-two)
    margin_horizontal: int = 40
    margin_vertical: int = 60
    gap: int = 20

    # Single photo with logo
    default_photo_ratio: int = 85
    logo_inset: int = 20

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def available_width(self) -> int:
        """Width inside the grid margins."""
        return self.width - 2 * self.margin_horizontal

    @property
    def available_height(self) -> int:
        """Height inside the grid margins."""
        return self.height - 2 * self.margin_vertical


DEFAULT_CANVAS = CanvasSpec()
