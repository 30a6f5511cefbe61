"""
Layout geometry module for Photo Booth Print Compositor.

This module handles:
- Mapping a layout and photo/logo ratio to the slot rectangles on the canvas
- The photo area / logo area split of the single-photo-with-logo layout
- The crop aspect ratios a client-side cropper must target for each slot

Every dimension is an integer rounded half-up at each division. The same
numbers are served to the browser preview, so the rounding rule must not
drift from what the compositor uses.
"""

import math
from typing import Dict, List, Optional, Tuple, Any

from loguru import logger

from .canvas import CanvasSpec, LayoutKind, DEFAULT_CANVAS


def div_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half-up (2.5 -> 3, -2.5 -> -2)."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return (2 * numerator + denominator) // (2 * denominator)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards +infinity."""
    return math.floor(value + 0.5)


def clamp_ratio(photo_area_ratio: Optional[float], canvas: CanvasSpec = DEFAULT_CANVAS) -> int:
    """Clamp a photo area ratio to 0..100, falling back to the canvas default."""
    if photo_area_ratio is None:
        return canvas.default_photo_ratio
    try:
        value = float(photo_area_ratio)
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value):
        logger.warning(f"Ignoring photo area ratio {photo_area_ratio!r}, "
                       f"using {canvas.default_photo_ratio}")
        return canvas.default_photo_ratio
    return max(0, min(100, round_half_up(value)))


class SlotRect:
    """A rectangle on the output canvas, in canvas pixels."""

    __slots__ = ('left', 'top', 'width', 'height')

    def __init__(self, left: int, top: int, width: int, height: int):
        self.left = left
        self.top = top
        self.width = width
        self.height = height

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def origin(self) -> Tuple[int, int]:
        return (self.left, self.top)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def fits_within(self, width: int, height: int) -> bool:
        return (self.left >= 0 and self.top >= 0 and
                self.right <= width and self.bottom <= height)

    def to_dict(self) -> Dict[str, int]:
        return {'left': self.left, 'top': self.top, 'width': self.width, 'height': self.height}

    def __eq__(self, other) -> bool:
        if not isinstance(other, SlotRect):
            return NotImplemented
        return (self.left, self.top, self.width, self.height) == \
            (other.left, other.top, other.width, other.height)

    def __hash__(self) -> int:
        return hash((self.left, self.top, self.width, self.height))

    def __repr__(self) -> str:
        return f"SlotRect({self.left}, {self.top}, {self.width}, {self.height})"


class LayoutGeometry:
    """Resolved slot rectangles for one layout.

    ``sources[i]`` is the index of the photo shown in ``slots[i]``. Only the
    four-cut dual strip shows a photo in more than one slot.
    """

    def __init__(self,
                 kind: LayoutKind,
                 canvas: CanvasSpec,
                 slots: List[SlotRect],
                 sources: List[int],
                 photo_region_height: int,
                 logo_region_height: int = 0,
                 strips: List[SlotRect] = None):
        self.kind = kind
        self.canvas = canvas
        self.slots = tuple(slots)
        self.sources = tuple(sources)
        self.photo_region_height = photo_region_height
        self.logo_region_height = logo_region_height
        self.strips = tuple(strips or ())

    @property
    def photo_count(self) -> int:
        return self.kind.photo_count

    @property
    def logo_region(self) -> SlotRect:
        """Bottom band of the canvas below the photo region."""
        return SlotRect(0, self.photo_region_height, self.canvas.width, self.logo_region_height)

    def slot_for_photo(self, photo_index: int) -> SlotRect:
        """First slot that shows the given photo."""
        for slot, source in zip(self.slots, self.sources):
            if source == photo_index:
                return slot
        raise IndexError(f"{self.kind.value} has no slot for photo {photo_index}")

    def placements(self) -> List[Tuple[SlotRect, int]]:
        return list(zip(self.slots, self.sources))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'layout': self.kind.value,
            'canvas': {'width': self.canvas.width, 'height': self.canvas.height},
            'slots': [dict(slot.to_dict(), photo=source) for slot, source in self.placements()],
            'photo_region_height': self.photo_region_height,
            'logo_region_height': self.logo_region_height,
        }

    def __repr__(self) -> str:
        return f"LayoutGeometry({self.kind.value}, slots={list(self.slots)})"


def _single(canvas: CanvasSpec, ratio: int) -> LayoutGeometry:
    slot = SlotRect(0, 0, canvas.width, canvas.height)
    return LayoutGeometry(LayoutKind.SINGLE, canvas, [slot], [0], canvas.height)


def _single_with_logo(canvas: CanvasSpec, ratio: int) -> LayoutGeometry:
    # A zero-height photo slot cannot be resized into
    photo_height = max(1, div_half_up(canvas.height * ratio, 100))
    logo_height = canvas.height - photo_height
    slot = SlotRect(0, 0, canvas.width, photo_height)
    return LayoutGeometry(LayoutKind.SINGLE_WITH_LOGO, canvas, [slot], [0],
                          photo_height, logo_height)


def _four_cut_dual_strip(canvas: CanvasSpec, ratio: int) -> LayoutGeometry:
    margin = canvas.margin_outer
    gap = canvas.gap_between_photos

    strip_width = div_half_up(canvas.width - 2 * margin - canvas.gap_center, 2)
    strip_height = canvas.height - 2 * margin
    photo_height = div_half_up(strip_height - 3 * gap, 4)

    strip_lefts = [margin, margin + strip_width + canvas.gap_center]
    strips = [SlotRect(left, margin, strip_width, strip_height) for left in strip_lefts]

    slots, sources = [], []
    for left in strip_lefts:
        for i in range(4):
            slots.append(SlotRect(left, margin + i * (photo_height + gap), strip_width, photo_height))
            sources.append(i)

    return LayoutGeometry(LayoutKind.FOUR_CUT_DUAL_STRIP, canvas, slots, sources,
                          canvas.height, strips=strips)


def _two_by_two(canvas: CanvasSpec, ratio: int) -> LayoutGeometry:
    photo_width = div_half_up(canvas.available_width - canvas.gap, 2)
    photo_height = div_half_up(canvas.available_height - canvas.gap, 2)

    # [0] [1]
    # [2] [3]
    slots = []
    for i in range(4):
        row, col = divmod(i, 2)
        slots.append(SlotRect(
            canvas.margin_horizontal + col * (photo_width + canvas.gap),
            canvas.margin_vertical + row * (photo_height + canvas.gap),
            photo_width,
            photo_height
        ))
    return LayoutGeometry(LayoutKind.TWO_BY_TWO, canvas, slots, list(range(4)), canvas.height)


def _vertical_two(canvas: CanvasSpec, ratio: int) -> LayoutGeometry:
    photo_height = div_half_up(canvas.available_height - canvas.gap, 2)
    slots = [
        SlotRect(canvas.margin_horizontal,
                 canvas.margin_vertical + i * (photo_height + canvas.gap),
                 canvas.available_width,
                 photo_height)
        for i in range(2)
    ]
    return LayoutGeometry(LayoutKind.VERTICAL_TWO, canvas, slots, [0, 1], canvas.height)


def _one_plus_two(canvas: CanvasSpec, ratio: int) -> LayoutGeometry:
    photo_height = div_half_up(canvas.available_height - canvas.gap, 2)
    half_width = div_half_up(canvas.available_width - canvas.gap, 2)
    bottom_top = canvas.margin_vertical + photo_height + canvas.gap

    slots = [
        SlotRect(canvas.margin_horizontal, canvas.margin_vertical,
                 canvas.available_width, photo_height),
        SlotRect(canvas.margin_horizontal, bottom_top, half_width, photo_height),
        SlotRect(canvas.margin_horizontal + half_width + canvas.gap, bottom_top,
                 half_width, photo_height),
    ]
    return LayoutGeometry(LayoutKind.ONE_PLUS_TWO, canvas, slots, [0, 1, 2], canvas.height)


_RESOLVERS = {
    LayoutKind.SINGLE: _single,
    LayoutKind.SINGLE_WITH_LOGO: _single_with_logo,
    LayoutKind.FOUR_CUT_DUAL_STRIP: _four_cut_dual_strip,
    LayoutKind.TWO_BY_TWO: _two_by_two,
    LayoutKind.VERTICAL_TWO: _vertical_two,
    LayoutKind.ONE_PLUS_TWO: _one_plus_two,
}


def resolve_layout(kind,
                   photo_area_ratio: Optional[float] = None,
                   canvas: CanvasSpec = DEFAULT_CANVAS) -> LayoutGeometry:
    """
    Resolve every slot rectangle of a layout.

    ``photo_area_ratio`` only affects the single-photo-with-logo layout; it is
    clamped to 0..100 and defaults to the canvas default (85).
    """
    kind = LayoutKind.parse(kind)
    ratio = clamp_ratio(photo_area_ratio, canvas)
    geometry = _RESOLVERS[kind](canvas, ratio)

    logger.debug(f"Resolved {kind.value} layout (ratio={ratio}): {list(geometry.slots)}")
    return geometry


def crop_aspect_ratio(kind,
                      slot_index: int = 0,
                      photo_area_ratio: Optional[float] = None,
                      canvas: CanvasSpec = DEFAULT_CANVAS) -> float:
    """
    Aspect ratio (width / height) the cropper should use for photo ``slot_index``.

    Derived from ``resolve_layout`` so a crop chosen in the browser matches
    the slot the compositor will fill.
    """
    geometry = resolve_layout(kind, photo_area_ratio, canvas)
    if not 0 <= slot_index < geometry.photo_count:
        raise IndexError(f"{geometry.kind.value} has {geometry.photo_count} photo slot(s), "
                         f"got index {slot_index}")
    return geometry.slot_for_photo(slot_index).aspect_ratio


def crop_aspect_ratios(kind,
                       photo_area_ratio: Optional[float] = None,
                       canvas: CanvasSpec = DEFAULT_CANVAS) -> List[float]:
    """Crop aspect ratio of every photo of a layout, indexed by photo."""
    geometry = resolve_layout(kind, photo_area_ratio, canvas)
    return [geometry.slot_for_photo(i).aspect_ratio for i in range(geometry.photo_count)]


def layout_options(photo_area_ratio: Optional[float] = None,
                   canvas: CanvasSpec = DEFAULT_CANVAS,
                   allowed: List[str] = None) -> List[Dict[str, Any]]:
    """Describe every layout for the client: name, photo count and crop targets."""
    options = []
    for kind in LayoutKind:
        if allowed is not None and kind.value not in allowed:
            continue
        geometry = resolve_layout(kind, photo_area_ratio, canvas)
        options.append({
            'type': kind.value,
            'name': kind.display_name,
            'description': kind.description,
            'photoCount': kind.photo_count,
            'cropAspectRatios': [geometry.slot_for_photo(i).aspect_ratio
                                 for i in range(kind.photo_count)],
            'slots': [geometry.slot_for_photo(i).to_dict() for i in range(kind.photo_count)],
        })
    return options
