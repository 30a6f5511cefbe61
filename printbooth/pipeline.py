"""
Render pipeline for Photo Booth Print Compositor.

Turns uploaded photo buffers, crop rectangles, rotations, a layout, logo
settings and a background color into one encoded print:

    validate -> resolve geometry -> render photo tiles (parallel)
             -> render logo(s) -> composite -> encode

Fatal problems (wrong photo count, undecodable photo, encode failure) abort
the whole request before any canvas is returned. Invalid crops and missing
logos degrade silently (with a warning log).
"""

import concurrent.futures
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

from PIL import Image
from loguru import logger

from .canvas import CanvasSpec, LayoutKind, DEFAULT_CANVAS
from .composite import CompositeSettings, create_composite_engine
from .crop import CropRect
from .errors import PhotoCountMismatchError, ValidationError
from .layout import LayoutGeometry, resolve_layout
from .logo import LogoAnchor, LogoSettings, LogoTile, DEFAULT_LOGO_SETTINGS, decode_logo, render_logo
from .render import PhotoTile, render_photo_bytes
from .utils import parse_hex_color


DEFAULT_MAX_WORKERS = 4


@dataclass
class LogoInput:
    """Logo bytes (from event storage) with the event's placement settings."""
    data: Optional[bytes]
    settings: LogoSettings = DEFAULT_LOGO_SETTINGS


def _coerce_crop(crop: Union[CropRect, dict, None]) -> Optional[CropRect]:
    if crop is None or isinstance(crop, CropRect):
        return crop
    if isinstance(crop, dict):
        return CropRect.from_dict(crop)
    logger.warning(f"Ignoring crop area of unsupported type {type(crop).__name__}")
    return None


def _per_photo(values: Optional[Sequence[Any]], count: int, name: str, default: Any) -> List[Any]:
    """Expand an optional per-photo list, rejecting a length mismatch."""
    if values is None:
        return [default] * count
    if not isinstance(values, (list, tuple)):
        raise ValidationError(
            f"Expected {name} as a list, one per photo, but received {type(values).__name__}",
            details={'expected': count, 'field': name}
        )
    values = list(values)
    if len(values) != count:
        raise ValidationError(
            f"Expected {count} {name}, one per photo, but received {len(values)}",
            details={'expected': count, 'received': len(values), 'field': name}
        )
    return values


def render_tiles(geometry: LayoutGeometry,
                 photos: Sequence[bytes],
                 crops: Sequence[Optional[CropRect]],
                 rotations: Sequence[int],
                 max_workers: int = DEFAULT_MAX_WORKERS) -> List[PhotoTile]:
    """Render one tile per photo. Photos are independent, so they run in parallel."""
    jobs = [
        (photos[i], geometry.slot_for_photo(i).size, crops[i], rotations[i], i)
        for i in range(len(photos))
    ]

    # A single photo is not worth the threading overhead
    if len(jobs) <= 1 or max_workers <= 1:
        return [render_photo_bytes(*job) for job in jobs]

    tiles: List[Optional[PhotoTile]] = [None] * len(jobs)
    with ThreadPoolExecutor(max_workers=min(max_workers, len(jobs))) as executor:
        future_to_index = {
            executor.submit(render_photo_bytes, *job): job[-1]
            for job in jobs
        }
        for future in concurrent.futures.as_completed(future_to_index):
            index = future_to_index[future]
            # Re-raises DecodeFailureError; the whole request fails
            tiles[index] = future.result()

    return tiles


def render_logos(geometry: LayoutGeometry,
                 logo: Optional[LogoInput],
                 canvas: CanvasSpec = DEFAULT_CANVAS) -> List[LogoTile]:
    """Logo layer(s) for layouts that have one; empty when there is no usable logo."""
    kind = geometry.kind
    if logo is None or logo.data is None:
        return []
    if not kind.has_logo_layer:
        logger.debug(f"Layout {kind.value} has no logo layer, ignoring logo")
        return []

    decoded = decode_logo(logo.data)
    if decoded is None:
        return []

    settings = logo.settings or DEFAULT_LOGO_SETTINGS
    tiles = []

    if kind == LayoutKind.SINGLE_WITH_LOGO:
        if geometry.logo_region_height <= 0:
            logger.debug("Photo area covers the whole canvas, no room for a logo")
            return []
        tile = render_logo(decoded, settings, geometry.logo_region, canvas.width, canvas)
        if tile is not None:
            tiles.append(tile)

    elif kind == LayoutKind.FOUR_CUT_DUAL_STRIP:
        # Fixed bottom-center placement, one logo per strip
        strip_settings = LogoSettings(anchor=LogoAnchor.BOTTOM_CENTER,
                                      size_percent=settings.size_percent)
        for strip in geometry.strips:
            tile = render_logo(decoded, strip_settings, strip, strip.width, canvas)
            if tile is not None:
                tiles.append(tile)

    return tiles


def render_image(photos: Sequence[bytes],
                 crops: Optional[Sequence[Union[CropRect, dict, None]]] = None,
                 rotations: Optional[Sequence[int]] = None,
                 layout: Union[LayoutKind, str] = LayoutKind.SINGLE,
                 background_color: Optional[str] = None,
                 logo: Optional[LogoInput] = None,
                 photo_area_ratio: Optional[float] = None,
                 canvas: CanvasSpec = DEFAULT_CANVAS,
                 max_workers: int = DEFAULT_MAX_WORKERS) -> Image.Image:
    """Compose the print and return the un-encoded canvas."""
    kind = LayoutKind.parse(layout)
    photos = list(photos or [])

    if len(photos) != kind.photo_count:
        logger.error(f"{kind.value} layout requires {kind.photo_count} photos, got {len(photos)}")
        raise PhotoCountMismatchError(kind.value, kind.photo_count, len(photos))

    crops = [_coerce_crop(crop) for crop in _per_photo(crops, len(photos), 'crop areas', None)]
    rotations = [rotation or 0 for rotation in _per_photo(rotations, len(photos), 'rotations', 0)]
    background = parse_hex_color(background_color, kind.default_background)

    geometry = resolve_layout(kind, photo_area_ratio, canvas)
    logger.info(f"Rendering {kind.value}: {len(photos)} photo(s), "
                f"{sum(1 for c in crops if c is not None)} crop(s), background {background}, "
                f"photo region {geometry.photo_region_height}px, logo region {geometry.logo_region_height}px")

    tiles = render_tiles(geometry, photos, crops, rotations, max_workers)
    logos = render_logos(geometry, logo, canvas)

    engine = create_composite_engine(canvas)
    return engine.compose(geometry, tiles, logos, background)


def render(photos: Sequence[bytes],
           crops: Optional[Sequence[Union[CropRect, dict, None]]] = None,
           rotations: Optional[Sequence[int]] = None,
           layout: Union[LayoutKind, str] = LayoutKind.SINGLE,
           background_color: Optional[str] = None,
           logo: Optional[LogoInput] = None,
           photo_area_ratio: Optional[float] = None,
           settings: Optional[CompositeSettings] = None,
           canvas: CanvasSpec = DEFAULT_CANVAS,
           max_workers: int = DEFAULT_MAX_WORKERS) -> bytes:
    """
    Compose and encode a print.

    Args:
        photos: Raw image bytes, as many as the layout requires
        crops: Optional crop rectangle per photo (CropRect, wire dict or None)
        rotations: Optional clockwise rotation per photo, in 90 degree steps
        layout: LayoutKind or its wire identifier
        background_color: Hex RGB; defaults to white for single-photo layouts
            and black otherwise
        logo: Logo bytes and settings; only used by layouts with a logo layer
        photo_area_ratio: Photo area percentage for the single-with-logo layout

    Returns:
        Encoded image bytes (JPEG 4:4:4 by default)
    """
    image = render_image(photos, crops, rotations, layout, background_color,
                         logo, photo_area_ratio, canvas, max_workers)
    engine = create_composite_engine(canvas)
    return engine.get_image_bytes(image, settings)
