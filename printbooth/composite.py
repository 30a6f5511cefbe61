"""
Composite module for Photo Booth Print Compositor.

This module handles:
- Allocating the background canvas
- Layering logo and photo tiles in a fixed z-order
- Encoding the final print at full chroma resolution
"""

import io
from typing import List, Optional, Sequence, Tuple

from PIL import Image
from loguru import logger

from .canvas import CanvasSpec, DEFAULT_CANVAS
from .errors import EncodeFailureError
from .layout import LayoutGeometry
from .logo import LogoTile
from .render import PhotoTile


# Z-order, lowest first. Photos always land on top of any logo that
# reaches up into the photo region.
Z_BACKGROUND = 0
Z_LOGO = 10
Z_PHOTO = 20


class CompositeSettings:
    """Settings for encoding the final print."""

    def __init__(self,
                 output_format: str = 'JPEG',
                 quality: int = 95,
                 optimize: bool = True,
                 progressive: bool = False,
                 subsampling: int = 0):
        self.output_format = output_format
        self.quality = quality
        self.optimize = optimize
        self.progressive = progressive
        # 0 = 4:4:4, no chroma subsampling
        self.subsampling = subsampling

    @property
    def mimetype(self) -> str:
        return 'image/png' if self.output_format.upper() == 'PNG' else 'image/jpeg'

    @property
    def extension(self) -> str:
        return '.png' if self.output_format.upper() == 'PNG' else '.jpg'


class LayerElement:
    """An image placed on the canvas at a z-index."""

    def __init__(self,
                 image: Image.Image,
                 element_type: str,
                 position: Tuple[int, int],
                 z_index: int = 0):
        self.image = image
        self.element_type = element_type  # 'logo', 'photo'
        self.position = position
        self.z_index = z_index

    def __lt__(self, other):
        """Enable sorting by z_index."""
        return self.z_index < other.z_index

    def __repr__(self) -> str:
        return f"LayerElement({self.element_type}, {self.image.size} at {self.position}, z={self.z_index})"


class CompositeEngine:
    """Main composite engine class."""

    def __init__(self, canvas: CanvasSpec = DEFAULT_CANVAS):
        self.canvas = canvas

    def create_canvas(self, background_color: Tuple[int, int, int] = None) -> Image.Image:
        """Create a new canvas filled with the background color."""
        if background_color is None:
            background_color = (255, 255, 255)  # White default

        canvas = Image.new('RGB', self.canvas.size, background_color)
        logger.debug(f"Created canvas: {self.canvas.size} with background {background_color}")
        return canvas

    def build_layers(self,
                     geometry: LayoutGeometry,
                     tiles: Sequence[PhotoTile],
                     logos: Sequence[LogoTile] = ()) -> List[LayerElement]:
        """
        Plan every layer of the print, sorted by z-index.

        ``tiles`` is indexed by photo. A photo shown in several slots (the
        four-cut right strip) reuses the same tile image.
        """
        elements = []

        for logo in logos:
            if logo is not None:
                elements.append(LayerElement(logo.image, 'logo', logo.origin, Z_LOGO))

        for slot, source in geometry.placements():
            tile = tiles[source]
            if tile.size != slot.size:
                raise ValueError(f"Tile for photo {source + 1} is {tile.size}, slot is {slot.size}")
            elements.append(LayerElement(tile.image, 'photo', slot.origin, Z_PHOTO))

        # sorted() is stable, so equal z-indexes keep insertion order
        return sorted(elements)

    def composite_elements(self,
                           elements: List[LayerElement],
                           background_color: Tuple[int, int, int] = None) -> Image.Image:
        """Composite all layer elements onto a fresh background canvas."""
        canvas = self.create_canvas(background_color)

        logger.info(f"Compositing {len(elements)} elements onto {self.canvas.size} canvas")

        for i, element in enumerate(sorted(elements)):
            self._composite_element(canvas, element)
            logger.debug(f"Composited element {i+1}/{len(elements)}: {element!r}")

        return canvas

    def _composite_element(self, canvas: Image.Image, element: LayerElement) -> None:
        image = element.image
        if image.mode == 'RGBA':
            # Alpha-aware paste; PIL clips anything outside the canvas
            canvas.paste(image, element.position, image)
        else:
            canvas.paste(image.convert('RGB'), element.position)

    def compose(self,
                geometry: LayoutGeometry,
                tiles: Sequence[PhotoTile],
                logos: Sequence[LogoTile] = (),
                background_color: Tuple[int, int, int] = None) -> Image.Image:
        """Background, then logos, then photos."""
        elements = self.build_layers(geometry, tiles, logos)
        return self.composite_elements(elements, background_color)

    def get_image_bytes(self,
                        image: Image.Image,
                        settings: Optional[CompositeSettings] = None) -> bytes:
        """Encode the print, raising EncodeFailureError on failure."""
        if settings is None:
            settings = CompositeSettings()

        output_format = settings.output_format.upper()
        save_kwargs = {
            'format': output_format,
            'optimize': settings.optimize
        }

        if output_format == 'JPEG':
            save_kwargs.update({
                'quality': settings.quality,
                'progressive': settings.progressive,
                'subsampling': settings.subsampling,
                'dpi': (self.canvas.dpi, self.canvas.dpi)
            })
            # Ensure RGB mode for JPEG
            if image.mode != 'RGB':
                image = image.convert('RGB')
        elif output_format == 'PNG':
            save_kwargs['compress_level'] = 6
            save_kwargs['dpi'] = (self.canvas.dpi, self.canvas.dpi)

        buffer = io.BytesIO()
        try:
            image.save(buffer, **save_kwargs)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Failed to encode canvas as {output_format}: {e}")
            raise EncodeFailureError(output_format, str(e))

        data = buffer.getvalue()
        logger.debug(f"Encoded {output_format}: {len(data):,} bytes")
        return data


def create_composite_engine(canvas: CanvasSpec = DEFAULT_CANVAS) -> CompositeEngine:
    """Factory function to create a CompositeEngine instance."""
    return CompositeEngine(canvas)
