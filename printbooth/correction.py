"""
Printer calibration correction.

Borderless photo printers enlarge the page slightly and shift it
vertically. To keep margins and strip cut lines where they were composed,
the finished print is shrunk and re-centered with a vertical offset before
it goes to the printer.
"""

from typing import Tuple

from PIL import Image
from loguru import logger

from .layout import round_half_up
from .utils import parse_hex_color


DEFAULT_SHRINK_PERCENT = 95.25
DEFAULT_VERTICAL_OFFSET_PX = -5


def correction_box(canvas_size: Tuple[int, int],
                   shrink_percent: float = DEFAULT_SHRINK_PERCENT,
                   vertical_offset_px: int = DEFAULT_VERTICAL_OFFSET_PX) -> Tuple[int, int, int, int]:
    """(left, top, width, height) of the shrunk print on the original canvas."""
    if not 0 < shrink_percent <= 100:
        raise ValueError(f"shrink_percent must be in (0, 100], got {shrink_percent}")

    canvas_width, canvas_height = canvas_size
    scale = shrink_percent / 100
    width = round_half_up(canvas_width * scale)
    height = round_half_up(canvas_height * scale)
    left = round_half_up((canvas_width - width) / 2)
    top = round_half_up((canvas_height - height) / 2 + vertical_offset_px)
    return left, top, width, height


def apply_printer_correction(image: Image.Image,
                             shrink_percent: float = DEFAULT_SHRINK_PERCENT,
                             vertical_offset_px: int = DEFAULT_VERTICAL_OFFSET_PX,
                             background_color: str = '#FFFFFF') -> Image.Image:
    """Shrink the print and paste it centered (plus offset) on a same-size canvas."""
    left, top, width, height = correction_box(image.size, shrink_percent, vertical_offset_px)

    logger.info(f"Printer correction: shrink {shrink_percent}% -> {width}x{height}, "
                f"offset {vertical_offset_px}px, placed at ({left}, {top})")

    resized = image.convert('RGB').resize((width, height), Image.Resampling.LANCZOS)
    corrected = Image.new('RGB', image.size, parse_hex_color(background_color, '#FFFFFF'))
    corrected.paste(resized, (left, top))
    return corrected
