"""
Utility functions for Photo Booth Print Compositor
"""

import re
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .errors import InvalidColorError


_HEX_COLOR = re.compile(r'^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


def parse_hex_color(color: Optional[str], default: str = '#000000') -> Tuple[int, int, int]:
    """
    Parse "#RRGGBB", "RRGGBB" or "#RGB" into an (r, g, b) tuple.

    Empty input uses ``default``; anything else that is not hex raises
    InvalidColorError.
    """
    if color is None or not str(color).strip():
        color = default

    match = _HEX_COLOR.match(str(color).strip())
    if not match:
        raise InvalidColorError(str(color))

    digits = match.group(1)
    if len(digits) == 3:
        digits = ''.join(ch * 2 for ch in digits)

    value = int(digits, 16)
    return ((value >> 16) & 255, (value >> 8) & 255, value & 255)


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    return '#{:02X}{:02X}{:02X}'.format(*rgb)


def allowed_file(filename: str, allowed_extensions: Iterable[str]) -> bool:
    """Check an uploaded file name against the allowed extensions"""
    if not filename:
        return False
    return Path(filename).suffix.lower() in {ext.lower() for ext in allowed_extensions}


def parse_bool(value) -> bool:
    """Interpret form values like "true", "1", "on" as booleans"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')
