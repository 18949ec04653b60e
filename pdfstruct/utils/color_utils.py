"""
Color Utilities - Hex color parsing and luminance helpers
"""

import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def hex_to_rgb(color: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """
    Convert a hex color string to an RGB tuple.

    Args:
        color: Hex color like '#14161A' (the '#' is optional)

    Returns:
        (r, g, b) in 0-255, or None if the string cannot be parsed
    """
    if not color:
        return None

    value = color.lstrip('#')
    if len(value) == 3:
        value = ''.join(ch * 2 for ch in value)
    if len(value) != 6:
        return None

    try:
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))
    except ValueError:
        logger.debug(f"Unparseable color: {color}")
        return None


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Convert 0-1 float channels to '#RRGGBB'."""
    def to_byte(v: float) -> int:
        return int(round(max(0.0, min(1.0, v)) * 255))

    return '#{:02X}{:02X}{:02X}'.format(to_byte(r), to_byte(g), to_byte(b))


def normalize_color(color) -> Optional[str]:
    """
    Accept '#RRGGBB' strings or 0-1 float triples and return '#RRGGBB'.

    Args:
        color: Color in either form, or None

    Returns:
        Upper-case hex string, or None
    """
    if color is None:
        return None
    if isinstance(color, str):
        rgb = hex_to_rgb(color)
        return '#{:02X}{:02X}{:02X}'.format(*rgb) if rgb else None
    if isinstance(color, dict):
        return rgb_to_hex(color.get('r', 0), color.get('g', 0), color.get('b', 0))
    r, g, b = color
    return rgb_to_hex(r, g, b)


def luminance(color: Optional[str]) -> float:
    """
    Perceived luminance of a hex color (Rec. 601 weights).

    Returns:
        Luminance in 0-255 (0 for unparseable colors)
    """
    rgb = hex_to_rgb(color)
    if rgb is None:
        return 0.0
    r, g, b = rgb
    return 0.299 * r + 0.587 * g + 0.114 * b


def is_near_white(color: Optional[str], threshold: int = 240) -> bool:
    """True if every channel of the color is at or above ``threshold``."""
    rgb = hex_to_rgb(color)
    if rgb is None:
        return False
    return all(channel >= threshold for channel in rgb)
