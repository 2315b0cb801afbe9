"""Sign rendering with Pillow."""

import logging

from PIL import Image, ImageDraw, ImageFont

from .base import DisplayError

logger = logging.getLogger(__name__)

BACKGROUND = (255, 0, 0)  # red
FOREGROUND = (255, 255, 255)  # white
DEFAULT_FONT_SIZE = 24


def load_font(font_spec: str) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font from a "<path or name>[:<size>]" specifier.

    "default" (optionally with a size) selects Pillow's built-in font.

    Raises:
        DisplayError: If the font cannot be loaded
    """
    name, _, size_str = font_spec.rpartition(":")
    if not name or not size_str.isdigit():
        name, size = font_spec, DEFAULT_FONT_SIZE
    else:
        size = int(size_str)

    try:
        if name == "default":
            return ImageFont.load_default(size=size)
        return ImageFont.truetype(name, size)
    except OSError as e:
        raise DisplayError(f"Unable to load font {font_spec}: {e}") from e


def render_sign(label: str, font_spec: str = "default", padding: int = 10) -> Image.Image:
    """Draw a label as a bordered sign sized to fit the text.

    Args:
        label: Text to show, a single line
        font_spec: Font specifier, see load_font()
        padding: Space around the text in pixels

    Returns:
        RGB image of the sign

    Raises:
        DisplayError: If the font cannot be loaded
    """
    font = load_font(font_spec)
    left, top, right, bottom = font.getbbox(label)

    width = (right - left) + 2 * padding
    height = (bottom - top) + 2 * padding

    image = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(image)
    draw.rectangle((0, 0, width - 1, height - 1), outline=FOREGROUND)
    draw.text((padding - left, padding - top), label, font=font, fill=FOREGROUND)

    logger.debug(f"Rendered sign '{label}' ({width}x{height})")
    return image
