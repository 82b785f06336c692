"""Draws overlay instructions onto video frames with Pillow."""

import logging
import math
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .exceptions import ConfigurationError
from .models import OverlayInstruction

logger = logging.getLogger(__name__)

class OverlayPainter:
    """
    Paints the stacked bilingual panel described by an OverlayInstruction.

    ``measure`` uses the same fonts as ``paint``; pass it to
    ``compose_overlay`` so the panel fits the rendered text.
    """

    def __init__(self, regular_font: Optional[str] = None, bold_font: Optional[str] = None):
        """
        Args:
            regular_font: Path to a TrueType/OpenType font for the translated line.
            bold_font: Path to a font for the original line. Falls back to
                       regular_font, then to Pillow's built-in font.
        """
        self.regular_font = regular_font
        self.bold_font = bold_font or regular_font
        self._fonts: Dict[Tuple[int, bool], ImageFont.FreeTypeFont] = {}

    def font(self, size: float, bold: bool = False):
        px = max(1, int(round(size)))
        key = (px, bold)
        cached = self._fonts.get(key)
        if cached is not None:
            return cached

        path = self.bold_font if bold else self.regular_font
        try:
            font = ImageFont.truetype(path, px) if path else ImageFont.load_default(size=px)
        except OSError as e:
            raise ConfigurationError(f"Could not load font '{path}': {e}") from e
        logger.debug(f"Loaded font {path or '<default>'} at {px}px (bold={bold})")
        self._fonts[key] = font
        return font

    def measure(self, text: str, size: float, bold: bool = False) -> float:
        if not text:
            return 0.0
        return float(self.font(size, bold).getlength(text))

    def paint(self, image: Image.Image, instruction: Optional[OverlayInstruction]) -> Image.Image:
        """
        Composites the instruction onto the image in place and returns it.

        Only the panel's bounding box is blended, so frames without a
        subtitle (instruction is None) are left untouched.
        """
        if instruction is None:
            return image

        panel = instruction.panel
        width, height = image.size
        left = max(0, int(math.floor(panel.x)))
        top = max(0, int(math.floor(panel.y)))
        right = min(width, int(math.ceil(panel.x + panel.width)))
        bottom = min(height, int(math.ceil(panel.y + panel.height)))
        if right <= left or bottom <= top:
            return image

        region = image.crop((left, top, right, bottom)).convert("RGBA")
        layer = Image.new("RGBA", region.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        draw.rounded_rectangle(
            (panel.x - left, panel.y - top, panel.x + panel.width - left, panel.y + panel.height - top),
            radius=int(round(panel.radius)),
            fill=panel.color,
        )
        for line in instruction.lines:
            if not line.text:
                continue
            draw.text(
                (line.x - left, line.y - top),
                line.text,
                font=self.font(line.font_size, line.bold),
                fill=line.color,
                anchor="ms",
            )

        composed = Image.alpha_composite(region, layer)
        image.paste(composed.convert(image.mode), (left, top))
        return image
