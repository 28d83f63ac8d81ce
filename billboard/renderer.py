"""
BillboardRenderer - Pillow-based drawing for the billboard export.

Handles:
1. Creating the supersampled canvas with the background
2. Laying out and drawing multi-line styled text
3. Placing images with contain fit
4. Drawing the vertical gradient overlay
5. Encoding the final image
"""

import io
import logging
from typing import List, Sequence, Tuple
from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont

from .fonts import FontRegistry
from .layout import EditableArea, MappedBox, contain_fit
from .presets import (
    GRADIENT_STOPS,
    LINE_HEIGHT_FACTOR,
    SUPERSAMPLE,
    TEXT_COLOR,
    GradientStop,
)
from .styles import TextStyle, css_font_string, resolve_font_weight

logger = logging.getLogger(__name__)

# Pillow anchors: horizontal (l/m/r) + vertical middle
ALIGN_ANCHORS = {"left": "lm", "center": "mm", "right": "rm"}


@dataclass(frozen=True)
class TextLinePlacement:
    """Where one line of text is drawn, in canvas pixels."""
    text: str
    x: float
    y: float
    anchor: str


def layout_text_lines(
    style: TextStyle,
    box: MappedBox,
    font_size: float
) -> List[TextLinePlacement]:
    """
    Position text lines inside a box.

    Lines are centred vertically as one block, each line one line-height
    below the previous. Horizontal anchor follows the text alignment.

    Args:
        style: Extracted text style (alignment and lines)
        box: Element box on the canvas
        font_size: Font size already scaled to canvas pixels

    Returns:
        One placement per line, top to bottom
    """
    line_height = font_size * LINE_HEIGHT_FACTOR
    total_height = len(style.lines) * line_height
    start_y = box.y + (box.height - total_height) / 2 + line_height / 2

    if style.text_align == "left":
        x = box.x
    elif style.text_align == "right":
        x = box.right
    else:
        x = box.center_x
    anchor = ALIGN_ANCHORS.get(style.text_align, "mm")

    return [
        TextLinePlacement(text=line, x=x, y=start_y + index * line_height, anchor=anchor)
        for index, line in enumerate(style.lines)
    ]


def gradient_color(stops: Sequence[GradientStop], t: float) -> Tuple[int, int, int, int]:
    """RGBA of a linear gradient at position t (0-1)."""
    t = max(0.0, min(1.0, t))
    previous = stops[0]
    for stop in stops:
        if t <= stop.offset:
            span = stop.offset - previous.offset
            ratio = (t - previous.offset) / span if span > 0 else 1.0
            r, g, b, a = (
                previous.rgba[i] + (stop.rgba[i] - previous.rgba[i]) * ratio
                for i in range(4)
            )
            return (round(r), round(g), round(b), round(a * 255))
        previous = stop
    r, g, b, a = stops[-1].rgba
    return (r, g, b, round(a * 255))


def composite_at(layer: Image.Image, image: Image.Image, x: int, y: int) -> None:
    """Alpha-composite `image` onto `layer` at (x, y); negative offsets are cropped."""
    if x < 0 or y < 0:
        image = image.crop((max(0, -x), max(0, -y), image.width, image.height))
        x, y = max(0, x), max(0, y)
    if x >= layer.width or y >= layer.height or image.width == 0 or image.height == 0:
        return
    layer.alpha_composite(image, dest=(x, y))


class BillboardRenderer:
    """
    Draws the billboard composite using Pillow.

    Drawing is synchronous; the export pipeline does all awaiting (fonts,
    image loads) and calls in here between suspension points.
    """

    def __init__(self, fonts: FontRegistry):
        self.fonts = fonts

    def create_canvas(self, background: Image.Image, scale: int = SUPERSAMPLE) -> Image.Image:
        """Supersampled RGBA canvas with the background stretched to fill it."""
        size = (background.width * scale, background.height * scale)
        return background.convert("RGBA").resize(size, Image.Resampling.LANCZOS)

    def get_font(self, style: TextStyle, font_size: float) -> ImageFont.FreeTypeFont:
        return self.fonts.get_font(
            style.font_family,
            weight=resolve_font_weight(style),
            italic=style.italic,
            size=font_size,
        )

    def render_text(
        self,
        layer: Image.Image,
        style: TextStyle,
        box: MappedBox,
        font_size: float
    ) -> List[TextLinePlacement]:
        """
        Draw styled text lines into `box`.

        Text is drawn on a scratch layer pre-filled with the text colour at
        zero alpha, so antialiased edges keep their colour when composited.

        Returns:
            The placements that were drawn
        """
        placements = layout_text_lines(style, box, font_size)
        if not placements or font_size <= 0:
            return placements

        font = self.get_font(style, font_size)
        logger.debug(f"Drawing {len(placements)} lines in {css_font_string(style, font_size)}")

        boxes = [
            font.getbbox(p.text, anchor=p.anchor) for p in placements
        ]
        left = min(int(p.x + b[0]) for p, b in zip(placements, boxes)) - 2
        top = min(int(p.y + b[1]) for p, b in zip(placements, boxes)) - 2
        right = max(int(p.x + b[2]) for p, b in zip(placements, boxes)) + 2
        bottom = max(int(p.y + b[3]) for p, b in zip(placements, boxes)) + 2
        if right <= left or bottom <= top:
            return placements

        color = self._parse_color(TEXT_COLOR)
        scratch = Image.new("RGBA", (right - left, bottom - top), color + (0,))
        draw = ImageDraw.Draw(scratch)
        for placement in placements:
            draw.text(
                (placement.x - left, placement.y - top),
                placement.text,
                font=font,
                fill=color + (255,),
                anchor=placement.anchor,
            )

        composite_at(layer, scratch, left, top)
        return placements

    def render_image(self, layer: Image.Image, image: Image.Image, box: MappedBox) -> MappedBox:
        """
        Draw an image inside `box` with contain fit (no crop, no distortion).

        Returns:
            The rectangle the image was drawn into
        """
        placement = contain_fit(image.width, image.height, box)
        width = max(1, round(placement.width))
        height = max(1, round(placement.height))
        resized = image.convert("RGBA").resize((width, height), Image.Resampling.LANCZOS)
        composite_at(layer, resized, round(placement.x), round(placement.y))
        return placement

    def render_gradient(
        self,
        layer: Image.Image,
        area: EditableArea,
        stops: Sequence[GradientStop] = GRADIENT_STOPS
    ) -> None:
        """Vertical gradient overlay across the editable area."""
        x = round(area.x)
        y = round(area.y)
        width = max(1, round(area.width))
        height = max(1, round(area.height))

        overlay = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        for row in range(height):
            ratio = (row + 0.5) / height
            draw.line([(0, row), (width, row)], fill=gradient_color(stops, ratio))

        composite_at(layer, overlay, x, y)

    def _parse_color(self, color: str) -> Tuple[int, int, int]:
        """Parse hex color to RGB tuple."""
        color = color.lstrip('#')
        if len(color) == 3:
            color = ''.join(c * 2 for c in color)
        return tuple(int(color[i:i+2], 16) for i in (0, 2, 4))

    def encode_png(self, image: Image.Image) -> bytes:
        """Lossless PNG bytes of the finished composite."""
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
