"""
Clip region - the billboard silhouette used to confine drawing.

The silhouette is two cubic curves joined by two straight edges, defined in
normalized coordinates inside the editable area. Pillow has no clip stack, so
clipping is done by drawing onto a transparent layer and compositing it back
through a mask.
"""

import logging
import math
from contextlib import contextmanager
from typing import Iterator, List, Sequence, Tuple

from PIL import Image, ImageChops, ImageDraw

from .layout import EditableArea
from .presets import BEZIER_STEPS, CLIP_PATH, ClipSegment

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# Mask oversampling for smooth edges
MASK_OVERSAMPLE = 2


def cubic_bezier(p0: Point, p1: Point, p2: Point, p3: Point, steps: int) -> List[Point]:
    """Sample a cubic curve at `steps` points, excluding p0, including p3."""
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        mt = 1 - t
        a = mt * mt * mt
        b = 3 * mt * mt * t
        c = 3 * mt * t * t
        d = t * t * t
        points.append((
            a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
            a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
        ))
    return points


def flatten_path(
    segments: Sequence[ClipSegment] = CLIP_PATH,
    steps: int = BEZIER_STEPS
) -> List[Point]:
    """Turn a move/line/curve path into a closed polygon (normalized space)."""
    polygon: List[Point] = []
    for segment in segments:
        if segment.command == "M":
            polygon = [segment.points[0]]
        elif segment.command == "L":
            polygon.append(segment.points[0])
        elif segment.command == "C":
            if not polygon:
                raise ValueError("Curve segment before move-to")
            c1, c2, end = segment.points
            polygon.extend(cubic_bezier(polygon[-1], c1, c2, end, steps))
        else:
            raise ValueError(f"Unsupported path command: {segment.command}")

    # Closing line duplicates the start vertex
    if len(polygon) > 1 and polygon[-1] == polygon[0]:
        polygon.pop()
    return polygon


def build_clip_path(area: EditableArea, steps: int = BEZIER_STEPS) -> List[Point]:
    """Clip polygon in canvas pixels for the given editable area."""
    return [area.to_canvas(nx, ny) for nx, ny in flatten_path(CLIP_PATH, steps)]


def build_clip_mask(size: Tuple[int, int], area: EditableArea) -> Image.Image:
    """Rasterize the clip polygon into an antialiased `L` mask of `size`."""
    mask = Image.new("L", size, 0)

    # Only the area's bounding box is oversampled
    left = max(0, math.floor(area.x))
    top = max(0, math.floor(area.y))
    right = min(size[0], math.ceil(area.x + area.width))
    bottom = min(size[1], math.ceil(area.y + area.height))
    if right <= left or bottom <= top:
        return mask

    box_w, box_h = right - left, bottom - top
    big = Image.new("L", (box_w * MASK_OVERSAMPLE, box_h * MASK_OVERSAMPLE), 0)
    polygon = [
        ((x - left) * MASK_OVERSAMPLE, (y - top) * MASK_OVERSAMPLE)
        for x, y in build_clip_path(area)
    ]
    ImageDraw.Draw(big).polygon(polygon, fill=255)
    mask.paste(big.resize((box_w, box_h), Image.Resampling.LANCZOS), (left, top))
    return mask


@contextmanager
def clipped(canvas: Image.Image, area: EditableArea) -> Iterator[Image.Image]:
    """
    Clip everything drawn inside the block to the billboard silhouette.

    Yields a transparent RGBA layer the size of `canvas`. When the block
    exits, the layer is composited onto `canvas` through the clip mask and
    the canvas is left unclipped. If the block raises, nothing is composited.
    """
    if canvas.mode != "RGBA":
        raise ValueError(f"Canvas must be RGBA, got {canvas.mode}")

    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    yield layer

    mask = build_clip_mask(canvas.size, area)
    alpha = ImageChops.multiply(layer.getchannel("A"), mask)
    layer.putalpha(alpha)
    canvas.alpha_composite(layer)
    logger.debug("Clip released")
