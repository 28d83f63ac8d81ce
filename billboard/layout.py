"""
Geometry - coordinate mapping between the editor and the export canvas.

Handles:
1. Billboard bounds (viewport-absolute, as measured by the editor)
2. Editable area on the export canvas
3. Scale ratio mapping of element boxes and font sizes
4. Contain-fit placement of images
5. Drag and corner-resize clamping for interactive updates
"""

from typing import Tuple
from dataclasses import dataclass

from .presets import EDITABLE_AREA, MIN_ELEMENT_SIZE, AreaFractions


@dataclass(frozen=True)
class Bounds:
    """On-screen rectangle of the billboard's editable region."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def origin(self) -> Tuple[float, float]:
        return (self.left, self.top)


@dataclass(frozen=True)
class MappedBox:
    """A rectangle in export-canvas pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def aspect(self) -> float:
        return self.width / self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class EditableArea:
    """Sign face rectangle on the export canvas."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def for_canvas(
        cls,
        canvas_width: int,
        canvas_height: int,
        fractions: AreaFractions = EDITABLE_AREA
    ) -> "EditableArea":
        return cls(
            x=canvas_width * fractions.x,
            y=canvas_height * fractions.y,
            width=canvas_width * fractions.width,
            height=canvas_height * fractions.height,
        )

    def to_canvas(self, nx: float, ny: float) -> Tuple[float, float]:
        """Map a normalized (0-1) point inside the area to canvas pixels."""
        return (self.x + nx * self.width, self.y + ny * self.height)


class GeometryMapper:
    """
    Maps billboard-relative boxes onto the export canvas.

    One scale ratio is used for positions, sizes and font sizes so the export
    keeps the proportions the user saw, whatever the viewport zoom was.
    Build a new mapper per export from fresh bounds.
    """

    def __init__(self, bounds: Bounds, area: EditableArea):
        if bounds.width <= 0:
            raise ValueError(f"Billboard width must be positive, got {bounds.width}")
        self.bounds = bounds
        self.area = area
        self.scale_ratio = area.width / bounds.width

    def map_box(self, x: float, y: float, width: float, height: float) -> MappedBox:
        relative_x = x - self.bounds.left
        relative_y = y - self.bounds.top
        return MappedBox(
            x=self.area.x + relative_x * self.scale_ratio,
            y=self.area.y + relative_y * self.scale_ratio,
            width=width * self.scale_ratio,
            height=height * self.scale_ratio,
        )

    def map_element(self, element) -> MappedBox:
        """Map anything with x, y, width, height attributes."""
        return self.map_box(element.x, element.y, element.width, element.height)

    def scale_font(self, font_size_px: float) -> float:
        return font_size_px * self.scale_ratio


def contain_fit(image_width: int, image_height: int, box: MappedBox) -> MappedBox:
    """
    Largest placement of an image inside `box` that keeps its aspect ratio.

    Wider images fit the box width and centre vertically; the rest fit the
    box height and centre horizontally.
    """
    image_aspect = image_width / image_height
    if image_aspect > box.aspect:
        draw_height = box.width / image_aspect
        return MappedBox(
            x=box.x,
            y=box.y + (box.height - draw_height) / 2,
            width=box.width,
            height=draw_height,
        )
    draw_width = box.height * image_aspect
    return MappedBox(
        x=box.x + (box.width - draw_width) / 2,
        y=box.y,
        width=draw_width,
        height=box.height,
    )


def clamp_position(
    x: float,
    y: float,
    width: float,
    height: float,
    bounds: Bounds
) -> Tuple[float, float]:
    """Keep a box of the given size fully inside bounds."""
    x = max(bounds.left, min(x, bounds.right - width))
    y = max(bounds.top, min(y, bounds.bottom - height))
    return x, y


def resize_from_corner(
    corner: str,
    start: MappedBox,
    delta_x: float,
    bounds: Bounds,
    min_size: float = MIN_ELEMENT_SIZE
) -> MappedBox:
    """
    Resize a box by dragging one corner, keeping its starting aspect ratio.

    The opposite corner is the anchor. The horizontal drag delta sets the new
    width; height follows from the aspect ratio. One scale factor is clamped
    so neither side drops below `min_size` and the box still fits in bounds,
    then the position is clamped into bounds.

    Args:
        corner: "tl", "tr", "bl" or "br"
        start: Box at the start of the drag (viewport pixels)
        delta_x: Horizontal pointer movement since the drag started
        bounds: Billboard bounds
        min_size: Minimum width and height

    Returns:
        Resized box
    """
    if corner not in ("tl", "tr", "bl", "br"):
        raise ValueError(f"Unknown resize corner: {corner}")

    grows_left = corner in ("tl", "bl")
    new_width = start.width - delta_x if grows_left else start.width + delta_x
    scale = new_width / start.width

    min_scale = max(min_size / start.width, min_size / start.height)
    max_scale = min(bounds.width / start.width, bounds.height / start.height)
    scale = max(min_scale, min(scale, max_scale))

    width = start.width * scale
    height = start.height * scale

    x = start.x + start.width - width if grows_left else start.x
    y = start.y + start.height - height if corner in ("tl", "tr") else start.y

    x, y = clamp_position(x, y, width, height, bounds)
    return MappedBox(x=x, y=y, width=width, height=height)
