"""
Billboard presets - the shared configuration table.

Everything the interactive overlay and the exporter must agree on lives here:
- Editable area (sign face) as fractions of the export canvas
- Clip path silhouette in normalized coordinates
- Gradient overlay stops
- Text colour and line spacing
- Element sizing defaults
"""

from enum import Enum
from typing import List, Tuple
from dataclasses import dataclass


class ElementKind(Enum):
    """Kinds of element a user can place on the billboard."""
    PERSON = "person"
    TEXT = "text"
    LOGO = "logo"

    @property
    def is_image(self) -> bool:
        return self in (ElementKind.PERSON, ElementKind.LOGO)


@dataclass(frozen=True)
class AreaFractions:
    """Sub-rectangle of the canvas, as fractions of canvas size."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ClipSegment:
    """One path segment; `points` are (x, y) pairs in 0-1 space."""
    command: str  # "M", "L" or "C"
    points: Tuple[Tuple[float, float], ...]


@dataclass(frozen=True)
class GradientStop:
    """Colour stop for the vertical overlay gradient."""
    offset: float
    rgba: Tuple[int, int, int, float]


# Sign face on the export canvas
EDITABLE_AREA = AreaFractions(x=0.185, y=0.205, width=0.63, height=0.4275)

# Billboard silhouette (same path the editor's SVG clip mask uses)
CLIP_PATH: Tuple[ClipSegment, ...] = (
    ClipSegment("M", ((0.0389, 0.9944),)),
    ClipSegment("C", ((0.0731, 0.5730), (0.0262, 0.1798), (0.0009, 0.0014))),
    ClipSegment("L", ((0.9986, 0.0014),)),
    ClipSegment("C", ((0.9682, 0.1469), (0.9173, 0.5498), (0.9563, 0.9972))),
    ClipSegment("L", ((0.0389, 0.9944),)),
)

# Samples per cubic curve when flattening the clip path
BEZIER_STEPS = 64

GRADIENT_STOPS: Tuple[GradientStop, ...] = (
    GradientStop(0.0, (0, 0, 0, 0.2)),
    GradientStop(0.48, (102, 102, 102, 0.3)),
    GradientStop(0.52, (102, 102, 102, 0.3)),
    GradientStop(1.0, (0, 0, 0, 0.2)),
)

TEXT_COLOR = "#D8D8C7"
LINE_HEIGHT_FACTOR = 1.2

# Export surface is this multiple of the background's natural size
SUPERSAMPLE = 2
EXPORT_FILENAME = "billboard-hq.png"

MIN_ELEMENT_SIZE = 50.0
DEFAULT_FONT_SIZE = 24
DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_TEXT_ALIGN = "center"

PERSON_HEIGHT = 150.0
LOGO_HEIGHT = 120.0
LOGO_RIGHT_INSET = 200.0
ELEMENT_INSET = 50.0
TEXT_STACK_OFFSET = 20.0
TEXT_SIZE = (300.0, 100.0)
TEXT_PLACEHOLDER = "EDIT ME"
TEXT_PLACEHOLDER_HTML = (
    '<p style="text-align: center"><span style="font-family: Oswald; '
    'font-size: 24px">EDIT ME</span></p>'
)


def svg_clip_path_data() -> str:
    """Render CLIP_PATH as an SVG path `d` attribute for objectBoundingBox units."""
    parts: List[str] = []
    for segment in CLIP_PATH:
        coords = " ".join(f"{x:.4f} {y:.4f}" for x, y in segment.points)
        parts.append(f"{segment.command} {coords}")
    parts.append("Z")
    return " ".join(parts)


def get_overlay_config() -> dict:
    """Overlay table for the editor, so the on-screen mask matches the export."""
    return {
        "editable_area": {
            "x": EDITABLE_AREA.x,
            "y": EDITABLE_AREA.y,
            "width": EDITABLE_AREA.width,
            "height": EDITABLE_AREA.height,
        },
        "clip_path": svg_clip_path_data(),
        "gradient_stops": [
            {"offset": stop.offset, "color": "rgba({}, {}, {}, {})".format(*stop.rgba)}
            for stop in GRADIENT_STOPS
        ],
        "text_color": TEXT_COLOR,
        "min_element_size": MIN_ELEMENT_SIZE,
    }
