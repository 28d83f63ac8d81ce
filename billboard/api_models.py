"""
Billboard API models for FastAPI endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal

from .layout import Bounds
from .session import BillboardSession, Element


class BoundsModel(BaseModel):
    """On-screen billboard rectangle, viewport pixels."""
    left: float
    top: float
    right: float
    bottom: float

    def to_bounds(self) -> Bounds:
        return Bounds(left=self.left, top=self.top, right=self.right, bottom=self.bottom)

    @classmethod
    def from_bounds(cls, bounds: Bounds) -> "BoundsModel":
        return cls(left=bounds.left, top=bounds.top, right=bounds.right, bottom=bounds.bottom)


class ElementModel(BaseModel):
    """A placed element as the editor sees it."""
    id: str
    type: Literal["person", "text", "logo"]
    x: float
    y: float
    width: float
    height: float
    content: str
    html_content: Optional[str] = None  # Rich markup, text only
    font_size: Optional[float] = None   # Text only

    @classmethod
    def from_element(cls, element: Element) -> "ElementModel":
        return cls(
            id=element.id,
            type=element.kind.value,
            x=element.x,
            y=element.y,
            width=element.width,
            height=element.height,
            content=element.content,
            html_content=element.styled_content,
            font_size=element.font_size,
        )


class SessionStateResponse(BaseModel):
    """Full session state after an action."""
    session_id: str
    elements: List[ElementModel]
    selected_id: Optional[str] = None
    bounds: Optional[BoundsModel] = None

    @classmethod
    def from_session(cls, session: BillboardSession) -> "SessionStateResponse":
        return cls(
            session_id=session.id,
            elements=[ElementModel.from_element(e) for e in session.elements],
            selected_id=session.selected_id,
            bounds=BoundsModel.from_bounds(session.bounds) if session.bounds else None,
        )


class CreateSessionRequest(BaseModel):
    bounds: Optional[BoundsModel] = None


class AddImageRequest(BaseModel):
    """Add a person or logo from an image URL."""
    image_url: str


class SelectRequest(BaseModel):
    element_id: Optional[str] = None  # None clears the selection


class MoveRequest(BaseModel):
    x: float
    y: float


class ResizeRequest(BaseModel):
    corner: Literal["tl", "tr", "bl", "br"]
    delta_x: float  # Total horizontal movement since resize/start (or from the current box)


class TextUpdateRequest(BaseModel):
    html_content: str


class FontSizeRequest(BaseModel):
    font_size: float = Field(gt=0)


class ExportRequest(BaseModel):
    """Bounds measured at save time; falls back to the session's last bounds."""
    bounds: Optional[BoundsModel] = None


class OverlayResponse(BaseModel):
    """Shared clip/gradient/editable-area table for the editor overlay."""
    editable_area: dict
    clip_path: str
    gradient_stops: List[dict]
    text_color: str
    min_element_size: float
