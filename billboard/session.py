"""
Billboard session state.

One BillboardSession per open editor. All edits go through its methods so the
invariants hold after every action:
- at most one selected element
- every element box stays inside the billboard bounds
- element ids are never reused
"""

import uuid
import logging
import itertools
from dataclasses import dataclass, replace
from typing import Dict, Iterator, List, Optional, Tuple

from .layout import Bounds, MappedBox, clamp_position, resize_from_corner
from .presets import (
    DEFAULT_FONT_SIZE,
    ELEMENT_INSET,
    LOGO_HEIGHT,
    LOGO_RIGHT_INSET,
    MIN_ELEMENT_SIZE,
    PERSON_HEIGHT,
    TEXT_PLACEHOLDER,
    TEXT_PLACEHOLDER_HTML,
    TEXT_SIZE,
    TEXT_STACK_OFFSET,
    ElementKind,
)
from .styles import plain_text

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Base class for session action errors."""


class SessionNotFoundError(SessionError):
    pass


class ElementNotFoundError(SessionError):
    pass


class InvalidActionError(SessionError):
    """The action does not apply to the current state."""


@dataclass
class Element:
    """A text, person or logo placed on the billboard (viewport pixels)."""
    id: str
    kind: ElementKind
    x: float
    y: float
    width: float
    height: float
    content: str
    styled_content: Optional[str] = None
    font_size: Optional[float] = None

    @property
    def is_image(self) -> bool:
        return self.kind.is_image

    @property
    def box(self) -> MappedBox:
        return MappedBox(x=self.x, y=self.y, width=self.width, height=self.height)


class BillboardSession:
    """Element collection, selection and bounds for one editor."""

    def __init__(self, session_id: Optional[str] = None, bounds: Optional[Bounds] = None):
        self.id = session_id or uuid.uuid4().hex
        self.bounds = bounds
        self.elements: List[Element] = []
        self.selected_id: Optional[str] = None
        self._ids: Iterator[int] = itertools.count(1)
        # (element id, box at drag start) while a corner drag is in progress
        self._resize_origin: Optional[Tuple[str, MappedBox]] = None

    # ---- queries ----

    def get(self, element_id: str) -> Element:
        for element in self.elements:
            if element.id == element_id:
                return element
        raise ElementNotFoundError(f"Element not found: {element_id}")

    @property
    def selected(self) -> Optional[Element]:
        return self.get(self.selected_id) if self.selected_id else None

    def snapshot(self) -> Tuple[Element, ...]:
        """Copies of the elements in drawing order; later edits don't affect them."""
        return tuple(replace(element) for element in self.elements)

    def _require_bounds(self) -> Bounds:
        if self.bounds is None:
            raise InvalidActionError("Billboard bounds have not been reported yet")
        return self.bounds

    def _next_id(self, kind: ElementKind) -> str:
        return f"{kind.value}-{next(self._ids)}"

    def _fit_size(self, width: float, height: float) -> Tuple[float, float]:
        """Scale a new box (aspect kept) down to fit the bounds; the minimum size wins."""
        bounds = self._require_bounds()
        scale = min(1.0, bounds.width / width, bounds.height / height)
        scale = max(scale, MIN_ELEMENT_SIZE / width, MIN_ELEMENT_SIZE / height)
        return width * scale, height * scale

    def _insert(self, element: Element) -> Element:
        self.elements.append(element)
        self.selected_id = element.id
        logger.info(f"[{self.id[:8]}] Added {element.id} at ({element.x:.0f}, {element.y:.0f})")
        return element

    # ---- actions ----

    def update_bounds(self, bounds: Bounds) -> None:
        if bounds.width <= 0 or bounds.height <= 0:
            raise InvalidActionError(f"Invalid billboard bounds: {bounds}")
        self.bounds = bounds

    def _add_image(
        self,
        kind: ElementKind,
        image_url: str,
        natural_size: Tuple[int, int],
        x: float,
        y: float,
        target_height: float
    ) -> Element:
        bounds = self._require_bounds()
        natural_width, natural_height = natural_size
        if natural_width <= 0 or natural_height <= 0:
            raise InvalidActionError(f"Image has no size: {image_url}")

        width, height = self._fit_size(target_height * natural_width / natural_height, target_height)
        x, y = clamp_position(x, y, width, height, bounds)
        return self._insert(Element(
            id=self._next_id(kind),
            kind=kind,
            x=x,
            y=y,
            width=width,
            height=height,
            content=image_url,
        ))

    def add_person(self, image_url: str, natural_size: Tuple[int, int]) -> Element:
        bounds = self._require_bounds()
        return self._add_image(
            ElementKind.PERSON, image_url, natural_size,
            bounds.left + ELEMENT_INSET, bounds.top + ELEMENT_INSET, PERSON_HEIGHT
        )

    def add_logo(self, image_url: str, natural_size: Tuple[int, int]) -> Element:
        bounds = self._require_bounds()
        return self._add_image(
            ElementKind.LOGO, image_url, natural_size,
            bounds.right - LOGO_RIGHT_INSET, bounds.top + ELEMENT_INSET, LOGO_HEIGHT
        )

    def add_text(self) -> Element:
        """Add a placeholder text element, offset from earlier text elements."""
        bounds = self._require_bounds()
        offset = sum(1 for e in self.elements if e.kind is ElementKind.TEXT) * TEXT_STACK_OFFSET
        width, height = self._fit_size(*TEXT_SIZE)
        x, y = clamp_position(
            bounds.left + ELEMENT_INSET + offset,
            bounds.top + ELEMENT_INSET + offset,
            width, height, bounds
        )
        return self._insert(Element(
            id=self._next_id(ElementKind.TEXT),
            kind=ElementKind.TEXT,
            x=x,
            y=y,
            width=width,
            height=height,
            content=TEXT_PLACEHOLDER,
            styled_content=TEXT_PLACEHOLDER_HTML,
            font_size=DEFAULT_FONT_SIZE,
        ))

    def select(self, element_id: Optional[str]) -> Optional[Element]:
        """Select one element, or clear the selection with None."""
        if element_id is None:
            self.selected_id = None
            return None
        element = self.get(element_id)
        self.selected_id = element.id
        return element

    def move(self, element_id: str, x: float, y: float) -> Element:
        """Drag an element; the box is clamped inside the bounds."""
        bounds = self._require_bounds()
        element = self.get(element_id)
        element.x, element.y = clamp_position(x, y, element.width, element.height, bounds)
        return element

    def begin_resize(self, element_id: str) -> Element:
        """Remember the element's box as the start of a corner drag."""
        element = self.get(element_id)
        self._resize_origin = (element.id, element.box)
        return element

    def end_resize(self) -> None:
        self._resize_origin = None

    def resize(self, element_id: str, corner: str, delta_x: float) -> Element:
        """
        Corner-drag resize, keeping the element's aspect.

        `delta_x` is the total horizontal movement since the drag started.
        Inside a begin_resize/end_resize drag every call resizes from the box
        captured at drag start; outside one the current box is the start.
        """
        bounds = self._require_bounds()
        element = self.get(element_id)
        start = element.box
        if self._resize_origin and self._resize_origin[0] == element.id:
            start = self._resize_origin[1]
        try:
            box = resize_from_corner(corner, start, delta_x, bounds, MIN_ELEMENT_SIZE)
        except ValueError as e:
            raise InvalidActionError(str(e)) from e
        element.x, element.y, element.width, element.height = box.x, box.y, box.width, box.height
        return element

    def update_text(self, element_id: str, styled_content: str) -> Element:
        element = self.get(element_id)
        if element.kind is not ElementKind.TEXT:
            raise InvalidActionError(f"Element {element_id} is not a text element")
        element.styled_content = styled_content
        element.content = plain_text(styled_content).upper()
        return element

    def update_font_size(self, element_id: str, font_size: float) -> Element:
        element = self.get(element_id)
        if element.kind is not ElementKind.TEXT:
            raise InvalidActionError(f"Element {element_id} is not a text element")
        if font_size <= 0:
            raise InvalidActionError(f"Font size must be positive, got {font_size}")
        element.font_size = font_size
        return element

    def delete(self, element_id: str) -> Element:
        element = self.get(element_id)
        self.elements.remove(element)
        if self.selected_id == element_id:
            self.selected_id = None
        if self._resize_origin and self._resize_origin[0] == element_id:
            self._resize_origin = None
        logger.info(f"[{self.id[:8]}] Deleted {element_id}")
        return element

    def delete_selected(self) -> Optional[Element]:
        """Delete the selected element; no-op without a selection."""
        if self.selected_id is None:
            return None
        return self.delete(self.selected_id)


class SessionStore:
    """In-memory sessions; nothing survives a restart."""

    def __init__(self):
        self._sessions: Dict[str, BillboardSession] = {}

    def create(self, bounds: Optional[Bounds] = None) -> BillboardSession:
        session = BillboardSession(bounds=bounds)
        self._sessions[session.id] = session
        logger.info(f"Created session {session.id}")
        return session

    def get(self, session_id: str) -> BillboardSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def remove(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")

    def __len__(self) -> int:
        return len(self._sessions)
