"""
BillboardExporter - orchestrates the composite export.

Combines:
- FontRegistry: font readiness before any text is measured
- ImageLoader: background and element images, loaded fresh per export
- GeometryMapper: editor coordinates to export canvas
- Clip region: billboard silhouette
- BillboardRenderer: drawing and PNG encoding

Pipeline states:
    IDLE -> FONTS_PENDING -> BACKGROUND_LOADING -> RENDERING -> ENCODING -> DONE
with FAILED reachable from any state after IDLE.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Union

from .clip import clipped
from .fonts import FontRegistry
from .layout import Bounds, EditableArea, GeometryMapper
from .loader import ImageLoader, ImageLoadError
from .presets import EXPORT_FILENAME
from .renderer import BillboardRenderer
from .session import Element
from .styles import extract_text_style

logger = logging.getLogger(__name__)


class ExportState(Enum):
    IDLE = "idle"
    FONTS_PENDING = "fonts_pending"
    BACKGROUND_LOADING = "background_loading"
    RENDERING = "rendering"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


class ExportError(Exception):
    """Export failed; no output was produced."""

    def __init__(self, message: str, failed_during: Optional[ExportState] = None):
        super().__init__(message)
        self.message = message
        self.failed_during = failed_during


class ExportBusyError(ExportError):
    """Another export is still running."""


@dataclass
class ExportResult:
    """Encoded export plus what went into it."""
    data: bytes
    width: int
    height: int
    scale_ratio: float
    element_count: int
    filename: str = EXPORT_FILENAME
    media_type: str = "image/png"
    skipped: List[str] = field(default_factory=list)


class BillboardExporter:
    """
    Produces the flattened billboard PNG.

    One export runs at a time; a request made while another is in flight is
    rejected with ExportBusyError. The element list is copied before the
    first await, so edits made during an export never show up in it.
    """

    def __init__(
        self,
        background_path: Union[str, Path],
        fonts: FontRegistry,
        loader: ImageLoader,
        renderer: Optional[BillboardRenderer] = None,
        font_timeout: float = 10.0,
    ):
        """
        Initialize exporter.

        Args:
            background_path: Billboard background image on disk
            fonts: Font registry awaited before rendering text
            loader: Image loader for background and element images
            renderer: Renderer (defaults to one using `fonts`)
            font_timeout: Seconds to wait for fonts before falling back
        """
        self.background_path = Path(background_path)
        self.fonts = fonts
        self.loader = loader
        self.renderer = renderer or BillboardRenderer(fonts)
        self.font_timeout = font_timeout
        self.state = ExportState.IDLE
        self.transitions: List[ExportState] = []
        self.last_error: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _transition(self, state: ExportState) -> None:
        self.state = state
        self.transitions.append(state)
        logger.info(f"Export state: {state.value}")

    def _fail(self, message: str) -> ExportError:
        failed_during = self.state
        self.last_error = message
        self._transition(ExportState.FAILED)
        logger.error(f"Export failed during {failed_during.value}: {message}")
        return ExportError(message, failed_during=failed_during)

    async def export(self, elements: Sequence[Element], bounds: Bounds) -> ExportResult:
        """
        Render the billboard with `elements` as seen inside `bounds`.

        Args:
            elements: Elements in drawing order (later ones on top)
            bounds: Fresh on-screen billboard rectangle

        Returns:
            ExportResult with PNG bytes

        Raises:
            ExportBusyError: another export is running
            ExportError: the export failed; nothing was produced
        """
        if self._lock.locked():
            raise ExportBusyError("An export is already in progress")

        snapshot = tuple(replace(element) for element in elements)

        async with self._lock:
            self.transitions = []
            self.last_error = None
            try:
                return await self._run(snapshot, bounds)
            except ExportError:
                raise
            except Exception as e:
                raise self._fail(f"Failed to save image: {e}") from e

    async def _run(self, elements: Sequence[Element], bounds: Bounds) -> ExportResult:
        logger.info(f"Starting export with {len(elements)} elements")

        # Step 1: Fonts
        self._transition(ExportState.FONTS_PENDING)
        try:
            await asyncio.wait_for(self.fonts.ready(), timeout=self.font_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Fonts not ready after {self.font_timeout:g}s, using fallbacks")
        logger.info(
            f"Fonts loaded - Oswald: {self.fonts.check('Oswald', 500)}, "
            f"Playfair Display: {self.fonts.check('Playfair Display')}"
        )

        # Step 2: Background
        self._transition(ExportState.BACKGROUND_LOADING)
        try:
            background = await self.loader.load_file(self.background_path)
        except ImageLoadError as e:
            raise self._fail(f"Failed to load background: {e}") from e
        logger.info(f"Background loaded: {background.width}x{background.height}")

        # Step 3: Render
        self._transition(ExportState.RENDERING)
        canvas = self.renderer.create_canvas(background)
        area = EditableArea.for_canvas(canvas.width, canvas.height)
        try:
            mapper = GeometryMapper(bounds, area)
        except ValueError as e:
            raise self._fail(str(e)) from e
        logger.info(f"Canvas {canvas.width}x{canvas.height}, scale ratio {mapper.scale_ratio:.4f}")

        skipped = []
        with clipped(canvas, area) as layer:
            for element in elements:
                box = mapper.map_element(element)
                if element.is_image:
                    try:
                        image = await self.loader.load(element.content)
                    except ImageLoadError as e:
                        logger.warning(f"Skipping {element.id}: {e}")
                        skipped.append(element.id)
                        continue
                    self.renderer.render_image(layer, image, box)
                else:
                    style = extract_text_style(
                        element.styled_content or element.content,
                        fallback_text=element.content,
                        fallback_font_size=element.font_size,
                    )
                    self.renderer.render_text(
                        layer, style, box, mapper.scale_font(style.font_size_px)
                    )
            self.renderer.render_gradient(layer, area)

        # Step 4: Encode
        self._transition(ExportState.ENCODING)
        try:
            data = self.renderer.encode_png(canvas)
        except (OSError, ValueError) as e:
            raise self._fail(f"Failed to create image: {e}") from e

        self._transition(ExportState.DONE)
        logger.info(f"Export complete: {len(data)} bytes, {len(skipped)} elements skipped")

        return ExportResult(
            data=data,
            width=canvas.width,
            height=canvas.height,
            scale_ratio=mapper.scale_ratio,
            element_count=len(elements),
            skipped=skipped,
        )
