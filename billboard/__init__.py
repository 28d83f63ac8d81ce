# Billboard Module
# Editor session state plus the composite export engine (Pillow)

from .exporter import BillboardExporter, ExportBusyError, ExportError, ExportResult, ExportState
from .fonts import FontRegistry
from .layout import Bounds, EditableArea, GeometryMapper, MappedBox, contain_fit
from .loader import ImageLoader, ImageLoadError
from .presets import ElementKind, get_overlay_config
from .renderer import BillboardRenderer
from .session import BillboardSession, Element, SessionStore
from .styles import TextStyle, extract_text_style, normalize_font_family

__all__ = [
    "BillboardExporter",
    "ExportBusyError",
    "ExportError",
    "ExportResult",
    "ExportState",
    "FontRegistry",
    "Bounds",
    "EditableArea",
    "GeometryMapper",
    "MappedBox",
    "contain_fit",
    "ImageLoader",
    "ImageLoadError",
    "ElementKind",
    "get_overlay_config",
    "BillboardRenderer",
    "BillboardSession",
    "Element",
    "SessionStore",
    "TextStyle",
    "extract_text_style",
    "normalize_font_family",
]
