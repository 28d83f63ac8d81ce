"""
Style extraction for rich-text markup produced by the editor widget.

The widget emits a small HTML dialect: paragraph-like blocks, inline spans
with `style` attributes, and emphasis tags. This module parses that dialect
into a flat TextStyle used by the renderer.
"""

import re
import logging
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple, Union
from dataclasses import dataclass

from .presets import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE, DEFAULT_TEXT_ALIGN

logger = logging.getLogger(__name__)

BLOCK_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6", "div", "li", "blockquote"}
BOLD_TAGS = {"strong", "b"}
ITALIC_TAGS = {"em", "i"}
TEXT_ALIGNS = ("left", "center", "right")

_PX_RE = re.compile(r"(\d+(?:\.\d+)?)px")


@dataclass(frozen=True)
class TextStyle:
    """Flat style record for one text element."""
    font_family: str = DEFAULT_FONT_FAMILY
    font_size_px: float = DEFAULT_FONT_SIZE
    text_align: str = DEFAULT_TEXT_ALIGN
    bold: bool = False
    italic: bool = False
    lines: Tuple[str, ...] = ()


def parse_style_attribute(style: str) -> Dict[str, str]:
    """Parse `a: b; c: d` into a dict. Later duplicates are ignored."""
    declarations: Dict[str, str] = {}
    for declaration in style.split(";"):
        name, sep, value = declaration.partition(":")
        if not sep:
            continue
        name = name.strip().lower()
        value = value.strip()
        if name and value and name not in declarations:
            declarations[name] = value
    return declarations


def normalize_font_family(value: str) -> str:
    """
    Map a declared font-family value onto a loaded family name.

    Examples:
        "Playfair Display, serif" -> "Playfair Display"
        "oswald-medium" -> "Oswald"
        "'Courier New', monospace" -> "Courier New"
    """
    family = value.split(",")[0].strip().replace('"', "").replace("'", "")
    if not family:
        return DEFAULT_FONT_FAMILY

    lowered = family.lower()
    if "playfair" in lowered:
        return "Playfair Display"
    if "oswald" in lowered:
        return "Oswald"
    return family


def _is_bold_weight(value: str) -> bool:
    value = value.strip().lower()
    if value in ("bold", "bolder"):
        return True
    return value.isdigit() and int(value) >= 600


class _MarkupParser(HTMLParser):
    """Collects first-declared style values, emphasis flags and text lines."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.font_family: Optional[str] = None
        self.font_size: Optional[float] = None
        self.text_align: Optional[str] = None
        self.bold = False
        self.italic = False
        self.block_lines: List[str] = []
        self.plain_parts: List[str] = []
        self.has_blocks = False
        self._block_depth = 0
        self._buffer: List[str] = []

    def _flush_block(self):
        text = " ".join("".join(self._buffer).split())
        if text:
            self.block_lines.append(text)
        self._buffer = []

    def _apply_style(self, style: str):
        declarations = parse_style_attribute(style)

        family = declarations.get("font-family")
        if family and self.font_family is None:
            self.font_family = family

        size = declarations.get("font-size")
        if size and self.font_size is None:
            match = _PX_RE.search(size)
            if match:
                self.font_size = float(match.group(1))

        align = declarations.get("text-align", "").lower()
        if align in TEXT_ALIGNS and self.text_align is None:
            self.text_align = align

        if _is_bold_weight(declarations.get("font-weight", "")):
            self.bold = True
        if declarations.get("font-style", "").lower() == "italic":
            self.italic = True

    def handle_starttag(self, tag, attrs):
        if tag in BOLD_TAGS:
            self.bold = True
        elif tag in ITALIC_TAGS:
            self.italic = True
        elif tag == "br":
            self.plain_parts.append("\n")
            if self._block_depth:
                self._buffer.append(" ")

        if tag in BLOCK_TAGS:
            self.has_blocks = True
            if self._block_depth:
                self._flush_block()
            self._block_depth += 1
            self.plain_parts.append("\n")

        for name, value in attrs:
            if name == "style" and value:
                self._apply_style(value)

    def handle_endtag(self, tag):
        if tag in BLOCK_TAGS and self._block_depth:
            self._flush_block()
            self._block_depth -= 1
            self.plain_parts.append("\n")

    def handle_data(self, data):
        self.plain_parts.append(data)
        if self._block_depth:
            self._buffer.append(data)

    def close(self):
        super().close()
        if self._block_depth:
            self._flush_block()
            self._block_depth = 0


def _parse(markup: str) -> _MarkupParser:
    parser = _MarkupParser()
    parser.feed(markup or "")
    parser.close()
    return parser


def plain_text(markup: str) -> str:
    """Text content of the markup, one line per block or line break."""
    parser = _parse(markup)
    lines = [line.strip() for line in "".join(parser.plain_parts).split("\n")]
    return "\n".join(line for line in lines if line)


def extract_text_style(
    markup: str,
    fallback_text: str = "",
    fallback_font_size: Optional[float] = None
) -> TextStyle:
    """
    Extract a TextStyle from editor markup.

    Args:
        markup: Rich-text HTML from the editor
        fallback_text: Plain content used when the markup yields no lines
        fallback_font_size: Element font size used when no px size is declared

    Returns:
        TextStyle with normalized family and upper-cased lines
    """
    parser = _parse(markup)

    if parser.has_blocks:
        lines = [line.upper() for line in parser.block_lines]
    else:
        text = "".join(parser.plain_parts)
        lines = [line.strip().upper() for line in text.split("\n")]
        lines = [line for line in lines if line]

    if not lines:
        lines = [fallback_text.upper()]

    font_size = parser.font_size
    if font_size is None:
        font_size = fallback_font_size or DEFAULT_FONT_SIZE

    return TextStyle(
        font_family=normalize_font_family(parser.font_family or DEFAULT_FONT_FAMILY),
        font_size_px=font_size,
        text_align=parser.text_align or DEFAULT_TEXT_ALIGN,
        bold=parser.bold,
        italic=parser.italic,
        lines=tuple(lines),
    )


def resolve_font_weight(style: TextStyle) -> Union[int, str]:
    """Oswald ships only a medium face, so it is always 500."""
    if style.font_family == "Oswald":
        return 500
    return "bold" if style.bold else "normal"


def css_font_string(style: TextStyle, size_px: float) -> str:
    """Compose a CSS font shorthand, e.g. `italic bold 48px "Playfair Display", Arial, sans-serif`."""
    family = style.font_family
    if " " in family:
        family = f'"{family}"'
    font_style = "italic" if style.italic else "normal"
    weight = resolve_font_weight(style)
    return f"{font_style} {weight} {size_px:g}px {family}, Arial, sans-serif"
