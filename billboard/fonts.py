"""
FontRegistry - font discovery and lookup for text rendering.

Scans a fonts directory once (the export pipeline awaits `ready()` before any
text is measured), indexes faces by family, weight and italic, and resolves
CSS-like font requests to Pillow fonts with system fallbacks.
"""

import asyncio
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union
from dataclasses import dataclass

from PIL import ImageFont

logger = logging.getLogger(__name__)

FONT_EXTENSIONS = {".ttf", ".otf", ".ttc"}

# Last resorts before Pillow's built-in font, keyed by (bold, italic)
SYSTEM_FONT_PATHS = {
    (False, False): [
        "/System/Library/Fonts/Helvetica.ttc",  # macOS
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",  # Linux
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",  # Linux
        "C:\\Windows\\Fonts\\arial.ttf",  # Windows
    ],
    (True, False): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "C:\\Windows\\Fonts\\arialbd.ttf",
    ],
    (False, True): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Italic.ttf",
        "C:\\Windows\\Fonts\\ariali.ttf",
    ],
    (True, True): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-BoldOblique.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-BoldItalic.ttf",
        "C:\\Windows\\Fonts\\arialbi.ttf",
    ],
}

# Max cached (path, size) font objects
FONT_CACHE_SIZE = 64

STYLE_WEIGHTS = [
    ("extralight", 200),
    ("ultralight", 200),
    ("semibold", 600),
    ("demibold", 600),
    ("extrabold", 800),
    ("ultrabold", 800),
    ("thin", 100),
    ("light", 300),
    ("medium", 500),
    ("bold", 700),
    ("black", 900),
    ("heavy", 900),
]


@lru_cache(maxsize=FONT_CACHE_SIZE)
def load_font(path: str, size: float) -> ImageFont.FreeTypeFont:
    return ImageFont.truetype(path, size)


@dataclass(frozen=True)
class FontFace:
    """One font file on disk."""
    path: str
    family: str
    weight: int
    italic: bool


def weight_from_style_name(style_name: str) -> int:
    """Guess a numeric weight from a face's style name ("SemiBold Italic" -> 600)."""
    compact = style_name.lower().replace(" ", "").replace("-", "")
    for word, weight in STYLE_WEIGHTS:
        if word in compact:
            return weight
    return 400


def numeric_weight(weight: Union[int, str]) -> int:
    if isinstance(weight, int):
        return weight
    if weight == "bold":
        return 700
    if weight.isdigit():
        return int(weight)
    return 400


class FontRegistry:
    """
    Index of available font faces.

    Lookups before `ready()` completes still work, but only system fallbacks
    are available.
    """

    def __init__(self, fonts_dir: Optional[Union[str, Path]] = None):
        self.fonts_dir = Path(fonts_dir) if fonts_dir else None
        self._faces: Dict[str, List[FontFace]] = {}
        self._loaded = False

    @property
    def is_ready(self) -> bool:
        return self._loaded

    async def ready(self) -> None:
        """Scan the fonts directory off the event loop. Safe to call repeatedly."""
        if self._loaded:
            return
        faces = await asyncio.to_thread(self._scan)
        for face in faces:
            self._faces.setdefault(face.family.lower(), []).append(face)
        self._loaded = True
        logger.info(f"Fonts ready: {len(faces)} faces in {len(self._faces)} families")

    def _scan(self) -> List[FontFace]:
        if not self.fonts_dir or not self.fonts_dir.is_dir():
            logger.warning(f"Fonts directory not found: {self.fonts_dir}")
            return []

        faces = []
        for path in sorted(self.fonts_dir.rglob("*")):
            if path.suffix.lower() not in FONT_EXTENSIONS:
                continue
            try:
                family, style_name = ImageFont.truetype(str(path), 12).getname()
            except OSError as e:
                logger.warning(f"Skipping unreadable font {path.name}: {e}")
                continue
            style_name = style_name or "Regular"
            faces.append(FontFace(
                path=str(path),
                family=family,
                weight=weight_from_style_name(style_name),
                italic="italic" in style_name.lower() or "oblique" in style_name.lower(),
            ))
        return faces

    def families(self) -> List[str]:
        return sorted({faces[0].family for faces in self._faces.values()})

    def check(self, family: str, weight: Union[int, str] = 400) -> bool:
        """True if a face of exactly this family and weight is loaded."""
        wanted = numeric_weight(weight)
        return any(face.weight == wanted for face in self._faces.get(family.lower(), []))

    def find_face(
        self,
        family: str,
        weight: Union[int, str] = 400,
        italic: bool = False
    ) -> Optional[FontFace]:
        """Closest face in `family`: matching italic first, then nearest weight."""
        faces = self._faces.get(family.lower())
        if not faces:
            return None
        wanted = numeric_weight(weight)
        return min(faces, key=lambda f: (f.italic != italic, abs(f.weight - wanted)))

    def get_font(
        self,
        family: str,
        weight: Union[int, str] = 400,
        italic: bool = False,
        size: float = 24
    ) -> ImageFont.FreeTypeFont:
        """
        Resolve a font request the way a browser font stack would.

        Order: requested family, Arial, system fonts, Pillow's default font.
        """
        face = self.find_face(family, weight, italic)
        if face is None:
            logger.warning(f"Font family '{family}' not loaded, falling back")
            face = self.find_face("Arial", weight, italic)
        if face is not None:
            return load_font(face.path, size)

        bold = numeric_weight(weight) >= 600
        styled = SYSTEM_FONT_PATHS[(bold, italic)] if (bold or italic) else []
        for fp in styled:
            try:
                return load_font(fp, size)
            except OSError:
                continue

        if bold or italic:
            logger.warning(
                f"No {'bold ' if bold else ''}{'italic ' if italic else ''}"
                f"fallback face for '{family}', rendering regular"
            )
        for fp in SYSTEM_FONT_PATHS[(False, False)]:
            try:
                return load_font(fp, size)
            except OSError:
                continue

        return ImageFont.load_default(size=size)
