"""
ImageLoader - fetch and decode element images.

Sources accepted:
- Remote http(s) URLs (httpx)
- data: URLs (base64)
- Site-relative paths such as /images/people/x.png, served from the public dir

SVG payloads are rasterized with cairosvg; everything else goes through Pillow.
Every load is bounded by a timeout and every failure surfaces as ImageLoadError.
"""

import io
import base64
import asyncio
import logging
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, urlparse

import httpx
from PIL import Image

logger = logging.getLogger(__name__)


class ImageLoadError(Exception):
    """An image could not be fetched or decoded."""


def looks_like_svg(data: bytes) -> bool:
    head = data[:512].lstrip().lower()
    return head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in data[:2048].lower())


class ImageLoader:
    """Loads images fresh on every call; nothing is cached between exports."""

    def __init__(
        self,
        public_dir: Union[str, Path] = "public",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize loader.

        Args:
            public_dir: Directory that site-relative URLs resolve against
            timeout: Seconds allowed per load (fetch + decode)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.public_dir = Path(public_dir)
        self.timeout = timeout
        self.transport = transport

    async def load(self, source: str) -> Image.Image:
        """Load an image from a URL or site-relative path as RGBA."""
        if not source:
            raise ImageLoadError("Empty image source")
        try:
            return await asyncio.wait_for(self._load(source), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise ImageLoadError(f"Timed out after {self.timeout:g}s loading {source[:80]}")

    async def load_file(self, path: Union[str, Path]) -> Image.Image:
        """Load an image from a filesystem path as RGBA."""
        try:
            data = await asyncio.wait_for(
                asyncio.to_thread(Path(path).read_bytes),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise ImageLoadError(f"Timed out after {self.timeout:g}s reading {path}")
        except OSError as e:
            raise ImageLoadError(f"Cannot read {path}: {e}") from e
        return await asyncio.to_thread(self.decode, data, str(path))

    async def _load(self, source: str) -> Image.Image:
        data = await self._read_bytes(source)
        return await asyncio.to_thread(self.decode, data, source)

    async def _read_bytes(self, source: str) -> bytes:
        if source.startswith(("http://", "https://")):
            return await self._fetch(source)
        if source.startswith("data:"):
            return self._decode_data_url(source)
        path = self.resolve_local(source)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ImageLoadError(f"Cannot read {source}: {e}") from e

    async def _fetch(self, url: str) -> bytes:
        logger.info(f"Fetching image: {url[:80]}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            raise ImageLoadError(f"Failed to fetch {url[:80]}: {e}") from e

    def _decode_data_url(self, source: str) -> bytes:
        header, sep, payload = source.partition(",")
        if not sep:
            raise ImageLoadError("Malformed data URL")
        try:
            if header.endswith(";base64"):
                return base64.b64decode(payload, validate=True)
            return unquote(payload).encode("utf-8")
        except ValueError as e:
            raise ImageLoadError(f"Malformed data URL: {e}") from e

    def resolve_local(self, source: str) -> Path:
        """Resolve a site-relative URL inside the public dir."""
        relative = unquote(urlparse(source).path).lstrip("/")
        root = self.public_dir.resolve()
        path = (root / relative).resolve()
        if not path.is_relative_to(root):
            raise ImageLoadError(f"Path escapes public directory: {source}")
        return path

    def decode(self, data: bytes, source: str = "") -> Image.Image:
        """Decode raw bytes (raster or SVG) into a loaded RGBA image."""
        try:
            if looks_like_svg(data):
                import cairosvg
                data = cairosvg.svg2png(bytestring=data)
            image = Image.open(io.BytesIO(data))
            image.load()
        except Exception as e:
            raise ImageLoadError(f"Cannot decode image {source[:80]}: {e}") from e

        if image.width == 0 or image.height == 0:
            raise ImageLoadError(f"Image has no pixels: {source[:80]}")
        return image.convert("RGBA")
