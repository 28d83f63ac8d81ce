"""
ImageStore - uploaded people/logo images on the local filesystem.

Files live under <public_dir>/images/<bucket>/ and are addressed by their
public URL, /images/<bucket>/<filename>.
"""

import os
import re
import time
import logging
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

BUCKETS = ("people", "logos")

ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
}

IMAGE_FILE_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)


class ImageStoreError(Exception):
    """Base class for image store errors."""


class InvalidImageError(ImageStoreError):
    """Bad request: missing file, wrong type or invalid path."""


class ImageNotFoundError(ImageStoreError):
    pass


class ImageStore:
    """Lists, saves and deletes bucket images."""

    def __init__(self, public_dir: Union[str, Path] = "public"):
        self.public_dir = Path(public_dir)
        self.images_dir = self.public_dir / "images"

    def bucket_dir(self, bucket: str) -> Path:
        if bucket not in BUCKETS:
            raise InvalidImageError(f"Unknown bucket: {bucket}")
        return self.images_dir / bucket

    def list_images(self, bucket: str) -> List[str]:
        """Public URLs of the images in a bucket, sorted by filename."""
        directory = self.bucket_dir(bucket)
        directory.mkdir(parents=True, exist_ok=True)
        files = sorted(
            entry.name for entry in directory.iterdir()
            if entry.is_file() and IMAGE_FILE_RE.search(entry.name)
        )
        return [f"/images/{bucket}/{name}" for name in files]

    def save_upload(
        self,
        filename: str,
        content_type: str,
        data: bytes,
        bucket: str = "logos"
    ) -> str:
        """
        Save an uploaded image.

        Args:
            filename: Client filename (directory parts are dropped)
            content_type: MIME type reported by the client
            data: File content
            bucket: "people"; anything else goes to "logos"

        Returns:
            Public URL of the saved file
        """
        if not filename:
            raise InvalidImageError("No file provided")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidImageError("Invalid file type")

        target = "people" if bucket == "people" else "logos"
        directory = self.bucket_dir(target)
        directory.mkdir(parents=True, exist_ok=True)

        basename = os.path.basename(filename.replace("\\", "/"))
        if not basename or basename in (".", ".."):
            raise InvalidImageError("Invalid filename")

        saved_name = f"{int(time.time() * 1000)}-{basename}"
        (directory / saved_name).write_bytes(data)

        url = f"/images/{target}/{saved_name}"
        logger.info(f"Saved upload {url} ({len(data)} bytes)")
        return url

    def delete_image(self, image_path: str) -> None:
        """Delete an image by public URL; it must live under /images/."""
        if not image_path:
            raise InvalidImageError("No image path provided")
        if not image_path.startswith("/images/"):
            raise InvalidImageError("Invalid path")

        root = self.images_dir.resolve()
        full_path = (self.public_dir / image_path.lstrip("/")).resolve()
        if not full_path.is_relative_to(root) or full_path == root:
            raise InvalidImageError("Invalid path")
        if not full_path.is_file():
            raise ImageNotFoundError("File not found")

        full_path.unlink()
        logger.info(f"Deleted image {image_path}")
