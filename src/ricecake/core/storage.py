"""Write-once image storage under the uploads directory.

Images are addressed by URL path, ``/uploads/<filename>``, which is also the
path the API serves them under.  Filenames are ``<prefix>_<uuid4>.png``;
files are never overwritten.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from ricecake.core.errors import ImageNotFoundError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"


class ImageStorage:
    """Store and retrieve PNG files under *uploads_dir*.

    Args:
        uploads_dir: Root directory (created if missing).
    """

    def __init__(self, uploads_dir: Path) -> None:
        self.root = Path(uploads_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, data: bytes, prefix: str) -> str:
        """Write *data* to a new file and return its URL path.

        Raises:
            OSError: The file could not be written.
        """
        filename = f"{prefix}_{uuid.uuid4()}.png"
        path = self.root / filename
        with open(path, "xb") as handle:
            handle.write(data)
        logger.info("Saved %s (%d bytes).", filename, len(data))
        return URL_PREFIX + filename

    def resolve(self, image_url: str) -> Path:
        """Map an ``/uploads/...`` URL (or bare filename) to a path.

        Raises:
            ImageNotFoundError: The URL escapes the upload root or the file
                does not exist.
        """
        name = image_url[len(URL_PREFIX):] if image_url.startswith(URL_PREFIX) else image_url
        root = self.root.resolve()
        path = (root / name).resolve()
        if root not in path.parents or not path.is_file():
            raise ImageNotFoundError(f"Image not found: {image_url}")
        return path

    def read(self, image_url: str) -> bytes:
        """Return the bytes stored at *image_url*."""
        return self.resolve(image_url).read_bytes()

    def find(self, image_id: str) -> Path | None:
        """Return the path of ``<image_id>.png``, or ``None``."""
        try:
            return self.resolve(f"{image_id}.png")
        except ImageNotFoundError:
            return None
