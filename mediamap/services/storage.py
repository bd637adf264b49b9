"""Local filesystem storage for uploaded payloads.

Records keep a path relative to the upload directory; the bytes live on
disk under a UUID filename so that client filenames never touch the
filesystem.
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from mediamap.core.exceptions import NotFoundException

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._ -]+")


def sanitize_filename(filename: Optional[str], default: str = "upload") -> str:
    """Strip directory components and unusual characters from a client filename."""
    name = Path(filename or "").name
    name = _UNSAFE_FILENAME.sub("_", name).strip(" .")
    return name[:255] or default


class MediaStorage:
    """Store and retrieve payloads under a root directory.

    Args:
        root: Upload directory, created on first use.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def save(self, content: bytes, original_filename: Optional[str]) -> str:
        """Write a payload and return its path relative to the root."""
        self.root.mkdir(parents=True, exist_ok=True)
        suffix = Path(sanitize_filename(original_filename)).suffix.lower()
        relative = f"{uuid.uuid4()}{suffix}"

        with open(self.root / relative, "wb") as f:
            f.write(content)

        logger.debug(f"Stored {len(content)} bytes as {relative}")
        return relative

    def path_for(self, relative: str) -> Path:
        """Resolve a stored path, refusing anything outside the root.

        Raises:
            NotFoundException: If the file is missing or escapes the root.
        """
        root = self.root.resolve()
        path = (root / relative).resolve()
        if root not in path.parents or not path.is_file():
            raise NotFoundException("Media file not found on disk")
        return path

    def delete(self, relative: str) -> None:
        """Remove a stored payload; a missing file is only logged."""
        path = self.root / relative
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Stored file already missing: {relative}")
        except OSError as e:
            logger.warning(f"Failed to delete stored file {relative}: {e}")
