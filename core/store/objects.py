"""
Object Storage - Uploaded Image Files

Images are stored under owner- and entity-scoped keys:

    images/{owner_id}/{entity_id}/{epoch_ms}-{random}.{ext}

The timestamp plus random suffix keeps keys unique. The returned URL is used
directly as an image source. Nothing is ever deleted: files whose owning
record has been removed stay behind.
"""

from __future__ import annotations

import secrets
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Optional

from core.errors import StoreError, TransientStoreError

# =============================================================================
# Constants
# =============================================================================

DEFAULT_OBJECT_ROOT: Final[str] = "data/objects"
DEFAULT_BASE_URL: Final[str] = "/files"

ALLOWED_IMAGE_EXTENSIONS: Final[tuple[str, ...]] = (".jpg", ".jpeg", ".png", ".webp", ".gif")

# Maximum image size (5MB)
MAX_IMAGE_BYTES: Final[int] = 5 * 1024 * 1024

RANDOM_SUFFIX_LENGTH: Final[int] = 7
_SUFFIX_ALPHABET: Final[str] = string.ascii_lowercase + string.digits


# =============================================================================
# Keys & Validation
# =============================================================================


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot, or an empty string."""
    if "." not in filename:
        return ""
    return "." + filename.rsplit(".", 1)[-1].lower()


def build_image_path(
    owner_id: str,
    entity_id: str,
    filename: str,
    now_ms: Optional[int] = None,
) -> str:
    """
    Build a collision-resistant storage key for an image.

    Args:
        owner_id: Owner the file belongs to
        entity_id: Record the image is attached to
        filename: Original filename (only the extension is kept)
        now_ms: Epoch milliseconds; defaults to the current time

    Returns:
        Storage key under ``images/``
    """
    if not owner_id or not entity_id:
        raise ValueError("owner_id and entity_id are required")
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))
    ext = file_extension(filename).lstrip(".") or "bin"
    return f"images/{owner_id}/{entity_id}/{stamp}-{suffix}.{ext}"


def validate_image(
    filename: str,
    size: int,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> tuple[bool, Optional[str]]:
    """
    Validate an image before upload.

    Returns:
        Tuple of (is_valid, error_message)
    """
    ext = file_extension(filename)
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        return False, f"Invalid image type: {ext or 'none'}. Allowed: {', '.join(ALLOWED_IMAGE_EXTENSIONS)}"
    if size == 0:
        return False, "File is empty"
    if size > max_bytes:
        return False, f"Image too large. Maximum size: {max_bytes / (1024 * 1024):g}MB"
    return True, None


@dataclass(frozen=True)
class ImageFile:
    """An uploaded image waiting to be stored."""

    filename: str
    content: bytes

    def validate(self, max_bytes: int = MAX_IMAGE_BYTES) -> tuple[bool, Optional[str]]:
        return validate_image(self.filename, len(self.content), max_bytes)


# =============================================================================
# Object Store
# =============================================================================


class ObjectStore(ABC):
    """Interface to the file storage service."""

    @abstractmethod
    def put(self, content: bytes, path: str) -> str:
        """Store bytes at ``path`` and return a fetchable URL."""


class LocalObjectStore(ObjectStore):
    """
    Filesystem-backed object store.

    Files land at ``{root}/{path}``; URLs are ``{base_url}/{path}``.
    """

    def __init__(self, root: Optional[str] = None, base_url: str = DEFAULT_BASE_URL):
        self._root = Path(root or DEFAULT_OBJECT_ROOT)
        self._base_url = base_url.rstrip("/")
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if self._root.resolve() not in target.parents:
            raise StoreError(f"Object path escapes storage root: {path}")
        return target

    def put(self, content: bytes, path: str) -> str:
        """
        Write ``content`` under ``path``.

        Raises:
            TransientStoreError: If the filesystem write fails
        """
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise TransientStoreError(f"Could not store {path}: {e}") from e
        return f"{self._base_url}/{path}"

    def read(self, path: str) -> Optional[bytes]:
        """Read a stored object, or None if absent."""
        target = self._resolve(path)
        if target.exists():
            return target.read_bytes()
        return None


def upload_image(
    objects: ObjectStore,
    owner_id: str,
    entity_id: str,
    filename: str,
    content: bytes,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> str:
    """
    Validate and store an image for an owner's record.

    Returns:
        Public URL of the stored image

    Raises:
        ValueError: If the image fails validation
    """
    is_valid, error = validate_image(filename, len(content), max_bytes)
    if not is_valid:
        raise ValueError(error)
    return objects.put(content, build_image_path(owner_id, entity_id, filename))
