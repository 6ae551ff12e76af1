"""
Inventory Service — Photo Store
=================================

What:  Blob storage for uploaded item photos in a single directory.
How:   Blobs are addressed by filename ("key"). Writes go to a hidden
       temporary file first and are then published under the final key
       with a hard link, which fails instead of overwriting when the key
       already exists.
Who:   Called by InventoryService on register, photo replacement, and
       photo download.

Guarantees:
    - An existing key is never overwritten. If the caller's suggested name
      is taken (or unsafe), a fresh uuid-based key is assigned instead.
    - A reader never observes a partially written blob: the key only
      appears once the full content is on disk.
    - No deletion: blobs outlive the records that referenced them.

Key rules:
    Suggested names are reduced to their basename, with characters outside
    [A-Za-z0-9._-] replaced by "_". Keys never start with "." (temporary
    files are hidden) and never contain path separators, so a key cannot
    escape the store directory.

Directory Structure:
    photos/
    ├── drill.jpg
    ├── 3f2a9c0e5b8d4c1e9a7b6d5c4e3f2a1b.jpg
    └── .upload-<uuid>.tmp      (in-flight writes only)
"""

import logging
import re
import uuid
from contextlib import suppress
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os

from inventory_service.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Bytes per chunk when streaming a blob to a client
CHUNK_SIZE = 64 * 1024

# Content types by key extension; the original service served everything as JPEG
MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".svg": "image/svg+xml",
}
DEFAULT_MEDIA_TYPE = "image/jpeg"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_VALID_KEY = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]{0,127}$")
_VALID_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}$")

# Fresh uuid keys to try before giving up on a publish
_MAX_PUBLISH_ATTEMPTS = 5


def sanitize_name(filename: Optional[str]) -> Optional[str]:
    """
    Reduce a client-supplied filename to a safe key, or None if nothing usable remains.

    Examples:
        "drill.jpg"              → "drill.jpg"
        "../../etc/passwd"       → "passwd"
        "my photo (1).JPG"       → "my_photo_1_.JPG"
        ".hidden"                → "hidden"
    """
    if not filename:
        return None
    # Browsers on Windows may send backslash paths
    base = PurePosixPath(filename.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).lstrip(".")[:128]
    if not cleaned or not _VALID_KEY.match(cleaned):
        return None
    return cleaned


class PhotoStore:
    """
    Directory-backed photo blob store.

    Lifecycle of an uploaded photo:
        1. save(): content written to .upload-<uuid>.tmp
        2. Temp file hard-linked to the chosen key (fails if the key exists)
        3. Temp file removed; key returned and stored on the item record
        4. open_for_read(): key resolved inside the root and streamed in chunks
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileStorageError(
                message="Could not initialize photo storage",
                context={"path": str(self.root), "os_error": str(e)},
            ) from e
        logger.info("PhotoStore initialized with root=%s", self.root)

    def _resolve(self, key: Optional[str]) -> Optional[Path]:
        """Absolute path for a well-formed key, or None for anything else."""
        if not key or not _VALID_KEY.match(key):
            return None
        return self.root / key

    @staticmethod
    def _generate_key(suggested: Optional[str]) -> str:
        ext = Path(suggested).suffix.lower() if suggested else ""
        if not _VALID_EXTENSION.match(ext):
            ext = ""
        return f"{uuid.uuid4().hex}{ext}"

    async def save(self, content: bytes, suggested_name: Optional[str] = None) -> str:
        """
        Persist `content` and return the key it is stored under.

        Args:
            content: Raw photo bytes (must not be empty)
            suggested_name: Preferred key, typically the uploaded filename

        Raises:
            ValidationError: content is empty
            FileStorageError: the blob could not be written
        """
        if not content:
            raise ValidationError(message="Photo file is empty", field="photo")

        preferred = sanitize_name(suggested_name)
        tmp_path = self.root / f".upload-{uuid.uuid4().hex}.tmp"

        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(content)

            candidates = [preferred] if preferred else []
            candidates += [self._generate_key(suggested_name) for _ in range(_MAX_PUBLISH_ATTEMPTS)]
            for key in candidates:
                try:
                    await aiofiles.os.link(tmp_path, self.root / key)
                except FileExistsError:
                    logger.debug("Photo key %s already taken", key)
                    continue
                logger.info("Photo stored: %s (%d bytes)", key, len(content))
                return key

            raise FileStorageError(
                message="Failed to save uploaded photo. Please try again.",
                context={"reason": "no free key", "suggested_name": suggested_name},
            )

        except OSError as e:
            logger.error("Failed to store photo in %s: %s", self.root, e)
            raise FileStorageError(
                message="Failed to save uploaded photo. Please try again.",
                context={"path": str(self.root), "os_error": str(e)},
            ) from e
        finally:
            with suppress(OSError):
                await aiofiles.os.remove(tmp_path)

    async def exists(self, key: Optional[str]) -> bool:
        path = self._resolve(key)
        if path is None:
            return False
        return await aiofiles.os.path.isfile(path)

    async def open_for_read(self, key: Optional[str]) -> AsyncIterator[bytes]:
        """
        Open a blob for streaming.

        The file is opened before returning, so a missing key raises
        NotFoundError here rather than midway through a response.

        Returns:
            Async iterator of byte chunks; the file closes when it is exhausted.
        """
        path = self._resolve(key)
        if path is None:
            raise NotFoundError(resource="photo", resource_id=key)
        try:
            handle = await aiofiles.open(path, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise NotFoundError(resource="photo", resource_id=key)
        except OSError as e:
            logger.error("Failed to open photo %s: %s", path, e)
            raise FileStorageError(
                message="Could not read photo",
                context={"path": str(path), "os_error": str(e)},
            ) from e
        return self._stream(handle)

    @staticmethod
    async def _stream(handle) -> AsyncIterator[bytes]:
        try:
            while chunk := await handle.read(CHUNK_SIZE):
                yield chunk
        finally:
            await handle.close()

    @staticmethod
    def media_type(key: str) -> str:
        """Content type for a key, from its extension."""
        return MEDIA_TYPES.get(Path(key).suffix.lower(), DEFAULT_MEDIA_TYPE)

    async def ping(self) -> None:
        """Raises FileStorageError when the store directory is unusable."""
        if not await aiofiles.os.path.isdir(self.root):
            raise FileStorageError(
                message="Photo storage directory is missing",
                context={"path": str(self.root)},
            )
