"""
Image storage backends.

The database is the source of truth: files are written before the row that
references them, and removed only after that row is gone. Removal is
best-effort and never fails the caller.
"""
import asyncio
import logging
import uuid
from pathlib import Path
from typing import Iterable, Optional

from gallery_api.config import settings
from gallery_api.services import cloudinary_service

logger = logging.getLogger(__name__)


class ImageStorage:
    """Interface shared by the storage backends."""

    backend = "abstract"

    async def save(self, content: bytes, folder: str, extension: str) -> str:
        """Store the bytes and return the public URL."""
        raise NotImplementedError

    async def delete(self, url: str) -> bool:
        """Remove the file behind ``url``. Returns False if there was nothing to remove."""
        raise NotImplementedError

    def status(self) -> dict:
        return {"backend": self.backend}


class LocalImageStorage(ImageStorage):
    """Stores images under a directory served by the app at ``url_prefix``."""

    backend = "local"

    def __init__(self, root: str | Path, url_prefix: str = "/uploads"):
        self.root = Path(root).resolve()
        self.url_prefix = url_prefix.rstrip("/")

    async def save(self, content: bytes, folder: str, extension: str) -> str:
        filename = f"{uuid.uuid4().hex}.{extension}"
        target = self.root / folder / filename
        await asyncio.to_thread(self._write, target, content)
        logger.info(f"Stored image {target} ({len(content):,} bytes)")
        return f"{self.url_prefix}/{folder}/{filename}"

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def path_for(self, url: str) -> Optional[Path]:
        """Map a stored URL back to its file, or None if it is not ours."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        candidate = (self.root / url[len(self.url_prefix) + 1:]).resolve()
        if not candidate.is_relative_to(self.root):
            return None
        return candidate

    async def delete(self, url: str) -> bool:
        path = self.path_for(url)
        if path is None:
            logger.warning(f"Image URL {url} is not managed by local storage, skipping delete")
            return False
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.warning(f"Image file already missing: {path}")
            return False
        logger.info(f"Deleted image file {path}")
        return True

    def status(self) -> dict:
        return {
            "backend": self.backend,
            "directory": str(self.root),
            "writable": self.root.exists() and self.root.is_dir(),
        }


class CloudinaryImageStorage(ImageStorage):
    """Stores images on Cloudinary."""

    backend = "cloudinary"

    async def save(self, content: bytes, folder: str, extension: str) -> str:
        result = await cloudinary_service.upload_image(content, folder=folder)
        return result["url"]

    async def delete(self, url: str) -> bool:
        try:
            public_id = cloudinary_service.extract_public_id_from_url(url)
        except ValueError as e:
            logger.warning(f"Failed to extract public_id from URL: {str(e)}")
            return False
        result = await cloudinary_service.delete_image(public_id)
        return result.get("result") == "ok"

    def status(self) -> dict:
        return {
            "backend": self.backend,
            "configured": cloudinary_service.validate_cloudinary_config(),
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME,
        }


_storage: Optional[ImageStorage] = None


def get_image_storage() -> ImageStorage:
    """FastAPI dependency returning the configured storage backend."""
    global _storage
    if _storage is None:
        if settings.IMAGE_STORAGE_BACKEND == "cloudinary":
            _storage = CloudinaryImageStorage()
        elif settings.IMAGE_STORAGE_BACKEND == "local":
            _storage = LocalImageStorage(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
        else:
            raise ValueError(f"Unknown IMAGE_STORAGE_BACKEND: {settings.IMAGE_STORAGE_BACKEND}")
    return _storage


async def delete_images_quietly(storage: ImageStorage, urls: Iterable[Optional[str]]) -> None:
    """
    Remove image files after their rows were deleted.
    Failures are logged and swallowed.
    """
    for url in urls:
        if not url:
            continue
        try:
            await storage.delete(url)
        except Exception as e:
            logger.error(f"Failed to delete image {url}: {str(e)}", exc_info=True)
