"""
Cloudinary client calls used by CloudinaryImageStorage.
The SDK is synchronous, so calls run in a worker thread and are retried with backoff.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from gallery_api.config import settings
import logging
import asyncio
import re
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

RETRY_ATTEMPTS = 3

_DELIVERY_URL = re.compile(r'/image/upload(?:/v\d+)?/(.+)$')
_configured = False


def configure_cloudinary() -> None:
    """Apply credentials from settings once per process."""
    global _configured
    if not _configured:
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True
        )
        _configured = True


async def _call_with_retries(action: str, call: Callable[..., Dict[str, Any]], *args, **kwargs) -> Dict[str, Any]:
    configure_cloudinary()
    delay = 1
    for attempt in range(1, RETRY_ATTEMPTS + 1):
        try:
            return await asyncio.to_thread(call, *args, **kwargs)
        except CloudinaryError as e:
            if attempt == RETRY_ATTEMPTS:
                logger.error(f"Cloudinary {action} failed after {attempt} attempts: {str(e)}")
                raise
            logger.warning(f"Cloudinary {action} attempt {attempt} failed, retrying in {delay}s: {str(e)}")
            await asyncio.sleep(delay)
            delay *= 2


async def upload_image(content: bytes, folder: str) -> Dict[str, Any]:
    """
    Upload image bytes into ``folder``.

    Returns:
        dict with ``url`` (https delivery URL) and ``public_id``

    Raises:
        CloudinaryError: after the last failed attempt
    """
    result = await _call_with_retries(
        "upload",
        cloudinary.uploader.upload,
        content,
        folder=f"gallery/{folder}",
        resource_type="image",
    )
    logger.info(f"Uploaded {result['public_id']} to Cloudinary ({result.get('bytes', 0):,} bytes)")
    return {"url": result["secure_url"], "public_id": result["public_id"]}


async def delete_image(public_id: str) -> Dict[str, Any]:
    """
    Destroy an image and invalidate cached copies.
    A "not found" result is returned as-is and treated by callers as already deleted.
    """
    result = await _call_with_retries(
        f"delete of {public_id}",
        cloudinary.uploader.destroy,
        public_id,
        invalidate=True,
        resource_type="image",
    )
    if result.get("result") not in ("ok", "not found"):
        logger.warning(f"Cloudinary delete of {public_id} returned {result}")
    return result


def extract_public_id_from_url(cloudinary_url: str) -> str:
    """
    ``https://res.cloudinary.com/<cloud>/image/upload/v123/gallery/paintings/abc.webp``
    gives ``gallery/paintings/abc``.

    Raises:
        ValueError: If the URL is not a Cloudinary delivery URL
    """
    match = _DELIVERY_URL.search(cloudinary_url or "")
    if not match:
        raise ValueError(f"Not a Cloudinary delivery URL: {cloudinary_url}")
    path = match.group(1)
    head, dot, _ = path.rpartition(".")
    return head if dot and "/" not in path[len(head):] else path


def validate_cloudinary_config() -> bool:
    missing = [
        name for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
        if not getattr(settings, name)
    ]
    if missing:
        logger.warning(f"Cloudinary is not configured; missing {', '.join(missing)}")
    return not missing
