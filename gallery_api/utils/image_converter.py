"""
Image preparation for uploads.
Validates that uploaded bytes are an image and converts them to WebP to keep files small.
"""
import io
import logging
from dataclasses import dataclass
from typing import Optional
from PIL import Image, UnidentifiedImageError

from gallery_api.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85  # Balance between quality and file size (0-100)
DEFAULT_WEBP_METHOD = 6    # Compression method (0-6, higher = better compression but slower)
MAX_DIMENSION = 3840       # Maximum width or height before downscaling


@dataclass
class PreparedImage:
    content: bytes
    extension: str
    content_type: str
    width: int
    height: int


def prepare_image(
    image_bytes: bytes,
    filename: str = "upload",
    quality: int = DEFAULT_WEBP_QUALITY,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> PreparedImage:
    """
    Convert uploaded image bytes to WebP, downscaling oversized images.

    The original bytes are kept when conversion does not make the file smaller.

    Raises:
        ValidationError: If the bytes are not a readable image
    """
    if not image_bytes:
        raise ValidationError(f"File '{filename}' is empty")

    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Cannot identify image format for {filename}: {str(e)}")
        raise ValidationError(f"File '{filename}' is not a valid image file")

    source_format = (image.format or "").upper()
    width, height = image.size

    if image.mode == 'P':
        image = image.convert('RGBA')
    elif image.mode not in ('RGB', 'RGBA', 'LA'):
        image = image.convert('RGB')

    resized = bool(max_dimension) and (width > max_dimension or height > max_dimension)
    if resized:
        image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
        logger.info(
            f"Downscaled {filename} from {width}x{height} to {image.width}x{image.height}"
        )
        width, height = image.size

    if source_format == 'WEBP' and not resized:
        logger.debug(f"{filename} is already WebP, skipping conversion")
        return PreparedImage(image_bytes, "webp", "image/webp", width, height)

    buffer = io.BytesIO()
    image.save(buffer, format='WEBP', quality=quality, method=DEFAULT_WEBP_METHOD)
    webp_bytes = buffer.getvalue()

    if not resized and source_format != 'WEBP' and len(webp_bytes) >= len(image_bytes):
        original = _original_format(source_format)
        if original:
            logger.debug(f"WebP conversion did not reduce size for {filename}, keeping {source_format}")
            return PreparedImage(image_bytes, original[0], original[1], width, height)

    logger.info(
        f"Prepared {filename} as WebP: {len(image_bytes):,} bytes -> {len(webp_bytes):,} bytes"
    )
    return PreparedImage(webp_bytes, "webp", "image/webp", width, height)


def _original_format(source_format: str) -> Optional[tuple[str, str]]:
    return {
        'JPEG': ("jpg", "image/jpeg"),
        'PNG': ("png", "image/png"),
        'GIF': ("gif", "image/gif"),
    }.get(source_format)
