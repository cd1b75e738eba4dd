"""
Reading multipart uploads into memory with type and size checks.
"""
from dataclasses import dataclass

from fastapi import UploadFile

from gallery_api.config import settings
from gallery_api.exceptions import ValidationError


@dataclass
class UploadedFile:
    filename: str
    content: bytes


async def read_image_upload(file: UploadFile, index: int = 0) -> UploadedFile:
    """
    Raises:
        ValidationError: not an image content type, or larger than MAX_UPLOAD_BYTES
    """
    filename = file.filename or f"file_{index}"
    if not file.content_type or not file.content_type.startswith("image/"):
        raise ValidationError(f"File '{filename}' is not a valid image file", index=index)

    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"File '{filename}' exceeds the {settings.MAX_UPLOAD_BYTES:,} byte upload limit",
            index=index,
        )
    return UploadedFile(filename=filename, content=content)
