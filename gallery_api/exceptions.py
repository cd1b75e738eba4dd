"""
Domain errors raised by the gallery services.
Each error knows the HTTP status it maps to; main.py turns them into JSON responses.
"""
from typing import Any, Optional


class GalleryError(Exception):
    """Base class for domain errors surfaced to API clients."""

    status_code = 500
    error = "Gallery error"

    def __init__(self, detail: str, **extra: Any):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_dict(self) -> dict:
        content = {"error": self.error, "detail": self.detail}
        content.update(self.extra)
        return content


class ValidationError(GalleryError):
    """Malformed request shape (missing fields, wrong types, empty arrays)."""

    status_code = 400
    error = "Validation error"

    def __init__(self, detail: str, index: Optional[int] = None):
        if index is None:
            super().__init__(detail)
        else:
            super().__init__(detail, index=index)
        self.index = index


class NotFoundError(GalleryError):
    """One or more referenced entities do not exist."""

    status_code = 404
    error = "Not found"

    def __init__(self, detail: str, missing_ids: Optional[list[int]] = None):
        self.missing_ids = sorted(missing_ids or [])
        super().__init__(detail, missingIds=self.missing_ids)


class ConflictError(GalleryError):
    """
    A concurrent mutation made an update inside a reorder transaction
    affect zero rows. The transaction has been rolled back; clients may retry.
    """

    status_code = 500
    error = "Concurrent modification"

    def __init__(self, detail: str, conflicting_ids: list[int]):
        self.conflicting_ids = sorted(conflicting_ids)
        super().__init__(detail, conflictingIds=self.conflicting_ids)


class CapacityError(GalleryError):
    """Featured-slot limit reached."""

    status_code = 409
    error = "Featured limit reached"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"At most {limit} paintings can be featured at the same time; "
            f"unfeature another painting first",
            limit=limit,
        )


class StorageError(GalleryError):
    """No image of an upload batch could be stored."""

    status_code = 500
    error = "Image storage failed"
