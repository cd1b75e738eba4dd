"""
Pydantic schemas for request and response data validation.
JSON uses camelCase names; request bodies also accept snake_case.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, StringConstraints, field_validator
from pydantic.alias_generators import to_camel
import datetime
from typing import Annotated, Optional, List

from gallery_api.utils.auth import MIN_PASSWORD_LENGTH


class CamelModel(BaseModel):
    """Base schema serializing field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Surrounding whitespace is dropped before the length check
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


def _clean_categories(value):
    if value is None:
        return value
    return list(dict.fromkeys(c.strip() for c in value if c and c.strip()))


# Paintings

class PaintingCreate(CamelModel):
    """
    Request schema for creating a painting.
    Used by POST /api/admin/paintings. ``order`` is assigned by the server.
    """
    title: Title
    medium: str = ""
    year: str = ""
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    # Older admin clients post the flag as "isavailable"
    is_available: bool = Field(
        True, validation_alias=AliasChoices("isAvailable", "is_available", "isavailable")
    )
    featured: bool = False
    categories: List[str] = Field(default_factory=list)

    @field_validator("categories")
    @classmethod
    def normalize_categories(cls, v):
        return _clean_categories(v)


class PaintingUpdate(CamelModel):
    """
    Request schema for partial painting updates.
    Used by PUT /api/admin/paintings/{id}; only fields present in the body change.
    """
    title: Optional[Title] = None
    medium: Optional[str] = None
    year: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    is_available: Optional[bool] = Field(
        None, validation_alias=AliasChoices("isAvailable", "is_available", "isavailable")
    )
    featured: Optional[bool] = None
    categories: Optional[List[str]] = None

    @field_validator("categories")
    @classmethod
    def normalize_categories(cls, v):
        return _clean_categories(v)


class PaintingResponse(CamelModel):
    """Painting as returned by the public and admin endpoints."""
    id: int
    title: str
    medium: str
    year: str
    image_url: Optional[str] = None
    categories: List[str] = []
    description: Optional[str] = None
    price: Optional[float] = None
    is_available: bool
    featured: bool
    order: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class PaintingEnvelope(CamelModel):
    painting: PaintingResponse


class PaintingPageResponse(CamelModel):
    """
    Paginated response for GET /api/paintings.
    """
    paintings: List[PaintingResponse]
    total_count: int
    current_page: int
    per_page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class PaintingListResponse(CamelModel):
    """Unpaginated painting list (admin console, featured strip)."""
    paintings: List[PaintingResponse]
    total_count: int


# Reordering

class ReorderItem(CamelModel):
    id: StrictInt
    order: StrictInt


class ReorderRequest(CamelModel):
    """
    Request schema for reordering paintings, exhibitions or exhibition photos.
    Body: {"order": [{"id": 3, "order": 10}, ...]}
    """
    order: List[ReorderItem]


class ReorderResponse(CamelModel):
    message: str
    updated: int


# Exhibitions

class ExhibitionCreate(CamelModel):
    """Request schema for POST /api/admin/exhibitions."""
    title: Title
    description: Optional[str] = None
    date: datetime.date
    location: Optional[str] = None


class ExhibitionUpdate(CamelModel):
    """Request schema for PUT /api/admin/exhibitions/{id}."""
    title: Optional[Title] = None
    description: Optional[str] = None
    date: Optional[datetime.date] = None
    location: Optional[str] = None


class ExhibitionPhotoResponse(CamelModel):
    id: int
    exhibition_id: int
    image_url: str
    title: Optional[str] = None
    order: int
    created_at: datetime.datetime


class ExhibitionResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    date: datetime.date
    location: Optional[str] = None
    order: int
    created_at: datetime.datetime
    updated_at: datetime.datetime
    photos: List[ExhibitionPhotoResponse] = []


class ExhibitionEnvelope(CamelModel):
    exhibition: ExhibitionResponse


class ExhibitionListResponse(CamelModel):
    exhibitions: List[ExhibitionResponse]


class UploadError(CamelModel):
    filename: str
    error: str


class PhotoUploadResponse(CamelModel):
    """Result of a batch photo upload; failed files are reported, not fatal."""
    photos: List[ExhibitionPhotoResponse]
    errors: Optional[List[UploadError]] = None


class DeleteResponse(CamelModel):
    message: str
    id: int


# Authentication

class LoginRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminUser(CamelModel):
    username: str
    role: str


class LoginResponse(CamelModel):
    success: bool = True
    token: str
    user: AdminUser
    message: str = "Login successful"


class VerifyResponse(CamelModel):
    success: bool = True
    user: AdminUser
    message: str = "Token is valid"


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class ChangePasswordResponse(CamelModel):
    success: bool = True
    message: str
    new_password_hash: str
