"""
Public gallery routes.
Paintings and exhibitions as shown on the public site; no authentication.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from gallery_api.database import get_db
from gallery_api.schemas import (
    ExhibitionEnvelope,
    ExhibitionListResponse,
    ExhibitionResponse,
    PaintingEnvelope,
    PaintingListResponse,
    PaintingPageResponse,
    PaintingResponse,
)
from gallery_api.services.exhibition_service import ExhibitionService
from gallery_api.services.gallery_query import GalleryQueryService, PaintingFilters, SortSpec
from gallery_api.services.painting_service import PaintingService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/paintings", response_model=PaintingPageResponse)
async def list_paintings(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, alias="perPage"),
    category: Optional[str] = None,
    year: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    is_available: bool = Query(True, alias="isAvailable"),
    db: AsyncSession = Depends(get_db)
):
    """
    Get one page of the painting catalog.

    Paintings are ranked by ``order`` (highest first), then by ``sortBy``.
    ``perPage`` is clamped to 1..50. ``category=All Works`` disables the
    category filter. Only available paintings are listed unless
    ``isAvailable=false`` is passed.
    """
    filters = PaintingFilters(
        category=category,
        year=year,
        search=search,
        min_price=min_price,
        max_price=max_price,
        is_available=is_available,
    )
    result = await GalleryQueryService(db).list_paintings(
        filters, SortSpec(sort_by, sort_order), page=page, per_page=per_page
    )

    return PaintingPageResponse(
        paintings=[PaintingResponse.model_validate(p) for p in result.items],
        total_count=result.total_count,
        current_page=result.page,
        per_page=result.per_page,
        total_pages=result.total_pages,
        has_next_page=result.has_next_page,
        has_prev_page=result.has_prev_page,
    )


@router.get("/paintings/featured", response_model=PaintingListResponse)
async def list_featured_paintings(db: AsyncSession = Depends(get_db)):
    """Featured paintings in display order (at most three)."""
    paintings = await GalleryQueryService(db).list_featured()
    return PaintingListResponse(
        paintings=[PaintingResponse.model_validate(p) for p in paintings],
        total_count=len(paintings),
    )


@router.get("/paintings/{painting_id}", response_model=PaintingEnvelope)
async def get_painting(painting_id: int, db: AsyncSession = Depends(get_db)):
    painting = await PaintingService(db).get_painting(painting_id)
    return PaintingEnvelope(painting=PaintingResponse.model_validate(painting))


@router.get("/exhibitions", response_model=ExhibitionListResponse)
async def list_exhibitions(
    sort_by: str = Query("date", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db)
):
    """
    Get all exhibitions with their photos.
    Ranked by ``order``, then by ``sortBy`` (date, title or createdAt).
    """
    exhibitions = await GalleryQueryService(db).list_exhibitions(SortSpec(sort_by, sort_order))
    logger.debug(f"Retrieved {len(exhibitions)} exhibitions")
    return ExhibitionListResponse(
        exhibitions=[ExhibitionResponse.model_validate(e) for e in exhibitions]
    )


@router.get("/exhibitions/{exhibition_id}", response_model=ExhibitionEnvelope)
async def get_exhibition(exhibition_id: int, db: AsyncSession = Depends(get_db)):
    exhibition = await ExhibitionService(db).get_exhibition(exhibition_id)
    return ExhibitionEnvelope(exhibition=ExhibitionResponse.model_validate(exhibition))
