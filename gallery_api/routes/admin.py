"""
Admin API routes.
Every endpoint requires an admin token; the verified AdminIdentity is passed into each handler.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from gallery_api.database import get_db
from gallery_api.schemas import (
    DeleteResponse,
    ExhibitionCreate,
    ExhibitionEnvelope,
    ExhibitionPhotoResponse,
    ExhibitionResponse,
    ExhibitionUpdate,
    PaintingCreate,
    PaintingEnvelope,
    PaintingListResponse,
    PaintingResponse,
    PaintingUpdate,
    PhotoUploadResponse,
    ReorderRequest,
    ReorderResponse,
)
from gallery_api.services.exhibition_service import ExhibitionService
from gallery_api.services.gallery_query import GalleryQueryService, PaintingFilters, SortSpec
from gallery_api.services.image_storage import ImageStorage, delete_images_quietly, get_image_storage
from gallery_api.services.painting_service import PaintingService
from gallery_api.services.reorder_service import ReorderScope, ReorderService
from gallery_api.utils.jwt_auth import AdminIdentity, require_admin
from gallery_api.utils.uploads import read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _database_failure(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error while trying to {action}: {str(e)}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": f"Failed to {action}", "detail": "Database operation failed"}
    )


# Paintings

@router.get("/paintings", response_model=PaintingListResponse)
async def list_admin_paintings(
    category: Optional[str] = None,
    year: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    is_available: Optional[bool] = Query(None, alias="isAvailable"),
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    """
    Get every matching painting, unpaginated, in display order.
    Takes the public listing's filters and sort; sold paintings are included
    unless ``isAvailable`` is given.
    """
    filters = PaintingFilters(
        category=category,
        year=year,
        search=search,
        min_price=min_price,
        max_price=max_price,
        is_available=is_available,
    )
    paintings = await GalleryQueryService(db).list_all_paintings(filters, SortSpec(sort_by, sort_order))
    logger.info(f"Retrieved {len(paintings)} paintings for {identity.username}")
    return PaintingListResponse(
        paintings=[PaintingResponse.model_validate(p) for p in paintings],
        total_count=len(paintings),
    )


@router.post("/paintings", response_model=PaintingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_painting(
    data: PaintingCreate,
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    """
    Create a painting. ``order`` is assigned as the current maximum + 1.

    Raises:
        409 if ``featured`` is requested while three paintings are already featured
    """
    try:
        painting = await PaintingService(db).create_painting(data)
    except SQLAlchemyError as e:
        raise _database_failure("create painting", e)
    logger.info(f"{identity.username} created painting {painting.id}")
    return PaintingEnvelope(painting=PaintingResponse.model_validate(painting))


@router.post("/paintings/reorder", response_model=ReorderResponse)
async def reorder_paintings(
    request: ReorderRequest,
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    """
    Set the ``order`` of the listed paintings in one transaction.

    Body: {"order": [{"id": 7, "order": 10}, {"id": 6, "order": 9}]}
    Paintings not listed keep their order.
    """
    try:
        updated = await ReorderService(db).reorder(ReorderScope.paintings(), request.order)
    except SQLAlchemyError as e:
        raise _database_failure("reorder paintings", e)
    logger.info(f"{identity.username} reordered {updated} paintings")
    return ReorderResponse(message=f"Successfully reordered {updated} paintings", updated=updated)


@router.put("/paintings/{painting_id}", response_model=PaintingEnvelope)
async def update_painting(
    painting_id: int,
    data: PaintingUpdate,
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    """Partially update a painting; same featured limit as create, not counting itself."""
    try:
        painting = await PaintingService(db).update_painting(painting_id, data)
    except SQLAlchemyError as e:
        raise _database_failure("update painting", e)
    logger.info(f"{identity.username} updated painting {painting_id}")
    return PaintingEnvelope(painting=PaintingResponse.model_validate(painting))


@router.delete("/paintings/{painting_id}", response_model=DeleteResponse)
async def delete_painting(
    painting_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    identity: AdminIdentity = Depends(require_admin)
):
    """
    Delete a painting.
    The row is removed first; its image file is removed afterwards and a failure there is only logged.
    """
    try:
        image_url = await PaintingService(db).delete_painting(painting_id)
    except SQLAlchemyError as e:
        raise _database_failure("delete painting", e)
    background_tasks.add_task(delete_images_quietly, storage, [image_url])
    logger.info(f"{identity.username} deleted painting {painting_id}")
    return DeleteResponse(message="Painting deleted successfully", id=painting_id)


@router.post("/paintings/{painting_id}/image", response_model=PaintingEnvelope)
async def upload_painting_image(
    painting_id: int,
    background_tasks: BackgroundTasks,
    image: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    identity: AdminIdentity = Depends(require_admin)
):
    """Upload (or replace) the image of a painting. Only ``imageUrl`` changes."""
    upload = await read_image_upload(image)
    try:
        painting, previous_url = await PaintingService(db, storage).attach_image(painting_id, upload)
    except SQLAlchemyError as e:
        raise _database_failure("upload painting image", e)
    if previous_url and previous_url != painting.image_url:
        background_tasks.add_task(delete_images_quietly, storage, [previous_url])
    logger.info(f"{identity.username} uploaded an image for painting {painting_id}")
    return PaintingEnvelope(painting=PaintingResponse.model_validate(painting))


# Exhibitions

@router.post("/exhibitions", response_model=ExhibitionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_exhibition(
    data: ExhibitionCreate,
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    try:
        exhibition = await ExhibitionService(db).create_exhibition(data)
    except SQLAlchemyError as e:
        raise _database_failure("create exhibition", e)
    logger.info(f"{identity.username} created exhibition {exhibition.id}")
    return ExhibitionEnvelope(exhibition=ExhibitionResponse.model_validate(exhibition))


@router.post("/exhibitions/reorder", response_model=ReorderResponse)
async def reorder_exhibitions(
    request: ReorderRequest,
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    try:
        updated = await ReorderService(db).reorder(ReorderScope.exhibitions(), request.order)
    except SQLAlchemyError as e:
        raise _database_failure("reorder exhibitions", e)
    logger.info(f"{identity.username} reordered {updated} exhibitions")
    return ReorderResponse(message=f"Successfully reordered {updated} exhibitions", updated=updated)


@router.put("/exhibitions/{exhibition_id}", response_model=ExhibitionEnvelope)
async def update_exhibition(
    exhibition_id: int,
    data: ExhibitionUpdate,
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    try:
        exhibition = await ExhibitionService(db).update_exhibition(exhibition_id, data)
    except SQLAlchemyError as e:
        raise _database_failure("update exhibition", e)
    logger.info(f"{identity.username} updated exhibition {exhibition_id}")
    return ExhibitionEnvelope(exhibition=ExhibitionResponse.model_validate(exhibition))


@router.delete("/exhibitions/{exhibition_id}", response_model=DeleteResponse)
async def delete_exhibition(
    exhibition_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    identity: AdminIdentity = Depends(require_admin)
):
    """Delete an exhibition together with all of its photos."""
    try:
        photo_urls = await ExhibitionService(db).delete_exhibition(exhibition_id)
    except SQLAlchemyError as e:
        raise _database_failure("delete exhibition", e)
    background_tasks.add_task(delete_images_quietly, storage, photo_urls)
    logger.info(f"{identity.username} deleted exhibition {exhibition_id}")
    return DeleteResponse(message="Exhibition deleted successfully", id=exhibition_id)


@router.post(
    "/exhibitions/{exhibition_id}/photos",
    response_model=PhotoUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_exhibition_photos(
    exhibition_id: int,
    photos: List[UploadFile] = File(...),
    titles: Optional[List[str]] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    identity: AdminIdentity = Depends(require_admin)
):
    """
    Add a batch of photos to an exhibition.

    New photos are ranked above the existing ones, in upload order. One title
    applies to every photo; several titles match photos by position.
    """
    uploads = [await read_image_upload(photo, index) for index, photo in enumerate(photos)]
    try:
        created, errors = await ExhibitionService(db, storage).add_photos(exhibition_id, uploads, titles)
    except SQLAlchemyError as e:
        raise _database_failure("add exhibition photos", e)
    logger.info(f"{identity.username} added {len(created)} photo(s) to exhibition {exhibition_id}")
    return PhotoUploadResponse(
        photos=[ExhibitionPhotoResponse.model_validate(p) for p in created],
        errors=errors or None,
    )


@router.post("/exhibitions/{exhibition_id}/photos/reorder", response_model=ReorderResponse)
async def reorder_exhibition_photos(
    exhibition_id: int,
    request: ReorderRequest,
    db: AsyncSession = Depends(get_db),
    identity: AdminIdentity = Depends(require_admin)
):
    """Reorder photos within one exhibition; ids from other exhibitions count as missing."""
    try:
        await ExhibitionService(db).get_exhibition(exhibition_id)
        updated = await ReorderService(db).reorder(
            ReorderScope.exhibition_photos(exhibition_id), request.order
        )
    except SQLAlchemyError as e:
        raise _database_failure("reorder exhibition photos", e)
    logger.info(f"{identity.username} reordered {updated} photos of exhibition {exhibition_id}")
    return ReorderResponse(message=f"Successfully reordered {updated} photos", updated=updated)


@router.delete("/exhibitions/{exhibition_id}/photos/{photo_id}", response_model=DeleteResponse)
async def delete_exhibition_photo(
    exhibition_id: int,
    photo_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    identity: AdminIdentity = Depends(require_admin)
):
    try:
        image_url = await ExhibitionService(db).delete_photo(exhibition_id, photo_id)
    except SQLAlchemyError as e:
        raise _database_failure("delete exhibition photo", e)
    background_tasks.add_task(delete_images_quietly, storage, [image_url])
    logger.info(f"{identity.username} deleted photo {photo_id} of exhibition {exhibition_id}")
    return DeleteResponse(message="Photo deleted successfully", id=photo_id)
