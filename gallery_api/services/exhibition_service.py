"""
Exhibition CRUD and photo management.

An exhibition owns its photos: deleting it removes every photo row, and the
photo files are cleaned up afterwards by the caller.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.exceptions import NotFoundError, StorageError
from gallery_api.models import Exhibition, ExhibitionPhoto
from gallery_api.schemas import ExhibitionCreate, ExhibitionUpdate
from gallery_api.services.image_storage import ImageStorage, delete_images_quietly
from gallery_api.utils.image_converter import prepare_image
from gallery_api.utils.uploads import UploadedFile

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"title", "date"}


class ExhibitionService:
    """Admin mutations on exhibitions and their photos."""

    def __init__(self, db: AsyncSession, storage: Optional[ImageStorage] = None):
        self.db = db
        self.storage = storage

    async def get_exhibition(self, exhibition_id: int) -> Exhibition:
        """
        Raises:
            NotFoundError: if the exhibition does not exist
        """
        result = await self.db.execute(
            select(Exhibition)
            .where(Exhibition.id == exhibition_id)
            .execution_options(populate_existing=True)
        )
        exhibition = result.scalar_one_or_none()
        if exhibition is None:
            raise NotFoundError(f"Exhibition {exhibition_id} does not exist", missing_ids=[exhibition_id])
        return exhibition

    async def create_exhibition(self, data: ExhibitionCreate) -> Exhibition:
        try:
            max_order = (await self.db.execute(select(func.max(Exhibition.order)))).scalar()
            exhibition = Exhibition(
                title=data.title.strip(),
                description=data.description,
                date=data.date,
                location=data.location,
                order=(max_order or 0) + 1,
            )
            self.db.add(exhibition)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Created exhibition {exhibition.id} '{exhibition.title}' with order {exhibition.order}")
        return await self.get_exhibition(exhibition.id)

    async def update_exhibition(self, exhibition_id: int, data: ExhibitionUpdate) -> Exhibition:
        try:
            exhibition = await self.get_exhibition(exhibition_id)
            for name, value in data.model_dump(exclude_unset=True).items():
                if value is None and name in _REQUIRED_FIELDS:
                    continue
                setattr(exhibition, name, value.strip() if name == "title" else value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Updated exhibition {exhibition_id}: {sorted(data.model_fields_set)}")
        return await self.get_exhibition(exhibition_id)

    async def delete_exhibition(self, exhibition_id: int) -> list[str]:
        """
        Delete the exhibition and all of its photos.
        Returns the photo URLs for file cleanup.
        """
        try:
            exhibition = await self.get_exhibition(exhibition_id)
            photo_urls = [photo.image_url for photo in exhibition.photos]
            await self.db.delete(exhibition)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Deleted exhibition {exhibition_id} with {len(photo_urls)} photo(s)")
        return photo_urls

    async def add_photos(
        self,
        exhibition_id: int,
        uploads: list[UploadedFile],
        titles: Optional[list[str]] = None,
    ) -> tuple[list[ExhibitionPhoto], list[dict]]:
        """
        Store a batch of photos and append them above the exhibition's current photos.

        Every file is checked before anything is stored. Storage failures of
        individual files are reported back; the rest of the batch is kept.

        Raises:
            NotFoundError: unknown exhibition
            ValidationError: a file is not an image
            StorageError: no file could be stored
        """
        await self.get_exhibition(exhibition_id)
        titles = titles or []

        prepared = [
            await asyncio.to_thread(prepare_image, upload.content, upload.filename)
            for upload in uploads
        ]

        # Step 1: store the files concurrently (no database work)
        results = await asyncio.gather(
            *(self.storage.save(image.content, f"exhibitions/{exhibition_id}", image.extension)
              for image in prepared),
            return_exceptions=True,
        )

        stored = []
        errors = []
        for index, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error(f"Error storing photo {uploads[index].filename}: {str(result)}")
                errors.append({"filename": uploads[index].filename, "error": str(result)})
            else:
                image = prepared[index]
                logger.debug(
                    f"Stored {uploads[index].filename} as {image.width}x{image.height} "
                    f"{image.content_type} at {result}"
                )
                stored.append((index, result))

        if not stored:
            raise StorageError("All uploads failed", errors=errors)

        # Step 2: insert rows ranked after the current highest photo
        try:
            max_order = (await self.db.execute(
                select(func.max(ExhibitionPhoto.order))
                .where(ExhibitionPhoto.exhibition_id == exhibition_id)
            )).scalar() or 0

            photos = []
            for position, (index, url) in enumerate(stored):
                title = _title_for(titles, index)
                photo = ExhibitionPhoto(
                    exhibition_id=exhibition_id,
                    image_url=url,
                    title=title,
                    order=max_order + position + 1,
                )
                self.db.add(photo)
                photos.append(photo)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await delete_images_quietly(self.storage, [url for _, url in stored])
            raise

        if errors:
            logger.warning(f"Partial upload success: {len(photos)} succeeded, {len(errors)} failed")
        logger.info(f"Added {len(photos)} photo(s) to exhibition {exhibition_id}")

        ids = [photo.id for photo in photos]
        result = await self.db.execute(
            select(ExhibitionPhoto)
            .where(ExhibitionPhoto.id.in_(ids))
            .order_by(ExhibitionPhoto.order)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), errors

    async def delete_photo(self, exhibition_id: int, photo_id: int) -> str:
        """
        Delete one photo of an exhibition and return its URL for cleanup.

        Raises:
            NotFoundError: unknown photo, or the photo belongs to another exhibition
        """
        try:
            result = await self.db.execute(
                select(ExhibitionPhoto).where(
                    ExhibitionPhoto.id == photo_id,
                    ExhibitionPhoto.exhibition_id == exhibition_id,
                )
            )
            photo = result.scalar_one_or_none()
            if photo is None:
                raise NotFoundError(
                    f"Photo {photo_id} does not exist in exhibition {exhibition_id}",
                    missing_ids=[photo_id],
                )
            image_url = photo.image_url
            await self.db.delete(photo)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Deleted photo {photo_id} from exhibition {exhibition_id}")
        return image_url


def _title_for(titles: list[str], index: int) -> Optional[str]:
    """A single title applies to the whole batch; otherwise titles match files by position."""
    if len(titles) == 1:
        title = titles[0]
    elif index < len(titles):
        title = titles[index]
    else:
        return None
    return title.strip() or None
