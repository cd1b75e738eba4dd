"""
Painting create/update/delete and image attachment.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.exceptions import NotFoundError
from gallery_api.models import Painting
from gallery_api.schemas import PaintingCreate, PaintingUpdate
from gallery_api.services.featured_policy import FeaturedSlotPolicy
from gallery_api.services.image_storage import ImageStorage, delete_images_quietly
from gallery_api.utils.image_converter import prepare_image
from gallery_api.utils.uploads import UploadedFile

logger = logging.getLogger(__name__)

IMAGE_FOLDER = "paintings"

# Columns that may not be cleared by sending null in a partial update
_REQUIRED_FIELDS = {"title", "medium", "year", "is_available", "featured"}


class PaintingService:
    """Admin mutations on paintings; every public method commits or rolls back."""

    def __init__(self, db: AsyncSession, storage: Optional[ImageStorage] = None):
        self.db = db
        self.storage = storage

    async def get_painting(self, painting_id: int) -> Painting:
        """
        Load a painting with its categories, refreshing any cached copy.

        Raises:
            NotFoundError: if the painting does not exist
        """
        result = await self.db.execute(
            select(Painting)
            .where(Painting.id == painting_id)
            .execution_options(populate_existing=True)
        )
        painting = result.scalar_one_or_none()
        if painting is None:
            raise NotFoundError(f"Painting {painting_id} does not exist", missing_ids=[painting_id])
        return painting

    async def next_order(self) -> int:
        max_order = (await self.db.execute(select(func.max(Painting.order)))).scalar()
        return (max_order or 0) + 1

    async def create_painting(self, data: PaintingCreate) -> Painting:
        """
        Create a painting ranked above every existing one.

        Raises:
            CapacityError: ``featured`` requested while all slots are taken
        """
        try:
            await FeaturedSlotPolicy(self.db).check_featured_admission(None, data.featured)

            painting = Painting(
                title=data.title.strip(),
                medium=data.medium,
                year=data.year,
                description=data.description,
                price=data.price,
                is_available=data.is_available,
                featured=data.featured,
                order=await self.next_order(),
            )
            painting.set_categories(data.categories)
            self.db.add(painting)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Created painting {painting.id} '{painting.title}' with order {painting.order}")
        return await self.get_painting(painting.id)

    async def update_painting(self, painting_id: int, data: PaintingUpdate) -> Painting:
        """
        Apply the fields present in ``data``. ``order`` and ``image_url`` are not editable here.

        Raises:
            NotFoundError, CapacityError
        """
        try:
            painting = await self.get_painting(painting_id)
            changes = data.model_dump(exclude_unset=True)

            if changes.get("featured"):
                await FeaturedSlotPolicy(self.db).check_featured_admission(painting_id, True)

            categories = changes.pop("categories", None)
            if categories is not None:
                painting.set_categories(categories)

            for name, value in changes.items():
                if value is None and name in _REQUIRED_FIELDS:
                    continue
                setattr(painting, name, value.strip() if name == "title" else value)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Updated painting {painting_id}: {sorted(data.model_fields_set)}")
        return await self.get_painting(painting_id)

    async def delete_painting(self, painting_id: int) -> Optional[str]:
        """
        Delete the row and return its image URL for cleanup by the caller.

        Raises:
            NotFoundError
        """
        try:
            painting = await self.get_painting(painting_id)
            image_url = painting.image_url
            await self.db.delete(painting)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Deleted painting {painting_id}")
        return image_url

    async def attach_image(self, painting_id: int, upload: UploadedFile) -> tuple[Painting, Optional[str]]:
        """
        Store an uploaded image and point the painting at it.

        Returns the updated painting and the URL of the image it replaced.

        Raises:
            NotFoundError, ValidationError (not an image)
        """
        await self.get_painting(painting_id)
        prepared = await asyncio.to_thread(prepare_image, upload.content, upload.filename)
        new_url = await self.storage.save(prepared.content, IMAGE_FOLDER, prepared.extension)

        try:
            painting = await self.get_painting(painting_id)
            previous_url = painting.image_url
            painting.image_url = new_url
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await delete_images_quietly(self.storage, [new_url])
            raise

        logger.info(
            f"Attached {prepared.width}x{prepared.height} {prepared.content_type} image "
            f"{new_url} to painting {painting_id}"
        )
        return await self.get_painting(painting_id), previous_url
