"""
Featured-slot cap for paintings.
"""
import logging
from typing import Optional

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.config import settings
from gallery_api.exceptions import CapacityError
from gallery_api.models import Painting

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock; any constant shared by all app instances works
FEATURED_LOCK_KEY = 71_746_101


class FeaturedSlotPolicy:
    """
    Admits or rejects turning the ``featured`` flag on.

    The check must run in the same transaction as the write it guards. On
    PostgreSQL a transaction-scoped advisory lock is taken first, so two
    sessions cannot both see a free slot and fill it; the lock is released
    on commit or rollback. SQLite engines open every transaction with
    ``BEGIN IMMEDIATE`` (see ``use_immediate_transactions``), which holds
    the database write lock for the same span.
    """

    def __init__(self, db: AsyncSession, limit: Optional[int] = None):
        self.db = db
        self.limit = settings.FEATURED_LIMIT if limit is None else limit

    async def check_featured_admission(self, candidate_id: Optional[int], requested_featured: bool) -> None:
        """
        Raises:
            CapacityError: if ``limit`` other paintings are already featured
        """
        if not requested_featured:
            return

        await self._serialize_admissions()

        query = select(func.count()).select_from(Painting).where(Painting.featured.is_(True))
        if candidate_id is not None:
            query = query.where(Painting.id != candidate_id)
        featured_count = (await self.db.execute(query)).scalar_one()

        if featured_count >= self.limit:
            logger.warning(
                f"Featured admission refused for painting {candidate_id}: "
                f"{featured_count} of {self.limit} slots taken"
            )
            raise CapacityError(self.limit)

    async def _serialize_admissions(self) -> None:
        if self.db.get_bind().dialect.name == "postgresql":
            await self.db.execute(
                text("SELECT pg_advisory_xact_lock(:key)"), {"key": FEATURED_LOCK_KEY}
            )
