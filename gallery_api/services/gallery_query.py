"""
Listing queries for the public catalog and the admin console.

Every listing sorts by ``order`` descending first; the caller's sort field only
breaks ties between equal ranks.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.config import settings
from gallery_api.exceptions import ValidationError
from gallery_api.models import Exhibition, Painting, PaintingCategory

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All Works"

PAINTING_SORT_FIELDS = {
    "createdAt": Painting.created_at,
    "updatedAt": Painting.updated_at,
    "title": Painting.title,
    "year": Painting.year,
    "price": Painting.price,
}

EXHIBITION_SORT_FIELDS = {
    "date": Exhibition.date,
    "title": Exhibition.title,
    "createdAt": Exhibition.created_at,
}


@dataclass
class PaintingFilters:
    """Optional predicates, combined with AND."""
    category: Optional[str] = None
    year: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    is_available: Optional[bool] = None
    featured: Optional[bool] = None


@dataclass
class SortSpec:
    sort_by: str = "createdAt"
    sort_order: str = "desc"


@dataclass
class PaintingPage:
    items: list = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    per_page: int = settings.DEFAULT_PER_PAGE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.per_page)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


def clamp_per_page(per_page: Optional[int]) -> int:
    if per_page is None:
        return settings.DEFAULT_PER_PAGE
    return max(1, min(per_page, settings.MAX_PER_PAGE))


def _sort_key(fields: dict, sort: SortSpec):
    column = fields.get(sort.sort_by)
    if column is None:
        raise ValidationError(
            f"Unsupported sortBy '{sort.sort_by}'; expected one of: {', '.join(fields)}"
        )
    if sort.sort_order not in ("asc", "desc"):
        raise ValidationError(f"Unsupported sortOrder '{sort.sort_order}'; expected 'asc' or 'desc'")
    return column.asc() if sort.sort_order == "asc" else column.desc()


class GalleryQueryService:
    """Builds filtered, ranked painting and exhibition listings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def painting_conditions(filters: PaintingFilters) -> list:
        conditions = []

        if filters.category and filters.category != ALL_CATEGORIES:
            conditions.append(Painting.category_links.any(PaintingCategory.name == filters.category))

        if filters.year:
            conditions.append(Painting.year == filters.year)

        search = (filters.search or "").strip()
        if search:
            conditions.append(or_(
                Painting.title.icontains(search, autoescape=True),
                Painting.medium.icontains(search, autoescape=True),
                Painting.description.icontains(search, autoescape=True),
            ))

        if filters.min_price is not None and filters.max_price is not None \
                and filters.min_price > filters.max_price:
            raise ValidationError("minPrice must not be greater than maxPrice")
        if filters.min_price is not None:
            conditions.append(Painting.price.is_not(None))
            conditions.append(Painting.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Painting.price.is_not(None))
            conditions.append(Painting.price <= filters.max_price)

        if filters.is_available is not None:
            conditions.append(Painting.is_available.is_(filters.is_available))

        if filters.featured is not None:
            conditions.append(Painting.featured.is_(filters.featured))

        return conditions

    @staticmethod
    def painting_ordering(sort: SortSpec) -> list:
        return [Painting.order.desc(), _sort_key(PAINTING_SORT_FIELDS, sort), Painting.id.desc()]

    async def list_paintings(
        self,
        filters: PaintingFilters,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> PaintingPage:
        """One page of the filtered, ranked catalog."""
        sort = sort or SortSpec()
        page = max(1, page)
        per_page = clamp_per_page(per_page)
        conditions = self.painting_conditions(filters)

        total_count = (await self.db.execute(
            select(func.count()).select_from(Painting).where(*conditions)
        )).scalar_one()

        result = await self.db.execute(
            select(Painting)
            .where(*conditions)
            .order_by(*self.painting_ordering(sort))
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        items = list(result.scalars().all())

        logger.debug(f"Painting page {page} ({per_page}/page): {len(items)} of {total_count}")
        return PaintingPage(items=items, total_count=total_count, page=page, per_page=per_page)

    async def list_all_paintings(
        self,
        filters: PaintingFilters,
        sort: Optional[SortSpec] = None,
    ) -> list[Painting]:
        """The full filtered set, unpaginated, for drag-and-drop reordering."""
        result = await self.db.execute(
            select(Painting)
            .where(*self.painting_conditions(filters))
            .order_by(*self.painting_ordering(sort or SortSpec()))
        )
        return list(result.scalars().all())

    async def list_featured(self) -> list[Painting]:
        return await self.list_all_paintings(PaintingFilters(featured=True))

    async def list_exhibitions(self, sort: Optional[SortSpec] = None) -> list[Exhibition]:
        """Exhibitions ranked by order, then by date (newest first by default)."""
        sort = sort or SortSpec(sort_by="date")
        result = await self.db.execute(
            select(Exhibition)
            .order_by(Exhibition.order.desc(), _sort_key(EXHIBITION_SORT_FIELDS, sort), Exhibition.id.desc())
        )
        return list(result.scalars().all())
