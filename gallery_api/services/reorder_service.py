"""
Reordering of ranked collections (paintings, exhibitions, exhibition photos).

Callers submit ``[{id, order}, ...]`` for a subset of one collection. Every id
must exist in that collection; the new order values are written verbatim in a
single transaction, and no other row is touched.
"""
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.exceptions import ConflictError, NotFoundError, ValidationError
from gallery_api.models import Exhibition, ExhibitionPhoto, Painting

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ReorderScope:
    """A ranked collection: a model plus the criteria selecting its members."""
    model: Any
    label: str
    criteria: tuple = ()

    @classmethod
    def paintings(cls) -> "ReorderScope":
        return cls(Painting, "paintings")

    @classmethod
    def exhibitions(cls) -> "ReorderScope":
        return cls(Exhibition, "exhibitions")

    @classmethod
    def exhibition_photos(cls, exhibition_id: int) -> "ReorderScope":
        return cls(
            ExhibitionPhoto,
            f"photos of exhibition {exhibition_id}",
            (ExhibitionPhoto.exhibition_id == exhibition_id,),
        )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_items(items: Any) -> list[tuple[int, int]]:
    """
    Check the shape of a reorder list and return ``(id, order)`` pairs.

    Entries may be mappings or objects with ``id`` and ``order`` attributes.

    Raises:
        ValidationError: naming the index of the first bad entry
    """
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence) or not items:
        raise ValidationError("Reorder list must be a non-empty array of {id, order} items")

    pairs = []
    seen = set()
    for index, item in enumerate(items):
        if isinstance(item, Mapping):
            item_id, order = item.get("id"), item.get("order")
        else:
            item_id, order = getattr(item, "id", None), getattr(item, "order", None)

        if not _is_int(item_id):
            raise ValidationError(f"Item at index {index} must have an integer id", index=index)
        if not _is_int(order):
            raise ValidationError(f"Item at index {index} must have an integer order", index=index)
        if item_id in seen:
            raise ValidationError(f"Item at index {index} repeats id {item_id}", index=index)

        seen.add(item_id)
        pairs.append((item_id, order))
    return pairs


class ReorderService:
    """Applies client-submitted order values to one scope atomically."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def reorder(self, scope: ReorderScope, items: Any) -> int:
        """
        Apply ``items`` to ``scope`` and return the number of updated rows.

        Raises:
            ValidationError: malformed ``items``
            NotFoundError: some ids are not in ``scope``; nothing is written
            ConflictError: a row vanished mid-transaction; everything is rolled back
        """
        pairs = validate_items(items)
        ids = [item_id for item_id, _ in pairs]

        try:
            existing = await self._lock_existing(scope, ids)
            missing = [item_id for item_id in ids if item_id not in existing]
            if missing:
                raise NotFoundError(
                    f"Some {scope.label} were not found: {sorted(missing)}",
                    missing_ids=missing,
                )

            model = scope.model
            conflicting = []
            for item_id, order in pairs:
                result = await self.db.execute(
                    update(model)
                    .where(model.id == item_id, *scope.criteria)
                    .values(order=order)
                )
                if result.rowcount == 0:
                    conflicting.append(item_id)

            if conflicting:
                logger.error(f"Reorder of {scope.label} hit concurrently removed rows: {conflicting}")
                raise ConflictError(
                    f"Some {scope.label} changed while reordering; no order was saved. Retry the reorder.",
                    conflicting_ids=conflicting,
                )

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Reordered {len(pairs)} {scope.label}")
        return len(pairs)

    async def _lock_existing(self, scope: ReorderScope, ids: list[int]) -> set[int]:
        """Return the ids present in scope, row-locking them where the backend supports it."""
        model = scope.model
        result = await self.db.execute(
            select(model.id)
            .where(model.id.in_(ids), *scope.criteria)
            .with_for_update()
        )
        return set(result.scalars().all())
