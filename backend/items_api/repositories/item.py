"""Repository for item CRUD operations."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Item


class ItemRepository:
    """Repository for item-related database operations.

    Lookups of a missing id return ``None`` (or ``False`` for deletes) rather
    than raising, leaving the 404 decision to the caller.
    """

    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    async def list_items(self) -> Sequence[Item]:
        result = await self.db_session.execute(select(Item).order_by(Item.id))
        return result.scalars().all()

    async def get(self, item_id: int) -> Item | None:
        return await self.db_session.get(Item, item_id)

    async def create(self, name: str, description: str) -> Item:
        item = Item(name=name, description=description)
        self.db_session.add(item)
        await self.db_session.flush()
        return item

    async def update(self, item_id: int, name: str, description: str) -> Item | None:
        item = await self.get(item_id)
        if item is None:
            return None
        item.name = name
        item.description = description
        item.updated_at = datetime.now(UTC)
        await self.db_session.flush()
        return item

    async def delete(self, item_id: int) -> bool:
        item = await self.get(item_id)
        if item is None:
            return False
        await self.db_session.delete(item)
        await self.db_session.flush()
        return True
