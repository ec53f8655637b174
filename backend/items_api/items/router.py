"""Item CRUD routes. Every route sits behind the authorization gate.

Writes commit inside their tracked block so a failed commit is counted as an
operation error.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.dependencies import require_identity
from ..db import get_db_session
from ..instrumentation import track_operation
from ..repositories import ItemRepository
from ..responses import success
from .models import ItemOut, ItemRequest

router = APIRouter(
    prefix="/api/v1/items",
    tags=["items"],
    dependencies=[Depends(require_identity)],
)

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def _not_found() -> HTTPException:
    return HTTPException(status.HTTP_404_NOT_FOUND, detail="Item not found")


@router.get("")
async def list_items(db: DbSession) -> dict[str, Any]:
    repo = ItemRepository(db)
    with track_operation("get_items"):
        items = await repo.list_items()
    return success([ItemOut.model_validate(item) for item in items])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(payload: ItemRequest, db: DbSession) -> dict[str, Any]:
    repo = ItemRepository(db)
    with track_operation("create_item"):
        item = await repo.create(payload.name, payload.description)
        await db.commit()
    return success(ItemOut.model_validate(item), message="Item created successfully")


@router.get("/{item_id}")
async def get_item(item_id: int, db: DbSession) -> dict[str, Any]:
    repo = ItemRepository(db)
    with track_operation("get_item"):
        item = await repo.get(item_id)
    if item is None:
        raise _not_found()
    return success(ItemOut.model_validate(item))


@router.put("/{item_id}")
async def update_item(item_id: int, payload: ItemRequest, db: DbSession) -> dict[str, Any]:
    repo = ItemRepository(db)
    with track_operation("update_item"):
        item = await repo.update(item_id, payload.name, payload.description)
        await db.commit()
    if item is None:
        raise _not_found()
    return success(ItemOut.model_validate(item), message="Item updated successfully")


@router.delete("/{item_id}")
async def delete_item(item_id: int, db: DbSession) -> dict[str, Any]:
    repo = ItemRepository(db)
    with track_operation("delete_item"):
        deleted = await repo.delete(item_id)
        await db.commit()
    if not deleted:
        raise _not_found()
    return success(message="Item deleted successfully")
