import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from core.auth import current_active_superuser
from db.database import get_async_session
from db.storage_unit import StorageUnit as StorageUnitModel
from db.store import EntityStore
from db.users import User
from schemas.storages import StorageUnitCreate, StorageUnitRead, StorageUnitUpdate
from services.ledger import CapacityLedger, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[StorageUnitRead])
async def list_storage_units(
    inventory_id: Optional[UUID] = None,
    unattached: bool = False,
    db: AsyncSession = Depends(get_async_session),
):
    where = []
    if inventory_id:
        where.append(StorageUnitModel.inventory_id == inventory_id)
    if unattached:
        where.append(StorageUnitModel.inventory_id.is_(None))
    items = await EntityStore(db, StorageUnitModel).list(*where, order_by=StorageUnitModel.location_id.asc())
    return [s.to_schema for s in items]


@router.get("/{storage_unit_id}", response_model=StorageUnitRead)
async def get_storage_unit(storage_unit_id: UUID, db: AsyncSession = Depends(get_async_session)):
    unit = await EntityStore(db, StorageUnitModel, label="Storage unit").get(storage_unit_id)
    return unit.to_schema


@router.post("/", response_model=StorageUnitRead, status_code=status.HTTP_201_CREATED)
async def create_storage_unit(
    payload: StorageUnitCreate,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    """
    Create a storage unit.

    - If `inventory_id` is given, the unit is attached through the capacity ledger
      after it is saved. A failed attach leaves the unit saved but unattached.
    """
    store = EntityStore(db, StorageUnitModel, label="Storage unit")
    unit = StorageUnitModel(
        location_id=payload.location_id,
        length=payload.dimensions.length,
        width=payload.dimensions.width,
        height=payload.dimensions.height,
        holding_capacity=payload.holding_capacity,
        volume=payload.volume,
    )
    await store.save(unit)

    if payload.inventory_id is not None:
        await ledger.add_storage(db=db, inventory_id=payload.inventory_id, storage_unit_id=unit.id, user=user)
        unit = await store.get(unit.id, fresh=True)
    return unit.to_schema


@router.put("/{storage_unit_id}", response_model=StorageUnitRead)
async def update_storage_unit(
    storage_unit_id: UUID,
    payload: StorageUnitUpdate,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
):
    """Update physical attributes. Attachment is changed only via /inventory/{id}/storage."""
    store = EntityStore(db, StorageUnitModel, label="Storage unit")
    unit = await store.get(storage_unit_id)

    if payload.location_id is not None:
        unit.location_id = payload.location_id
    if payload.dimensions is not None:
        unit.length = payload.dimensions.length
        unit.width = payload.dimensions.width
        unit.height = payload.dimensions.height
    if payload.holding_capacity is not None:
        unit.holding_capacity = payload.holding_capacity
    if payload.volume is not None:
        unit.volume = payload.volume

    await store.save(unit)
    return unit.to_schema


@router.delete("/{storage_unit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_storage_unit(
    storage_unit_id: UUID,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    store = EntityStore(db, StorageUnitModel, label="Storage unit")
    async with ledger.storage_lock(storage_unit_id):
        unit = await store.get(storage_unit_id, fresh=True)
        if unit.inventory_id is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Storage unit is attached to inventory {unit.inventory_id}; detach it first",
            )
        await store.delete(storage_unit_id)
    logger.info("storage unit %s deleted", storage_unit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
