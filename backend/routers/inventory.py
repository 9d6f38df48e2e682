import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_superuser, current_active_user
from core.errors import LedgerError
from db.database import get_async_session
from db.inventory.inventory import Inventory as InventoryModel
from db.inventory.movement import LedgerMovement as LedgerMovementModel
from db.store import EntityStore
from db.users import User
from schemas.inventory import (
    AddProductRequest,
    CostSummaryOut,
    HoldingOut,
    InventoryCreate,
    InventoryOut,
    InventoryUpdate,
    LedgerMovementOut,
    RemoveProductRequest,
    StorageRequest,
    UtilizationOut,
)
from services.ledger import CapacityLedger, get_ledger
from services.reporter import UtilizationReporter, get_reporter

logger = logging.getLogger(__name__)

router = APIRouter()


def _failed(action: str) -> HTTPException:
    logger.exception("[inventory] %s failed", action)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.get("/", response_model=List[InventoryOut])
async def list_inventories(
    q: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
):
    """List inventories, optionally filtered by a case-insensitive name fragment."""
    where = []
    if q:
        where.append(func.lower(InventoryModel.name).like(f"%{q.strip().lower()}%"))
    items = await EntityStore(db, InventoryModel).list(*where, order_by=func.lower(InventoryModel.name).asc())
    return [inv.to_schema for inv in items]


@router.get("/{inventory_id}", response_model=InventoryOut)
async def get_inventory(inventory_id: UUID, db: AsyncSession = Depends(get_async_session)):
    inv = await EntityStore(db, InventoryModel).get(inventory_id)
    return inv.to_schema


@router.post("/", response_model=InventoryOut, status_code=status.HTTP_201_CREATED)
async def create_inventory(
    payload: InventoryCreate,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    try:
        inv = await ledger.create_inventory(
            db=db,
            name=payload.name,
            longitude=payload.location.longitude,
            latitude=payload.location.latitude,
            total_capacity=payload.total_capacity,
            total_volume=payload.total_volume,
        )
    except LedgerError:
        raise
    except Exception:
        await db.rollback()
        raise _failed("create inventory")
    return inv.to_schema


@router.put("/{inventory_id}", response_model=InventoryOut)
async def update_inventory(
    inventory_id: UUID,
    payload: InventoryUpdate,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    try:
        inv = await ledger.reconfigure(
            db=db,
            inventory_id=inventory_id,
            name=payload.name,
            longitude=payload.location.longitude if payload.location else None,
            latitude=payload.location.latitude if payload.location else None,
            total_capacity=payload.total_capacity,
            total_volume=payload.total_volume,
        )
    except LedgerError:
        raise
    except Exception:
        raise _failed("update inventory")
    return inv.to_schema


@router.delete("/{inventory_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory(
    inventory_id: UUID,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    """Delete an inventory. Rejected with InventoryNotEmpty while storage units or products remain."""
    try:
        await ledger.delete_inventory(db=db, inventory_id=inventory_id)
    except LedgerError:
        raise
    except Exception:
        raise _failed("delete inventory")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{inventory_id}/products", response_model=List[HoldingOut])
async def list_inventory_products(
    inventory_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    reporter: UtilizationReporter = Depends(get_reporter),
):
    return await reporter.list_holdings(db=db, inventory_id=inventory_id)


@router.post("/{inventory_id}/products", response_model=InventoryOut)
async def add_product(
    inventory_id: UUID,
    payload: AddProductRequest,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    """
    Add units of a product to the inventory.

    - Fails with CapacityExceeded (409) if weight or volume would pass the inventory ceiling;
      nothing is committed in that case.
    """
    try:
        inv = await ledger.add_product(
            db=db,
            inventory_id=inventory_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            user=user,
        )
    except LedgerError:
        raise
    except Exception:
        raise _failed("add product")
    return inv.to_schema


@router.delete("/{inventory_id}/products", response_model=InventoryOut)
async def remove_product(
    inventory_id: UUID,
    payload: RemoveProductRequest,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    """Remove units of a product; without `quantity` the whole holding is removed."""
    try:
        inv = await ledger.remove_product(
            db=db,
            inventory_id=inventory_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            user=user,
        )
    except LedgerError:
        raise
    except Exception:
        raise _failed("remove product")
    return inv.to_schema


@router.post("/{inventory_id}/storage", response_model=InventoryOut)
async def add_storage(
    inventory_id: UUID,
    payload: StorageRequest,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    try:
        inv = await ledger.add_storage(
            db=db,
            inventory_id=inventory_id,
            storage_unit_id=payload.storage_unit_id,
            user=user,
        )
    except LedgerError:
        raise
    except Exception:
        raise _failed("attach storage unit")
    return inv.to_schema


@router.delete("/{inventory_id}/storage", response_model=InventoryOut)
async def remove_storage(
    inventory_id: UUID,
    payload: StorageRequest,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
    ledger: CapacityLedger = Depends(get_ledger),
):
    try:
        inv = await ledger.remove_storage(
            db=db,
            inventory_id=inventory_id,
            storage_unit_id=payload.storage_unit_id,
            user=user,
        )
    except LedgerError:
        raise
    except Exception:
        raise _failed("detach storage unit")
    return inv.to_schema


@router.get("/{inventory_id}/utilization", response_model=UtilizationOut)
async def get_utilization(
    inventory_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    reporter: UtilizationReporter = Depends(get_reporter),
):
    return await reporter.get_utilization(db=db, inventory_id=inventory_id)


@router.get("/{inventory_id}/cost-summary", response_model=CostSummaryOut)
async def get_cost_summary(
    inventory_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    reporter: UtilizationReporter = Depends(get_reporter),
):
    return await reporter.get_cost_summary(db=db, inventory_id=inventory_id)


@router.get("/{inventory_id}/movements", response_model=List[LedgerMovementOut])
async def list_movements(
    inventory_id: UUID,
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Ledger history for one inventory, newest first."""
    await EntityStore(db, InventoryModel).get(inventory_id)
    res = await db.execute(
        select(LedgerMovementModel)
        .where(LedgerMovementModel.inventory_id == inventory_id)
        .order_by(LedgerMovementModel.created_at.desc(), LedgerMovementModel.id.desc())
        .limit(limit)
    )
    return [m.to_schema for m in res.scalars().all()]
