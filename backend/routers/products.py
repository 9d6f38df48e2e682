from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

from core.auth import current_active_superuser
from db.database import get_async_session
from db.inventory.holding import InventoryHolding as InventoryHoldingModel
from db.product import Product as ProductModel
from db.store import EntityStore
from db.users import User
from schemas.products import ProductCreate, ProductRead, ProductUpdate

router = APIRouter()


@router.get("/", response_model=List[ProductRead])
async def list_products(db: AsyncSession = Depends(get_async_session)):
    items = await EntityStore(db, ProductModel).list(order_by=func.lower(ProductModel.name).asc())
    return [p.to_schema for p in items]


@router.get("/needs-restock", response_model=List[ProductRead])
async def list_products_needing_restock(db: AsyncSession = Depends(get_async_session)):
    """Products whose global stock is at or below their threshold."""
    items = await EntityStore(db, ProductModel).list(
        ProductModel.quantity <= ProductModel.threshold_limit,
        order_by=ProductModel.quantity.asc(),
    )
    return [p.to_schema for p in items]


@router.get("/category/{category}", response_model=List[ProductRead])
async def list_products_by_category(category: str, db: AsyncSession = Depends(get_async_session)):
    items = await EntityStore(db, ProductModel).list(
        func.lower(ProductModel.category) == category.strip().lower(),
        order_by=func.lower(ProductModel.name).asc(),
    )
    return [p.to_schema for p in items]


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(product_id: UUID, db: AsyncSession = Depends(get_async_session)):
    product = await EntityStore(db, ProductModel).get(product_id)
    return product.to_schema


@router.post("/", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
):
    m = ProductModel(
        name=payload.name,
        category=payload.category,
        batch_id=payload.batch_id,
        description=payload.description,
        price=payload.price,
        weight=payload.weight,
        length=payload.dimensions.length,
        width=payload.dimensions.width,
        height=payload.dimensions.height,
        quantity=payload.quantity,
        threshold_limit=payload.threshold_limit,
        mfg_date=payload.mfg_date,
        expiry_date=payload.expiry_date,
    )
    await EntityStore(db, ProductModel).save(m)
    return m.to_schema


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Update product master data.

    Weight/dimension changes do not touch totals already committed by the
    capacity ledger; they apply to future additions only.
    """
    store = EntityStore(db, ProductModel)
    m = await store.get(product_id)

    data = payload.model_dump(exclude_unset=True, exclude={"dimensions"})
    for field, value in data.items():
        if value is not None:
            setattr(m, field, value)
    if payload.dimensions is not None:
        m.length = payload.dimensions.length
        m.width = payload.dimensions.width
        m.height = payload.dimensions.height

    if m.mfg_date and m.expiry_date and m.expiry_date < m.mfg_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="expiry_date must not be before mfg_date")

    await store.save(m)
    return m.to_schema


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    user: User = Depends(current_active_superuser),
    db: AsyncSession = Depends(get_async_session),
):
    store = EntityStore(db, ProductModel)
    await store.get(product_id)

    held = await db.execute(
        select(func.count()).select_from(InventoryHoldingModel).where(InventoryHoldingModel.product_id == product_id)
    )
    if held.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product is still held by an inventory; remove it from every inventory first",
        )

    await store.delete(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
