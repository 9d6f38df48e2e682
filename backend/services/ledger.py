"""
Inventory capacity ledger.

The ledger is the only writer of an inventory's occupied totals, its storage
membership and its holdings. Every mutation runs inside the per-inventory
lock, loads the inventory row FOR UPDATE, validates against the ceilings and
commits once. A failed check rolls back and leaves the inventory untouched.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import (
    CapacityExceeded,
    InvalidQuantity,
    InventoryNotEmpty,
    NotFound,
    StorageAlreadyAttached,
    StorageNotAttached,
)
from db.models import Inventory, InventoryHolding, LedgerMovement, Product, StorageUnit, User
from db.store import EntityStore
from services.locks import KeyedLocks

logger = logging.getLogger(__name__)

# Absolute slack for float comparisons on kg / m3 totals
TOLERANCE = 1e-9

ADD_PRODUCT = "ADD_PRODUCT"
REMOVE_PRODUCT = "REMOVE_PRODUCT"
ATTACH_STORAGE = "ATTACH_STORAGE"
DETACH_STORAGE = "DETACH_STORAGE"

# Holding and movement quantities are stored as 32-bit integers
MAX_QUANTITY = 2**31 - 1


def require_quantity(quantity) -> int:
    """Return `quantity` as a positive int or raise InvalidQuantity."""
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise InvalidQuantity(f"quantity must be a positive integer, got {quantity!r}")
    if isinstance(quantity, float) and not quantity.is_integer():
        raise InvalidQuantity(f"quantity must be a positive integer, got {quantity!r}")
    q = int(quantity)
    if q <= 0:
        raise InvalidQuantity(f"quantity must be > 0, got {q}")
    if q > MAX_QUANTITY:
        raise InvalidQuantity(f"quantity must be at most {MAX_QUANTITY}, got {q}")
    return q


def _exceeds(value: float, limit: float) -> bool:
    return value > float(limit or 0) + TOLERANCE


def _fmt(x: float) -> str:
    return f"{x:g}"


class CapacityLedger:
    def __init__(self, locks: Optional[KeyedLocks] = None):
        self.locks = locks or KeyedLocks()

    def inventory_lock(self, inventory_id: UUID):
        return self.locks.hold(("inventory", inventory_id))

    def storage_lock(self, storage_unit_id: UUID):
        return self.locks.hold(("storage", storage_unit_id))

    async def snapshot(self, db: AsyncSession, inventory_id: UUID) -> Inventory:
        return await EntityStore(db, Inventory).get(inventory_id, fresh=True)

    # ------------------------------------------------------------------
    # Inventory lifecycle
    # ------------------------------------------------------------------

    async def create_inventory(
        self,
        *,
        db: AsyncSession,
        name: str,
        longitude: float,
        latitude: float,
        total_capacity: float = 0.0,
        total_volume: float = 0.0,
    ) -> Inventory:
        inv = Inventory(
            name=name,
            longitude=longitude,
            latitude=latitude,
            total_capacity=float(total_capacity),
            total_volume=float(total_volume),
            capacity_occupied=0.0,
            volume_occupied=0.0,
        )
        await EntityStore(db, Inventory).save(inv)
        logger.info("inventory %s created (capacity=%s kg, volume=%s m3)", inv.id, total_capacity, total_volume)
        return await self.snapshot(db, inv.id)

    async def reconfigure(
        self,
        *,
        db: AsyncSession,
        inventory_id: UUID,
        name: Optional[str] = None,
        longitude: Optional[float] = None,
        latitude: Optional[float] = None,
        total_capacity: Optional[float] = None,
        total_volume: Optional[float] = None,
    ) -> Inventory:
        """Update inventory settings. Ceilings may never drop below what is already occupied."""
        async with self.inventory_lock(inventory_id):
            try:
                inv = await EntityStore(db, Inventory).get(inventory_id, for_update=True)
                if total_capacity is not None and _exceeds(inv.capacity_occupied, total_capacity):
                    raise CapacityExceeded(
                        f"Cannot lower capacity to {_fmt(total_capacity)} kg: "
                        f"{_fmt(inv.capacity_occupied)} kg already occupied"
                    )
                if total_volume is not None and _exceeds(inv.volume_occupied, total_volume):
                    raise CapacityExceeded(
                        f"Cannot lower volume to {_fmt(total_volume)} m3: "
                        f"{_fmt(inv.volume_occupied)} m3 already occupied"
                    )
                if name is not None:
                    inv.name = name
                if longitude is not None:
                    inv.longitude = longitude
                if latitude is not None:
                    inv.latitude = latitude
                if total_capacity is not None:
                    inv.total_capacity = float(total_capacity)
                if total_volume is not None:
                    inv.total_volume = float(total_volume)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return await self.snapshot(db, inventory_id)

    async def delete_inventory(self, *, db: AsyncSession, inventory_id: UUID) -> None:
        async with self.inventory_lock(inventory_id):
            try:
                inv = await EntityStore(db, Inventory).get(inventory_id, for_update=True)
                if not inv.is_empty:
                    raise InventoryNotEmpty(
                        f"Inventory {inventory_id} still has {len(inv.storage_units)} storage unit(s) "
                        f"and {len(inv.holdings)} product(s); remove them first"
                    )
                await db.delete(inv)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("inventory %s deleted", inventory_id)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def add_product(
        self,
        *,
        db: AsyncSession,
        inventory_id: UUID,
        product_id: UUID,
        quantity,
        user: Optional[User] = None,
    ) -> Inventory:
        """
        Put `quantity` units of a product into the inventory.

        All-or-nothing: if either the weight or the volume total would pass its
        ceiling, CapacityExceeded is raised and nothing is committed.
        """
        qty = require_quantity(quantity)
        user_id = user.id if user is not None else None

        async with self.inventory_lock(inventory_id):
            try:
                inv = await EntityStore(db, Inventory).get(inventory_id, for_update=True)
                product = await EntityStore(db, Product).get(product_id)

                delta_weight = qty * float(product.weight or 0)
                delta_volume = qty * product.unit_volume
                new_capacity = float(inv.capacity_occupied or 0) + delta_weight
                new_volume = float(inv.volume_occupied or 0) + delta_volume

                if _exceeds(new_capacity, inv.total_capacity):
                    free = max(float(inv.total_capacity) - float(inv.capacity_occupied), 0.0)
                    raise CapacityExceeded(
                        f"Adding {qty} x {product.name} needs {_fmt(delta_weight)} kg "
                        f"but only {_fmt(free)} kg of {_fmt(inv.total_capacity)} kg is free"
                    )
                if _exceeds(new_volume, inv.total_volume):
                    free = max(float(inv.total_volume) - float(inv.volume_occupied), 0.0)
                    raise CapacityExceeded(
                        f"Adding {qty} x {product.name} needs {_fmt(delta_volume)} m3 "
                        f"but only {_fmt(free)} m3 of {_fmt(inv.total_volume)} m3 is free"
                    )

                holding = inv.holding_for(product_id)
                held = int(holding.quantity) if holding is not None else 0
                if held + qty > MAX_QUANTITY:
                    raise InvalidQuantity(
                        f"Cannot hold more than {MAX_QUANTITY} units of product {product_id}: "
                        f"{held} held, adding {qty}"
                    )
                if holding is None:
                    holding = InventoryHolding(
                        product_id=product_id,
                        quantity=0,
                        weight_total=0.0,
                        volume_total=0.0,
                    )
                    inv.holdings.append(holding)
                holding.quantity = int(holding.quantity) + qty
                holding.weight_total = float(holding.weight_total or 0) + delta_weight
                holding.volume_total = float(holding.volume_total or 0) + delta_volume

                inv.capacity_occupied = new_capacity
                inv.volume_occupied = new_volume

                db.add(
                    LedgerMovement(
                        inventory_id=inventory_id,
                        kind=ADD_PRODUCT,
                        product_id=product_id,
                        quantity=qty,
                        weight_delta=delta_weight,
                        volume_delta=delta_volume,
                        created_by_user_id=user_id,
                    )
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

            logger.info(
                "inventory %s: +%d x product %s (+%s kg, +%s m3)",
                inventory_id, qty, product_id, _fmt(delta_weight), _fmt(delta_volume),
            )
            return await self.snapshot(db, inventory_id)

    async def remove_product(
        self,
        *,
        db: AsyncSession,
        inventory_id: UUID,
        product_id: UUID,
        quantity=None,
        user: Optional[User] = None,
    ) -> Inventory:
        """
        Take units of a product out of the inventory.

        Without `quantity` the whole holding goes, and the totals drop by exactly
        what that holding contributed.
        """
        qty = None if quantity is None else require_quantity(quantity)
        user_id = user.id if user is not None else None

        async with self.inventory_lock(inventory_id):
            try:
                inv = await EntityStore(db, Inventory).get(inventory_id, for_update=True)
                holding = inv.holding_for(product_id)
                if holding is None:
                    raise NotFound(
                        "Product",
                        product_id,
                        message=f"Product {product_id} is not held in inventory {inventory_id}",
                    )

                held = int(holding.quantity)
                if qty is not None and qty > held:
                    raise InvalidQuantity(
                        f"Cannot remove {qty} units of product {product_id}: only {held} held"
                    )

                if qty is None or qty == held:
                    qty = held
                    delta_weight = float(holding.weight_total or 0)
                    delta_volume = float(holding.volume_total or 0)
                else:
                    share = qty / held
                    delta_weight = float(holding.weight_total or 0) * share
                    delta_volume = float(holding.volume_total or 0) * share

                if qty == held:
                    inv.holdings.remove(holding)
                else:
                    holding.quantity = held - qty
                    holding.weight_total = float(holding.weight_total or 0) - delta_weight
                    holding.volume_total = float(holding.volume_total or 0) - delta_volume

                inv.capacity_occupied = self._clamp(
                    float(inv.capacity_occupied or 0) - delta_weight, "capacity_occupied", inventory_id
                )
                inv.volume_occupied = self._clamp(
                    float(inv.volume_occupied or 0) - delta_volume, "volume_occupied", inventory_id
                )

                db.add(
                    LedgerMovement(
                        inventory_id=inventory_id,
                        kind=REMOVE_PRODUCT,
                        product_id=product_id,
                        quantity=-qty,
                        weight_delta=-delta_weight,
                        volume_delta=-delta_volume,
                        created_by_user_id=user_id,
                    )
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

            logger.info(
                "inventory %s: -%d x product %s (-%s kg, -%s m3)",
                inventory_id, qty, product_id, _fmt(delta_weight), _fmt(delta_volume),
            )
            return await self.snapshot(db, inventory_id)

    @staticmethod
    def _clamp(value: float, field: str, inventory_id: UUID) -> float:
        if value >= 0:
            return value
        if value < -TOLERANCE:
            logger.error(
                "ledger invariant violated: %s of inventory %s would be %r; clamping to 0",
                field, inventory_id, value,
            )
        return 0.0

    # ------------------------------------------------------------------
    # Storage units
    # ------------------------------------------------------------------

    async def add_storage(
        self,
        *,
        db: AsyncSession,
        inventory_id: UUID,
        storage_unit_id: UUID,
        user: Optional[User] = None,
    ) -> Inventory:
        """Attach a storage unit. Attaching one that is already ours is a no-op."""
        user_id = user.id if user is not None else None

        async with self.inventory_lock(inventory_id), self.storage_lock(storage_unit_id):
            try:
                await EntityStore(db, Inventory).get(inventory_id, for_update=True)
                unit = await EntityStore(db, StorageUnit, label="Storage unit").get(storage_unit_id, fresh=True)

                if unit.inventory_id == inventory_id:
                    await db.commit()
                    return await self.snapshot(db, inventory_id)
                if unit.inventory_id is not None:
                    raise StorageAlreadyAttached(
                        f"Storage unit {storage_unit_id} is already attached to inventory {unit.inventory_id}"
                    )

                # Conditional write so a concurrent attach from another process cannot win twice
                res = await db.execute(
                    update(StorageUnit)
                    .where(StorageUnit.id == storage_unit_id)
                    .where(or_(StorageUnit.inventory_id.is_(None), StorageUnit.inventory_id == inventory_id))
                    .values(inventory_id=inventory_id)
                )
                if res.rowcount == 0:
                    raise StorageAlreadyAttached(
                        f"Storage unit {storage_unit_id} is already attached to another inventory"
                    )

                db.add(
                    LedgerMovement(
                        inventory_id=inventory_id,
                        kind=ATTACH_STORAGE,
                        storage_unit_id=storage_unit_id,
                        quantity=0,
                        created_by_user_id=user_id,
                    )
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

            logger.info("inventory %s: attached storage unit %s", inventory_id, storage_unit_id)
            return await self.snapshot(db, inventory_id)

    async def remove_storage(
        self,
        *,
        db: AsyncSession,
        inventory_id: UUID,
        storage_unit_id: UUID,
        user: Optional[User] = None,
    ) -> Inventory:
        user_id = user.id if user is not None else None

        async with self.inventory_lock(inventory_id), self.storage_lock(storage_unit_id):
            try:
                await EntityStore(db, Inventory).get(inventory_id, for_update=True)
                unit = await EntityStore(db, StorageUnit, label="Storage unit").get(storage_unit_id, fresh=True)
                if unit.inventory_id != inventory_id:
                    raise StorageNotAttached(
                        f"Storage unit {storage_unit_id} is not attached to inventory {inventory_id}"
                    )

                res = await db.execute(
                    update(StorageUnit)
                    .where(StorageUnit.id == storage_unit_id)
                    .where(StorageUnit.inventory_id == inventory_id)
                    .values(inventory_id=None)
                )
                if res.rowcount == 0:
                    raise StorageNotAttached(
                        f"Storage unit {storage_unit_id} is not attached to inventory {inventory_id}"
                    )

                db.add(
                    LedgerMovement(
                        inventory_id=inventory_id,
                        kind=DETACH_STORAGE,
                        storage_unit_id=storage_unit_id,
                        quantity=0,
                        created_by_user_id=user_id,
                    )
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

            logger.info("inventory %s: detached storage unit %s", inventory_id, storage_unit_id)
            return await self.snapshot(db, inventory_id)


ledger = CapacityLedger()


def get_ledger() -> CapacityLedger:
    return ledger
