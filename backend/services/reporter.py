from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Inventory, InventoryHolding, Product
from db.store import EntityStore
from services.ledger import CapacityLedger, get_ledger


def _pct(occupied: float, total: float) -> Optional[float]:
    # A zero ceiling has no meaningful utilization
    if not total:
        return None
    return float(occupied) / float(total) * 100.0


class UtilizationReporter:
    """
    Read-only views over the ledger.

    Reads take the same per-inventory lock as the ledger so totals and
    holdings always come from one committed state. Prices are re-read from
    the current product rows.
    """

    def __init__(self, ledger: CapacityLedger):
        self.ledger = ledger

    async def _holdings_with_products(self, db: AsyncSession, inventory_id: UUID):
        res = await db.execute(
            select(InventoryHolding, Product)
            .join(Product, InventoryHolding.product_id == Product.id)
            .where(InventoryHolding.inventory_id == inventory_id)
            .order_by(Product.name.asc())
            .execution_options(populate_existing=True)
        )
        return res.all()

    async def get_utilization(self, *, db: AsyncSession, inventory_id: UUID) -> dict:
        async with self.ledger.inventory_lock(inventory_id):
            inv = await EntityStore(db, Inventory).get(inventory_id, fresh=True)
            capacity_occupied = float(inv.capacity_occupied or 0)
            volume_occupied = float(inv.volume_occupied or 0)
            total_capacity = float(inv.total_capacity or 0)
            total_volume = float(inv.total_volume or 0)

        return {
            "inventory_id": inventory_id,
            "capacity_occupied": capacity_occupied,
            "total_capacity": total_capacity,
            "capacity_pct": _pct(capacity_occupied, total_capacity),
            "volume_occupied": volume_occupied,
            "total_volume": total_volume,
            "volume_pct": _pct(volume_occupied, total_volume),
        }

    async def get_cost_summary(self, *, db: AsyncSession, inventory_id: UUID) -> dict:
        async with self.ledger.inventory_lock(inventory_id):
            await EntityStore(db, Inventory).get(inventory_id)
            rows = await self._holdings_with_products(db, inventory_id)

        total_value = 0.0
        total_quantity = 0
        for holding, product in rows:
            total_value += int(holding.quantity) * float(product.price or 0)
            total_quantity += int(holding.quantity)

        return {
            "inventory_id": inventory_id,
            "total_value": total_value,
            "total_quantity": total_quantity,
            "average_cost": (total_value / total_quantity) if total_quantity else None,
        }

    async def list_holdings(self, *, db: AsyncSession, inventory_id: UUID) -> List[dict]:
        async with self.ledger.inventory_lock(inventory_id):
            await EntityStore(db, Inventory).get(inventory_id)
            rows = await self._holdings_with_products(db, inventory_id)

        out = []
        for holding, product in rows:
            price = float(product.price or 0)
            out.append(
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "category": product.category,
                    "quantity": int(holding.quantity),
                    "unit_price": price,
                    "total_value": int(holding.quantity) * price,
                    "weight_total": float(holding.weight_total or 0),
                    "volume_total": float(holding.volume_total or 0),
                }
            )
        return out


reporter = UtilizationReporter(get_ledger())


def get_reporter() -> UtilizationReporter:
    return reporter
