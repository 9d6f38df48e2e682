import uuid

import pytest

from core.errors import NotFound
from db.models import Product


@pytest.mark.asyncio
async def test_utilization_percentages(db, ledger, reporter, make_inventory, make_product):
    inv_id = await make_inventory(total_capacity=200.0, total_volume=10.0)
    product = await make_product(weight=25.0, dims=(1.0, 1.0, 0.5))
    await ledger.add_product(db=db, inventory_id=inv_id, product_id=product, quantity=4)

    report = await reporter.get_utilization(db=db, inventory_id=inv_id)

    assert report["capacity_occupied"] == pytest.approx(100.0)
    assert report["capacity_pct"] == pytest.approx(50.0)
    assert report["volume_occupied"] == pytest.approx(2.0)
    assert report["volume_pct"] == pytest.approx(20.0)


@pytest.mark.asyncio
async def test_zero_ceiling_reports_no_percentage(db, reporter, make_inventory):
    inv_id = await make_inventory(total_capacity=0.0, total_volume=5.0)

    report = await reporter.get_utilization(db=db, inventory_id=inv_id)

    assert report["capacity_pct"] is None
    assert report["volume_pct"] == 0.0


@pytest.mark.asyncio
async def test_cost_summary(db, ledger, reporter, make_inventory, make_product):
    inv_id = await make_inventory(total_capacity=1000.0, total_volume=100.0)
    cheap = await make_product(name="Cheap", weight=1.0, price=2.5)
    dear = await make_product(name="Dear", weight=1.0, price=10.0)
    await ledger.add_product(db=db, inventory_id=inv_id, product_id=cheap, quantity=6)
    await ledger.add_product(db=db, inventory_id=inv_id, product_id=dear, quantity=2)

    summary = await reporter.get_cost_summary(db=db, inventory_id=inv_id)

    assert summary["total_quantity"] == 8
    assert summary["total_value"] == pytest.approx(35.0)
    assert summary["average_cost"] == pytest.approx(35.0 / 8)


@pytest.mark.asyncio
async def test_cost_summary_of_empty_inventory(db, reporter, make_inventory):
    inv_id = await make_inventory()

    summary = await reporter.get_cost_summary(db=db, inventory_id=inv_id)

    assert summary["total_value"] == 0.0
    assert summary["total_quantity"] == 0
    assert summary["average_cost"] is None


@pytest.mark.asyncio
async def test_cost_summary_uses_current_price(db, ledger, reporter, make_inventory, make_product, session_maker):
    inv_id = await make_inventory()
    product_id = await make_product(price=4.0)
    await ledger.add_product(db=db, inventory_id=inv_id, product_id=product_id, quantity=5)

    async with session_maker() as s:
        product = await s.get(Product, product_id)
        product.price = 6.0
        await s.commit()

    summary = await reporter.get_cost_summary(db=db, inventory_id=inv_id)
    assert summary["total_value"] == pytest.approx(30.0)


@pytest.mark.asyncio
async def test_list_holdings(db, ledger, reporter, make_inventory, make_product):
    inv_id = await make_inventory()
    product = await make_product(name="Crate", weight=2.0, price=3.0, category="Beverages")
    await ledger.add_product(db=db, inventory_id=inv_id, product_id=product, quantity=3)

    holdings = await reporter.list_holdings(db=db, inventory_id=inv_id)

    assert len(holdings) == 1
    row = holdings[0]
    assert row["product_id"] == product
    assert row["category"] == "Beverages"
    assert row["quantity"] == 3
    assert row["total_value"] == pytest.approx(9.0)
    assert row["weight_total"] == pytest.approx(6.0)


@pytest.mark.asyncio
async def test_unknown_inventory(db, reporter):
    with pytest.raises(NotFound):
        await reporter.get_utilization(db=db, inventory_id=uuid.uuid4())
    with pytest.raises(NotFound):
        await reporter.get_cost_summary(db=db, inventory_id=uuid.uuid4())
