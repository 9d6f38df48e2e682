import uuid

from sqlalchemy import Column, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from ..database import Base


class InventoryHolding(Base):
    __tablename__ = "inventory_holdings"
    __table_args__ = (
        UniqueConstraint("inventory_id", "product_id", name="ux_inventory_holding_product"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    inventory_id = Column(
        UUID(as_uuid=True),
        ForeignKey("inventories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Always > 0; the row is deleted when it reaches 0
    quantity = Column(Integer, nullable=False)

    # Contribution of this holding to the inventory totals, captured at add time
    weight_total = Column(Float, nullable=False, default=0.0)
    volume_total = Column(Float, nullable=False, default=0.0)

    inventory = relationship("Inventory", back_populates="holdings")
    product = relationship("Product")
