import uuid
from sqlalchemy import Column, Float, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .database import Base


class StorageUnit(Base):
    """A physical container. Attachment to an inventory is owned by the ledger."""
    __tablename__ = "storage_units"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    location_id = Column(String, nullable=False, index=True)

    length = Column(Float, nullable=False, default=0.0)
    width = Column(Float, nullable=False, default=0.0)
    height = Column(Float, nullable=False, default=0.0)

    holding_capacity = Column(Float, nullable=False, default=0.0)  # kg
    volume = Column(Float, nullable=False, default=0.0)

    # At most one inventory at a time
    inventory_id = Column(
        UUID(as_uuid=True),
        ForeignKey("inventories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    inventory = relationship("Inventory", back_populates="storage_units")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "location_id": self.location_id,
            "dimensions": {
                "length": float(self.length or 0),
                "width": float(self.width or 0),
                "height": float(self.height or 0),
            },
            "holding_capacity": float(self.holding_capacity or 0),
            "volume": float(self.volume or 0),
            "inventory_id": self.inventory_id,
        }
