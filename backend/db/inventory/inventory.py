import uuid

from sqlalchemy import Column, DateTime, Float, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Inventory(Base):
    __tablename__ = "inventories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)

    # GeoJSON point, stored as plain columns
    longitude = Column(Float, nullable=False, default=0.0)
    latitude = Column(Float, nullable=False, default=0.0)

    # Ceilings, configured independently of attached storage units
    total_capacity = Column(Float, nullable=False, default=0.0)  # kg
    total_volume = Column(Float, nullable=False, default=0.0)  # m3

    # Running totals, written only by the capacity ledger
    capacity_occupied = Column(Float, nullable=False, default=0.0)
    volume_occupied = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    storage_units = relationship("StorageUnit", back_populates="inventory", lazy="selectin")
    holdings = relationship(
        "InventoryHolding",
        back_populates="inventory",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def storage_unit_ids(self):
        return sorted((s.id for s in self.storage_units), key=str)

    @property
    def holdings_map(self):
        return {h.product_id: int(h.quantity) for h in self.holdings}

    def holding_for(self, product_id):
        for h in self.holdings:
            if h.product_id == product_id:
                return h
        return None

    @property
    def is_empty(self) -> bool:
        return not self.storage_units and not self.holdings

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "location": {
                "type": "Point",
                "coordinates": [float(self.longitude or 0), float(self.latitude or 0)],
            },
            "total_capacity": float(self.total_capacity or 0),
            "total_volume": float(self.total_volume or 0),
            "capacity_occupied": float(self.capacity_occupied or 0),
            "volume_occupied": float(self.volume_occupied or 0),
            "storage_unit_ids": self.storage_unit_ids,
            "storage_count": len(self.storage_units),
            "product_count": len(self.holdings),
        }
