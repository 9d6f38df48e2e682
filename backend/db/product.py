import uuid
from sqlalchemy import Column, Date, Float, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from .database import Base


class Product(Base):
    """Product master data. Weight and dimensions feed the capacity ledger."""
    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=True, index=True)
    batch_id = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    price = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    weight = Column(Float, nullable=False, default=0.0)  # kg per unit

    length = Column(Float, nullable=False, default=0.0)
    width = Column(Float, nullable=False, default=0.0)
    height = Column(Float, nullable=False, default=0.0)

    # Global stock on hand, independent of per-inventory holdings
    quantity = Column(Integer, nullable=False, default=0)
    threshold_limit = Column(Integer, nullable=False, default=0)

    mfg_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)

    @property
    def unit_volume(self) -> float:
        return float(self.length or 0) * float(self.width or 0) * float(self.height or 0)

    @property
    def needs_restock(self) -> bool:
        return int(self.quantity or 0) <= int(self.threshold_limit or 0)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "batch_id": self.batch_id,
            "description": self.description,
            "price": float(self.price or 0),
            "weight": float(self.weight or 0),
            "dimensions": {
                "length": float(self.length or 0),
                "width": float(self.width or 0),
                "height": float(self.height or 0),
            },
            "unit_volume": self.unit_volume,
            "quantity": int(self.quantity or 0),
            "threshold_limit": int(self.threshold_limit or 0),
            "mfg_date": self.mfg_date,
            "expiry_date": self.expiry_date,
        }
