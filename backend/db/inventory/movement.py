import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class LedgerMovement(Base):
    __tablename__ = "ledger_movements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    inventory_id = Column(
        UUID(as_uuid=True),
        ForeignKey("inventories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 'ADD_PRODUCT' | 'REMOVE_PRODUCT' | 'ATTACH_STORAGE' | 'DETACH_STORAGE'
    kind = Column(Text, nullable=False, index=True)

    product_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    storage_unit_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    quantity = Column(Integer, nullable=False, default=0)  # signed
    weight_delta = Column(Float, nullable=False, default=0.0)
    volume_delta = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    created_by_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_by_user = relationship("User")

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "inventory_id": self.inventory_id,
            "kind": self.kind,
            "product_id": self.product_id,
            "storage_unit_id": self.storage_unit_id,
            "quantity": int(self.quantity or 0),
            "weight_delta": float(self.weight_delta or 0),
            "volume_delta": float(self.volume_delta or 0),
            "created_at": self.created_at,
            "created_by_user_id": self.created_by_user_id,
        }
