from datetime import datetime
from typing import List, Literal, Optional, Union
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

from schemas.common import GeoPoint


LedgerMovementKind = Literal["ADD_PRODUCT", "REMOVE_PRODUCT", "ATTACH_STORAGE", "DETACH_STORAGE"]

# Quantities stay loosely typed here; the ledger rejects zero, negative and fractional values
# with InvalidQuantity rather than a generic validation error.
Quantity = Union[StrictInt, StrictFloat]


class InventoryCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    name: str
    location: GeoPoint = Field(validation_alias=AliasChoices("location", "inventoryLocation"))
    total_capacity: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("total_capacity", "totalCapacity"))
    total_volume: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("total_volume", "totalVolume"))

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class InventoryUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    name: Optional[str] = None
    location: Optional[GeoPoint] = Field(default=None, validation_alias=AliasChoices("location", "inventoryLocation"))
    total_capacity: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("total_capacity", "totalCapacity")
    )
    total_volume: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("total_volume", "totalVolume")
    )

    @field_validator("name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class AddProductRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: UUID = Field(validation_alias=AliasChoices("product_id", "productId"))
    quantity: Quantity


class RemoveProductRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: UUID = Field(validation_alias=AliasChoices("product_id", "productId"))
    quantity: Optional[Quantity] = None


class StorageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    storage_unit_id: UUID = Field(validation_alias=AliasChoices("storage_unit_id", "storageUnitId", "storageId"))


class InventoryOut(BaseModel):
    id: UUID
    name: str
    location: GeoPoint
    total_capacity: float
    total_volume: float
    capacity_occupied: float
    volume_occupied: float
    storage_unit_ids: List[UUID]
    storage_count: int
    product_count: int


class HoldingOut(BaseModel):
    product_id: UUID
    product_name: str
    category: Optional[str] = None
    quantity: int
    unit_price: float
    total_value: float
    weight_total: float
    volume_total: float


class UtilizationOut(BaseModel):
    inventory_id: UUID
    capacity_occupied: float
    total_capacity: float
    capacity_pct: Optional[float] = None
    volume_occupied: float
    total_volume: float
    volume_pct: Optional[float] = None


class CostSummaryOut(BaseModel):
    inventory_id: UUID
    total_value: float
    total_quantity: int
    average_cost: Optional[float] = None


class LedgerMovementOut(BaseModel):
    id: UUID
    inventory_id: UUID
    kind: LedgerMovementKind
    product_id: Optional[UUID] = None
    storage_unit_id: Optional[UUID] = None
    quantity: int
    weight_delta: float
    volume_delta: float
    created_at: datetime
    created_by_user_id: Optional[UUID] = None
