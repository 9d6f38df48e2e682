from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from schemas.common import Dimensions


class StorageUnitRead(BaseModel):
    id: UUID
    location_id: str
    dimensions: Dimensions
    holding_capacity: float
    volume: float
    inventory_id: Optional[UUID] = None


class StorageUnitCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    location_id: str = Field(validation_alias=AliasChoices("location_id", "locationId"))
    dimensions: Dimensions = Dimensions()
    holding_capacity: float = Field(
        default=0.0, ge=0, validation_alias=AliasChoices("holding_capacity", "holdingCapacity")
    )
    volume: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("volume", "Volume"))
    # Attaching goes through the ledger, same as POST /inventory/{id}/storage
    inventory_id: Optional[UUID] = Field(default=None, validation_alias=AliasChoices("inventory_id", "inventory"))

    @field_validator("location_id")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("inventory_id", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        # The web form sends "" when no inventory is picked
        if isinstance(v, str) and not v.strip():
            return None
        return v


class StorageUnitUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    location_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("location_id", "locationId"))
    dimensions: Optional[Dimensions] = None
    holding_capacity: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("holding_capacity", "holdingCapacity")
    )
    volume: Optional[float] = Field(default=None, ge=0, validation_alias=AliasChoices("volume", "Volume"))

    @field_validator("location_id")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v
