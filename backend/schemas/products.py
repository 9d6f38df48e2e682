from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from schemas.common import Dimensions


class ProductCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    name: str = Field(validation_alias=AliasChoices("name", "productName"))
    category: Optional[str] = Field(default=None, validation_alias=AliasChoices("category", "productCategory"))
    batch_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("batch_id", "batchId"))
    description: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    weight: float = Field(default=0.0, ge=0)
    dimensions: Dimensions = Dimensions()
    quantity: int = Field(default=0, ge=0)
    threshold_limit: int = Field(default=0, ge=0, validation_alias=AliasChoices("threshold_limit", "thresholdLimit"))
    mfg_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("mfg_date", "mfgDate"))
    expiry_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("expiry_date", "expiryDate"))

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("category", "batch_id", "description")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.mfg_date and self.expiry_date and self.expiry_date < self.mfg_date:
            raise ValueError("expiry_date must not be before mfg_date")
        return self


class ProductUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "productName"))
    category: Optional[str] = Field(default=None, validation_alias=AliasChoices("category", "productCategory"))
    batch_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("batch_id", "batchId"))
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[Dimensions] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    threshold_limit: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("threshold_limit", "thresholdLimit")
    )
    mfg_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("mfg_date", "mfgDate"))
    expiry_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("expiry_date", "expiryDate"))

    @field_validator("name")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class ProductRead(BaseModel):
    id: UUID
    name: str
    category: Optional[str] = None
    batch_id: Optional[str] = None
    description: Optional[str] = None
    price: float
    weight: float
    dimensions: Dimensions
    unit_volume: float
    quantity: int
    threshold_limit: int
    mfg_date: Optional[date] = None
    expiry_date: Optional[date] = None
