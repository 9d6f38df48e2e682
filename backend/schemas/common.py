from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeoPoint(BaseModel):
    """GeoJSON point: coordinates are [longitude, latitude]."""
    type: Literal["Point"] = "Point"
    coordinates: List[float]

    @field_validator("coordinates")
    @classmethod
    def _valid_point(cls, v: List[float]) -> List[float]:
        if len(v) != 2:
            raise ValueError("coordinates must be [longitude, latitude]")
        lon, lat = float(v[0]), float(v[1])
        if not -180.0 <= lon <= 180.0:
            raise ValueError("longitude must be between -180 and 180")
        if not -90.0 <= lat <= 90.0:
            raise ValueError("latitude must be between -90 and 90")
        return [lon, lat]

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class Dimensions(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    length: float = Field(default=0.0, ge=0)
    width: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)


class ErrorOut(BaseModel):
    kind: str
    message: str
