"""Pydantic schemas for the design records and API request/response validation."""

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from models import BudgetTier, HouseStyle, OutdoorSpace, PlotShape, Slope

AREA_REL_TOLERANCE = 1e-6


class _Record(BaseModel):
    """Immutable record serialized with camelCase keys (export contract)."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------- Inputs ----------
class LandMeasurement(_Record):
    width: float = Field(..., gt=0, description="Plot width in meters")
    length: float = Field(..., gt=0, description="Plot length in meters")
    area: float = Field(default=0.0, description="Derived: width x length")
    shape: PlotShape = PlotShape.RECTANGULAR
    slope: Slope = Slope.FLAT

    @model_validator(mode="before")
    @classmethod
    def _derive_area(cls, data):
        if isinstance(data, dict) and data.get("area") is None:
            data = dict(data)
            try:
                data["area"] = float(data["width"]) * float(data["length"])
            except (KeyError, TypeError, ValueError):
                # left for field validation to report
                pass
        return data

    @model_validator(mode="after")
    def _check_area(self):
        expected = self.width * self.length
        if not math.isclose(self.area, expected, rel_tol=AREA_REL_TOLERANCE):
            raise ValueError(
                f"area {self.area} does not match width x length ({expected})"
            )
        return self


class HousePreferences(_Record):
    style: HouseStyle = HouseStyle.MODERN
    bedrooms: int = Field(default=3, ge=1)
    bathrooms: int = Field(default=2, ge=1)
    floors: int = Field(default=1, ge=1)
    garage: bool = True
    outdoor_space: OutdoorSpace = OutdoorSpace.MEDIUM
    budget: BudgetTier = BudgetTier.MEDIUM


# ---------- Outputs ----------
class HouseDesign(_Record):
    id: str
    title: str
    description: str
    image_url: str
    square_footage: int = Field(..., gt=0)
    bedrooms: int
    bathrooms: int
    floors: int
    features: tuple[str, ...]
    estimated_cost: str
    created_at: datetime


class HistoryItem(_Record):
    id: str
    land_measurement: LandMeasurement
    preferences: HousePreferences
    designs: tuple[HouseDesign, ...]
    created_at: datetime


# ---------- API ----------
class GenerateDesignsRequest(_Record):
    land_measurement: LandMeasurement
    preferences: HousePreferences


class GenerateDesignsResponse(_Record):
    history_id: str
    designs: tuple[HouseDesign, ...]


class ViewportIn(_Record):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    padding: int = Field(default=40, ge=0)


class PlotRequest(_Record):
    """Raw plot dimensions; non-positive values yield an idle (empty) response."""
    width: float
    length: float
    shape: PlotShape = PlotShape.RECTANGULAR
    viewport: Optional[ViewportIn] = None


class PlotGeometryResponse(_Record):
    rendered: bool
    geometry: Optional[dict] = None
