"""Property sale schemas - geocoded sales joined to neighborhoods by name."""

from datetime import date, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Excel serial day 0, accounting for the 1900 leap-year bug
EXCEL_EPOCH = date(1899, 12, 30)


class PropertySale(BaseModel):
    """A single recorded property sale."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    address: str
    neighborhood: str
    building_class: str | None = Field(default=None, alias="buildingClass")
    price: float | None = None
    units: int | None = None
    residential_units: int | None = Field(default=None, alias="residentialUnits")
    commercial_units: int | None = Field(default=None, alias="commercialUnits")
    year_built: int | None = Field(default=None, alias="yearBuilt")
    land_sq_ft: float | None = Field(default=None, alias="landSqFt")
    gross_sq_ft: float | None = Field(default=None, alias="grossSqFt")
    sale_date: date | None = Field(default=None, alias="saleDate")
    location: list[float] | None = Field(
        default=None,
        min_length=2,
        max_length=2,
        description="[longitude, latitude]",
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("sale_date", mode="before")
    @classmethod
    def parse_sale_date(cls, v: Any) -> Any:
        """Accept ISO dates, ISO datetimes, or Excel serial day numbers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            try:
                return EXCEL_EPOCH + timedelta(days=int(v))
            except OverflowError as e:
                raise ValueError(f"Excel serial date {v} is out of range") from e
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class SalesFilter(BaseModel):
    """Criteria for narrowing a list of sales. Unset fields match everything."""

    neighborhoods: list[str] = Field(default_factory=list)
    min_price: float | None = None
    max_price: float | None = None
    min_units: int | None = None
    max_units: int | None = None
    building_class: str | None = None
