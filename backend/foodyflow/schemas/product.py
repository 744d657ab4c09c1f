"""Product schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from foodyflow.models.product import ProductUnit

# Unit names used by the kitchen staff
UNIT_ALIASES = {
    "kg": ProductUnit.MASS,
    "l": ProductUnit.VOLUME,
    "pezzo": ProductUnit.COUNT,
}


def _parse_unit(value: Any) -> Any:
    if isinstance(value, str):
        return UNIT_ALIASES.get(value.strip().lower(), value)
    return value


class ProductBase(BaseModel):
    """Base product schema."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    supplier_id: Optional[int] = None
    supplier_email: Optional[str] = None
    waste_percent: Decimal = Field(default=Decimal("0"), ge=0, lt=100)
    unit: ProductUnit = ProductUnit.MASS
    price_per_unit: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None

    @field_validator("unit", mode="before")
    @classmethod
    def unit_alias(cls, v):
        return _parse_unit(v)


class ProductCreate(ProductBase):
    """Product creation schema. ``quantity`` is the opening stock."""

    quantity: Decimal = Field(default=Decimal("0"), ge=0)


class ProductUpdate(BaseModel):
    """Product update schema. Stock changes go through stock movements."""

    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    supplier_id: Optional[int] = None
    supplier_email: Optional[str] = None
    waste_percent: Optional[Decimal] = Field(None, ge=0, lt=100)
    unit: Optional[ProductUnit] = None
    price_per_unit: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("unit", mode="before")
    @classmethod
    def unit_alias(cls, v):
        return _parse_unit(v)


class ProductResponse(ProductBase):
    """Product response schema."""

    id: int
    quantity_on_hand: Decimal
    effective_price_per_unit: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
