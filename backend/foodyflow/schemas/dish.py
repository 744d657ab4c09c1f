"""Dish schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from foodyflow.schemas.recipe import IngredientLineCreate, IngredientLineResponse


class DishCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    selling_price: Decimal = Field(default=Decimal("0"), ge=0)
    lines: List[IngredientLineCreate] = []


class DishUpdate(BaseModel):
    """Partial update; ``lines`` replaces all lines when given."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    lines: Optional[List[IngredientLineCreate]] = None


class DishResponse(BaseModel):
    id: int
    name: str
    total_cost: Decimal
    selling_price: Decimal
    net_price: Decimal
    food_cost_percent: Decimal
    margin: Decimal
    sold: int
    lines: List[IngredientLineResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
