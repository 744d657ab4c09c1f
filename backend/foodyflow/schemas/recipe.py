"""Recipe schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class IngredientLineCreate(BaseModel):
    """Ingredient line input (recipes and dishes)."""

    product_id: int
    quantity: Decimal = Field(..., gt=0)
    weight_adjustment_percent: Decimal = Field(default=Decimal("0"), gt=-100, le=1000)


class IngredientLineResponse(BaseModel):
    id: int
    product_id: int
    position: int
    quantity: Decimal
    weight_adjustment_percent: Decimal
    cost: Decimal

    model_config = {"from_attributes": True}


class RecipeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    weight_adjustment_percent: Decimal = Field(default=Decimal("0"), gt=-100, le=1000)
    lines: List[IngredientLineCreate] = []


class RecipeUpdate(BaseModel):
    """Partial update; ``lines`` replaces all lines when given."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    weight_adjustment_percent: Optional[Decimal] = Field(None, gt=-100, le=1000)
    lines: Optional[List[IngredientLineCreate]] = None


class RecipeResponse(BaseModel):
    id: int
    name: str
    weight_adjustment_percent: Decimal
    total_cost: Decimal
    real_cost: Decimal
    suggested_price: Decimal
    lines: List[IngredientLineResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
