"""Waste and personal meal schemas."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class WasteCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(..., gt=0)
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class WasteResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    quantity: Decimal
    cost: Decimal
    date: dt.date
    notes: Optional[str] = None
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class PersonalMealCreate(BaseModel):
    dish_id: int
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class PersonalMealResponse(BaseModel):
    id: int
    dish_id: int
    quantity: Decimal
    cost: Decimal
    date: dt.date
    notes: Optional[str] = None
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class ConsumptionTotalResponse(BaseModel):
    total_cost: Decimal
