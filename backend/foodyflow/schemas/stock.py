"""Stock ledger schemas."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from foodyflow.models.product import ProductUnit
from foodyflow.models.stock import MovementDirection


class StockMovementResponse(BaseModel):
    """Stock movement response schema."""

    id: int
    ts: dt.datetime
    product_id: int
    direction: MovementDirection
    quantity: Decimal
    unit_price: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None
    source: str
    source_id: Optional[int] = None
    movement_date: dt.date
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class StockAdjustmentRequest(BaseModel):
    """Manual stock correction, posted as a counter-movement."""

    product_id: int
    direction: MovementDirection
    quantity: Decimal = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    movement_date: Optional[dt.date] = None
    notes: Optional[str] = None


class StockSummaryItem(BaseModel):
    product_id: int
    code: str
    name: str
    unit: ProductUnit
    total_in: Decimal
    total_out: Decimal
    quantity_on_hand: Decimal
    valuation: Decimal


class InventoryQuantityResponse(BaseModel):
    product_id: int
    quantity: Decimal
