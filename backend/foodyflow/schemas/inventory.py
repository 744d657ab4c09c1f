"""Inventory count schemas."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class InventorySnapshotCreate(BaseModel):
    """Shelf count for one product."""

    product_id: int
    final_quantity: Decimal = Field(..., ge=0)
    initial_quantity: Optional[Decimal] = Field(None, ge=0)
    snapshot_date: Optional[dt.date] = None
    notes: Optional[str] = None


class InventorySnapshotUpdate(BaseModel):
    final_quantity: Optional[Decimal] = Field(None, ge=0)
    initial_quantity: Optional[Decimal] = Field(None, ge=0)
    snapshot_date: Optional[dt.date] = None
    notes: Optional[str] = None


class InventorySnapshotResponse(BaseModel):
    id: int
    product_id: int
    snapshot_date: dt.date
    initial_quantity: Decimal
    final_quantity: Decimal
    theoretical_quantity: Decimal
    variance: Decimal
    variance_cost: Decimal
    notes: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}
