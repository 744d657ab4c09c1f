"""Purchase order schemas."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from foodyflow.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    position: int
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    """Order creation schema.

    ``status`` stays a plain string here; the lifecycle validates it so an
    unknown value is reported as an invalid status rather than a schema error.
    """

    supplier: Optional[str] = Field(None, max_length=255)
    supplier_id: Optional[int] = None
    order_date: Optional[dt.date] = None
    operator_name: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    items: List[OrderItemCreate] = []


class OrderUpdate(BaseModel):
    """Partial update; ``items`` replaces all lines when given."""

    supplier: Optional[str] = Field(None, max_length=255)
    supplier_id: Optional[int] = None
    order_date: Optional[dt.date] = None
    operator_name: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    items: Optional[List[OrderItemCreate]] = None


class OrderStatusUpdate(BaseModel):
    status: str


class OrderResponse(BaseModel):
    id: int
    supplier: str
    supplier_id: Optional[int] = None
    order_date: dt.date
    operator_name: Optional[str] = None
    notes: Optional[str] = None
    status: OrderStatus
    total_amount: Decimal
    items: List[OrderItemResponse] = []
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}


class DeliveryResultResponse(BaseModel):
    email: str
    success: bool
    error: Optional[str] = None
    sent_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}


class OrderEmailResponse(BaseModel):
    """Result of sending an order to its suppliers."""

    success: bool
    message: str
    results: List[DeliveryResultResponse] = []

    model_config = {"from_attributes": True}
