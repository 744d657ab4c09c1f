"""Supplier schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SupplierBase(BaseModel):
    """Base supplier schema."""

    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    notes: Optional[str] = None


class SupplierCreate(SupplierBase):
    """Supplier creation schema."""

    pass


class SupplierUpdate(BaseModel):
    """Supplier update schema."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    notes: Optional[str] = None


class SupplierResponse(SupplierBase):
    """Supplier response schema."""

    id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
