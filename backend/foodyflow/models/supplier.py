"""Supplier model."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base, TimestampMixin


class Supplier(Base, TimestampMixin):
    """Supplier of ingredient products."""

    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Relationships
    products: Mapped[list["Product"]] = relationship("Product", back_populates="supplier")
    orders: Mapped[list["Order"]] = relationship("Order", back_populates="supplier_ref")


# Forward references
from foodyflow.models.product import Product
from foodyflow.models.order import Order
