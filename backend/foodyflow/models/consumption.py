"""Waste and personal meal records."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base


class Waste(Base):
    """Product thrown away. ``cost`` is frozen at the time of recording."""

    __tablename__ = "waste"

    id: Mapped[int] = mapped_column(primary_key=True)
    # Nulled when the product is deleted so the recorded cost survives
    product_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    product: Mapped[Optional["Product"]] = relationship("Product", back_populates="waste_entries")


class PersonalMeal(Base):
    """Dish consumed by staff. ``cost`` is frozen at the time of recording."""

    __tablename__ = "personal_meals"

    id: Mapped[int] = mapped_column(primary_key=True)
    dish_id: Mapped[int] = mapped_column(
        ForeignKey("dishes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=1, nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    dish: Mapped["Dish"] = relationship("Dish", back_populates="personal_meals")


# Forward references
from foodyflow.models.product import Product
from foodyflow.models.dish import Dish
