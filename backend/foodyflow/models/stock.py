"""Stock ledger model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base


class MovementDirection(str, Enum):
    IN = "in"
    OUT = "out"


class MovementSource(str, Enum):
    """Origin of a stock movement."""

    ORDER = "order"  # Goods received on order confirmation
    WASTE = "waste"  # Spoilage, breakage
    PERSONAL_MEAL = "personal_meal"  # Staff meals
    ADJUSTMENT = "adjustment"  # Opening stock and manual corrections


class StockMovement(Base):
    """Append-only ledger of stock changes (single source of truth)."""

    __tablename__ = "stock_movements"
    __table_args__ = (
        Index("ix_stock_movements_source", "source", "source_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    ts: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    direction: Mapped[str] = mapped_column(String(3), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 4), nullable=True)
    total_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 4), nullable=True)
    source: Mapped[str] = mapped_column(String(30), nullable=False)
    source_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    movement_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="stock_movements")


# Forward references
from foodyflow.models.product import Product
