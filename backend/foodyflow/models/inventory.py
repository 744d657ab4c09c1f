"""Physical inventory counts."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base, TimestampMixin


class InventorySnapshot(Base, TimestampMixin):
    """A shelf count of one product compared with what the ledger expects.

    ``variance`` is ``theoretical_quantity - final_quantity``: positive when
    stock went missing, negative when more was counted than recorded.
    """

    __tablename__ = "inventory_snapshots"
    __table_args__ = (
        Index("ix_inventory_snapshots_product_date", "product_id", "snapshot_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    initial_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    final_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    theoretical_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    variance: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    # Priced at the product's purchase price on the day of the count
    variance_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="inventory_snapshots")


# Forward references
from foodyflow.models.product import Product
