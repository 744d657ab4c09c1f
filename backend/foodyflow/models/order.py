"""Purchase order models (goods receiving)."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, Enum as SQLEnum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base, TimestampMixin


class OrderStatus(str, Enum):
    """Status of a purchase order.

    Any status may move to any other; only entering CONFIRMED posts stock.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    PENDENTE = "pendente"  # held by the operator


class Order(Base, TimestampMixin):
    """A purchase order to a supplier."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False)  # name snapshot
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    operator_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)

    # Relationships
    supplier_ref: Mapped[Optional["Supplier"]] = relationship("Supplier", back_populates="orders")
    items: Mapped[list["OrderLine"]] = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )


class OrderLine(Base):
    """A single product line in an order.

    ``product_id`` is a plain reference: a line may outlive its product, in
    which case confirming the order fails.
    """

    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)

    # Relationships
    order: Mapped["Order"] = relationship("Order", back_populates="items")


# Forward references
from foodyflow.models.supplier import Supplier
