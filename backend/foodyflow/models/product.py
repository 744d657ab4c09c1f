"""Product (raw ingredient) model."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Enum as SQLEnum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base, TimestampMixin


class ProductUnit(str, Enum):
    """Measurement family of a product."""

    MASS = "mass"  # kg
    VOLUME = "volume"  # l
    COUNT = "count"  # pezzo


class Product(Base, TimestampMixin):
    """Ingredient in the catalog.

    ``quantity_on_hand`` mirrors the stock ledger and is rewritten by
    ``InventoryLedger`` on every posting; never assign it directly.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    supplier_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    waste_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, nullable=False)
    unit: Mapped[ProductUnit] = mapped_column(
        SQLEnum(ProductUnit, values_callable=lambda e: [m.value for m in e]),
        default=ProductUnit.MASS,
        nullable=False,
    )
    quantity_on_hand: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    effective_price_per_unit: Mapped[Decimal] = mapped_column(
        Numeric(12, 4), default=0, nullable=False
    )  # price adjusted for waste
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Relationships
    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", back_populates="products")
    stock_movements: Mapped[list["StockMovement"]] = relationship(
        "StockMovement", back_populates="product", cascade="all"
    )
    recipe_lines: Mapped[list["RecipeLine"]] = relationship(
        "RecipeLine", back_populates="product", cascade="all"
    )
    dish_lines: Mapped[list["DishLine"]] = relationship(
        "DishLine", back_populates="product", cascade="all"
    )
    waste_entries: Mapped[list["Waste"]] = relationship(
        "Waste", back_populates="product", cascade="save-update, merge"
    )
    inventory_snapshots: Mapped[list["InventorySnapshot"]] = relationship(
        "InventorySnapshot", back_populates="product", cascade="all"
    )


# Forward references
from foodyflow.models.supplier import Supplier
from foodyflow.models.stock import StockMovement
from foodyflow.models.recipe import RecipeLine
from foodyflow.models.dish import DishLine
from foodyflow.models.consumption import Waste
from foodyflow.models.inventory import InventorySnapshot
