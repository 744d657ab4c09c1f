"""Dish (menu item) models."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base, TimestampMixin
from foodyflow.services import cost_engine


class Dish(Base, TimestampMixin):
    """A dish on the menu with its costing figures."""

    __tablename__ = "dishes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    net_price: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    food_cost_percent: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=0, nullable=False)
    sold: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    lines: Mapped[list["DishLine"]] = relationship(
        "DishLine",
        back_populates="dish",
        cascade="all, delete-orphan",
        order_by="DishLine.position",
    )
    personal_meals: Mapped[list["PersonalMeal"]] = relationship(
        "PersonalMeal", back_populates="dish", cascade="save-update, merge"
    )

    @property
    def margin(self) -> Decimal:
        """Selling price minus ingredient cost."""
        return cost_engine.margin(self.selling_price or 0, self.total_cost or 0)


class DishLine(Base):
    """A product used directly in a dish."""

    __tablename__ = "dish_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    dish_id: Mapped[int] = mapped_column(
        ForeignKey("dishes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    weight_adjustment_percent: Mapped[Decimal] = mapped_column(
        Numeric(7, 2), default=0, nullable=False
    )
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)

    # Relationships
    dish: Mapped["Dish"] = relationship("Dish", back_populates="lines")
    product: Mapped["Product"] = relationship("Product", back_populates="dish_lines")


# Forward references
from foodyflow.models.product import Product
from foodyflow.models.consumption import PersonalMeal
