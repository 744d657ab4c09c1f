"""Recipe models."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodyflow.db.base import Base, TimestampMixin


class Recipe(Base, TimestampMixin):
    """A preparation (sauce, dough, stock...) built from products.

    ``total_cost``, ``real_cost`` and ``suggested_price`` are derived from the
    lines and rewritten by ``MenuCosting`` on every change.
    """

    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    weight_adjustment_percent: Mapped[Decimal] = mapped_column(
        Numeric(7, 2), default=0, nullable=False
    )  # cooking loss/gain, e.g. -50 means half the weight after processing
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    real_cost: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)
    suggested_price: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=0, nullable=False)

    # Relationships
    lines: Mapped[list["RecipeLine"]] = relationship(
        "RecipeLine",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeLine.position",
    )


class RecipeLine(Base):
    """A single ingredient of a recipe."""

    __tablename__ = "recipe_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    recipe_id: Mapped[int] = mapped_column(
        ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
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
    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="lines")
    product: Mapped["Product"] = relationship("Product", back_populates="recipe_lines")


# Forward references
from foodyflow.models.product import Product
