"""Consumption ledger - waste and staff (personal) meals.

Each record snapshots its cost when it is written and takes its stock out
through the inventory ledger:

- waste: one OUT movement for the wasted product
- personal meal: one OUT movement per dish ingredient, ``line.quantity x meals``

Deleting a record retracts its movements in the same transaction.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from foodyflow.core.errors import EntityNotFound, InvalidQuantity
from foodyflow.db.repository import Repository
from foodyflow.models.consumption import PersonalMeal, Waste
from foodyflow.models.stock import MovementDirection, MovementSource
from foodyflow.services.catalog import ProductCatalog
from foodyflow.services.cost_engine import ZERO, quantize_cost, to_decimal
from foodyflow.services.inventory_ledger import InventoryLedger
from foodyflow.services.menu_costing import MenuCosting

logger = logging.getLogger(__name__)

WASTE = "waste"
PERSONAL_MEAL = "personal_meal"


class ConsumptionLedger:
    """Records waste and personal meals against inventory."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = Repository(db)
        self.catalog = ProductCatalog(db)
        self.menu = MenuCosting(db)
        self.ledger = InventoryLedger(db)

    # =========================================================================
    # Waste
    # =========================================================================

    def record_waste(
        self,
        product_id: int,
        quantity,
        entry_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Waste:
        quantity = self._positive(quantity)
        with self.repo.transaction():
            product = self.repo.load_product(product_id, for_update=True)
            unit_price = to_decimal(product.price_per_unit)
            waste = Waste(
                product_id=product.id,
                quantity=quantize_cost(quantity),
                cost=quantize_cost(quantity * unit_price),
                date=entry_date or date.today(),
                notes=notes,
            )
            self.repo.add(waste)
            self.repo.flush()
            self.ledger.post(
                product.id,
                MovementDirection.OUT,
                quantity,
                MovementSource.WASTE,
                source_id=waste.id,
                unit_price=unit_price,
                total_cost=waste.cost,
                movement_date=waste.date,
                notes=notes or f"Waste #{waste.id}",
            )
        logger.info(f"Waste {waste.id}: {quantity} of product {product_id}, cost {waste.cost}")
        return waste

    def list_waste(self) -> List[Waste]:
        query = select(Waste).order_by(Waste.date.desc(), Waste.id.desc())
        return list(self.db.scalars(query).all())

    def total_waste_cost(self) -> Decimal:
        value = self.db.scalar(select(func.coalesce(func.sum(Waste.cost), 0)))
        return quantize_cost(to_decimal(value))

    # =========================================================================
    # Personal meals
    # =========================================================================

    def record_personal_meal(
        self,
        dish_id: int,
        quantity=1,
        entry_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> PersonalMeal:
        quantity = self._positive(quantity)
        with self.repo.transaction():
            dish = self.menu.get_dish(dish_id)
            # Lock ingredient rows before taking stock out of them
            self.repo.lock_products(line.product_id for line in dish.lines)
            meal = PersonalMeal(
                dish_id=dish.id,
                quantity=quantize_cost(quantity),
                cost=quantize_cost(quantity * to_decimal(dish.total_cost)),
                date=entry_date or date.today(),
                notes=notes,
            )
            self.repo.add(meal)
            self.repo.flush()
            for line in dish.lines:
                self.ledger.post(
                    line.product_id,
                    MovementDirection.OUT,
                    to_decimal(line.quantity) * quantity,
                    MovementSource.PERSONAL_MEAL,
                    source_id=meal.id,
                    movement_date=meal.date,
                    notes=notes or f"Personal meal #{meal.id} ({dish.name})",
                )
        logger.info(f"Personal meal {meal.id}: {quantity} x dish {dish_id}, cost {meal.cost}")
        return meal

    def list_personal_meals(self) -> List[PersonalMeal]:
        query = select(PersonalMeal).order_by(PersonalMeal.date.desc(), PersonalMeal.id.desc())
        return list(self.db.scalars(query).all())

    def total_meal_cost(self) -> Decimal:
        value = self.db.scalar(select(func.coalesce(func.sum(PersonalMeal.cost), 0)))
        return quantize_cost(to_decimal(value))

    # =========================================================================
    # Deletion
    # =========================================================================

    def delete_entry(self, kind: str, entry_id: int) -> int:
        """Delete a waste or personal meal record and retract its movements.

        Returns the number of movements retracted.
        """
        if kind == WASTE:
            model, source, label = Waste, MovementSource.WASTE, "Waste entry"
        elif kind == PERSONAL_MEAL:
            model, source, label = PersonalMeal, MovementSource.PERSONAL_MEAL, "Personal meal"
        else:
            raise EntityNotFound(f"Consumption kind '{kind}'")

        with self.repo.transaction():
            entry = self.repo.get(model, entry_id, label)
            retracted = self.ledger.retract(source, entry.id)
            self.repo.delete(entry)
        logger.info(f"{label} {entry_id} deleted, {retracted} movements retracted")
        return retracted

    @staticmethod
    def _positive(quantity) -> Decimal:
        quantity = to_decimal(quantity)
        if quantity <= ZERO:
            raise InvalidQuantity(f"Quantity must be greater than zero, got {quantity}")
        return quantity
