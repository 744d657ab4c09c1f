"""Recipe and dish stores with derived costing.

Every write path ends in ``recompute_recipe`` / ``recompute_dish`` so the
stored totals always match the current lines and product prices.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from foodyflow.core.config import settings
from foodyflow.core.errors import InvalidQuantity, UnknownDish
from foodyflow.db.repository import Repository
from foodyflow.models.dish import Dish, DishLine
from foodyflow.models.recipe import Recipe, RecipeLine
from foodyflow.models.stock import MovementSource
from foodyflow.services import cost_engine
from foodyflow.services.catalog import ProductCatalog
from foodyflow.services.cost_engine import ZERO, quantize_cost, quantize_percent, to_decimal
from foodyflow.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)

MIN_ADJUSTMENT = Decimal("-100")
MAX_ADJUSTMENT = Decimal("1000")


def _validate_adjustment(value: Any, what: str) -> Decimal:
    adj = to_decimal(value)
    # -100 would mean the preparation vanishes entirely
    if adj <= MIN_ADJUSTMENT or adj > MAX_ADJUSTMENT:
        raise InvalidQuantity(f"{what} weight adjustment must be in (-100, 1000], got {adj}")
    return adj


def _build_lines(line_cls, items: Sequence[Dict[str, Any]]) -> List[Any]:
    lines = []
    for position, item in enumerate(items):
        quantity = to_decimal(item.get("quantity"))
        if quantity <= ZERO:
            raise InvalidQuantity(
                f"Ingredient quantity must be greater than zero (product {item.get('product_id')})"
            )
        lines.append(line_cls(
            product_id=item["product_id"],
            position=position,
            quantity=quantize_cost(quantity),
            weight_adjustment_percent=_validate_adjustment(
                item.get("weight_adjustment_percent"), "Ingredient"
            ),
        ))
    return lines


class MenuCosting:
    """Recipe and dish CRUD plus the cost cascade from products."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = Repository(db)
        self.catalog = ProductCatalog(db)

    def _price_lines(self, lines: Sequence[Any]) -> Dict[int, Any]:
        snapshot = self.catalog.snapshot(line.product_id for line in lines)
        for line in lines:
            line.cost = quantize_cost(cost_engine.ingredient_cost(line, snapshot))
        return snapshot

    # =========================================================================
    # Recipes
    # =========================================================================

    def list_recipes(self) -> List[Recipe]:
        return list(self.db.scalars(select(Recipe).order_by(Recipe.name)).all())

    def get_recipe(self, recipe_id: int) -> Recipe:
        return self.repo.get(Recipe, recipe_id)

    def recompute_recipe(self, recipe: Recipe) -> Recipe:
        """Rewrite line costs, total cost, real cost and suggested price."""
        lines = list(recipe.lines)
        snapshot = self._price_lines(lines)
        total = cost_engine.total_cost(lines, snapshot)
        real = cost_engine.real_total_cost(lines, snapshot, recipe.weight_adjustment_percent)
        recipe.total_cost = quantize_cost(total)
        recipe.real_cost = quantize_cost(real)
        recipe.suggested_price = quantize_cost(
            cost_engine.suggested_price(real, settings.target_food_cost_percent)
        )
        self.repo.flush()
        return recipe

    def create_recipe(self, data: Dict[str, Any]) -> Recipe:
        with self.repo.transaction():
            recipe = Recipe(
                name=data["name"],
                weight_adjustment_percent=_validate_adjustment(
                    data.get("weight_adjustment_percent"), "Recipe"
                ),
            )
            recipe.lines.extend(_build_lines(RecipeLine, data.get("lines") or []))
            self.repo.add(recipe)
            self.recompute_recipe(recipe)
        logger.info(f"Recipe {recipe.id} '{recipe.name}' created, total cost {recipe.total_cost}")
        return recipe

    def update_recipe(self, recipe_id: int, data: Dict[str, Any]) -> Recipe:
        """Partial update. ``lines``, when present, replaces all lines."""
        with self.repo.transaction():
            recipe = self.get_recipe(recipe_id)
            if "name" in data:
                recipe.name = data["name"]
            if "weight_adjustment_percent" in data:
                recipe.weight_adjustment_percent = _validate_adjustment(
                    data["weight_adjustment_percent"], "Recipe"
                )
            if data.get("lines") is not None:
                new_lines = _build_lines(RecipeLine, data["lines"])
                self._price_lines(new_lines)
                recipe.lines.clear()
                self.repo.flush()
                recipe.lines.extend(new_lines)
            self.recompute_recipe(recipe)
        return recipe

    def delete_recipe(self, recipe_id: int) -> None:
        with self.repo.transaction():
            recipe = self.get_recipe(recipe_id)
            self.repo.delete(recipe)
        logger.info(f"Recipe {recipe_id} deleted")

    # =========================================================================
    # Dishes
    # =========================================================================

    def list_dishes(self) -> List[Dish]:
        return list(self.db.scalars(select(Dish).order_by(Dish.name)).all())

    def get_dish(self, dish_id: int) -> Dish:
        dish = self.db.get(Dish, dish_id)
        if dish is None:
            raise UnknownDish(dish_id)
        return dish

    def recompute_dish(self, dish: Dish) -> Dish:
        """Rewrite line costs, total cost, net price and food cost %."""
        lines = list(dish.lines)
        snapshot = self._price_lines(lines)
        total = cost_engine.total_cost(lines, snapshot)
        dish.total_cost = quantize_cost(total)
        dish.net_price = quantize_cost(
            cost_engine.net_price(dish.selling_price, settings.net_price_rate)
        )
        dish.food_cost_percent = quantize_percent(
            cost_engine.food_cost_percent(total, dish.selling_price)
        )
        self.repo.flush()
        return dish

    def create_dish(self, data: Dict[str, Any]) -> Dish:
        selling_price = self._validate_selling_price(data.get("selling_price"))
        with self.repo.transaction():
            dish = Dish(name=data["name"], selling_price=selling_price, sold=0)
            dish.lines.extend(_build_lines(DishLine, data.get("lines") or []))
            self.repo.add(dish)
            self.recompute_dish(dish)
        logger.info(
            f"Dish {dish.id} '{dish.name}' created, cost {dish.total_cost}, "
            f"food cost {dish.food_cost_percent}%"
        )
        return dish

    def update_dish(self, dish_id: int, data: Dict[str, Any]) -> Dish:
        """Partial update. ``sold`` is owned by sales recording and never changes here."""
        with self.repo.transaction():
            dish = self.get_dish(dish_id)
            if "name" in data:
                dish.name = data["name"]
            if "selling_price" in data:
                dish.selling_price = self._validate_selling_price(data["selling_price"])
            if data.get("lines") is not None:
                new_lines = _build_lines(DishLine, data["lines"])
                self._price_lines(new_lines)
                dish.lines.clear()
                self.repo.flush()
                dish.lines.extend(new_lines)
            self.recompute_dish(dish)
        return dish

    def delete_dish(self, dish_id: int) -> None:
        """Delete a dish together with its staff meals.

        Each meal's stock consumption is given back to the ledger first.
        """
        with self.repo.transaction():
            dish = self.get_dish(dish_id)
            ledger = InventoryLedger(self.db)
            meals = list(dish.personal_meals)
            for meal in meals:
                ledger.retract(MovementSource.PERSONAL_MEAL, meal.id)
                self.repo.delete(meal)
            self.repo.flush()
            self.db.expire(dish, ["personal_meals"])
            self.repo.delete(dish)
        logger.info(f"Dish {dish_id} deleted with {len(meals)} staff meals")

    @staticmethod
    def _validate_selling_price(value: Any) -> Decimal:
        price = to_decimal(value)
        if price < ZERO:
            raise InvalidQuantity(f"Selling price cannot be negative, got {price}")
        return quantize_cost(price)

    # =========================================================================
    # Cascade
    # =========================================================================

    def reprice_for_product(self, product_id: int) -> int:
        """Recompute every recipe and dish that uses ``product_id``."""
        recipe_ids = set(self.db.scalars(
            select(RecipeLine.recipe_id).where(RecipeLine.product_id == product_id)
        ).all())
        dish_ids = set(self.db.scalars(
            select(DishLine.dish_id).where(DishLine.product_id == product_id)
        ).all())
        for recipe_id in sorted(recipe_ids):
            self.recompute_recipe(self.get_recipe(recipe_id))
        for dish_id in sorted(dish_ids):
            self.recompute_dish(self.get_dish(dish_id))
        return len(recipe_ids) + len(dish_ids)
