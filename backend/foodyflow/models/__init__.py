"""SQLAlchemy models."""

from foodyflow.models.supplier import Supplier
from foodyflow.models.product import Product, ProductUnit
from foodyflow.models.recipe import Recipe, RecipeLine
from foodyflow.models.dish import Dish, DishLine
from foodyflow.models.order import Order, OrderLine, OrderStatus
from foodyflow.models.stock import StockMovement, MovementDirection, MovementSource
from foodyflow.models.consumption import Waste, PersonalMeal
from foodyflow.models.inventory import InventorySnapshot

__all__ = [
    "Supplier",
    "Product",
    "ProductUnit",
    "Recipe",
    "RecipeLine",
    "Dish",
    "DishLine",
    "Order",
    "OrderLine",
    "OrderStatus",
    "StockMovement",
    "MovementDirection",
    "MovementSource",
    "Waste",
    "PersonalMeal",
    "InventorySnapshot",
]
