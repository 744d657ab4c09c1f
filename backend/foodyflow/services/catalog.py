"""Product catalog and suppliers.

Products carry the prices every cost in the system is derived from, so any
change to ``price_per_unit`` or ``waste_percent`` reprices the recipes and
dishes that use the product in the same transaction.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from foodyflow.core.errors import DuplicateEntity, InvalidQuantity
from foodyflow.db.repository import Repository
from foodyflow.models.dish import DishLine
from foodyflow.models.product import Product, ProductUnit
from foodyflow.models.recipe import RecipeLine
from foodyflow.models.stock import MovementDirection, MovementSource
from foodyflow.models.supplier import Supplier
from foodyflow.services.cost_engine import (
    HUNDRED,
    ZERO,
    effective_price,
    quantize_cost,
    to_decimal,
)
from foodyflow.services.inventory_ledger import InventoryLedger, invalidate_stock_views

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = ("code", "name", "supplier_email", "waste_percent", "unit",
                  "price_per_unit", "notes")


def _validate_product_values(waste_percent: Decimal, price: Decimal) -> None:
    if waste_percent < ZERO or waste_percent >= HUNDRED:
        raise InvalidQuantity(f"Waste percent must be in [0, 100), got {waste_percent}")
    if price < ZERO:
        raise InvalidQuantity(f"Price per unit cannot be negative, got {price}")


class ProductCatalog:
    """Products and suppliers."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = Repository(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, product_id: int) -> Product:
        return self.repo.load_product(product_id)

    def snapshot(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Products by id; ids that do not exist are simply absent."""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        rows = self.db.scalars(select(Product).where(Product.id.in_(ids))).all()
        return {p.id: p for p in rows}

    def list_products(self, supplier_id: Optional[int] = None) -> List[Product]:
        query = select(Product).order_by(Product.name)
        if supplier_id is not None:
            query = query.where(Product.supplier_id == supplier_id)
        return list(self.db.scalars(query).all())

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def create_product(self, data: Dict[str, Any]) -> Product:
        """Create a product; a positive ``quantity`` is posted as opening stock."""
        waste = to_decimal(data.get("waste_percent"))
        price = to_decimal(data.get("price_per_unit"))
        opening = to_decimal(data.get("quantity"))
        _validate_product_values(waste, price)
        if opening < ZERO:
            raise InvalidQuantity(f"Opening quantity cannot be negative, got {opening}")

        with self.repo.transaction():
            self._ensure_code_free(data["code"])
            supplier = self._resolve_supplier(data.get("supplier_id"))

            product = Product(
                code=data["code"],
                name=data["name"],
                supplier_id=supplier.id if supplier else None,
                supplier_email=data.get("supplier_email") or (supplier.email if supplier else None),
                waste_percent=waste,
                unit=ProductUnit(data.get("unit") or ProductUnit.MASS),
                quantity_on_hand=ZERO,
                price_per_unit=quantize_cost(price),
                effective_price_per_unit=quantize_cost(effective_price(price, waste)),
                notes=data.get("notes"),
            )
            self.repo.save_product(product)

            if opening > ZERO:
                InventoryLedger(self.db).post(
                    product.id,
                    MovementDirection.IN,
                    opening,
                    MovementSource.ADJUSTMENT,
                    source_id=product.id,
                    unit_price=price,
                    total_cost=opening * price,
                    notes="Opening stock",
                )

        logger.info(f"Product {product.id} '{product.name}' created")
        return product

    def update_product(self, product_id: int, data: Dict[str, Any]) -> Product:
        """Apply a partial update; price or waste changes reprice dependents."""
        # Local import: menu costing depends on the catalog.
        from foodyflow.services.menu_costing import MenuCosting

        with self.repo.transaction():
            product = self.repo.load_product(product_id, for_update=True)
            old_price = to_decimal(product.price_per_unit)
            old_waste = to_decimal(product.waste_percent)

            if "code" in data and data["code"] != product.code:
                self._ensure_code_free(data["code"])
            if "supplier_id" in data:
                supplier = self._resolve_supplier(data["supplier_id"])
                product.supplier_id = supplier.id if supplier else None
                if supplier and not data.get("supplier_email") and not product.supplier_email:
                    product.supplier_email = supplier.email

            for field in PRODUCT_FIELDS:
                if field in data:
                    setattr(product, field, data[field])

            price = to_decimal(product.price_per_unit)
            waste = to_decimal(product.waste_percent)
            _validate_product_values(waste, price)
            product.price_per_unit = quantize_cost(price)
            product.effective_price_per_unit = quantize_cost(effective_price(price, waste))
            self.repo.save_product(product)

            if price != old_price or waste != old_waste:
                repriced = MenuCosting(self.db).reprice_for_product(product.id)
                logger.info(
                    f"Product {product.id} price {old_price}->{price}, waste {old_waste}->{waste}; "
                    f"repriced {repriced} recipes/dishes"
                )

        return product

    def delete_product(self, product_id: int) -> None:
        """Delete a product with its lines, movements and waste records.

        Recipes and dishes that lost a line are repriced. Order lines keep the
        dangling id.
        """
        from foodyflow.services.menu_costing import MenuCosting

        with self.repo.transaction():
            product = self.repo.load_product(product_id, for_update=True)
            recipe_ids = set(self.db.scalars(
                select(RecipeLine.recipe_id).where(RecipeLine.product_id == product_id)
            ).all())
            dish_ids = set(self.db.scalars(
                select(DishLine.dish_id).where(DishLine.product_id == product_id)
            ).all())

            self.repo.delete(product)
            self.repo.flush()
            self.repo.after_commit(invalidate_stock_views)

            costing = MenuCosting(self.db)
            for recipe_id in sorted(recipe_ids):
                recipe = costing.get_recipe(recipe_id)
                self.db.expire(recipe, ["lines"])
                costing.recompute_recipe(recipe)
            for dish_id in sorted(dish_ids):
                dish = costing.get_dish(dish_id)
                self.db.expire(dish, ["lines"])
                costing.recompute_dish(dish)

        logger.info(
            f"Product {product_id} deleted; repriced {len(recipe_ids)} recipes, {len(dish_ids)} dishes"
        )

    def _ensure_code_free(self, code: str) -> None:
        existing = self.db.scalar(select(Product.id).where(Product.code == code))
        if existing is not None:
            raise DuplicateEntity(f"Product code '{code}' already exists")

    def _resolve_supplier(self, supplier_id: Optional[int]) -> Optional[Supplier]:
        if supplier_id is None:
            return None
        return self.repo.get(Supplier, supplier_id)

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    def list_suppliers(self) -> List[Supplier]:
        return list(self.db.scalars(select(Supplier).order_by(Supplier.name)).all())

    def get_supplier(self, supplier_id: int) -> Supplier:
        return self.repo.get(Supplier, supplier_id)

    def create_supplier(self, data: Dict[str, Any]) -> Supplier:
        with self.repo.transaction():
            supplier = Supplier(name=data["name"], email=data.get("email"), notes=data.get("notes"))
            self.repo.add(supplier)
            self.repo.flush()
        logger.info(f"Supplier {supplier.id} '{supplier.name}' created")
        return supplier

    def update_supplier(self, supplier_id: int, data: Dict[str, Any]) -> Supplier:
        with self.repo.transaction():
            supplier = self.repo.get(Supplier, supplier_id)
            for field in ("name", "email", "notes"):
                if field in data:
                    setattr(supplier, field, data[field])
            self.repo.flush()
        return supplier

    def delete_supplier(self, supplier_id: int) -> None:
        """Delete a supplier; its products and orders keep existing unlinked."""
        with self.repo.transaction():
            supplier = self.repo.get(Supplier, supplier_id)
            self.repo.delete(supplier)
        logger.info(f"Supplier {supplier_id} deleted")
