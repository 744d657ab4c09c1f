"""Inventory ledger - append-only stock movements.

The ledger is the single source of truth for stock. ``Product.quantity_on_hand``
is a cached copy of ``sum(IN) - sum(OUT)`` that is rewritten inside the same
transaction as every posting or retraction.

Nothing in this module commits: callers wrap ledger calls in
``Repository.transaction()`` together with the change that caused them.
Cached stock views are dropped once that transaction commits.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from foodyflow.core.cache import CacheKeys, cache
from foodyflow.core.config import settings
from foodyflow.core.errors import InvalidMovement, StorageError
from foodyflow.db.repository import Repository
from foodyflow.models.product import Product
from foodyflow.models.stock import MovementDirection, MovementSource, StockMovement
from foodyflow.services.cost_engine import ZERO, quantize_cost, to_decimal

logger = logging.getLogger(__name__)


def _signed_quantity():
    return case(
        (StockMovement.direction == MovementDirection.IN.value, StockMovement.quantity),
        else_=-StockMovement.quantity,
    )


def invalidate_stock_views() -> None:
    """Drop cached stock aggregates after the ledger changed."""
    cache.clear_prefix(CacheKeys.STOCK)


class InventoryLedger:
    """Posts, queries and retracts stock movements."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = Repository(db)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def post(
        self,
        product_id: int,
        direction: Union[MovementDirection, str],
        quantity: Any,
        source: Union[MovementSource, str],
        source_id: Optional[int] = None,
        unit_price: Any = None,
        total_cost: Any = None,
        movement_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> StockMovement:
        """Append one movement and resync the product's on-hand quantity.

        Raises:
            InvalidMovement: non-positive quantity, unknown direction/source,
                or an OUT that would take stock below zero.
            UnknownProduct: the product does not exist.
        """
        quantity = to_decimal(quantity)
        if quantity <= ZERO:
            raise InvalidMovement(f"Movement quantity must be greater than zero, got {quantity}")
        try:
            direction = MovementDirection(direction)
            source = MovementSource(source)
        except ValueError as e:
            raise InvalidMovement(str(e)) from e

        product = self.repo.load_product(product_id, for_update=True)

        if direction == MovementDirection.OUT:
            available = self.current_quantity(product_id)
            if available - quantity < ZERO:
                raise InvalidMovement(
                    f"Insufficient stock for {product.name}: "
                    f"available {available}, requested {quantity}"
                )

        movement = StockMovement(
            product_id=product_id,
            direction=direction.value,
            quantity=quantize_cost(quantity),
            unit_price=quantize_cost(to_decimal(unit_price)) if unit_price is not None else None,
            total_cost=quantize_cost(to_decimal(total_cost)) if total_cost is not None else None,
            source=source.value,
            source_id=source_id,
            movement_date=movement_date or date.today(),
            notes=notes,
        )
        self.repo.append_movement(movement)
        self._resync(product)
        self.repo.after_commit(invalidate_stock_views)

        logger.info(
            f"Stock {direction.value.upper()} {quantity} of product {product_id} "
            f"({source.value}#{source_id}), on hand now {product.quantity_on_hand}"
        )
        return movement

    def retract(self, source: Union[MovementSource, str], source_id: int) -> int:
        """Remove every movement of one origin. Returns how many were removed."""
        movements = self.movements_for(source, source_id)
        if not movements:
            return 0
        product_ids = sorted({m.product_id for m in movements})
        products = self.repo.lock_products(product_ids)
        for movement in movements:
            self.repo.delete(movement)
        self.repo.flush()
        for product_id in product_ids:
            product = products.get(product_id)
            if product is not None:
                self._resync(product)
        self.repo.after_commit(invalidate_stock_views)

        logger.info(f"Retracted {len(movements)} movements of {MovementSource(source).value}#{source_id}")
        return len(movements)

    def _resync(self, product: Product) -> None:
        self.repo.flush()
        product.quantity_on_hand = quantize_cost(self.current_quantity(product.id))
        self.repo.flush()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def current_quantity(self, product_id: int, as_of: Optional[date] = None) -> Decimal:
        """Net stock from the ledger, optionally up to and including ``as_of``."""
        query = select(func.coalesce(func.sum(_signed_quantity()), 0)).where(
            StockMovement.product_id == product_id
        )
        if as_of is not None:
            query = query.where(StockMovement.movement_date <= as_of)
        try:
            value = self.db.scalar(query)
        except SQLAlchemyError as e:
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e
        return quantize_cost(to_decimal(value))

    def list_movements(self, product_id: Optional[int] = None) -> Sequence[StockMovement]:
        """Movements, newest first."""
        return self.repo.list_movements(product_id)

    def movements_for(self, source: Union[MovementSource, str], source_id: int) -> List[StockMovement]:
        query = (
            select(StockMovement)
            .where(
                StockMovement.source == MovementSource(source).value,
                StockMovement.source_id == source_id,
            )
            .order_by(StockMovement.id)
        )
        try:
            return list(self.db.scalars(query).all())
        except SQLAlchemyError as e:
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e

    def stock_summary(self) -> List[Dict[str, Any]]:
        """Per-product IN/OUT totals, on-hand quantity and valuation (cached)."""
        cached = cache.get(CacheKeys.STOCK_SUMMARY)
        if cached is not None:
            logger.debug("Stock summary cache hit")
            return cached

        total_in = func.coalesce(
            func.sum(
                case((StockMovement.direction == MovementDirection.IN.value, StockMovement.quantity), else_=0)
            ),
            0,
        )
        total_out = func.coalesce(
            func.sum(
                case((StockMovement.direction == MovementDirection.OUT.value, StockMovement.quantity), else_=0)
            ),
            0,
        )
        query = (
            select(
                Product.id,
                Product.code,
                Product.name,
                Product.unit,
                Product.price_per_unit,
                total_in.label("total_in"),
                total_out.label("total_out"),
            )
            .outerjoin(StockMovement, StockMovement.product_id == Product.id)
            .group_by(Product.id, Product.code, Product.name, Product.unit, Product.price_per_unit)
            .order_by(Product.name)
        )
        try:
            rows = self.db.execute(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e

        summary = []
        for row in rows:
            qty_in = quantize_cost(to_decimal(row.total_in))
            qty_out = quantize_cost(to_decimal(row.total_out))
            on_hand = qty_in - qty_out
            summary.append({
                "product_id": row.id,
                "code": row.code,
                "name": row.name,
                "unit": row.unit,
                "total_in": qty_in,
                "total_out": qty_out,
                "quantity_on_hand": on_hand,
                "valuation": quantize_cost(on_hand * to_decimal(row.price_per_unit)),
            })

        cache.set(CacheKeys.STOCK_SUMMARY, summary, settings.stock_summary_ttl_seconds)
        return summary
