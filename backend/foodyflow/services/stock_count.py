"""Stock count service - physical inventory snapshots and their variance.

A snapshot records what was counted on the shelf for one product and compares
it with the quantity the ledger expects on the same day:

    variance = theoretical_quantity - final_quantity

Recording a count never touches the ledger. Shrinkage that should be booked
goes through a manual adjustment on the stock movements endpoint.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from foodyflow.core.errors import InvalidQuantity
from foodyflow.db.repository import Repository
from foodyflow.models.inventory import InventorySnapshot
from foodyflow.services.cost_engine import ZERO, quantize_cost, to_decimal
from foodyflow.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)


class StockCount:
    """Records shelf counts and reconciles them with the ledger."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = Repository(db)
        self.ledger = InventoryLedger(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_snapshots(self, product_id: Optional[int] = None) -> List[InventorySnapshot]:
        """Snapshots, most recent count first."""
        query = select(InventorySnapshot)
        if product_id is not None:
            query = query.where(InventorySnapshot.product_id == product_id)
        query = query.order_by(InventorySnapshot.snapshot_date.desc(), InventorySnapshot.id.desc())
        return list(self.db.scalars(query).all())

    def get_snapshot(self, snapshot_id: int) -> InventorySnapshot:
        return self.repo.get(InventorySnapshot, snapshot_id, "Inventory snapshot")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record_count(self, data: Dict[str, Any]) -> InventorySnapshot:
        """Record a shelf count.

        ``initial_quantity`` defaults to the final count of the product's
        previous snapshot, or zero for the first count.

        Raises:
            UnknownProduct: the product does not exist.
            InvalidQuantity: a negative count.
        """
        final_quantity = self._count(data["final_quantity"], "Counted quantity")
        snapshot_date = data.get("snapshot_date") or date.today()

        with self.repo.transaction():
            product = self.repo.load_product(data["product_id"])
            if data.get("initial_quantity") is not None:
                initial_quantity = self._count(data["initial_quantity"], "Initial quantity")
            else:
                initial_quantity = self._previous_final(product.id, snapshot_date)

            snapshot = InventorySnapshot(
                product_id=product.id,
                snapshot_date=snapshot_date,
                initial_quantity=initial_quantity,
                final_quantity=final_quantity,
                notes=data.get("notes"),
            )
            self._reconcile(snapshot, product.price_per_unit)
            self.repo.add(snapshot)
            self.repo.flush()

        logger.info(
            f"Inventory count {snapshot.id} for product {product.id} on {snapshot_date}: "
            f"counted {final_quantity}, expected {snapshot.theoretical_quantity}, "
            f"variance {snapshot.variance}"
        )
        return snapshot

    def update_snapshot(self, snapshot_id: int, data: Dict[str, Any]) -> InventorySnapshot:
        """Correct a count. Theoretical quantity and variance are recomputed."""
        with self.repo.transaction():
            snapshot = self.get_snapshot(snapshot_id)
            if data.get("final_quantity") is not None:
                snapshot.final_quantity = self._count(data["final_quantity"], "Counted quantity")
            if data.get("initial_quantity") is not None:
                snapshot.initial_quantity = self._count(data["initial_quantity"], "Initial quantity")
            if data.get("snapshot_date") is not None:
                snapshot.snapshot_date = data["snapshot_date"]
            if "notes" in data:
                snapshot.notes = data["notes"]
            product = self.repo.load_product(snapshot.product_id)
            self._reconcile(snapshot, product.price_per_unit)
            self.repo.flush()
        return snapshot

    def delete_snapshot(self, snapshot_id: int) -> None:
        with self.repo.transaction():
            snapshot = self.get_snapshot(snapshot_id)
            self.repo.delete(snapshot)
        logger.info(f"Inventory snapshot {snapshot_id} deleted")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _reconcile(self, snapshot: InventorySnapshot, price_per_unit: Any) -> None:
        theoretical = self.ledger.current_quantity(snapshot.product_id, as_of=snapshot.snapshot_date)
        variance = quantize_cost(theoretical - to_decimal(snapshot.final_quantity))
        snapshot.theoretical_quantity = theoretical
        snapshot.variance = variance
        snapshot.variance_cost = quantize_cost(variance * to_decimal(price_per_unit))

    def _previous_final(self, product_id: int, before: date) -> Decimal:
        query = (
            select(InventorySnapshot.final_quantity)
            .where(
                InventorySnapshot.product_id == product_id,
                InventorySnapshot.snapshot_date < before,
            )
            .order_by(InventorySnapshot.snapshot_date.desc(), InventorySnapshot.id.desc())
            .limit(1)
        )
        previous = self.db.scalar(query)
        return quantize_cost(to_decimal(previous)) if previous is not None else ZERO

    @staticmethod
    def _count(value: Any, label: str) -> Decimal:
        quantity = to_decimal(value)
        if quantity < ZERO:
            raise InvalidQuantity(f"{label} cannot be negative, got {quantity}")
        return quantize_cost(quantity)
