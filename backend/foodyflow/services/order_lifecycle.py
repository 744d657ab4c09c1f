"""Order lifecycle - purchase orders and goods receiving.

Status graph is complete: any status may move to any other. The only side
effect is entering CONFIRMED, which receives the goods into the stock ledger
(one IN movement per line) in the same transaction as the status change.

Flow on confirm:
1. Lock the line products (ascending id), then the order
2. Skip posting if the order already has ``order`` movements (re-confirm)
3. Post one IN movement per line, resyncing on-hand quantities
4. Set status, commit
5. Drop cached stock aggregates

Leaving CONFIRMED, or deleting the order, never retracts movements.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from foodyflow.core.email import NotificationResult, Notifier, get_notifier
from foodyflow.core.errors import (
    FoodyFlowError,
    InvalidQuantity,
    InvalidStatus,
    NotificationFailed,
    OrderConfirmationFailed,
    UnknownProduct,
)
from foodyflow.db.repository import Repository
from foodyflow.models.order import Order, OrderLine, OrderStatus
from foodyflow.models.product import Product
from foodyflow.models.stock import MovementDirection, MovementSource
from foodyflow.models.supplier import Supplier
from foodyflow.services.catalog import ProductCatalog
from foodyflow.services.cost_engine import ZERO, quantize_cost, to_decimal
from foodyflow.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)

ORDER_FIELDS = ("supplier", "supplier_id", "order_date", "operator_name", "notes")


def parse_status(value: Union[OrderStatus, str]) -> OrderStatus:
    """Exact match against the four status strings."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatus(value) from None


def _build_items(items: Sequence[Mapping[str, Any]]) -> List[OrderLine]:
    lines = []
    for position, item in enumerate(items):
        quantity = to_decimal(item.get("quantity"))
        unit_price = to_decimal(item.get("unit_price"))
        if quantity <= ZERO:
            raise InvalidQuantity(
                f"Order line quantity must be greater than zero (product {item.get('product_id')})"
            )
        if unit_price < ZERO:
            raise InvalidQuantity(
                f"Order line unit price cannot be negative (product {item.get('product_id')})"
            )
        lines.append(OrderLine(
            product_id=item["product_id"],
            position=position,
            quantity=quantize_cost(quantity),
            unit_price=quantize_cost(unit_price),
            total_price=quantize_cost(quantity * unit_price),
        ))
    return lines


class OrderLifecycle:
    """Purchase order CRUD, status transitions and supplier notification."""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.repo = Repository(db)
        self.catalog = ProductCatalog(db)
        self.ledger = InventoryLedger(db)
        self._notifier = notifier

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            self._notifier = get_notifier()
        return self._notifier

    # =========================================================================
    # Queries
    # =========================================================================

    def list_orders(self, status: Optional[Union[OrderStatus, str]] = None) -> List[Order]:
        query = select(Order).order_by(Order.order_date.desc(), Order.id.desc())
        if status is not None:
            query = query.where(Order.status == parse_status(status))
        return list(self.db.scalars(query).all())

    def get_order(self, order_id: int) -> Order:
        return self.repo.load_order(order_id)

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_order(self, data: Dict[str, Any]) -> Order:
        """Create an order; an initial CONFIRMED status receives the goods."""
        status = parse_status(data.get("status") or OrderStatus.PENDING)
        items = _build_items(data.get("items") or [])
        self._ensure_products_exist(items)

        with self.repo.transaction():
            supplier_ref = self._resolve_supplier(data.get("supplier_id"))
            order = Order(
                supplier=data.get("supplier") or (supplier_ref.name if supplier_ref else ""),
                supplier_id=supplier_ref.id if supplier_ref else None,
                order_date=data.get("order_date") or date.today(),
                operator_name=data.get("operator_name"),
                notes=data.get("notes"),
                status=OrderStatus.PENDING,
            )
            order.items.extend(items)
            self._recompute_total(order)
            self.repo.save_order(order)
            logger.info(
                f"Order {order.id} created for '{order.supplier}': "
                f"{len(items)} lines, total {order.total_amount}"
            )
            if status == OrderStatus.CONFIRMED:
                self._confirm(order.id)
            elif status != order.status:
                order.status = status

        return order

    def update_order(self, order_id: int, data: Dict[str, Any]) -> Order:
        """Partial update. ``items`` replaces every line; ``status`` goes through set_status."""
        new_status = parse_status(data["status"]) if data.get("status") is not None else None
        items = _build_items(data["items"]) if data.get("items") is not None else None
        if items is not None:
            self._ensure_products_exist(items)

        with self.repo.transaction():
            order = self.repo.load_order(order_id, for_update=True)
            for field in ORDER_FIELDS:
                if field in data and data[field] is not None:
                    if field == "supplier_id":
                        supplier_ref = self._resolve_supplier(data[field])
                        order.supplier_id = supplier_ref.id
                        if "supplier" not in data:
                            order.supplier = supplier_ref.name
                    else:
                        setattr(order, field, data[field])
            if items is not None:
                order.items.clear()
                self.repo.flush()
                order.items.extend(items)
                self._recompute_total(order)
            self.repo.save_order(order)

            if new_status is not None:
                self.set_status(order.id, new_status)

        return order

    def delete_order(self, order_id: int) -> None:
        """Delete the order and its lines. Posted movements stay in the ledger."""
        with self.repo.transaction():
            order = self.repo.load_order(order_id, for_update=True)
            self.repo.delete(order)
        logger.info(f"Order {order_id} deleted")

    # =========================================================================
    # Status
    # =========================================================================

    def set_status(self, order_id: int, new_status: Union[OrderStatus, str]) -> Order:
        """Move the order to ``new_status``.

        Same status is a no-op. Entering CONFIRMED receives the goods and
        raises ``OrderConfirmationFailed`` after rolling back on any failure.
        """
        status = parse_status(new_status)
        order = self.repo.load_order(order_id)
        if order.status == status:
            return order

        if status == OrderStatus.CONFIRMED:
            return self._confirm(order_id)

        with self.repo.transaction():
            order = self.repo.load_order(order_id, for_update=True)
            previous = order.status
            order.status = status
            self.repo.flush()
        logger.info(f"Order {order_id} status {previous.value} -> {status.value}")
        return order

    def _confirm(self, order_id: int) -> Order:
        try:
            with self.repo.transaction():
                order = self.repo.load_order(order_id)
                products = self.repo.lock_products(item.product_id for item in order.items)
                order = self.repo.load_order(order_id, for_update=True)
                previous = order.status
                if previous == OrderStatus.CONFIRMED:
                    return order
                posted = self._receive_goods(order, products)
                order.status = OrderStatus.CONFIRMED
                self.repo.flush()
        except FoodyFlowError as e:
            logger.warning(f"Order {order_id} confirmation rolled back: {e.reason}")
            raise OrderConfirmationFailed(order_id, e.reason) from e

        logger.info(
            f"Order {order_id} status {previous.value} -> confirmed, {posted} stock movements posted"
        )
        return order

    def _receive_goods(self, order: Order, products: Mapping[int, Product]) -> int:
        """Post one IN movement per line. Returns how many were posted."""
        if self.ledger.movements_for(MovementSource.ORDER, order.id):
            logger.info(f"Order {order.id} already received, skipping stock posting")
            return 0

        for item in order.items:
            if item.product_id not in products:
                raise UnknownProduct(item.product_id)

        for item in order.items:
            self.ledger.post(
                item.product_id,
                MovementDirection.IN,
                item.quantity,
                MovementSource.ORDER,
                source_id=order.id,
                unit_price=item.unit_price,
                total_cost=item.total_price,
                movement_date=order.order_date,
                notes=f"Order #{order.id} - {order.supplier}",
            )
        return len(order.items)

    # =========================================================================
    # Notification
    # =========================================================================

    def send_notification(self, order_id: int) -> NotificationResult:
        """Email the order to its suppliers. Never changes the order."""
        order = self.repo.load_order(order_id)
        products = self.catalog.snapshot(item.product_id for item in order.items)

        recipients = []
        for item in order.items:
            product = products.get(item.product_id)
            email = product.supplier_email if product else None
            if email and "@" in email and email not in recipients:
                recipients.append(email)
        if order.supplier_ref is not None and order.supplier_ref.email:
            if order.supplier_ref.email not in recipients:
                recipients.append(order.supplier_ref.email)

        if not recipients:
            raise NotificationFailed(
                "No supplier email found: none of the products in this order "
                "has a valid supplier email configured"
            )

        try:
            result = self.notifier.send(
                order, recipients, product_names={p.id: p.name for p in products.values()}
            )
        except NotificationFailed as e:
            logger.warning(f"Order {order_id} notification failed: {e.reason}")
            raise
        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _recompute_total(order: Order) -> Decimal:
        total = ZERO
        for item in order.items:
            total += to_decimal(item.quantity) * to_decimal(item.unit_price)
        order.total_amount = quantize_cost(total)
        return order.total_amount

    def _ensure_products_exist(self, items: Sequence[OrderLine]) -> None:
        known = self.catalog.snapshot(item.product_id for item in items)
        for item in items:
            if item.product_id not in known:
                raise UnknownProduct(item.product_id)

    def _resolve_supplier(self, supplier_id: Optional[int]) -> Optional[Supplier]:
        if supplier_id is None:
            return None
        return self.repo.get(Supplier, supplier_id)
