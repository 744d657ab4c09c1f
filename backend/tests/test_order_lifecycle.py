"""Tests for purchase order lifecycle and goods receiving."""

import pytest
from datetime import date
from decimal import Decimal

from foodyflow.core.email import NotificationResult, Notifier
from foodyflow.core.errors import (
    EntityNotFound,
    InvalidMovement,
    InvalidQuantity,
    InvalidStatus,
    NotificationFailed,
    OrderConfirmationFailed,
    UnknownProduct,
)
from foodyflow.models.order import Order, OrderStatus
from foodyflow.models.stock import StockMovement
from foodyflow.services.inventory_ledger import InventoryLedger
from foodyflow.services.order_lifecycle import OrderLifecycle, parse_status


class RecordingNotifier(Notifier):
    """Test notifier that records calls and can be told to fail."""

    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    def send(self, order, recipients, product_names=None):
        self.calls.append((order.id, list(recipients)))
        if self.fail_with is not None:
            raise NotificationFailed(self.fail_with)
        return NotificationResult(message=f"sent to {len(recipients)}")


@pytest.fixture
def lifecycle(db_session):
    return OrderLifecycle(db_session, notifier=RecordingNotifier())


@pytest.fixture
def flour_order(lifecycle, flour, test_supplier):
    """10 kg flour at 2.00."""
    return lifecycle.create_order({
        "supplier": "Mulino Bianco",
        "supplier_id": test_supplier.id,
        "order_date": date(2026, 3, 14),
        "operator_name": "Giulia",
        "items": [{"product_id": flour.id, "quantity": Decimal("10"), "unit_price": Decimal("2.00")}],
    })


def _order_movements(db_session, order_id):
    return (
        db_session.query(StockMovement)
        .filter(StockMovement.source == "order", StockMovement.source_id == order_id)
        .all()
    )


class TestParseStatus:
    @pytest.mark.parametrize("value", ["pending", "confirmed", "cancelled", "pendente"])
    def test_known_statuses(self, value):
        assert parse_status(value).value == value

    @pytest.mark.parametrize("value", ["shipped", "Confirmed", "", "CANCELLED"])
    def test_unknown_status(self, value):
        with pytest.raises(InvalidStatus):
            parse_status(value)


class TestCreateOrder:
    def test_totals(self, flour_order):
        assert flour_order.status == OrderStatus.PENDING
        assert flour_order.total_amount == Decimal("20.00")
        assert flour_order.items[0].total_price == Decimal("20.00")

    def test_total_is_sum_of_lines(self, lifecycle, flour, tomatoes):
        order = lifecycle.create_order({
            "supplier": "Mercato",
            "items": [
                {"product_id": flour.id, "quantity": Decimal("3"), "unit_price": Decimal("1.10")},
                {"product_id": tomatoes.id, "quantity": Decimal("2.5"), "unit_price": Decimal("2.40")},
            ],
        })
        assert order.total_amount == Decimal("9.30")
        assert [item.position for item in order.items] == [0, 1]

    def test_unknown_product_rejected(self, lifecycle, db_session):
        with pytest.raises(UnknownProduct):
            lifecycle.create_order({
                "supplier": "Mercato",
                "items": [{"product_id": 999, "quantity": Decimal("1"), "unit_price": Decimal("1")}],
            })
        assert db_session.query(Order).count() == 0

    def test_non_positive_quantity_rejected(self, lifecycle, flour):
        with pytest.raises(InvalidQuantity):
            lifecycle.create_order({
                "supplier": "Mercato",
                "items": [{"product_id": flour.id, "quantity": Decimal("0"), "unit_price": Decimal("1")}],
            })

    def test_created_confirmed_receives_goods(self, lifecycle, db_session, flour):
        order = lifecycle.create_order({
            "supplier": "Mercato",
            "status": "confirmed",
            "items": [{"product_id": flour.id, "quantity": Decimal("4"), "unit_price": Decimal("1.00")}],
        })
        assert order.status == OrderStatus.CONFIRMED
        assert len(_order_movements(db_session, order.id)) == 1
        assert InventoryLedger(db_session).current_quantity(flour.id) == Decimal("4")

    def test_invalid_initial_status(self, lifecycle, flour):
        with pytest.raises(InvalidStatus):
            lifecycle.create_order({"supplier": "Mercato", "status": "shipped", "items": []})


class TestConfirm:
    def test_confirm_posts_one_in_movement_per_line(self, lifecycle, db_session, flour, flour_order):
        order = lifecycle.set_status(flour_order.id, "confirmed")

        assert order.status == OrderStatus.CONFIRMED
        movements = _order_movements(db_session, order.id)
        assert len(movements) == 1
        movement = movements[0]
        assert movement.direction == "in"
        assert movement.quantity == Decimal("10")
        assert movement.unit_price == Decimal("2.00")
        assert movement.total_cost == Decimal("20.00")
        assert movement.movement_date == date(2026, 3, 14)

        db_session.refresh(flour)
        assert flour.quantity_on_hand == Decimal("10")
        assert order.total_amount == Decimal("20.00")

    def test_confirm_twice_is_noop(self, lifecycle, db_session, flour, flour_order):
        lifecycle.set_status(flour_order.id, "confirmed")
        lifecycle.set_status(flour_order.id, "confirmed")

        assert len(_order_movements(db_session, flour_order.id)) == 1
        assert InventoryLedger(db_session).current_quantity(flour.id) == Decimal("10")

    def test_reconfirm_does_not_post_again(self, lifecycle, db_session, flour, flour_order):
        lifecycle.set_status(flour_order.id, "confirmed")
        lifecycle.set_status(flour_order.id, "pendente")
        order = lifecycle.set_status(flour_order.id, "confirmed")

        assert order.status == OrderStatus.CONFIRMED
        assert len(_order_movements(db_session, flour_order.id)) == 1
        assert InventoryLedger(db_session).current_quantity(flour.id) == Decimal("10")

    def test_leaving_confirmed_keeps_stock(self, lifecycle, db_session, flour, flour_order):
        lifecycle.set_status(flour_order.id, "confirmed")
        order = lifecycle.set_status(flour_order.id, "cancelled")

        assert order.status == OrderStatus.CANCELLED
        assert InventoryLedger(db_session).current_quantity(flour.id) == Decimal("10")

    def test_deleted_product_rolls_back(self, lifecycle, catalog, db_session, flour, tomatoes):
        order = lifecycle.create_order({
            "supplier": "Mercato",
            "items": [
                {"product_id": tomatoes.id, "quantity": Decimal("5"), "unit_price": Decimal("2")},
                {"product_id": flour.id, "quantity": Decimal("3"), "unit_price": Decimal("1")},
            ],
        })
        flour_id = flour.id
        catalog.delete_product(flour_id)

        with pytest.raises(OrderConfirmationFailed) as exc:
            lifecycle.set_status(order.id, "confirmed")
        assert f"Product {flour_id} not found" in exc.value.reason

        reloaded = lifecycle.get_order(order.id)
        assert reloaded.status == OrderStatus.PENDING
        assert _order_movements(db_session, order.id) == []
        assert InventoryLedger(db_session).current_quantity(tomatoes.id) == Decimal("10")

    def test_failure_on_second_line_undoes_first(self, lifecycle, db_session, monkeypatch, flour, tomatoes):
        order = lifecycle.create_order({
            "supplier": "Mercato",
            "items": [
                {"product_id": tomatoes.id, "quantity": Decimal("5"), "unit_price": Decimal("2")},
                {"product_id": flour.id, "quantity": Decimal("3"), "unit_price": Decimal("1")},
            ],
        })
        order_id, tomatoes_id = order.id, tomatoes.id
        original_post = InventoryLedger.post
        calls = []

        def post_then_fail(self, *args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise InvalidMovement("Ledger write refused")
            return original_post(self, *args, **kwargs)

        monkeypatch.setattr(InventoryLedger, "post", post_then_fail)

        with pytest.raises(OrderConfirmationFailed) as exc:
            lifecycle.set_status(order_id, "confirmed")
        assert "Ledger write refused" in exc.value.reason
        assert len(calls) == 2

        monkeypatch.undo()
        assert _order_movements(db_session, order_id) == []
        assert InventoryLedger(db_session).current_quantity(tomatoes_id) == Decimal("10")
        db_session.refresh(tomatoes)
        assert tomatoes.quantity_on_hand == Decimal("10")
        assert lifecycle.get_order(order_id).status == OrderStatus.PENDING

    def test_unknown_status_leaves_order_untouched(self, lifecycle, flour_order):
        with pytest.raises(InvalidStatus):
            lifecycle.set_status(flour_order.id, "shipped")
        assert lifecycle.get_order(flour_order.id).status == OrderStatus.PENDING

    def test_missing_order(self, lifecycle):
        with pytest.raises(EntityNotFound):
            lifecycle.set_status(31337, "confirmed")

    def test_stock_summary_reflects_confirmation(self, lifecycle, db_session, flour, flour_order):
        ledger = InventoryLedger(db_session)
        before = {row["product_id"]: row for row in ledger.stock_summary()}
        assert before[flour.id]["quantity_on_hand"] == Decimal("0")

        lifecycle.set_status(flour_order.id, "confirmed")

        after = {row["product_id"]: row for row in ledger.stock_summary()}
        assert after[flour.id]["quantity_on_hand"] == Decimal("10")


class TestUpdateAndDelete:
    def test_update_items_recomputes_total(self, lifecycle, flour, tomatoes, flour_order):
        order = lifecycle.update_order(flour_order.id, {
            "items": [
                {"product_id": tomatoes.id, "quantity": Decimal("4"), "unit_price": Decimal("2.25")},
            ],
        })
        assert order.total_amount == Decimal("9.00")
        assert [item.product_id for item in order.items] == [tomatoes.id]

    def test_update_with_status_confirms(self, lifecycle, db_session, flour, flour_order):
        order = lifecycle.update_order(flour_order.id, {"notes": "Consegna mattina", "status": "confirmed"})
        assert order.status == OrderStatus.CONFIRMED
        assert order.notes == "Consegna mattina"
        assert len(_order_movements(db_session, flour_order.id)) == 1

    def test_delete_keeps_received_stock(self, lifecycle, db_session, flour, flour_order):
        order_id = flour_order.id
        lifecycle.set_status(order_id, "confirmed")
        lifecycle.delete_order(order_id)

        assert db_session.query(Order).count() == 0
        assert len(_order_movements(db_session, order_id)) == 1
        assert InventoryLedger(db_session).current_quantity(flour.id) == Decimal("10")


class TestSendNotification:
    def test_recipients_from_products_and_supplier(self, lifecycle, flour, tomatoes, flour_order):
        lifecycle.update_order(flour_order.id, {
            "items": [
                {"product_id": flour.id, "quantity": Decimal("1"), "unit_price": Decimal("1")},
                {"product_id": tomatoes.id, "quantity": Decimal("1"), "unit_price": Decimal("1")},
            ],
        })
        result = lifecycle.send_notification(flour_order.id)

        assert result.message == "sent to 2"
        order_id, recipients = lifecycle.notifier.calls[0]
        assert order_id == flour_order.id
        assert recipients == ["farine@mulino.example.com", "ordini@rossi.example.com"]

    def test_no_recipient(self, db_session, catalog):
        product = catalog.create_product({"code": "SAL", "name": "Sale", "price_per_unit": Decimal("0.5")})
        lifecycle = OrderLifecycle(db_session, notifier=RecordingNotifier())
        order = lifecycle.create_order({
            "supplier": "Sconosciuto",
            "items": [{"product_id": product.id, "quantity": Decimal("1"), "unit_price": Decimal("0.5")}],
        })
        with pytest.raises(NotificationFailed) as exc:
            lifecycle.send_notification(order.id)
        assert "No supplier email found" in exc.value.message
        assert lifecycle.notifier.calls == []

    def test_failure_message_is_surfaced_and_state_untouched(self, db_session, flour_order):
        lifecycle = OrderLifecycle(db_session, notifier=RecordingNotifier(fail_with="Mailbox full"))
        with pytest.raises(NotificationFailed) as exc:
            lifecycle.send_notification(flour_order.id)
        assert exc.value.message == "Mailbox full"
        assert lifecycle.get_order(flour_order.id).status == OrderStatus.PENDING
