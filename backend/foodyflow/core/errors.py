"""Domain errors for the costing, ledger and order engines.

Every error carries a human-readable ``reason`` that is safe to show to an
operator. The API layer renders them as::

    {"error": "<kind>", "detail": "<reason>"}

Usage:
    from foodyflow.core.errors import UnknownProduct, InvalidQuantity

    raise UnknownProduct(product_id)
    raise InvalidQuantity("Quantity must be greater than zero")
"""

from typing import Any, Optional


class FoodyFlowError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400
    kind: str = "error"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.reason}


# =============================================================================
# Lookups
# =============================================================================


class EntityNotFound(FoodyFlowError):
    """Generic missing entity (order, recipe, supplier, waste entry...)."""

    status_code = 404
    kind = "not_found"

    def __init__(self, entity: str, entity_id: Any = None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is not None:
            reason = f"{entity} {entity_id} not found"
        else:
            reason = f"{entity} not found"
        super().__init__(reason)


class UnknownProduct(EntityNotFound):
    kind = "unknown_product"

    def __init__(self, product_id: Any):
        self.product_id = product_id
        super().__init__("Product", product_id)


class UnknownDish(EntityNotFound):
    kind = "unknown_dish"

    def __init__(self, dish_id: Any):
        self.dish_id = dish_id
        super().__init__("Dish", dish_id)


# =============================================================================
# Validation
# =============================================================================


class DuplicateEntity(FoodyFlowError):
    """A unique field (product code...) is already taken."""

    status_code = 409
    kind = "duplicate"


class InvalidQuantity(FoodyFlowError):
    """A quantity or percentage outside its allowed range."""

    status_code = 422
    kind = "invalid_quantity"


class InvalidMovement(FoodyFlowError):
    """A stock movement the ledger refuses to append."""

    status_code = 422
    kind = "invalid_movement"


class InvalidStatus(FoodyFlowError):
    status_code = 400
    kind = "invalid_status"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(
            f"Invalid order status '{value}'. "
            "Allowed: pending, confirmed, cancelled, pendente"
        )


# =============================================================================
# Lifecycle / collaborators
# =============================================================================


class OrderConfirmationFailed(FoodyFlowError):
    """Raised after the confirmation transaction has been rolled back."""

    status_code = 409
    kind = "order_confirmation_failed"

    def __init__(self, order_id: Any, reason: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} could not be confirmed: {reason}")


class NotificationFailed(FoodyFlowError):
    """The supplier notifier reported an error. ``reason`` is its message."""

    status_code = 502
    kind = "notification_failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Failed to send order email")

    @property
    def message(self) -> str:
        return self.reason


class StorageError(FoodyFlowError):
    status_code = 503
    kind = "storage_error"

    def __init__(self, reason: str = "Storage operation failed"):
        super().__init__(reason)
