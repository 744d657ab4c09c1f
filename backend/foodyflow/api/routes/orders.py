"""Purchase order routes.

Status changes go through ``PATCH /orders/{id}/status``; moving an order to
``confirmed`` receives its goods into stock.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from foodyflow.core.email import Notifier, get_notifier
from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.schemas.order import (
    OrderCreate,
    OrderEmailResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderUpdate,
)
from foodyflow.services.order_lifecycle import OrderLifecycle

router = APIRouter()


@router.get("/", response_model=list[OrderResponse])
@limiter.limit("60/minute")
def list_orders(request: Request, db: DbSession, status: Optional[str] = None):
    """List orders, newest first, optionally filtered by status."""
    return OrderLifecycle(db).list_orders(status=status)


@router.get("/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
def get_order(request: Request, order_id: int, db: DbSession):
    return OrderLifecycle(db).get_order(order_id)


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_order(request: Request, body: OrderCreate, db: DbSession):
    return OrderLifecycle(db).create_order(body.model_dump())


@router.put("/{order_id}", response_model=OrderResponse)
@limiter.limit("30/minute")
def update_order(request: Request, order_id: int, body: OrderUpdate, db: DbSession):
    """Update an order. ``items`` replaces all lines; ``status`` may confirm it."""
    return OrderLifecycle(db).update_order(order_id, body.model_dump(exclude_unset=True))


@router.patch("/{order_id}/status", response_model=OrderResponse)
@limiter.limit("30/minute")
def update_order_status(request: Request, order_id: int, body: OrderStatusUpdate, db: DbSession):
    return OrderLifecycle(db).set_status(order_id, body.status)


@router.post("/{order_id}/send-email", response_model=OrderEmailResponse)
@limiter.limit("10/minute")
def send_order_email(
    request: Request,
    response: Response,
    order_id: int,
    db: DbSession,
    notifier: Notifier = Depends(get_notifier),
):
    """Email the order to the suppliers of its products.

    Returns 207 when only some of the suppliers could be reached.
    """
    result = OrderLifecycle(db, notifier=notifier).send_notification(order_id)
    if not result.success:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return result


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_order(request: Request, order_id: int, db: DbSession):
    """Delete an order. Stock already received stays in the ledger."""
    OrderLifecycle(db).delete_order(order_id)
