"""Stock ledger routes.

Movements are append-only: there is no update or delete. Corrections are
posted as ``adjustment`` counter-movements.
"""

from fastapi import APIRouter, Request, status

from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.db.repository import Repository
from foodyflow.models.stock import MovementSource
from foodyflow.schemas.stock import (
    InventoryQuantityResponse,
    StockAdjustmentRequest,
    StockMovementResponse,
    StockSummaryItem,
)
from foodyflow.services.catalog import ProductCatalog
from foodyflow.services.inventory_ledger import InventoryLedger

router = APIRouter()
inventory_router = APIRouter()


@router.get("/", response_model=list[StockMovementResponse])
@limiter.limit("60/minute")
def list_stock_movements(request: Request, db: DbSession):
    """All stock movements, newest first."""
    return InventoryLedger(db).list_movements()


@router.get("/summary", response_model=list[StockSummaryItem])
@limiter.limit("60/minute")
def get_stock_summary(request: Request, db: DbSession):
    """Per-product totals in/out, on hand and valuation."""
    return InventoryLedger(db).stock_summary()


@router.get("/product/{product_id}", response_model=list[StockMovementResponse])
@limiter.limit("60/minute")
def list_product_movements(request: Request, product_id: int, db: DbSession):
    ProductCatalog(db).get(product_id)
    return InventoryLedger(db).list_movements(product_id)


@router.post("/", response_model=StockMovementResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_stock_adjustment(request: Request, body: StockAdjustmentRequest, db: DbSession):
    """Post a manual stock correction."""
    ledger = InventoryLedger(db)
    with Repository(db).transaction():
        movement = ledger.post(
            body.product_id,
            body.direction,
            body.quantity,
            MovementSource.ADJUSTMENT,
            unit_price=body.unit_price,
            total_cost=body.quantity * body.unit_price if body.unit_price is not None else None,
            movement_date=body.movement_date,
            notes=body.notes,
        )
    return movement


@inventory_router.get("/{product_id}/quantity", response_model=InventoryQuantityResponse)
@limiter.limit("60/minute")
def get_inventory_quantity(request: Request, product_id: int, db: DbSession):
    """On-hand quantity computed from the ledger."""
    ProductCatalog(db).get(product_id)
    return {"product_id": product_id, "quantity": InventoryLedger(db).current_quantity(product_id)}
