"""Physical inventory count routes."""

from typing import Optional

from fastapi import APIRouter, Request, status

from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.schemas.inventory import (
    InventorySnapshotCreate,
    InventorySnapshotResponse,
    InventorySnapshotUpdate,
)
from foodyflow.services.catalog import ProductCatalog
from foodyflow.services.stock_count import StockCount

router = APIRouter()


@router.get("/", response_model=list[InventorySnapshotResponse])
@limiter.limit("60/minute")
def list_snapshots(request: Request, db: DbSession, product_id: Optional[int] = None):
    """Counts, most recent first."""
    return StockCount(db).list_snapshots(product_id)


@router.get("/product/{product_id}", response_model=list[InventorySnapshotResponse])
@limiter.limit("60/minute")
def list_product_snapshots(request: Request, product_id: int, db: DbSession):
    ProductCatalog(db).get(product_id)
    return StockCount(db).list_snapshots(product_id)


@router.get("/{snapshot_id}", response_model=InventorySnapshotResponse)
@limiter.limit("60/minute")
def get_snapshot(request: Request, snapshot_id: int, db: DbSession):
    return StockCount(db).get_snapshot(snapshot_id)


@router.post("/", response_model=InventorySnapshotResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_snapshot(request: Request, body: InventorySnapshotCreate, db: DbSession):
    """Record a shelf count and compare it with the ledger."""
    return StockCount(db).record_count(body.model_dump())


@router.put("/{snapshot_id}", response_model=InventorySnapshotResponse)
@limiter.limit("30/minute")
def update_snapshot(request: Request, snapshot_id: int, body: InventorySnapshotUpdate, db: DbSession):
    return StockCount(db).update_snapshot(snapshot_id, body.model_dump(exclude_unset=True))


@router.delete("/{snapshot_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_snapshot(request: Request, snapshot_id: int, db: DbSession):
    StockCount(db).delete_snapshot(snapshot_id)
