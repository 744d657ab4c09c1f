"""Product catalog routes."""

from typing import Optional

from fastapi import APIRouter, Request, status

from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from foodyflow.schemas.stock import StockMovementResponse
from foodyflow.services.catalog import ProductCatalog
from foodyflow.services.inventory_ledger import InventoryLedger

router = APIRouter()


@router.get("/", response_model=list[ProductResponse])
@limiter.limit("60/minute")
def list_products(request: Request, db: DbSession, supplier_id: Optional[int] = None):
    """List products, optionally for one supplier."""
    return ProductCatalog(db).list_products(supplier_id=supplier_id)


@router.get("/{product_id}", response_model=ProductResponse)
@limiter.limit("60/minute")
def get_product(request: Request, product_id: int, db: DbSession):
    return ProductCatalog(db).get(product_id)


@router.get("/{product_id}/movements", response_model=list[StockMovementResponse])
@limiter.limit("60/minute")
def get_product_movements(request: Request, product_id: int, db: DbSession):
    """Stock movements of one product, newest first."""
    ProductCatalog(db).get(product_id)
    return InventoryLedger(db).list_movements(product_id)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_product(request: Request, body: ProductCreate, db: DbSession):
    """Create a product. A positive ``quantity`` is booked as opening stock."""
    return ProductCatalog(db).create_product(body.model_dump())


@router.put("/{product_id}", response_model=ProductResponse)
@limiter.limit("30/minute")
def update_product(request: Request, product_id: int, body: ProductUpdate, db: DbSession):
    """Update a product. Price or waste changes reprice recipes and dishes."""
    return ProductCatalog(db).update_product(product_id, body.model_dump(exclude_unset=True))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_product(request: Request, product_id: int, db: DbSession):
    ProductCatalog(db).delete_product(product_id)
