"""Supplier routes."""

from fastapi import APIRouter, Request, status

from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate
from foodyflow.services.catalog import ProductCatalog

router = APIRouter()


@router.get("/", response_model=list[SupplierResponse])
@limiter.limit("60/minute")
def list_suppliers(request: Request, db: DbSession):
    """List all suppliers."""
    return ProductCatalog(db).list_suppliers()


@router.get("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("60/minute")
def get_supplier(request: Request, supplier_id: int, db: DbSession):
    return ProductCatalog(db).get_supplier(supplier_id)


@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_supplier(request: Request, body: SupplierCreate, db: DbSession):
    return ProductCatalog(db).create_supplier(body.model_dump())


@router.put("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("30/minute")
def update_supplier(request: Request, supplier_id: int, body: SupplierUpdate, db: DbSession):
    return ProductCatalog(db).update_supplier(supplier_id, body.model_dump(exclude_unset=True))


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_supplier(request: Request, supplier_id: int, db: DbSession):
    """Delete a supplier. Its products and orders are kept, unlinked."""
    ProductCatalog(db).delete_supplier(supplier_id)
