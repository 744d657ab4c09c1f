"""API routes."""

from fastapi import APIRouter

from foodyflow.api.routes import (
    consumption,
    dishes,
    inventory_snapshots,
    orders,
    products,
    recipes,
    stock,
    suppliers,
)

api_router = APIRouter()

# Catalog and menu
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(recipes.router, prefix="/recipes", tags=["recipes"])
api_router.include_router(dishes.router, prefix="/dishes", tags=["dishes"])

# Purchasing
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])

# Stock ledger
api_router.include_router(stock.router, prefix="/stock-movements", tags=["stock"])
api_router.include_router(stock.inventory_router, prefix="/inventory", tags=["stock"])
api_router.include_router(
    inventory_snapshots.router, prefix="/inventory-snapshots", tags=["inventory-snapshots"]
)

# Consumption
api_router.include_router(consumption.waste_router, prefix="/waste", tags=["waste"])
api_router.include_router(consumption.meals_router, prefix="/personal-meals", tags=["personal-meals"])
