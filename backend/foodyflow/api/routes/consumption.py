"""Waste and personal meal routes."""

from fastapi import APIRouter, Request, status

from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.schemas.consumption import (
    ConsumptionTotalResponse,
    PersonalMealCreate,
    PersonalMealResponse,
    WasteCreate,
    WasteResponse,
)
from foodyflow.services.consumption_ledger import PERSONAL_MEAL, WASTE, ConsumptionLedger

waste_router = APIRouter()
meals_router = APIRouter()


# ==================== WASTE ====================

@waste_router.get("/", response_model=list[WasteResponse])
@limiter.limit("60/minute")
def list_waste(request: Request, db: DbSession):
    return ConsumptionLedger(db).list_waste()


@waste_router.get("/total", response_model=ConsumptionTotalResponse)
@limiter.limit("60/minute")
def get_waste_total(request: Request, db: DbSession):
    """Total cost of recorded waste."""
    return {"total_cost": ConsumptionLedger(db).total_waste_cost()}


@waste_router.post("/", response_model=WasteResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_waste(request: Request, body: WasteCreate, db: DbSession):
    """Record waste; the product's stock is reduced."""
    return ConsumptionLedger(db).record_waste(body.product_id, body.quantity, body.date, body.notes)


@waste_router.delete("/{waste_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_waste(request: Request, waste_id: int, db: DbSession):
    """Delete a waste entry and give its stock back."""
    ConsumptionLedger(db).delete_entry(WASTE, waste_id)


# ==================== PERSONAL MEALS ====================

@meals_router.get("/", response_model=list[PersonalMealResponse])
@limiter.limit("60/minute")
def list_personal_meals(request: Request, db: DbSession):
    return ConsumptionLedger(db).list_personal_meals()


@meals_router.get("/total", response_model=ConsumptionTotalResponse)
@limiter.limit("60/minute")
def get_personal_meal_total(request: Request, db: DbSession):
    """Total cost of staff meals."""
    return {"total_cost": ConsumptionLedger(db).total_meal_cost()}


@meals_router.post("/", response_model=PersonalMealResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_personal_meal(request: Request, body: PersonalMealCreate, db: DbSession):
    """Record a staff meal; every dish ingredient is taken out of stock."""
    return ConsumptionLedger(db).record_personal_meal(
        body.dish_id, body.quantity, body.date, body.notes
    )


@meals_router.delete("/{meal_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_personal_meal(request: Request, meal_id: int, db: DbSession):
    ConsumptionLedger(db).delete_entry(PERSONAL_MEAL, meal_id)
