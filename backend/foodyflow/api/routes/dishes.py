"""Dish (menu item) routes."""

from fastapi import APIRouter, Request, status

from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.schemas.dish import DishCreate, DishResponse, DishUpdate
from foodyflow.services.menu_costing import MenuCosting

router = APIRouter()


@router.get("/", response_model=list[DishResponse])
@limiter.limit("60/minute")
def list_dishes(request: Request, db: DbSession):
    return MenuCosting(db).list_dishes()


@router.get("/{dish_id}", response_model=DishResponse)
@limiter.limit("60/minute")
def get_dish(request: Request, dish_id: int, db: DbSession):
    return MenuCosting(db).get_dish(dish_id)


@router.post("/", response_model=DishResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_dish(request: Request, body: DishCreate, db: DbSession):
    """Create a dish; cost, net price and food cost % are derived."""
    return MenuCosting(db).create_dish(body.model_dump())


@router.put("/{dish_id}", response_model=DishResponse)
@limiter.limit("30/minute")
def update_dish(request: Request, dish_id: int, body: DishUpdate, db: DbSession):
    return MenuCosting(db).update_dish(dish_id, body.model_dump(exclude_unset=True))


@router.delete("/{dish_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_dish(request: Request, dish_id: int, db: DbSession):
    MenuCosting(db).delete_dish(dish_id)
