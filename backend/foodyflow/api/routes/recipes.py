"""Recipe routes."""

from fastapi import APIRouter, Request, status

from foodyflow.core.rate_limit import limiter
from foodyflow.db.session import DbSession
from foodyflow.schemas.recipe import RecipeCreate, RecipeResponse, RecipeUpdate
from foodyflow.services.menu_costing import MenuCosting

router = APIRouter()


@router.get("/", response_model=list[RecipeResponse])
@limiter.limit("60/minute")
def list_recipes(request: Request, db: DbSession):
    return MenuCosting(db).list_recipes()


@router.get("/{recipe_id}", response_model=RecipeResponse)
@limiter.limit("60/minute")
def get_recipe(request: Request, recipe_id: int, db: DbSession):
    return MenuCosting(db).get_recipe(recipe_id)


@router.post("/", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_recipe(request: Request, body: RecipeCreate, db: DbSession):
    """Create a recipe; costs are computed from the current product prices."""
    return MenuCosting(db).create_recipe(body.model_dump())


@router.put("/{recipe_id}", response_model=RecipeResponse)
@limiter.limit("30/minute")
def update_recipe(request: Request, recipe_id: int, body: RecipeUpdate, db: DbSession):
    return MenuCosting(db).update_recipe(recipe_id, body.model_dump(exclude_unset=True))


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_recipe(request: Request, recipe_id: int, db: DbSession):
    """Delete a recipe."""
    MenuCosting(db).delete_recipe(recipe_id)
