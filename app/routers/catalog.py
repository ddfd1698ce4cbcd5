from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.crud import amenity_crud, food_menu_crud
from app.deps import (
    can_create_amenity,
    can_create_food_menu,
    can_delete_amenity,
    can_delete_food_menu,
    can_read_amenity,
    can_read_food_menu,
    can_update_amenity,
    can_update_food_menu,
)
from app.errors import NotFound
from app.schemas import (
    AmenityCreate,
    AmenityResponse,
    AmenityUpdate,
    FoodMenuFilters,
    FoodMenuItemCreate,
    FoodMenuItemResponse,
    FoodMenuItemUpdate,
)

amenities_router = APIRouter(prefix="/amenities", tags=["amenities"])
food_menu_router = APIRouter(prefix="/food-menu", tags=["food-menu"])


# ---------------------------------------------------------------------------
# Amenities
# ---------------------------------------------------------------------------


@amenities_router.get(
    "/",
    response_model=list[AmenityResponse],
    dependencies=[Depends(can_read_amenity)],
)
async def list_amenities() -> list[AmenityResponse]:
    return await amenity_crud.list_by()


@amenities_router.post(
    "/",
    response_model=AmenityResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_create_amenity)],
)
async def create_amenity(payload: AmenityCreate) -> AmenityResponse:
    return await amenity_crud.create(payload)


@amenities_router.patch(
    "/{amenity_id}",
    response_model=AmenityResponse,
    dependencies=[Depends(can_update_amenity)],
)
async def update_amenity(amenity_id: UUID, payload: AmenityUpdate) -> AmenityResponse:
    updated = await amenity_crud.update_by(payload, id=amenity_id)
    if not updated:
        raise NotFound("Amenity", amenity_id)
    return updated


@amenities_router.delete(
    "/{amenity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(can_delete_amenity)],
)
async def delete_amenity(amenity_id: UUID) -> None:
    if not await amenity_crud.delete_by(id=amenity_id):
        raise NotFound("Amenity", amenity_id)


# ---------------------------------------------------------------------------
# Food menu
# ---------------------------------------------------------------------------


@food_menu_router.get(
    "/",
    response_model=list[FoodMenuItemResponse],
    dependencies=[Depends(can_read_food_menu)],
)
async def list_menu_items(
    filters: FoodMenuFilters = Depends(),
) -> list[FoodMenuItemResponse]:
    return await food_menu_crud.list_items(filters)


@food_menu_router.post(
    "/",
    response_model=FoodMenuItemResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_create_food_menu)],
)
async def create_menu_item(payload: FoodMenuItemCreate) -> FoodMenuItemResponse:
    return await food_menu_crud.create(payload)


@food_menu_router.patch(
    "/{item_id}",
    response_model=FoodMenuItemResponse,
    dependencies=[Depends(can_update_food_menu)],
)
async def update_menu_item(
    item_id: UUID, payload: FoodMenuItemUpdate
) -> FoodMenuItemResponse:
    updated = await food_menu_crud.update_by(payload, id=item_id)
    if not updated:
        raise NotFound("Menu item", item_id)
    return updated


@food_menu_router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(can_delete_food_menu)],
)
async def delete_menu_item(item_id: UUID) -> None:
    if not await food_menu_crud.delete_by(id=item_id):
        raise NotFound("Menu item", item_id)
