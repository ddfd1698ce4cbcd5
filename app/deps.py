from dataclasses import dataclass
from urllib.parse import unquote
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from app.gateway import AuthorizationGateway, gateway
from app.roles import Action, Resource, Scope


@dataclass
class Actor:
    id: UUID
    username: str
    role: str  # raw claim; unknown values are denied by the gateway


def get_current_user(
    x_user_id: str = Header(...),
    x_username: str = Header(...),
    x_user_role: str = Header(default=""),
) -> Actor:
    """
    Reads the headers injected by the identity proxy after it verified the session.
    The credential has already been checked, we just trust these headers.
    NOTE: This only works behind the proxy. Run with that assumption.
    """
    try:
        user_id = UUID(x_user_id)
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identity from gateway",
        ) from None

    return Actor(id=user_id, username=unquote(x_username), role=x_user_role.strip())


def get_gateway() -> AuthorizationGateway:
    return gateway


def require(resource: Resource, action: Action, scope: Scope = Scope.ANY):
    """
    Factory that returns a dependency authorizing a target-less operation.

    Usage:
        @router.post("/amenities")
        async def route(user = Depends(require(Resource.AMENITY, Action.CREATE))):
            ...
    """

    async def _dep(
        current_user: Actor = Depends(get_current_user),
        gw: AuthorizationGateway = Depends(get_gateway),
    ) -> Actor:
        await gw.authorize(current_user, resource, action, scope=scope)
        return current_user

    return _dep


# ---------------------------------------------------------------------------
# Pre-built authorization dependencies
# ---------------------------------------------------------------------------

can_read_amenity = require(Resource.AMENITY, Action.READ)
can_create_amenity = require(Resource.AMENITY, Action.CREATE)
can_update_amenity = require(Resource.AMENITY, Action.UPDATE)
can_delete_amenity = require(Resource.AMENITY, Action.DELETE)

can_read_food_menu = require(Resource.FOOD_MENU, Action.READ)
can_create_food_menu = require(Resource.FOOD_MENU, Action.CREATE)
can_update_food_menu = require(Resource.FOOD_MENU, Action.UPDATE)
can_delete_food_menu = require(Resource.FOOD_MENU, Action.DELETE)

can_read_settings = require(Resource.SETTINGS, Action.READ)
can_update_settings = require(Resource.SETTINGS, Action.UPDATE)

# confirm / reschedule: staff and above, never a customer's own-scope update
can_manage_booking = require(Resource.BOOKING, Action.UPDATE)

can_create_payment = require(Resource.PAYMENT, Action.CREATE)
can_delete_payment = require(Resource.PAYMENT, Action.DELETE)
can_delete_booking = require(Resource.BOOKING, Action.DELETE)
