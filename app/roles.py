from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class Role(StrEnum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    CUSTOMER = "customer"


class Resource(StrEnum):
    AMENITY = "amenity"
    FOOD_MENU = "food_menu"
    PAYMENT = "payment"
    SETTINGS = "settings"
    BOOKING = "booking"


class Action(StrEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Scope(StrEnum):
    ANY = "any"  # all records
    OWN = "own"  # records owned by the actor


class DeleteToggle(Protocol):
    allow_manager_delete: bool


@dataclass(frozen=True)
class CapabilityStatement:
    resource: Resource
    action: Action
    scope: Scope = Scope.ANY


_CRUD = (Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE)

# Actions that exist per resource. Payments are append-only, settings is a singleton.
RESOURCE_ACTIONS: dict[Resource, tuple[Action, ...]] = {
    Resource.AMENITY: _CRUD,
    Resource.FOOD_MENU: _CRUD,
    Resource.BOOKING: _CRUD,
    Resource.PAYMENT: (Action.CREATE, Action.READ, Action.DELETE),
    Resource.SETTINGS: (Action.READ, Action.UPDATE),
}


def _grant(resource: Resource, *actions: Action, scope: Scope = Scope.ANY):
    return {CapabilityStatement(resource, a, scope) for a in actions}


ROLE_CAPABILITIES: dict[Role, frozenset[CapabilityStatement]] = {
    Role.ADMIN: frozenset(
        CapabilityStatement(resource, action)
        for resource, actions in RESOURCE_ACTIONS.items()
        for action in actions
    ),
    Role.MANAGER: frozenset(
        _grant(Resource.AMENITY, *_CRUD)
        | _grant(Resource.FOOD_MENU, *_CRUD)
        | _grant(Resource.BOOKING, Action.CREATE, Action.READ, Action.UPDATE)
        | _grant(Resource.PAYMENT, Action.CREATE, Action.READ)
        | _grant(Resource.SETTINGS, Action.READ)
    ),
    Role.STAFF: frozenset(
        _grant(Resource.AMENITY, Action.READ)
        | _grant(Resource.FOOD_MENU, Action.READ)
        | _grant(Resource.BOOKING, Action.CREATE, Action.READ, Action.UPDATE)
        | _grant(Resource.PAYMENT, Action.CREATE, Action.READ)
    ),
    Role.CUSTOMER: frozenset(
        _grant(Resource.AMENITY, Action.READ)
        | _grant(Resource.FOOD_MENU, Action.READ)
        # update is narrowed to cancellation by the bookings router
        | _grant(
            Resource.BOOKING,
            Action.CREATE,
            Action.READ,
            Action.UPDATE,
            scope=Scope.OWN,
        )
        | _grant(Resource.PAYMENT, Action.READ, scope=Scope.OWN)
    ),
}

# The only capabilities that depend on runtime state.
MANAGER_DELETE_CAPABILITIES: frozenset[CapabilityStatement] = frozenset(
    _grant(Resource.BOOKING, Action.DELETE) | _grant(Resource.PAYMENT, Action.DELETE)
)


def parse_role(value: str) -> Role | None:
    try:
        return Role(value)
    except ValueError:
        return None


def capabilities_for(role: Role, settings: DeleteToggle) -> frozenset[CapabilityStatement]:
    """Static capability set for `role`, plus the settings-gated manager deletes."""
    granted = ROLE_CAPABILITIES.get(role, frozenset())
    if role is Role.MANAGER and settings.allow_manager_delete:
        granted = granted | MANAGER_DELETE_CAPABILITIES
    return granted


def can(
    role: Role | str,
    resource: Resource | str,
    action: Action | str,
    scope: Scope | str,
    settings: DeleteToggle,
) -> bool:
    """
    Decide whether `role` may perform `action` on `resource` at `scope`.

    Pure and total: unknown enum values fail closed to False.
    A statement with scope `any` satisfies a request for `own`, never the reverse.
    """
    try:
        role = Role(role)
        resource = Resource(resource)
        action = Action(action)
        scope = Scope(scope)
    except ValueError:
        return False

    if action not in RESOURCE_ACTIONS[resource]:
        return False

    for statement in capabilities_for(role, settings):
        if statement.resource is not resource or statement.action is not action:
            continue
        if statement.scope is Scope.ANY or statement.scope is scope:
            return True
    return False
