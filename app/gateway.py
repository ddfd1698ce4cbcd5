from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from loguru import logger

from app.cache import get_settings_cache, set_settings_cache
from app.crud import settings_crud
from app.errors import Denied
from app.roles import Action, Resource, Role, Scope, can, parse_role
from app.schemas import SystemSettingsResponse

if TYPE_CHECKING:
    from app.deps import Actor

SettingsLoader = Callable[[], Awaitable[SystemSettingsResponse]]

_DEFAULT_SETTINGS = SystemSettingsResponse()


async def load_system_settings() -> SystemSettingsResponse:
    """Read the settings singleton through the short-TTL cache."""
    cached = await get_settings_cache()
    if cached is not None:
        return SystemSettingsResponse(**cached)

    current = await settings_crud.get()
    await set_settings_cache(current.model_dump(mode="json"))
    return current


def _owner_of(target: Any) -> Any:
    return getattr(target, "customer_id", None)


class AuthorizationGateway:
    """
    Single entry point for authorization decisions.

    Combines the static role resolver with runtime settings (only read when the
    decision depends on them) and ownership of the target for `own` scope.
    Every decision, allow or deny, is written to the audit log.
    """

    def __init__(self, settings_loader: SettingsLoader = load_system_settings) -> None:
        self._load_settings = settings_loader

    async def _settings_for(self, role: Role, action: Action) -> SystemSettingsResponse:
        if role is Role.MANAGER and action == Action.DELETE:
            return await self._load_settings()
        return _DEFAULT_SETTINGS

    def _audit(
        self,
        actor: Actor,
        resource: Resource,
        action: Action,
        target: Any,
        outcome: str,
        detail: str,
    ) -> None:
        logger.bind(audit=True).info(
            "authz resource={} action={} actor={} role={} target={} outcome={} ({})",
            resource,
            action,
            actor.id,
            actor.role,
            getattr(target, "id", None),
            outcome,
            detail,
        )

    def _deny(
        self,
        actor: Actor,
        resource: Resource,
        action: Action,
        target: Any,
        reason: str,
    ) -> Denied:
        self._audit(actor, resource, action, target, "deny", reason)
        return Denied(reason)

    async def authorize(
        self,
        actor: Actor,
        resource: Resource,
        action: Action,
        target: Any = None,
        scope: Scope = Scope.OWN,
    ) -> Scope:
        """
        Allow or deny `action` on `resource` for `actor`.

        `scope` is the narrowest scope the operation can run at: pass Scope.ANY
        for operations customers may never perform even on their own records.
        Without a target, a granted Scope.OWN obliges the caller to restrict the
        operation to the actor's records.

        Returns the granted scope; raises Denied otherwise.
        """
        role = parse_role(actor.role)
        if role is None:
            logger.warning("Unknown role {!r} for actor {}, denying", actor.role, actor.id)
            raise self._deny(actor, resource, action, target, f"unknown role '{actor.role}'")

        current = await self._settings_for(role, action)

        if can(role, resource, action, Scope.ANY, current):
            granted = Scope.ANY
        elif scope == Scope.OWN and can(role, resource, action, Scope.OWN, current):
            if target is not None and _owner_of(target) != actor.id:
                raise self._deny(
                    actor, resource, action, target, f"{resource} is not owned by the actor"
                )
            granted = Scope.OWN
        else:
            raise self._deny(
                actor,
                resource,
                action,
                target,
                f"role '{role}' cannot {action} {resource} (scope {scope})",
            )

        self._audit(actor, resource, action, target, "allow", f"scope {granted}")
        return granted


gateway = AuthorizationGateway()
