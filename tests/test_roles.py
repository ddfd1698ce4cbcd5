"""Tests for the role resolver: static capability table and the settings-gated rule."""

import pytest

from app.roles import (
    RESOURCE_ACTIONS,
    ROLE_CAPABILITIES,
    Action,
    Resource,
    Role,
    Scope,
    can,
)
from app.schemas import SystemSettingsResponse

LOCKED = SystemSettingsResponse(allow_manager_delete=False)
UNLOCKED = SystemSettingsResponse(allow_manager_delete=True)

ALL_PAIRS = [(r, a) for r, actions in RESOURCE_ACTIONS.items() for a in actions]


class TestAdmin:
    @pytest.mark.parametrize("resource,action", ALL_PAIRS)
    def test_admin_can_everything_at_any_scope(self, resource, action):
        assert can(Role.ADMIN, resource, action, Scope.ANY, LOCKED) is True

    def test_admin_set_is_data_not_inheritance(self):
        # admin holds an explicit statement for every defined pair
        assert len(ROLE_CAPABILITIES[Role.ADMIN]) == len(ALL_PAIRS)


class TestManagerDeleteToggle:
    @pytest.mark.parametrize("resource", [Resource.BOOKING, Resource.PAYMENT])
    def test_delete_denied_when_setting_off(self, resource):
        assert can(Role.MANAGER, resource, Action.DELETE, Scope.ANY, LOCKED) is False

    @pytest.mark.parametrize("resource", [Resource.BOOKING, Resource.PAYMENT])
    def test_delete_allowed_when_setting_on(self, resource):
        assert can(Role.MANAGER, resource, Action.DELETE, Scope.ANY, UNLOCKED) is True

    def test_toggle_does_not_grant_settings_update(self):
        assert can(Role.MANAGER, Resource.SETTINGS, Action.UPDATE, Scope.ANY, UNLOCKED) is False

    @pytest.mark.parametrize("role", [Role.STAFF, Role.CUSTOMER])
    def test_toggle_only_affects_managers(self, role):
        for resource in (Resource.BOOKING, Resource.PAYMENT):
            assert can(role, resource, Action.DELETE, Scope.ANY, UNLOCKED) is False
            assert can(role, resource, Action.DELETE, Scope.OWN, UNLOCKED) is False

    def test_manager_catalog_delete_is_static(self):
        assert can(Role.MANAGER, Resource.AMENITY, Action.DELETE, Scope.ANY, LOCKED) is True
        assert can(Role.MANAGER, Resource.FOOD_MENU, Action.DELETE, Scope.ANY, LOCKED) is True


class TestScopes:
    def test_any_satisfies_own(self):
        assert can(Role.STAFF, Resource.BOOKING, Action.READ, Scope.OWN, LOCKED) is True

    def test_own_does_not_satisfy_any(self):
        assert can(Role.CUSTOMER, Resource.BOOKING, Action.READ, Scope.ANY, LOCKED) is False

    def test_customer_reads_own_bookings_and_payments(self):
        assert can(Role.CUSTOMER, Resource.BOOKING, Action.READ, Scope.OWN, LOCKED) is True
        assert can(Role.CUSTOMER, Resource.PAYMENT, Action.READ, Scope.OWN, LOCKED) is True

    def test_customer_cannot_record_payments(self):
        assert can(Role.CUSTOMER, Resource.PAYMENT, Action.CREATE, Scope.OWN, LOCKED) is False


class TestStaticTable:
    def test_staff_cannot_touch_settings(self):
        for action in RESOURCE_ACTIONS[Resource.SETTINGS]:
            assert can(Role.STAFF, Resource.SETTINGS, action, Scope.ANY, LOCKED) is False

    def test_staff_reads_catalog_but_cannot_edit(self):
        assert can(Role.STAFF, Resource.AMENITY, Action.READ, Scope.ANY, LOCKED) is True
        assert can(Role.STAFF, Resource.AMENITY, Action.UPDATE, Scope.ANY, LOCKED) is False

    def test_manager_does_not_inherit_from_admin(self):
        assert can(Role.MANAGER, Resource.SETTINGS, Action.UPDATE, Scope.ANY, LOCKED) is False

    def test_undefined_pair_denied_even_for_admin(self):
        # payments are append-only: no update action exists
        assert can(Role.ADMIN, Resource.PAYMENT, Action.UPDATE, Scope.ANY, LOCKED) is False


class TestFailClosed:
    @pytest.mark.parametrize(
        "role,resource,action,scope",
        [
            ("superuser", "booking", "read", "any"),
            ("", "booking", "read", "any"),
            ("admin", "rooms", "read", "any"),
            ("admin", "booking", "approve", "any"),
            ("admin", "booking", "read", "everything"),
        ],
    )
    def test_unknown_values_deny(self, role, resource, action, scope):
        assert can(role, resource, action, scope, UNLOCKED) is False

    def test_raw_strings_for_known_values_are_accepted(self):
        assert can("admin", "settings", "update", "any", LOCKED) is True
