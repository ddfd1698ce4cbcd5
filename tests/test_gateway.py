"""Tests for AuthorizationGateway: ownership, settings reads and the audit trail."""

from __future__ import annotations

from uuid import uuid4

import pytest
from loguru import logger

from app.deps import Actor
from app.errors import Denied
from app.gateway import AuthorizationGateway
from app.roles import Action, Resource, Scope
from app.schemas import SystemSettingsResponse

from .factories import (
    CUSTOMER_ID,
    OTHER_CUSTOMER_ID,
    booking_model,
    make_actor,
    make_admin,
    make_customer,
    make_manager,
    make_staff,
)

pytestmark = pytest.mark.anyio


class CountingLoader:
    def __init__(self, allow_manager_delete: bool = False) -> None:
        self.allow_manager_delete = allow_manager_delete
        self.calls = 0

    async def __call__(self) -> SystemSettingsResponse:
        self.calls += 1
        return SystemSettingsResponse(allow_manager_delete=self.allow_manager_delete)


@pytest.fixture()
def audit_records():
    records: list[dict] = []
    sink_id = logger.add(
        lambda message: records.append(message.record),
        filter=lambda record: record["extra"].get("audit") is True,
    )
    yield records
    logger.remove(sink_id)


class TestOwnership:
    async def test_customer_reads_own_booking(self):
        gw = AuthorizationGateway(CountingLoader())
        target = booking_model(customer_id=str(CUSTOMER_ID))
        granted = await gw.authorize(
            make_customer(), Resource.BOOKING, Action.READ, target=target
        )
        assert granted == Scope.OWN

    async def test_customer_denied_on_foreign_booking(self):
        gw = AuthorizationGateway(CountingLoader())
        target = booking_model(customer_id=str(OTHER_CUSTOMER_ID))
        with pytest.raises(Denied) as exc:
            await gw.authorize(make_customer(), Resource.BOOKING, Action.READ, target=target)
        assert "not owned" in exc.value.reason

    async def test_target_without_owner_is_denied(self):
        gw = AuthorizationGateway(CountingLoader())
        with pytest.raises(Denied):
            await gw.authorize(
                make_customer(), Resource.BOOKING, Action.READ, target=object()
            )

    async def test_customer_listing_gets_own_scope(self):
        gw = AuthorizationGateway(CountingLoader())
        granted = await gw.authorize(make_customer(), Resource.BOOKING, Action.READ)
        assert granted == Scope.OWN

    async def test_staff_gets_any_scope_on_foreign_booking(self):
        gw = AuthorizationGateway(CountingLoader())
        target = booking_model(customer_id=str(OTHER_CUSTOMER_ID))
        granted = await gw.authorize(
            make_staff(), Resource.BOOKING, Action.UPDATE, target=target
        )
        assert granted == Scope.ANY

    async def test_forced_any_scope_denies_owner(self):
        gw = AuthorizationGateway(CountingLoader())
        target = booking_model(customer_id=str(CUSTOMER_ID))
        with pytest.raises(Denied):
            await gw.authorize(
                make_customer(),
                Resource.BOOKING,
                Action.UPDATE,
                target=target,
                scope=Scope.ANY,
            )


class TestSettingsReads:
    async def test_manager_delete_follows_setting(self):
        loader = CountingLoader(allow_manager_delete=False)
        gw = AuthorizationGateway(loader)
        with pytest.raises(Denied):
            await gw.authorize(make_manager(), Resource.BOOKING, Action.DELETE)

        loader.allow_manager_delete = True
        granted = await gw.authorize(make_manager(), Resource.BOOKING, Action.DELETE)
        assert granted == Scope.ANY
        assert loader.calls == 2

    async def test_settings_not_read_for_other_decisions(self):
        loader = CountingLoader()
        gw = AuthorizationGateway(loader)
        await gw.authorize(make_manager(), Resource.BOOKING, Action.READ)
        await gw.authorize(make_admin(), Resource.BOOKING, Action.DELETE)
        await gw.authorize(make_staff(), Resource.PAYMENT, Action.CREATE)
        assert loader.calls == 0


class TestAudit:
    async def test_allow_is_audited(self, audit_records):
        gw = AuthorizationGateway(CountingLoader())
        actor = make_admin()
        await gw.authorize(actor, Resource.SETTINGS, Action.UPDATE)
        assert len(audit_records) == 1
        message = audit_records[0]["message"]
        assert "outcome=allow" in message
        assert str(actor.id) in message
        assert "resource=settings" in message

    async def test_deny_is_audited(self, audit_records):
        gw = AuthorizationGateway(CountingLoader())
        with pytest.raises(Denied):
            await gw.authorize(make_staff(), Resource.SETTINGS, Action.UPDATE)
        assert len(audit_records) == 1
        assert "outcome=deny" in audit_records[0]["message"]

    async def test_unknown_role_denied_and_audited(self, audit_records):
        gw = AuthorizationGateway(CountingLoader())
        actor = Actor(id=uuid4(), username="ghost", role="root")
        with pytest.raises(Denied) as exc:
            await gw.authorize(actor, Resource.AMENITY, Action.READ)
        assert "unknown role" in exc.value.reason
        assert "outcome=deny" in audit_records[0]["message"]

    async def test_target_id_in_audit(self, audit_records):
        gw = AuthorizationGateway(CountingLoader())
        target = booking_model()
        await gw.authorize(make_actor("staff"), Resource.BOOKING, Action.READ, target=target)
        assert str(target.id) in audit_records[0]["message"]
