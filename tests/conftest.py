"""
Shared pytest fixtures available to every test file automatically.
No imports needed in test files, pytest discovers this by convention.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from tortoise import Tortoise

from app.deps import get_current_user, get_gateway
from app.errors import register_exception_handlers
from app.gateway import AuthorizationGateway
from app.models import Property, Room
from app.routers.booking import router as bookings_router
from app.routers.catalog import amenities_router, food_menu_router
from app.routers.payments import router as payments_router
from app.routers.settings import router as settings_router
from app.schemas import SystemSettingsResponse
from app.settings import TORTOISE_MODULES

from .factories import make_admin, make_customer, make_manager, make_staff

# ---------------------------------------------------------------------------
# Settings stub: the gateway never reaches Redis or the DB in router tests
# ---------------------------------------------------------------------------


def settings_loader(allow_manager_delete: bool = False):
    async def _load() -> SystemSettingsResponse:
        return SystemSettingsResponse(allow_manager_delete=allow_manager_delete)

    return _load


# ---------------------------------------------------------------------------
# App builder: used by all client fixtures
# ---------------------------------------------------------------------------


def _bare_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    for router in (
        bookings_router,
        payments_router,
        settings_router,
        amenities_router,
        food_menu_router,
    ):
        app.include_router(router)
    return app


def build_app(current_user, allow_manager_delete: bool = False) -> FastAPI:
    """
    Fresh FastAPI app with the identity dependency overridden to return
    `current_user` unconditionally.

    The real AuthorizationGateway runs, fed by a stub settings loader, so
    every test exercises the actual authorization decisions.
    """
    app = _bare_app()

    async def _user():
        return current_user

    gw = AuthorizationGateway(settings_loader=settings_loader(allow_manager_delete))
    app.dependency_overrides[get_current_user] = _user
    app.dependency_overrides[get_gateway] = lambda: gw
    return app


# ---------------------------------------------------------------------------
# Reusable client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer_client():
    return TestClient(build_app(make_customer()), raise_server_exceptions=True)


@pytest.fixture()
def staff_client():
    return TestClient(build_app(make_staff()), raise_server_exceptions=True)


@pytest.fixture()
def manager_client():
    return TestClient(build_app(make_manager()), raise_server_exceptions=True)


@pytest.fixture()
def admin_client():
    return TestClient(build_app(make_admin()), raise_server_exceptions=True)


@pytest.fixture()
def anon_app():
    """
    App with NO dependency overrides.
    Use this when you want the real identity deps to run so you can assert 401/403/422.
    """
    return _bare_app()


@pytest.fixture()
def client_factory():
    def _make(current_user, allow_manager_delete: bool = False) -> TestClient:
        return TestClient(
            build_app(current_user, allow_manager_delete=allow_manager_delete),
            raise_server_exceptions=True,
        )

    return _make


# ---------------------------------------------------------------------------
# Database fixtures: in-memory SQLite through Tortoise, for engine tests
# ---------------------------------------------------------------------------


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
async def db():
    await Tortoise.init(db_url="sqlite://:memory:", modules=TORTOISE_MODULES)
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture()
async def room(db) -> Room:
    prop = await Property.create(name="Sunrise Residency")
    return await Room.create(property=prop, name="101", nightly_rate=Decimal("100.00"))
