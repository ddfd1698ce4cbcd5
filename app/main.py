from fastapi import FastAPI
from tortoise.contrib.fastapi import register_tortoise

from app import settings
from app.errors import register_exception_handlers
from app.routers.booking import router as bookings_router
from app.routers.catalog import amenities_router, food_menu_router
from app.routers.payments import router as payments_router
from app.routers.settings import router as settings_router
from app.settings import TORTOISE_MODULES


def create_app() -> FastAPI:
    app = FastAPI(title="property-bookings")
    register_exception_handlers(app)

    app.include_router(bookings_router)
    app.include_router(payments_router)
    app.include_router(settings_router)
    app.include_router(amenities_router)
    app.include_router(food_menu_router)

    register_tortoise(
        app,
        db_url=settings.db_url,
        modules=TORTOISE_MODULES,
        generate_schemas=settings.generate_schemas,
    )
    return app


app = create_app()
