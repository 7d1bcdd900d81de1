# shop/api/__init__.py
from fastapi import FastAPI

from shop.api.errors import register_error_handlers
from shop.api.routers import carts, health, orders, products, users


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shop Service",
        version="1.0.0",
    )

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app
