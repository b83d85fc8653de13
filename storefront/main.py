"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.api.middleware.error_handler import error_handler_middleware
from storefront.api.middleware.latency_logging import latency_logging_middleware
from storefront.api.middleware.request_size import request_size_limit_middleware
from storefront.api.routes import cart, health, notifications, orders, payments
from storefront.core.config import get_settings
from storefront.core.paystack import close_paystack_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    if not settings.paystack_secret_key:
        logger.warning("Paystack secret key not configured. Payments and webhooks will fail.")
    elif settings.is_paystack_test_mode:
        if settings.is_production:
            logger.warning("Production is running with Paystack test keys; no real charges will settle")
        else:
            logger.info("Paystack configured with test keys")

    yield

    close_paystack_client()
    logger.info("Paystack client closed")
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Storefront API",
        description="Shopping cart, checkout and Paystack payment confirmation backend",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handler is added first so it wraps the handlers, not the outer middleware
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    # Health routes and the notification hub live at root level
    app.include_router(health.router)
    app.include_router(notifications.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(cart.router)
    api_v1_router.include_router(cart.coupons_router)
    api_v1_router.include_router(payments.router)
    api_v1_router.include_router(orders.router)
    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
