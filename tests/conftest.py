"""Pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from tests.helpers import BUYER_EMAIL, make_token


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from storefront.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Back every Supabase client with a mock so no test reaches the network.

    Tests that care about queries patch get_supabase_client in the service
    module they exercise.

    Yields:
        MagicMock: Mocked Supabase client.
    """
    from storefront.core.supabase import get_supabase_client

    mock_client = MagicMock()
    get_supabase_client.cache_clear()
    with patch("storefront.core.supabase.create_client", return_value=mock_client):
        yield mock_client
    get_supabase_client.cache_clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for a regular buyer."""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Authorization header for an admin."""
    return {"Authorization": f"Bearer {make_token(email='admin@example.com', role='admin')}"}


@pytest.fixture
def sample_delivery_method() -> dict[str, Any]:
    """Create a sample delivery method row."""
    return {
        "id": 1,
        "short_name": "UPS1",
        "delivery_time": "1-2 Days",
        "description": "Fastest delivery time",
        "price": 10,
    }


@pytest.fixture
def sample_cart() -> dict[str, Any]:
    """Create a sample cart row."""
    return {
        "id": "cart-123",
        "items": [
            {
                "product_id": 1,
                "product_name": "Angular Speedster Board 2000",
                "price": 200,
                "quantity": 2,
                "picture_url": "/images/products/sb-ang1.png",
                "brand": "Angular",
                "type": "Boards",
            },
            {
                "product_id": 2,
                "product_name": "Green Angular Board 3000",
                "price": 150,
                "quantity": 1,
                "picture_url": "/images/products/sb-ang2.png",
                "brand": "Angular",
                "type": "Boards",
            },
        ],
        "delivery_method_id": 1,
        "payment_reference": None,
        "coupon": None,
    }


@pytest.fixture
def sample_products() -> list[dict[str, Any]]:
    """Catalog rows matching sample_cart."""
    return [
        {
            "id": 1,
            "name": "Angular Speedster Board 2000",
            "description": "Board",
            "price": 200,
            "picture_url": "/images/products/sb-ang1.png",
            "type": "Boards",
            "brand": "Angular",
            "quantity_in_stock": 10,
        },
        {
            "id": 2,
            "name": "Green Angular Board 3000",
            "description": "Board",
            "price": 150,
            "picture_url": "/images/products/sb-ang2.png",
            "type": "Boards",
            "brand": "Angular",
            "quantity_in_stock": 10,
        },
    ]


@pytest.fixture
def sample_order(sample_delivery_method: dict[str, Any]) -> dict[str, Any]:
    """Create a pending order whose total is 560.00 (56000 minor units)."""
    return {
        "id": "660e8400-e29b-41d4-a716-446655440000",
        "buyer_email": BUYER_EMAIL,
        "order_date": "2026-10-01T12:00:00+00:00",
        "shipping_address": {
            "name": "Bob Bobbity",
            "line1": "1 Main Street",
            "line2": None,
            "city": "Cape Town",
            "state": "Western Cape",
            "postal_code": "8001",
            "country": "ZA",
        },
        "delivery_method": sample_delivery_method,
        "order_items": [
            {
                "product_id": 1,
                "product_name": "Angular Speedster Board 2000",
                "picture_url": "/images/products/sb-ang1.png",
                "price": 200,
                "quantity": 2,
            },
            {
                "product_id": 2,
                "product_name": "Green Angular Board 3000",
                "picture_url": "/images/products/sb-ang2.png",
                "price": 150,
                "quantity": 1,
            },
        ],
        "subtotal": 550,
        "discount": 0,
        "payment_reference": "ref-abc-123",
        "payment_summary": None,
        "status": "pending",
        "updated_at": "2026-10-01T12:00:00+00:00",
    }


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Yields:
        TestClient: FastAPI test client.
    """
    from storefront.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def mock_paystack() -> Generator[MagicMock, None, None]:
    """Patch the Paystack client used by PaymentService."""
    gateway = MagicMock()
    with patch("storefront.services.payment_service.get_paystack_client", return_value=gateway):
        yield gateway
