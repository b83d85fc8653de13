"""Integration tests for order API endpoints."""

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from tests.helpers import supabase_response

ORDER_ID = "660e8400-e29b-41d4-a716-446655440000"

ORDER_REQUEST = {
    "cart_id": "cart-123",
    "delivery_method_id": 1,
    "shipping_address": {
        "name": "Bob Bobbity",
        "line1": "1 Main Street",
        "city": "Cape Town",
        "state": "Western Cape",
        "postal_code": "8001",
        "country": "ZA",
    },
}


@pytest.fixture
def order_client() -> Generator[MagicMock, None, None]:
    with patch("storefront.services.order_service.get_supabase_client") as mock_get_client:
        client = MagicMock()
        mock_get_client.return_value = client
        yield client


@pytest.fixture
def cart_client(sample_cart: dict) -> Generator[MagicMock, None, None]:
    sample_cart["payment_reference"] = "ref-abc-123"
    with patch("storefront.services.cart_service.get_supabase_client") as mock_get_client:
        client = MagicMock()
        client.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = (
            supabase_response(sample_cart)
        )
        mock_get_client.return_value = client
        yield client


@pytest.fixture
def catalog_client(
    sample_products: list[dict],
    sample_delivery_method: dict,
) -> Generator[MagicMock, None, None]:
    with patch("storefront.services.catalog_service.get_supabase_client") as mock_get_client:
        client = MagicMock()
        table = client.table.return_value
        table.select.return_value.in_.return_value.execute.return_value = supabase_response(sample_products)
        table.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = (
            supabase_response(sample_delivery_method)
        )
        mock_get_client.return_value = client
        yield client


def order_lookup(client: MagicMock) -> MagicMock:
    return client.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute


class TestCreateOrder:
    """Tests for POST /api/v1/orders."""

    def test_creates_pending_order(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        order_client: MagicMock,
        cart_client: MagicMock,
        catalog_client: MagicMock,
        sample_order: dict,
    ) -> None:
        """Test that checkout creates a pending order with totals."""
        order_lookup(order_client).return_value = supabase_response(None)
        order_client.table.return_value.insert.return_value.execute.return_value = supabase_response(
            [sample_order]
        )

        response = client.post("/api/v1/orders", json=ORDER_REQUEST, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["subtotal"] == 550.0
        assert data["shipping_price"] == 10.0
        assert data["total"] == 560.0
        assert data["payment_reference"] == "ref-abc-123"

    def test_returns_409_without_payment(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        order_client: MagicMock,
        cart_client: MagicMock,
        catalog_client: MagicMock,
        sample_cart: dict,
    ) -> None:
        """Test that an order needs an initiated payment."""
        sample_cart["payment_reference"] = None

        response = client.post("/api/v1/orders", json=ORDER_REQUEST, headers=auth_headers)

        assert response.status_code == 409
        order_client.table.return_value.insert.assert_not_called()

    def test_returns_409_for_completed_order(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        order_client: MagicMock,
        cart_client: MagicMock,
        catalog_client: MagicMock,
        sample_order: dict,
    ) -> None:
        """Test that a paid order cannot be recreated."""
        order_lookup(order_client).return_value = supabase_response(
            {**sample_order, "status": "payment_received"}
        )

        response = client.post("/api/v1/orders", json=ORDER_REQUEST, headers=auth_headers)

        assert response.status_code == 409

    def test_returns_404_for_missing_cart(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        order_client: MagicMock,
        cart_client: MagicMock,
    ) -> None:
        """Test that an unknown cart is 404."""
        lookup = cart_client.table.return_value.select.return_value.eq.return_value.maybe_single.return_value
        lookup.execute.return_value = supabase_response(None)

        response = client.post("/api/v1/orders", json=ORDER_REQUEST, headers=auth_headers)

        assert response.status_code == 404

    def test_validates_shipping_address(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        """Test that an incomplete address is rejected."""
        body = {**ORDER_REQUEST, "shipping_address": {"name": "Bob"}}

        response = client.post("/api/v1/orders", json=body, headers=auth_headers)

        assert response.status_code == 422

    def test_requires_authentication(self, client: TestClient) -> None:
        """Test that anonymous users cannot order."""
        response = client.post("/api/v1/orders", json=ORDER_REQUEST)

        assert response.status_code == 401


class TestGetOrders:
    """Tests for GET /api/v1/orders and /api/v1/orders/{order_id}."""

    def test_lists_buyer_orders(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        order_client: MagicMock,
        sample_order: dict,
    ) -> None:
        """Test that the buyer sees their orders."""
        chain = order_client.table.return_value.select.return_value.eq.return_value.order.return_value
        chain.execute.return_value = supabase_response([sample_order])

        response = client.get("/api/v1/orders", headers=auth_headers)

        assert response.status_code == 200
        assert [order["id"] for order in response.json()["items"]] == [ORDER_ID]
        order_client.table.return_value.select.return_value.eq.assert_called_with(
            "buyer_email", "buyer@example.com"
        )

    def test_get_order_includes_payment_summary(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        order_client: MagicMock,
        sample_order: dict,
    ) -> None:
        """Test that a paid order shows the masked card."""
        sample_order["status"] = "payment_received"
        sample_order["payment_summary"] = {"last4": "4081", "brand": "visa", "exp_month": 12, "exp_year": 2030}
        chain = order_client.table.return_value.select.return_value.eq.return_value.eq.return_value
        chain.maybe_single.return_value.execute.return_value = supabase_response(sample_order)

        response = client.get(f"/api/v1/orders/{ORDER_ID}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["payment_summary"]["display"] == "VISA **** **** **** 4081, Exp: 12/2030"

    def test_get_other_buyers_order_is_404(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        order_client: MagicMock,
    ) -> None:
        """Test that orders of other buyers are invisible."""
        chain = order_client.table.return_value.select.return_value.eq.return_value.eq.return_value
        chain.maybe_single.return_value.execute.return_value = None

        response = client.get(f"/api/v1/orders/{ORDER_ID}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestRefundOrder:
    """Tests for POST /api/v1/orders/{order_id}/refund."""

    def test_admin_refunds_paid_order(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        order_client: MagicMock,
        mock_paystack: MagicMock,
        sample_order: dict,
    ) -> None:
        """Test that an admin refund goes through Paystack and marks the order."""
        paid = {**sample_order, "status": "payment_received"}
        order_lookup(order_client).return_value = supabase_response(paid)
        update = order_client.table.return_value.update.return_value.eq.return_value.eq.return_value
        update.execute.return_value = supabase_response([{**paid, "status": "refunded"}])

        response = client.post(f"/api/v1/orders/{ORDER_ID}/refund", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Refund initiated successfully"
        assert response.json()["order"]["status"] == "refunded"
        mock_paystack.refund.assert_called_once_with("ref-abc-123")

    def test_refund_unpaid_order_is_409(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        order_client: MagicMock,
        mock_paystack: MagicMock,
        sample_order: dict,
    ) -> None:
        """Test that pending orders cannot be refunded."""
        order_lookup(order_client).return_value = supabase_response(sample_order)

        response = client.post(f"/api/v1/orders/{ORDER_ID}/refund", headers=admin_headers)

        assert response.status_code == 409
        mock_paystack.refund.assert_not_called()

    def test_refund_requires_admin(
        self,
        client: TestClient,
        auth_headers: dict[str, str],
        mock_paystack: MagicMock,
    ) -> None:
        """Test that buyers cannot refund."""
        response = client.post(f"/api/v1/orders/{ORDER_ID}/refund", headers=auth_headers)

        assert response.status_code == 403
        mock_paystack.refund.assert_not_called()
