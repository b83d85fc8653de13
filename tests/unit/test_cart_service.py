"""Unit tests for CartService, CouponService and CatalogService."""

from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storefront.services.cart_service import CartNotFoundError, CartService
from storefront.services.catalog_service import CatalogError, CatalogService
from storefront.services.coupon_service import CouponService, InvalidCouponError
from tests.helpers import supabase_response


@pytest.fixture
def mock_cart_client() -> Generator[MagicMock, None, None]:
    with patch("storefront.services.cart_service.get_supabase_client") as mock_get_client:
        client = MagicMock()
        mock_get_client.return_value = client
        yield client


@pytest.fixture
def mock_coupon_client() -> Generator[MagicMock, None, None]:
    with patch("storefront.services.coupon_service.get_supabase_client") as mock_get_client:
        client = MagicMock()
        mock_get_client.return_value = client
        yield client


@pytest.fixture
def mock_catalog_client() -> Generator[MagicMock, None, None]:
    with patch("storefront.services.catalog_service.get_supabase_client") as mock_get_client:
        client = MagicMock()
        mock_get_client.return_value = client
        yield client


def cart_lookup(client: MagicMock) -> MagicMock:
    return client.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute


class TestCartService:
    """Tests for CartService."""

    @pytest.mark.asyncio
    async def test_get_cart(self, mock_cart_client: MagicMock, sample_cart: dict) -> None:
        """Test fetching a stored cart."""
        cart_lookup(mock_cart_client).return_value = supabase_response(sample_cart)

        cart = await CartService().get_cart("cart-123")

        assert cart == sample_cart
        mock_cart_client.table.assert_called_with("carts")

    @pytest.mark.asyncio
    async def test_get_cart_missing(self, mock_cart_client: MagicMock) -> None:
        """Test that an unknown cart is None."""
        cart_lookup(mock_cart_client).return_value = None

        assert await CartService().get_cart("nope") is None

    @pytest.mark.asyncio
    async def test_expired_cart_is_deleted(self, mock_cart_client: MagicMock, sample_cart: dict) -> None:
        """Test that an expired cart is removed and reported as missing."""
        sample_cart["expires_at"] = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
        cart_lookup(mock_cart_client).return_value = supabase_response(sample_cart)

        assert await CartService().get_cart("cart-123") is None
        mock_cart_client.table.return_value.delete.return_value.eq.assert_called_once_with("id", "cart-123")

    @pytest.mark.asyncio
    async def test_require_cart_raises(self, mock_cart_client: MagicMock) -> None:
        """Test that require_cart reports a missing cart."""
        cart_lookup(mock_cart_client).return_value = supabase_response(None)

        with pytest.raises(CartNotFoundError, match="nope"):
            await CartService().require_cart("nope")

    @pytest.mark.asyncio
    async def test_set_cart_upserts_known_fields_with_expiry(
        self,
        mock_cart_client: MagicMock,
        sample_cart: dict,
    ) -> None:
        """Test that saving a cart pushes its expiry forward."""
        sample_cart["unexpected"] = "dropped"
        mock_cart_client.table.return_value.upsert.return_value.execute.return_value = supabase_response(
            [sample_cart]
        )

        await CartService().set_cart(sample_cart)

        row = mock_cart_client.table.return_value.upsert.call_args.args[0]
        assert "unexpected" not in row
        assert row["id"] == "cart-123"
        expires_at = datetime.fromisoformat(row["expires_at"])
        assert expires_at > datetime.now(timezone.utc) + timedelta(days=29)

    @pytest.mark.asyncio
    async def test_delete_cart(self, mock_cart_client: MagicMock) -> None:
        """Test deleting an existing and a missing cart."""
        execute = mock_cart_client.table.return_value.delete.return_value.eq.return_value.execute
        execute.return_value = supabase_response([{"id": "cart-123"}])
        assert await CartService().delete_cart("cart-123") is True

        execute.return_value = supabase_response([])
        assert await CartService().delete_cart("cart-123") is False

    @pytest.mark.asyncio
    async def test_delete_cart_by_payment_reference(self, mock_cart_client: MagicMock) -> None:
        """Test removing the cart that paid."""
        delete_eq = mock_cart_client.table.return_value.delete.return_value.eq
        delete_eq.return_value.execute.return_value = supabase_response([{"id": "cart-123"}])

        assert await CartService().delete_cart_by_payment_reference("ref-1") == 1
        delete_eq.assert_called_once_with("payment_reference", "ref-1")


class TestCouponService:
    """Tests for CouponService."""

    @pytest.fixture
    def cart_service(self, sample_cart: dict) -> AsyncMock:
        sample_cart["payment_reference"] = "ref-old"
        service = AsyncMock()
        service.require_cart.return_value = sample_cart
        service.set_cart.side_effect = lambda cart: cart
        return service

    @staticmethod
    def coupon_lookup(client: MagicMock) -> MagicMock:
        return client.table.return_value.select.return_value.ilike.return_value.eq.return_value.limit.return_value.execute

    @pytest.mark.asyncio
    async def test_validate_coupon_is_case_insensitive(self, mock_coupon_client: MagicMock) -> None:
        """Test lookup by code ignoring case."""
        coupon = {"code": "SAVE10", "name": "Ten off", "amount_off": None, "percent_off": 10, "active": True}
        self.coupon_lookup(mock_coupon_client).return_value = supabase_response([coupon])

        result = await CouponService(cart_service=AsyncMock()).validate_coupon(" save10 ")

        assert result == coupon
        mock_coupon_client.table.return_value.select.return_value.ilike.assert_called_once_with("code", "save10")

    @pytest.mark.asyncio
    async def test_validate_unknown_coupon(self, mock_coupon_client: MagicMock) -> None:
        """Test that unknown or inactive codes are None."""
        self.coupon_lookup(mock_coupon_client).return_value = supabase_response([])

        assert await CouponService(cart_service=AsyncMock()).validate_coupon("NOPE") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["%", "*", "SAVE_0", "SA%", "save\\10", ""])
    async def test_validate_coupon_rejects_patterns(self, mock_coupon_client: MagicMock, code: str) -> None:
        """Test that wildcard characters never reach the coupons table."""
        self.coupon_lookup(mock_coupon_client).return_value = supabase_response(
            [{"code": "SECRET50", "percent_off": 50, "active": True}]
        )

        assert await CouponService(cart_service=AsyncMock()).validate_coupon(code) is None
        mock_coupon_client.table.return_value.select.return_value.ilike.assert_not_called()

    @pytest.mark.asyncio
    async def test_apply_coupon_clears_payment_reference(
        self,
        mock_coupon_client: MagicMock,
        cart_service: AsyncMock,
    ) -> None:
        """Test that applying a coupon forces payment to be re-initiated."""
        self.coupon_lookup(mock_coupon_client).return_value = supabase_response(
            [{"code": "SAVE10", "name": "Ten off", "percent_off": 10, "active": True}]
        )

        cart = await CouponService(cart_service=cart_service).apply_coupon("cart-123", "save10")

        assert cart["coupon"]["code"] == "SAVE10"
        assert cart["coupon"]["percent_off"] == 10
        assert cart["payment_reference"] is None

    @pytest.mark.asyncio
    async def test_apply_invalid_coupon(self, mock_coupon_client: MagicMock, cart_service: AsyncMock) -> None:
        """Test that an invalid code leaves the cart alone."""
        self.coupon_lookup(mock_coupon_client).return_value = supabase_response([])

        with pytest.raises(InvalidCouponError):
            await CouponService(cart_service=cart_service).apply_coupon("cart-123", "NOPE")

        cart_service.set_cart.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove_coupon(
        self,
        mock_coupon_client: MagicMock,
        cart_service: AsyncMock,
        sample_cart: dict,
    ) -> None:
        """Test that removing a coupon also clears the payment reference."""
        sample_cart["coupon"] = {"code": "SAVE10", "percent_off": 10}

        cart = await CouponService(cart_service=cart_service).remove_coupon("cart-123")

        assert cart["coupon"] is None
        assert cart["payment_reference"] is None

    @pytest.mark.asyncio
    async def test_remove_coupon_without_coupon_is_noop(
        self,
        mock_coupon_client: MagicMock,
        cart_service: AsyncMock,
    ) -> None:
        """Test that a cart without coupon is not rewritten."""
        cart = await CouponService(cart_service=cart_service).remove_coupon("cart-123")

        assert cart["payment_reference"] == "ref-old"
        cart_service.set_cart.assert_not_called()


class TestCatalogService:
    """Tests for CatalogService."""

    @pytest.mark.asyncio
    async def test_get_products_keyed_by_id(
        self,
        mock_catalog_client: MagicMock,
        sample_products: list[dict],
    ) -> None:
        """Test batch product lookup."""
        in_ = mock_catalog_client.table.return_value.select.return_value.in_
        in_.return_value.execute.return_value = supabase_response(sample_products)

        products = await CatalogService().get_products([2, 1, 2])

        assert set(products) == {1, 2}
        in_.assert_called_once_with("id", [1, 2])

    @pytest.mark.asyncio
    async def test_refresh_item_prices(
        self,
        mock_catalog_client: MagicMock,
        sample_cart: dict,
        sample_products: list[dict],
    ) -> None:
        """Test that changed catalog prices replace cached cart prices."""
        sample_products[1]["price"] = "175.00"
        sample_cart["items"][0]["price"] = "200.00"
        in_ = mock_catalog_client.table.return_value.select.return_value.in_
        in_.return_value.execute.return_value = supabase_response(sample_products)

        items = await CatalogService().refresh_item_prices(sample_cart["items"])

        assert items[0]["price"] == "200.00"
        assert items[1]["price"] == "175.00"

    @pytest.mark.asyncio
    async def test_refresh_item_prices_unknown_product(
        self,
        mock_catalog_client: MagicMock,
        sample_cart: dict,
    ) -> None:
        """Test that a product missing from the catalog is an error."""
        in_ = mock_catalog_client.table.return_value.select.return_value.in_
        in_.return_value.execute.return_value = supabase_response([])

        with pytest.raises(CatalogError):
            await CatalogService().refresh_item_prices(sample_cart["items"])

    @pytest.mark.asyncio
    async def test_require_delivery_method_missing(self, mock_catalog_client: MagicMock) -> None:
        """Test that an unknown delivery method is an error."""
        cart_lookup(mock_catalog_client).return_value = supabase_response(None)

        with pytest.raises(CatalogError, match="Delivery method 9"):
            await CatalogService().require_delivery_method(9)

    @pytest.mark.asyncio
    async def test_list_delivery_methods_cheapest_first(
        self,
        mock_catalog_client: MagicMock,
        sample_delivery_method: dict,
    ) -> None:
        """Test listing delivery methods ordered by price."""
        order = mock_catalog_client.table.return_value.select.return_value.order
        order.return_value.execute.return_value = supabase_response([sample_delivery_method])

        methods = await CatalogService().list_delivery_methods()

        assert methods == [sample_delivery_method]
        order.assert_called_once_with("price")
