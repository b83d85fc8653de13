"""Product catalog and delivery method lookups."""

import logging

from storefront.core.supabase import get_supabase_client
from storefront.models.cart import CartItem
from storefront.models.catalog import DeliveryMethod, Product
from storefront.services.pricing import to_decimal

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """A cart references a product or delivery method that does not exist."""


class CatalogService:
    """Service for reading products and delivery methods."""

    def __init__(self) -> None:
        """Initialize catalog service with Supabase client."""
        self.client = get_supabase_client()

    async def get_products(self, product_ids: list[int]) -> dict[int, Product]:
        """Get several products at once, keyed by ID.

        Missing IDs are simply absent from the result.
        """
        if not product_ids:
            return {}

        response = (
            self.client.table("products")
            .select("*")
            .in_("id", sorted(set(product_ids)))
            .execute()
        )

        return {int(row["id"]): row for row in response.data or []}

    async def list_delivery_methods(self) -> list[DeliveryMethod]:
        """List all delivery methods, cheapest first."""
        response = (
            self.client.table("delivery_methods")
            .select("*")
            .order("price")
            .execute()
        )

        return response.data or []

    async def get_delivery_method(self, delivery_method_id: int) -> DeliveryMethod | None:
        """Get a delivery method by ID.

        Args:
            delivery_method_id: The delivery method's ID.

        Returns:
            dict | None: The delivery method or None if not found.
        """
        response = (
            self.client.table("delivery_methods")
            .select("*")
            .eq("id", delivery_method_id)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def require_delivery_method(self, delivery_method_id: int) -> DeliveryMethod:
        """Get a delivery method or raise CatalogError."""
        delivery_method = await self.get_delivery_method(delivery_method_id)
        if not delivery_method:
            raise CatalogError(f"Delivery method {delivery_method_id} not found")
        return delivery_method

    async def refresh_item_prices(self, items: list[CartItem]) -> list[CartItem]:
        """Re-validate cart item prices against the current catalog.

        Items whose cached price differs from the product's current price are
        updated in place.

        Args:
            items: Cart items (product_id, price, ...).

        Returns:
            list[dict]: The same items with current prices.

        Raises:
            CatalogError: If an item references an unknown product.
        """
        products = await self.get_products([int(item["product_id"]) for item in items])

        for item in items:
            product = products.get(int(item["product_id"]))
            if product is None:
                raise CatalogError(f"Product {item['product_id']} in cart not found")

            if to_decimal(item["price"]) != to_decimal(product["price"]):
                logger.info(
                    "Price of product %s changed from %s to %s",
                    item["product_id"],
                    item["price"],
                    product["price"],
                )
                item["price"] = product["price"]

        return items
