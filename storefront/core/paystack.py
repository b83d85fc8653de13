"""Paystack API client with timing and retry logic."""

import logging
import time
from functools import lru_cache
from typing import Any

import httpx
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from storefront.core.config import get_settings

logger = logging.getLogger(__name__)

# Retry configuration
MIN_WAIT_SECONDS = 1
MAX_WAIT_SECONDS = 8

# Latency thresholds for logging (milliseconds)
SLOW_CALL_THRESHOLD_MS = 2000


class PaystackError(Exception):
    """Paystack rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize Paystack error.

        Args:
            message: Error message, usually Paystack's own "message" field.
            status_code: HTTP status code if a response was received.
        """
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PaystackTransientError(PaystackError):
    """Retryable failure: transport error, rate limit or 5xx response."""


class PaystackClient:
    """Thin wrapper over the Paystack REST API.

    Transient failures are retried with exponential backoff. Callers supply
    the transaction reference, so every retry of one logical call reuses it.
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        timeout: float = 10.0,
        max_attempts: int = 3,
        max_wait_seconds: float = MAX_WAIT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {secret_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )
        self._max_attempts = max_attempts
        self._max_wait_seconds = max_wait_seconds

    def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        currency: str,
    ) -> dict[str, Any]:
        """Open a new transaction.

        Args:
            email: Buyer email.
            amount: Amount in minor currency units.
            reference: Unique transaction reference.
            currency: ISO currency code.

        Returns:
            dict: The response "data" object (authorization_url, access_code, reference).

        Raises:
            PaystackError: If Paystack rejects the request or retries are exhausted.
        """
        body = self._request(
            "POST",
            "/transaction/initialize",
            {
                "email": email,
                "amount": amount,
                "reference": reference,
                "currency": currency,
            },
        )
        return body.get("data") or {}

    def refund(self, transaction_reference: str) -> dict[str, Any]:
        """Request a full refund of a transaction.

        Returns:
            dict: The full Paystack response body.
        """
        return self._request("POST", "/refund", {"transaction": transaction_reference})

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def _request(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a request, retrying transient failures."""
        retryer = Retrying(
            retry=retry_if_exception_type(PaystackTransientError),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=min(MIN_WAIT_SECONDS, self._max_wait_seconds),
                max=self._max_wait_seconds,
            ),
            reraise=True,
        )
        start_time = time.perf_counter()
        try:
            return retryer(self._send, method, path, payload)
        except PaystackTransientError as e:
            logger.error(
                "Paystack %s %s failed after %d attempts: %s",
                method,
                path,
                self._max_attempts,
                e.message,
            )
            raise
        finally:
            latency_ms = (time.perf_counter() - start_time) * 1000
            if latency_ms > SLOW_CALL_THRESHOLD_MS:
                logger.warning("SLOW Paystack call: %s %s - %.2fms", method, path, latency_ms)
            else:
                logger.info("Paystack call: %s %s - %.2fms", method, path, latency_ms)

    def _send(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a single request and classify the outcome."""
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.TransportError as e:
            logger.warning("Paystack transport error on %s: %s", path, e)
            raise PaystackTransientError(f"Could not reach Paystack: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("Paystack returned %d on %s", response.status_code, path)
            raise PaystackTransientError(
                f"Paystack unavailable (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise PaystackError(
                "Paystack returned a non-JSON response",
                status_code=response.status_code,
            ) from e

        if response.is_error or not body.get("status"):
            raise PaystackError(
                body.get("message") or f"Paystack request failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        return body


@lru_cache
def get_paystack_client() -> PaystackClient:
    """Get cached Paystack client configured from settings.

    If the secret key is not configured, calls fail with Paystack's own
    authorization error.
    """
    settings = get_settings()
    if not settings.paystack_secret_key:
        logger.warning("Paystack secret key not configured. Payments will not work.")
    return PaystackClient(
        secret_key=settings.paystack_secret_key,
        base_url=settings.paystack_base_url,
        timeout=settings.paystack_timeout_seconds,
        max_attempts=settings.paystack_max_retries,
    )


def close_paystack_client() -> None:
    """Close the cached client, if one was created."""
    if get_paystack_client.cache_info().currsize:
        get_paystack_client().close()
        get_paystack_client.cache_clear()
