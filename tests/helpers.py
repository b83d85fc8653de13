"""Shared test helpers: tokens, webhook signatures and Supabase responses."""

import hashlib
import hmac
import os
import time
from typing import Any
from unittest.mock import MagicMock

import jwt

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_paystack_secret")

TEST_JWT_SECRET = os.environ["JWT_SECRET"]
TEST_PAYSTACK_SECRET = os.environ["PAYSTACK_SECRET_KEY"]
BUYER_EMAIL = "buyer@example.com"


def make_token(
    email: str | None = BUYER_EMAIL,
    role: str | None = "customer",
    expires_in: int = 3600,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """Mint an HS256 access token for tests."""
    now = int(time.time())
    claims: dict[str, Any] = {
        "sub": "770e8400-e29b-41d4-a716-446655440000",
        "iat": now,
        "exp": now + expires_in,
    }
    if email:
        claims["email"] = email
    if role:
        claims["role"] = role
    return jwt.encode(claims, secret, algorithm="HS256")


def sign(payload: bytes, secret: str = TEST_PAYSTACK_SECRET) -> str:
    """Paystack-style HMAC-SHA512 hex signature of a raw body."""
    return hmac.new(secret.encode(), payload, hashlib.sha512).hexdigest()


def supabase_response(data: Any) -> MagicMock:
    """Build a Supabase execute() result."""
    response = MagicMock()
    response.data = data
    return response
