"""
User authentication middleware for SubSlayer API.

Validates the caller's bearer token against the auth provider's user
endpoint (Supabase-compatible `GET /auth/v1/user`) and extracts identity.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import httpx
from cachetools import TTLCache
from fastapi import HTTPException, Request, status

from subslayer.config import AUTH_CACHE_MAX_SIZE, AUTH_CACHE_TTL_SECONDS
from subslayer.infrastructure import settings
from subslayer.observability.logging import get_logger
from subslayer.subscriptions.repository import UserRepository

logger = get_logger(__name__)

USER_ENDPOINT = "/auth/v1/user"


@dataclass
class AuthenticatedUser:
    """Represents an authenticated user."""

    id: str
    email: str

    def __str__(self) -> str:
        return f"User({self.id}, {self.email})"


# Tokens auto-expire from the cache so revoked sessions stop working
_token_cache: TTLCache[str, AuthenticatedUser] = TTLCache(
    maxsize=AUTH_CACHE_MAX_SIZE, ttl=AUTH_CACHE_TTL_SECONDS
)


def _remember_user(user: AuthenticatedUser) -> None:
    """Record the user so batch jobs can address them by email."""
    try:
        UserRepository.upsert(user.id, user.email)
    except (FileNotFoundError, sqlite3.Error) as e:
        logger.warning("Could not record user %s: %s", user.id, e)


async def verify_token(token: str, client: httpx.AsyncClient | None = None) -> AuthenticatedUser:
    """
    Verify a bearer token and return the user it belongs to.

    Args:
        token: Access token from the Authorization header
        client: Optional HTTP client (a fresh one is created otherwise)

    Raises:
        HTTPException: 401 if the token is rejected, 503 if the auth
            service cannot be reached, 500 if no auth URL is configured
    """
    if token in _token_cache:
        return _token_cache[token]

    if not settings.AUTH_URL:
        logger.error("Auth URL not configured (SUBSLAYER_AUTH_URL / SUPABASE_URL)")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration: auth service not set",
        )

    headers = {"Authorization": f"Bearer {token}"}
    if settings.AUTH_API_KEY:
        headers["apikey"] = settings.AUTH_API_KEY
    url = settings.AUTH_URL.rstrip("/") + USER_ENDPOINT

    try:
        if client is None:
            async with httpx.AsyncClient() as owned:
                response = await owned.get(url, headers=headers, timeout=10.0)
        else:
            response = await client.get(url, headers=headers, timeout=10.0)
    except httpx.TimeoutException:
        logger.warning("Token validation timed out")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from None
    except httpx.RequestError as e:
        logger.error("Token validation request failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from e

    if response.status_code != 200:
        logger.warning("Invalid token (auth status %s)", response.status_code)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = response.json()
    if not isinstance(payload, dict) or not payload.get("id"):
        logger.warning("Auth service returned no user id")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = AuthenticatedUser(id=str(payload["id"]), email=payload.get("email") or "")
    _token_cache[token] = user
    _remember_user(user)

    logger.info("Authenticated user: %s (cache size: %d)", user, len(_token_cache))
    return user


def _extract_bearer_token(authorization: str | None) -> str:
    """Extract token from Authorization header."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return parts[1]


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    FastAPI dependency to get the current authenticated user.

    Usage:
        @router.get("/endpoint")
        async def endpoint(user: AuthenticatedUser = Depends(get_current_user)):
            ...
    """
    token = _extract_bearer_token(request.headers.get("Authorization"))
    return await verify_token(token)


def clear_token_cache() -> None:
    """Clear the token cache. Useful for testing."""
    _token_cache.clear()
