"""Cron endpoint authentication for SubSlayer API"""

from __future__ import annotations

import secrets

from fastapi import Header, HTTPException, status

from subslayer.config import resolve_cron_secret
from subslayer.infrastructure import settings
from subslayer.observability.logging import get_logger

logger = get_logger(__name__)


class CronSecretAuth:
    """
    Shared-secret authentication for scheduler-triggered endpoints.

    The secret comes from SUBSLAYER_CRON_SECRET (or CRON_SECRET). In
    development an unset secret leaves the endpoint open; in production it
    is a misconfiguration.
    """

    def __init__(self, secret: str | None = None):
        self.secret = secret if secret is not None else resolve_cron_secret()
        if not self.secret:
            logger.warning("Cron secret not set - cron endpoints are unprotected in development")

    def verify(self, authorization: str | None = Header(None)) -> bool:
        """
        Verify the cron secret from the Authorization header.

        Expected format: "Bearer {secret}"
        """
        if not self.secret:
            if settings.is_production():
                logger.error("Cron secret not configured in production")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Server misconfiguration: cron secret not set",
                )
            return True

        if not authorization:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            scheme, token = authorization.split()
            if scheme.lower() != "bearer":
                raise ValueError("Invalid authentication scheme")
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        if not secrets.compare_digest(token, self.secret):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

        return True


def require_cron_auth(authorization: str | None = Header(None)) -> bool:
    """
    Dependency for cron endpoints.

    Reads the secret on each call so rotating it needs no restart.
    """
    return CronSecretAuth().verify(authorization)
