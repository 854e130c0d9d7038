"""API key authentication for admin and inventory-management routes.

Search and listing routes stay anonymous (they are rate limited instead).
Routes that replace the inventory or expose diagnostics depend on
``verify_api_key``, which checks ``X-API-Key`` against the comma-separated
``APP_API_KEYS`` of the app serving the request.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Annotated

from fastapi import Header, HTTPException, Request, status

from showroom.core.config import AppSettings, settings
from showroom.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("inventory-bot, admin-console ")
        {'inventory-bot', 'admin-console'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()
    return {key.strip() for key in keys_string.split(",") if key.strip()}


def fingerprint(key: str) -> str:
    """Short digest that identifies a key in logs without revealing it."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def validate_api_key(provided_key: str, app_settings: AppSettings | None = None) -> None:
    """Check ``provided_key`` against the configured keys.

    Raises:
        AuthenticationAppError: If no keys are configured while auth is
            required, or the key matches none of them.
    """

    cfg = app_settings or settings.app
    if not cfg.api_key_required:
        return

    valid_keys = parse_api_keys(cfg.api_keys)
    if not valid_keys:
        logger.error("auth.misconfigured", extra={"reason": "api_keys_not_configured"})
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    # no short-circuit: every configured key is compared
    matches = [hmac.compare_digest(provided_key.encode(), key.encode()) for key in valid_keys]
    if not any(matches):
        logger.warning("auth.rejected", extra={"key_fingerprint": fingerprint(provided_key)})
        raise AuthenticationAppError(code="invalid_api_key", message="Invalid or missing API key")


async def verify_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding admin and inventory-replacement routes.

    Raises:
        HTTPException: 403 when the key is missing or rejected.
    """

    app_settings = getattr(request.app.state, "settings", None) or settings
    cfg = app_settings.app
    if not cfg.api_key_required:
        return

    if not x_api_key:
        logger.warning("auth.missing_key", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing API key. Provide X-API-Key header.",
        )

    try:
        validate_api_key(x_api_key, cfg)
    except AuthenticationAppError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message) from exc

    logger.debug("auth.accepted", extra={"key_fingerprint": fingerprint(x_api_key)})
