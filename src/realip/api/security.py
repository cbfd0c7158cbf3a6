"""Admin gate for the privileged endpoints (debug view, manual sync)."""

import hmac
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from realip.configs.config import AppConfig, get_app_config, get_resolver_settings
from realip.configs.system import ResolverSettings

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def require_admin(
    config: Annotated[AppConfig, Depends(get_app_config)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(_bearer)
    ],
) -> None:
    """Reject callers without the configured admin bearer token.

    An empty ``api.admin_token`` disables every privileged endpoint.
    """
    expected = config.api.admin_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin endpoints are disabled",
        )
    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode(), expected.encode()
    ):
        logger.info("Rejected privileged request with a bad token")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin token required",
        )


def require_debug_enabled(
    settings: Annotated[ResolverSettings, Depends(get_resolver_settings)],
) -> None:
    """Hide the debug view entirely unless ``resolver.show_debug`` is on."""
    if not settings.show_debug:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
