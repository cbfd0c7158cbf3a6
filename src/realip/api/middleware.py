"""ASGI middleware that replaces the client address with the real IP.

Resolves once per HTTP request and stores the ``ResolutionContext`` in
``scope["state"]`` so downstream dependencies reuse it instead of
resolving again.  The original peer stays available as
``ctx.peer_address``.
"""

from __future__ import annotations

import logging

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from realip.configs.config import get_app_config
from realip.configs.system import ResolverSettings
from realip.core.cidr import is_valid_ip
from realip.core.context import STATE_KEY, ResolutionContext
from realip.core.hooks import ResolverHooks

logger = logging.getLogger(__name__)


class RealIPMiddleware:
    """Rewrite ``scope["client"]`` host with the resolved address."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        config = get_app_config()
        if config.api.override_client_address:
            await self._override(scope, config.resolver)

        await self.app(scope, receive, send)

    async def _override(self, scope: Scope, settings: ResolverSettings) -> None:
        app_state = scope["app"].state if "app" in scope else None
        client = scope.get("client")
        peer = client[0] if client else ""

        ctx = ResolutionContext(
            peer_address=peer,
            headers=Headers(scope=scope),
            settings=settings,
            range_cache=getattr(app_state, "range_cache", None),
            hooks=getattr(app_state, "resolver_hooks", None) or ResolverHooks(),
        )
        scope.setdefault("state", {})[STATE_KEY] = ctx

        real_ip = await ctx.real_ip()
        if is_valid_ip(real_ip) and real_ip != peer:
            port = client[1] if client else 0
            scope["client"] = (real_ip, port)
            logger.debug("Client address rewritten: %s -> %s", peer, real_ip)
