"""FastAPI application entry point."""

import logging
from typing import Annotated

from fastapi import Depends, FastAPI

from realip.api.middleware import RealIPMiddleware
from realip.api.routes import health_router, router
from realip.configs.config import get_app_config
from realip.configs.system import VERSION
from realip.core.cdn import build_range_cache
from realip.core.cron import build_cron
from realip.core.hooks import ResolverHooks
from realip.core.metrics import init_metrics
from realip.infra.lifespan import inject
from realip.infra.logging import setup_logging
from realip.infra.telemetry import init_telemetry

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _cache: Annotated[None, Depends(build_range_cache)],
    _cron: Annotated[None, Depends(build_cron)],
):
    """Each dependency owns its own setup and teardown."""
    logger.info("realip %s started", VERSION)
    yield
    logger.info("realip shutting down")


def create_app(hooks: ResolverHooks | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    *hooks* registers the trust-set and header-list filters; identity
    filters are used when omitted.
    """
    config = get_app_config()
    setup_logging(config.logging, quiet_paths=config.tracing.excluded_urls)

    app = FastAPI(
        title="realip",
        description="Trustworthy client-IP resolution behind proxies and CDNs",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.resolver_hooks = hooks or ResolverHooks()

    app.add_middleware(RealIPMiddleware)
    init_telemetry(app, config.tracing)
    init_metrics(app, config.tracing)

    app.include_router(health_router)
    app.include_router(router)

    return app
