"""HTTP surface: current IP, health, debug view, manual CDN sync."""

from fastapi import APIRouter

from realip.core.cdn import SyncResult
from realip.core.context import DebugInfo

from .deps import (
    AdminDep,
    DebugEnabledDep,
    RangeCacheDep,
    RealIPDep,
    ResolutionContextDep,
    ResolverSettingsDep,
)
from .models import IPResponse

router = APIRouter(prefix="/api/v1", tags=["realip"])
health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ip", response_model=IPResponse)
async def current_ip(real_ip: RealIPDep) -> IPResponse:
    """Return the caller's resolved client address."""
    return IPResponse(ip=real_ip)


@router.get("/debug", response_model=DebugInfo)
async def debug_view(
    _enabled: DebugEnabledDep,
    _admin: AdminDep,
    ctx: ResolutionContextDep,
) -> DebugInfo:
    """Diagnostic view of the trust decision for this request.

    404 unless ``resolver.show_debug`` is on, 403 without the admin token.
    """
    return await ctx.debug_info()


@router.post("/cdn/sync", response_model=SyncResult)
async def sync_cdn_ranges(
    _admin: AdminDep,
    settings: ResolverSettingsDep,
    cache: RangeCacheDep,
) -> SyncResult:
    """Refetch the CDN ranges now.

    The outcome is advisory: a failed upstream fetch still answers 200
    with ``status="failed"`` and the existing cache is kept.
    """
    return await cache.sync(settings)
