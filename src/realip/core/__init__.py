"""Real-IP resolution behind reverse proxies and CDNs.

Layers, leaves first:

1. **CIDR matcher** (``cidr``): byte-wise containment over IPv4/IPv6
   plus public-address validation.
2. **Trust registry** (``trust``): operator ranges + CDN ranges,
   deduplicated and passed through the trust filter hook.
3. **CDN range cache** (``cdn``): Cloudflare's published lists with a
   24 h TTL, stale-while-failing.
4. **Resolver** (``resolver``): the trust-gated header policy.
5. **Resolution context** (``context``): per-request memoization and
   the FastAPI dependencies.
"""

from .cdn import CdnRangeCache, SyncResult, build_range_cache, get_range_cache
from .cidr import CidrRange, is_public_ip, is_valid_ip, matches, parse_range
from .context import DebugInfo, ResolutionContext, get_real_ip, get_resolution_context
from .hooks import ResolverHooks, get_resolver_hooks
from .resolver import LOOPBACK_SENTINEL, Resolution, resolve, resolve_detailed
from .trust import TrustSet, parse_range_lines, trusted_ranges

__all__ = [
    "LOOPBACK_SENTINEL",
    "CdnRangeCache",
    "CidrRange",
    "DebugInfo",
    "Resolution",
    "ResolutionContext",
    "ResolverHooks",
    "SyncResult",
    "TrustSet",
    "build_range_cache",
    "get_range_cache",
    "get_real_ip",
    "get_resolution_context",
    "get_resolver_hooks",
    "is_public_ip",
    "is_valid_ip",
    "matches",
    "parse_range",
    "parse_range_lines",
    "resolve",
    "resolve_detailed",
    "trusted_ranges",
]
