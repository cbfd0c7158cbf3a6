"""Real-IP resolver: the trust-gated header selection policy.

Decision order:

1. Invalid peer address → ``127.0.0.1`` sentinel.
2. ``require_trusted_proxy`` and the peer is not trusted → peer address.
   Headers from untrusted peers are never read.
3. Peer inside the CDN's own ranges → ``CF-Connecting-IP``, then
   ``True-Client-IP``, each only when it holds a public address.
4. Otherwise the generic forwarding headers, in order.  For
   ``X-Forwarded-For`` the left-most public entry wins.
5. Nothing usable → peer address.

``resolve`` is pure; per-request memoization lives in
``ResolutionContext``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from realip.configs.system import ResolverSettings

from .cidr import CidrRange, is_public_ip, is_valid_ip, matches
from .hooks import ListFilter, apply_filter, identity
from .metrics import RESOLUTIONS_TOTAL

LOOPBACK_SENTINEL = "127.0.0.1"

CDN_HEADERS = (
    "CF-Connecting-IP",
    "True-Client-IP",
)

X_FORWARDED_FOR = "X-Forwarded-For"

DEFAULT_FORWARDED_HEADERS = (
    X_FORWARDED_FOR,
    "X-Real-IP",
    "Client-IP",
    "X-Forwarded",
    "Forwarded-For",
    "Forwarded",
)

ResolutionSource = Literal[
    "invalid_peer", "untrusted_peer", "cdn_header", "forwarded_header", "peer"
]


@dataclass(frozen=True)
class Resolution:
    """The resolved address plus the trust decisions that produced it."""

    address: str
    from_trusted_proxy: bool
    from_cdn: bool
    source: ResolutionSource


def _header_lookup(headers: Mapping[str, str]) -> dict[str, str]:
    """Lowercased name -> value, with repeated field lines joined by ", ".

    Starlette's ``Headers.items()`` yields one pair per raw line, so a
    header sent twice is combined the way a proxy or CGI server would.
    """
    lookup: dict[str, str] = {}
    for key, value in headers.items():
        name = str(key).lower()
        if name in lookup:
            lookup[name] = f"{lookup[name]}, {value}"
        else:
            lookup[name] = str(value)
    return lookup


def _public_value(value: str | None) -> str | None:
    if not value:
        return None
    value = value.strip()
    return value if is_public_ip(value) else None


def _first_public_forwarded_for(value: str) -> str | None:
    for entry in value.split(","):
        candidate = _public_value(entry)
        if candidate is not None:
            return candidate
    return None


def resolve_detailed(
    peer_address: str,
    headers: Mapping[str, str],
    settings: ResolverSettings,
    trust_set: Iterable[CidrRange | str],
    cdn_ranges: Sequence[CidrRange | str] = (),
    header_filter: ListFilter = identity,
) -> Resolution:
    """Resolve the client address and report how it was chosen."""
    if not is_valid_ip(peer_address):
        return Resolution(LOOPBACK_SENTINEL, False, False, "invalid_peer")
    peer = peer_address.strip()

    from_trusted = matches(peer, trust_set)
    if settings.require_trusted_proxy and not from_trusted:
        return Resolution(peer, False, False, "untrusted_peer")

    lookup = _header_lookup(headers)

    from_cdn = settings.include_cdn_ranges and matches(peer, cdn_ranges)
    if from_cdn:
        for name in CDN_HEADERS:
            candidate = _public_value(lookup.get(name.lower()))
            if candidate is not None:
                return Resolution(candidate, from_trusted, True, "cdn_header")
        return Resolution(peer, from_trusted, True, "peer")

    names = apply_filter(
        "header_filter", header_filter, list(DEFAULT_FORWARDED_HEADERS)
    )
    for name in names:
        value = lookup.get(name.lower())
        if not value:
            continue
        if name.lower() == X_FORWARDED_FOR.lower():
            candidate = _first_public_forwarded_for(value)
        else:
            candidate = _public_value(value)
        if candidate is not None:
            return Resolution(candidate, from_trusted, False, "forwarded_header")

    return Resolution(peer, from_trusted, False, "peer")


def resolve(
    peer_address: str,
    headers: Mapping[str, str],
    settings: ResolverSettings,
    trust_set: Iterable[CidrRange | str],
    cdn_ranges: Sequence[CidrRange | str] = (),
    header_filter: ListFilter = identity,
) -> str:
    """Return the originating client address for one request."""
    resolution = resolve_detailed(
        peer_address, headers, settings, trust_set, cdn_ranges, header_filter
    )
    RESOLUTIONS_TOTAL.labels(source=resolution.source).inc()
    return resolution.address
