"""Trust registry: operator ranges + CDN ranges → one trusted set."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from realip.configs.system import ResolverSettings

from .cidr import CidrRange, parse_range
from .hooks import ListFilter, apply_filter, identity

logger = logging.getLogger(__name__)

TrustSet = tuple[CidrRange, ...]

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")


def parse_range_lines(text: str) -> list[str]:
    """Split a one-range-per-line block, trimming and dropping blanks."""
    if not text:
        return []
    lines = (line.strip() for line in _LINE_SPLIT.split(text))
    return [line for line in lines if line]


def dedupe(values: Sequence[str]) -> list[str]:
    """Trim and drop repeated literals, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        value = value.strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


def trusted_ranges(
    settings: ResolverSettings,
    cdn_ranges: Sequence[str] = (),
    trust_filter: ListFilter = identity,
) -> TrustSet:
    """Assemble the trusted proxy set for one resolution.

    Custom ranges come first, CDN ranges are appended when enabled, the
    filter hook may then rewrite the list.  Literals are deduplicated
    before parsing; malformed literals are dropped.
    """
    literals = parse_range_lines(settings.custom_trusted_ranges)
    if settings.include_cdn_ranges and cdn_ranges:
        literals.extend(cdn_ranges)

    literals = apply_filter("trust_filter", trust_filter, literals)

    result: dict[tuple[bytes, int], CidrRange] = {}
    for literal in dedupe(literals):
        cidr = parse_range(literal)
        if cidr is None:
            logger.warning("Ignoring malformed trusted range %r", literal)
            continue
        # "203.0.113.10" and "203.0.113.10/32" are the same range
        result.setdefault((cidr.network, cidr.prefix), cidr)
    return tuple(result.values())
