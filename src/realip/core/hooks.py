"""Extension hooks for the trusted-range list and the generic header list.

Both hooks take a list of strings and return the list to use.  The
defaults are identity functions.  ``apply_filter`` isolates failures so
a broken hook never aborts resolution.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from fastapi import Request

from .metrics import HOOK_FAILURES_TOTAL

logger = logging.getLogger(__name__)

ListFilter = Callable[[list[str]], list[str]]


def identity(values: list[str]) -> list[str]:
    return values


@dataclass(frozen=True)
class ResolverHooks:
    """Injected strategy functions consulted during resolution."""

    trust_filter: ListFilter = field(default=identity)
    header_filter: ListFilter = field(default=identity)


def apply_filter(name: str, hook: ListFilter, values: list[str]) -> list[str]:
    """Run *hook* over a copy of *values*; on failure return *values*."""
    try:
        result = hook(list(values))
    except Exception:
        HOOK_FAILURES_TOTAL.labels(hook=name).inc()
        logger.exception("Hook '%s' failed; using unmodified list", name)
        return values

    if not isinstance(result, (list, tuple)) or not all(
        isinstance(v, str) for v in result
    ):
        logger.warning(
            "Hook '%s' returned %s instead of a list of strings; "
            "using unmodified list",
            name,
            type(result).__name__,
        )
        HOOK_FAILURES_TOTAL.labels(hook=name).inc()
        return values
    return list(result)


# ---------------------------------------------------------------------------
# Per-request dependency — reads from app.state
# ---------------------------------------------------------------------------


def get_resolver_hooks(request: Request) -> ResolverHooks:
    """Return the hooks registered on ``app.state`` (identity when unset)."""
    return getattr(request.app.state, "resolver_hooks", None) or ResolverHooks()
