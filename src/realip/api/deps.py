"""Centralized FastAPI dependency type aliases.

Import these ``*Dep`` aliases in route modules instead of manually
writing ``Annotated[T, Depends(get_xxx)]`` everywhere.  Each alias
corresponds to a single ``get_*`` factory and can be overridden in
tests via ``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from realip.configs.config import AppConfig, get_app_config, get_resolver_settings
from realip.configs.system import ResolverSettings
from realip.core.cdn import CdnRangeCache, get_range_cache
from realip.core.context import ResolutionContext, get_real_ip, get_resolution_context

from .security import require_admin, require_debug_enabled

AppConfigDep = Annotated[AppConfig, Depends(get_app_config)]
ResolverSettingsDep = Annotated[ResolverSettings, Depends(get_resolver_settings)]
RangeCacheDep = Annotated[CdnRangeCache, Depends(get_range_cache)]
ResolutionContextDep = Annotated[ResolutionContext, Depends(get_resolution_context)]
RealIPDep = Annotated[str, Depends(get_real_ip)]
AdminDep = Annotated[None, Depends(require_admin)]
DebugEnabledDep = Annotated[None, Depends(require_debug_enabled)]
