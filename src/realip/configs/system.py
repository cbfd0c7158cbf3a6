from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field

VERSION = "1.7.0"

DEFAULT_CLOUDFLARE_URLS = [
    "https://www.cloudflare.com/ips-v4",
    "https://www.cloudflare.com/ips-v6",
]


class ResolverSettings(BaseModel):
    """Real-IP resolution policy, read fresh for every request."""

    model_config = ConfigDict(frozen=True)

    require_trusted_proxy: bool = Field(
        default=True,
        description="Only honour forwarding headers sent by trusted proxies",
    )
    include_cdn_ranges: bool = Field(
        default=False,
        description="Add Cloudflare's published ranges to the trusted set",
    )
    custom_trusted_ranges: str = Field(
        default="",
        description="Operator trusted proxies, one CIDR or IP per line",
    )
    show_debug: bool = Field(
        default=False,
        description="Expose the diagnostic view to admin callers",
    )


class CloudflareConfig(BaseModel):
    """Upstream published range lists."""

    urls: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CLOUDFLARE_URLS),
        description="Published v4 and v6 range lists",
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=8),
        description="Per-request timeout for each list fetch",
    )
    cache_ttl: timedelta = Field(
        default=timedelta(hours=24),
        description="How long a fetched range set stays fresh",
    )
    user_agent: str = Field(
        default=f"realip/{VERSION}",
        description="User-Agent sent to the upstream",
    )


class SchedulerConfig(BaseModel):
    """Background refresh of the CDN range cache."""

    enabled: bool = Field(default=True, description="Run the refresh cron")
    interval: timedelta = Field(
        default=timedelta(days=1), description="Refresh period"
    )
    initial_delay_min: timedelta = Field(
        default=timedelta(minutes=5),
        description="Lower bound of the randomised first-run delay",
    )
    initial_delay_max: timedelta = Field(
        default=timedelta(minutes=30),
        description="Upper bound of the randomised first-run delay",
    )
    settings_poll_interval: timedelta = Field(
        default=timedelta(seconds=60),
        description="How often settings are polled for CDN toggles",
    )


class APIConfig(BaseModel):
    """API configuration settings."""

    admin_token: str = Field(
        default="",
        description="Bearer token for privileged endpoints (empty disables them)",
    )
    override_client_address: bool = Field(
        default=False,
        description="Rewrite the ASGI client address with the resolved IP",
    )


class ThirdPartyConfig(BaseModel):
    """Configuration for third-party integrations."""

    redis_uri: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URI",
    )
    redis_connect_timeout: timedelta = Field(
        default=timedelta(seconds=2),
        description="Connect and ping timeout before falling back to the local cache",
    )


class LoggingConfig(BaseModel):
    """Root logger configuration."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=True, description="Emit JSON lines instead of coloured text"
    )


class TracingConfig(BaseModel):
    """OpenTelemetry tracing export settings."""

    enabled: bool = Field(default=False, description="Export traces via OTLP")
    endpoint: str = Field(default="", description="OTLP HTTP traces endpoint")
    username: str = Field(default="", description="Basic-auth user")
    password: str = Field(default="", description="Basic-auth password")
    service_name: str = Field(default="realip", description="Service name")
    sample_rate: float = Field(default=1.0, description="Root sampling ratio")
    excluded_urls: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"],
        description="Paths excluded from tracing and HTTP metrics",
    )
