"""Configuration management for the CLI tool."""

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """CLI configuration settings."""

    host: str = Field(
        default="localhost",
        description="Server host",
    )
    port: int = Field(
        default=8080,
        description="Server port",
    )
    api_prefix: str = Field(
        default="/api/v1",
        description="API path prefix",
    )
    admin_token: str = Field(
        default="",
        description="Bearer token for privileged endpoints",
    )
    timeout: float = Field(
        default=15.0,
        description="Request timeout in seconds",
    )

    @property
    def base_url(self) -> str:
        """Get the base URL for the API."""
        return f"http://{self.host}:{self.port}"

    def url(self, path: str) -> str:
        """Full URL for an endpoint under the API prefix."""
        return f"{self.base_url}{self.api_prefix}{path}"
