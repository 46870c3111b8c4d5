"""Application settings (env/.env)."""

from __future__ import annotations

from typing import Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

TOOL_MODULES: tuple[str, ...] = (
    "system",
    "company",
    "contact",
    "ticket",
    "project",
    "resource",
    "contract",
    "task",
    "time",
    "config-item",
    "expense",
    "quote",
    "invoice",
)


def _parse_module_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [m.strip().lower() for m in value.split(",") if m.strip()]


class Settings(BaseSettings):
    """Settings for the MCP server and the Autotask REST API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    autotask_username: str = Field(alias="AUTOTASK_USERNAME", min_length=1)
    autotask_secret: str = Field(alias="AUTOTASK_SECRET", min_length=1)
    autotask_integration_code: str = Field(alias="AUTOTASK_INTEGRATION_CODE", min_length=1)
    # Discovered from the zone-information endpoint when unset.
    autotask_api_url: AnyHttpUrl | None = Field(default=None, alias="AUTOTASK_API_URL")

    mcp_transport: Literal["stdio", "http"] = Field(default="stdio", alias="MCP_TRANSPORT")
    mcp_api_key: str | None = Field(default=None, alias="MCP_API_KEY", min_length=1)
    mcp_host: str = Field(default="127.0.0.1", alias="MCP_HOST")
    mcp_port: int = Field(default=5005, alias="MCP_PORT", ge=1, le=65535)

    http_timeout_seconds: float = Field(
        default=30.0,
        alias="HTTP_TIMEOUT_SECONDS",
        gt=0,
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")

    enabled_tools: str | None = Field(default=None, alias="AUTOTASK_ENABLED_TOOLS")
    disabled_tools: str | None = Field(default=None, alias="AUTOTASK_DISABLED_TOOLS")

    def enabled_modules(self) -> list[str]:
        """Tool modules to register, honouring the enable/disable lists."""
        if self.enabled_tools:
            return [m for m in _parse_module_list(self.enabled_tools) if m in TOOL_MODULES]
        if self.disabled_tools:
            disabled = set(_parse_module_list(self.disabled_tools))
            return [m for m in TOOL_MODULES if m not in disabled]
        return list(TOOL_MODULES)
