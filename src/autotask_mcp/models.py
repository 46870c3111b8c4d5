"""Structured models returned by MCP tools."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ToolResult(BaseModel):
    data: Any = None
    message: str


class CreatedRecord(BaseModel):
    id: int = Field(ge=0)


class ConnectionStatus(BaseModel):
    connected: bool
    api_url: str
    request_count: int | None = None
    request_limit: int | None = None
