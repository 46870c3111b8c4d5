from __future__ import annotations

import pytest
from pydantic import ValidationError

from autotask_mcp.settings import TOOL_MODULES, Settings


def test_settings_load_from_env(autotask_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MCP_API_KEY", "k")
    s = Settings()
    assert s.autotask_username == "api@example.com"
    assert s.autotask_integration_code == "CODE123"
    assert s.mcp_api_key == "k"
    assert s.mcp_transport == "stdio"
    assert s.mcp_port == 5005


def test_credentials_are_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTOTASK_USERNAME", "api@example.com")
    monkeypatch.delenv("AUTOTASK_SECRET", raising=False)
    monkeypatch.delenv("AUTOTASK_INTEGRATION_CODE", raising=False)
    with pytest.raises(ValidationError):
        Settings()


def test_all_modules_by_default(autotask_env: None) -> None:
    assert Settings().enabled_modules() == list(TOOL_MODULES)


def test_enabled_list_wins(autotask_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTOTASK_ENABLED_TOOLS", "System, ticket,bogus")
    monkeypatch.setenv("AUTOTASK_DISABLED_TOOLS", "ticket")
    assert Settings().enabled_modules() == ["system", "ticket"]


def test_disabled_list(autotask_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTOTASK_DISABLED_TOOLS", "quote,expense")
    modules = Settings().enabled_modules()
    assert "quote" not in modules
    assert "expense" not in modules
    assert modules[0] == "system"
