from __future__ import annotations

import pytest

from fakes import FakeClient, FakeContext


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def context(client: FakeClient) -> FakeContext:
    return FakeContext(client)


@pytest.fixture
def autotask_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTOTASK_USERNAME", "api@example.com")
    monkeypatch.setenv("AUTOTASK_SECRET", "s3cret")
    monkeypatch.setenv("AUTOTASK_INTEGRATION_CODE", "CODE123")
    monkeypatch.setenv("AUTOTASK_API_URL", "https://webservices5.autotask.net/atservicesrest/v1.0")
    monkeypatch.delenv("MCP_API_KEY", raising=False)
    monkeypatch.delenv("AUTOTASK_ENABLED_TOOLS", raising=False)
    monkeypatch.delenv("AUTOTASK_DISABLED_TOOLS", raising=False)
