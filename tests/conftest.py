from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.support.backend import FakeBackend

if TYPE_CHECKING:
    from collections.abc import Iterator

_BACKEND_ENV = (
    "ADMITDESK_BACKEND_URL",
    "ADMITDESK_API_KEY",
    "ADMITDESK_ACCESS_TOKEN",
    "ADMITDESK_TENANT_ID",
    "ADMITDESK_USER_ID",
    "ADMITDESK_DOCUMENTS_BUCKET",
)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    for name in _BACKEND_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ADMITDESK_BACKEND_URL", "https://project.example.co/")
    monkeypatch.setenv("ADMITDESK_API_KEY", " anon-key ")
    yield monkeypatch
