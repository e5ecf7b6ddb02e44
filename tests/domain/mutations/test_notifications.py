from __future__ import annotations

import asyncio
import logging

import pytest

from admitdesk.domain.mutations import OutboundNotifier
from admitdesk.domain.ports import BackendError
from tests.support.backend import FakeBackend


def test_dispatch_runs_detached_and_drains() -> None:
    backend = FakeBackend()
    notifier = OutboundNotifier(backend, "send-application-update")

    async def scenario() -> int:
        notifier.dispatch({"applicationId": "app-1", "type": "status_change"})
        pending = notifier.pending
        await notifier.drain()
        return pending

    pending = asyncio.run(scenario())

    assert pending == 1
    assert notifier.pending == 0
    assert backend.calls_for("invoke", "send-application-update")[0].payload == {
        "applicationId": "app-1",
        "type": "status_change",
    }


def test_failed_notification_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR)
    backend = FakeBackend()
    backend.script("invoke", "send-application-update", BackendError("SMTP down", code="500"))
    notifier = OutboundNotifier(backend, "send-application-update")

    async def scenario() -> None:
        task = notifier.dispatch({"applicationId": "app-1"})
        await notifier.drain()
        assert task.done()
        assert task.exception() is None

    asyncio.run(scenario())

    assert "SMTP down" in caplog.text
