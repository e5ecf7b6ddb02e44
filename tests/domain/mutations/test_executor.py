from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from admitdesk.domain.model import AttemptOutcome, ChangeStatus, ErrorKind
from admitdesk.domain.mutations import CapabilityRegistry, StrategyChainExecutor
from admitdesk.domain.ports import Backend, BackendError
from tests.support.backend import FakeBackend, missing_function, permission_denied


@dataclass(slots=True)
class _ScriptedStrategy:
    name: str
    result: object = None
    error: BackendError | None = None
    calls: int = 0

    async def __call__(self, intent: ChangeStatus, backend: Backend) -> object:
        _ = (intent, backend)
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def _intent() -> ChangeStatus:
    return ChangeStatus(application_id="app-1", new_status="visa")


def _missing(name: str) -> _ScriptedStrategy:
    return _ScriptedStrategy(name, error=missing_function(name))


def test_authoritative_error_stops_the_chain() -> None:
    a, b = _missing("a"), _missing("b")
    c = _ScriptedStrategy("c", error=permission_denied("tenant_id is NULL"))
    d = _ScriptedStrategy("d", result={"status": "visa"})
    executor = StrategyChainExecutor(FakeBackend())

    result = asyncio.run(executor.execute(_intent(), [a, b, c, d]))

    assert [attempt.strategy_name for attempt in result.attempts] == ["a", "b", "c"]
    assert [attempt.outcome for attempt in result.attempts] == [
        AttemptOutcome.CAPABILITY_MISSING,
        AttemptOutcome.CAPABILITY_MISSING,
        AttemptOutcome.FAILED,
    ]
    assert d.calls == 0
    assert not result.succeeded
    assert result.error is not None
    assert result.error.kind is ErrorKind.PERMISSION_DENIED


def test_first_success_wins() -> None:
    a = _missing("a")
    b = _ScriptedStrategy("b", result=[{"status": "visa"}])
    c = _ScriptedStrategy("c", result=[{"status": "visa"}])
    executor = StrategyChainExecutor(FakeBackend())

    result = asyncio.run(executor.execute(_intent(), [a, b, c]))

    assert result.succeeded
    assert result.winner == "b"
    assert result.response == [{"status": "visa"}]
    assert result.invoked == ["a", "b"]
    assert c.calls == 0


def test_missing_strategies_are_remembered_and_skipped() -> None:
    registry = CapabilityRegistry()
    executor = StrategyChainExecutor(FakeBackend(), registry)
    a = _missing("a")
    b = _ScriptedStrategy("b", result={"status": "visa"})

    asyncio.run(executor.execute(_intent(), [a, b]))
    second = asyncio.run(executor.execute(_intent(), [a, b]))

    assert a.calls == 1
    assert registry.is_known_unavailable("a")
    assert second.attempts[0].outcome is AttemptOutcome.SKIPPED
    assert second.invoked == ["b"]


def test_exhausted_chain_reports_last_missing_capability() -> None:
    registry = CapabilityRegistry()
    executor = StrategyChainExecutor(FakeBackend(), registry)

    result = asyncio.run(executor.execute(_intent(), [_missing("a"), _missing("b")]))

    assert not result.succeeded
    assert result.error is not None
    assert result.error.kind is ErrorKind.CAPABILITY_MISSING
    assert registry.unavailable() == frozenset({"a", "b"})


def test_all_skipped_chain_still_reports_missing_capability() -> None:
    registry = CapabilityRegistry()
    registry.mark_unavailable("a")
    a = _missing("a")
    executor = StrategyChainExecutor(FakeBackend(), registry)

    result = asyncio.run(executor.execute(_intent(), [a]))

    assert a.calls == 0
    assert result.invoked == []
    assert result.error is not None
    assert result.error.is_capability_missing


def test_empty_chain_is_a_configuration_error() -> None:
    executor = StrategyChainExecutor(FakeBackend())

    with pytest.raises(ValueError, match="No strategies"):
        asyncio.run(executor.execute(_intent(), []))
