from __future__ import annotations

import asyncio

import pytest

from admitdesk.domain.model import ChangeStatus, RequestDocument, ReviewDocument, SaveNotes
from admitdesk.domain.mutations import (
    DirectInsertStrategy,
    DirectWriteStrategy,
    Preflight,
    Readback,
    RpcStrategy,
)
from admitdesk.domain.ports import BackendError
from tests.support.backend import FakeBackend


def _status_write() -> DirectWriteStrategy[ChangeStatus]:
    return DirectWriteStrategy(
        "applications",
        lambda intent: {"status": intent.new_status},
        returning="id,status,updated_at",
    )


def test_direct_write_checks_visibility_then_updates() -> None:
    backend = FakeBackend()
    intent = ChangeStatus(application_id="app-1", new_status="visa")

    rows = asyncio.run(_status_write()(intent, backend))

    assert backend.targets() == ["applications", "applications"]
    assert [call.kind for call in backend.calls] == ["select", "update"]
    update = backend.calls[1].payload
    assert update["filters"] == {"id": "app-1"}
    assert update["returning"] == "id,status,updated_at"
    values = update["values"]
    assert isinstance(values, dict)
    assert values["status"] == "visa"
    assert "updated_at" in values
    assert rows == [{"id": "app-1", **values}]


def test_direct_write_invisible_row_is_a_denial_without_write() -> None:
    backend = FakeBackend()
    backend.script("select", "applications", [])
    intent = ChangeStatus(application_id="app-1", new_status="visa")

    with pytest.raises(BackendError) as excinfo:
        asyncio.run(_status_write()(intent, backend))

    assert excinfo.value.code == "42501"
    assert "may not exist" in excinfo.value.message
    assert backend.calls_for("update", "applications") == []


def test_direct_write_matching_zero_rows_is_a_denial() -> None:
    backend = FakeBackend()
    backend.script("update", "applications", [])
    intent = ChangeStatus(application_id="app-1", new_status="visa")

    with pytest.raises(BackendError) as excinfo:
        asyncio.run(_status_write()(intent, backend))

    assert excinfo.value.code == "42501"
    assert "row-level security" in excinfo.value.message


def test_rpc_strategy_returns_row_echo() -> None:
    backend = FakeBackend()
    backend.script("rpc", "set_status", {"id": "app-1", "status": "visa"})
    strategy: RpcStrategy[ChangeStatus] = RpcStrategy(
        "set_status",
        lambda intent: {"p_application_id": intent.application_id, "p_status": intent.new_status},
    )

    result = asyncio.run(strategy(ChangeStatus(application_id="app-1", new_status="visa"), backend))

    assert strategy.name == "set_status"
    assert result == {"id": "app-1", "status": "visa"}
    assert backend.calls[0].payload == {"p_application_id": "app-1", "p_status": "visa"}


def test_rpc_strategy_reads_back_after_scalar_echo() -> None:
    backend = FakeBackend()
    backend.script("rpc", "review_doc", True)
    backend.script("select", "student_documents", [{"id": "doc-1", "verified_status": "verified"}])
    strategy: RpcStrategy[ReviewDocument] = RpcStrategy(
        "review_doc",
        lambda intent: {"p_document_id": intent.document_id},
        readback=Readback("student_documents", columns="id,verified_status"),
    )

    result = asyncio.run(strategy(ReviewDocument(document_id="doc-1", status="verified"), backend))

    assert result == [{"id": "doc-1", "verified_status": "verified"}]
    select = backend.calls_for("select", "student_documents")[0]
    assert select.payload == {"columns": "id,verified_status", "filters": {"id": "doc-1"}}


def test_rpc_strategy_without_readback_passes_scalar_through() -> None:
    backend = FakeBackend()
    backend.script("rpc", "set_status", None)
    strategy: RpcStrategy[ChangeStatus] = RpcStrategy("set_status", lambda intent: {})

    result = asyncio.run(strategy(ChangeStatus(application_id="a", new_status="visa"), backend))

    assert result is None
    assert backend.targets("select") == []


def test_direct_insert_with_preflight_and_label() -> None:
    backend = FakeBackend()
    strategy: DirectInsertStrategy[RequestDocument] = DirectInsertStrategy(
        "document_requests",
        lambda intent: {"document_type": intent.document_type},
        label="insert",
        preflight=Preflight("applications"),
    )
    intent = RequestDocument(application_id="app-1", student_id="stu-1", document_type="passport")

    rows = asyncio.run(strategy(intent, backend))

    assert strategy.name == "document_requests:insert"
    assert [call.kind for call in backend.calls] == ["select", "insert"]
    assert rows == [{"id": "document_requests-1", "document_type": "passport"}]


def test_direct_insert_preflight_hides_missing_application() -> None:
    backend = FakeBackend()
    backend.script("select", "applications", [])
    strategy: DirectInsertStrategy[RequestDocument] = DirectInsertStrategy(
        "document_requests",
        lambda intent: {"document_type": intent.document_type},
        preflight=Preflight("applications"),
    )
    intent = RequestDocument(application_id="app-1", student_id="stu-1", document_type="passport")

    with pytest.raises(BackendError) as excinfo:
        asyncio.run(strategy(intent, backend))

    assert excinfo.value.code == "42501"
    assert backend.targets("insert") == []


def test_direct_writes_to_one_table_are_named_by_written_columns() -> None:
    notes_write: DirectWriteStrategy[SaveNotes] = DirectWriteStrategy(
        "applications",
        lambda intent: {"internal_notes": intent.notes},
        returning="id,internal_notes,updated_at",
    )

    assert _status_write().name == "applications:update(status)"
    assert notes_write.name == "applications:update(internal_notes)"


def test_rpc_strategy_keeps_scalar_echo_when_readback_fails() -> None:
    backend = FakeBackend()
    backend.script("rpc", "review_doc", True)
    backend.script(
        "select",
        "student_documents",
        BackendError("permission denied for table student_documents", code="42501"),
    )
    strategy: RpcStrategy[ReviewDocument] = RpcStrategy(
        "review_doc",
        lambda intent: {"p_document_id": intent.document_id},
        readback=Readback("student_documents", columns="id,verified_status"),
    )

    result = asyncio.run(strategy(ReviewDocument(document_id="doc-1", status="verified"), backend))

    assert result is True
    assert [call.kind for call in backend.calls] == ["rpc", "select"]
