"""Ports for the hosted backend the mutation pipeline writes through."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

type Row = dict[str, object]
type Filters = Mapping[str, object]


class BackendError(RuntimeError):
    """Structured failure reported by any backend call.

    Mirrors the error envelope of the backend: a machine ``code`` plus a
    human ``message`` with optional ``details`` and ``hint``.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    def __repr__(self) -> str:
        return f"BackendError(code={self.code!r}, message={self.message!r})"

    def describe(self) -> str:
        parts = [self.message.strip(), (self.details or "").strip(), (self.hint or "").strip()]
        text = " ".join(part for part in parts if part)
        if self.code:
            text = f"{text} (code: {self.code})"
        return text


@runtime_checkable
class RemoteProcedures(Protocol):
    """Named server-side operations."""

    async def rpc(self, name: str, params: Mapping[str, object]) -> object: ...


@runtime_checkable
class RowGateway(Protocol):
    """Row-level access to named collections, filtered by equality."""

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters,
        limit: int | None = None,
    ) -> list[Row]: ...

    async def update(
        self,
        table: str,
        values: Mapping[str, object],
        *,
        filters: Filters,
        returning: str | None = None,
    ) -> list[Row]: ...

    async def insert(
        self,
        table: str,
        rows: Sequence[Mapping[str, object]],
        *,
        returning: str | None = None,
    ) -> list[Row]: ...

    async def upsert(
        self,
        table: str,
        row: Mapping[str, object],
        *,
        on_conflict: str,
    ) -> None: ...


@runtime_checkable
class ObjectStore(Protocol):
    """Binary object storage addressed by bucket and path."""

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        *,
        content_type: str,
    ) -> str: ...


@runtime_checkable
class EdgeFunctions(Protocol):
    """Server functions invoked for side effects such as outbound email."""

    async def invoke(self, name: str, body: Mapping[str, object]) -> object: ...


@runtime_checkable
class Backend(RemoteProcedures, RowGateway, ObjectStore, EdgeFunctions, Protocol):
    """Everything the mutation pipeline consumes from the hosted backend."""
