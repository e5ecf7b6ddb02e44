"""Candidate server operations that can fulfil a mutation intent."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from admitdesk.domain.ports import BackendError

from .verification import first_row

if TYPE_CHECKING:
    from admitdesk.domain.model import MutationIntent
    from admitdesk.domain.ports import Backend, Row

log = getLogger(__name__)

ROW_SECURITY_CODE = "42501"


class Strategy[TIntent: MutationIntent](Protocol):
    """One way of fulfilling an intent; raises ``BackendError`` on failure."""

    @property
    def name(self) -> str: ...

    async def __call__(self, intent: TIntent, backend: Backend) -> object: ...


def utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


def _target_id(intent: MutationIntent) -> str:
    return intent.target_id


@dataclass(frozen=True, slots=True)
class Preflight[TIntent: MutationIntent]:
    """Visibility check run before a direct row write.

    An empty read means the row is missing or hidden by row-level security;
    the two cannot be told apart, so both are reported as a denial.
    """

    table: str
    key: Callable[[TIntent], str] = _target_id
    key_column: str = "id"

    async def check(self, intent: TIntent, backend: Backend) -> None:
        rows = await backend.select(
            self.table,
            columns=self.key_column,
            filters={self.key_column: self.key(intent)},
            limit=1,
        )
        if not rows:
            raise BackendError(
                f"Update blocked. This {intent.subject} may not exist, "
                "or you may not have permission to access it.",
                code=ROW_SECURITY_CODE,
            )


@dataclass(frozen=True, slots=True)
class Readback[TIntent: MutationIntent]:
    """Re-read the authoritative row after an RPC that only echoes a scalar."""

    table: str
    columns: str
    key: Callable[[TIntent], str] = _target_id
    key_column: str = "id"

    async def __call__(self, intent: TIntent, backend: Backend) -> list[Row]:
        return await backend.select(
            self.table,
            columns=self.columns,
            filters={self.key_column: self.key(intent)},
            limit=1,
        )


@dataclass(frozen=True, slots=True)
class RpcStrategy[TIntent: MutationIntent]:
    """Named server-side operation with its own authorization checks.

    Once the call returns the write has committed. A failed readback leaves
    the scalar echo in place, which verifies as unverifiable, rather than
    blaming the operation and letting a fallback write the row again.
    """

    function: str
    params: Callable[[TIntent], Mapping[str, object]]
    readback: Readback[TIntent] | None = None

    @property
    def name(self) -> str:
        return self.function

    async def __call__(self, intent: TIntent, backend: Backend) -> object:
        payload = await backend.rpc(self.function, self.params(intent))
        if self.readback is None or first_row(payload) is not None:
            return payload
        try:
            return await self.readback(intent, backend)
        except BackendError as exc:
            log.warning(
                "%s: readback of %s failed after commit: %s",
                self.function,
                self.readback.table,
                exc.describe(),
            )
            return payload


@dataclass(frozen=True, slots=True)
class DirectWriteStrategy[TIntent: MutationIntent]:
    """Last-resort row update guarded by a pre-flight visibility check.

    A write that matches zero rows under row-level security is a denial, not
    a success, and is raised as such.

    The name lists the returned columns other than the key, which are the
    columns written. A missing column on one write then does not mark other
    writes to the same table unavailable.
    """

    table: str
    values: Callable[[TIntent], Mapping[str, object]]
    returning: str
    key: Callable[[TIntent], str] = _target_id
    key_column: str = "id"
    stamp_updated_at: bool = True

    @property
    def name(self) -> str:
        written = [
            column.strip()
            for column in self.returning.split(",")
            if column.strip() not in {self.key_column, "updated_at", ""}
        ]
        return f"{self.table}:update({','.join(written)})"

    async def __call__(self, intent: TIntent, backend: Backend) -> object:
        await Preflight(self.table, key=self.key, key_column=self.key_column).check(
            intent, backend
        )
        values = dict(self.values(intent))
        if self.stamp_updated_at:
            values["updated_at"] = utcnow_iso()
        rows = await backend.update(
            self.table,
            values,
            filters={self.key_column: self.key(intent)},
            returning=self.returning,
        )
        if not rows:
            raise BackendError(
                f"Update blocked by row-level security. You don't have permission "
                f"to update this {intent.subject}.",
                code=ROW_SECURITY_CODE,
            )
        return rows


@dataclass(frozen=True, slots=True)
class DirectInsertStrategy[TIntent: MutationIntent]:
    """Row insert; ``label`` distinguishes schema variants of the same table."""

    table: str
    row: Callable[[TIntent], Mapping[str, object]]
    returning: str = "*"
    label: str | None = None
    preflight: Preflight[TIntent] | None = None

    @property
    def name(self) -> str:
        return f"{self.table}:{self.label or 'insert'}"

    async def __call__(self, intent: TIntent, backend: Backend) -> object:
        if self.preflight is not None:
            await self.preflight.check(intent, backend)
        rows = await backend.insert(self.table, [self.row(intent)], returning=self.returning)
        if not rows:
            raise BackendError(
                f"Insert blocked by row-level security. You don't have permission "
                f"to add records to this {intent.subject}.",
                code=ROW_SECURITY_CODE,
            )
        return rows
