"""Best-effort audit trail for document actions."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from admitdesk.domain.ports import BackendError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from admitdesk.domain.ports import RowGateway

log = getLogger(__name__)

AUDIT_TABLE = "audit_logs"


@dataclass(slots=True)
class DocumentAuditTrail:
    """Writes ``audit_logs`` rows; a failed write never fails the caller.

    ``dispatch`` schedules the write as a detached task so the caller does not
    wait on it; ``drain`` waits for those tasks.
    """

    rows: RowGateway
    tenant_id: str | None = None
    user_id: str | None = None
    _pending: set[asyncio.Task[bool]] = field(default_factory=set["asyncio.Task[bool]"])

    def dispatch(
        self,
        action: str,
        *,
        entity_id: str | None,
        details: Mapping[str, object] | None = None,
    ) -> asyncio.Task[bool]:
        task = asyncio.get_running_loop().create_task(
            self.record(action, entity_id=entity_id, details=details)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*tuple(self._pending), return_exceptions=True)

    async def record(
        self,
        action: str,
        *,
        entity_id: str | None,
        details: Mapping[str, object] | None = None,
    ) -> bool:
        if not self.tenant_id:
            log.warning("Skipping audit event %s for %s: no tenant id", action, entity_id)
            return False

        payload: dict[str, object] = {
            "action": action,
            "entity": "document",
            "entity_id": entity_id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "changes": dict(details or {}),
            "user_agent": None,
            "ip_address": None,
        }
        try:
            await self.rows.insert(AUDIT_TABLE, [payload])
        except BackendError as exc:
            log.error("Failed to write audit event %s: %s", action, exc.describe())
            return False
        return True
