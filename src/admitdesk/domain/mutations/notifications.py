"""Fire-and-forget outbound notifications (e-mail via a server function)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from admitdesk.domain.ports import BackendError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from admitdesk.domain.ports import EdgeFunctions

log = getLogger(__name__)


@dataclass(slots=True)
class OutboundNotifier:
    """Schedules server-function calls as detached tasks.

    The caller's outcome never waits on or changes with these calls. Failures
    are logged only. Tasks are kept referenced until done so the loop does
    not drop them; ``drain`` lets an entry point wait before shutting down.
    """

    functions: EdgeFunctions
    function_name: str
    _pending: set[asyncio.Task[None]] = field(default_factory=set["asyncio.Task[None]"])

    def dispatch(self, body: Mapping[str, object]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(self._send(dict(body)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*tuple(self._pending), return_exceptions=True)

    async def _send(self, body: dict[str, object]) -> None:
        try:
            await self.functions.invoke(self.function_name, body)
        except BackendError as exc:
            log.error("Outbound notification %s failed: %s", self.function_name, exc.describe())
        except Exception:
            log.exception("Outbound notification %s crashed", self.function_name)
        else:
            log.info("Outbound notification %s sent", self.function_name)
