"""Session-scoped memory of server operations known to be unavailable."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger

from admitdesk.domain.model import ErrorKind
from admitdesk.domain.ports import BackendError

from .classification import ClassifiedError, classify

log = getLogger(__name__)

MISSING_CAPABILITY_CODE = "RPC_MISSING"


def _normalize_name(name: str | None) -> str:
    return (name or "").strip().lower()


@dataclass(slots=True)
class CapabilityRegistry:
    """Set of operation names that failed as capability-missing this session.

    Entries never expire: once marked, an operation is skipped until the
    registry is discarded with its session. The registry is only a shortcut;
    chains behave the same when it is empty.
    """

    _unavailable: set[str] = field(default_factory=set[str])

    def is_known_unavailable(self, name: str) -> bool:
        normalized = _normalize_name(name)
        if not normalized:
            return False
        return normalized in self._unavailable

    def mark_unavailable(
        self,
        name: str,
        error: ClassifiedError | BackendError | None = None,
    ) -> None:
        normalized = _normalize_name(name)
        if not normalized:
            return
        if error is not None:
            classified = error if isinstance(error, ClassifiedError) else classify(error)
            if classified.kind is not ErrorKind.CAPABILITY_MISSING:
                return
        if normalized not in self._unavailable:
            log.info("Marking backend operation %s as unavailable for this session", name)
        self._unavailable.add(normalized)

    def unavailable(self) -> frozenset[str]:
        return frozenset(self._unavailable)

    def __len__(self) -> int:
        return len(self._unavailable)


def missing_capability_error(name: str) -> BackendError:
    """Error standing in for a call skipped because ``name`` is known unavailable."""

    return BackendError(
        f"{name} is not available on this backend",
        code=MISSING_CAPABILITY_CODE,
    )
