"""Post-write verification against the row echoed by the server."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import cast

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VerifiedResult:
    """Either a comparison of requested and persisted value, or ``unverifiable``."""

    requested_value: str | None
    persisted_value: str | None = None
    matched: bool = False
    unverifiable: bool = False
    row: Mapping[str, object] | None = None

    @classmethod
    def not_confirmed(cls, requested_value: str | None) -> VerifiedResult:
        return cls(requested_value=requested_value, unverifiable=True)


def first_row(payload: object) -> Mapping[str, object] | None:
    """Normalize a response that may be a single object or an array of rows."""

    if isinstance(payload, Mapping):
        row = cast("Mapping[str, object]", payload)
        return row or None
    if isinstance(payload, Sequence) and not isinstance(payload, (str, bytes)):
        rows = cast("Sequence[object]", payload)
        if not rows:
            return None
        head = rows[0]
        if isinstance(head, Mapping):
            return cast("Mapping[str, object]", head) or None
    return None


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def verify(requested_value: str | None, payload: object, *, field: str) -> VerifiedResult:
    """Compare the persisted ``field`` of the echoed row with ``requested_value``.

    No row means the write cannot be confirmed, even though the call itself
    reported no error. A mismatch is logged and flagged, never raised.
    """

    row = first_row(payload)
    if row is None:
        log.warning("Write returned no row; persistence of %r cannot be confirmed", field)
        return VerifiedResult.not_confirmed(requested_value)

    persisted = _as_text(row.get(field))
    matched = persisted == requested_value
    if not matched:
        log.warning(
            "Persisted %s differs from the requested value: requested=%r, saved=%r",
            field,
            requested_value,
            persisted,
        )
    return VerifiedResult(
        requested_value=requested_value,
        persisted_value=persisted,
        matched=matched,
        row=dict(row),
    )
