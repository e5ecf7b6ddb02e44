"""Classify backend failures into the taxonomy the pipeline acts on.

Rule order matters. A message can match several rules, and capability-missing
must win because it changes control flow (the chain falls through) while the
other kinds only change what the user is told.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from admitdesk.domain.model import ErrorKind, PermissionReason

if TYPE_CHECKING:
    from admitdesk.domain.ports import BackendError

CAPABILITY_MISSING_CODES: Final = frozenset(
    {"RPC_MISSING", "PGRST202", "PGRST204", "42P01", "42703"}
)
CAPABILITY_MISSING_PHRASES: Final = ("could not find the function", "schema cache")

PERMISSION_CODES: Final = frozenset({"42501", "28000"})
PERMISSION_PHRASES: Final = (
    "permission",
    "not authorized",
    "not authenticated",
    "not linked to",
    "tenant_id is null",
    "not associated with a university",
    "different university",
    "app tenant",
    "not properly configured",
)

# Checked top to bottom; the first reason with a matching phrase wins.
PERMISSION_REASON_PHRASES: Final[tuple[tuple[PermissionReason, tuple[str, ...]], ...]] = (
    (
        PermissionReason.ACCOUNT_NOT_LINKED,
        (
            "tenant_id is null",
            "not linked to university",
            "not linked to a university",
            "not associated with a university",
            "tenant not found",
        ),
    ),
    (PermissionReason.ENTITY_MISCONFIGURED, ("app tenant is null", "not properly configured")),
    (PermissionReason.DIFFERENT_ORGANIZATION, ("different university", "app tenant")),
    (PermissionReason.NOT_AUTHENTICATED, ("not authenticated",)),
    (PermissionReason.ROLE_NOT_PERMITTED, ("role",)),
)

VALIDATION_CODES: Final = frozenset({"22P02"})
VALIDATION_PHRASES: Final = ("enum", "invalid input value", "invalid status")

NOT_FOUND_CODES: Final = frozenset({"P0002", "PGRST116"})
NOT_FOUND_PHRASES: Final = ("not found",)

CLIENT_PRECONDITION_CODE: Final = "CLIENT_PRECONDITION"


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    """A failure together with the taxonomy bucket it belongs to."""

    kind: ErrorKind
    raw_message: str
    raw_code: str | None = None
    reason: PermissionReason | None = None
    details: str | None = None
    hint: str | None = None
    field: str | None = None

    @property
    def is_capability_missing(self) -> bool:
        return self.kind is ErrorKind.CAPABILITY_MISSING


def _contains_any(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)


def _permission_reason(code: str, message: str) -> PermissionReason:
    for reason, phrases in PERMISSION_REASON_PHRASES:
        if _contains_any(message, phrases):
            return reason
    if code == "28000":
        return PermissionReason.NOT_AUTHENTICATED
    return PermissionReason.GENERIC


def _kind_and_reason(code: str, message: str) -> tuple[ErrorKind, PermissionReason | None]:
    if code in CAPABILITY_MISSING_CODES or _contains_any(message, CAPABILITY_MISSING_PHRASES):
        return ErrorKind.CAPABILITY_MISSING, None
    if code in PERMISSION_CODES or _contains_any(message, PERMISSION_PHRASES):
        return ErrorKind.PERMISSION_DENIED, _permission_reason(code, message)
    if code in VALIDATION_CODES or _contains_any(message, VALIDATION_PHRASES):
        return ErrorKind.VALIDATION_FAILED, None
    if code in NOT_FOUND_CODES or _contains_any(message, NOT_FOUND_PHRASES):
        return ErrorKind.NOT_FOUND, None
    return ErrorKind.UNKNOWN, None


def classify(error: BackendError) -> ClassifiedError:
    """Assign ``error`` to exactly one taxonomy bucket.

    Pure over the error's code and message; classifying the same error twice
    yields equal results.
    """

    code = (error.code or "").strip()
    message = error.message or ""
    kind, reason = _kind_and_reason(code.upper(), message.lower())
    return ClassifiedError(
        kind=kind,
        raw_message=message,
        raw_code=code or None,
        reason=reason,
        details=error.details,
        hint=error.hint,
    )


def precondition_failure(field: str, message: str) -> ClassifiedError:
    """Validation error raised on the caller's side before any backend call."""

    return ClassifiedError(
        kind=ErrorKind.VALIDATION_FAILED,
        raw_message=message,
        raw_code=CLIENT_PRECONDITION_CODE,
        field=field,
    )
