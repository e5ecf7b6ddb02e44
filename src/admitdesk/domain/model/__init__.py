"""Domain model: enums and mutation intents."""

from __future__ import annotations

from .enums import (
    APPLICATION_STATUS_LABELS,
    OFFER_STATUSES,
    TERMINAL_STATES,
    ApplicationStatus,
    AttemptOutcome,
    DocumentReviewStatus,
    DocumentSource,
    ErrorKind,
    MutationState,
    NotificationVariant,
    PermissionReason,
    status_label,
)
from .intents import (
    ChangeStatus,
    FileAttachment,
    MutationIntent,
    RequestDocument,
    ReviewDocument,
    SaveNotes,
)

__all__ = [
    "APPLICATION_STATUS_LABELS",
    "OFFER_STATUSES",
    "TERMINAL_STATES",
    "ApplicationStatus",
    "AttemptOutcome",
    "ChangeStatus",
    "DocumentReviewStatus",
    "DocumentSource",
    "ErrorKind",
    "FileAttachment",
    "MutationIntent",
    "MutationState",
    "NotificationVariant",
    "PermissionReason",
    "RequestDocument",
    "ReviewDocument",
    "SaveNotes",
    "status_label",
]
