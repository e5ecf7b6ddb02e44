"""Map mutation results to user-facing notifications.

The permission sub-reason titles are the contract users act on: they decide
between contacting support, signing in again, or accepting that the action is
not theirs to take. Keep them distinct.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Final

from admitdesk.domain.model import (
    ChangeStatus,
    ErrorKind,
    NotificationVariant,
    PermissionReason,
    RequestDocument,
    ReviewDocument,
    SaveNotes,
    status_label,
)

from .classification import CLIENT_PRECONDITION_CODE

if TYPE_CHECKING:
    from admitdesk.domain.model import MutationIntent

    from .classification import ClassifiedError
    from .side_effects import SideEffectFailure
    from .verification import VerifiedResult

ERROR_DURATION_SECONDS: Final = 10.0
DEFAULT_DURATION_SECONDS: Final = 5.0

PRECONDITION_TITLES: Final[dict[str, str]] = {
    "application_id": "Application not loaded",
    "student_id": "Student link missing",
    "document_type": "Missing information",
    "tenant_id": "Missing tenant context",
    "source": "Review not available",
}


@dataclass(frozen=True, slots=True)
class UserNotification:
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT
    code: str | None = None
    duration_seconds: float = DEFAULT_DURATION_SECONDS

    def render(self) -> str:
        text = f"{self.title}: {self.description}"
        if self.code and self.code not in self.description:
            text = f"{text} (Error: {self.code})"
        return text


def format_document_type(document_type: str | None) -> str:
    if not document_type:
        return "Document"
    return " ".join(part[:1].upper() + part[1:] for part in document_type.split("_"))


def _generic_support_text(code: str | None) -> str:
    return (
        "An unexpected error occurred. Please try again or contact support. "
        f"(Error: {code or 'unknown'})"
    )


def _permission_copy(error: ClassifiedError, subject: str) -> tuple[str, str]:
    message = error.raw_message
    match error.reason:
        case PermissionReason.ACCOUNT_NOT_LINKED:
            return (
                "Account not linked to university",
                "Your account is not properly linked to a university. "
                "Please contact support to verify your account configuration.",
            )
        case PermissionReason.ENTITY_MISCONFIGURED:
            return (
                "Application configuration issue",
                "This application's program or university is not properly configured. "
                "Please contact support to resolve this issue.",
            )
        case PermissionReason.DIFFERENT_ORGANIZATION:
            return (
                "Permission denied",
                f"This {subject} belongs to a different university. "
                "You can only update applications to your own university's programs.",
            )
        case PermissionReason.NOT_AUTHENTICATED:
            return (
                "Session expired",
                "You are not signed in anymore. Please log in again and retry.",
            )
        case PermissionReason.ROLE_NOT_PERMITTED:
            return (
                "Role permission denied",
                f"Your account role does not have permission to update this {subject}. "
                "Only university partners and staff can make this change.",
            )
        case _:
            if len(message) > 20 and "permission denied" not in message.lower():
                return "Permission denied", message
            return (
                "Permission denied",
                f"You don't have permission to update this {subject}. "
                "This may be due to account configuration. Please try refreshing the page "
                f"or contact support. (Error: {error.raw_code or 'unknown'})",
            )


def _validation_copy(error: ClassifiedError, intent: MutationIntent) -> tuple[str, str]:
    if error.raw_code == CLIENT_PRECONDITION_CODE:
        title = PRECONDITION_TITLES.get(error.field or "", "Missing information")
        return title, error.raw_message
    if isinstance(intent, ChangeStatus):
        return (
            "Invalid status",
            "The selected status is not valid. Please select a different status.",
        )
    return (
        "Invalid value",
        "One of the submitted values is not valid. Please review it and try again.",
    )


def _error_copy(error: ClassifiedError, intent: MutationIntent) -> tuple[str, str]:
    subject = intent.subject
    match error.kind:
        case ErrorKind.CAPABILITY_MISSING:
            # Users cannot tell "not deployed" from "not allowed"; never say the
            # former.
            return (
                "Update blocked",
                f"This {subject} cannot be updated from your account right now. "
                "Please refresh the page or contact support.",
            )
        case ErrorKind.PERMISSION_DENIED:
            return _permission_copy(error, subject)
        case ErrorKind.VALIDATION_FAILED:
            return _validation_copy(error, intent)
        case ErrorKind.NOT_FOUND:
            return (
                f"{subject.capitalize()} not found",
                f"This {subject} may have been deleted or moved. "
                "Please refresh the page and try again.",
            )
        case _:
            if len(error.raw_message) > 10:
                return "Update failed", error.raw_message
            return "Update failed", _generic_support_text(error.raw_code)


def _local_time() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True)
class OutcomeReporter:
    """Builds the notification shown for every terminal mutation state."""

    clock: Callable[[], datetime] = field(default=_local_time)

    def failure(self, intent: MutationIntent, error: ClassifiedError) -> UserNotification:
        title, description = _error_copy(error, intent)
        return UserNotification(
            title=title,
            description=description,
            variant=NotificationVariant.DESTRUCTIVE,
            code=error.raw_code or "unknown",
            duration_seconds=ERROR_DURATION_SECONDS,
        )

    def aborted(self, intent: MutationIntent, failure: SideEffectFailure) -> UserNotification:
        notification = self.failure(intent, failure.error)
        if failure.error.kind is ErrorKind.UNKNOWN:
            return UserNotification(
                title="Upload failed",
                description=notification.description,
                variant=notification.variant,
                code=notification.code,
                duration_seconds=notification.duration_seconds,
            )
        return notification

    def unverifiable(self, intent: MutationIntent) -> UserNotification:
        if isinstance(intent, ChangeStatus):
            title = "Update may not have saved"
            what = "status update"
        elif isinstance(intent, SaveNotes):
            title = "Save may not have completed"
            what = "notes update"
        else:
            title = "Change may not have saved"
            what = f"{intent.subject} update"
        return UserNotification(
            title=title,
            description=f"The {what} completed but could not be verified. "
            "Please refresh and confirm before trying again.",
            variant=NotificationVariant.WARNING,
            duration_seconds=ERROR_DURATION_SECONDS,
        )

    def success(self, intent: MutationIntent, verified: VerifiedResult) -> UserNotification:
        persisted = verified.persisted_value
        if isinstance(intent, ChangeStatus):
            return UserNotification(
                title="Status updated",
                description=f"Application status changed to {status_label(persisted)}",
            )
        if isinstance(intent, SaveNotes):
            saved_at = self.clock()
            return UserNotification(
                title="Notes saved",
                description=f"Internal notes updated successfully at {saved_at:%H:%M:%S}",
            )
        if isinstance(intent, ReviewDocument):
            return UserNotification(
                title="Saved",
                description=f"Document review updated to {format_document_type(persisted)}.",
            )
        if isinstance(intent, RequestDocument):
            return UserNotification(
                title="Document requested",
                description=f"A request for {format_document_type(persisted)} "
                "has been sent to the student.",
            )
        return UserNotification(title="Saved", description=f"Saved {persisted}.")

    def attachment_uploaded(self) -> UserNotification:
        return UserNotification(
            title="Document uploaded",
            description="The document has been successfully attached to the application.",
        )
