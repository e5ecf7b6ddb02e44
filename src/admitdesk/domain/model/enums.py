"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ApplicationStatus(StrEnum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    SCREENING = "screening"
    UNDER_REVIEW = "under_review"
    CONDITIONAL_OFFER = "conditional_offer"
    UNCONDITIONAL_OFFER = "unconditional_offer"
    CAS_LOA = "cas_loa"
    VISA = "visa"
    ENROLLED = "enrolled"
    WITHDRAWN = "withdrawn"
    DEFERRED = "deferred"
    REJECTED = "rejected"


APPLICATION_STATUS_LABELS: dict[ApplicationStatus, str] = {
    ApplicationStatus.DRAFT: "Draft",
    ApplicationStatus.SUBMITTED: "Submitted",
    ApplicationStatus.SCREENING: "Under Review",
    ApplicationStatus.UNDER_REVIEW: "Under Review",
    ApplicationStatus.CONDITIONAL_OFFER: "Conditional Offer",
    ApplicationStatus.UNCONDITIONAL_OFFER: "Unconditional Offer",
    ApplicationStatus.CAS_LOA: "CAS / LOA Issued",
    ApplicationStatus.VISA: "Visa Stage",
    ApplicationStatus.ENROLLED: "Enrolled",
    ApplicationStatus.WITHDRAWN: "Withdrawn",
    ApplicationStatus.DEFERRED: "Deferred",
    ApplicationStatus.REJECTED: "Rejected",
}

OFFER_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.CONDITIONAL_OFFER, ApplicationStatus.UNCONDITIONAL_OFFER}
)


def status_label(status: str | None) -> str:
    """Human label for a status value; unknown values label as themselves."""

    if status is None:
        return "Unknown"
    try:
        return APPLICATION_STATUS_LABELS[ApplicationStatus(status)]
    except ValueError:
        return status


class DocumentReviewStatus(StrEnum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    READY_FOR_UNIVERSITY_REVIEW = "ready_for_university_review"


class DocumentSource(StrEnum):
    STUDENT_DOCUMENTS = "student_documents"
    APPLICATION_DOCUMENTS = "application_documents"


class ErrorKind(StrEnum):
    """Taxonomy assigned to every failed backend call."""

    CAPABILITY_MISSING = "capability_missing"
    PERMISSION_DENIED = "permission_denied"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class PermissionReason(StrEnum):
    ACCOUNT_NOT_LINKED = "account_not_linked"
    ENTITY_MISCONFIGURED = "entity_misconfigured"
    DIFFERENT_ORGANIZATION = "different_organization"
    NOT_AUTHENTICATED = "not_authenticated"
    ROLE_NOT_PERMITTED = "role_not_permitted"
    GENERIC = "generic"


class MutationState(StrEnum):
    """States of one mutation call; see ``MutationPipeline.run``."""

    IDLE = "idle"
    RUNNING_SIDE_EFFECTS = "running_side_effects"
    ABORTED = "aborted"
    RUNNING_STRATEGIES = "running_strategies"
    STRATEGY_SUCCEEDED = "strategy_succeeded"
    VERIFYING = "verifying"
    MATCHED = "matched"
    UNVERIFIABLE = "unverifiable"
    CHAIN_EXHAUSTED_WITH_ERROR = "chain_exhausted_with_error"
    REPORTED = "reported"


TERMINAL_STATES: frozenset[MutationState] = frozenset(
    {
        MutationState.ABORTED,
        MutationState.MATCHED,
        MutationState.UNVERIFIABLE,
        MutationState.CHAIN_EXHAUSTED_WITH_ERROR,
    }
)


class AttemptOutcome(StrEnum):
    SKIPPED = "skipped"
    CAPABILITY_MISSING = "capability_missing"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


class NotificationVariant(StrEnum):
    DEFAULT = "default"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"
