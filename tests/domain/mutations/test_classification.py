from __future__ import annotations

import pytest

from admitdesk.domain.model import ErrorKind, PermissionReason
from admitdesk.domain.mutations import classify, precondition_failure
from admitdesk.domain.mutations.classification import CLIENT_PRECONDITION_CODE
from admitdesk.domain.ports import BackendError


@pytest.mark.parametrize(
    ("code", "message"),
    [
        ("PGRST202", "Could not find the function public.update_application_review"),
        ("PGRST204", "Could not find the 'application_id' column of 'document_requests'"),
        ("42P01", 'relation "public.offers" does not exist'),
        ("42703", 'column "application_id" does not exist'),
        ("RPC_MISSING", "update_application_review is not available on this backend"),
        (None, "Could not find the function public.x(p_id) in the schema cache"),
    ],
)
def test_missing_capabilities_are_recognised(code: str | None, message: str) -> None:
    classified = classify(BackendError(message, code=code))

    assert classified.kind is ErrorKind.CAPABILITY_MISSING
    assert classified.is_capability_missing


def test_capability_missing_wins_over_permission_wording() -> None:
    error = BackendError(
        "permission check skipped: could not find the function in the schema cache",
        code="PGRST202",
    )

    assert classify(error).kind is ErrorKind.CAPABILITY_MISSING


@pytest.mark.parametrize(
    ("message", "reason"),
    [
        ("University tenant_id is NULL for this user", PermissionReason.ACCOUNT_NOT_LINKED),
        ("User is not linked to university", PermissionReason.ACCOUNT_NOT_LINKED),
        ("App tenant is NULL", PermissionReason.ENTITY_MISCONFIGURED),
        ("Program is not properly configured", PermissionReason.ENTITY_MISCONFIGURED),
        ("Application belongs to a different university", PermissionReason.DIFFERENT_ORGANIZATION),
        ("App tenant does not match user tenant", PermissionReason.DIFFERENT_ORGANIZATION),
        ("User is not authenticated", PermissionReason.NOT_AUTHENTICATED),
        ("Permission denied: role student cannot update", PermissionReason.ROLE_NOT_PERMITTED),
        ("permission denied for table applications", PermissionReason.GENERIC),
    ],
)
def test_permission_sub_reasons(message: str, reason: PermissionReason) -> None:
    classified = classify(BackendError(message, code="42501"))

    assert classified.kind is ErrorKind.PERMISSION_DENIED
    assert classified.reason is reason


def test_permission_by_code_alone() -> None:
    classified = classify(BackendError("new row violates policy", code="42501"))

    assert classified.kind is ErrorKind.PERMISSION_DENIED
    assert classified.reason is PermissionReason.GENERIC


def test_validation_and_not_found() -> None:
    enum_error = BackendError(
        'invalid input value for enum application_status: "bogus"', code="22P02"
    )
    missing_row = BackendError("Application not found", code="P0002")

    assert classify(enum_error).kind is ErrorKind.VALIDATION_FAILED
    assert classify(missing_row).kind is ErrorKind.NOT_FOUND


def test_unknown_keeps_raw_fields() -> None:
    error = BackendError("deadlock detected", code="40P01", details="d", hint="h")

    classified = classify(error)

    assert classified.kind is ErrorKind.UNKNOWN
    assert classified.raw_message == "deadlock detected"
    assert classified.raw_code == "40P01"
    assert (classified.details, classified.hint) == ("d", "h")


def test_classification_is_pure() -> None:
    error = BackendError("tenant_id is null", code="42501")

    assert classify(error) == classify(error)


def test_precondition_failure_is_client_side_validation() -> None:
    failure = precondition_failure("student_id", "missing student")

    assert failure.kind is ErrorKind.VALIDATION_FAILED
    assert failure.raw_code == CLIENT_PRECONDITION_CODE
    assert failure.field == "student_id"
