from __future__ import annotations

from admitdesk.domain.model import ErrorKind
from admitdesk.domain.mutations import CapabilityRegistry, classify, missing_capability_error
from admitdesk.domain.ports import BackendError


def test_registry_starts_empty() -> None:
    registry = CapabilityRegistry()

    assert len(registry) == 0
    assert not registry.is_known_unavailable("update_application_review")


def test_marking_is_monotonic_and_idempotent() -> None:
    registry = CapabilityRegistry()

    registry.mark_unavailable("update_application_review")
    registry.mark_unavailable("update_application_review")

    assert registry.is_known_unavailable("update_application_review")
    assert len(registry) == 1


def test_names_are_normalised() -> None:
    registry = CapabilityRegistry()

    registry.mark_unavailable("  Update_Application_Review ")

    assert registry.is_known_unavailable("update_application_review")
    assert registry.unavailable() == frozenset({"update_application_review"})


def test_blank_names_are_ignored() -> None:
    registry = CapabilityRegistry()

    registry.mark_unavailable("   ")

    assert len(registry) == 0
    assert not registry.is_known_unavailable("")


def test_only_capability_errors_are_remembered() -> None:
    registry = CapabilityRegistry()

    registry.mark_unavailable("rpc_a", BackendError("permission denied", code="42501"))
    registry.mark_unavailable("rpc_b", classify(BackendError("x", code="PGRST202")))

    assert not registry.is_known_unavailable("rpc_a")
    assert registry.is_known_unavailable("rpc_b")


def test_missing_capability_error_classifies_as_missing() -> None:
    error = missing_capability_error("update_application_review_text")

    assert classify(error).kind is ErrorKind.CAPABILITY_MISSING
    assert "update_application_review_text" in error.message
