"""Resilient mutation pipeline.

A mutation call runs an optional side-effect plan, then an ordered chain of
candidate strategies, verifies the winner's echoed row, and reports one
terminal outcome. Every failure is classified exactly once, close to the call
that produced it.
"""

from __future__ import annotations

from .capabilities import CapabilityRegistry, missing_capability_error
from .classification import ClassifiedError, classify, precondition_failure
from .executor import AttemptRecord, ChainResult, StrategyChainExecutor
from .notifications import OutboundNotifier
from .pipeline import MutationOutcome, MutationPipeline, NotificationSink
from .reporting import OutcomeReporter, UserNotification, format_document_type
from .side_effects import (
    RecordApplicationDocument,
    SideEffect,
    SideEffectContext,
    SideEffectFailure,
    SideEffectPlan,
    SideEffectSequencer,
    UploadAttachment,
    UpsertOffer,
    attachment_plan,
    object_path,
    sanitize_filename,
)
from .strategies import (
    DirectInsertStrategy,
    DirectWriteStrategy,
    Preflight,
    Readback,
    RpcStrategy,
    Strategy,
)
from .verification import VerifiedResult, first_row, verify

__all__ = [
    "AttemptRecord",
    "CapabilityRegistry",
    "ChainResult",
    "ClassifiedError",
    "DirectInsertStrategy",
    "DirectWriteStrategy",
    "MutationOutcome",
    "MutationPipeline",
    "NotificationSink",
    "OutboundNotifier",
    "OutcomeReporter",
    "Preflight",
    "Readback",
    "RecordApplicationDocument",
    "RpcStrategy",
    "SideEffect",
    "SideEffectContext",
    "SideEffectFailure",
    "SideEffectPlan",
    "SideEffectSequencer",
    "Strategy",
    "StrategyChainExecutor",
    "UploadAttachment",
    "UpsertOffer",
    "UserNotification",
    "VerifiedResult",
    "attachment_plan",
    "classify",
    "first_row",
    "format_document_type",
    "missing_capability_error",
    "object_path",
    "precondition_failure",
    "sanitize_filename",
    "verify",
]
