"""Application review operations exposed to callers.

Each operation builds an intent, picks its strategy chain (most specific and
authoritative first, plain row access last) and runs it through the mutation
pipeline. Callers always receive a ``MutationOutcome``; no exception escapes
for backend failures.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from admitdesk.domain.audit import DocumentAuditTrail
from admitdesk.domain.model import (
    ChangeStatus,
    DocumentSource,
    RequestDocument,
    ReviewDocument,
    SaveNotes,
    status_label,
)
from admitdesk.domain.mutations import (
    CapabilityRegistry,
    DirectInsertStrategy,
    DirectWriteStrategy,
    MutationPipeline,
    OutboundNotifier,
    OutcomeReporter,
    Preflight,
    Readback,
    RpcStrategy,
    SideEffectContext,
    attachment_plan,
    precondition_failure,
)
from admitdesk.domain.mutations.strategies import utcnow_iso
from admitdesk.domain.ports import BackendError

if TYPE_CHECKING:
    from admitdesk.domain.model import FileAttachment
    from admitdesk.domain.mutations import MutationOutcome, NotificationSink, Strategy
    from admitdesk.domain.ports import Backend

log = getLogger(__name__)

DEFAULT_DOCUMENTS_BUCKET: Final = "application-documents"
DEFAULT_NOTIFICATION_FUNCTION: Final = "send-application-update"
DIAGNOSTICS_RPC: Final = "diagnose_app_update_issue"


def _timeline_event(new_status: str) -> dict[str, object]:
    return {
        "id": str(uuid.uuid4()),
        "action": f"Status changed to {status_label(new_status)}",
        "timestamp": utcnow_iso(),
        "actor": "University",
    }


def _review_params(
    application_id: str,
    *,
    new_status: str | None,
    internal_notes: str | None,
    timeline_event: dict[str, object] | None,
) -> dict[str, object]:
    return {
        "p_application_id": application_id,
        "p_new_status": new_status,
        "p_internal_notes": internal_notes,
        "p_append_timeline_event": timeline_event,
    }


STATUS_CHAIN: Final[tuple[Strategy[ChangeStatus], ...]] = (
    RpcStrategy(
        "university_update_application_status",
        lambda intent: {
            "p_application_id": intent.application_id,
            "p_status": intent.new_status,
            "p_notes": None,
        },
    ),
    RpcStrategy(
        "update_application_review_text",
        lambda intent: _review_params(
            intent.application_id,
            new_status=intent.new_status,
            internal_notes=None,
            timeline_event=_timeline_event(intent.new_status),
        ),
    ),
    RpcStrategy(
        "update_application_review",
        lambda intent: _review_params(
            intent.application_id,
            new_status=intent.new_status,
            internal_notes=None,
            timeline_event=None,
        ),
    ),
    DirectWriteStrategy(
        "applications",
        lambda intent: {"status": intent.new_status},
        returning="id,status,updated_at",
    ),
)

NOTES_CHAIN: Final[tuple[Strategy[SaveNotes], ...]] = (
    RpcStrategy(
        "update_application_review_text",
        lambda intent: _review_params(
            intent.application_id,
            new_status=None,
            internal_notes=intent.notes,
            timeline_event=None,
        ),
    ),
    RpcStrategy(
        "update_application_review",
        lambda intent: _review_params(
            intent.application_id,
            new_status=None,
            internal_notes=intent.notes,
            timeline_event=None,
        ),
    ),
    DirectWriteStrategy(
        "applications",
        lambda intent: {"internal_notes": intent.notes},
        returning="id,internal_notes,updated_at",
    ),
)

DOCUMENT_REVIEW_CHAIN: Final[tuple[Strategy[ReviewDocument], ...]] = (
    RpcStrategy(
        "partner_review_student_document",
        lambda intent: {
            "p_document_id": intent.document_id,
            "p_status": intent.status,
            "p_notes": intent.cleaned_notes,
        },
        readback=Readback(
            "student_documents",
            columns="id,verified_status,verification_notes,updated_at",
        ),
    ),
    DirectWriteStrategy(
        "student_documents",
        lambda intent: {
            "verified_status": intent.status,
            "verification_notes": intent.cleaned_notes,
        },
        returning="id,verified_status,verification_notes,updated_at",
    ),
)


def document_request_chain(
    *, tenant_id: str | None, requested_by: str | None
) -> tuple[Strategy[RequestDocument], ...]:
    """Insert variants for ``document_requests``, newest schema first.

    Older schemas lack ``application_id``; the missing column classifies as
    capability-missing and the chain falls through to the narrower insert.
    """

    def base_row(intent: RequestDocument) -> dict[str, object]:
        return {
            "tenant_id": tenant_id,
            "student_id": intent.student_id,
            "requested_by": requested_by,
            "document_type": intent.document_type,
            "request_type": intent.document_type,
            "status": "pending",
            "notes": intent.note or None,
        }

    return (
        DirectInsertStrategy(
            "document_requests",
            lambda intent: {**base_row(intent), "application_id": intent.application_id},
            label="insert_with_application",
        ),
        DirectInsertStrategy(
            "document_requests",
            base_row,
            label="insert",
            preflight=Preflight("applications"),
        ),
    )


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


@dataclass(slots=True)
class ApplicationReviewService:
    """Staff-side mutations on one application and its documents.

    One instance lives for one signed-in session; its capability registry is
    shared by every call made through it.
    """

    backend: Backend
    registry: CapabilityRegistry = field(default_factory=CapabilityRegistry)
    tenant_id: str | None = None
    user_id: str | None = None
    documents_bucket: str = DEFAULT_DOCUMENTS_BUCKET
    notification_function: str = DEFAULT_NOTIFICATION_FUNCTION
    sink: NotificationSink | None = None
    reporter: OutcomeReporter = field(default_factory=OutcomeReporter)
    run_diagnostics: bool = True
    notifier: OutboundNotifier = field(init=False)
    audit: DocumentAuditTrail = field(init=False)

    def __post_init__(self) -> None:
        self.notifier = OutboundNotifier(self.backend, self.notification_function)
        self.audit = DocumentAuditTrail(
            self.backend, tenant_id=self.tenant_id, user_id=self.user_id
        )

    @property
    def pipeline(self) -> MutationPipeline:
        if self.sink is None:
            return MutationPipeline(self.backend, self.registry, self.reporter)
        return MutationPipeline(self.backend, self.registry, self.reporter, self.sink)

    async def change_status(
        self,
        application_id: str,
        new_status: str,
        *,
        attachment: FileAttachment | None = None,
        previous_status: str | None = None,
    ) -> MutationOutcome[ChangeStatus]:
        intent = ChangeStatus(
            application_id=application_id,
            new_status=new_status,
            previous_status=previous_status,
            attachment=attachment,
        )
        plan = attachment_plan(new_status, attachment, bucket=self.documents_bucket)
        context = SideEffectContext(application_id=application_id)

        await self._diagnose(application_id)
        outcome = await self.pipeline.run(intent, STATUS_CHAIN, plan=plan, context=context)

        if plan and outcome.side_effect_failure is None and context.document_id is not None:
            self.audit.dispatch(
                "document_uploaded",
                entity_id=context.document_id,
                details={
                    "applicationId": application_id,
                    "documentType": "other",
                    "storagePath": context.uploaded_path,
                    "mimeType": attachment.content_type if attachment else None,
                    "fileSize": attachment.size if attachment else None,
                    "source": DocumentSource.APPLICATION_DOCUMENTS.value,
                    "uploadedBy": "university",
                },
            )

        persisted = outcome.persisted_value
        if outcome.matched and persisted is not None and persisted != previous_status:
            self.notifier.dispatch(
                {
                    "applicationId": application_id,
                    "type": "status_change",
                    "newStatus": persisted,
                }
            )
        return outcome

    async def save_notes(self, application_id: str, notes: str) -> MutationOutcome[SaveNotes]:
        intent = SaveNotes(application_id=application_id, notes=notes)
        outcome = await self.pipeline.run(intent, NOTES_CHAIN)
        if outcome.matched:
            log.info("Saved %d characters of notes on %s", len(notes), application_id)
        return outcome

    async def review_document(
        self,
        document_id: str,
        status: str,
        *,
        notes: str | None = None,
        source: DocumentSource = DocumentSource.STUDENT_DOCUMENTS,
        application_id: str | None = None,
        document_type: str | None = None,
    ) -> MutationOutcome[ReviewDocument]:
        intent = ReviewDocument(
            document_id=document_id,
            status=status,
            notes=notes,
            source=source,
            application_id=application_id,
            document_type=document_type,
        )
        if source is not DocumentSource.STUDENT_DOCUMENTS:
            return self.pipeline.reject(
                intent,
                precondition_failure("source", "This document type can't be reviewed yet."),
            )

        outcome = await self.pipeline.run(intent, DOCUMENT_REVIEW_CHAIN)
        if outcome.matched:
            await self.audit.record(
                "document_reviewed_by_university",
                entity_id=document_id,
                details={
                    "applicationId": application_id,
                    "documentType": document_type,
                    "decision": outcome.persisted_value,
                    "notes": intent.cleaned_notes,
                    "source": source.value,
                },
            )
        return outcome

    async def request_document(
        self,
        application_id: str,
        student_id: str | None,
        document_type: str,
        *,
        note: str | None = None,
    ) -> MutationOutcome[RequestDocument]:
        intent = RequestDocument(
            application_id=application_id,
            student_id=student_id,
            document_type=document_type.strip(),
            note=note,
        )
        pipeline = self.pipeline
        if _blank(application_id):
            return pipeline.reject(
                intent,
                precondition_failure(
                    "application_id", "Please wait for the application to load and try again."
                ),
            )
        if _blank(student_id):
            return pipeline.reject(
                intent,
                precondition_failure(
                    "student_id",
                    "This application is missing a linked student record. "
                    "Please refresh and try again, or contact support if the issue persists.",
                ),
            )
        if _blank(document_type):
            return pipeline.reject(
                intent,
                precondition_failure("document_type", "Please select a document type to request."),
            )
        if _blank(self.tenant_id):
            return pipeline.reject(
                intent,
                precondition_failure(
                    "tenant_id",
                    "Unable to verify your university profile. Please refresh the page.",
                ),
            )

        chain = document_request_chain(tenant_id=self.tenant_id, requested_by=self.user_id)
        return await pipeline.run(intent, chain)

    async def drain(self) -> None:
        """Wait for detached notifications and audit writes before shutting down."""

        await self.notifier.drain()
        await self.audit.drain()

    async def _diagnose(self, application_id: str) -> None:
        if not self.run_diagnostics or self.registry.is_known_unavailable(DIAGNOSTICS_RPC):
            return
        try:
            report = await self.backend.rpc(DIAGNOSTICS_RPC, {"p_app_id": application_id})
        except BackendError as exc:
            self.registry.mark_unavailable(DIAGNOSTICS_RPC, exc)
            log.debug("Update diagnostics unavailable: %s", exc.describe())
            return
        log.debug("Update diagnostics for %s: %s", application_id, report)
