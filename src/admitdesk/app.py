"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from admitdesk.adapters.supabase import SupabaseBackend
from admitdesk.config import get_backend_config
from admitdesk.domain.application_review import ApplicationReviewService
from admitdesk.domain.model import DocumentSource

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from admitdesk.config import BackendConfig
    from admitdesk.domain.model import (
        ChangeStatus,
        FileAttachment,
        RequestDocument,
        ReviewDocument,
        SaveNotes,
    )
    from admitdesk.domain.mutations import MutationOutcome, NotificationSink

type BackendFactory = Callable[[BackendConfig], SupabaseBackend]

log = getLogger(__name__)


@asynccontextmanager
async def open_review_session(
    *,
    config: BackendConfig | None = None,
    sink: NotificationSink | None = None,
    backend_factory: BackendFactory = SupabaseBackend,
) -> AsyncIterator[ApplicationReviewService]:
    """Wire one review session and drain its outbound notifications on exit."""

    effective_config = config or get_backend_config()
    async with backend_factory(effective_config) as backend:
        service = ApplicationReviewService(
            backend,
            tenant_id=effective_config.session.tenant_id,
            user_id=effective_config.session.user_id,
            documents_bucket=effective_config.documents_bucket,
            notification_function=effective_config.status_notification_function,
            sink=sink,
        )
        try:
            yield service
        finally:
            await service.drain()
            if service.registry.unavailable():
                log.info(
                    "Capabilities missing on this backend: %s",
                    ", ".join(sorted(service.registry.unavailable())),
                )


def _run_in_session[T](
    operation: Callable[[ApplicationReviewService], Awaitable[T]],
    *,
    config: BackendConfig | None,
    sink: NotificationSink | None,
) -> T:
    async def runner() -> T:
        async with open_review_session(config=config, sink=sink) as service:
            return await operation(service)

    return asyncio.run(runner())


def change_application_status(
    application_id: str,
    new_status: str,
    *,
    attachment: FileAttachment | None = None,
    previous_status: str | None = None,
    config: BackendConfig | None = None,
    sink: NotificationSink | None = None,
) -> MutationOutcome[ChangeStatus]:
    log.info("Changing status of %s to %s", application_id, new_status)
    return _run_in_session(
        lambda service: service.change_status(
            application_id,
            new_status,
            attachment=attachment,
            previous_status=previous_status,
        ),
        config=config,
        sink=sink,
    )


def save_application_notes(
    application_id: str,
    notes: str,
    *,
    config: BackendConfig | None = None,
    sink: NotificationSink | None = None,
) -> MutationOutcome[SaveNotes]:
    return _run_in_session(
        lambda service: service.save_notes(application_id, notes),
        config=config,
        sink=sink,
    )


def review_student_document(
    document_id: str,
    status: str,
    *,
    notes: str | None = None,
    source: DocumentSource = DocumentSource.STUDENT_DOCUMENTS,
    application_id: str | None = None,
    document_type: str | None = None,
    config: BackendConfig | None = None,
    sink: NotificationSink | None = None,
) -> MutationOutcome[ReviewDocument]:
    return _run_in_session(
        lambda service: service.review_document(
            document_id,
            status,
            notes=notes,
            source=source,
            application_id=application_id,
            document_type=document_type,
        ),
        config=config,
        sink=sink,
    )


def request_application_document(
    application_id: str,
    student_id: str | None,
    document_type: str,
    *,
    note: str | None = None,
    config: BackendConfig | None = None,
    sink: NotificationSink | None = None,
) -> MutationOutcome[RequestDocument]:
    return _run_in_session(
        lambda service: service.request_document(
            application_id, student_id, document_type, note=note
        ),
        config=config,
        sink=sink,
    )
