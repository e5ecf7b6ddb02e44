"""Ordered, all-or-nothing side effects that precede a state-changing write."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from admitdesk.domain.model import OFFER_STATUSES, ApplicationStatus
from admitdesk.domain.ports import BackendError

from .classification import ClassifiedError, classify
from .strategies import utcnow_iso

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from admitdesk.domain.model import FileAttachment
    from admitdesk.domain.ports import Backend

log = getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
DEFAULT_DOCUMENT_TYPE = "other"


def sanitize_filename(name: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def object_path(
    owner_id: str,
    filename: str,
    *,
    clock: Callable[[], int] = _epoch_millis,
) -> str:
    """Collision-resistant storage path scoped by the owning entity."""

    return f"{owner_id}/{clock()}_{sanitize_filename(filename)}"


@dataclass(slots=True)
class SideEffectContext:
    """Identifiers produced by earlier effects and consumed by later ones."""

    application_id: str
    uploaded_path: str | None = None
    document_id: str | None = None


class SideEffect(Protocol):
    name: str

    async def run(self, context: SideEffectContext, backend: Backend) -> None: ...


@dataclass(slots=True)
class UploadAttachment:
    attachment: FileAttachment
    bucket: str
    clock: Callable[[], int] = _epoch_millis
    name: str = "upload_attachment"

    async def run(self, context: SideEffectContext, backend: Backend) -> None:
        path = object_path(context.application_id, self.attachment.filename, clock=self.clock)
        log.info("Uploading %s to %s/%s", self.attachment.filename, self.bucket, path)
        await backend.upload(
            self.bucket,
            path,
            self.attachment.content,
            content_type=self.attachment.content_type,
        )
        context.uploaded_path = path


@dataclass(slots=True)
class RecordApplicationDocument:
    """Metadata row pointing at the uploaded object."""

    attachment: FileAttachment
    document_type: str = DEFAULT_DOCUMENT_TYPE
    name: str = "record_application_document"

    async def run(self, context: SideEffectContext, backend: Backend) -> None:
        if context.uploaded_path is None:
            raise BackendError("No uploaded file to record", code="CLIENT_PRECONDITION")
        rows = await backend.insert(
            "application_documents",
            [
                {
                    "application_id": context.application_id,
                    "document_type": self.document_type,
                    "storage_path": context.uploaded_path,
                    "mime_type": self.attachment.content_type,
                    "file_size": self.attachment.size,
                    "verified": True,
                    "uploaded_at": utcnow_iso(),
                }
            ],
            returning="id",
        )
        if rows and rows[0].get("id") is not None:
            context.document_id = str(rows[0]["id"])


@dataclass(slots=True)
class UpsertOffer:
    """Insert-or-update the offer row keyed by application, for offer statuses."""

    status: ApplicationStatus
    name: str = "upsert_offer"

    async def run(self, context: SideEffectContext, backend: Backend) -> None:
        offer_type = (
            "conditional" if self.status is ApplicationStatus.CONDITIONAL_OFFER else "unconditional"
        )
        await backend.upsert(
            "offers",
            {
                "application_id": context.application_id,
                "offer_type": offer_type,
                "letter_url": context.uploaded_path,
                "accepted": None,
            },
            on_conflict="application_id",
        )


@dataclass(slots=True)
class SideEffectPlan:
    effects: Sequence[SideEffect] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.effects)

    @property
    def names(self) -> list[str]:
        return [effect.name for effect in self.effects]


def attachment_plan(
    new_status: str,
    attachment: FileAttachment | None,
    *,
    bucket: str,
) -> SideEffectPlan:
    """Plan for a status change that may carry a file, e.g. an offer letter."""

    if attachment is None:
        return SideEffectPlan()
    effects: list[SideEffect] = [
        UploadAttachment(attachment=attachment, bucket=bucket),
        RecordApplicationDocument(attachment=attachment),
    ]
    if new_status in OFFER_STATUSES:
        effects.append(UpsertOffer(status=ApplicationStatus(new_status)))
    return SideEffectPlan(effects=tuple(effects))


@dataclass(frozen=True, slots=True)
class SideEffectFailure:
    effect: str
    error: ClassifiedError
    orphaned_path: str | None = None


@dataclass(slots=True)
class SideEffectSequencer:
    backend: Backend

    async def run(
        self, plan: SideEffectPlan, context: SideEffectContext
    ) -> SideEffectFailure | None:
        """Run effects in order; the first failure stops the plan."""

        for effect in plan.effects:
            try:
                await effect.run(context, self.backend)
            except BackendError as exc:
                classified = classify(exc)
                orphan = context.uploaded_path
                if orphan is not None:
                    # No compensating delete: the object stays in storage.
                    log.warning(
                        "Side effect %s failed after upload; orphaned object at %s",
                        effect.name,
                        orphan,
                    )
                log.error("Side effect %s failed: %s", effect.name, exc.describe())
                return SideEffectFailure(effect=effect.name, error=classified, orphaned_path=orphan)
            log.debug("Side effect %s completed for %s", effect.name, context.application_id)
        return None
