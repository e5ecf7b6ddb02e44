"""Mutation intents: immutable descriptions of one logical state change."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .enums import DocumentSource


@dataclass(frozen=True, slots=True)
class FileAttachment:
    """Binary payload picked by the user, e.g. an offer letter."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True, kw_only=True)
class MutationIntent:
    """Base class for intents.

    ``verify_field`` names the column of the server echo that must carry the
    requested value once the write has persisted.
    """

    name: ClassVar[str] = "Mutation"
    subject: ClassVar[str] = "record"
    verify_field: ClassVar[str] = "id"

    @property
    def target_id(self) -> str:
        raise NotImplementedError

    @property
    def requested_value(self) -> str | None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True, kw_only=True)
class ChangeStatus(MutationIntent):
    name: ClassVar[str] = "ChangeStatus"
    subject: ClassVar[str] = "application"
    verify_field: ClassVar[str] = "status"

    application_id: str
    new_status: str
    previous_status: str | None = None
    attachment: FileAttachment | None = None

    @property
    def target_id(self) -> str:
        return self.application_id

    @property
    def requested_value(self) -> str:
        return self.new_status


@dataclass(frozen=True, slots=True, kw_only=True)
class SaveNotes(MutationIntent):
    name: ClassVar[str] = "SaveNotes"
    subject: ClassVar[str] = "application"
    verify_field: ClassVar[str] = "internal_notes"

    application_id: str
    notes: str

    @property
    def target_id(self) -> str:
        return self.application_id

    @property
    def requested_value(self) -> str:
        return self.notes


@dataclass(frozen=True, slots=True, kw_only=True)
class ReviewDocument(MutationIntent):
    name: ClassVar[str] = "ReviewDocument"
    subject: ClassVar[str] = "document"
    verify_field: ClassVar[str] = "verified_status"

    document_id: str
    status: str
    notes: str | None = None
    source: DocumentSource = DocumentSource.STUDENT_DOCUMENTS
    application_id: str | None = None
    document_type: str | None = None

    @property
    def target_id(self) -> str:
        return self.document_id

    @property
    def requested_value(self) -> str:
        return self.status

    @property
    def cleaned_notes(self) -> str | None:
        if self.notes is None:
            return None
        return self.notes.strip() or None


@dataclass(frozen=True, slots=True, kw_only=True)
class RequestDocument(MutationIntent):
    name: ClassVar[str] = "RequestDocument"
    subject: ClassVar[str] = "application"
    verify_field: ClassVar[str] = "document_type"

    application_id: str
    student_id: str | None
    document_type: str
    note: str | None = None

    @property
    def target_id(self) -> str:
        return self.application_id

    @property
    def requested_value(self) -> str:
        return self.document_type
