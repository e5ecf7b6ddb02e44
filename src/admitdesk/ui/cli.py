# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from admitdesk.app import (
    change_application_status,
    request_application_document,
    review_student_document,
    save_application_notes,
)
from admitdesk.config import ConfigurationError, configure_logging
from admitdesk.domain.model import (
    ApplicationStatus,
    DocumentReviewStatus,
    DocumentSource,
    FileAttachment,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from admitdesk.domain.mutations import MutationOutcome, UserNotification

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review admissions applications")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    status = subparsers.add_parser("status", help="Change the status of an application")
    status.add_argument("application_id", type=str)
    status.add_argument("new_status", choices=[item.value for item in ApplicationStatus])
    status.add_argument(
        "--previous-status",
        type=str,
        help="Status currently shown to the reviewer; no email is sent if unchanged",
    )
    status.add_argument(
        "--attachment",
        type=Path,
        help="File to upload with the change, e.g. an offer letter",
    )
    status.add_argument(
        "--content-type",
        type=str,
        help="MIME type of the attachment (guessed from the file name by default)",
    )

    notes = subparsers.add_parser("notes", help="Save internal notes on an application")
    notes.add_argument("application_id", type=str)
    source = notes.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", type=str, help="Notes text")
    source.add_argument("--file", type=Path, help="Read notes from a UTF-8 text file")

    review = subparsers.add_parser("review-document", help="Accept or reject a student document")
    review.add_argument("document_id", type=str)
    review.add_argument("status", choices=[item.value for item in DocumentReviewStatus])
    review.add_argument("--notes", type=str, help="Reviewer notes shown to the student")
    review.add_argument("--application-id", type=str)
    review.add_argument("--document-type", type=str)
    review.add_argument(
        "--source",
        choices=[item.value for item in DocumentSource],
        default=DocumentSource.STUDENT_DOCUMENTS.value,
    )

    request = subparsers.add_parser("request-document", help="Ask a student for a document")
    request.add_argument("application_id", type=str)
    request.add_argument("--student-id", type=str)
    request.add_argument("--document-type", type=str, required=True)
    request.add_argument("--note", type=str, help="Message for the student")

    return parser.parse_args(list(argv))


def _load_attachment(path: Path, content_type: str | None) -> FileAttachment:
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise ValueError(f"Cannot read attachment {path}: {exc}") from exc
    guessed, _ = mimetypes.guess_type(path.name)
    return FileAttachment(
        filename=path.name,
        content=content,
        content_type=content_type or guessed or "application/octet-stream",
    )


def _read_notes(args: argparse.Namespace) -> str:
    if args.text is not None:
        return args.text
    try:
        return args.file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read notes file {args.file}: {exc}") from exc


def _print_notification(notification: UserNotification) -> None:
    print(notification.render())


def _dispatch(args: argparse.Namespace) -> MutationOutcome[Any]:
    if args.command == "status":
        attachment = (
            _load_attachment(args.attachment, args.content_type) if args.attachment else None
        )
        return change_application_status(
            args.application_id,
            args.new_status,
            attachment=attachment,
            previous_status=args.previous_status,
            sink=_print_notification,
        )
    if args.command == "notes":
        return save_application_notes(
            args.application_id,
            _read_notes(args),
            sink=_print_notification,
        )
    if args.command == "review-document":
        return review_student_document(
            args.document_id,
            args.status,
            notes=args.notes,
            source=DocumentSource(args.source),
            application_id=args.application_id,
            document_type=args.document_type,
            sink=_print_notification,
        )
    if args.command == "request-document":
        return request_application_document(
            args.application_id,
            args.student_id,
            args.document_type,
            note=args.note,
            sink=_print_notification,
        )
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        outcome = _dispatch(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(1)

    attempted = [attempt.strategy_name for attempt in outcome.attempts]
    log.info("Finished as %s after attempts %s", outcome.state, attempted)
    sys.exit(0 if outcome.matched else 1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
