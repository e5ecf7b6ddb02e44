from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from admitdesk.config import MissingConfigurationError
from admitdesk.domain.model import (
    ChangeStatus,
    DocumentSource,
    MutationState,
    SaveNotes,
)
from admitdesk.domain.mutations import MutationOutcome, UserNotification
from admitdesk.ui import cli

if TYPE_CHECKING:
    from pathlib import Path


def _outcome(
    intent: ChangeStatus | SaveNotes, state: MutationState
) -> MutationOutcome[ChangeStatus | SaveNotes]:
    return MutationOutcome(
        intent=intent,
        state=state,
        notification=UserNotification(title="t", description="d"),
    )


def test_status_command_exits_zero_when_matched(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_change(application_id: str, new_status: str, **kwargs: object) -> object:
        captured.update(kwargs, application_id=application_id, new_status=new_status)
        intent = ChangeStatus(application_id=application_id, new_status=new_status)
        return _outcome(intent, MutationState.MATCHED)

    monkeypatch.setattr(cli, "change_application_status", fake_change)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["status", "app-1", "visa", "--previous-status", "cas_loa"])

    assert excinfo.value.code == 0
    assert captured["application_id"] == "app-1"
    assert captured["new_status"] == "visa"
    assert captured["previous_status"] == "cas_loa"
    assert captured["attachment"] is None
    assert callable(captured["sink"])


def test_status_command_loads_attachment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    letter = tmp_path / "offer letter.pdf"
    letter.write_bytes(b"%PDF-1.7")
    captured: dict[str, object] = {}

    def fake_change(application_id: str, new_status: str, **kwargs: object) -> object:
        captured.update(kwargs)
        intent = ChangeStatus(application_id=application_id, new_status=new_status)
        return _outcome(intent, MutationState.ABORTED)

    monkeypatch.setattr(cli, "change_application_status", fake_change)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["status", "app-1", "conditional_offer", "--attachment", str(letter)])

    assert excinfo.value.code == 1
    attachment = captured["attachment"]
    assert attachment is not None
    assert getattr(attachment, "filename") == "offer letter.pdf"
    assert getattr(attachment, "content_type") == "application/pdf"
    assert getattr(attachment, "content") == b"%PDF-1.7"


def test_missing_attachment_is_a_validation_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def fake_change(*_: object, **__: object) -> object:
        raise AssertionError("should not be called")

    monkeypatch.setattr(cli, "change_application_status", fake_change)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["status", "app-1", "visa", "--attachment", str(tmp_path / "missing.pdf")])

    assert excinfo.value.code == 2


def test_notes_command_reads_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    notes_file = tmp_path / "notes.txt"
    notes_file.write_text("Strong interview", encoding="utf-8")
    captured: dict[str, object] = {}

    def fake_save(application_id: str, notes: str, **_: object) -> object:
        captured.update(application_id=application_id, notes=notes)
        intent = SaveNotes(application_id=application_id, notes=notes)
        return _outcome(intent, MutationState.MATCHED)

    monkeypatch.setattr(cli, "save_application_notes", fake_save)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["notes", "app-1", "--file", str(notes_file)])

    assert excinfo.value.code == 0
    assert captured == {"application_id": "app-1", "notes": "Strong interview"}


def test_review_and_request_commands_forward_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, tuple[object, ...], dict[str, object]]] = []

    def fake_review(*args: object, **kwargs: object) -> object:
        calls.append(("review", args, kwargs))
        return _outcome(SaveNotes(application_id="a", notes="n"), MutationState.UNVERIFIABLE)

    def fake_request(*args: object, **kwargs: object) -> object:
        calls.append(("request", args, kwargs))
        return _outcome(SaveNotes(application_id="a", notes="n"), MutationState.MATCHED)

    monkeypatch.setattr(cli, "review_student_document", fake_review)
    monkeypatch.setattr(cli, "request_application_document", fake_request)

    with pytest.raises(SystemExit) as review_exit:
        cli.main(["review-document", "doc-1", "rejected", "--notes", "Blurry scan"])
    with pytest.raises(SystemExit) as request_exit:
        cli.main(
            [
                "request-document",
                "app-1",
                "--student-id",
                "stu-1",
                "--document-type",
                "passport",
            ]
        )

    assert review_exit.value.code == 1
    assert request_exit.value.code == 0
    review_args, review_kwargs = calls[0][1], calls[0][2]
    assert review_args == ("doc-1", "rejected")
    assert review_kwargs["notes"] == "Blurry scan"
    assert review_kwargs["source"] is DocumentSource.STUDENT_DOCUMENTS
    assert calls[1][1] == ("app-1", "stu-1", "passport")


def test_missing_configuration_exits_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_save(*_: object, **__: object) -> object:
        raise MissingConfigurationError("Missing configuration for: ADMITDESK_API_KEY")

    monkeypatch.setattr(cli, "save_application_notes", fake_save)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["notes", "app-1", "--text", "x"])

    assert excinfo.value.code == 1


def test_invalid_status_is_rejected_by_parser() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["status", "app-1", "bogus"])

    assert excinfo.value.code == 2


def test_notification_is_printed(capsys: pytest.CaptureFixture[str]) -> None:
    cli._print_notification(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        UserNotification(title="Status updated", description="Application status changed")
    )

    assert capsys.readouterr().out.strip() == "Status updated: Application status changed"
