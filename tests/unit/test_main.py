import json
from pathlib import Path

import pytest

from pdfquiz.logging.logger import Log
from pdfquiz.main import main, parse_args


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args(["notes.pdf"])
        assert args.file == Path("notes.pdf")
        assert args.questions == 0
        assert args.difficulty == "medium"
        assert args.types == ["multiple_choice", "short_answer"]
        assert args.mime_type == "application/pdf"

    def test_question_options(self) -> None:
        args = parse_args(
            ["notes.pdf", "--questions", "5", "--difficulty", "hard", "--types", "true_false"]
        )
        assert args.questions == 5
        assert args.difficulty == "hard"
        assert args.types == ["true_false"]


class TestMain:
    @pytest.fixture(autouse=True)
    def _env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        # keep log lines out of the JSON printed to stdout
        monkeypatch.setattr(Log, "configure", lambda log_level: None)
        monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
        monkeypatch.setenv("DOCUMENT_STORE", "memory")
        monkeypatch.setenv("GENERATION_PROVIDER", "extractive")

    def test_processes_file_and_generates_questions(
        self,
        tmp_path: Path,
        readable_pdf_bytes: bytes,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        pdf = tmp_path / "cats.pdf"
        pdf.write_bytes(readable_pdf_bytes)

        exit_code = main([str(pdf), "--questions", "2"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["status"]["status"] == "completed"
        assert len(output["questions"]) == 2

    def test_failed_document_exits_with_one(
        self,
        tmp_path: Path,
        short_pdf_bytes: bytes,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        pdf = tmp_path / "short.pdf"
        pdf.write_bytes(short_pdf_bytes)

        exit_code = main([str(pdf)])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["status"]["error"]["code"] == "InsufficientText"

    def test_missing_file_exits_with_two(self, tmp_path: Path) -> None:
        assert main([str(tmp_path / "missing.pdf")]) == 2
