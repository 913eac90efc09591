import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pdfquiz.config.settings import Settings
from pdfquiz.generation.models import Difficulty, QuestionOptions, QuestionType
from pdfquiz.logging.logger import Log
from pdfquiz.processor.errors import ProcessingFailure
from pdfquiz.processor.models import UploadStatus
from pdfquiz.processor.service import build_service
from pdfquiz.storage.connection import Database


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pdfquiz",
        description="Extract text from a PDF and generate quiz questions from it.",
    )
    parser.add_argument("file", type=Path, help="PDF file to process")
    parser.add_argument(
        "--questions",
        type=int,
        default=0,
        help="number of questions to generate (0 = only process the document)",
    )
    parser.add_argument(
        "--difficulty",
        choices=[item.value for item in Difficulty],
        default=Difficulty.MEDIUM.value,
    )
    parser.add_argument(
        "--types",
        nargs="+",
        choices=[item.value for item in QuestionType],
        default=[QuestionType.MULTIPLE_CHOICE.value, QuestionType.SHORT_ANSWER.value],
    )
    parser.add_argument("--subject", default="General")
    parser.add_argument("--mime-type", default="application/pdf")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> dict[str, Any]:
    """Process one file and optionally generate questions for it."""
    database: Database | None = None
    if settings.document_store.lower() == "postgres":
        database = Database.from_settings(settings)
    try:
        service = build_service(settings, database=database)
        payload = args.file.read_bytes()
        try:
            document_id = await service.upload_and_process(
                args.file.name, payload, args.mime_type
            )
            status = await service.wait_for(document_id)
            result: dict[str, Any] = {"status": status.to_dict()}
            if args.questions and status.status is UploadStatus.COMPLETED:
                questions = await service.generate_questions(
                    document_id,
                    QuestionOptions(
                        question_count=args.questions,
                        difficulty=Difficulty(args.difficulty),
                        question_types=tuple(QuestionType(item) for item in args.types),
                        subject=args.subject,
                    ),
                )
                result["questions"] = [question.to_dict() for question in questions]
            return result
        finally:
            await service.shutdown()
    finally:
        if database is not None:
            database.close()


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> build service -> process file -> print JSON."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    try:
        result = asyncio.run(run(args, settings))
    except ProcessingFailure as exc:
        print(json.dumps({"error": exc.error.to_dict()}, indent=2))
        return 1
    except OSError as exc:
        Log.error(f"Cannot read {args.file}: {exc}")
        return 2

    print(json.dumps(result, indent=2))
    status = result["status"]["status"]
    return 0 if status == UploadStatus.COMPLETED.value else 1


if __name__ == "__main__":
    sys.exit(main())
