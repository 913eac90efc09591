from pathlib import Path

from pdfquiz.generation.exceptions import GenerationError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the question prompt template from a file.

    Args:
        path: Path to the prompt template file.
              Defaults to the bundled question_prompt.txt.

    Returns:
        The raw template string with str.format placeholders.

    Raises:
        GenerationError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "question_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise GenerationError(f"Failed to load prompt template: {exc}") from exc


def load_system_prompt(path: Path | None = None) -> str:
    """Load the system prompt, defaulting to the bundled system_prompt.txt.

    Raises:
        GenerationError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "system_prompt.txt"
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise GenerationError(f"Failed to load system prompt: {exc}") from exc
