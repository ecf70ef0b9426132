"""Input validation: checks prompts and input paths before any generation call."""

from pathlib import Path

from archagent.errors import InvalidInputError

SUPPORTED_SUFFIXES = {".md", ".markdown", ".json"}


def validate_input(prompt: str) -> str:
    """Validate that the prompt is a non-empty string.

    Returns the stripped input on success.
    Raises InvalidInputError if input is empty or whitespace-only.
    """
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidInputError("Prompt is required.")
    return prompt.strip()


def validate_input_path(path: str | Path) -> Path:
    """Validate that ``path`` is a readable .md/.markdown/.json file."""
    p = Path(path)
    if not p.is_file():
        raise InvalidInputError(f"Input file not found: {p}")
    if p.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise InvalidInputError("Unsupported input format. Use .md or .json")
    return p
