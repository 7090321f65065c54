"""
Question bank loaded once at startup.
"""

import json
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from surveycall.shared.exceptions import ConfigError
from surveycall.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class QuestionBank:
    """Immutable, ordered list of question prompts."""

    questions: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.questions:
            raise ConfigError("Question bank must contain at least one question")
        for index, text in enumerate(self.questions):
            if not isinstance(text, str) or not text.strip():
                raise ConfigError(
                    f"Question {index} must be a non-empty string",
                    {"index": index},
                )

    def question_count(self) -> int:
        return len(self.questions)

    def question_at(self, index: int) -> str:
        """Return the prompt at index; negative indexes are rejected."""
        if not 0 <= index < len(self.questions):
            raise IndexError(f"Question index out of range: {index}")
        return self.questions[index]

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[str]:
        return iter(self.questions)

    @classmethod
    def from_file(cls, path: Path | str) -> "QuestionBank":
        """Load the question bank from a JSON array of strings.

        Raises:
            ConfigError: If the file is missing, unparsable or malformed.
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigError(
                f"Questions file not found: {path}", {"path": str(path)}
            ) from exc
        except (OSError, ValueError) as exc:
            raise ConfigError(
                f"Questions file is unreadable: {path}: {exc}", {"path": str(path)}
            ) from exc

        if not isinstance(raw, list):
            raise ConfigError(
                f"Questions file must hold a JSON array: {path}", {"path": str(path)}
            )

        bank = cls(tuple(raw))
        logger.info(
            "Question bank loaded",
            extra={"path": str(path), "question_count": bank.question_count()},
        )
        return bank
