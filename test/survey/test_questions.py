"""
Tests for the question bank.
"""

import json
from pathlib import Path

import pytest

from surveycall.shared.exceptions import ConfigError
from surveycall.survey.questions import QuestionBank


class TestQuestionBankFromFile:
    def test_loads_questions_in_order(self, tmp_path: Path) -> None:
        path = tmp_path / "questions.json"
        path.write_text(json.dumps(["First?", "Second?"]), encoding="utf-8")

        bank = QuestionBank.from_file(path)

        assert bank.question_count() == 2
        assert bank.question_at(0) == "First?"
        assert bank.question_at(1) == "Second?"
        assert list(bank) == ["First?", "Second?"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            QuestionBank.from_file(tmp_path / "nope.json")

    def test_unparsable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "questions.json"
        path.write_text("[\"unterminated", encoding="utf-8")

        with pytest.raises(ConfigError, match="unreadable"):
            QuestionBank.from_file(path)

    def test_not_an_array(self, tmp_path: Path) -> None:
        path = tmp_path / "questions.json"
        path.write_text(json.dumps({"q": "How?"}), encoding="utf-8")

        with pytest.raises(ConfigError, match="JSON array"):
            QuestionBank.from_file(path)

    def test_empty_array(self, tmp_path: Path) -> None:
        path = tmp_path / "questions.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigError, match="at least one"):
            QuestionBank.from_file(path)

    def test_non_string_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "questions.json"
        path.write_text(json.dumps(["Fine?", 42]), encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            QuestionBank.from_file(path)

        assert exc_info.value.details == {"index": 1}


class TestQuestionBank:
    def test_question_at_out_of_range(self, question_bank: QuestionBank) -> None:
        with pytest.raises(IndexError):
            question_bank.question_at(question_bank.question_count())
        with pytest.raises(IndexError):
            question_bank.question_at(-1)

    def test_is_immutable(self, question_bank: QuestionBank) -> None:
        with pytest.raises(AttributeError):
            question_bank.questions = ("Other?",)  # type: ignore[misc]
