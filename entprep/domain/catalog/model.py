"""
Test Catalog Domain Model Module

This module defines the reference data of the exam: test definitions and
their multiple-choice questions. Both are immutable and travel as camelCase
JSON, the shape used by the remote service and the local catalog.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from entprep.common.exceptions import ValidationError


def _require(data: Dict[str, Any], name: str, kind: type) -> Any:
    value = data.get(name)
    # bool is an int subclass; ids and indexes must be real integers
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValidationError(f"field '{name}' must be {kind.__name__}", {name: value})
    return value


@dataclass(frozen=True)
class Question:
    """
    A multiple-choice question.

    Attributes:
        id: Question identifier, unique within its test
        text: The question text
        options: Ordered answer options
        correct_answer: Index of the correct option
    """
    id: int
    text: str
    options: Tuple[str, ...]
    correct_answer: int

    def is_correct(self, answer: Any) -> bool:
        """
        Check an answer against the correct option.

        Anything that is not a valid option index never matches, including
        the unanswered sentinel and a correct index that is itself out of range.
        """
        if not isinstance(answer, int) or isinstance(answer, bool):
            return False
        if not 0 <= answer < len(self.options):
            return False
        return answer == self.correct_answer

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        """
        Create a question from its wire shape.

        Raises:
            ValidationError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValidationError("question must be an object")
        options = data.get("options")
        if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
            raise ValidationError("field 'options' must be a list of strings", {"options": options})
        return cls(
            id=_require(data, "id", int),
            text=_require(data, "text", str),
            options=tuple(options),
            correct_answer=_require(data, "correctAnswer", int),
        )


@dataclass(frozen=True)
class TestDefinition:
    """
    A test (subject) of the catalog.

    Attributes:
        id: Unique test identifier
        title: Display title, also used as the subject name in feedback
        description: Free text description
        questions: Ordered questions
    """
    __test__ = False  # not a pytest test class

    id: int
    title: str
    description: str = ""
    questions: Tuple[Question, ...] = field(default_factory=tuple)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TestDefinition':
        """
        Create a test definition from its wire shape.

        Raises:
            ValidationError: If the test or any of its questions is malformed
        """
        if not isinstance(data, dict):
            raise ValidationError("test must be an object")
        questions = data.get("questions", [])
        if not isinstance(questions, list):
            raise ValidationError("field 'questions' must be a list", {"questions": questions})
        description = data.get("description") or ""
        if not isinstance(description, str):
            raise ValidationError("field 'description' must be str")
        return cls(
            id=_require(data, "id", int),
            title=_require(data, "title", str),
            description=description,
            questions=tuple(Question.from_dict(q) for q in questions),
        )


def find_test(catalog: Iterable[TestDefinition], test_id: int) -> Optional[TestDefinition]:
    """Return the catalog entry with the given id, or None."""
    for test in catalog:
        if test.id == test_id:
            return test
    return None


def catalog_to_dicts(catalog: Iterable[TestDefinition]) -> List[Dict[str, Any]]:
    return [test.to_dict() for test in catalog]
