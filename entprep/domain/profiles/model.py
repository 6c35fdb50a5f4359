"""
User Profile Domain Model Module

This module defines the learner-side entities: the attempts produced by
completed sessions and the user profile that accumulates them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Tuple, Union

from entprep.common.exceptions import ValidationError
from entprep.common.serialization import parse_records

# Sentinel recorded for a question the user never answered
UNANSWERED = -1


def _parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError("field 'date' must be an ISO timestamp", {"date": value})
    try:
        # JavaScript clients send a trailing Z
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(f"unparseable date {value!r}", {"date": value}) from e


def _non_negative_int(data: Dict[str, Any], name: str) -> int:
    value = data.get(name)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(f"field '{name}' must be a non-negative integer", {name: value})
    return value


@dataclass(frozen=True)
class Attempt:
    """
    One completed run through a test.

    Attributes:
        test_id: Identifier of the test that was taken
        date: When the attempt was completed
        score: Number of correct answers
        total_questions: Number of questions in the attempt
        answers: Selected option per question, UNANSWERED when skipped
    """
    test_id: int
    date: datetime
    score: int
    total_questions: int
    answers: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.score < 0 or self.total_questions < 0:
            raise ValidationError("score and total_questions must be non-negative")
        if self.score > self.total_questions:
            raise ValidationError(
                f"score {self.score} exceeds total questions {self.total_questions}",
                {"score": self.score, "totalQuestions": self.total_questions}
            )

    @property
    def ratio(self) -> float:
        """Fraction of correct answers (0.0 when there were no questions)."""
        if self.total_questions == 0:
            return 0.0
        return self.score / self.total_questions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "testId": self.test_id,
            "date": self.date.isoformat(),
            "score": self.score,
            "totalQuestions": self.total_questions,
            "answers": list(self.answers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attempt':
        """
        Create an attempt from its wire shape.

        History entries carry ``totalQuestions`` but no answers; stored test
        results carry answers but may omit ``totalQuestions``, in which case
        the answer count is the question count.

        Raises:
            ValidationError: If the record is malformed
        """
        if not isinstance(data, dict):
            raise ValidationError("attempt must be an object")
        test_id = data.get("testId")
        if not isinstance(test_id, int) or isinstance(test_id, bool):
            raise ValidationError("field 'testId' must be an integer", {"testId": test_id})

        answers = data.get("answers") or []
        if not isinstance(answers, list) or not all(
                isinstance(a, int) and not isinstance(a, bool) for a in answers):
            raise ValidationError("field 'answers' must be a list of integers", {"answers": answers})

        if "totalQuestions" in data:
            total = _non_negative_int(data, "totalQuestions")
        else:
            total = len(answers)

        return cls(
            test_id=test_id,
            date=_parse_date(data.get("date")),
            score=_non_negative_int(data, "score"),
            total_questions=total,
            answers=tuple(answers),
        )


@dataclass(frozen=True)
class UserProfile:
    """
    A learner and their attempt history.

    The history only ever grows; the local data source appends to the stored
    record and never rewrites earlier entries.
    """
    id: Union[int, str]
    username: str
    full_name: str = ""
    email: str = ""
    test_history: Tuple[Attempt, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "email": self.email,
            "testHistory": [a.to_dict() for a in self.test_history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserProfile':
        """
        Create a profile from its wire shape; credentials are never kept.

        Raises:
            ValidationError: If identity fields are malformed
        """
        if not isinstance(data, dict):
            raise ValidationError("profile must be an object")
        user_id = data.get("id")
        username = data.get("username")
        if not isinstance(user_id, (int, str)) or isinstance(user_id, bool):
            raise ValidationError("field 'id' must be an integer or string", {"id": user_id})
        if not isinstance(username, str) or not username:
            raise ValidationError("field 'username' must be a non-empty string")

        history = data.get("testHistory") or []

        return cls(
            id=user_id,
            username=username,
            full_name=str(data.get("fullName") or ""),
            email=str(data.get("email") or ""),
            test_history=tuple(parse_records(history, Attempt.from_dict, "testHistory")),
        )
