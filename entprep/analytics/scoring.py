"""
Scoring

Counts the correct answers of an attempt. Malformed answers (out of range,
missing, the unanswered sentinel, non-integers) simply do not match.
"""

from typing import Any, Mapping, Sequence, Union

from entprep.domain.catalog.model import Question

Answers = Union[Sequence[Any], Mapping[int, Any]]


def answer_at(answers: Answers, index: int) -> Any:
    """Return the answer recorded for a question index, or None."""
    if isinstance(answers, Mapping):
        return answers.get(index)
    if 0 <= index < len(answers):
        return answers[index]
    return None


def score(questions: Sequence[Question], answers: Answers) -> int:
    """
    Count the questions whose recorded answer is the correct option.

    Args:
        questions: Questions in presentation order
        answers: Recorded answers, positionally aligned with ``questions``
            (a sequence) or keyed by question index (a mapping)

    Returns:
        Number of correct answers, between 0 and len(questions)
    """
    return sum(
        1 for index, question in enumerate(questions)
        if question.is_correct(answer_at(answers, index))
    )


def score_band(percentage: float) -> str:
    """Short verdict shown next to a single result."""
    if percentage >= 80:
        return "Excellent!"
    if percentage >= 60:
        return "Good!"
    if percentage >= 40:
        return "Average."
    return "More preparation needed."
