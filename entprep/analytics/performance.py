"""
Performance Aggregation

This module folds historical attempts into per-test statistics. Averages are
always ratios of totals (correct answers over questions attempted), never
averages of per-attempt averages, and tests nobody attempted are left out
entirely rather than reported as zero.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from entprep.common.exceptions import ValidationError
from entprep.common.logger import app_logger
from entprep.common.serialization import parse_records
from entprep.domain.catalog.model import TestDefinition
from entprep.domain.profiles.model import Attempt

# Module logger
logger = app_logger.getChild("analytics.performance")

WEAKEST_AREA_LIMIT = 3


@dataclass(frozen=True)
class SubjectPerformance:
    """Aggregated results of every attempt on one test."""
    test_id: int
    title: str
    total_score: int
    total_questions: int
    attempts: int

    @property
    def average_score(self) -> float:
        """Correct answers over questions attempted, 0.0-1.0."""
        if self.total_questions == 0:
            return 0.0
        return self.total_score / self.total_questions

    @property
    def percentage(self) -> float:
        return self.average_score * 100


@dataclass(frozen=True)
class WeakArea:
    test_id: int
    title: str
    average_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"testId": self.test_id, "title": self.title, "averageScore": self.average_score}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WeakArea':
        try:
            return cls(
                test_id=int(data["testId"]),
                title=str(data.get("title", "")),
                average_score=float(data.get("averageScore", 0.0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ValidationError(f"malformed weak area: {e}", {"weakArea": data}) from e


@dataclass(frozen=True)
class PerformanceSummary:
    """
    Overall performance across qualifying attempts.

    Attributes:
        total_tests: Number of attempts that contributed (not distinct tests)
        average_score: Aggregate correct/attempted ratio, 0.0-1.0
        weakest_areas: Up to three lowest-scoring tests, ascending
    """
    total_tests: int = 0
    average_score: float = 0.0
    weakest_areas: List[WeakArea] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTests": self.total_tests,
            "averageScore": self.average_score,
            "weakestAreas": [area.to_dict() for area in self.weakest_areas],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PerformanceSummary':
        """
        Read a summary produced by the remote service.

        Raises:
            ValidationError: If the totals are missing or not numeric
        """
        if not isinstance(data, dict):
            raise ValidationError("performance summary must be an object")
        try:
            total_tests = int(data.get("totalTests", 0))
            average_score = float(data.get("averageScore", 0.0))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"malformed performance summary: {e}", data) from e
        return cls(
            total_tests=total_tests,
            average_score=average_score,
            weakest_areas=parse_records(data.get("weakestAreas"), WeakArea.from_dict, "weakestAreas"),
        )


def subject_performance(
    attempts: Iterable[Attempt],
    catalog: Sequence[TestDefinition],
    test_ids: Optional[Iterable[int]] = None
) -> List[SubjectPerformance]:
    """
    Group attempts by test and total them.

    Args:
        attempts: Historical attempts, any order
        catalog: Test catalog; its order is the order of the result
        test_ids: Optional filter restricting which tests are considered

    Returns:
        One entry per catalog test with at least one attempt, in catalog order
    """
    wanted = set(test_ids) if test_ids is not None else None
    by_test: Dict[int, List[Attempt]] = defaultdict(list)
    for attempt in attempts:
        by_test[attempt.test_id].append(attempt)

    performances = []
    seen = set()
    for test in catalog:
        if test.id in seen:
            continue
        seen.add(test.id)
        if wanted is not None and test.id not in wanted:
            continue
        test_attempts = by_test.get(test.id)
        if not test_attempts:
            continue
        performances.append(SubjectPerformance(
            test_id=test.id,
            title=test.title,
            total_score=sum(a.score for a in test_attempts),
            total_questions=sum(a.total_questions for a in test_attempts),
            attempts=len(test_attempts),
        ))

    unknown = set(by_test) - seen
    if unknown:
        logger.debug(f"Ignoring attempts for tests missing from the catalog: {sorted(unknown)}")
    return performances


def summarize_performance(
    attempts: Iterable[Attempt],
    catalog: Sequence[TestDefinition],
    test_ids: Optional[Iterable[int]] = None
) -> PerformanceSummary:
    """
    Summarize historical attempts against the catalog.

    Only attempts on catalog tests (and on ``test_ids`` when given) qualify.
    Weakest areas are ordered by average score ascending; ties keep catalog
    order because the sort is stable over catalog-ordered input.

    Args:
        attempts: Historical attempts
        catalog: Test catalog
        test_ids: Optional filter restricting which tests are considered

    Returns:
        The summary; all zeros and no weak areas when nothing qualifies
    """
    performances = subject_performance(attempts, catalog, test_ids)
    if not performances:
        return PerformanceSummary()

    total_score = sum(p.total_score for p in performances)
    total_questions = sum(p.total_questions for p in performances)

    ranked = sorted(performances, key=lambda p: p.average_score)
    weakest = [
        WeakArea(test_id=p.test_id, title=p.title, average_score=p.average_score)
        for p in ranked[:WEAKEST_AREA_LIMIT]
    ]

    return PerformanceSummary(
        total_tests=sum(p.attempts for p in performances),
        average_score=total_score / total_questions if total_questions else 0.0,
        weakest_areas=weakest,
    )
