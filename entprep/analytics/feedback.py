"""
Rule-Based Feedback

Turns a learner's history into an overview sentence, strengths, weaknesses
and study recommendations. All strings are opaque to the rest of the system.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from entprep.analytics.performance import SubjectPerformance, subject_performance
from entprep.common.exceptions import ValidationError
from entprep.domain.catalog.model import TestDefinition
from entprep.domain.profiles.model import UserProfile

STRENGTH_THRESHOLD = 60.0
MAX_LISTED_SUBJECTS = 2

# (minimum percentage, level), checked top to bottom
PERFORMANCE_LEVELS = (
    (90.0, "very high"),
    (75.0, "high"),
    (60.0, "medium"),
    (40.0, "low"),
)
LOWEST_LEVEL = "very low"

INSUFFICIENT_DATA_OVERVIEW = "There is not enough test data yet. Take a few tests to get advice."
INSUFFICIENT_DATA_RECOMMENDATION = "Take several tests and review your results."
NO_SUBJECTS_OVERVIEW = (
    "You have not completed any of the available tests yet. "
    "Take a few tests to assess your readiness."
)
NO_STRENGTHS = "Your strong subjects are not identified yet. Take more tests."
NO_WEAKNESSES = "No weak subjects were found, but every subject can still be improved."
NO_RECOMMENDATIONS = "Take a few tests before recommendations can be given."
DAILY_STUDY = "Study for 2-3 hours every day."
BALANCE_STUDY = "Keep your strong subjects sharp and spend extra time on the weak ones."
EXTRA_MATERIALS = "Review additional materials for your weak subjects."


@dataclass(frozen=True)
class Feedback:
    overview: str
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overview": self.overview,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendations": list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Feedback':
        """
        Read feedback produced by the remote service.

        Raises:
            ValidationError: If the overview is missing
        """
        if not isinstance(data, dict) or not isinstance(data.get("overview"), str):
            raise ValidationError("feedback must be an object with an overview")

        def lines(name: str) -> List[str]:
            return [str(line) for line in data.get(name) or [] if line is not None]

        return cls(
            overview=data["overview"],
            strengths=lines("strengths"),
            weaknesses=lines("weaknesses"),
            recommendations=lines("recommendations"),
        )

    @classmethod
    def insufficient_data(cls) -> 'Feedback':
        return cls(
            overview=INSUFFICIENT_DATA_OVERVIEW,
            strengths=[],
            weaknesses=[],
            recommendations=[INSUFFICIENT_DATA_RECOMMENDATION],
        )


def performance_level(percentage: float) -> str:
    """Qualitative level for an overall percentage."""
    for minimum, level in PERFORMANCE_LEVELS:
        if percentage >= minimum:
            return level
    return LOWEST_LEVEL


def _describe(subject: SubjectPerformance) -> str:
    return (f"{subject.title}: {subject.percentage:.1f}% "
            f"({subject.total_score}/{subject.total_questions})")


def _overview(profile: UserProfile, subjects: Sequence[SubjectPerformance]) -> str:
    if not subjects:
        return NO_SUBJECTS_OVERVIEW

    total_score = sum(s.total_score for s in subjects)
    total_questions = sum(s.total_questions for s in subjects)
    percentage = total_score / total_questions * 100 if total_questions else 0.0
    name = profile.full_name or profile.username

    return (f"{name}, your exam readiness level is {performance_level(percentage)}. "
            f"You answered {total_questions} questions across {len(subjects)} subjects, "
            f"with {percentage:.1f}% correct overall.")


def _recommendations(weaknesses: Sequence[SubjectPerformance],
                     strengths: Sequence[SubjectPerformance]) -> List[str]:
    if not weaknesses and not strengths:
        return [NO_RECOMMENDATIONS]

    lines = [f"Extra preparation is needed in {subject.title}." for subject in weaknesses]
    lines.append(DAILY_STUDY)
    if strengths:
        lines.append(BALANCE_STUDY)
    if weaknesses:
        lines.append(EXTRA_MATERIALS)
    return lines


def generate_feedback(profile: Optional[UserProfile],
                      catalog: Sequence[TestDefinition]) -> Feedback:
    """
    Build feedback for a learner from their test history.

    Strengths are the (at most) two best subjects at or above 60%, weaknesses
    the (at most) two worst below 60%.

    Args:
        profile: The learner; None or an empty history yields the
            insufficient-data bundle
        catalog: Test catalog naming the subjects

    Returns:
        The feedback bundle
    """
    if profile is None or not profile.test_history:
        return Feedback.insufficient_data()

    subjects = subject_performance(profile.test_history, catalog)
    ranked = sorted(subjects, key=lambda s: s.percentage, reverse=True)
    strengths = [s for s in ranked[:MAX_LISTED_SUBJECTS] if s.percentage >= STRENGTH_THRESHOLD]
    weaknesses = [s for s in ranked[-MAX_LISTED_SUBJECTS:] if s.percentage < STRENGTH_THRESHOLD]

    return Feedback(
        overview=_overview(profile, subjects),
        strengths=[_describe(s) for s in strengths] or [NO_STRENGTHS],
        weaknesses=[_describe(s) for s in weaknesses] or [NO_WEAKNESSES],
        recommendations=_recommendations(weaknesses, strengths),
    )
