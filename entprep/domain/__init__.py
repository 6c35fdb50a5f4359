"""
Domain entities of the exam-preparation core.
"""

from entprep.domain.catalog.model import Question, TestDefinition, find_test
from entprep.domain.profiles.model import UNANSWERED, Attempt, UserProfile

__all__ = [
    'Question',
    'TestDefinition',
    'find_test',
    'UNANSWERED',
    'Attempt',
    'UserProfile',
]
