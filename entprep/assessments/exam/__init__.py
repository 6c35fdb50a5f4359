"""
Exam Simulation

The exam session state machine, its countdown timer and its domain events.
"""

from entprep.assessments.exam.events import (
    DomainEvent, EventDispatcher, SessionStartedEvent, AnswerSelectedEvent, SessionFinishedEvent
)
from entprep.assessments.exam.session import (
    DEFAULT_TIME_LIMIT_SECONDS, ExamSession, ExamResult, FinishReason,
    SessionProgress, SessionQuestion, SessionState, format_remaining
)
from entprep.assessments.exam.timer import CountdownTimer

__all__ = [
    'DomainEvent',
    'EventDispatcher',
    'SessionStartedEvent',
    'AnswerSelectedEvent',
    'SessionFinishedEvent',
    'DEFAULT_TIME_LIMIT_SECONDS',
    'ExamSession',
    'ExamResult',
    'FinishReason',
    'SessionProgress',
    'SessionQuestion',
    'SessionState',
    'format_remaining',
    'CountdownTimer',
]
