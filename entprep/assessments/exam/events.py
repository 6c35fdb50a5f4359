"""
Exam Session Events

Domain events raised by an exam session and the dispatcher that delivers them.
"""

import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from entprep.common.logger import app_logger

logger = app_logger.getChild("exam.events")


class DomainEvent:
    """Base class for all domain events of an exam session"""

    def __init__(self, event_id: Optional[str] = None, timestamp: Optional[float] = None):
        """Initialize a domain event with optional ID and timestamp"""
        self.event_id = event_id or str(uuid.uuid4())
        self.timestamp = timestamp or time.time()
        self.event_type = self.__class__.__name__


class EventDispatcher:
    """Event dispatcher for domain events"""

    def __init__(self):
        """Initialize the event dispatcher"""
        self._subscribers: Dict[str, List[Callable[[Any], None]]] = {}

    def subscribe(self, event_type, handler):
        """Subscribe a handler to an event type (class or class name)"""
        name = event_type if isinstance(event_type, str) else event_type.__name__
        self._subscribers.setdefault(name, []).append(handler)

    def dispatch(self, event):
        """Dispatch an event to all subscribers"""
        for handler in list(self._subscribers.get(event.event_type, [])):
            handler(event)

    def unsubscribe(self, event_type, handler):
        """Unsubscribe a handler from an event type"""
        name = event_type if isinstance(event_type, str) else event_type.__name__
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


class SessionStartedEvent(DomainEvent):
    """Event raised when a session has loaded its questions"""

    def __init__(self, session_id, total_questions, time_limit_seconds, event_id=None, timestamp=None):
        super().__init__(event_id, timestamp)
        self.session_id = session_id
        self.total_questions = total_questions
        self.time_limit_seconds = time_limit_seconds


class AnswerSelectedEvent(DomainEvent):
    """Event raised when an answer is recorded or overwritten"""

    def __init__(self, session_id, question_index, question_id, test_id, answer, event_id=None, timestamp=None):
        super().__init__(event_id, timestamp)
        self.session_id = session_id
        self.question_index = question_index
        self.question_id = question_id
        self.test_id = test_id
        self.answer = answer


class SessionFinishedEvent(DomainEvent):
    """Event raised once when a session finishes, by the user or by timeout"""

    def __init__(self, session_id, result, event_id=None, timestamp=None):
        super().__init__(event_id, timestamp)
        self.session_id = session_id
        self.result = result
