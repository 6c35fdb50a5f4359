"""
Exam Session State Machine

An exam session loads the test catalog, flattens every question of every test
into one shuffled sequence and drives the learner through it against a
countdown. The session finishes either at the learner's request (after
confirmation when questions are left unanswered) or unconditionally when the
clock reaches zero. A finished session is immutable; a new exam is a new
session.

States::

    LOADING -> IN_PROGRESS <-> CONFIRMING_FINISH
                    |                 |
                    +---> FINISHED <--+
    LOADING -> FAILED   (no questions)
"""

import enum
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from entprep.analytics.scoring import score
from entprep.common.exceptions import (
    EntPrepError, FinishConfirmationRequired, NoQuestionsAvailableError, ValidationError
)
from entprep.common.logger import app_logger, with_context
from entprep.domain.catalog.model import Question, TestDefinition
from entprep.domain.profiles.model import UNANSWERED, Attempt
from entprep.assessments.exam.events import (
    AnswerSelectedEvent, EventDispatcher, SessionFinishedEvent, SessionStartedEvent
)
from entprep.assessments.exam.timer import CountdownTimer

# Module logger
logger = app_logger.getChild("exam.session")

DEFAULT_TIME_LIMIT_SECONDS = 120 * 60

CatalogLoader = Callable[[], Awaitable[Sequence[TestDefinition]]]


class SessionState(enum.Enum):
    """State of an exam session."""
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    CONFIRMING_FINISH = "confirming_finish"
    FINISHED = "finished"
    FAILED = "failed"


class FinishReason(str, enum.Enum):
    """Why a session finished."""
    USER = "user"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class SessionQuestion:
    """A question placed in the session sequence, with its origin."""
    test_id: int
    position: int
    question: Question


@dataclass(frozen=True)
class ExamResult:
    """
    Terminal output of a finished session.

    Attributes:
        score: Correct answers across the whole session
        total_questions: Questions in the session
        answers: Recorded answer per session question, in session order
        attempts: One attempt per source test, answers in the test's order
        reason: Whether the learner finished or the clock ran out
        started_at: When the session entered IN_PROGRESS
        finished_at: When the session finished
    """
    score: int
    total_questions: int
    answers: Tuple[int, ...]
    attempts: Tuple[Attempt, ...]
    reason: FinishReason
    started_at: datetime
    finished_at: datetime

    @property
    def percentage(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.score / self.total_questions * 100

    @property
    def timed_out(self) -> bool:
        return self.reason is FinishReason.TIMEOUT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "totalQuestions": self.total_questions,
            "answers": list(self.answers),
            "attempts": [a.to_dict() for a in self.attempts],
            "reason": self.reason.value,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat(),
        }


@dataclass(frozen=True)
class SessionProgress:
    """Snapshot of a session for display."""
    state: SessionState
    current_index: int
    total_questions: int
    answered: int
    unanswered: int
    remaining_seconds: int
    remaining_display: str


def format_remaining(seconds: int) -> str:
    """Format a number of seconds as MM:SS (minutes are not wrapped)."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class ExamSession:
    """Timed, navigable multiple-choice exam."""

    def __init__(
        self,
        time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS,
        rng: Optional[random.Random] = None,
        dispatcher: Optional[EventDispatcher] = None,
        tick_interval_seconds: float = 1.0,
        session_id: Optional[str] = None
    ):
        """
        Initialize a session in the LOADING state.

        Args:
            time_limit_seconds: Countdown length
            rng: Random source used for the single shuffle
            dispatcher: Receives the session's domain events
            tick_interval_seconds: Real seconds between automatic ticks
            session_id: Identifier used in events and logs
        """
        if time_limit_seconds <= 0:
            raise ValidationError(f"time limit must be positive, got {time_limit_seconds}")

        self.session_id = session_id or str(uuid.uuid4())
        self.time_limit_seconds = time_limit_seconds
        self.rng = rng or random.Random()
        self.dispatcher = dispatcher or EventDispatcher()
        self.tick_interval_seconds = tick_interval_seconds
        self.logger = with_context(logger.name, session_id=self.session_id)

        self.state = SessionState.LOADING
        self.catalog: Tuple[TestDefinition, ...] = ()
        self.questions: List[SessionQuestion] = []
        self.answers: List[int] = []
        self.current_index = 0
        self.remaining_seconds = time_limit_seconds
        self.started_at: Optional[datetime] = None
        self.result: Optional[ExamResult] = None
        self._timer: Optional[CountdownTimer] = None

    # Lifecycle

    async def start(self, load_catalog: CatalogLoader, auto_tick: bool = False) -> None:
        """
        Load the questions and begin the exam.

        Args:
            load_catalog: Coroutine function returning the test catalog
            auto_tick: Start a countdown task ticking once per interval

        Raises:
            NoQuestionsAvailableError: If loading failed or produced no
                questions; the session is then FAILED
        """
        if self.state is not SessionState.LOADING or self.questions:
            self.logger.warning(f"Ignoring start() in state {self.state.value}")
            return

        try:
            catalog = tuple(await load_catalog())
        except EntPrepError as e:
            self.state = SessionState.FAILED
            self.logger.error(f"Could not load tests: {e.message}")
            raise NoQuestionsAvailableError(e) from e
        except Exception as e:
            self.state = SessionState.FAILED
            self.logger.exception(f"Catalog loader failed: {e}")
            raise NoQuestionsAvailableError(e) from e

        questions = [
            SessionQuestion(test_id=test.id, position=position, question=question)
            for test in catalog
            for position, question in enumerate(test.questions)
        ]
        if not questions:
            self.state = SessionState.FAILED
            self.logger.error("No questions available for the session")
            raise NoQuestionsAvailableError()

        self.rng.shuffle(questions)

        self.catalog = catalog
        self.questions = questions
        self.answers = [UNANSWERED] * len(questions)
        self.current_index = 0
        self.remaining_seconds = self.time_limit_seconds
        self.started_at = datetime.now(timezone.utc)
        self.state = SessionState.IN_PROGRESS

        self.logger.info(f"Session started with {len(questions)} questions from {len(catalog)} tests")
        self.dispatcher.dispatch(SessionStartedEvent(self.session_id, len(questions), self.time_limit_seconds))

        if auto_tick:
            self._timer = CountdownTimer(self.tick, self.tick_interval_seconds)
            self._timer.start()

    @property
    def is_active(self) -> bool:
        return self.state in (SessionState.IN_PROGRESS, SessionState.CONFIRMING_FINISH)

    @property
    def is_finished(self) -> bool:
        return self.state is SessionState.FINISHED

    def tick(self) -> int:
        """
        Advance the countdown by one second.

        Reaching zero finishes the session immediately, bypassing any pending
        confirmation.

        Returns:
            Seconds remaining after the tick
        """
        if not self.is_active:
            return self.remaining_seconds

        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.remaining_seconds == 0:
            self.logger.info("Time is up, finishing session")
            self._finish(FinishReason.TIMEOUT)
        return self.remaining_seconds

    # Answers and navigation

    def _accepts_input(self, action: str) -> bool:
        if self.state is SessionState.IN_PROGRESS:
            return True
        self.logger.warning(f"Ignoring {action} in state {self.state.value}")
        return False

    def select_answer(self, question_index: int, option_index: int) -> bool:
        """
        Record (or overwrite) the answer to a question.

        Does not move the cursor and does not touch the clock.

        Returns:
            True when recorded, False when the session does not accept answers

        Raises:
            ValidationError: If the question index does not exist
        """
        if not self._accepts_input("select_answer"):
            return False
        if not isinstance(question_index, int) or not 0 <= question_index < len(self.questions):
            raise ValidationError(f"question index {question_index} out of range",
                                  {"question_index": question_index})
        if not isinstance(option_index, int) or isinstance(option_index, bool):
            raise ValidationError("option index must be an integer", {"option_index": option_index})

        self.answers[question_index] = option_index
        placed = self.questions[question_index]
        self.dispatcher.dispatch(AnswerSelectedEvent(
            self.session_id, question_index, placed.question.id, placed.test_id, option_index
        ))
        return True

    def _move_to(self, index: int) -> int:
        self.current_index = min(max(index, 0), len(self.questions) - 1)
        return self.current_index

    def go_next(self) -> int:
        if self._accepts_input("go_next"):
            self._move_to(self.current_index + 1)
        return self.current_index

    def go_previous(self) -> int:
        if self._accepts_input("go_previous"):
            self._move_to(self.current_index - 1)
        return self.current_index

    def jump_to(self, index: int) -> int:
        """Move the cursor to a question; out-of-range indexes are clamped."""
        if self._accepts_input("jump_to"):
            self._move_to(index)
        return self.current_index

    @property
    def current_question(self) -> Optional[SessionQuestion]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def unanswered_count(self) -> int:
        return sum(1 for answer in self.answers if answer == UNANSWERED)

    @property
    def remaining_time_display(self) -> str:
        return format_remaining(self.remaining_seconds)

    def progress(self) -> SessionProgress:
        unanswered = self.unanswered_count
        return SessionProgress(
            state=self.state,
            current_index=self.current_index,
            total_questions=len(self.questions),
            answered=len(self.answers) - unanswered,
            unanswered=unanswered,
            remaining_seconds=self.remaining_seconds,
            remaining_display=self.remaining_time_display,
        )

    # Finishing

    def request_finish(self) -> Optional[ExamResult]:
        """
        Finish the exam at the learner's request.

        Returns:
            The result, when every question has an answer

        Raises:
            FinishConfirmationRequired: If questions are unanswered; the
                session waits in CONFIRMING_FINISH for confirm or cancel
        """
        if self.state is SessionState.FINISHED:
            return self.result
        if not self._accepts_input("request_finish"):
            return self.result

        unanswered = self.unanswered_count
        if unanswered:
            self.state = SessionState.CONFIRMING_FINISH
            self.logger.info(f"Finish requested with {unanswered} unanswered question(s)")
            raise FinishConfirmationRequired(unanswered)

        return self._finish(FinishReason.USER)

    def confirm_finish(self) -> Optional[ExamResult]:
        """Finish despite unanswered questions."""
        if self.state is SessionState.CONFIRMING_FINISH:
            return self._finish(FinishReason.USER)
        self.logger.warning(f"Ignoring confirm_finish in state {self.state.value}")
        return self.result

    def cancel_finish(self) -> None:
        """Return to the exam without finishing."""
        if self.state is SessionState.CONFIRMING_FINISH:
            self.state = SessionState.IN_PROGRESS
            return
        self.logger.warning(f"Ignoring cancel_finish in state {self.state.value}")

    def _finish(self, reason: FinishReason) -> ExamResult:
        if self.result is not None:
            return self.result

        if self._timer is not None:
            self._timer.stop()

        finished_at = datetime.now(timezone.utc)
        answers = tuple(self.answers)
        result = ExamResult(
            score=score([q.question for q in self.questions], answers),
            total_questions=len(self.questions),
            answers=answers,
            attempts=self._attempts_by_test(finished_at),
            reason=reason,
            started_at=self.started_at or finished_at,
            finished_at=finished_at,
        )
        self.result = result
        self.state = SessionState.FINISHED

        self.logger.info(f"Session finished ({reason.value}): {result.score}/{result.total_questions}")
        self.dispatcher.dispatch(SessionFinishedEvent(self.session_id, result))
        return result

    def _attempts_by_test(self, finished_at: datetime) -> Tuple[Attempt, ...]:
        answered: Dict[Tuple[int, int], int] = {
            (placed.test_id, placed.position): self.answers[index]
            for index, placed in enumerate(self.questions)
        }

        attempts = []
        for test in self.catalog:
            if not test.questions:
                continue
            test_answers = tuple(
                answered.get((test.id, position), UNANSWERED)
                for position in range(test.question_count)
            )
            attempts.append(Attempt(
                test_id=test.id,
                date=finished_at,
                score=score(test.questions, test_answers),
                total_questions=test.question_count,
                answers=test_answers,
            ))
        return tuple(attempts)

    async def close(self) -> None:
        """Stop the countdown task, if any, and wait for it to end."""
        if self._timer is not None:
            self._timer.stop()
            await self._timer.wait_closed()
