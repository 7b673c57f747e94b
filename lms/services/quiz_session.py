"""
A student's attempt at one quiz.

    loading --load()--> active --submit()--> submitting --> graded

    cancel() from loading, active or submitting --> cancelled

Navigation and answer changes are only accepted while active. submit() is
idempotent: concurrent or repeated calls share one grading run and one
persisted QuizResult.
"""
import threading
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from lms.domain.errors import (
    InvalidQuizError,
    PersistenceError,
    QuizNotFoundError,
    SessionCancelledError,
    SessionStateError,
)
from lms.domain.models.api_models import SessionSnapshot
from lms.domain.models.db_models import GradedQuestion, Question, Quiz, QuizResult, Recommendation
from lms.domain.repositories import IProgressRepository, IQuizRepository, IResultRepository
from lms.services import session_events as ev
from lms.services.authorization import Identity, authorize_quiz_attempt
from lms.services.fallback_grader import round_half_up
from lms.services.grading_service import QuestionGrader
from lms.services.progress_service import record_quiz_score
from lms.services.recommendation_service import RecommendationService
from lms_utils.logger_utils import logger


class SessionState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    SUBMITTING = "submitting"
    GRADED = "graded"
    CANCELLED = "cancelled"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def aggregate_score(graded: List[GradedQuestion]) -> int:
    """round(mean(scores)), rounding halves up."""
    if not graded:
        raise InvalidQuizError("Cannot aggregate a quiz with no graded questions.")
    return round_half_up(sum(q.score for q in graded) / len(graded))


def public_question(question: Question, number: int) -> Dict[str, Any]:
    """The parts of a question a student may see while answering."""
    return {
        "id": question.id,
        "number": number,
        "type": question.type.value,
        "prompt": question.prompt,
        "options": [
            {"letter": letter, "text": text}
            for letter, text in zip(question.option_letters(), question.options)
        ],
    }


class QuizSession:
    def __init__(
        self,
        quiz_id: str,
        identity: Identity,
        *,
        quiz_repository: IQuizRepository,
        result_repository: IResultRepository,
        grader: QuestionGrader,
        recommender: RecommendationService,
        progress_repository: Optional[IProgressRepository] = None,
        events: Optional[ev.SessionEvents] = None,
        clock: Callable[[], datetime] = _utc_now,
        grading_timeout: float = None,
        session_id: str = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.quiz_id = quiz_id
        self.identity = identity
        self.quiz_repository = quiz_repository
        self.result_repository = result_repository
        self.grader = grader
        self.recommender = recommender
        self.progress_repository = progress_repository
        self.events = events or ev.SessionEvents()
        self.clock = clock
        self.grading_timeout = grading_timeout

        self._state = SessionState.LOADING
        self._quiz: Optional[Quiz] = None
        self._answers: Dict[str, str] = {}
        self._index = 0
        self._graded: Optional[List[GradedQuestion]] = None
        self._recommendations: List[Recommendation] = []
        self._result: Optional[QuizResult] = None
        self._error: Optional[str] = None

        # _lock guards state, answers and index; _submit_lock serialises submit()
        self._lock = threading.RLock()
        self._submit_lock = threading.Lock()
        self._cancelled = threading.Event()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def quiz(self) -> Optional[Quiz]:
        return self._quiz

    @property
    def answers(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._answers)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Optional[Question]:
        if self._quiz is None:
            return None
        return self._quiz.questions[self._index]

    @property
    def graded_questions(self) -> Optional[List[GradedQuestion]]:
        return list(self._graded) if self._graded is not None else None

    @property
    def recommendations(self) -> List[Recommendation]:
        return list(self._recommendations)

    @property
    def result(self) -> Optional[QuizResult]:
        return self._result

    @property
    def error(self) -> Optional[str]:
        return self._error

    def progress(self) -> Dict[str, int]:
        with self._lock:
            return {
                "answered": sum(1 for value in self._answers.values() if value != ""),
                "total": len(self._answers),
                "current_index": self._index,
            }

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            question = self.current_question
            progress = self.progress()
            return SessionSnapshot(
                session_id=self.id,
                state=self._state.value,
                quiz_id=self.quiz_id,
                title=self._quiz.title if self._quiz else "",
                current_index=self._index,
                total_questions=progress["total"],
                answered=progress["answered"],
                current_question=public_question(question, self._index + 1) if question else None,
                answers=dict(self._answers),
                error=self._error,
            )

    # ------------------------------------------------------------------
    # loading -> active
    # ------------------------------------------------------------------
    def load(self) -> Quiz:
        with self._lock:
            if self._state != SessionState.LOADING:
                raise SessionStateError(f"Session already {self._state.value}.")

            authorize_quiz_attempt(self.identity)

            quiz = self.quiz_repository.get_by_id(self.quiz_id)
            if quiz is None:
                raise QuizNotFoundError(f"Quiz {self.quiz_id} not found.")
            if not quiz.questions:
                raise InvalidQuizError(f"Quiz {self.quiz_id} has no questions.")

            self._quiz = quiz
            self._answers = {question.id: "" for question in quiz.questions}
            self._index = 0
            self._state = SessionState.ACTIVE

        logger.info(
            "QuizSession.started",
            extra={"session_id": self.id, "quiz_id": quiz.id, "student_id": self.identity.user_id},
        )
        self.events.publish(ev.SESSION_STARTED, {"session_id": self.id, "quiz_id": quiz.id})
        return quiz

    # ------------------------------------------------------------------
    # active
    # ------------------------------------------------------------------
    def _require_active(self) -> None:
        if self._state != SessionState.ACTIVE:
            raise SessionStateError(f"Quiz session is {self._state.value}, not active.")

    def set_answer(self, question_id: str, value: str) -> None:
        with self._lock:
            self._require_active()
            if question_id not in self._answers:
                raise SessionStateError(f"Question {question_id} is not part of this quiz.")
            self._answers[question_id] = "" if value is None else str(value)
            progress = self.progress()
        self.events.publish(ev.ANSWER_CHANGED, {"session_id": self.id, "question_id": question_id, **progress})

    def _move_to(self, index: int = None, step: int = 0) -> int:
        with self._lock:
            self._require_active()
            if index is None:
                index = self._index + step
            if 0 <= index < len(self._quiz.questions) and index != self._index:
                self._index = index
                changed = True
            else:
                changed = False
            current = self._index
        if changed:
            self.events.publish(ev.QUESTION_CHANGED, {"session_id": self.id, "current_index": current})
        return current

    def next(self) -> int:
        return self._move_to(step=1)

    def previous(self) -> int:
        return self._move_to(step=-1)

    def jump_to(self, index: int) -> int:
        """Go straight to a question; out-of-range indexes are ignored."""
        return self._move_to(index)

    # ------------------------------------------------------------------
    # active -> submitting -> graded
    # ------------------------------------------------------------------
    def submit(self) -> QuizResult:
        with self._submit_lock:
            if self._state == SessionState.GRADED:
                return self._result
            if self._state == SessionState.CANCELLED:
                raise SessionCancelledError("Quiz session was cancelled.")
            if self._result is not None:
                # grades were computed but the last save failed
                return self._persist()

            with self._lock:
                self._require_active()
                self._state = SessionState.SUBMITTING
                answers = dict(self._answers)

            logger.info(f"Submitting quiz session {self.id} ({len(answers)} questions)")
            try:
                graded = self.grader.grade_all(self._quiz.questions, answers, timeout=self.grading_timeout)

                if self._cancelled.is_set():
                    logger.info(f"Quiz session {self.id} cancelled during grading; nothing saved")
                    raise SessionCancelledError("Quiz session was cancelled before grading finished.")

                score = aggregate_score(graded)
                recommendations = self._recommend(score, answers)
                result = self._build_result(graded, score, recommendations)
            except SessionCancelledError:
                raise
            except Exception as e:
                # back to active so the student can submit again
                with self._lock:
                    if self._state == SessionState.SUBMITTING:
                        self._state = SessionState.ACTIVE
                logger.error(f"Grading quiz session {self.id} failed: {e}", exc_info=True)
                raise

            self._graded = graded
            self._recommendations = recommendations
            self._result = result
            self.events.publish(ev.QUIZ_GRADED, {"session_id": self.id, "score": score})

            return self._persist()

    def _recommend(self, score: int, answers: Dict[str, str]) -> List[Recommendation]:
        try:
            return self.recommender.recommend(score, self._quiz.subject, answers, self._quiz.title)
        except Exception as e:
            logger.warning(f"Recommendations failed for quiz session {self.id}, using score tier: {e}")
            return RecommendationService().fallback_recommendations(score, self._quiz.subject)

    def retry_save(self) -> QuizResult:
        """Manual retry after a failed save; the grades are not recomputed."""
        if self._result is None:
            raise SessionStateError("Nothing to save yet; submit the quiz first.")
        return self.submit()

    def _build_result(self, graded: List[GradedQuestion], score: int, recommendations: List[Recommendation]) -> QuizResult:
        now = self.clock()
        return QuizResult(
            _id=uuid.uuid4().hex,
            student_id=self.identity.user_id,
            quiz_id=self._quiz.id,
            course_id=self._quiz.course_id,
            score=score,
            total_questions=len(graded),
            questions=graded,
            submitted_at=now,
            timestamp=int(now.timestamp() * 1000),
            date=now.strftime("%d %b %Y"),
            time=now.strftime("%H:%M:%S"),
            recommendations=[rec.title for rec in recommendations],
        )

    def _persist(self) -> QuizResult:
        if self._cancelled.is_set():
            raise SessionCancelledError("Quiz session was cancelled.")

        try:
            self.result_repository.save(self._result)
        except PersistenceError as e:
            self._save_failed(e)
            raise
        except Exception as e:
            self._save_failed(e)
            raise PersistenceError(f"Could not save quiz result: {e}") from e

        with self._lock:
            self._state = SessionState.GRADED
            self._error = None

        logger.info(
            "QuizSession.graded",
            extra={"session_id": self.id, "result_id": self._result.id, "score": self._result.score},
        )
        self.events.publish(ev.RESULT_SAVED, {"session_id": self.id, "result_id": self._result.id})
        self._record_progress()
        return self._result

    def _save_failed(self, error: Exception) -> None:
        self._error = "Your answers were graded but the result could not be saved. Please try again."
        logger.error(f"Saving result for quiz session {self.id} failed: {error}")
        self.events.publish(ev.SAVE_FAILED, {"session_id": self.id, "error": str(error)})

    def _record_progress(self) -> None:
        if self.progress_repository is None:
            return
        try:
            record_quiz_score(self.progress_repository, self.identity.user_id, self._quiz.course_id, self._result.score)
        except Exception as e:
            logger.warning(f"Could not update course progress for session {self.id}: {e}")
            return
        self.events.publish(
            ev.PROGRESS_UPDATED,
            {"session_id": self.id, "course_id": self._quiz.course_id, "score": self._result.score},
        )

    # ------------------------------------------------------------------
    # cancellation
    # ------------------------------------------------------------------
    def cancel(self) -> None:
        """Abandon the attempt. In-flight grading is discarded and never saved."""
        with self._lock:
            if self._state in (SessionState.GRADED, SessionState.CANCELLED):
                return
            self._cancelled.set()
            self._state = SessionState.CANCELLED
        logger.info(f"Quiz session {self.id} cancelled")
