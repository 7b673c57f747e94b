from flask import Blueprint, jsonify, request
from flask_login import login_required
from pydantic import ValidationError

from lms.api.routes_auth import current_identity
from lms.domain.errors import ForbiddenError, PersistenceError
from lms.domain.models.api_models import AnswerRequest, JumpRequest
from lms.infrastructure.config import settings
from lms.infrastructure.database import db
from lms.infrastructure.repositories import (
    MongoProgressRepository,
    MongoQuizRepository,
    MongoResourceRepository,
    MongoResultRepository,
)
from lms.services.ai_ports import LLMGradingService, LLMRecommendationService
from lms.services.ai_client import ai_client
from lms.services.grading_service import QuestionGrader
from lms.services.quiz_session import QuizSession
from lms.services.recommendation_service import RecommendationService
from lms.services.session_registry import session_registry
from lms_utils.logger_utils import logger

quiz_bp = Blueprint('quiz_bp', __name__)


def build_quiz_session(quiz_id: str) -> QuizSession:
    """Wire a session to the Mongo repositories and (optionally) the AI services."""
    use_ai = ai_client.is_configured()
    ai_grading = LLMGradingService(ai_client) if use_ai and settings.AI_GRADING_ENABLED else None
    ai_recommender = LLMRecommendationService(ai_client) if use_ai and settings.AI_RECOMMENDATIONS_ENABLED else None

    return QuizSession(
        quiz_id,
        current_identity(),
        quiz_repository=MongoQuizRepository(db),
        result_repository=MongoResultRepository(db),
        grader=QuestionGrader(ai_grading=ai_grading),
        recommender=RecommendationService(
            ai_recommender=ai_recommender,
            resource_repository=MongoResourceRepository(db),
        ),
        progress_repository=MongoProgressRepository(db),
        grading_timeout=settings.GRADING_TIMEOUT_SECONDS,
    )


def _owned_session(session_id: str) -> QuizSession:
    session = session_registry.get(session_id)
    if session.identity.user_id != current_identity().user_id:
        raise ForbiddenError("This quiz session belongs to another user.")
    return session


def _parse(model, payload):
    try:
        return model(**(payload or {})), None
    except ValidationError as e:
        return None, (jsonify({"error": e.errors(include_url=False)}), 400)


@quiz_bp.route('/quizzes/<string:quiz_id>/sessions', methods=['POST'])
@login_required
def start_session(quiz_id: str):
    """Starts a quiz attempt for the signed-in student."""
    session = build_quiz_session(quiz_id)
    session.load()
    session_registry.add(session)
    return jsonify(session.snapshot().to_dict()), 201


@quiz_bp.route('/sessions/<string:session_id>', methods=['GET'])
@login_required
def get_session(session_id: str):
    return jsonify(_owned_session(session_id).snapshot().to_dict())


@quiz_bp.route('/sessions/<string:session_id>/answers/<string:question_id>', methods=['PUT'])
@login_required
def save_answer(session_id: str, question_id: str):
    req_data, error = _parse(AnswerRequest, request.get_json(silent=True))
    if error:
        return error
    session = _owned_session(session_id)
    session.set_answer(question_id, req_data.answer)
    return jsonify(session.snapshot().to_dict())


@quiz_bp.route('/sessions/<string:session_id>/next', methods=['POST'])
@login_required
def next_question(session_id: str):
    session = _owned_session(session_id)
    session.next()
    return jsonify(session.snapshot().to_dict())


@quiz_bp.route('/sessions/<string:session_id>/previous', methods=['POST'])
@login_required
def previous_question(session_id: str):
    session = _owned_session(session_id)
    session.previous()
    return jsonify(session.snapshot().to_dict())


@quiz_bp.route('/sessions/<string:session_id>/jump', methods=['POST'])
@login_required
def jump_to_question(session_id: str):
    req_data, error = _parse(JumpRequest, request.get_json(silent=True))
    if error:
        return error
    session = _owned_session(session_id)
    session.jump_to(req_data.index)
    return jsonify(session.snapshot().to_dict())


def _submission_response(session: QuizSession, retry: bool = False):
    try:
        result = session.retry_save() if retry else session.submit()
    except PersistenceError:
        graded = session.graded_questions or []
        return jsonify({
            "error": session.error,
            "state": session.state.value,
            "score": session.result.score if session.result else None,
            "graded_questions": [q.model_dump(mode="json") for q in graded],
        }), 502

    return jsonify({
        "result": result.model_dump(by_alias=True, mode="json"),
        "recommendations": [rec.model_dump() for rec in session.recommendations],
    })


@quiz_bp.route('/sessions/<string:session_id>/submit', methods=['POST'])
@login_required
def submit_session(session_id: str):
    """Grades every question and saves the result. Concurrent calls share one grading run."""
    return _submission_response(_owned_session(session_id))


@quiz_bp.route('/sessions/<string:session_id>/retry-save', methods=['POST'])
@login_required
def retry_save(session_id: str):
    return _submission_response(_owned_session(session_id), retry=True)


@quiz_bp.route('/sessions/<string:session_id>', methods=['DELETE'])
@login_required
def cancel_session(session_id: str):
    session = _owned_session(session_id)
    session.cancel()
    session_registry.discard(session_id)
    logger.info(f"Discarded quiz session {session_id}")
    return '', 204
