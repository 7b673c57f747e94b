from flask import Blueprint, jsonify
from flask_login import login_required

from lms.api.routes_auth import current_identity
from lms.domain.errors import QuizNotFoundError
from lms.domain.models.db_models import Quiz
from lms.infrastructure.database import db
from lms.infrastructure.repositories import MongoQuizRepository
from lms.services.authorization import authorize_quiz_preview

preview_bp = Blueprint('preview_bp', __name__)


def quiz_summary(quiz: Quiz) -> dict:
    return {
        "_id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "subject": quiz.subject,
        "question_count": len(quiz.questions),
        "created_at": quiz.created_at.isoformat(),
    }


@preview_bp.route('/courses/<string:course_id>/quizzes', methods=['GET'])
@login_required
def list_course_quizzes(course_id: str):
    """Quizzes of a course, for the teacher's course page."""
    authorize_quiz_preview(current_identity())
    quizzes = MongoQuizRepository(db).list_by_course(course_id)
    return jsonify([quiz_summary(quiz) for quiz in quizzes])


@preview_bp.route('/quizzes/<string:quiz_id>/preview', methods=['GET'])
@login_required
def preview_quiz(quiz_id: str):
    """The full quiz, correct answers included. Nothing is graded or saved."""
    authorize_quiz_preview(current_identity())
    quiz = MongoQuizRepository(db).get_by_id(quiz_id)
    if quiz is None:
        raise QuizNotFoundError(f"Quiz {quiz_id} not found.")
    return jsonify(quiz.model_dump(by_alias=True, mode="json"))
