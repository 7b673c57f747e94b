from flask import Blueprint, jsonify
from flask_login import login_required

from lms.api.routes_auth import current_identity
from lms.domain.errors import ForbiddenError, ResultNotFoundError
from lms.infrastructure.database import db
from lms.infrastructure.repositories import MongoLessonRepository, MongoProgressRepository, MongoResultRepository
from lms.services.authorization import authorize_lesson_progress
from lms.services.learning_path import generate_learning_path
from lms.services.progress_service import complete_lesson, get_student_results

results_bp = Blueprint('results_bp', __name__)


@results_bp.route('/results/me', methods=['GET'])
@login_required
def my_results():
    """All quiz results of the signed-in student, newest first."""
    results = get_student_results(MongoResultRepository(db), current_identity().user_id)
    return jsonify([result.model_dump(by_alias=True, mode="json") for result in results])


@results_bp.route('/results/<string:result_id>', methods=['GET'])
@login_required
def get_result(result_id: str):
    result = MongoResultRepository(db).get_by_id(result_id)
    if result is None:
        raise ResultNotFoundError(f"Result {result_id} not found.")
    if result.student_id != current_identity().user_id:
        raise ForbiddenError("This result belongs to another student.")
    return jsonify(result.model_dump(by_alias=True, mode="json"))


@results_bp.route('/courses/<string:course_id>/learning-path', methods=['GET'])
@login_required
def learning_path(course_id: str):
    identity = current_identity()
    progress = MongoProgressRepository(db).get(identity.user_id, course_id)
    lessons = MongoLessonRepository(db).list_by_course(course_id)
    return jsonify(generate_learning_path(progress, lessons).to_dict())


@results_bp.route('/courses/<string:course_id>/lessons/<string:lesson_id>/complete', methods=['POST'])
@login_required
def complete_course_lesson(course_id: str, lesson_id: str):
    """Marks a lesson as done and returns the updated learning path."""
    identity = current_identity()
    authorize_lesson_progress(identity)

    progress_repository = MongoProgressRepository(db)
    lessons = complete_lesson(
        progress_repository, MongoLessonRepository(db), identity.user_id, course_id, lesson_id
    )
    progress = progress_repository.get(identity.user_id, course_id)
    return jsonify(generate_learning_path(progress, lessons).to_dict())
