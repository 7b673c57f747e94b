from typing import List

from lms.domain.errors import LessonNotFoundError
from lms.domain.models.db_models import Lesson, QuizResult
from lms.domain.repositories import ILessonRepository, IProgressRepository, IResultRepository
from lms_utils.logger_utils import logger


def record_quiz_score(progress_repository: IProgressRepository, user_id: str, course_id: str, score: int) -> None:
    """Append a quiz score to the student's course progress."""
    progress_repository.append_quiz_score(user_id, course_id, score)
    logger.info(f"Recorded quiz score {score} for user {user_id} in course {course_id}")


def complete_lesson(
    progress_repository: IProgressRepository,
    lesson_repository: ILessonRepository,
    user_id: str,
    course_id: str,
    lesson_id: str,
) -> List[Lesson]:
    """
    Mark a lesson of the course as completed and return the course lessons,
    so the caller can work out the next step of the learning path.
    """
    lessons = lesson_repository.list_by_course(course_id)
    if lesson_id not in {lesson.id for lesson in lessons}:
        raise LessonNotFoundError(f"Lesson {lesson_id} is not part of course {course_id}.")

    progress_repository.mark_lesson_completed(user_id, course_id, lesson_id)
    logger.info(f"User {user_id} completed lesson {lesson_id} in course {course_id}")
    return lessons


def get_student_results(result_repository: IResultRepository, student_id: str) -> List[QuizResult]:
    """All results of a student, newest first."""
    results = result_repository.list_by_student(student_id)
    return sorted(results, key=lambda r: r.timestamp or 0, reverse=True)
