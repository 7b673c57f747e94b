from dataclasses import dataclass

from lms.domain.errors import ForbiddenError
from lms.domain.models.db_models import UserRole


@dataclass(frozen=True)
class Identity:
    """Who is making the request, as supplied by the auth layer."""
    user_id: str
    role: UserRole


def _require_role(identity: Identity, role: UserRole, message: str) -> None:
    if identity is None or not identity.user_id:
        raise ForbiddenError("You must be signed in.")
    if identity.role != role:
        raise ForbiddenError(message)


def authorize_quiz_attempt(identity: Identity) -> None:
    """
    Only students take quizzes. Teachers use the quiz preview instead.
    """
    _require_role(
        identity, UserRole.STUDENT,
        "Teachers cannot take quizzes. Use the preview mode from the course page.",
    )


def authorize_lesson_progress(identity: Identity) -> None:
    _require_role(identity, UserRole.STUDENT, "Only students track lesson progress.")


def authorize_quiz_preview(identity: Identity) -> None:
    """Previews show correct answers, so they are limited to teachers."""
    _require_role(identity, UserRole.TEACHER, "Only teachers can preview quizzes.")
