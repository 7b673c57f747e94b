from dataclasses import dataclass
from typing import List, Optional

from lms.domain.models.db_models import CourseProgress, Lesson


@dataclass
class LearningPath:
    next_lesson: Optional[Lesson]
    path: str      # beginner / remedial / standard / advanced
    message: str

    def to_dict(self):
        return {
            "next_lesson": self.next_lesson.model_dump(by_alias=True) if self.next_lesson else None,
            "path": self.path,
            "message": self.message,
        }


def _first_with_difficulty(lessons: List[Lesson], difficulty: str) -> Optional[Lesson]:
    for lesson in lessons:
        if lesson.difficulty == difficulty:
            return lesson
    return lessons[0] if lessons else None


def generate_learning_path(progress: Optional[CourseProgress], lessons: List[Lesson]) -> LearningPath:
    """Suggest the next lesson from completed lessons and quiz scores so far."""
    completed = set(progress.completed_lessons) if progress else set()
    scores = progress.quiz_scores if progress else []
    pending = [lesson for lesson in sorted(lessons, key=lambda l: l.order) if lesson.id not in completed]

    if not completed:
        return LearningPath(
            next_lesson=pending[0] if pending else None,
            path="beginner",
            message="Welcome! Start with the first lesson to begin your learning journey.",
        )

    average = sum(scores) / len(scores) if scores else 0

    if average < 60:
        return LearningPath(
            next_lesson=_first_with_difficulty(pending, "easy"),
            path="remedial",
            message="Consider reviewing previous lessons before continuing.",
        )
    if average < 80:
        return LearningPath(
            next_lesson=pending[0] if pending else None,
            path="standard",
            message="Great progress! Continue with the next lesson.",
        )
    return LearningPath(
        next_lesson=_first_with_difficulty(pending, "hard"),
        path="advanced",
        message="Excellent work! You're ready for more challenging content.",
    )
