from abc import ABC, abstractmethod
from typing import List, Optional
from ..models.db_models import CourseProgress, Lesson, Quiz, QuizResult, Resource

class IQuizRepository(ABC):
    """Interface for a quiz repository."""
    @abstractmethod
    def get_by_id(self, quiz_id: str) -> Optional[Quiz]:
        pass

    @abstractmethod
    def create(self, quiz: Quiz) -> None:
        pass

    @abstractmethod
    def list_by_course(self, course_id: str) -> List[Quiz]:
        pass

class IResultRepository(ABC):
    """Interface for a quiz result repository."""
    @abstractmethod
    def save(self, result: QuizResult) -> str:
        pass

    @abstractmethod
    def get_by_id(self, result_id: str) -> Optional[QuizResult]:
        pass

    @abstractmethod
    def list_by_student(self, student_id: str) -> List[QuizResult]:
        pass

class IResourceRepository(ABC):
    """Interface for a learning resource repository."""
    @abstractmethod
    def find(self, subject: Optional[str] = None, difficulty: Optional[str] = None) -> List[Resource]:
        pass

class IProgressRepository(ABC):
    """Interface for a course progress repository."""
    @abstractmethod
    def get(self, user_id: str, course_id: str) -> Optional[CourseProgress]:
        pass

    @abstractmethod
    def append_quiz_score(self, user_id: str, course_id: str, score: int) -> None:
        pass

    @abstractmethod
    def mark_lesson_completed(self, user_id: str, course_id: str, lesson_id: str) -> None:
        pass

class ILessonRepository(ABC):
    """Interface for a lesson repository."""
    @abstractmethod
    def list_by_course(self, course_id: str) -> List[Lesson]:
        pass
