from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from lms.domain.errors import PersistenceError
from lms.domain.repositories import (
    ILessonRepository,
    IProgressRepository,
    IQuizRepository,
    IResourceRepository,
    IResultRepository,
)
from lms.domain.models.db_models import CourseProgress, Lesson, Quiz, QuizResult, Resource
from lms_utils.logger_utils import logger


class MongoQuizRepository(IQuizRepository):
    """MongoDB implementation of the quiz repository."""

    def __init__(self, db: Database):
        self.db = db
        self.collection = self.db.quizzes

    def _find_raw(self, quiz_id: str):
        """
        Look a quiz up by string _id first, then as an ObjectId for quizzes
        created by older tooling.
        """
        doc = self.collection.find_one({"_id": quiz_id})
        if doc:
            return doc

        try:
            oid = ObjectId(quiz_id)
        except (InvalidId, TypeError):
            return None
        doc = self.collection.find_one({"_id": oid})
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc

    def get_by_id(self, quiz_id: str) -> Optional[Quiz]:
        quiz_data = self._find_raw(quiz_id)
        if not quiz_data:
            logger.warning(
                "MongoQuizRepository.get_by_id.missing",
                extra={"quiz_id": quiz_id},
            )
            return None

        try:
            return Quiz(**quiz_data)
        except ValidationError as exc:
            logger.error(
                "MongoQuizRepository.get_by_id.parse_error",
                extra={"quiz_id": quiz_id, "error": str(exc)},
                exc_info=True,
            )
            return None

    def create(self, quiz: Quiz) -> None:
        self.collection.insert_one(quiz.to_dict())
        logger.info(f"Created quiz '{quiz.title}' with ID: {quiz.id}")

    def list_by_course(self, course_id: str) -> List[Quiz]:
        quizzes = []
        for raw in self.collection.find({"course_id": course_id}):
            raw["_id"] = str(raw["_id"])
            try:
                quizzes.append(Quiz(**raw))
            except ValidationError as exc:
                logger.error(
                    "MongoQuizRepository.list_by_course.parse_error",
                    extra={"quiz_id": raw["_id"], "error": str(exc)},
                )
        return quizzes


class MongoResultRepository(IResultRepository):
    """MongoDB implementation of the quiz result repository."""

    def __init__(self, db: Database):
        self.db = db
        self.collection = self.db.results

    def save(self, result: QuizResult) -> str:
        """
        Write the result keyed by its id. Re-saving the same result (a retry
        after a failed write) replaces the document instead of duplicating it.
        """
        doc = result.to_dict()
        try:
            self.collection.replace_one({"_id": result.id}, doc, upsert=True)
        except PyMongoError as exc:
            logger.error(
                "MongoResultRepository.save.failed",
                extra={"result_id": result.id, "error": str(exc)},
                exc_info=True,
            )
            raise PersistenceError(f"Could not save quiz result: {exc}") from exc

        logger.info(
            "MongoResultRepository.save.ok",
            extra={"result_id": result.id, "quiz_id": result.quiz_id, "score": result.score},
        )
        return result.id

    def get_by_id(self, result_id: str) -> Optional[QuizResult]:
        data = self.collection.find_one({"_id": result_id})
        if not data:
            return None
        try:
            return QuizResult(**data)
        except ValidationError as exc:
            logger.error(
                "MongoResultRepository.get_by_id.parse_error",
                extra={"result_id": result_id, "error": str(exc)},
                exc_info=True,
            )
            return None

    def list_by_student(self, student_id: str) -> List[QuizResult]:
        results = []
        cursor = self.collection.find({"student_id": student_id}).sort("timestamp", DESCENDING)
        for raw in cursor:
            try:
                results.append(QuizResult(**raw))
            except ValidationError as exc:
                logger.error(
                    "MongoResultRepository.list_by_student.parse_error",
                    extra={"result_id": raw.get("_id"), "error": str(exc)},
                )
        return results


class MongoResourceRepository(IResourceRepository):
    """MongoDB implementation of the learning resource repository."""

    def __init__(self, db: Database):
        self.db = db
        self.collection = self.db.resources

    def find(self, subject: Optional[str] = None, difficulty: Optional[str] = None) -> List[Resource]:
        query = {}
        if subject:
            query["subject"] = subject
        if difficulty:
            query["difficulty"] = difficulty

        resources = []
        for raw in self.collection.find(query):
            raw["_id"] = str(raw["_id"])
            try:
                resources.append(Resource(**raw))
            except ValidationError as exc:
                logger.warning(
                    "MongoResourceRepository.find.parse_error",
                    extra={"resource_id": raw["_id"], "error": str(exc)},
                )
        return resources


class MongoProgressRepository(IProgressRepository):
    """MongoDB implementation of the course progress repository."""

    def __init__(self, db: Database):
        self.db = db
        self.collection = self.db.progress

    def get(self, user_id: str, course_id: str) -> Optional[CourseProgress]:
        data = self.collection.find_one({"_id": CourseProgress.make_id(user_id, course_id)})
        if not data:
            return None
        return CourseProgress(**data)

    def append_quiz_score(self, user_id: str, course_id: str, score: int) -> None:
        try:
            self.collection.update_one(
                {"_id": CourseProgress.make_id(user_id, course_id)},
                {
                    "$push": {"quiz_scores": score},
                    "$set": {"updated_at": datetime.now(timezone.utc)},
                    "$setOnInsert": {"user_id": user_id, "course_id": course_id, "completed_lessons": []},
                },
                upsert=True,
            )
        except PyMongoError as exc:
            raise PersistenceError(f"Could not update progress: {exc}") from exc
        logger.info(
            "MongoProgressRepository.append_quiz_score.ok",
            extra={"user_id": user_id, "course_id": course_id, "score": score},
        )

    def mark_lesson_completed(self, user_id: str, course_id: str, lesson_id: str) -> None:
        """Completing the same lesson twice is a no-op ($addToSet)."""
        try:
            self.collection.update_one(
                {"_id": CourseProgress.make_id(user_id, course_id)},
                {
                    "$addToSet": {"completed_lessons": lesson_id},
                    "$set": {"updated_at": datetime.now(timezone.utc)},
                    "$setOnInsert": {"user_id": user_id, "course_id": course_id, "quiz_scores": []},
                },
                upsert=True,
            )
        except PyMongoError as exc:
            raise PersistenceError(f"Could not update progress: {exc}") from exc
        logger.info(
            "MongoProgressRepository.mark_lesson_completed.ok",
            extra={"user_id": user_id, "course_id": course_id, "lesson_id": lesson_id},
        )


class MongoLessonRepository(ILessonRepository):
    """MongoDB implementation of the lesson repository."""

    def __init__(self, db: Database):
        self.db = db
        self.collection = self.db.lessons

    def list_by_course(self, course_id: str) -> List[Lesson]:
        lessons = []
        for raw in self.collection.find({"course_id": course_id}).sort("order", 1):
            raw["_id"] = str(raw["_id"])
            lessons.append(Lesson(**raw))
        return lessons
