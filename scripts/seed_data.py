#!/usr/bin/env python3
"""
Seed a development database with learning resources and a sample quiz.

Usage:
    MONGO_URI=mongodb://localhost:27017/learnhub python scripts/seed_data.py
"""
import sys
from pathlib import Path

from pymongo import MongoClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lms.infrastructure.config import settings
from lms.infrastructure.database import ensure_indexes
from lms.infrastructure.repositories import MongoQuizRepository
from lms.domain.models.db_models import Question, QuestionType, Quiz
from lms_utils.logger_utils import logger

SAMPLE_RESOURCES = [
    {"_id": "res-math-easy-1", "title": "Khan Academy Math Basics", "subject": "math", "difficulty": "easy",
     "type": "video", "url": "https://www.khanacademy.org/math/arithmetic"},
    {"_id": "res-math-easy-2", "title": "Math Worksheets - Addition & Subtraction", "subject": "math",
     "difficulty": "easy", "type": "worksheet", "url": "https://www.math-drills.com/addition.shtml"},
    {"_id": "res-math-medium-1", "title": "Algebra Fundamentals", "subject": "math", "difficulty": "medium",
     "type": "video", "url": "https://www.khanacademy.org/math/algebra"},
    {"_id": "res-math-hard-1", "title": "Advanced Calculus", "subject": "math", "difficulty": "hard",
     "type": "video", "url": "https://www.khanacademy.org/math/calculus-1"},
    {"_id": "res-science-easy-1", "title": "Basic Science Concepts", "subject": "science", "difficulty": "easy",
     "type": "video", "url": "https://www.khanacademy.org/science/biology"},
    {"_id": "res-science-medium-1", "title": "Chemistry Lab Worksheets", "subject": "science",
     "difficulty": "medium", "type": "worksheet", "url": "https://www.chem4kids.com/files/atom_intro.html"},
    {"_id": "res-science-hard-1", "title": "Physics Problem Sets", "subject": "science", "difficulty": "hard",
     "type": "worksheet", "url": "https://www.physicsclassroom.com/class"},
]

SAMPLE_QUIZ = Quiz(
    _id="quiz-intro-ai",
    title="Introduction to AI",
    description="A short check on the first AI lesson.",
    course_id="course-intro-ai",
    subject="science",
    questions=[
        Question(
            id="q1",
            type=QuestionType.MULTIPLE_CHOICE,
            prompt="Which of these is a supervised learning task?",
            options=["Clustering", "Classification", "Dimensionality reduction", "Anomaly detection"],
            correct_option="B",
        ),
        Question(
            id="q2",
            type=QuestionType.TRUE_FALSE,
            prompt="A neural network always needs labelled data.",
            correct_answer="false",
        ),
        Question(
            id="q3",
            type=QuestionType.SHORT_ANSWER,
            prompt="In one sentence, what is machine learning?",
            reference_answer="machine learning is a subset of ai",
            keywords=["subset", "ai", "learn from data"],
        ),
    ],
)


def main() -> None:
    db = MongoClient(settings.MONGO_URI).get_database()
    ensure_indexes(db)

    for resource in SAMPLE_RESOURCES:
        db.resources.replace_one({"_id": resource["_id"]}, resource, upsert=True)
    logger.info(f"Seeded {len(SAMPLE_RESOURCES)} resources")

    if db.quizzes.find_one({"_id": SAMPLE_QUIZ.id}) is None:
        MongoQuizRepository(db).create(SAMPLE_QUIZ)
    else:
        logger.info(f"Quiz {SAMPLE_QUIZ.id} already present, skipping")


if __name__ == "__main__":
    main()
