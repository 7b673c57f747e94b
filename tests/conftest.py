import os

# Settings are read at import time, so the environment must be in place
# before any application module is imported.
os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('MONGO_URI', 'mongodb://localhost:27017/test')
os.environ.setdefault('FLASK_ENV', 'testing')
os.environ.setdefault('OPENAI_API_KEY', '')
os.environ.setdefault('GEMINI_API_KEY', '')

import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from lms.domain.models.db_models import Question, QuestionType, Quiz, User, UserRole
from lms.services.authorization import Identity


@pytest.fixture
def mcq_question():
    return Question(
        id="q1",
        type=QuestionType.MULTIPLE_CHOICE,
        prompt="Which of these is a supervised learning task?",
        options=["Clustering", "Classification", "Dimensionality reduction"],
        correct_option="B",
    )


@pytest.fixture
def tf_question():
    return Question(
        id="q2",
        type=QuestionType.TRUE_FALSE,
        prompt="A neural network always needs labelled data.",
        correct_answer="false",
    )


@pytest.fixture
def short_question():
    return Question(
        id="q3",
        type=QuestionType.SHORT_ANSWER,
        prompt="What is machine learning?",
        reference_answer="machine learning is a subset of ai",
        keywords=["subset", "ai"],
    )


@pytest.fixture
def sample_quiz(mcq_question, tf_question, short_question):
    return Quiz(
        _id="quiz-1",
        title="Intro to ML",
        course_id="course-1",
        subject="ai",
        questions=[mcq_question, tf_question, short_question],
    )


@pytest.fixture
def student():
    return Identity(user_id="student-1", role=UserRole.STUDENT)


@pytest.fixture
def teacher():
    return Identity(user_id="teacher-1", role=UserRole.TEACHER)


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 10, 18, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_db():
    """Provides a mocked MongoDB database."""
    return MagicMock()


@pytest.fixture(scope='module')
def app():
    """Create and configure a new app instance for each test module."""
    from app import create_app
    app = create_app()
    app.config.update({
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
    })
    yield app


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def login_as(client):
    """Sign a user in through Flask-Login's session cookie."""
    patchers = []

    def _login(user_id="student-1", role=UserRole.STUDENT):
        user = User(_id=user_id, email=f"{user_id}@example.com", role=role)
        patcher = patch('lms.api.routes_auth.get_user_by_id', return_value=user)
        patcher.start()
        patchers.append(patcher)
        with client.session_transaction() as sess:
            sess['_user_id'] = user_id
            sess['_fresh'] = True
        return user

    yield _login

    for patcher in reversed(patchers):
        patcher.stop()
