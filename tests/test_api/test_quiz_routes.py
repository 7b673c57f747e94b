from unittest.mock import MagicMock, patch

import pytest

from lms.domain.errors import PersistenceError
from lms.domain.models.db_models import UserRole
from lms.domain.repositories import IQuizRepository, IResultRepository
from lms.services.grading_service import QuestionGrader
from lms.services.quiz_session import QuizSession
from lms.services.recommendation_service import RecommendationService
from lms.services.session_registry import session_registry


@pytest.fixture
def result_repo():
    repo = MagicMock(spec=IResultRepository)
    repo.save.side_effect = lambda result: result.id
    return repo


@pytest.fixture
def session_factory(sample_quiz, result_repo):
    """Replaces the Mongo wiring with in-memory collaborators."""
    quiz_repo = MagicMock(spec=IQuizRepository)
    quiz_repo.get_by_id.side_effect = lambda quiz_id: sample_quiz if quiz_id == "quiz-1" else None

    def _build(quiz_id):
        from lms.api.routes_auth import current_identity
        return QuizSession(
            quiz_id,
            current_identity(),
            quiz_repository=quiz_repo,
            result_repository=result_repo,
            grader=QuestionGrader(),
            recommender=RecommendationService(),
            grading_timeout=5,
        )

    with patch('lms.api.routes_quiz.build_quiz_session', side_effect=_build) as mock_build:
        yield mock_build


def _start(client):
    response = client.post('/api/quizzes/quiz-1/sessions')
    assert response.status_code == 201
    return response.json['session_id']


def test_full_quiz_flow(client, login_as, session_factory, result_repo):
    login_as("student-1")
    session_id = _start(client)

    assert client.put(f'/api/sessions/{session_id}/answers/q1', json={"answer": "A"}).status_code == 200
    response = client.post(f'/api/sessions/{session_id}/next')
    assert response.json['current_index'] == 1
    assert response.json['current_question']['id'] == 'q2'

    client.put(f'/api/sessions/{session_id}/answers/q2', json={"answer": "false"})
    response = client.post(f'/api/sessions/{session_id}/jump', json={"index": 2})
    assert response.json['current_index'] == 2
    client.put(f'/api/sessions/{session_id}/answers/q3', json={"answer": "ai is used to build machines"})

    response = client.post(f'/api/sessions/{session_id}/submit')

    assert response.status_code == 200
    result = response.json['result']
    assert result['score'] == 39
    assert [q['score'] for q in result['questions']] == [0, 100, 18]
    assert response.json['recommendations'][0]['type'] == 'remedial'
    result_repo.save.assert_called_once()

    # the graded session is released; its result lives in the results store
    assert client.get(f'/api/sessions/{session_id}').status_code == 404


def test_graded_sessions_leave_the_registry(client, login_as, session_factory):
    login_as("student-1")
    before = len(session_registry)

    for _ in range(5):
        session_id = _start(client)
        assert client.post(f'/api/sessions/{session_id}/submit').status_code == 200

    assert len(session_registry) == before


def test_start_session_snapshot(client, login_as, session_factory):
    login_as("student-1")
    response = client.post('/api/quizzes/quiz-1/sessions')

    assert response.status_code == 201
    assert response.json['state'] == 'active'
    assert response.json['answers'] == {"q1": "", "q2": "", "q3": ""}
    assert response.json['total_questions'] == 3
    assert 'correct_option' not in response.json['current_question']


def test_teacher_cannot_start(client, login_as, session_factory):
    login_as("teacher-1", role=UserRole.TEACHER)
    response = client.post('/api/quizzes/quiz-1/sessions')
    assert response.status_code == 403
    assert 'Teachers cannot take quizzes' in response.json['error']


def test_missing_quiz(client, login_as, session_factory):
    login_as("student-1")
    response = client.post('/api/quizzes/nope/sessions')
    assert response.status_code == 404


def test_unknown_session(client, login_as):
    login_as("student-1")
    assert client.get('/api/sessions/does-not-exist').status_code == 404


def test_invalid_jump_body(client, login_as, session_factory):
    login_as("student-1")
    session_id = _start(client)
    response = client.post(f'/api/sessions/{session_id}/jump', json={"index": "first"})
    assert response.status_code == 400
    assert 'error' in response.json


def test_unknown_question_is_conflict(client, login_as, session_factory):
    login_as("student-1")
    session_id = _start(client)
    response = client.put(f'/api/sessions/{session_id}/answers/zzz', json={"answer": "A"})
    assert response.status_code == 409


def test_other_students_session_is_forbidden(client, login_as, session_factory):
    login_as("student-1")
    session_id = _start(client)

    login_as("student-2")
    assert client.get(f'/api/sessions/{session_id}').status_code == 403


def test_save_failure_returns_grades(client, login_as, session_factory, result_repo):
    login_as("student-1")
    session_id = _start(client)
    client.put(f'/api/sessions/{session_id}/answers/q1', json={"answer": "B"})
    result_repo.save.side_effect = PersistenceError("mongo down")

    response = client.post(f'/api/sessions/{session_id}/submit')

    assert response.status_code == 502
    assert response.json['state'] == 'submitting'
    assert response.json['score'] == 33
    assert [q['score'] for q in response.json['graded_questions']] == [100, 0, 0]

    result_repo.save.side_effect = lambda result: result.id
    retry = client.post(f'/api/sessions/{session_id}/retry-save')
    assert retry.status_code == 200
    assert retry.json['result']['score'] == 33


def test_cancel_session(client, login_as, session_factory):
    login_as("student-1")
    session_id = _start(client)

    assert client.delete(f'/api/sessions/{session_id}').status_code == 204
    assert client.get(f'/api/sessions/{session_id}').status_code == 404
