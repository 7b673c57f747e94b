from lms.infrastructure.database import ensure_indexes


def test_ensure_indexes(mock_db):
    ensure_indexes(mock_db)

    mock_db.results.create_index.assert_called_once_with([("student_id", 1), ("timestamp", -1)])
    mock_db.quizzes.create_index.assert_called_once_with([("course_id", 1)])
    mock_db.resources.create_index.assert_called_once()
    mock_db.lessons.create_index.assert_called_once()
