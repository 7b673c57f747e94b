import io
import json
import logging

from lms_utils.logger_utils import get_logger, logger, set_log_level


def test_records_are_json_with_service_and_extra_fields():
    log = get_logger("learnhub.test.json")
    stream = io.StringIO()
    log.handlers[0].setStream(stream)

    log.info("QuizSession.started", extra={"session_id": "s-1", "quiz_id": "quiz-1"})

    record = json.loads(stream.getvalue())
    assert record["message"] == "QuizSession.started"
    assert record["service"] == "learnhub-quiz"
    assert record["level"] == "INFO"
    assert record["session_id"] == "s-1"
    assert record["quiz_id"] == "quiz-1"


def test_get_logger_does_not_duplicate_handlers():
    first = get_logger("learnhub.test.handlers")
    second = get_logger("learnhub.test.handlers")
    assert first is second
    assert len(second.handlers) == 1


def test_set_log_level_accepts_lowercase():
    previous = logger.level
    try:
        set_log_level("debug")
        assert logger.level == logging.DEBUG
    finally:
        set_log_level(previous)
