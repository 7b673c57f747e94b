import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

from lms_utils.logger_utils import logger

SESSION_STARTED = "session_started"
ANSWER_CHANGED = "answer_changed"
QUESTION_CHANGED = "question_changed"
QUIZ_GRADED = "quiz_graded"
RESULT_SAVED = "result_saved"
SAVE_FAILED = "save_failed"
PROGRESS_UPDATED = "progress_updated"

Handler = Callable[[Dict[str, Any]], None]


class SessionEvents:
    """Publish/subscribe hub handed to a quiz session at construction."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        with self._lock:
            self._handlers[topic].append(handler)

        def unsubscribe():
            with self._lock:
                if handler in self._handlers[topic]:
                    self._handlers[topic].remove(handler)
        return unsubscribe

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            handlers = list(self._handlers.get(topic, ()))
        for handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Event handler for '{topic}' failed: {e}", exc_info=True)
