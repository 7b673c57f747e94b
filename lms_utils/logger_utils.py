import logging
import sys
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "learnhub-quiz"

LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s %(module)s %(funcName)s %(message)s'


def get_logger(name: str, log_level: str = "INFO"):
    """
    JSON logger on stdout. Every record carries the service name, and
    structured context passed through `extra=` (session_id, quiz_id, ...)
    is emitted as top-level fields.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.propagate = False

    if not logger.handlers:
        formatter = jsonlogger.JsonFormatter(
            LOG_FORMAT,
            rename_fields={"asctime": "time", "levelname": "level"},
            static_fields={"service": SERVICE_NAME},
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def set_log_level(log_level: str) -> None:
    """Apply LOG_LEVEL from settings to the shared logger and its handlers."""
    level = log_level.upper() if isinstance(log_level, str) else log_level
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


# Shared application logger
logger = get_logger("learnhub")
