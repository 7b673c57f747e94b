"""
Custom application-specific exceptions.
"""

class BaseAppException(Exception):
    """Base exception for the application."""
    pass

class QuizNotFoundError(BaseAppException):
    """Raised when a quiz is not found in the database."""
    pass

class ForbiddenError(BaseAppException):
    """Raised when the current user's role may not perform the action."""
    pass

class InvalidQuizError(BaseAppException):
    """Raised when a quiz cannot be taken (e.g. it has no questions)."""
    pass

class SessionStateError(BaseAppException):
    """Raised when a quiz session operation is not allowed in its current state."""
    pass

class SessionNotFoundError(BaseAppException):
    """Raised when a quiz session id is unknown."""
    pass

class SessionCancelledError(BaseAppException):
    """Raised when a session is abandoned before its submission completed."""
    pass

class AIClientError(BaseAppException):
    """Raised for errors related to the AI client (failures and timeouts)."""
    pass

class ParsingError(BaseAppException):
    """Raised when parsing AI output fails."""
    pass

class PersistenceError(BaseAppException):
    """Raised when writing to the database fails."""
    pass

class ResultNotFoundError(BaseAppException):
    """Raised when a quiz result is not found in the database."""
    pass

class LessonNotFoundError(BaseAppException):
    """Raised when a lesson is not part of the requested course."""
    pass
