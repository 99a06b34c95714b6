"""
Domain exceptions raised by the quiz core

Request handlers never catch these; the application-level exception
handlers in main.py turn them into JSON error responses.
"""


class QuizError(Exception):
    """Base class for quiz core failures"""

    status_code = 500
    error_code = "quiz_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(QuizError):
    """A referenced question, answer, rule set or version does not exist"""

    status_code = 404
    error_code = "not_found"


class InvalidInputError(NotFoundError):
    """Malformed scope parameters, reported like a missing resource"""

    error_code = "invalid_input"


class DataAccessError(QuizError):
    """The data store is unreachable or a query failed"""

    error_code = "data_access_failure"
