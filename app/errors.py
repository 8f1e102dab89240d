from typing import Sequence


class ReviewServiceError(Exception):
    """Base error for the review moderation API.

    Every subclass maps to one HTTP status; handlers in `app.main` render them
    as `{"status": "error", "message": ...}`.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(ReviewServiceError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(ReviewServiceError):
    status_code = 404
    default_message = "Review not found"


class MethodNotAllowedError(ReviewServiceError):
    status_code = 405
    default_message = "Method not allowed"

    def __init__(self, allowed: Sequence[str], message: str | None = None):
        self.allowed = tuple(allowed)
        super().__init__(message)


class InternalError(ReviewServiceError):
    status_code = 500
    default_message = "Internal server error"
