"""Application error types mapped to HTTP status codes.

Handlers and services raise these; `main` renders every one of them as a
`{"message": ...}` JSON body with the class's status code.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Invalid request"


class Conflict(AppError):
    """A unique field (email, username, name, title) is already taken."""
    status_code = 400
    default_message = "Already exists"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Invalid or missing access token"


class Forbidden(AppError):
    status_code = 403
    default_message = "Not allowed to modify this resource"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class InternalError(AppError):
    status_code = 500


class InvalidToken(Exception):
    """Raised by `TokenCodec.verify` for malformed, forged or expired tokens."""
