class SessionError(Exception):
    """Base for the error kinds the session operations report to callers."""

    status_code = 500
    error_code = "session_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "error_code": self.error_code,
            "message": self.message,
        }


class Unauthorized(SessionError):
    status_code = 401
    error_code = "unauthorized"


class BadRequest(SessionError):
    status_code = 400
    error_code = "bad_request"


class NotFound(SessionError):
    status_code = 404
    error_code = "not_found"
