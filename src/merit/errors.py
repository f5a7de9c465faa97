"""Domain errors surfaced to API callers as ``{"success": false, "error": ...}``."""


class MeritError(Exception):
    """Base class for errors that map to a specific HTTP status."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(MeritError):
    status_code = 401


class Forbidden(MeritError):
    status_code = 403


class NotFound(MeritError):
    status_code = 404


class DuplicateRegistration(MeritError):
    status_code = 400


class InvalidTransition(MeritError):
    status_code = 400


class ValidationFailed(MeritError):
    status_code = 400


class Unavailable(MeritError):
    """The persistence store could not complete the operation."""

    status_code = 503
