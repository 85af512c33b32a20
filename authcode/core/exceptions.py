"""Error taxonomy for the auth code endpoints.

Every error carries the HTTP status it maps to and a human readable message.
The exception handlers in ``authcode.main`` render them as
``{"ok": false, "error": message}``.
"""


class AuthCodeError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AuthCodeError):
    """A required field is missing or empty."""

    status_code = 400


class DomainError(AuthCodeError):
    """The request is well formed but the code cannot be accepted."""

    status_code = 400


class UnexpectedError(AuthCodeError):
    """Any failure from the store or the runtime, message echoed as is."""

    status_code = 500
