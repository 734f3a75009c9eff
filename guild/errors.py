"""
Error types for the Adventurers Guild engine.

Every error carries the HTTP status code a route handler should answer with,
so callers can map failures to responses without inspecting messages.
"""


class GuildError(Exception):
    """Base class for all expected (operational) guild errors."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidArgument(GuildError):
    """Raised when a caller passes a value outside an operation's domain."""
    status_code = 400


class AuthenticationError(GuildError):
    """Raised when an operation needs a signed-in session and has none."""
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(GuildError):
    """Raised when the session's role may not perform an operation."""
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class NotFoundError(GuildError):
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class FetchFailure(GuildError):
    """Raised when the matching service is unreachable or answers badly."""
    status_code = 502


class ApplicationFailure(GuildError):
    """Raised when the matching service answers with ``success: false``."""
    status_code = 400


def format_error_response(error: Exception) -> dict:
    """
    Build the JSON body for a failed request.

    Messages of unexpected exceptions are not exposed to the client.

    Example:
        >>> format_error_response(NotFoundError("Quest"))
        {'success': False, 'error': 'Quest not found', 'statusCode': 404}
    """
    if isinstance(error, GuildError):
        return {
            'success': False,
            'error': error.message,
            'statusCode': error.status_code
        }

    return {
        'success': False,
        'error': 'An unexpected error occurred',
        'statusCode': 500
    }
