"""Typed exceptions for edit-token authorization and admission control."""


class AuthError(Exception):
    """Base class for authorization and admission failures."""


class UnauthorizedError(AuthError):
    """
    Edit token is missing or does not match the invoice.

    Both cases map to the same 401 UNAUTHORIZED code; only the message differs.
    """

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class RateLimitedError(AuthError):
    """Too many attempts. Client should wait before retrying."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")
