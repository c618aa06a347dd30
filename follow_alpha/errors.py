"""Exception types shared across the monitor."""


class FollowAlphaError(Exception):
    pass


class ConfigError(FollowAlphaError):
    """Required configuration (credentials, tracked accounts) is missing."""


class LoginError(FollowAlphaError):
    """Social platform login failed. Fatal: the scheduler must not run."""


class TransientHTTPError(FollowAlphaError):
    """Timeout, connection failure, 429 or 5xx. Safe to retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(FollowAlphaError):
    """404 from an external source. Definitive absence, never retried."""


class RetryExhaustedError(FollowAlphaError):
    def __init__(self, attempts: int, last_error: Exception | None = None) -> None:
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class RetryCancelledError(FollowAlphaError):
    """The stop flag was raised while waiting to retry."""
