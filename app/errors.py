"""Error kinds raised by the bot key services and mapped to HTTP responses in app.main."""


class ClawConError(Exception):
    status_code = 500
    default_message = "Internal error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigError(ClawConError):
    """Master key missing or malformed. Never falls back to an insecure default."""

    default_message = "Server misconfigured."


class AuthenticationError(ClawConError):
    """Unknown credential or ciphertext that fails verification.

    The message stays generic so callers can't tell which check failed.
    """

    status_code = 401
    default_message = "Invalid bot API key."


class RateLimitedError(ClawConError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."

    def __init__(self, message: str | None = None, *, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = max(retry_after, 0)


class NotFoundError(ClawConError):
    status_code = 404
    default_message = "Not found."


class StorageError(ClawConError):
    default_message = "Storage failure."


class ValidationError(ClawConError):
    status_code = 400
    default_message = "Invalid payload."
