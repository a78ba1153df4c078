"""Custom exception hierarchy for nodeschoolbot.

Exception Hierarchy:
    NodeschoolBotError (base)
    ├── ConfigurationError
    ├── SignatureError
    ├── AuthorizationError
    └── ExternalServiceError

Example Usage:
    >>> from nodeschoolbot.exceptions import ConfigurationError
    >>> try:
    ...     settings = BotSettings.load()
    ... except ConfigurationError as e:
    ...     print(e.message)
"""


class NodeschoolBotError(Exception):
    """Base exception for all nodeschoolbot errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(NodeschoolBotError):
    """Configuration-related errors.

    Raised when settings are missing or invalid, for example when the
    ``TOKEN`` or ``SECRET`` environment variables are not set.
    """

    pass


class SignatureError(NodeschoolBotError):
    """Webhook payload signature did not match the shared secret."""

    pass


class AuthorizationError(NodeschoolBotError):
    """Sender is not an active member of the organizers team.

    Attributes:
        login: The login that was refused
    """

    def __init__(self, message: str, login: str | None = None) -> None:
        self.login = login
        super().__init__(message)


class ExternalServiceError(NodeschoolBotError):
    """External API communication errors.

    Raised when a REST call fails at the transport level, returns a
    non-2xx status or returns a body that cannot be decoded.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status code (None for transport failures)
        response_text: Response body text (if any)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response_text: Response body text (if applicable)
        """
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        # Preserve original message
        self.message = message
