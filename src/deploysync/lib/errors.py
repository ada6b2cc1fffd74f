"""Custom exception hierarchy for deploysync."""


class DeploySyncError(Exception):
    """Base exception for all deploysync errors.

    All deploysync-specific exceptions inherit from this class, enabling
    centralized exception handling in the reconciliation loop and the CLI.
    """

    pass


class InvalidConfigError(DeploySyncError):
    """Exception raised for invalid or missing configuration.

    Raised at construction time by every component and by the configuration
    loader. It is never retried.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize InvalidConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Invalid configuration for '{field}': {message}")


class NotFoundError(DeploySyncError):
    """Exception raised when there is nothing to return.

    This is a control-flow signal rather than a failure: the remote has no
    deployment for a project, the remote reported "not modified", or the
    desired-state object does not exist yet.
    """

    def __init__(self, message: str) -> None:
        """Create a not-found signal."""
        self.message = message
        super().__init__(message)


class UnexpectedStatusError(DeploySyncError):
    """Exception raised when the remote answers with an unanticipated status.

    Attributes:
        url: Request URL
        status_code: HTTP status code received
        detail: Optional error detail from the response body
    """

    def __init__(self, url: str, status_code: int, detail: str | None = None) -> None:
        """Initialize UnexpectedStatusError with response details.

        Args:
            url: The request URL
            status_code: HTTP status code received
            detail: Optional error detail extracted from the response body
        """
        self.url = url
        self.status_code = status_code
        self.detail = detail
        message = f"Unexpected status code {status_code} from {url}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class EventSourceConnectionError(DeploySyncError):
    """Exception raised when the deployment API cannot be reached.

    Attributes:
        url: The URL that failed
        message: Human-readable error message
    """

    def __init__(self, url: str, original_error: Exception | None = None) -> None:
        """Initialize EventSourceConnectionError.

        Args:
            url: The URL that failed to connect
            original_error: The underlying transport exception
        """
        self.url = url
        message = f"Failed to connect to deployment API at {url}."
        if original_error:
            message += f"\nOriginal error: {original_error}"
        self.message = message
        super().__init__(message)


class EventSourceResponseError(DeploySyncError):
    """Exception raised when the deployment API returns an unreadable body."""

    def __init__(self, url: str, message: str) -> None:
        """Create a response error for the given URL."""
        self.url = url
        self.message = message
        super().__init__(f"Invalid response from {url}: {message}")


class StateStoreError(DeploySyncError):
    """Exception raised when the desired-state store fails.

    Attributes:
        operation: Store operation that failed (get, create, replace, ...)
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Initialize StateStoreError with operation context.

        Args:
            operation: Store operation that failed
            message: Descriptive error message
        """
        self.operation = operation
        self.message = message
        super().__init__(f"State store {operation} failed: {message}")


class RetryExhaustedError(DeploySyncError):
    """Exception raised when the reconciliation loop gives up retrying.

    Attributes:
        attempts: Number of attempts made before giving up
        last_error: The error raised by the final attempt
    """

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        """Create a terminal retry error.

        Args:
            attempts: Number of failed attempts
            last_error: The cause of the final failed attempt
        """
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Giving up after {attempts} failed attempt(s); last error: {last_error!r}"
        )
