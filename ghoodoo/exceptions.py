"""Custom exception hierarchy for the ghoodoo webhook bridge.

Exception Hierarchy:
    GhoodooError (base)
    ├── ConfigurationError
    ├── MalformedEventError
    ├── WebhookSignatureError
    ├── StageNotFoundError
    └── ExternalServiceError
        ├── TransientServiceError
        ├── OdooRPCError
        └── OdooAuthenticationError

Per-reference errors (task not found, stage resolution, remote failures)
are recorded in a ProcessResult by the reconciler. Only
MalformedEventError and WebhookSignatureError fail a whole webhook
delivery.

Example Usage:
    >>> from ghoodoo.exceptions import ConfigurationError
    >>> try:
    ...     load_config(path)
    ... except FileNotFoundError as e:
    ...     raise ConfigurationError(f"Config file not found: {path}") from e
"""


class GhoodooError(Exception):
    """Base exception for all ghoodoo errors.

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


class ConfigurationError(GhoodooError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Missing required settings such as ODOO_URL or ODOO_STAGE_DONE
    """

    pass


class MalformedEventError(GhoodooError):
    """Inbound webhook payload is not valid JSON or not the expected shape.

    Attributes:
        event_type: The X-GitHub-Event value of the rejected delivery
    """

    def __init__(self, message: str, event_type: str | None = None) -> None:
        self.event_type = event_type
        super().__init__(message)


class WebhookSignatureError(GhoodooError):
    """The X-Hub-Signature-256 header did not match the payload."""

    pass


class StageNotFoundError(GhoodooError):
    """A stage name could not be resolved to an Odoo stage id.

    Attributes:
        stage_ref: The stage id or name that failed to resolve
    """

    def __init__(self, stage_ref: int | str) -> None:
        self.stage_ref = stage_ref
        super().__init__(f"Stage not found: {stage_ref}")


class ExternalServiceError(GhoodooError):
    """External service communication errors.

    Raised when communication with Odoo or GitHub fails.

    Examples:
        - HTTP request failed
        - API returned error
        - Rate limiting
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
        self.message = message
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code and str(status_code) not in message:
            full_message = f"{message} (HTTP {status_code})"

        Exception.__init__(self, full_message)


class TransientServiceError(ExternalServiceError):
    """Server error or rate limiting (5xx/429); safe to retry."""

    pass


class OdooRPCError(ExternalServiceError):
    """Odoo answered the JSON-RPC call with an application-level error.

    Attributes:
        code: JSON-RPC error code
        data: Optional error data from Odoo (debug info, exception name)
    """

    def __init__(self, message: str, code: int | None = None, data: object = None) -> None:
        self.code = code
        self.data = data
        super().__init__(message)


class OdooAuthenticationError(ExternalServiceError):
    """Odoo rejected the configured database, username and API key."""

    pass
