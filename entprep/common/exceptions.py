"""
Common Exception Classes

This module defines the error taxonomy shared by the gateway, the exam
session state machine and the services built on top of them.
"""

from typing import Optional, Any


class EntPrepError(Exception):
    """Base class for all custom exceptions."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            original_exception: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class NotFoundError(EntPrepError):
    """Exception raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: Any):
        """
        Initialize the not found error.

        Args:
            resource_type: Type of resource that wasn't found
            resource_id: ID of the resource that wasn't found
        """
        super().__init__(f"{resource_type} with ID {resource_id} not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class RemoteError(EntPrepError):
    """Base class for failures of the remote call client."""


class RemoteTimeoutError(RemoteError):
    """Exception raised when a remote call exceeds its time budget."""

    def __init__(self, path: str, timeout: float, original_exception: Optional[Exception] = None):
        super().__init__(
            f"Request to {path} timed out after {timeout:g} seconds",
            original_exception
        )
        self.path = path
        self.timeout = timeout


class RemoteFailureError(RemoteError):
    """Exception raised when the remote service was reached but rejected the call."""

    def __init__(
        self,
        path: str,
        message: str,
        status: Optional[int] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize the remote failure.

        Args:
            path: Endpoint path that was called
            message: Message reported by the remote side (or the transport)
            status: HTTP status, None when the service could not be reached
            original_exception: Underlying transport exception
        """
        super().__init__(f"Remote call to {path} failed: {message}", original_exception)
        self.path = path
        self.status = status
        self.remote_message = message


class StorageCorruptError(EntPrepError):
    """Exception raised when a stored value cannot be parsed."""

    def __init__(self, key: str, original_exception: Optional[Exception] = None):
        super().__init__(f"Stored value under {key} is unreadable", original_exception)
        self.key = key


class ValidationError(EntPrepError):
    """Exception raised for malformed input."""

    def __init__(self, message: str, errors: Optional[dict] = None):
        """
        Initialize the validation error.

        Args:
            message: Error message
            errors: Dictionary of validation errors
        """
        super().__init__(f"Validation error: {message}")
        self.errors = errors or {}


class ConfigurationError(EntPrepError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(f"Configuration error: {message}")
        self.config_key = config_key


class SessionError(EntPrepError):
    """Base class for the errors an exam session surfaces to its caller."""


class NoQuestionsAvailableError(SessionError):
    """Raised when a session cannot start because no questions were obtained."""

    def __init__(self, original_exception: Optional[Exception] = None):
        super().__init__("Cannot start session: no questions available", original_exception)


class FinishConfirmationRequired(SessionError):
    """Raised when finishing a session with unanswered questions needs confirmation."""

    def __init__(self, unanswered: int):
        super().__init__(f"Finish requires confirmation: {unanswered} question(s) unanswered")
        self.unanswered = unanswered
