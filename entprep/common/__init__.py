"""
Common Components

This package contains the infrastructure shared by the gateway, the exam
session state machine and the analytics engine.

Key components:
1. Logging - Centralized logging configuration
2. Error Handling - The error taxonomy
3. Configuration - File and environment driven settings
4. Storage - Key-value store backends for the local data source
"""

from entprep.common.logger import app_logger
from entprep.common.exceptions import (
    EntPrepError, NotFoundError, RemoteError, RemoteTimeoutError, RemoteFailureError,
    StorageCorruptError, ValidationError, ConfigurationError, SessionError,
    NoQuestionsAvailableError, FinishConfirmationRequired
)

__all__ = [
    'app_logger',
    'EntPrepError', 'NotFoundError', 'RemoteError', 'RemoteTimeoutError',
    'RemoteFailureError', 'StorageCorruptError', 'ValidationError',
    'ConfigurationError', 'SessionError', 'NoQuestionsAvailableError',
    'FinishConfirmationRequired',
]
