"""
Custom Exceptions for Gemini Chat

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any, List


class ChatBackendError(Exception):
    """Base exception for all Gemini Chat errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(ChatBackendError):
    """Raised when input validation fails."""
    pass


class AdmissionDeniedError(ChatBackendError):
    """Raised when a user has exhausted today's message quota."""

    def __init__(
        self,
        current_usage: int,
        limit: int,
        message: str = "Daily message limit exceeded",
    ):
        super().__init__(
            message,
            details={"current_usage": current_usage, "limit": limit},
        )
        self.current_usage = current_usage
        self.limit = limit


class PersistenceError(ChatBackendError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(PersistenceError):
    """Raised when a requested resource is not found."""
    pass


class EnqueueError(ChatBackendError):
    """
    Raised when the job queue rejects a generation job.

    The placeholder message is already persisted at this point; it stays
    pending until the orphan sweep re-enqueues it.
    """

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if job_id:
            details["job_id"] = job_id
        super().__init__(message, details, original_error)


class GenerationError(ChatBackendError):
    """Raised when the external generation API fails."""

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if model:
            details["model"] = model
        if operation:
            details["operation"] = operation
        super().__init__(message, details, original_error)


class GenerationTimeoutError(GenerationError):
    """Raised when the generation API does not answer in time."""

    def __init__(
        self,
        timeout_seconds: float,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            f"Generation timed out after {timeout_seconds}s",
            model=model,
            operation="generate_content",
            original_error=original_error,
        )
        self.timeout_seconds = timeout_seconds
        self.details["timeout_seconds"] = timeout_seconds


class ConfigurationError(ChatBackendError):
    """Raised when required configuration is missing."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[List[str]] = None
    ):
        details = {"missing_keys": missing_keys or []}
        super().__init__(message, details)
