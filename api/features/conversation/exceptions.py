"""Exceptions for the Conversation feature."""
from typing import Any, Dict, Optional

from api.shared.exceptions import ChatRelayException


class ConversationException(ChatRelayException):
    """Base exception for conversation operations."""

    pass


class RequestValidationError(ConversationException):
    """Raised when a send-message payload is rejected."""

    def __init__(
        self,
        message: str,
        error_code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class MissingFieldError(RequestValidationError):
    def __init__(self, missing: list[str]):
        super().__init__(
            "Missing required fields: threadId and content are required",
            "MISSING_FIELD",
            {"missing": missing},
        )


class InvalidTypeError(RequestValidationError):
    def __init__(self, message: str = "Invalid field types: threadId and content must be strings"):
        super().__init__(message, "INVALID_TYPE")


class EmptyContentError(RequestValidationError):
    def __init__(self):
        super().__init__("Content cannot be empty", "EMPTY_CONTENT")


class ModelError(ConversationException):
    """Base class for failures reported by the chat model collaborator."""

    def __init__(
        self,
        message: str,
        error_code: str = "MODEL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class ModelAuthError(ModelError):
    """Raised when the model provider rejects the configured credential."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("Invalid OpenAI API key", "MODEL_AUTH_ERROR", details)


class ModelQuotaError(ModelError):
    """Raised when the model provider reports exhausted quota."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("OpenAI API quota exceeded", "MODEL_QUOTA_ERROR", details)


class ModelUnknownError(ModelError):
    """Raised for any other model call failure."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "MODEL_UNKNOWN_ERROR", details)
