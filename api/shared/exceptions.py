"""Shared exceptions for the chat relay API."""
from typing import Any, Dict, Optional


class ChatRelayException(Exception):
    """Base exception for the chat relay API."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class StorageError(ChatRelayException):
    """Raised when the message store cannot complete an operation."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORAGE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class StorageUnavailable(StorageError):
    """Raised when the backing store cannot be opened or its schema created."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "STORAGE_UNAVAILABLE", details)


class StorageWriteError(StorageError):
    """Raised when a message cannot be written."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "STORAGE_WRITE_ERROR", details)


class StorageReadError(StorageError):
    """Raised when stored messages cannot be read or decoded."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "STORAGE_READ_ERROR", details)
