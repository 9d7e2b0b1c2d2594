"""
Exception Classes

This module defines the exceptions raised by the xfetch package. Errors raised
by a caller's value function are never wrapped; they propagate unchanged.
"""

from typing import Optional


class XFetchError(Exception):
    """Base class for all xfetch exceptions."""

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


class ConfigurationError(XFetchError):
    """Exception raised when entry options cannot be loaded or validated."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: The option that caused the error, if known
            original_exception: Underlying parse or validation error
        """
        super().__init__(f"Configuration error: {message}", original_exception)
        self.config_key = config_key
