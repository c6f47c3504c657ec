"""Custom exceptions for the casperdriver package."""

from typing import List, Optional


class CasperDriverError(Exception):
    """Base exception for all casperdriver errors."""

    pass


class ConfigurationError(CasperDriverError):
    """Raised when the engine executable cannot be found or executed.

    Detected at construction time, before any script is built.
    """

    def __init__(self, message: str, command: Optional[str] = None):
        """
        Initialize configuration error.

        Args:
            message: Error message
            command: The engine command that failed to resolve
        """
        super().__init__(message)
        self.command = command


class InvocationError(CasperDriverError):
    """Raised when the engine process could not be started at all.

    A non-zero exit status is not an invocation error; it is reported on the
    result instead.
    """

    def __init__(self, message: str, command: Optional[List[str]] = None):
        """
        Initialize invocation error.

        Args:
            message: Error message
            command: The argument vector that was being executed
        """
        super().__init__(message)
        self.command = command


class ResourceError(CasperDriverError):
    """Raised when the transient script file cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
