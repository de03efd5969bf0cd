"""Typed exception hierarchy for relay-related errors.

This module defines all custom exceptions used by the relay client library.
All exceptions inherit from RelayError base class for easy catching and
include descriptive messages with context to help with debugging.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all foundry-sync errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class RelayError(SyncError):
    """Base exception for all relay-related errors."""
    pass


class InvalidCredentialsError(RelayError):
    """Raised when the relay API key is missing, invalid or rejected."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        message = f"API key is invalid or missing (endpoint: {endpoint})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.endpoint = endpoint
        self.reason = reason


class APIUnreachableError(RelayError):
    """Raised when the relay server is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"Relay is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(RelayError):
    """Raised when a relay call fails for any other reason."""

    def __init__(self, message: str = "Relay API failure", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ScriptResultError(RelayError):
    """Raised when a remotely executed script returns an unexpected shape."""

    def __init__(self, script_name: str, message: str):
        super().__init__(f"Script '{script_name}' returned an invalid result: {message}")
        self.script_name = script_name
        self.message = message


class SessionSetupError(RelayError):
    """Raised when a sync session cannot be established.

    Session setup is all-or-nothing: a missing credential, an unreachable
    relay or the absence of a connected Foundry client aborts the run.
    """

    def __init__(self, message: str):
        super().__init__(f"Session setup failed: {message}")
        self.message = message
