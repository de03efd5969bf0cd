"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError and include descriptive messages with
context to help with debugging.
"""

from src.relay_client.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigNotFoundError(CLIError):
    """Raised when configuration file is not found."""

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found at {config_path}. "
            "Run 'foundry-sync --init --vault <folder>' first."
        )
        self.config_path = config_path


class InitError(CLIError):
    """Raised when initialization fails."""

    def __init__(self, message: str):
        super().__init__(message)
