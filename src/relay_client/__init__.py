"""Relay client library for the Foundry REST API relay.

This package provides Python abstractions over the relay endpoints used to
reach a connected Foundry VTT world: script execution, document create and
update, file listing and upload.
"""

from .errors import (
    SyncError,
    RelayError,
    InvalidCredentialsError,
    APIUnreachableError,
    APIAccessError,
    ScriptResultError,
    SessionSetupError,
)

__all__ = [
    "SyncError",
    "RelayError",
    "InvalidCredentialsError",
    "APIUnreachableError",
    "APIAccessError",
    "ScriptResultError",
    "SessionSetupError",
]
