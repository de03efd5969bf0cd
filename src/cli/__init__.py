"""Command-line interface for exporting a Markdown vault to Foundry VTT.

This package provides the `foundry-sync` CLI tool. It wires the vault,
renderer, asset uploader and page synchronization together with progress
indication and error handling.
"""

from .export_command import ExportCommand
from .init_command import InitCommand
from .models import ExitCode, ExportSummary
from .errors import (
    CLIError,
    ConfigNotFoundError,
    InitError,
)

__all__ = [
    'ExportCommand',
    'InitCommand',
    'ExitCode',
    'ExportSummary',
    'CLIError',
    'ConfigNotFoundError',
    'InitError',
]
