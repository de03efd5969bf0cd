"""Data models for CLI operations.

This module defines the data models used by the CLI module.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Tuple

from src.assets.models import UploadSummary
from src.page_sync.models import LinkPassSummary, UpsertOutcome, UpsertResult


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Every document was exported
    - GENERAL_ERROR (1): General error (config issues, missing Pandoc)
    - PARTIAL_FAILURE (2): Some documents could not be exported
    - AUTH_ERROR (3): API key missing or rejected by the relay
    - NETWORK_ERROR (4): Relay unreachable or no Foundry client connected

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    PARTIAL_FAILURE = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class ExportSummary:
    """Summary of one export run.

    Attributes:
        created: Paths of documents whose page was created
        updated: Paths of documents whose page was updated
        failed: (path, reason) of documents that could not be exported
        created_folders: Folder paths created during the run
        created_collections: Number of collections created during the run
        assets: Result of draining the asset queue
        links: Result of the link resolution pass (None if it did not run)
    """
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    created_folders: List[str] = field(default_factory=list)
    created_collections: int = 0
    assets: UploadSummary = field(default_factory=UploadSummary)
    links: Optional[LinkPassSummary] = None

    def record(self, result: UpsertResult) -> None:
        if result.outcome is UpsertOutcome.CREATED:
            self.created.append(result.document_path)
        else:
            self.updated.append(result.document_path)
        self.created_folders.extend(result.created_folders)
        if result.created_collection:
            self.created_collections += 1

    @property
    def exported_count(self) -> int:
        return len(self.created) + len(self.updated)
