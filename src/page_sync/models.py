"""Data models for page synchronization."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from src.remote_hierarchy.models import RemotePage


class UpsertOutcome(Enum):
    """Terminal state of one document upsert."""
    CREATED = "created"
    UPDATED = "updated"


@dataclass
class DocumentTarget:
    """Where a local document goes in Foundry.

    Attributes:
        folder_path: Folder names joined with "/" ("" for the root)
        collection_name: Name of the collection holding the page
        title: Page title
        page_id: Known page id from a previous export, if any
        picture_path: Upload directory for the document's images
    """
    folder_path: str
    collection_name: str
    title: str
    page_id: Optional[str] = None
    picture_path: str = ""

    @property
    def folder_segments(self) -> List[str]:
        return [segment.strip() for segment in self.folder_path.split("/") if segment.strip()]


@dataclass
class UpsertResult:
    """Result of exporting one document.

    Attributes:
        document_path: Vault-relative path of the document
        identity: Stable identity of the document
        outcome: CREATED or UPDATED
        page: The page as now cached
        created_folders: Folder paths created for this document
        created_collection: True if the collection was created for it
    """
    document_path: str
    identity: str
    outcome: UpsertOutcome
    page: RemotePage
    created_folders: List[str] = field(default_factory=list)
    created_collection: bool = False


@dataclass
class LinkPassSummary:
    """Outcome of one link resolution pass.

    Attributes:
        updated: Page references whose content was rewritten
        skipped: Links whose target could not be found
        unresolved: Links still unresolved across all pages afterwards
    """
    updated: List[str] = field(default_factory=list)
    skipped: int = 0
    unresolved: int = 0
