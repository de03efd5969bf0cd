"""Data models for the remote Foundry hierarchy.

Folders hold collections (JournalEntry documents) which hold pages
(JournalEntryPage documents). Every entity is indexed both by id and by a
path key built from ancestor names.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from src.models.page_provenance import PageProvenance

# Parent id reported by the folder script for top-level folders
ROOT_SENTINEL = "root"

# Namespace under page.flags where provenance is stored
PROVENANCE_NAMESPACE = "markdowntofoundry"


def normalize_parent_id(parent_id: Optional[str]) -> Optional[str]:
    """Map the root sentinel and empty values to a null parent."""
    if not parent_id or parent_id == ROOT_SENTINEL:
        return None
    return parent_id


def collection_path_key(folder_path: str, collection_name: str) -> str:
    return f"{folder_path}/{collection_name}"


def page_path_key(folder_path: str, collection_name: str, page_name: str) -> str:
    return f"{folder_path}/{collection_name}.{page_name}"


def page_reference(collection_id: str, page_id: str) -> str:
    """Build the Foundry document reference used by @UUID[...] links."""
    return f"JournalEntry.{collection_id}.JournalEntryPage.{page_id}"


@dataclass
class RemoteFolder:
    """A JournalEntry folder in the Foundry world.

    Attributes:
        id: Foundry document id
        name: Folder name
        parent_id: Parent folder id (None for top-level folders)
        depth: Nesting depth reported by Foundry (1 for top-level)
        full_path: Ancestor names joined with "/", top-level first
    """
    id: str
    name: str
    parent_id: Optional[str]
    depth: int
    full_path: str


@dataclass
class RemotePage:
    """A text page inside a collection.

    Attributes:
        id: Foundry embedded document id
        name: Page title
        collection_id: Owning collection id
        folder_id: Folder of the owning collection (None at root)
        full_path: Path key ``folder/collection.page``
        provenance: Provenance flags (None for pages not created by this tool)
    """
    id: str
    name: str
    collection_id: str
    folder_id: Optional[str]
    full_path: str
    provenance: Optional[PageProvenance] = None

    @property
    def reference(self) -> str:
        return page_reference(self.collection_id, self.id)


@dataclass
class RemoteCollection:
    """A JournalEntry document.

    Attributes:
        id: Foundry document id
        name: Collection name
        folder_id: Containing folder id (None at root)
        folder_path: Path key of the containing folder ("" at root)
        pages: Pages currently known to be embedded in the collection
    """
    id: str
    name: str
    folder_id: Optional[str]
    folder_path: str = ""
    pages: List[RemotePage] = field(default_factory=list)

    @property
    def full_path(self) -> str:
        return collection_path_key(self.folder_path, self.name)

    def page_path(self, page_name: str) -> str:
        return page_path_key(self.folder_path, self.name, page_name)
