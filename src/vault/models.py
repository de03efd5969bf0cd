"""Data models for the local vault.

This module defines the data models used by the vault library.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Frontmatter field holding the stable document identity
IDENTITY_FIELD = "UUID"

# Frontmatter fields describing where a document goes in Foundry
FOLDER_FIELD = "VTT_Folder"
COLLECTION_FIELD = "VTT_Journal"
PAGE_TITLE_FIELD = "VTT_PageTitle"
PICTURE_PATH_FIELD = "VTT_PicturePath"
PAGE_ID_FIELD = "VTT_UUID"


@dataclass
class LocalDocument:
    """A Markdown note of the vault with its frontmatter split off.

    Attributes:
        path: Vault-relative POSIX path (e.g. "Sessions/Session 1.md")
        title: File stem, used as default page title
        body: Markdown content without frontmatter
        metadata: Parsed frontmatter fields (empty if none)
        raw: Full file bytes, used for the content hash
        ctime: Creation time in ms since epoch
        mtime: Modification time in ms since epoch
    """
    path: str
    title: str
    body: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    raw: bytes = b""
    ctime: int = 0
    mtime: int = 0

    @property
    def identity(self) -> Optional[str]:
        value = self.metadata.get(IDENTITY_FIELD)
        return str(value) if value else None


@dataclass
class SyncSettings:
    """Export configuration loaded from .foundry-sync/config.yaml.

    Attributes:
        vault_path: Root directory of the Markdown vault
        vault_name: Vault name stored in page provenance (default: directory name)
        default_folder: Folder path used when a note names none
        default_collection: Collection name used when a note names none
        picture_path: Upload directory for images in the Foundry data folder
        read_metadata: Read VTT_* frontmatter fields to override the defaults
        write_back_metadata: Write resolved destination fields back to notes
        refresh_metadata: Overwrite already-set destination fields on write-back
        run_link_pass: Run the link resolution pass after the batch
        link_pass_mode: "local" (resolve in Python) or "remote" (resolve in Foundry)
        page_ownership: Default ownership level for created pages
        client_id: Foundry client to target (overrides FOUNDRY_CLIENT_ID)
        exclude_dirs: Directory names skipped while scanning the vault
    """
    vault_path: str
    vault_name: str = ""
    default_folder: str = "Obsidian Export"
    default_collection: str = "ObsidianExport"
    picture_path: str = "assets/pictures"
    read_metadata: bool = True
    write_back_metadata: bool = True
    refresh_metadata: bool = False
    run_link_pass: bool = True
    link_pass_mode: str = "local"
    page_ownership: int = -1
    client_id: Optional[str] = None
    exclude_dirs: List[str] = field(
        default_factory=lambda: [".obsidian", ".trash", ".foundry-sync", ".git"]
    )
