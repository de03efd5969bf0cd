"""Rendered document data model."""

from dataclasses import dataclass, field
from typing import List

from src.models.link_record import LinkRecord


@dataclass
class RenderedDocument:
    """Output of the rendering collaborator for one local document.

    Attributes:
        source_path: Vault-relative path of the source document
        title: Default page title (file stem)
        markup: HTML ready to be stored as page content
        links: Link manifest discovered in the markup
        content_hash: Hash of the source bytes
        ctime: Creation time of the source file (ms since epoch)
        mtime: Modification time of the source file (ms since epoch)
    """
    source_path: str
    title: str
    markup: str
    links: List[LinkRecord] = field(default_factory=list)
    content_hash: str = ""
    ctime: int = 0
    mtime: int = 0
