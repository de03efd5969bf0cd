"""Page provenance data model."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from src.models.link_record import LinkRecord


@dataclass
class PageProvenance:
    """Origin metadata stored on a remote page.

    Written under ``flags.markdowntofoundry`` of every page this tool
    creates or updates. The link resolution pass builds its lookup maps from
    source_uuid and source_path of all pages.

    Attributes:
        source_uuid: Identity of the originating local document
        source_path: Vault-relative path of the originating document
        title: Title of the originating document
        content_hash: Hash of the source bytes at export time
        ctime: Creation time of the source file (ms since epoch)
        mtime: Modification time of the source file (ms since epoch)
        upload_time: Export time (ISO 8601)
        links: Link manifest of the rendered content
        unresolved_count: Number of links not yet rewritten
        vault: Name of the vault the document came from
    """
    source_uuid: str = ""
    source_path: str = ""
    title: str = ""
    content_hash: str = ""
    ctime: int = 0
    mtime: int = 0
    upload_time: str = ""
    links: List[LinkRecord] = field(default_factory=list)
    unresolved_count: int = 0
    vault: str = ""

    def recount_unresolved(self) -> int:
        """Recompute the unresolved count from the manifest and return it."""
        self.unresolved_count = sum(1 for link in self.links if not link.resolved)
        return self.unresolved_count

    def to_flags(self) -> Dict[str, Any]:
        return {
            "uuid": self.source_uuid,
            "vault": self.vault,
            "filePath": self.source_path,
            "noteTitle": self.title,
            "noteHash": self.content_hash,
            "cTime": self.ctime,
            "mTime": self.mtime,
            "uploadTime": self.upload_time,
            "journalLinks": [link.to_dict() for link in self.links],
            "unresolvedLinks": self.unresolved_count,
        }

    @classmethod
    def from_flags(cls, flags: Dict[str, Any]) -> "PageProvenance":
        """Build provenance from stored page flags.

        Older exports stored ``unresolvedLinks`` as a list; any non-integer
        value is replaced by a recount over the manifest.
        """
        raw_links = flags.get("journalLinks")
        links = [
            LinkRecord.from_dict(item)
            for item in (raw_links if isinstance(raw_links, list) else [])
            if isinstance(item, dict)
        ]
        provenance = cls(
            source_uuid=str(flags.get("uuid") or ""),
            source_path=str(flags.get("filePath") or ""),
            title=str(flags.get("noteTitle") or ""),
            content_hash=str(flags.get("noteHash") or ""),
            ctime=_as_int(flags.get("cTime")),
            mtime=_as_int(flags.get("mTime")),
            upload_time=str(flags.get("uploadTime") or ""),
            links=links,
            vault=str(flags.get("vault") or ""),
        )
        unresolved = flags.get("unresolvedLinks")
        if isinstance(unresolved, int) and not isinstance(unresolved, bool):
            provenance.unresolved_count = unresolved
        else:
            provenance.recount_unresolved()
        return provenance


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
