"""Link record data model."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class LinkRecord:
    """One internal reference discovered in a rendered document.

    Records are stored in the page provenance (the link manifest) and read
    back by the link resolution pass once every document of a batch has a
    remote identity. Serialized keys keep the names already present on pages
    exported by earlier versions of the plugin.

    Attributes:
        source_uuid: Identity of the document containing the link
        link_path: Vault path of the linked document ("" for same-page anchors)
        text: Display text of the link
        destination_uuid: Identity of the linked document, when known
        is_anchor: True if the link targets a heading
        anchor: Anchor part including the leading "#" ("" if none)
        resolved: True once the link has been rewritten to a cross-reference
        link_id: Stable identifier stamped on the <a> element at render time
    """
    source_uuid: str = ""
    link_path: str = ""
    text: str = ""
    destination_uuid: str = ""
    is_anchor: bool = False
    anchor: str = ""
    resolved: bool = False
    link_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "obsidianNoteUUID": self.source_uuid,
            "linkPath": self.link_path,
            "linkText": self.text,
            "linkDestinationUUID": self.destination_uuid,
            "isAnkerLink": self.is_anchor,
            "ankerLink": self.anchor,
            "linkResolved": self.resolved,
            "linkId": self.link_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkRecord":
        return cls(
            source_uuid=str(data.get("obsidianNoteUUID") or ""),
            link_path=str(data.get("linkPath") or ""),
            text=str(data.get("linkText") or ""),
            destination_uuid=str(data.get("linkDestinationUUID") or ""),
            is_anchor=bool(data.get("isAnkerLink", False)),
            anchor=str(data.get("ankerLink") or ""),
            resolved=bool(data.get("linkResolved", False)),
            link_id=str(data.get("linkId") or ""),
        )
