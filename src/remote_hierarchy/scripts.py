"""Versioned remote scripts and validation of their results.

Script bodies live next to this module in ``js/`` as plain JavaScript
files. Each file starts with a ``// script-version: N`` header and may
contain a single ``__PARAMS__`` token that is replaced by a JSON object
literal, so no caller-provided value is ever spliced into source text.

Every script has a matching ``parse_*`` function here. The relay returns
whatever the script returned; these functions check the shape and raise
ScriptResultError instead of letting malformed data reach the cache.
"""

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.models.page_provenance import PageProvenance
from src.relay_client.errors import ScriptResultError

from .models import (
    RemoteCollection,
    RemoteFolder,
    RemotePage,
    normalize_parent_id,
)

SCRIPT_DIR = Path(__file__).parent / "js"

PARAMS_TOKEN = "__PARAMS__"

VERSION_PATTERN = re.compile(r'^//\s*script-version:\s*(\d+)\s*$', re.MULTILINE)

# Folder type holding journal entries; other folder types are ignored
JOURNAL_FOLDER_TYPE = "JournalEntry"


@dataclass(frozen=True)
class RemoteScript:
    """A script asset loaded from ``js/``.

    Attributes:
        name: File stem (e.g. "get_folders")
        version: Integer from the script-version header
        source: Raw source text
    """
    name: str
    version: int
    source: str

    def render(self, **params: Any) -> str:
        """Return the source with ``__PARAMS__`` replaced by a JSON literal."""
        if PARAMS_TOKEN not in self.source:
            if params:
                raise ValueError(f"Script '{self.name}' takes no parameters")
            return self.source
        return self.source.replace(PARAMS_TOKEN, json.dumps(params, ensure_ascii=False))


@lru_cache(maxsize=None)
def load_script(name: str) -> RemoteScript:
    """Load a script asset by name.

    Raises:
        FileNotFoundError: If no such asset exists
        ValueError: If the asset has no version header
    """
    path = SCRIPT_DIR / f"{name}.js"
    source = path.read_text(encoding="utf-8")
    match = VERSION_PATTERN.search(source)
    if not match:
        raise ValueError(f"Script asset {path} has no script-version header")
    return RemoteScript(name=name, version=int(match.group(1)), source=source)


def _require_list(script_name: str, result: Any) -> List[Dict[str, Any]]:
    if not isinstance(result, list):
        raise ScriptResultError(script_name, f"expected a list, got {type(result).__name__}")
    for index, item in enumerate(result):
        if not isinstance(item, dict):
            raise ScriptResultError(script_name, f"item {index} is not an object")
    return result


def _require_str(script_name: str, item: Dict[str, Any], key: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value:
        raise ScriptResultError(script_name, f"missing string field '{key}'")
    return value


def parse_folders(result: Any) -> List[RemoteFolder]:
    """Validate the get_folders result, keeping journal folders only."""
    folders = []
    for item in _require_list("get_folders", result):
        if item.get("type") != JOURNAL_FOLDER_TYPE:
            continue
        folder_id = _require_str("get_folders", item, "id")
        name = str(item.get("name") or "")
        depth = item.get("depth")
        folders.append(RemoteFolder(
            id=folder_id,
            name=name,
            parent_id=normalize_parent_id(item.get("parentId")),
            depth=depth if isinstance(depth, int) else 1,
            full_path=str(item.get("fullPath") or name),
        ))
    return folders


def parse_collections(result: Any) -> List[RemoteCollection]:
    """Validate the get_collections result into collections with their pages."""
    collections = []
    for item in _require_list("get_collections", result):
        collection_id = _require_str("get_collections", item, "id")
        collection = RemoteCollection(
            id=collection_id,
            name=str(item.get("name") or ""),
            folder_id=normalize_parent_id(item.get("folderId")),
            folder_path=str(item.get("folderPath") or ""),
        )
        raw_pages = item.get("pages") or []
        if not isinstance(raw_pages, list):
            raise ScriptResultError("get_collections", f"pages of {collection_id} is not a list")
        for raw_page in raw_pages:
            if not isinstance(raw_page, dict) or not raw_page.get("id"):
                raise ScriptResultError("get_collections", f"malformed page in {collection_id}")
            flags = raw_page.get("flags")
            name = str(raw_page.get("name") or "")
            collection.pages.append(RemotePage(
                id=str(raw_page["id"]),
                name=name,
                collection_id=collection_id,
                folder_id=collection.folder_id,
                full_path=collection.page_path(name),
                provenance=PageProvenance.from_flags(flags) if isinstance(flags, dict) else None,
            ))
        collections.append(collection)
    return collections


def parse_created_folder(result: Any) -> str:
    """Return the id of the folder created by create_folder."""
    if not isinstance(result, dict):
        raise ScriptResultError("create_folder", f"expected an object, got {type(result).__name__}")
    return _require_str("create_folder", result, "id")


@dataclass
class LinkStateEntry:
    """One exported page as reported by collect_link_state."""
    collection_id: str
    page_id: str
    name: str
    provenance: PageProvenance
    content: Optional[str] = None


def parse_link_state(result: Any) -> List[LinkStateEntry]:
    entries = []
    for item in _require_list("collect_link_state", result):
        flags = item.get("flags")
        if not isinstance(flags, dict):
            raise ScriptResultError("collect_link_state", "page without provenance flags")
        content = item.get("content")
        entries.append(LinkStateEntry(
            collection_id=_require_str("collect_link_state", item, "collectionId"),
            page_id=_require_str("collect_link_state", item, "pageId"),
            name=str(item.get("name") or ""),
            provenance=PageProvenance.from_flags(flags),
            content=content if isinstance(content, str) else None,
        ))
    return entries


def parse_link_summary(result: Any) -> Dict[str, Any]:
    """Validate the summary returned by resolve_links."""
    if not isinstance(result, dict):
        raise ScriptResultError("resolve_links", f"expected an object, got {type(result).__name__}")
    updated = result.get("updated")
    if not isinstance(updated, list):
        raise ScriptResultError("resolve_links", "missing list field 'updated'")
    for key in ("skipped", "unresolved"):
        if not isinstance(result.get(key), int):
            raise ScriptResultError("resolve_links", f"missing integer field '{key}'")
    return {
        "updated": [str(ref) for ref in updated],
        "skipped": result["skipped"],
        "unresolved": result["unresolved"],
    }


def parse_installed_macro(result: Any) -> Dict[str, Any]:
    if not isinstance(result, dict):
        raise ScriptResultError("install_macro", f"expected an object, got {type(result).__name__}")
    return {
        "id": _require_str("install_macro", result, "id"),
        "slot": result.get("slot"),
    }
