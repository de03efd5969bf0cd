"""In-memory stand-in for RelayAPI.

FakeRelay keeps a tiny Foundry world (folders, journals with pages, data
files) and answers the same calls RelayAPI makes. Scripts are dispatched on
the operation name and their parameters are read back from the rendered
``const params = {...};`` line, so the real script assets are exercised.
"""

import json
import re
from typing import Any, Dict, List, Optional, Set

from src.relay_client.auth import Credentials
from src.relay_client.errors import APIAccessError, InvalidCredentialsError

PARAMS_PATTERN = re.compile(r'^const params = (.*);$', re.MULTILINE)
NAMESPACE = "markdowntofoundry"


def script_params(script: str) -> Dict[str, Any]:
    match = PARAMS_PATTERN.search(script)
    return json.loads(match.group(1)) if match else {}


class FakeRelay:
    """Scripted relay with call recording and failure injection.

    Attributes:
        folders: id -> {"name", "parent"}
        journals: id -> {"name", "folder", "pages": [page dicts]}
        files: Paths present in the Foundry data folder
        calls: (operation, payload) tuples in call order
        fail_on: Operation names that raise APIAccessError
    """

    def __init__(self, clients: Optional[List[str]] = None, status_ok: bool = True):
        self.credentials = Credentials(
            relay_url="https://relay.test", api_key="test-key", client_id=None
        )
        self.clients = ["client-1"] if clients is None else clients
        self.status_ok = status_ok
        self.client_id: Optional[str] = None
        self.folders: Dict[str, Dict[str, Any]] = {}
        self.journals: Dict[str, Dict[str, Any]] = {}
        self.files: Set[str] = set()
        self.uploads: List[str] = []
        self.calls: List[tuple] = []
        self.fail_on: Set[str] = set()
        self.link_summary = {"updated": [], "skipped": 0, "unresolved": 0}
        self.closed = False
        self._counter = 0

    # World setup

    def _new_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter:015d}"

    def add_folder(self, name: str, parent: Optional[str] = None) -> str:
        folder_id = self._new_id("F")
        self.folders[folder_id] = {"name": name, "parent": parent}
        return folder_id

    def add_journal(self, name: str, folder: Optional[str] = None) -> str:
        journal_id = self._new_id("J")
        self.journals[journal_id] = {"name": name, "folder": folder, "pages": []}
        return journal_id

    def add_page(
        self,
        journal_id: str,
        name: str,
        content: str = "",
        flags: Optional[Dict[str, Any]] = None,
    ) -> str:
        page_id = self._new_id("P")
        self.journals[journal_id]["pages"].append({
            "_id": page_id,
            "name": name,
            "text": {"content": content},
            "flags": {NAMESPACE: flags} if flags else {},
        })
        return page_id

    def folder_path(self, folder_id: Optional[str]) -> str:
        names = []
        while folder_id:
            folder = self.folders[folder_id]
            names.insert(0, folder["name"])
            folder_id = folder["parent"]
        return "/".join(names)

    def page(self, journal_id: str, page_id: str) -> Dict[str, Any]:
        return next(p for p in self.journals[journal_id]["pages"] if p["_id"] == page_id)

    def operations(self) -> List[str]:
        return [operation for operation, _ in self.calls]

    def _record(self, operation: str, payload: Any = None) -> None:
        self.calls.append((operation, payload))
        if operation.split("(")[0] in self.fail_on:
            raise APIAccessError(f"Relay API failure during {operation}", status_code=500)

    # RelayAPI surface

    def get_status(self) -> bool:
        self._record("get_status")
        return self.status_ok

    def list_clients(self) -> List[Dict[str, Any]]:
        self._record("list_clients")
        return [{"id": client} for client in self.clients]

    def select_client(self, client_id: str) -> None:
        self.client_id = client_id

    def close(self) -> None:
        self.closed = True

    def execute_script(self, script: str, operation: str = "execute_script") -> Any:
        params = script_params(script)
        self._record(operation, params)
        name = operation.split("(")[0]
        handler = getattr(self, f"_script_{name}")
        return handler(params)

    def create_entity(self, entity_type: str, data: Dict[str, Any], folder_id: Optional[str] = None) -> str:
        self._record(f"create_entity({entity_type})", {"data": data, "folder": folder_id})
        return self.add_journal(data["name"], folder_id)

    def update_entity(self, uuid: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self._record(f"update_entity({uuid})", data)
        journal = self.journals[uuid.split(".")[-1]]
        for incoming in data["pages"]:
            if incoming.get("_id"):
                existing = next(p for p in journal["pages"] if p["_id"] == incoming["_id"])
                existing.update(incoming)
            else:
                page = dict(incoming)
                page["_id"] = self._new_id("P")
                journal["pages"].append(page)
        return {"entity": [{"_id": uuid, "pages": [dict(p) for p in journal["pages"]]}]}

    def list_files(self, path: str = "/", recursive: bool = True) -> List[Dict[str, Any]]:
        self._record("list_files")
        return [
            {"name": p.split("/")[-1], "path": p, "type": "file"}
            for p in sorted(self.files)
        ]

    def upload_file(self, path: str, filename: str, content: bytes, overwrite: bool = True) -> Dict[str, Any]:
        self._record(f"upload_file({path}/{filename})", content)
        self.files.add(f"{path}/{filename}")
        self.uploads.append(f"{path}/{filename}")
        return {"success": True}

    # Scripts

    def _script_get_folders(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [
            {
                "id": folder_id,
                "name": folder["name"],
                "type": "JournalEntry",
                "parentId": folder["parent"] or "root",
                "depth": self.folder_path(folder_id).count("/") + 1,
                "fullPath": self.folder_path(folder_id),
            }
            for folder_id, folder in self.folders.items()
        ]

    def _script_get_collections(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [
            {
                "id": journal_id,
                "name": journal["name"],
                "folderId": journal["folder"] or "root",
                "folderPath": self.folder_path(journal["folder"]),
                "pages": [
                    {
                        "id": page["_id"],
                        "name": page["name"],
                        "flags": page.get("flags", {}).get(params["namespace"]),
                    }
                    for page in journal["pages"]
                ],
            }
            for journal_id, journal in self.journals.items()
        ]

    def _script_create_folder(self, params: Dict[str, Any]) -> Dict[str, Any]:
        folder_id = self.add_folder(params["name"] or "ObsidianPlaceholder", params.get("parentId"))
        return {"id": folder_id, "name": params["name"]}

    def _script_collect_link_state(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        state = []
        for journal_id, journal in self.journals.items():
            for page in journal["pages"]:
                flags = page.get("flags", {}).get(params["namespace"])
                if not flags:
                    continue
                state.append({
                    "collectionId": journal_id,
                    "pageId": page["_id"],
                    "name": page["name"],
                    "flags": flags,
                    "content": page["text"]["content"] if flags.get("unresolvedLinks", 0) > 0 else None,
                })
        return state

    def _script_resolve_links(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.link_summary

    def _script_install_macro(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"id": "M000000000000001", "slot": 3}


class RelayWithoutKey(FakeRelay):
    """Relay whose credentials cannot be loaded."""

    @property
    def credentials(self):
        raise InvalidCredentialsError(endpoint="https://relay.test", reason="FOUNDRY_API_KEY is not set")

    @credentials.setter
    def credentials(self, value):
        pass
