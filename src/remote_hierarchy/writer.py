"""Single write path for remote hierarchy entities.

Every folder/collection/page create or update goes through HierarchyWriter,
which performs the relay call and inserts the result into the
HierarchyCache in the same step, so the cache cannot drift from what this
session created.

Relay failures are logged, reported through the notifier and turned into a
None result. Callers that cannot continue without the entity (the upsert
orchestrator) raise their own per-document error.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from src.models.page_provenance import PageProvenance
from src.relay_client.api_wrapper import RelayAPI
from src.relay_client.errors import APIAccessError, RelayError

from .cache import HierarchyCache
from .models import (
    PROVENANCE_NAMESPACE,
    RemoteCollection,
    RemoteFolder,
    RemotePage,
    normalize_parent_id,
)
from .scripts import load_script, parse_created_folder

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]

COLLECTION_ENTITY_TYPE = "JournalEntry"


class HierarchyWriter:
    """Creates and updates remote entities and keeps the cache coherent."""

    def __init__(
        self,
        api: RelayAPI,
        cache: HierarchyCache,
        namespace: str = PROVENANCE_NAMESPACE,
        notifier: Optional[Notifier] = None,
        page_ownership: int = -1,
    ):
        """Initialize the writer.

        Args:
            api: Relay API wrapper
            cache: Cache to update after each successful call
            namespace: Flag namespace for page provenance
            notifier: Callback receiving user-facing failure messages
            page_ownership: Default ownership level for created pages
        """
        self._api = api
        self._cache = cache
        self._namespace = namespace
        self._notify = notifier or (lambda message: None)
        self._page_ownership = page_ownership

    def _report(self, message: str, error: Exception) -> None:
        logger.error(f"{message}: {error}")
        self._notify(f"{message}: {error}")

    def create_folder(self, name: str, parent_id: Optional[str]) -> Optional[RemoteFolder]:
        """Create one journal folder and cache it.

        Args:
            name: Folder name
            parent_id: Parent folder id, the root sentinel or None

        Returns:
            The cached RemoteFolder, or None if the relay call failed
        """
        parent_id = normalize_parent_id(parent_id)
        script = load_script("create_folder")
        try:
            result = self._api.execute_script(
                script.render(name=name, parentId=parent_id),
                f"create_folder({name})",
            )
            folder_id = parse_created_folder(result)
        except RelayError as e:
            self._report(f"Failed to create folder '{name}'", e)
            return None

        parent = self._cache.folder_by_id(parent_id)
        folder = RemoteFolder(
            id=folder_id,
            name=name,
            parent_id=parent_id,
            depth=parent.depth + 1 if parent else 1,
            full_path=f"{parent.full_path}/{name}" if parent else name,
        )
        self._cache.add_folder(folder)
        logger.info(f"Created folder '{folder.full_path}' ({folder_id})")
        return folder

    def create_collection(self, name: str, folder_id: Optional[str]) -> Optional[RemoteCollection]:
        """Create an empty collection inside a folder (None for root) and cache it."""
        folder_id = normalize_parent_id(folder_id)
        try:
            collection_id = self._api.create_entity(
                COLLECTION_ENTITY_TYPE,
                {"name": name, "pages": []},
                folder_id=folder_id,
            )
        except RelayError as e:
            self._report(f"Failed to create collection '{name}'", e)
            return None

        folder = self._cache.folder_by_id(folder_id)
        collection = RemoteCollection(
            id=collection_id,
            name=name,
            folder_id=folder_id,
            folder_path=folder.full_path if folder else "",
        )
        self._cache.add_collection(collection)
        logger.info(f"Created collection '{collection.full_path}' ({collection_id})")
        return collection

    def build_page_payload(
        self,
        title: str,
        content: str,
        provenance: PageProvenance,
        page_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "name": title,
            "type": "text",
            "text": {"content": content, "format": 1},
            "_id": page_id or "",
            "flags": {self._namespace: provenance.to_flags()},
            "title": {"show": True, "level": 1},
            "ownership": {"default": self._page_ownership},
        }

    def upsert_page(
        self,
        collection_id: str,
        title: str,
        content: str,
        provenance: PageProvenance,
        page_id: Optional[str] = None,
    ) -> Optional[RemotePage]:
        """Create or update one page with a single relay call.

        On create the relay answers with the collection's full page list and
        the new page is located by title. Two sibling pages with the same
        title make this ambiguous; the first match wins.

        Args:
            collection_id: Owning collection id
            title: Page title
            content: Rendered page content
            provenance: Provenance stored in the page flags
            page_id: Existing page id to update, None to create

        Returns:
            The cached RemotePage, or None if the call or the id lookup failed
        """
        payload = self.build_page_payload(title, content, provenance, page_id)
        try:
            response = self._api.update_entity(
                f"JournalEntry.{collection_id}", {"pages": [payload]}
            )
            returned_pages = self._returned_pages(response)
        except RelayError as e:
            self._report(f"Failed to write page '{title}'", e)
            return None

        if page_id:
            resolved_id = page_id
        else:
            resolved_id = next(
                (str(p["_id"]) for p in returned_pages if p.get("name") == title and p.get("_id")),
                None,
            )
            if resolved_id is None:
                self._report(
                    f"Failed to write page '{title}'",
                    APIAccessError("created page not found in relay response"),
                )
                return None

        collection = self._cache.collection_by_id(collection_id)
        folder_id = collection.folder_id if collection else None
        full_path = collection.page_path(title) if collection else f"/{collection_id}.{title}"
        page = RemotePage(
            id=resolved_id,
            name=title,
            collection_id=collection_id,
            folder_id=folder_id,
            full_path=full_path,
            provenance=provenance,
        )
        self._cache.add_page(page)
        logger.info(f"{'Updated' if page_id else 'Created'} page '{full_path}' ({resolved_id})")
        return page

    @staticmethod
    def _returned_pages(response: Dict[str, Any]) -> List[Dict[str, Any]]:
        entity = response.get("entity")
        if isinstance(entity, list) and entity and isinstance(entity[0], dict):
            pages = entity[0].get("pages")
        elif isinstance(entity, dict):
            pages = entity.get("pages")
        else:
            pages = None
        if not isinstance(pages, list):
            raise APIAccessError("relay response carries no page list")
        return [p for p in pages if isinstance(p, dict)]
