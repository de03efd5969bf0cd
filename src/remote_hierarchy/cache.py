"""Snapshot of the remote folder/collection/page hierarchy.

The relay exposes no query API for the hierarchy, so the cache is filled
once per session by two script executions and then answers every lookup
from dictionaries. It is never refreshed automatically mid-batch: whoever
creates an entity must insert it (see HierarchyWriter).
"""

import logging
from typing import Dict, Iterator, List, Optional

from src.relay_client.api_wrapper import RelayAPI
from src.relay_client.errors import RelayError

from .models import PROVENANCE_NAMESPACE, RemoteCollection, RemoteFolder, RemotePage
from .scripts import load_script, parse_collections, parse_folders

logger = logging.getLogger(__name__)


class HierarchyCache:
    """Id- and path-indexed lookup tables over the remote hierarchy.

    A failed refresh leaves the affected tables empty instead of raising.
    Downstream logic then takes the create path, which favours forward
    progress over strict correctness.

    Example:
        >>> cache = HierarchyCache(api)
        >>> cache.refresh()
        >>> cache.folder_by_path("Exports/Sessions")
    """

    def __init__(self, api: RelayAPI, namespace: str = PROVENANCE_NAMESPACE):
        self._api = api
        self._namespace = namespace
        self._folders_by_id: Dict[str, RemoteFolder] = {}
        self._folders_by_path: Dict[str, RemoteFolder] = {}
        self._collections_by_id: Dict[str, RemoteCollection] = {}
        self._collections_by_path: Dict[str, RemoteCollection] = {}
        self._pages_by_id: Dict[str, RemotePage] = {}
        self._pages_by_path: Dict[str, RemotePage] = {}

    def refresh(self) -> None:
        """Rebuild every index from two remote round trips."""
        self.clear()
        for folder in self._fetch_folders():
            self.add_folder(folder)
        for collection in self._fetch_collections():
            self.add_collection(collection)
        logger.info(
            f"Hierarchy cache refreshed: {len(self._folders_by_id)} folder(s), "
            f"{len(self._collections_by_id)} collection(s), {len(self._pages_by_id)} page(s)"
        )

    def clear(self) -> None:
        self._folders_by_id.clear()
        self._folders_by_path.clear()
        self._collections_by_id.clear()
        self._collections_by_path.clear()
        self._pages_by_id.clear()
        self._pages_by_path.clear()

    def _fetch_folders(self) -> List[RemoteFolder]:
        script = load_script("get_folders")
        try:
            result = self._api.execute_script(script.render(), "get_folders")
            return parse_folders(result)
        except RelayError as e:
            logger.warning(f"Could not fetch remote folders, continuing with none: {e}")
            return []

    def _fetch_collections(self) -> List[RemoteCollection]:
        script = load_script("get_collections")
        try:
            result = self._api.execute_script(
                script.render(namespace=self._namespace), "get_collections"
            )
            return parse_collections(result)
        except RelayError as e:
            logger.warning(f"Could not fetch remote collections, continuing with none: {e}")
            return []

    # Insertion

    def add_folder(self, folder: RemoteFolder) -> None:
        self._folders_by_id[folder.id] = folder
        self._folders_by_path[folder.full_path] = folder

    def add_collection(self, collection: RemoteCollection) -> None:
        """Index a collection and every page it carries."""
        self._collections_by_id[collection.id] = collection
        self._collections_by_path[collection.full_path] = collection
        for page in collection.pages:
            self._index_page(page)

    def add_page(self, page: RemotePage) -> None:
        """Index a page and attach it to its collection, replacing a stale copy."""
        collection = self._collections_by_id.get(page.collection_id)
        if collection is not None:
            collection.pages = [p for p in collection.pages if p.id != page.id]
            collection.pages.append(page)
        stale = self._pages_by_id.get(page.id)
        if stale is not None and self._pages_by_path.get(stale.full_path) is stale:
            del self._pages_by_path[stale.full_path]
        self._index_page(page)

    def _index_page(self, page: RemotePage) -> None:
        self._pages_by_id[page.id] = page
        self._pages_by_path[page.full_path] = page

    # Lookups

    def folder_by_id(self, folder_id: Optional[str]) -> Optional[RemoteFolder]:
        if not folder_id:
            return None
        return self._folders_by_id.get(folder_id)

    def folder_by_path(self, path: str) -> Optional[RemoteFolder]:
        return self._folders_by_path.get(path)

    def collection_by_id(self, collection_id: Optional[str]) -> Optional[RemoteCollection]:
        if not collection_id:
            return None
        return self._collections_by_id.get(collection_id)

    def collection_by_path(self, path: str) -> Optional[RemoteCollection]:
        return self._collections_by_path.get(path)

    def page_by_id(self, page_id: Optional[str]) -> Optional[RemotePage]:
        if not page_id:
            return None
        return self._pages_by_id.get(page_id)

    def page_by_path(self, path: str) -> Optional[RemotePage]:
        return self._pages_by_path.get(path)

    def collections(self) -> Iterator[RemoteCollection]:
        return iter(list(self._collections_by_id.values()))

    def pages(self) -> Iterator[RemotePage]:
        return iter(list(self._pages_by_id.values()))
