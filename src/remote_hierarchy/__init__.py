"""Remote hierarchy cache and write path for Foundry folders, journals and pages."""

from .cache import HierarchyCache
from .models import (
    ROOT_SENTINEL,
    PROVENANCE_NAMESPACE,
    RemoteCollection,
    RemoteFolder,
    RemotePage,
    collection_path_key,
    page_path_key,
    page_reference,
)
from .writer import HierarchyWriter

__all__ = [
    "HierarchyCache",
    "HierarchyWriter",
    "ROOT_SENTINEL",
    "PROVENANCE_NAMESPACE",
    "RemoteCollection",
    "RemoteFolder",
    "RemotePage",
    "collection_path_key",
    "page_path_key",
    "page_reference",
]
