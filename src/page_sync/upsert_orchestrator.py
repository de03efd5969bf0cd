"""Placement of one rendered document into the remote hierarchy.

The orchestrator decides whether a document's page already exists (by the
page id recorded in the note, then by path key in the hierarchy cache) and
either updates it in place or creates whatever is missing on the way: folder
segments, the collection and finally the page.
Each document results in exactly one page write carrying title, content and
provenance.
"""

import logging
from dataclasses import replace
from datetime import datetime, UTC
from typing import Any, List, Optional, Tuple

from src.models.page_provenance import PageProvenance
from src.models.rendered_document import RenderedDocument
from src.remote_hierarchy.models import (
    RemoteCollection,
    RemotePage,
    collection_path_key,
    page_path_key,
)
from src.vault.errors import VaultError
from src.vault.models import (
    COLLECTION_FIELD,
    FOLDER_FIELD,
    PAGE_ID_FIELD,
    PAGE_TITLE_FIELD,
    PICTURE_PATH_FIELD,
    LocalDocument,
)

from .errors import UpsertError
from .models import DocumentTarget, UpsertOutcome, UpsertResult
from .session import SyncSession

logger = logging.getLogger(__name__)


class UpsertOrchestrator:
    """Creates or updates the page of a document.

    Example:
        >>> orchestrator = UpsertOrchestrator(session)
        >>> result = orchestrator.upsert(document, rendered, identity)
        >>> result.outcome
        <UpsertOutcome.CREATED: 'created'>
    """

    def __init__(self, session: SyncSession, link_pass: Optional[Any] = None):
        """Initialize the orchestrator.

        Args:
            session: Open sync session
            link_pass: LinkResolutionPass run after an upsert when requested
        """
        self.session = session
        self.settings = session.settings
        self.cache = session.cache
        self.writer = session.writer
        self.store = session.store
        self.link_pass = link_pass

    def resolve_target(self, document: LocalDocument) -> DocumentTarget:
        """Work out folder, collection, title and page id for a document.

        VTT_* frontmatter fields override the configured defaults when
        metadata reading is enabled.
        """
        metadata = document.metadata if self.settings.read_metadata else {}

        def field(name: str, default: Optional[str]) -> Optional[str]:
            value = metadata.get(name)
            if value is None or not str(value).strip():
                return default
            return str(value).strip()

        return DocumentTarget(
            folder_path=(field(FOLDER_FIELD, self.settings.default_folder) or "").strip("/"),
            collection_name=field(COLLECTION_FIELD, self.settings.default_collection),
            title=field(PAGE_TITLE_FIELD, document.title),
            page_id=field(PAGE_ID_FIELD, None),
            picture_path=(field(PICTURE_PATH_FIELD, self.settings.picture_path) or "").strip("/"),
        )

    def ensure_folder_chain(
        self,
        target: DocumentTarget,
        document_path: str,
    ) -> Tuple[Optional[str], List[str]]:
        """Make sure every folder segment of the target exists.

        Segments already present in the cache are reused; only the missing
        ones are created, top-down.

        Returns:
            Tuple of (id of the deepest folder or None for the root,
            paths of the folders created)

        Raises:
            UpsertError: If a folder cannot be created
        """
        parent_id: Optional[str] = None
        created: List[str] = []
        path = ""
        for segment in target.folder_segments:
            path = f"{path}/{segment}" if path else segment
            folder = self.cache.folder_by_path(path)
            if folder is None:
                folder = self.writer.create_folder(segment, parent_id)
                if folder is None:
                    raise UpsertError(document_path, f"could not create folder '{path}'")
                created.append(path)
            parent_id = folder.id
        return parent_id, created

    def ensure_collection(
        self,
        target: DocumentTarget,
        folder_id: Optional[str],
        document_path: str,
    ) -> Tuple[RemoteCollection, bool]:
        """Find or create the target collection.

        Raises:
            UpsertError: If the collection cannot be created
        """
        folder_path = "/".join(target.folder_segments)
        collection = self.cache.collection_by_path(
            collection_path_key(folder_path, target.collection_name)
        )
        if collection is not None:
            return collection, False

        collection = self.writer.create_collection(target.collection_name, folder_id)
        if collection is None:
            raise UpsertError(
                document_path, f"could not create collection '{target.collection_name}'"
            )
        return collection, True

    def build_provenance(
        self,
        document: LocalDocument,
        rendered: RenderedDocument,
        identity: str,
    ) -> PageProvenance:
        for link in rendered.links:
            link.source_uuid = identity
        provenance = PageProvenance(
            source_uuid=identity,
            source_path=document.path,
            title=document.title,
            content_hash=rendered.content_hash,
            ctime=rendered.ctime,
            mtime=rendered.mtime,
            upload_time=datetime.now(UTC).isoformat(),
            links=list(rendered.links),
            vault=self.session.vault_name,
        )
        provenance.recount_unresolved()
        return provenance

    def upsert(
        self,
        document: LocalDocument,
        rendered: RenderedDocument,
        identity: str,
        target: Optional[DocumentTarget] = None,
        resolve_links: bool = False,
    ) -> UpsertResult:
        """Create or update the page of one document.

        Args:
            document: The local note
            rendered: Its rendered markup and link manifest
            identity: The note's stable identity
            target: Pre-resolved target (resolved from metadata if omitted)
            resolve_links: Run the link resolution pass afterwards

        Returns:
            UpsertResult describing what was done

        Raises:
            UpsertError: If any relay call needed for this document fails
        """
        target = target or self.resolve_target(document)
        existing = self.cache.page_by_id(target.page_id)
        if existing is not None:
            target = self._at_known_page(target, existing)
        else:
            existing = self.cache.page_by_path(
                page_path_key(
                    "/".join(target.folder_segments), target.collection_name, target.title
                )
            )

        created_folders: List[str] = []
        created_collection = False
        if existing is not None:
            collection_id, page_id = existing.collection_id, existing.id
        else:
            folder_id, created_folders = self.ensure_folder_chain(target, document.path)
            collection, created_collection = self.ensure_collection(
                target, folder_id, document.path
            )
            collection_id, page_id = collection.id, None

        provenance = self.build_provenance(document, rendered, identity)
        page = self.writer.upsert_page(
            collection_id, target.title, rendered.markup, provenance, page_id
        )
        if page is None:
            raise UpsertError(document.path, f"could not write page '{target.title}'")

        outcome = UpsertOutcome.UPDATED if page_id else UpsertOutcome.CREATED
        self.write_back(document, target, page, outcome)

        if resolve_links and self.link_pass is not None:
            self.link_pass.run()

        return UpsertResult(
            document_path=document.path,
            identity=identity,
            outcome=outcome,
            page=page,
            created_folders=created_folders,
            created_collection=created_collection,
        )

    def _at_known_page(self, target: DocumentTarget, page: RemotePage) -> DocumentTarget:
        """Move the target to where the page named by VTT_UUID actually lives.

        The page keeps its folder and collection; only title and content
        follow the note.
        """
        collection = self.cache.collection_by_id(page.collection_id)
        if page.name != target.title:
            logger.info(f"Renaming page '{page.name}' to '{target.title}'")
        if collection is None:
            return target
        return replace(
            target,
            folder_path=collection.folder_path,
            collection_name=collection.name,
        )

    def write_back(
        self,
        document: LocalDocument,
        target: DocumentTarget,
        page: RemotePage,
        outcome: UpsertOutcome,
    ) -> None:
        """Record the resolved destination in the note's frontmatter.

        Set fields are only replaced in refresh mode. The page id is always
        replaced after a create, because the old id no longer names a page.
        Write failures are reported but do not fail the document.
        """
        if not self.settings.write_back_metadata:
            return

        fields = {
            FOLDER_FIELD: "/".join(target.folder_segments),
            COLLECTION_FIELD: target.collection_name,
            PAGE_TITLE_FIELD: target.title,
            PICTURE_PATH_FIELD: target.picture_path,
            PAGE_ID_FIELD: page.id,
        }
        try:
            self.store.update_metadata(
                document.path, fields, overwrite=self.settings.refresh_metadata
            )
            if outcome is UpsertOutcome.CREATED and not self.settings.refresh_metadata:
                self.store.update_metadata(
                    document.path, {PAGE_ID_FIELD: page.id}, overwrite=True
                )
        except VaultError as e:
            logger.error(f"Could not write destination metadata to {document.path}: {e}")
            self.session.notify(f"Could not update frontmatter of {document.path}")
            return

        for key, value in fields.items():
            if value and (self.settings.refresh_metadata or not document.metadata.get(key)):
                document.metadata[key] = value
        if outcome is UpsertOutcome.CREATED:
            document.metadata[PAGE_ID_FIELD] = page.id
