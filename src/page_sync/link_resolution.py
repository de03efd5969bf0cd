"""Rewriting of internal links into Foundry cross references.

Once every document of a batch has a page, links recorded in the page
provenance can be turned into ``@UUID[<page reference><#slug>]{<text>}``
references. The pass looks targets up by source identity first, then by
source path, and treats links without either as anchors into the page
itself.

Two modes are available. ``local`` fetches the link state of all exported
pages, resolves in Python and persists changed pages through the
HierarchyWriter. ``remote`` runs ``resolve_links.js`` inside Foundry, which
implements the same rules.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from src.models.link_record import LinkRecord
from src.models.page_provenance import PageProvenance
from src.relay_client.errors import RelayError
from src.remote_hierarchy.models import PROVENANCE_NAMESPACE, page_reference
from src.remote_hierarchy.scripts import (
    load_script,
    parse_installed_macro,
    parse_link_state,
    parse_link_summary,
)

from .models import LinkPassSummary
from .session import SyncSession

logger = logging.getLogger(__name__)

LINK_MACRO_NAME = "MarkdownToFoundry linking"
LINK_MACRO_IMAGE = "icons/svg/book.svg"

LOCAL_MODE = "local"
REMOTE_MODE = "remote"


def slugify(anchor: str) -> str:
    """Turn ``#Heading#Sub Heading`` into ``sub-heading``."""
    fragment = anchor.split("#")[-1]
    return fragment.lower().replace(" ", "-").strip("-")


def anchor_pattern(attribute: str, value: str) -> "re.Pattern":
    """Match a whole ``<a>`` element whose attribute equals value."""
    return re.compile(
        r'<a[^>]*' + attribute + r'=["\']' + re.escape(value) + r'["\'][^>]*>.*?</a>',
        re.DOTALL,
    )


def candidate_patterns(link: LinkRecord) -> List["re.Pattern"]:
    """Patterns locating a link in page content, most specific first."""
    patterns = []
    if link.link_id:
        patterns.append(anchor_pattern("data-link-id", link.link_id))
    if not link.destination_uuid and not link.link_path and link.anchor:
        patterns.append(anchor_pattern("href", link.anchor))
    elif link.link_path and not link.is_anchor:
        patterns.append(anchor_pattern("href", link.link_path))
    elif link.link_path and link.is_anchor:
        patterns.append(anchor_pattern("href", link.link_path + link.anchor))
    return patterns


def build_reference(target: str, link: LinkRecord) -> str:
    anchor = ""
    if link.is_anchor and link.anchor:
        slug = slugify(link.anchor)
        if slug:
            anchor = f"#{slug}"
    return f"@UUID[{target}{anchor}]{{{link.text}}}"


class LinkResolver:
    """Lookup maps from source identity and source path to page references."""

    def __init__(self):
        self.by_uuid: Dict[str, str] = {}
        self.by_path: Dict[str, str] = {}

    @classmethod
    def from_pages(cls, pages: Iterable[Tuple[PageProvenance, str]]) -> "LinkResolver":
        resolver = cls()
        for provenance, reference in pages:
            resolver.register(provenance, reference)
        return resolver

    def register(self, provenance: PageProvenance, reference: str) -> None:
        if provenance.source_uuid:
            self.by_uuid[provenance.source_uuid] = reference
        if provenance.source_path:
            self.by_path[provenance.source_path] = reference

    def resolve_target(self, link: LinkRecord, own_reference: str) -> Optional[str]:
        if link.destination_uuid and link.destination_uuid in self.by_uuid:
            return self.by_uuid[link.destination_uuid]
        if link.link_path and link.link_path in self.by_path:
            return self.by_path[link.link_path]
        if not link.destination_uuid and not link.link_path and link.anchor:
            return own_reference
        return None

    def rewrite(
        self,
        content: str,
        provenance: PageProvenance,
        own_reference: str,
    ) -> Tuple[str, int]:
        """Replace every resolvable link of one page.

        Links are marked resolved when their element was replaced. The
        unresolved count of the provenance is recomputed afterwards.

        Returns:
            Tuple of (new content, number of links without a known target)
        """
        skipped = 0
        for link in provenance.links:
            target = self.resolve_target(link, own_reference)
            if target is None:
                logger.warning(
                    f"Could not resolve target of link '{link.text}' in {provenance.source_path}"
                )
                skipped += 1
                continue

            replacement = build_reference(target, link)
            for pattern in candidate_patterns(link):
                content, count = pattern.subn(lambda match: replacement, content)
                if count:
                    link.resolved = True
                    break

        provenance.recount_unresolved()
        return content, skipped


class LinkResolutionPass:
    """Resolves links across all exported pages of the world."""

    def __init__(
        self,
        session: SyncSession,
        mode: Optional[str] = None,
        namespace: str = PROVENANCE_NAMESPACE,
    ):
        self.session = session
        self.mode = mode or session.settings.link_pass_mode
        self.namespace = namespace
        if self.mode not in (LOCAL_MODE, REMOTE_MODE):
            raise ValueError(f"Unknown link pass mode: {self.mode}")

    def run(self) -> LinkPassSummary:
        """Run one pass.

        Relay failures are logged and reported; the pass then returns an
        empty summary.
        """
        logger.info(f"Resolving links ({self.mode} mode)")
        if self.mode == REMOTE_MODE:
            summary = self._run_remote()
        else:
            summary = self._run_local()
        logger.info(
            f"Link pass updated {len(summary.updated)} pages, "
            f"{summary.skipped} links without target, {summary.unresolved} unresolved"
        )
        return summary

    def _run_remote(self) -> LinkPassSummary:
        script = load_script("resolve_links")
        try:
            result = self.session.api.execute_script(
                script.render(namespace=self.namespace), "resolve_links"
            )
            summary = parse_link_summary(result)
        except RelayError as e:
            self._report(e)
            return LinkPassSummary()
        return LinkPassSummary(
            updated=summary["updated"],
            skipped=summary["skipped"],
            unresolved=summary["unresolved"],
        )

    def _run_local(self) -> LinkPassSummary:
        script = load_script("collect_link_state")
        try:
            entries = parse_link_state(self.session.api.execute_script(
                script.render(namespace=self.namespace), "collect_link_state"
            ))
        except RelayError as e:
            self._report(e)
            return LinkPassSummary()

        resolver = LinkResolver.from_pages(
            (entry.provenance, page_reference(entry.collection_id, entry.page_id))
            for entry in entries
        )

        summary = LinkPassSummary()
        for entry in entries:
            if entry.provenance.unresolved_count <= 0 or entry.content is None:
                continue
            reference = page_reference(entry.collection_id, entry.page_id)
            content, skipped = resolver.rewrite(entry.content, entry.provenance, reference)
            summary.skipped += skipped
            summary.unresolved += entry.provenance.unresolved_count
            if content == entry.content:
                continue

            page = self.session.writer.upsert_page(
                entry.collection_id,
                entry.name,
                content,
                entry.provenance,
                entry.page_id,
            )
            if page is not None:
                summary.updated.append(reference)
        return summary

    def _report(self, error: Exception) -> None:
        logger.error(f"Link resolution failed: {error}")
        self.session.notify(f"Link resolution failed: {error}")


def install_link_macro(session: SyncSession, namespace: str = PROVENANCE_NAMESPACE) -> Optional[Dict]:
    """Install the link resolution script as a Foundry macro.

    Returns:
        Dict with the macro ``id`` and hotbar ``slot``, or None on failure
    """
    command = load_script("resolve_links").render(namespace=namespace)
    script = load_script("install_macro").render(
        name=LINK_MACRO_NAME,
        command=command,
        img=LINK_MACRO_IMAGE,
    )
    try:
        macro = parse_installed_macro(session.api.execute_script(script, "install_macro"))
    except RelayError as e:
        logger.error(f"Could not install the '{LINK_MACRO_NAME}' macro: {e}")
        session.notify(f"Could not install the '{LINK_MACRO_NAME}' macro")
        return None
    logger.info(f"Installed macro '{LINK_MACRO_NAME}' ({macro['id']})")
    return macro
