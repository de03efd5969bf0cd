"""Markdown to page markup rendering using Pandoc.

Obsidian-specific syntax (wikilinks and ``![[...]]`` embeds) is rewritten to
standard Markdown links and images first, Pandoc then produces HTML, and
BeautifulSoup finally walks the result to build the link manifest. Every
internal link gets a ``data-link-id`` attribute and an ``href`` of the form
``<vault path><#anchor>`` so the link resolution pass can find it again.
"""

import logging
import posixpath
import re
import subprocess
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

from bs4 import BeautifulSoup

from src.assets.extractor import content_hash, is_image_path
from src.models.link_record import LinkRecord
from src.models.rendered_document import RenderedDocument
from src.vault.errors import DocumentNotFoundError, FilesystemError, FrontmatterError
from src.vault.models import LocalDocument
from src.vault.vault_store import VaultStore

from .errors import ConversionError

logger = logging.getLogger(__name__)

PANDOC_COMMAND = ["pandoc", "-f", "markdown", "-t", "html", "--wrap=none"]
PANDOC_TIMEOUT = 10

WIKILINK_PATTERN = re.compile(r'(!?)\[\[([^\[\]\n]+?)\]\]')
FENCED_CODE_PATTERN = re.compile(r'(^(?:```|~~~)[^\n]*\n.*?^(?:```|~~~)[ \t]*$)', re.MULTILINE | re.DOTALL)
EXTERNAL_HREF_PATTERN = re.compile(r'^(?:[a-z][a-z0-9+.-]*:|//)', re.IGNORECASE)
SIZE_ALIAS_PATTERN = re.compile(r'^\d+(?:x\d+)?$')

LINK_ID_PREFIX = "mtf-"
FOOTNOTE_CLASSES = {"footnote-ref", "footnote-back"}


def _quote_target(path: str) -> str:
    return quote(path, safe="/")


def _escape_text(text: str) -> str:
    return text.replace("[", r"\[").replace("]", r"\]")


class PandocRenderer:
    """Renders vault notes into page markup with a link manifest.

    Example:
        >>> renderer = PandocRenderer(store)
        >>> rendered = renderer.render(store.load("Sessions/Session 1.md"))
        >>> rendered.links[0].link_id
        'mtf-1'
    """

    def __init__(self, store: VaultStore):
        """Initialize the renderer and verify Pandoc is available.

        Raises:
            ConversionError: If Pandoc is not found on system PATH
        """
        if not self._pandoc_installed():
            raise ConversionError(
                "Pandoc not found. Install: brew install pandoc (macOS) or "
                "apt-get install pandoc (Linux) or download from "
                "https://pandoc.org/installing.html"
            )
        self._store = store
        self._identities: Dict[str, str] = {}

    def render(self, document: LocalDocument) -> RenderedDocument:
        """Render one note.

        Raises:
            ConversionError: If Pandoc fails or times out
        """
        markdown = self.normalize_obsidian_syntax(document.body, document.path)
        html = self._run_pandoc(markdown, document.path) if markdown.strip() else ""
        markup, links = self.collect_links(html, document)
        return RenderedDocument(
            source_path=document.path,
            title=document.title,
            markup=markup,
            links=links,
            content_hash=content_hash(document.raw),
            ctime=document.ctime,
            mtime=document.mtime,
        )

    def normalize_obsidian_syntax(self, markdown: str, document_path: str) -> str:
        """Rewrite wikilinks and embeds outside fenced code blocks."""
        segments = FENCED_CODE_PATTERN.split(markdown)
        for index in range(0, len(segments), 2):
            segments[index] = WIKILINK_PATTERN.sub(
                lambda match: self._convert_wikilink(match, document_path),
                segments[index],
            )
        return "".join(segments)

    def _convert_wikilink(self, match: "re.Match", document_path: str) -> str:
        is_embed = match.group(1) == "!"
        target, _, alias = match.group(2).partition("|")
        target, alias = target.strip(), alias.strip()
        path_part, _, heading = target.partition("#")

        if is_embed and is_image_path(path_part):
            alt = "" if SIZE_ALIAS_PATTERN.match(alias) else alias
            resolved = self._store.find_file(path_part, document_path) or path_part
            return f"![{_escape_text(alt)}]({_quote_target(resolved)})"

        display = _escape_text(alias or heading or path_part)
        if not path_part:
            if not heading:
                return match.group(0)
            return f"[{display}](#{_quote_target(heading)})"

        note = self._store.find_note(path_part, document_path)
        if note is None:
            logger.debug(f"Unresolved wikilink '{target}' in {document_path}")
            return display
        fragment = f"#{_quote_target(heading)}" if heading else ""
        display = _escape_text(alias or target)
        return f"[{display}]({_quote_target(note)}{fragment})"

    def _run_pandoc(self, markdown: str, document_path: str) -> str:
        try:
            result = subprocess.run(
                PANDOC_COMMAND,
                input=markdown,
                text=True,
                capture_output=True,
                check=True,
                timeout=PANDOC_TIMEOUT
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            raise ConversionError(f"Pandoc conversion failed: {e.stderr}", document_path)
        except subprocess.TimeoutExpired:
            raise ConversionError(f"Pandoc conversion timed out (>{PANDOC_TIMEOUT}s)", document_path)

    def collect_links(self, html: str, document: LocalDocument) -> Tuple[str, List[LinkRecord]]:
        """Stamp internal links with ids and build the link manifest.

        Links to files that are not vault notes, external URLs and footnote
        references are left untouched.

        Args:
            html: Rendered HTML
            document: The note the HTML was rendered from

        Returns:
            Tuple of (markup, link records in document order)
        """
        if not html:
            return html, []

        soup = BeautifulSoup(html, "html.parser")
        links: List[LinkRecord] = []
        for anchor in soup.find_all("a", href=True):
            if FOOTNOTE_CLASSES.intersection(anchor.get("class") or []):
                continue
            link = self._link_record(anchor["href"].strip(), document)
            if link is None:
                continue

            link.link_id = f"{LINK_ID_PREFIX}{len(links) + 1}"
            link.text = anchor.get_text()
            anchor["data-link-id"] = link.link_id
            anchor["href"] = link.link_path + link.anchor
            links.append(link)

        if not links:
            return html, links
        logger.debug(f"Found {len(links)} internal links in {document.path}")
        return str(soup), links

    def _link_record(self, href: str, document: LocalDocument) -> Optional[LinkRecord]:
        if not href or EXTERNAL_HREF_PATTERN.match(href):
            return None
        path_part, _, fragment = href.partition("#")
        path_part, fragment = unquote(path_part), unquote(fragment)

        if not path_part:
            if not fragment:
                return None
            return LinkRecord(is_anchor=True, anchor=f"#{fragment}")

        if posixpath.splitext(path_part)[1].lower() not in ("", ".md"):
            return None
        target = self._store.find_note(path_part, document.path)
        if target is None:
            return None
        return LinkRecord(
            link_path=target,
            destination_uuid=self._identity_of(target, document),
            is_anchor=bool(fragment),
            anchor=f"#{fragment}" if fragment else "",
        )

    def _identity_of(self, path: str, document: LocalDocument) -> str:
        """Identity stored in a linked note's metadata ("" if none yet)."""
        if path == document.path:
            return document.identity or ""
        if path not in self._identities:
            try:
                self._identities[path] = self._store.load(path).identity or ""
            except (DocumentNotFoundError, FilesystemError, FrontmatterError) as e:
                logger.debug(f"Cannot read identity of {path}: {e}")
                self._identities[path] = ""
        return self._identities[path]

    def remember_identity(self, path: str, identity: str) -> None:
        """Record an identity issued after the note was first looked up."""
        self._identities[path] = identity

    def _pandoc_installed(self) -> bool:
        """Check if Pandoc is installed on system PATH."""
        try:
            result = subprocess.run(
                ["which", "pandoc"],
                capture_output=True,
                timeout=5
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False
