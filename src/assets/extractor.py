"""Discovery and content addressing of images embedded in rendered markup.

Only images stored in the vault are handled: absolute web URLs and inline
``data:`` URIs are left untouched. Each local image is hashed and its
``src`` is rewritten to the content-addressed upload path, so every note
embedding the same bytes references the same remote file.
"""

import logging
import posixpath
import re
from typing import List, Optional, Tuple
from urllib.parse import unquote, urlsplit

import xxhash
from bs4 import BeautifulSoup

from src.vault.errors import FilesystemError
from src.vault.vault_store import VaultStore

from .models import AssetRecord

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".gif", ".bmp", ".png", ".svg", ".webp")

HASH_SEED = 987654321

REMOTE_SOURCE_PATTERN = re.compile(r'^(?:[a-z][a-z0-9+.-]*:)?//', re.IGNORECASE)
APP_SOURCE_PATTERN = re.compile(r'^(?:app|file)://[^/]*', re.IGNORECASE)


def content_hash(data: bytes) -> str:
    """Hash bytes with seeded xxh64, rendered as 16 lowercase hex characters."""
    return xxhash.xxh64(data, seed=HASH_SEED).hexdigest()


def derive_remote_name(local_path: str, digest: str) -> str:
    """Build ``basename_hash.ext`` for a vault file."""
    stem, extension = posixpath.splitext(posixpath.basename(local_path))
    return f"{stem}_{digest}{extension}"


def is_image_path(path: str) -> bool:
    return path.lower().endswith(IMAGE_EXTENSIONS)


def is_local_source(src: Optional[str]) -> bool:
    """True for sources that point into the vault."""
    if not src or not src.strip():
        return False
    value = src.strip()
    lowered = value.lower()
    if lowered.startswith(("app://", "file://")):
        return True
    if lowered.startswith(("data:", "mailto:", "#")):
        return False
    return not REMOTE_SOURCE_PATTERN.match(value)


class AssetCollector:
    """Turns embedded image references into AssetRecords."""

    def __init__(self, store: VaultStore):
        self._store = store

    def _to_vault_path(self, src: str, document_path: str) -> Optional[str]:
        """Decode an image source into an existing vault-relative path."""
        value = src.strip()
        is_app_source = bool(APP_SOURCE_PATTERN.match(value))
        if is_app_source:
            value = APP_SOURCE_PATTERN.sub('', value, count=1)
        parts = urlsplit(value)
        decoded = unquote(parts.path)

        if is_app_source or decoded.startswith('/'):
            root = self._store.root.as_posix().rstrip('/') + '/'
            candidate = decoded if decoded.startswith('/') else '/' + decoded
            if candidate.startswith(root):
                return self._store.resolve_reference(candidate[len(root):], '')
        return self._store.resolve_reference(decoded, document_path)

    def collect(
        self,
        markup: str,
        document_path: str,
        upload_dir: str,
    ) -> Tuple[str, List[AssetRecord]]:
        """Extract local images and rewrite their sources.

        Images that cannot be found or read are logged and left as they are.

        Args:
            markup: Rendered HTML of one note
            document_path: Vault-relative path of that note
            upload_dir: Target directory in the Foundry data folder

        Returns:
            Tuple of (rewritten markup, asset records in document order)
        """
        soup = BeautifulSoup(markup, "html.parser")
        records: List[AssetRecord] = []
        upload_dir = upload_dir.strip('/')

        for img in soup.find_all("img"):
            src = img.get("src")
            if not is_local_source(src):
                continue

            local_path = self._to_vault_path(src, document_path)
            if local_path is None:
                logger.warning(f"Image '{src}' in {document_path} not found in vault")
                continue
            if not is_image_path(local_path):
                logger.debug(f"Skipping non-image embed {local_path} in {document_path}")
                continue

            try:
                digest = content_hash(self._store.read_binary(local_path))
            except FilesystemError as e:
                logger.warning(f"Cannot read image {local_path}: {e}")
                continue

            record = AssetRecord(
                local_path=local_path,
                content_hash=digest,
                derived_name=derive_remote_name(local_path, digest),
                upload_dir=upload_dir,
            )
            img["src"] = record.upload_path
            records.append(record)

        if not records:
            return markup, records
        return str(soup), records
