"""Issuing of stable document identities.

Every exported note carries a 16-character identity in its ``UUID``
frontmatter field. The identity is written once and never regenerated; the
link manifest and page provenance refer to documents by it.
"""

import logging
import secrets
import string
from typing import Iterable, Optional, Set

from .models import IDENTITY_FIELD, LocalDocument
from .vault_store import VaultStore

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
ID_LENGTH = 16


class IdentityResolver:
    """Issues identities that are unique among everything this session knows.

    Uniqueness is checked against the union of ids issued by this resolver,
    ids found in the vault's frontmatter (scanned lazily on first use and
    then cached) and a caller-supplied supplementary set. Remote state is
    never consulted.
    """

    def __init__(
        self,
        store: VaultStore,
        supplementary: Optional[Iterable[str]] = None,
        length: int = ID_LENGTH,
        max_attempts: int = 1000,
    ):
        self._store = store
        self._length = length
        self._max_attempts = max_attempts
        self._issued: Set[str] = set()
        self._local: Optional[Set[str]] = None
        self._supplementary: Set[str] = set(supplementary or ())

    def add_supplementary(self, ids: Iterable[str]) -> None:
        self._supplementary.update(i for i in ids if i)

    def _random_id(self) -> str:
        return ''.join(secrets.choice(ID_ALPHABET) for _ in range(self._length))

    def id_exists(self, candidate: str) -> bool:
        """Check an id against issued, vault and supplementary ids."""
        if self._local is None:
            self._local = set(self._store.identity_index())
            logger.debug(f"Scanned {len(self._local)} existing identities in the vault")
        return (
            candidate in self._issued
            or candidate in self._local
            or candidate in self._supplementary
        )

    def generate_id(self) -> str:
        """Draw a fresh identity, retrying on collision.

        Raises:
            RuntimeError: If no free id is found within max_attempts draws
        """
        for _ in range(self._max_attempts):
            candidate = self._random_id()
            if not self.id_exists(candidate):
                self._issued.add(candidate)
                return candidate
        raise RuntimeError(f"No free identity found after {self._max_attempts} attempts")

    def assign_identity(self, document: LocalDocument) -> str:
        """Return the document's identity, issuing and persisting one if absent.

        Raises:
            FilesystemError: If the new identity cannot be written to the note
        """
        existing = document.identity
        if existing:
            return existing

        identity = self.generate_id()
        self._store.update_metadata(document.path, {IDENTITY_FIELD: identity})
        document.metadata[IDENTITY_FIELD] = identity
        logger.info(f"Assigned identity {identity} to {document.path}")
        return identity
