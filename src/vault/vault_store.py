"""Read and write access to the local Markdown vault.

VaultStore is the metadata-store collaborator of the sync engine: it lists
notes, loads them with their frontmatter, writes destination fields back,
reads embedded binaries and resolves note/asset references to
vault-relative paths. All paths handed out are POSIX paths relative to the
vault root.
"""

import logging
import os
import posixpath
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from .errors import DocumentNotFoundError, FilesystemError, FrontmatterError
from .frontmatter_handler import FrontmatterHandler
from .models import IDENTITY_FIELD, LocalDocument

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB in bytes

NOTE_EXTENSION = ".md"


class VaultStore:
    """File-system backed view of a vault.

    Example:
        >>> store = VaultStore("./vault")
        >>> for path in store.iter_document_paths():
        ...     document = store.load(path)
    """

    def __init__(self, root: str, exclude_dirs: Optional[List[str]] = None):
        """Initialize the store.

        Args:
            root: Vault root directory
            exclude_dirs: Directory names skipped while scanning

        Raises:
            FilesystemError: If root is not an existing directory
        """
        self._root = Path(root).resolve()
        if not self._root.is_dir():
            raise FilesystemError(str(root), 'open', 'Vault path is not a directory')
        self._exclude_dirs = set(exclude_dirs or [])
        self._files_by_name: Optional[Dict[str, List[str]]] = None

    @property
    def root(self) -> Path:
        return self._root

    @property
    def name(self) -> str:
        return self._root.name

    def _absolute(self, rel_path: str) -> Path:
        """Map a vault-relative path to an absolute one inside the vault.

        Raises:
            FilesystemError: If the path escapes the vault
        """
        candidate = (self._root / rel_path).resolve()
        if candidate != self._root and self._root not in candidate.parents:
            raise FilesystemError(
                rel_path,
                'validate',
                f'Path traversal detected: {rel_path} is outside vault {self._root}'
            )
        return candidate

    def _relative(self, absolute: Path) -> str:
        return absolute.relative_to(self._root).as_posix()

    def iter_file_paths(self, extension: Optional[str] = None) -> List[str]:
        """List vault files in sorted order, optionally filtered by extension."""
        paths = []
        try:
            for root, dirs, files in os.walk(self._root):
                dirs[:] = sorted(
                    d for d in dirs
                    if d not in self._exclude_dirs and not d.startswith('.')
                )
                for filename in files:
                    if extension is None or filename.endswith(extension):
                        paths.append(self._relative(Path(root) / filename))
        except PermissionError:
            raise FilesystemError(str(self._root), 'read', 'Permission denied')
        return sorted(paths)

    def iter_document_paths(self) -> List[str]:
        """List every note of the vault in sorted order."""
        return self.iter_file_paths(NOTE_EXTENSION)

    def exists(self, rel_path: str) -> bool:
        try:
            return self._absolute(rel_path).is_file()
        except FilesystemError:
            return False

    def load(self, rel_path: str) -> LocalDocument:
        """Load a note with its frontmatter and file times.

        Raises:
            DocumentNotFoundError: If the note does not exist
            FilesystemError: If the note cannot be read or is too large
            FrontmatterError: If the frontmatter is malformed
        """
        absolute = self._absolute(rel_path)
        if not absolute.is_file():
            raise DocumentNotFoundError(rel_path, str(self._root))

        raw = self._read_bytes(absolute, rel_path)
        try:
            content = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FilesystemError(rel_path, 'read', f'Not valid UTF-8: {e}')

        metadata, body = FrontmatterHandler.split(rel_path, content)
        stat = absolute.stat()
        return LocalDocument(
            path=rel_path,
            title=absolute.stem,
            body=body,
            metadata=metadata,
            raw=raw,
            ctime=int(stat.st_ctime * 1000),
            mtime=int(stat.st_mtime * 1000),
        )

    def read_binary(self, rel_path: str) -> bytes:
        """Read an embedded file (image) of the vault.

        Raises:
            FilesystemError: If the file is missing, unreadable or too large
        """
        absolute = self._absolute(rel_path)
        if not absolute.is_file():
            raise FilesystemError(rel_path, 'read', 'File not found')
        return self._read_bytes(absolute, rel_path)

    def _read_bytes(self, absolute: Path, rel_path: str) -> bytes:
        try:
            size = absolute.stat().st_size
            if size > MAX_FILE_SIZE:
                raise FilesystemError(
                    rel_path,
                    'read',
                    f'File size ({size / (1024 * 1024):.2f} MB) exceeds maximum allowed size '
                    f'({MAX_FILE_SIZE / (1024 * 1024):.0f} MB)'
                )
            return absolute.read_bytes()
        except PermissionError:
            raise FilesystemError(rel_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(rel_path, 'read', str(e))

    def update_metadata(
        self,
        rel_path: str,
        fields: Dict[str, object],
        overwrite: bool = False,
    ) -> Dict[str, object]:
        """Write frontmatter fields into a note.

        Existing non-empty fields are kept unless overwrite is True. The file
        is only rewritten when at least one field changes, through a temp
        file and an atomic rename.

        Returns:
            Dict of the fields that were written

        Raises:
            DocumentNotFoundError: If the note does not exist
            FilesystemError: If the note cannot be written
            FrontmatterError: If the existing frontmatter is malformed
        """
        document = self.load(rel_path)
        frontmatter = dict(document.metadata)
        written = FrontmatterHandler.merge_fields(frontmatter, fields, overwrite=overwrite)
        if not written:
            return written

        absolute = self._absolute(rel_path)
        content = FrontmatterHandler.compose(frontmatter, document.body)
        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(
                prefix='.foundry-sync-', suffix='.tmp', dir=str(absolute.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
            os.replace(temp_path, absolute)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise FilesystemError(rel_path, 'write', str(e))

        logger.debug(f"Wrote frontmatter fields {sorted(written)} to {rel_path}")
        return written

    def resolve_reference(self, reference: str, from_path: str) -> Optional[str]:
        """Resolve a relative file reference made from a note.

        The reference is tried relative to the note's directory, then relative
        to the vault root.

        Returns:
            Vault-relative path of an existing file, or None
        """
        reference = reference.strip().lstrip('/')
        if not reference:
            return None
        base_dir = posixpath.dirname(from_path)
        for candidate in (posixpath.join(base_dir, reference), reference):
            normalized = posixpath.normpath(candidate)
            if normalized.startswith('..'):
                continue
            if self.exists(normalized):
                return normalized
        return None

    def find_file(self, target: str, from_path: str) -> Optional[str]:
        """Resolve a link target the way Obsidian does.

        Relative resolution is tried first; otherwise a file with the same
        name anywhere in the vault is chosen, preferring the shortest path.
        """
        target = target.strip()
        if not target:
            return None
        resolved = self.resolve_reference(target, from_path)
        if resolved:
            return resolved

        matches = self._file_name_index().get(posixpath.basename(target).lower(), [])
        if not matches:
            return None
        suffix = target.lower()
        preferred = [m for m in matches if m.lower().endswith(suffix)]
        return sorted(preferred or matches, key=lambda p: (len(p), p))[0]

    def find_note(self, target: str, from_path: str) -> Optional[str]:
        """Resolve a note link target ("Note", "dir/Note", "Note.md")."""
        target = target.strip()
        if not target:
            return None
        if not target.endswith(NOTE_EXTENSION):
            target += NOTE_EXTENSION
        return self.find_file(target, from_path)

    def _file_name_index(self) -> Dict[str, List[str]]:
        if self._files_by_name is None:
            index: Dict[str, List[str]] = {}
            for path in self.iter_file_paths():
                index.setdefault(posixpath.basename(path).lower(), []).append(path)
            self._files_by_name = index
        return self._files_by_name

    def identity_index(self) -> Dict[str, str]:
        """Map every identity found in note frontmatter to its note path.

        Notes that cannot be read are skipped with a warning.
        """
        identities: Dict[str, str] = {}
        for path in self.iter_document_paths():
            try:
                document = self.load(path)
            except (FilesystemError, FrontmatterError, DocumentNotFoundError) as e:
                logger.warning(f"Skipping {path} while scanning identities: {e}")
                continue
            value = document.metadata.get(IDENTITY_FIELD)
            if value:
                identities[str(value)] = path
        return identities
