"""Deduplicated upload of content-addressed images to the Foundry data folder."""

import logging
import posixpath
from collections import deque
from typing import Callable, Deque, FrozenSet, Iterable, Optional, Set
from urllib.parse import unquote

from src.relay_client.api_wrapper import RelayAPI
from src.relay_client.errors import RelayError
from src.vault.errors import FilesystemError
from src.vault.vault_store import VaultStore

from .extractor import is_image_path
from .models import AssetRecord, UploadSummary

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


def _index_key(path: str) -> str:
    return unquote(path).strip().lstrip('/')


class AssetUploader:
    """Queues AssetRecords and transfers each distinct upload path at most once.

    The set of image paths already present remotely is fetched once per
    session. Because remote names are content-addressed, finding the path in
    that index means the exact bytes are already there.
    """

    def __init__(
        self,
        api: RelayAPI,
        store: VaultStore,
        notifier: Optional[Notifier] = None,
    ):
        self._api = api
        self._store = store
        self._notifier = notifier
        self._queue: Deque[AssetRecord] = deque()
        self._remote_index: Set[str] = set()

    @property
    def remote_index(self) -> FrozenSet[str]:
        return frozenset(self._remote_index)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def load_remote_index(self) -> None:
        """Fetch the image paths present in the remote data folder.

        A failed listing leaves the index empty; later uploads then overwrite
        whatever is present.
        """
        try:
            entries = self._api.list_files("/", recursive=True)
        except RelayError as e:
            logger.warning(f"Could not list remote files, assuming none exist: {e}")
            self._notify("Could not read the remote file list")
            entries = []

        self._remote_index = set()
        for entry in entries:
            path = entry.get("path") if isinstance(entry, dict) else entry
            if isinstance(path, str) and is_image_path(path):
                self._remote_index.add(_index_key(path))
        logger.info(f"Remote asset index holds {len(self._remote_index)} images")

    def is_uploaded(self, record: AssetRecord) -> bool:
        return _index_key(record.upload_path) in self._remote_index

    def enqueue(self, records: Iterable[AssetRecord]) -> None:
        for record in records:
            self._queue.append(record)

    def drain(self) -> UploadSummary:
        """Process the queue in FIFO order.

        After the head entry is handled, every queued entry sharing its
        upload path is dropped, so a path is transferred at most once per
        drain no matter how many notes embed it.
        """
        summary = UploadSummary()
        while self._queue:
            record = self._queue[0]
            self._process(record, summary)
            self._queue = deque(
                queued for queued in self._queue
                if queued.upload_path != record.upload_path
            )
        if summary.uploaded or summary.failed:
            logger.info(
                f"Uploaded {len(summary.uploaded)} images, "
                f"{len(summary.skipped)} already present, {len(summary.failed)} failed"
            )
        return summary

    def _process(self, record: AssetRecord, summary: UploadSummary) -> None:
        if self.is_uploaded(record):
            logger.debug(f"Skipping {record.upload_path}: already uploaded")
            summary.skipped.append(record.upload_path)
            return

        try:
            content = self._store.read_binary(record.local_path)
        except FilesystemError as e:
            self._fail(record, summary, f"Cannot read {record.local_path}: {e}")
            return

        directory = posixpath.dirname(record.upload_path)
        try:
            self._api.upload_file(directory, record.derived_name, content, overwrite=True)
        except RelayError as e:
            self._fail(record, summary, f"Upload of {record.upload_path} failed: {e}")
            return

        self._remote_index.add(_index_key(record.upload_path))
        summary.uploaded.append(record.upload_path)
        logger.debug(f"Uploaded {record.local_path} to {record.upload_path}")

    def _fail(self, record: AssetRecord, summary: UploadSummary, message: str) -> None:
        logger.error(message)
        self._notify(message)
        summary.failed.append(record.upload_path)

    def _notify(self, message: str) -> None:
        if self._notifier:
            self._notifier(message)
