"""Per-run sync session.

A SyncSession owns every piece of state that lives for one export run: the
relay connection, the hierarchy cache and its write path, the identity
resolver and the asset uploader. Nothing is kept at module level, so two
sessions never share state.
"""

import logging
from typing import Callable, List, Optional

from src.assets.uploader import AssetUploader
from src.relay_client.api_wrapper import RelayAPI
from src.relay_client.auth import Authenticator
from src.relay_client.errors import RelayError, SessionSetupError
from src.remote_hierarchy.cache import HierarchyCache
from src.remote_hierarchy.writer import HierarchyWriter
from src.vault.identity_resolver import IdentityResolver
from src.vault.models import SyncSettings
from src.vault.vault_store import VaultStore

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


class SyncSession:
    """Connection and caches for one export run.

    Example:
        >>> with SyncSession(settings) as session:
        ...     page = session.cache.page_by_path("Exports/Sessions/Table1.Intro")
    """

    def __init__(
        self,
        settings: SyncSettings,
        authenticator: Optional[Authenticator] = None,
        api: Optional[RelayAPI] = None,
        store: Optional[VaultStore] = None,
        notifier: Optional[Notifier] = None,
    ):
        """Build the session collaborators without touching the network.

        Args:
            settings: Export settings
            authenticator: Credential source (default: environment and .env)
            api: Relay API wrapper (built from authenticator if omitted)
            store: Vault store (built from settings if omitted)
            notifier: Callback receiving user-facing failure messages

        Raises:
            FilesystemError: If the vault directory does not exist
        """
        self.settings = settings
        self.notifier = notifier
        self.api = api or RelayAPI(authenticator or Authenticator())
        self.store = store or VaultStore(settings.vault_path, settings.exclude_dirs)
        self.cache = HierarchyCache(self.api)
        self.writer = HierarchyWriter(
            self.api,
            self.cache,
            notifier=notifier,
            page_ownership=settings.page_ownership,
        )
        self.identities = IdentityResolver(self.store)
        self.uploader = AssetUploader(self.api, self.store, notifier=notifier)
        self.is_open = False

    @property
    def vault_name(self) -> str:
        return self.settings.vault_name or self.store.name

    def open(self) -> "SyncSession":
        """Run session setup.

        Checks credentials and relay status, selects the Foundry client,
        loads the remote hierarchy and the remote asset index.

        Raises:
            SessionSetupError: If any setup step fails
        """
        try:
            credentials = self.api.credentials
            if not self.api.get_status():
                raise SessionSetupError(f"relay at {credentials.relay_url} reports a bad status")
            client_id = self._choose_client(self.settings.client_id or credentials.client_id)
        except SessionSetupError:
            raise
        except RelayError as e:
            raise SessionSetupError(str(e)) from e

        self.api.select_client(client_id)
        logger.info(f"Using Foundry client {client_id}")

        self.cache.refresh()
        self.uploader.load_remote_index()
        self.is_open = True
        return self

    def _choose_client(self, preferred: Optional[str]) -> str:
        clients = self.api.list_clients()
        client_ids: List[str] = [str(c["id"]) for c in clients if c.get("id")]
        if not client_ids:
            raise SessionSetupError("no Foundry client is connected to the relay")
        if preferred:
            if preferred not in client_ids:
                raise SessionSetupError(f"Foundry client {preferred} is not connected to the relay")
            return preferred
        if len(client_ids) > 1:
            logger.warning(
                f"{len(client_ids)} Foundry clients connected, using the first one ({client_ids[0]})"
            )
        return client_ids[0]

    def notify(self, message: str) -> None:
        if self.notifier:
            self.notifier(message)

    def close(self) -> None:
        self.api.close()
        self.is_open = False

    def __enter__(self) -> "SyncSession":
        try:
            return self.open()
        except SessionSetupError:
            self.close()
            raise

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
