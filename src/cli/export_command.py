"""Export command orchestration for CLI.

This module provides the ExportCommand class that runs a complete export:
it loads the configuration, opens a sync session, pushes every selected note
to Foundry, uploads embedded images and finally resolves links between the
exported pages.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from src.assets.extractor import AssetCollector
from src.cli.errors import ConfigNotFoundError
from src.cli.models import ExitCode, ExportSummary
from src.cli.output import OutputHandler
from src.content_converter.errors import ConversionError
from src.content_converter.markdown_converter import PandocRenderer
from src.page_sync.errors import UpsertError
from src.page_sync.link_resolution import LinkResolutionPass, install_link_macro
from src.page_sync.models import UpsertResult
from src.page_sync.session import SyncSession
from src.page_sync.upsert_orchestrator import UpsertOrchestrator
from src.relay_client.auth import Authenticator
from src.relay_client.errors import (
    InvalidCredentialsError,
    SessionSetupError,
)
from src.vault.config_loader import ConfigLoader
from src.vault.errors import ConfigError, DocumentNotFoundError, VaultError
from src.vault.models import SyncSettings
from src.vault.vault_store import VaultStore

logger = logging.getLogger(__name__)


class ExportCommand:
    """Orchestrates the complete export workflow for the CLI.

    The export workflow:
        1. Load configuration (.foundry-sync/config.yaml)
        2. Open the sync session (relay status, client, hierarchy, asset index)
        3. For each note: render, assign identity, collect images, upsert the
           page and write the destination back into the frontmatter
        4. Upload queued images once each
        5. Run the link resolution pass
        6. Return an exit code

    Per-document failures are reported and counted; the batch continues.

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> export_cmd = ExportCommand(output_handler=output)
        >>> exit_code = export_cmd.run()
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        config_path: str = ConfigLoader.DEFAULT_CONFIG_PATH,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        session: Optional[SyncSession] = None,
        renderer: Optional[PandocRenderer] = None,
    ):
        """Initialize export command with dependencies.

        Args:
            config_path: Path to configuration YAML file
            output_handler: OutputHandler for terminal output (optional)
            authenticator: Authenticator for the relay (optional)
            session: Pre-built SyncSession (optional, built from config otherwise)
            renderer: Renderer for notes (optional, PandocRenderer otherwise)
        """
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.session = session
        self.renderer = renderer
        self.summary: Optional[ExportSummary] = None

    def run(
        self,
        paths: Optional[List[str]] = None,
        refresh_metadata: bool = False,
        skip_links: bool = False,
        install_macro: bool = False,
    ) -> ExitCode:
        """Execute the export.

        Args:
            paths: Notes to export (default: every note of the vault)
            refresh_metadata: Overwrite destination fields already set in notes
            skip_links: Do not run the link resolution pass
            install_macro: Install the link resolution macro in Foundry

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            if self.session is not None:
                session = self.session
            else:
                session = SyncSession(
                    self._load_settings(),
                    authenticator=self.authenticator,
                    notifier=self.output_handler.warning,
                )
            settings = session.settings
            if refresh_metadata:
                settings.refresh_metadata = True
            if skip_links:
                settings.run_link_pass = False

            try:
                with self.output_handler.spinner("Connecting to Foundry..."):
                    session.open()
                self.summary = self._export(session, settings, paths)
                if install_macro:
                    if install_link_macro(session) is not None:
                        self.output_handler.success("Installed the link resolution macro")
            finally:
                session.close()

        except ConfigNotFoundError as e:
            logger.error(str(e))
            self.output_handler.error(str(e))
            return ExitCode.GENERAL_ERROR

        except SessionSetupError as e:
            logger.error(str(e))
            self.output_handler.error(str(e))
            if isinstance(e.__cause__, InvalidCredentialsError):
                return ExitCode.AUTH_ERROR
            return ExitCode.NETWORK_ERROR

        except (ConfigError, VaultError, ConversionError) as e:
            logger.error(str(e))
            self.output_handler.error(str(e))
            return ExitCode.GENERAL_ERROR

        self.output_handler.print_export_summary(self.summary)
        if self.summary.failed:
            return ExitCode.PARTIAL_FAILURE
        return ExitCode.SUCCESS

    def _load_settings(self) -> SyncSettings:
        """Load settings; a relative vault path is taken from the working directory.

        Raises:
            ConfigNotFoundError: If the configuration file does not exist
            ConfigError: If the configuration is invalid
        """
        if not os.path.exists(self.config_path):
            raise ConfigNotFoundError(self.config_path)
        return ConfigLoader.load(self.config_path)

    def _export(
        self,
        session: SyncSession,
        settings: SyncSettings,
        paths: Optional[List[str]],
    ) -> ExportSummary:
        store = session.store
        renderer = self.renderer or PandocRenderer(store)
        orchestrator = UpsertOrchestrator(session)
        collector = AssetCollector(store)
        summary = ExportSummary()

        document_paths = self._select_documents(store, paths, summary)
        logger.info(f"Exporting {len(document_paths)} notes from {store.root}")

        with self.output_handler.progress_bar(len(document_paths), "Exporting notes") as progress:
            task = progress.add_task("Exporting notes", total=len(document_paths))
            for path in document_paths:
                try:
                    result = self._export_document(
                        path, session, renderer, orchestrator, collector
                    )
                except (UpsertError, ConversionError, VaultError) as e:
                    logger.error(f"Failed to export {path}: {e}")
                    summary.failed.append((path, str(e)))
                else:
                    summary.record(result)
                    self.output_handler.debug(f"{result.outcome.value}: {path}")
                progress.update(task, advance=1)

        summary.assets = session.uploader.drain()

        if settings.run_link_pass:
            summary.links = LinkResolutionPass(session).run()

        return summary

    def _export_document(
        self,
        path: str,
        session: SyncSession,
        renderer: PandocRenderer,
        orchestrator: UpsertOrchestrator,
        collector: AssetCollector,
    ) -> UpsertResult:
        document = session.store.load(path)
        rendered = renderer.render(document)
        identity = session.identities.assign_identity(document)
        renderer.remember_identity(document.path, identity)

        target = orchestrator.resolve_target(document)
        rendered.markup, assets = collector.collect(
            rendered.markup, document.path, target.picture_path
        )
        session.uploader.enqueue(assets)
        return orchestrator.upsert(document, rendered, identity, target)

    def _select_documents(
        self,
        store: VaultStore,
        paths: Optional[List[str]],
        summary: ExportSummary,
    ) -> List[str]:
        """Map requested paths to vault-relative notes.

        Paths may be given relative to the working directory or to the vault.
        Requested paths outside the vault are recorded as failures.
        """
        if not paths:
            return store.iter_document_paths()

        selected = []
        for requested in paths:
            candidate = Path(requested).resolve()
            if store.root in candidate.parents and candidate.is_file():
                selected.append(candidate.relative_to(store.root).as_posix())
            elif store.exists(requested):
                selected.append(Path(requested).as_posix())
            else:
                error = DocumentNotFoundError(requested, str(store.root))
                logger.error(str(error))
                summary.failed.append((requested, str(error)))
        return selected
