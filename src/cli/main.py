"""Main CLI entry point for foundry-sync command.

This module provides the Typer application that serves as the entry point
for the foundry-sync command-line tool. It uses options on the main command
rather than subcommands for a simpler user experience.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from src.cli.errors import InitError
from src.cli.export_command import ExportCommand
from src.cli.init_command import InitCommand
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.vault.config_loader import ConfigLoader

__version__ = "0.1.0"

app = typer.Typer(
    name="foundry-sync",
    help="""Export a Markdown vault into Foundry VTT journals.

QUICK START:
  foundry-sync --init --vault <folder>     # Initialize
  foundry-sync                             # Export every note
  foundry-sync Notes/Session.md            # Export selected notes""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

logger = logging.getLogger(__name__)

GETTING_STARTED_MESSAGE = """foundry-sync                                     # Export every note

--init --vault <folder> [--folder NAME] [--journal NAME]   # Initialize
--refresh-metadata                                        # Rewrite VTT_* fields
--skip-links                                              # No link resolution
--install-macro                                           # Install link macro
--help                                                    # Show all options

Credentials are read from FOUNDRY_API_KEY (and optionally FOUNDRY_RELAY_URL,
FOUNDRY_CLIENT_ID) in the environment or a .env file."""


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"foundry-sync_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _run_init(
    config_path: str,
    vault: str,
    default_folder: Optional[str],
    default_journal: Optional[str],
    verbosity: int,
    no_color: bool,
) -> None:
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        init_cmd = InitCommand(config_path=config_path)
        settings = init_cmd.run(
            vault_path=vault,
            default_folder=default_folder,
            default_collection=default_journal,
        )
    except InitError as e:
        logger.error(f"Initialization failed: {e}")
        output.error(f"Initialization failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.success("Configuration initialized successfully")
    output.print(f"  Config file: {init_cmd.config_path}")
    output.print(f"  Vault: {settings.vault_path}")
    output.print(f"  Default destination: {settings.default_folder}/{settings.default_collection}")
    output.print("")
    output.print("Next steps:")
    output.print("  1. Set FOUNDRY_API_KEY in your environment or a .env file")
    output.print("  2. Run 'foundry-sync' with Foundry open and the relay module active")
    raise typer.Exit(ExitCode.SUCCESS)


def _run_export(
    config_path: str,
    files: Optional[List[str]],
    refresh_metadata: bool,
    skip_links: bool,
    install_macro: bool,
    logdir: Optional[str],
    verbosity: int,
    no_color: bool,
) -> None:
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    export_cmd = ExportCommand(config_path=config_path, output_handler=output)
    exit_code = export_cmd.run(
        paths=files or None,
        refresh_metadata=refresh_metadata,
        skip_links=skip_links,
        install_macro=install_macro,
    )
    raise typer.Exit(exit_code)


@app.command()
def main_command(
    files: Optional[List[str]] = typer.Argument(
        None,
        help="Notes to export (default: every note in the vault)",
    ),
    init: bool = typer.Option(
        False,
        "--init",
        help="Create the configuration file (requires --vault)",
    ),
    vault: Optional[str] = typer.Option(
        None,
        "--vault",
        help="Vault folder (used with --init)",
        metavar="FOLDER",
    ),
    default_folder: Optional[str] = typer.Option(
        None,
        "--folder",
        help="Default Foundry folder path (used with --init)",
        metavar="NAME",
    ),
    default_journal: Optional[str] = typer.Option(
        None,
        "--journal",
        help="Default Foundry journal name (used with --init)",
        metavar="NAME",
    ),
    config_path: str = typer.Option(
        ConfigLoader.DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to the configuration file",
    ),
    refresh_metadata: bool = typer.Option(
        False,
        "--refresh-metadata",
        help="Overwrite VTT_* frontmatter fields that are already set",
    ),
    skip_links: bool = typer.Option(
        False,
        "--skip-links",
        help="Do not rewrite links between exported pages",
    ),
    install_macro: bool = typer.Option(
        False,
        "--install-macro",
        help="Install the link resolution script as a Foundry macro",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Export a Markdown vault into Foundry VTT journals.

    \b
    QUICK START:
      foundry-sync --init --vault ./vault      # Initialize
      foundry-sync                             # Export every note
      foundry-sync Notes/Session.md            # Export selected notes
      foundry-sync --refresh-metadata          # Rewrite VTT_* frontmatter

    \b
    FRONTMATTER:
      VTT_Folder, VTT_Journal and VTT_PageTitle choose the destination of a
      note; VTT_UUID is filled in after the first export.
    """
    if version:
        typer.echo(f"foundry-sync version {__version__}")
        raise typer.Exit()

    if init or vault is not None:
        if not init or vault is None:
            typer.echo("Error: --init and --vault must be used together", err=True)
            typer.echo("")
            typer.echo("Example:")
            typer.echo("  foundry-sync --init --vault ./vault")
            raise typer.Exit(ExitCode.GENERAL_ERROR)
        _run_init(config_path, vault, default_folder, default_journal, verbosity, no_color)
        return

    has_options = bool(files) or refresh_metadata or skip_links or install_macro or logdir is not None
    if not has_options and verbosity == 0 and not no_color:
        if not os.path.exists(config_path):
            typer.echo(GETTING_STARTED_MESSAGE)
            raise typer.Exit()

    _run_export(
        config_path,
        files,
        refresh_metadata,
        skip_links,
        install_macro,
        logdir,
        verbosity,
        no_color,
    )


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
