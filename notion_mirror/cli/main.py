"""Main CLI entry point for the notion-mirror command.

This module provides the Typer application that serves as the entry point
for the notion-mirror command-line tool. A single command with options runs
the backup of every configured workspace.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from notion_mirror import __version__
from notion_mirror.cli.backup_command import BackupCommand
from notion_mirror.cli.output import OutputHandler

app = typer.Typer(
    name="notion-mirror",
    help="""Mirror Notion workspaces into a local directory tree.

QUICK START:
  notion-mirror                       # Back up every workspace with a token
  notion-mirror --dry-run             # Back up, but only report orphan deletions
  notion-mirror --workspace team      # Back up one workspace
  notion-mirror --no-cleanup          # Back up without deleting anything

TOKENS:
  NOTION_INTEGRATION_TOKEN            # Default workspace (named by NOTION_WORKSPACE)
  <NAME>_INTEGRATION_NOTION           # Workspace <name> (lowercased)""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'notion_mirror' namespace logger so third-party
    libraries keep their own settings. The root logger is left unchanged.

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

    app_logger = logging.getLogger("notion_mirror")
    app_logger.setLevel(level)
    # Repeated invocations in one process must not stack handlers
    app_logger.handlers.clear()

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
        log_file = log_path / f"notion-mirror_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@app.command()
def main_command(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file (default: .notion-mirror/config.yaml if present)",
        metavar="PATH",
    ),
    storage: Optional[str] = typer.Option(
        None,
        "--storage",
        help="Storage root holding one folder per workspace (default: storage)",
        metavar="DIR",
    ),
    workspace: Optional[List[str]] = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Only back up this workspace (can be used multiple times)",
        metavar="NAME",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        min=1,
        help="Objects backed up in parallel (default: 4)",
    ),
    tree_concurrency: Optional[int] = typer.Option(
        None,
        "--tree-concurrency",
        min=1,
        help="Child blocks fetched in parallel per level (default: 4)",
    ),
    no_cleanup: bool = typer.Option(
        False,
        "--no-cleanup",
        help="Skip deletion of orphaned local entries",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "--dryrun",
        help="Back up, but only report the deletions cleanup would make",
    ),
    prune_workspaces: bool = typer.Option(
        False,
        "--prune-workspaces",
        help="Delete storage folders of workspaces that are no longer configured",
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
    """Mirror Notion workspaces into a local directory tree."""
    if version:
        typer.echo(f"notion-mirror version {__version__}")
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    command = BackupCommand(config_path=config, output_handler=output)
    exit_code = command.run(
        storage_root=storage,
        workspaces=workspace,
        concurrency=concurrency,
        tree_concurrency=tree_concurrency,
        cleanup=False if no_cleanup else None,
        dry_run=dry_run,
        prune=prune_workspaces,
    )

    raise typer.Exit(int(exit_code))


def main() -> None:
    """Main entry point for the notion-mirror console script."""
    app()


# Allow running as: python -m notion_mirror.cli.main
if __name__ == "__main__":
    main()
