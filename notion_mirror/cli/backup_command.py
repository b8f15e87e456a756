"""Backup command orchestration for CLI.

This module provides the BackupCommand class that runs a full mirror for
every configured workspace. It loads configuration, applies command-line
overrides, discovers workspace tokens, runs one BackupRunner per workspace
and translates exceptions to exit codes.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional

from notion_mirror.cli.errors import CLIError, UnknownWorkspaceError
from notion_mirror.cli.models import ExitCode
from notion_mirror.cli.output import OutputHandler
from notion_mirror.mirror.backup_runner import BackupRunner
from notion_mirror.mirror.config_loader import ConfigLoader
from notion_mirror.mirror.errors import ConfigError, MirrorStorageError
from notion_mirror.mirror.models import BackupSummary, MirrorConfig
from notion_mirror.mirror.reconciler import prune_workspaces
from notion_mirror.mirror.tree_fetcher import TreeFetcher
from notion_mirror.notion_api.api_wrapper import APIWrapper
from notion_mirror.notion_api.auth import Authenticator, Credentials
from notion_mirror.notion_api.errors import InvalidCredentialsError, NotionError

logger = logging.getLogger(__name__)

ApiFactory = Callable[[Credentials, MirrorConfig], APIWrapper]


def _default_api_factory(credentials: Credentials, config: MirrorConfig) -> APIWrapper:
    return APIWrapper(
        credentials,
        base_url=config.base_url,
        notion_version=config.notion_version,
        timeout=config.timeout,
    )


class BackupCommand:
    """Runs the mirror for every configured workspace.

    Workspaces are backed up one after another. A failing workspace does not
    stop the next one; the command returns the exit code of the first
    workspace that failed, or SUCCESS.

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> exit_code = BackupCommand(output_handler=output).run()
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        api_factory: Optional[ApiFactory] = None,
    ):
        """Initialize the backup command.

        Args:
            config_path: YAML configuration file. When None, the default
                         location is used if it exists, otherwise defaults.
            output_handler: OutputHandler for terminal output
            authenticator: Authenticator (optional, built from config by default)
            api_factory: Builds an APIWrapper per workspace (mainly for tests)
        """
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.api_factory = api_factory or _default_api_factory
        self.summaries: List[BackupSummary] = []

    def run(
        self,
        storage_root: Optional[str] = None,
        workspaces: Optional[List[str]] = None,
        concurrency: Optional[int] = None,
        tree_concurrency: Optional[int] = None,
        cleanup: Optional[bool] = None,
        dry_run: bool = False,
        prune: bool = False,
    ) -> ExitCode:
        """Execute the backup with the given command-line overrides.

        Args:
            storage_root: Override for the storage root directory
            workspaces: Restrict the run to these workspace names
            concurrency: Override for top-level concurrency
            tree_concurrency: Override for per-level tree concurrency
            cleanup: Override for orphan reconciliation
            dry_run: Report deletions without executing them
            prune: Delete storage folders of unconfigured workspaces

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            config = self._load_config()
            config = self._apply_overrides(
                config, storage_root, concurrency, tree_concurrency, cleanup
            )

            if self.authenticator is None:
                token_envs = None
                if config.workspaces:
                    token_envs = {ws.name: ws.token_env for ws in config.workspaces}
                self.authenticator = Authenticator(token_envs=token_envs)

            all_credentials = self.authenticator.get_credentials()
            selected = self._select(all_credentials, workspaces)
            logger.info(
                f"Mirroring {len(selected)} workspace(s) into {config.storage_root}: "
                f"{', '.join(c.workspace for c in selected)}"
            )

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info(
                "Set NOTION_INTEGRATION_TOKEN or <NAME>_INTEGRATION_NOTION environment variables"
            )
            return ExitCode.AUTH_ERROR

        except (ConfigError, CLIError) as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except MirrorStorageError as e:
            logger.error(f"Filesystem error: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        exit_code = ExitCode.SUCCESS
        for credentials in selected:
            code = self._run_workspace(credentials, config, dry_run)
            if exit_code == ExitCode.SUCCESS:
                exit_code = code

        if prune:
            pruned = prune_workspaces(
                config.storage_root,
                [c.workspace for c in all_credentials],
                dry_run=dry_run,
            )
            self.output_handler.print_pruned_workspaces(pruned, dry_run=dry_run)

        return exit_code

    def _run_workspace(
        self,
        credentials: Credentials,
        config: MirrorConfig,
        dry_run: bool,
    ) -> ExitCode:
        """Back up one workspace and map its failure to an exit code."""
        workspace = credentials.workspace
        api = self.api_factory(credentials, config)
        try:
            runner = BackupRunner(
                api,
                Path(config.storage_root) / workspace,
                concurrency=config.concurrency,
                tree_fetcher=TreeFetcher(
                    api,
                    concurrency=config.tree_concurrency,
                    max_depth=config.max_depth,
                ),
                cleanup=config.cleanup,
                dry_run=dry_run,
            )
            with self.output_handler.spinner(f"Backing up workspace {workspace}..."):
                summary = runner.run()

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed for [{workspace}]: {e}")
            self.output_handler.error(f"Authentication failed for {workspace}: {e}")
            return ExitCode.AUTH_ERROR

        except NotionError as e:
            logger.error(f"API error for [{workspace}]: {e}")
            self.output_handler.error(f"API error for {workspace}: {e}")
            self.output_handler.info("Check your internet connection and try again")
            return ExitCode.NETWORK_ERROR

        except MirrorStorageError as e:
            logger.error(f"Filesystem error for [{workspace}]: {e}")
            self.output_handler.error(f"Error for {workspace}: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception(f"Unexpected error during backup of [{workspace}]")
            self.output_handler.error(f"Unexpected error for {workspace}: {e}")
            return ExitCode.GENERAL_ERROR

        finally:
            api.close()

        self.summaries.append(summary)
        self.output_handler.print_backup_summary(summary)
        return ExitCode.SUCCESS

    def _load_config(self) -> MirrorConfig:
        if self.config_path is None:
            path = ConfigLoader.DEFAULT_CONFIG_PATH
            logger.info(f"Loading configuration from {path} (if present)")
            return ConfigLoader.load_optional(path)

        logger.info(f"Loading configuration from {self.config_path}")
        return ConfigLoader.load(self.config_path)

    @staticmethod
    def _apply_overrides(
        config: MirrorConfig,
        storage_root: Optional[str],
        concurrency: Optional[int],
        tree_concurrency: Optional[int],
        cleanup: Optional[bool],
    ) -> MirrorConfig:
        overrides = {}
        if storage_root is not None:
            overrides['storage_root'] = storage_root
        if concurrency is not None:
            if concurrency < 1:
                raise ConfigError("must be at least 1", 'concurrency')
            overrides['concurrency'] = concurrency
        if tree_concurrency is not None:
            if tree_concurrency < 1:
                raise ConfigError("must be at least 1", 'tree_concurrency')
            overrides['tree_concurrency'] = tree_concurrency
        if cleanup is not None:
            overrides['cleanup'] = cleanup
        return replace(config, **overrides)

    @staticmethod
    def _select(
        credentials: List[Credentials],
        workspaces: Optional[List[str]],
    ) -> List[Credentials]:
        """Keep only the requested workspaces, in discovery order."""
        if not workspaces:
            return credentials

        available = [c.workspace for c in credentials]
        unknown = [name for name in workspaces if name not in available]
        if unknown:
            raise UnknownWorkspaceError(unknown, available)
        return [c for c in credentials if c.workspace in workspaces]
