"""Authentication module for loading Notion integration tokens.

This module handles loading Notion integration tokens from environment variables
using python-dotenv. One token maps to one workspace; several workspaces can be
mirrored in the same run by exporting one token per workspace.
"""

import logging
import os
import re
from typing import Dict, List, NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

logger = logging.getLogger(__name__)

# Single-workspace token and the name its mirror directory gets
TOKEN_ENV = 'NOTION_INTEGRATION_TOKEN'
WORKSPACE_ENV = 'NOTION_WORKSPACE'
DEFAULT_WORKSPACE = 'default'

# Per-workspace tokens: PPS_INTEGRATION_NOTION -> workspace "pps"
WORKSPACE_TOKEN_PATTERN = re.compile(r'^([A-Za-z0-9]+)_INTEGRATION_NOTION$')

# Workspace names become directory names under the storage root
WORKSPACE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9._-]+$')


class Credentials(NamedTuple):
    """Notion integration credentials for one workspace."""
    workspace: str
    token: str


def mask(token: Optional[str], display_size: int = 4) -> str:
    """Mask a secret for logging, keeping only its first and last characters.

    Args:
        token: The secret to mask
        display_size: Number of characters to keep at each end

    Returns:
        Masked string such as ``secr****wxyz``, or ``****`` when the secret
        is missing or too short to reveal anything safely

    Example:
        >>> mask("secret_abcdefghijkl")
        'secr****ijkl'
    """
    if not token or len(token) < display_size * 2:
        return "****"
    return f"{token[:display_size]}****{token[-display_size:]}"


class Authenticator:
    """Loads and validates Notion integration tokens from environment variables.

    Tokens are loaded from a .env file using python-dotenv and are only ever
    logged in masked form.

    Recognised environment variables:
        NOTION_INTEGRATION_TOKEN: token of the default workspace
        NOTION_WORKSPACE: directory name for that workspace (default "default")
        <NAME>_INTEGRATION_NOTION: token of workspace "<name>" (lowercased)

    Raises:
        InvalidCredentialsError: If no token can be found

    Example:
        >>> auth = Authenticator()
        >>> for creds in auth.get_credentials():
        ...     print(f"Mirroring workspace {creds.workspace}")
    """

    def __init__(self, token_envs: Optional[Dict[str, str]] = None):
        """Initialize the authenticator by loading environment variables from .env file.

        Args:
            token_envs: Optional explicit mapping of workspace name to the
                        environment variable holding its token. When given,
                        environment scanning is disabled.
        """
        load_dotenv()
        self._token_envs = token_envs

    def get_credentials(self) -> List[Credentials]:
        """Get the credentials of every configured workspace.

        Returns:
            List of Credentials in discovery order, one per workspace

        Raises:
            InvalidCredentialsError: If no usable token is found, or if
                NOTION_WORKSPACE is not a filesafe directory name
        """
        if self._token_envs is not None:
            found = self._from_explicit_mapping(self._token_envs)
        else:
            found = self._from_environment()

        if not found:
            raise InvalidCredentialsError(workspace="unknown", endpoint=TOKEN_ENV)

        for creds in found:
            logger.info(f"Workspace detected: {creds.workspace} (token {mask(creds.token)})")

        return found

    def get_workspace(self, workspace: str) -> Credentials:
        """Get the credentials of a single workspace by name.

        Raises:
            InvalidCredentialsError: If the workspace has no token
        """
        for creds in self.get_credentials():
            if creds.workspace == workspace:
                return creds
        raise InvalidCredentialsError(workspace=workspace, endpoint=TOKEN_ENV)

    def _from_explicit_mapping(self, token_envs: Dict[str, str]) -> List[Credentials]:
        found = []
        for workspace, env_name in token_envs.items():
            token = os.getenv(env_name)
            if not token or not token.strip():
                logger.warning(f"Missing or blank token for env [{env_name}]")
                continue
            found.append(Credentials(workspace=workspace, token=token.strip()))
        return found

    def _from_environment(self) -> List[Credentials]:
        found: Dict[str, str] = {}

        token = os.getenv(TOKEN_ENV)
        if token and token.strip():
            workspace = os.getenv(WORKSPACE_ENV) or DEFAULT_WORKSPACE
            if not _is_filesafe(workspace):
                logger.error(f"Invalid {WORKSPACE_ENV} value [{workspace}]: not a filesafe directory name")
                raise InvalidCredentialsError(workspace=workspace, endpoint=WORKSPACE_ENV)
            found[workspace] = token.strip()

        for key in sorted(os.environ):
            match = WORKSPACE_TOKEN_PATTERN.match(key)
            if not match:
                continue
            value = os.environ[key]
            if not value or not value.strip():
                logger.warning(f"Missing or blank token for env [{key}]")
                continue
            # First definition wins on duplicate workspace names
            found.setdefault(match.group(1).lower(), value.strip())

        return [Credentials(workspace=name, token=tok) for name, tok in found.items()]


def _is_filesafe(name: str) -> bool:
    return bool(WORKSPACE_NAME_PATTERN.match(name)) and name not in ('.', '..')
