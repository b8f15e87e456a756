"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging
import os
import re

import pytest

# urllib3 logs every connection at DEBUG; keep it out of captured logs.
logging.getLogger("urllib3").setLevel(logging.WARNING)

_TOKEN_ENV_PATTERN = re.compile(r'^(NOTION_INTEGRATION_TOKEN|NOTION_WORKSPACE|[A-Za-z0-9]+_INTEGRATION_NOTION)$')


@pytest.fixture(autouse=True)
def isolated_notion_env(monkeypatch):
    """Remove Notion tokens from the environment and disable .env loading.

    Tests that need tokens set them explicitly with monkeypatch.setenv.
    """
    for key in list(os.environ):
        if _TOKEN_ENV_PATTERN.match(key):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("notion_mirror.notion_api.auth.load_dotenv", lambda *args, **kwargs: False)


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Drop handlers the CLI attaches to the notion_mirror logger."""
    yield
    app_logger = logging.getLogger("notion_mirror")
    app_logger.handlers.clear()
    app_logger.setLevel(logging.NOTSET)
