"""Unit tests for cli.backup_command module."""

import pytest
from unittest.mock import Mock, patch

from notion_mirror.cli.backup_command import BackupCommand
from notion_mirror.cli.models import ExitCode
from notion_mirror.cli.output import OutputHandler
from notion_mirror.notion_api.auth import Credentials
from notion_mirror.notion_api.errors import (
    APIAccessError,
    InvalidCredentialsError,
)
from tests.fixtures.sample_objects import make_page
from tests.helpers.fake_notion import FakeNotionAPI


def create_authenticator(*workspaces):
    authenticator = Mock()
    authenticator.get_credentials.return_value = [
        Credentials(workspace=name, token=f"secret_{name}_token") for name in workspaces
    ]
    return authenticator


def create_command(tmp_path, apis, workspaces=("default",), config_text=None):
    """Build a BackupCommand whose API factory serves FakeNotionAPI per workspace."""
    config_path = None
    if config_text is not None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(config_text, encoding="utf-8")
        config_path = str(config_file)

    def api_factory(credentials, config):
        return apis[credentials.workspace]

    return BackupCommand(
        config_path=config_path,
        output_handler=OutputHandler(no_color=True),
        authenticator=create_authenticator(*workspaces),
        api_factory=api_factory,
    )


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    """Run from tmp_path so the default config location is empty."""
    monkeypatch.chdir(tmp_path)


class TestBackupCommand:
    """Test cases for BackupCommand.run."""

    def test_mirrors_each_workspace_into_its_folder(self, tmp_path):
        apis = {
            "pps": FakeNotionAPI(objects=[make_page("a-1", "Alpha")], workspace="pps"),
            "team": FakeNotionAPI(objects=[make_page("b-1", "Beta")], workspace="team"),
        }
        command = create_command(tmp_path, apis, workspaces=("pps", "team"))

        exit_code = command.run(storage_root=str(tmp_path / "storage"))

        assert exit_code == ExitCode.SUCCESS
        assert (tmp_path / "storage" / "pps" / "Alpha" / "page.json").exists()
        assert (tmp_path / "storage" / "team" / "Beta" / "page.json").exists()
        assert [s.workspace for s in command.summaries] == ["pps", "team"]
        assert apis["pps"].closed and apis["team"].closed

    def test_default_storage_root_from_config(self, tmp_path):
        apis = {"default": FakeNotionAPI(objects=[make_page("a-1", "Alpha")])}
        command = create_command(tmp_path, apis, config_text="storage_root: mirror\n")

        assert command.run() == ExitCode.SUCCESS
        assert (tmp_path / "mirror" / "default" / "Alpha").is_dir()

    def test_partial_failures_still_succeed(self, tmp_path):
        apis = {"default": FakeNotionAPI(
            objects=[make_page("a-1", "Alpha"), make_page("b-1", "Beta")],
            failures={"b1": APIAccessError("boom")},
        )}
        command = create_command(tmp_path, apis)

        assert command.run(storage_root="storage") == ExitCode.SUCCESS
        assert command.summaries[0].failed == 1

    def test_workspace_filter(self, tmp_path):
        apis = {
            "pps": FakeNotionAPI(objects=[make_page("a-1", "Alpha")], workspace="pps"),
            "team": FakeNotionAPI(objects=[make_page("b-1", "Beta")], workspace="team"),
        }
        command = create_command(tmp_path, apis, workspaces=("pps", "team"))

        command.run(storage_root="storage", workspaces=["team"])

        assert not (tmp_path / "storage" / "pps").exists()
        assert (tmp_path / "storage" / "team" / "Beta").is_dir()

    def test_unknown_workspace_is_general_error(self, tmp_path):
        command = create_command(tmp_path, {}, workspaces=("pps",))

        assert command.run(workspaces=["nope"]) == ExitCode.GENERAL_ERROR

    def test_missing_token_is_auth_error(self, tmp_path):
        command = create_command(tmp_path, {})
        command.authenticator.get_credentials.side_effect = InvalidCredentialsError("unknown", "NOTION_INTEGRATION_TOKEN")

        assert command.run() == ExitCode.AUTH_ERROR

    def test_rejected_token_is_auth_error(self, tmp_path):
        apis = {"default": FakeNotionAPI(search_error=InvalidCredentialsError("default", "/search"))}
        command = create_command(tmp_path, apis)

        assert command.run(storage_root="storage") == ExitCode.AUTH_ERROR

    def test_enumeration_failure_is_network_error(self, tmp_path):
        apis = {"default": FakeNotionAPI(search_error=APIAccessError("Notion API failure (after 3 attempts)"))}
        command = create_command(tmp_path, apis)

        assert command.run(storage_root="storage") == ExitCode.NETWORK_ERROR
        assert apis["default"].closed

    def test_failing_workspace_does_not_stop_the_next(self, tmp_path):
        apis = {
            "pps": FakeNotionAPI(search_error=APIAccessError("down"), workspace="pps"),
            "team": FakeNotionAPI(objects=[make_page("b-1", "Beta")], workspace="team"),
        }
        command = create_command(tmp_path, apis, workspaces=("pps", "team"))

        assert command.run(storage_root="storage") == ExitCode.NETWORK_ERROR
        assert (tmp_path / "storage" / "team" / "Beta").is_dir()

    def test_invalid_config_is_general_error(self, tmp_path):
        command = create_command(tmp_path, {}, config_text="concurrency: 0\n")
        assert command.run() == ExitCode.GENERAL_ERROR

    def test_missing_explicit_config_is_general_error(self, tmp_path):
        command = create_command(tmp_path, {})
        command.config_path = str(tmp_path / "missing.yaml")
        assert command.run() == ExitCode.GENERAL_ERROR

    def test_no_cleanup_override(self, tmp_path):
        stale = tmp_path / "storage" / "default" / "Stale"
        stale.mkdir(parents=True)
        (stale / "page.json").write_text('{"id": "zz"}', encoding="utf-8")
        apis = {"default": FakeNotionAPI(objects=[])}
        command = create_command(tmp_path, apis)

        command.run(storage_root="storage", cleanup=False)

        assert stale.exists()
        assert command.summaries[0].reconcile is None

    def test_prune_removes_unconfigured_workspaces(self, tmp_path):
        (tmp_path / "storage" / "retired" / "Old").mkdir(parents=True)
        apis = {"default": FakeNotionAPI(objects=[])}
        command = create_command(tmp_path, apis)

        command.run(storage_root="storage", prune=True)

        assert not (tmp_path / "storage" / "retired").exists()
        assert (tmp_path / "storage" / "default").is_dir()

    def test_config_workspaces_build_explicit_token_mapping(self, tmp_path):
        config_text = "workspaces:\n  - name: team\n    token_env: TEAM_TOKEN\n"
        command = create_command(tmp_path, {}, config_text=config_text)
        command.authenticator = None

        with patch('notion_mirror.cli.backup_command.Authenticator') as mock_auth_cls:
            mock_auth_cls.return_value.get_credentials.return_value = []
            command.run()

        mock_auth_cls.assert_called_once_with(token_envs={"team": "TEAM_TOKEN"})

    def test_overrides_reach_components(self, tmp_path):
        seen = {}

        def api_factory(credentials, config):
            seen["config"] = config
            return FakeNotionAPI(objects=[])

        command = BackupCommand(
            output_handler=OutputHandler(no_color=True),
            authenticator=create_authenticator("default"),
            api_factory=api_factory,
        )

        command.run(storage_root="elsewhere", concurrency=7, tree_concurrency=3)

        assert seen["config"].storage_root == "elsewhere"
        assert seen["config"].concurrency == 7
        assert seen["config"].tree_concurrency == 3
