"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from nbdeploy.cli import main
from nbdeploy.models import Action, Provider

from .conftest import FakePrompter


class FakeWorkflow:
    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.actions: list[Action] = []

    async def run(self, action: Action) -> bool:
        self.actions.append(action)
        return self.succeed


@pytest.fixture
def cli(tmp_path):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(main.app, list(args), env={"NBDEPLOY_CONFIG_DIR": str(tmp_path / "config")})

    return invoke


@pytest.fixture
def dispatched(monkeypatch):
    """Replace workflow lookup and record what would have run."""
    calls = []
    workflow = FakeWorkflow()

    def fake_get_workflow(provider, context):
        calls.append(provider)
        return workflow

    monkeypatch.setattr(main, "get_workflow", fake_get_workflow)
    return calls, workflow


class TestResolveRequest:
    """Test flag validation."""

    def test_no_flags_means_interactive(self):
        assert main.resolve_request(False, False, []) is None

    def test_full_pair(self):
        request = main.resolve_request(False, True, [Provider.GOOGLE_CLOUD])

        assert request.action is Action.DESTROY
        assert request.provider is Provider.GOOGLE_CLOUD

    @pytest.mark.parametrize(
        "create,destroy,providers",
        [
            (True, False, []),
            (False, True, []),
            (False, False, [Provider.AMAZON]),
            (True, True, [Provider.AMAZON]),
            (True, False, [Provider.AMAZON, Provider.DIGITALOCEAN]),
        ],
    )
    def test_incomplete_or_conflicting(self, create, destroy, providers):
        with pytest.raises(main.ArgumentError):
            main.resolve_request(create, destroy, providers)


class TestMain:
    """Test the top level command."""

    @pytest.mark.parametrize(
        "args,provider,action",
        [
            (["-c", "-do"], Provider.DIGITALOCEAN, Action.CREATE),
            (["--create", "--digitalocean"], Provider.DIGITALOCEAN, Action.CREATE),
            (["-d", "-aws"], Provider.AMAZON, Action.DESTROY),
            (["--destroy", "--aws"], Provider.AMAZON, Action.DESTROY),
            (["--destroy", "--amazon"], Provider.AMAZON, Action.DESTROY),
            (["-c", "-gcp"], Provider.GOOGLE_CLOUD, Action.CREATE),
        ],
    )
    def test_flags_dispatch(self, cli, dispatched, args, provider, action):
        calls, workflow = dispatched

        result = cli(*args)

        assert result.exit_code == 0, result.output
        assert calls == [provider]
        assert workflow.actions == [action]

    def test_partial_flags_fail_before_any_workflow(self, cli, dispatched):
        calls, _ = dispatched

        result = cli("-c")

        assert result.exit_code == 2
        assert "Must specify one of --create or --destroy" in result.output
        assert calls == []

    def test_provider_without_action(self, cli, dispatched):
        calls, _ = dispatched

        result = cli("-gcp")

        assert result.exit_code == 2
        assert calls == []

    def test_both_actions(self, cli, dispatched):
        result = cli("-c", "-d", "-do")

        assert result.exit_code == 2
        assert "only one of --create or --destroy" in result.output
        assert dispatched[0] == []

    def test_unknown_flag_is_named(self, cli, dispatched):
        result = cli("--bogus")

        assert result.exit_code == 2
        assert "--bogus" in result.output
        assert dispatched[0] == []

    def test_doubled_short_flag_rejected(self, cli, dispatched):
        result = cli("-cc", "-do")

        assert result.exit_code == 2
        assert "-cc" in result.output
        assert dispatched[0] == []

    def test_misspelled_short_flag_named_in_full(self, cli, dispatched):
        result = cli("-c", "-dox")

        assert result.exit_code == 2
        assert "-dox" in result.output
        assert dispatched[0] == []

    def test_option_value_after_equals(self, cli, dispatched):
        result = cli("--create=yes", "-do")

        assert result.exit_code == 2
        assert dispatched[0] == []

    def test_build_flag_ignored(self, cli, dispatched):
        result = cli("--build", "-c", "-do")

        assert result.exit_code == 0
        assert dispatched[0] == [Provider.DIGITALOCEAN]

    def test_failed_workflow_exits_nonzero(self, cli, monkeypatch):
        monkeypatch.setattr(main, "get_workflow", lambda provider, context: FakeWorkflow(succeed=False))

        result = cli("-d", "-gcp")

        assert result.exit_code == 1

    def test_interactive(self, cli, dispatched, monkeypatch):
        prompter = FakePrompter({"create or destroy": "Destroy", "cloud provider": "Google Cloud"})
        monkeypatch.setattr(main, "Prompter", lambda: prompter)

        result = cli()

        assert result.exit_code == 0, result.output
        assert dispatched[0] == [Provider.GOOGLE_CLOUD]
        assert dispatched[1].actions == [Action.DESTROY]
        assert "Welcome to the JupyterLab deployer" in result.output

    def test_version(self, cli):
        result = cli("--version")

        assert result.exit_code == 0
        assert "nbdeploy version" in result.output


class TestConfigCommands:
    """Test the config sub-commands."""

    def test_set_and_show(self, cli):
        assert cli("config", "set", "gcp.poll_attempts", "7").exit_code == 0

        result = cli("config", "show")

        assert result.exit_code == 0
        assert "poll_attempts: 7" in result.output
        assert "Cached credentials" in result.output

    def test_set_unknown_key(self, cli):
        result = cli("config", "set", "gcp.region", "x")

        assert result.exit_code == 1
        assert "Unknown setting" in result.output

    def test_path(self, cli, tmp_path):
        result = cli("config", "path")

        assert result.exit_code == 0
        assert "config" in result.output

    def test_forget_nothing_cached(self, cli):
        result = cli("config", "forget", "aws", "-y")

        assert result.exit_code == 0
        assert "No cached credentials" in result.output

    def test_forget_unknown_provider(self, cli):
        result = cli("config", "forget", "gcp", "-y")

        assert result.exit_code == 1

    def test_reset(self, cli):
        cli("config", "set", "machine_name", "lab")

        assert cli("config", "reset", "-y").exit_code == 0
        assert "machine_name: jupyter" in cli("config", "show").output
