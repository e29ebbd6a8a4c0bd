"""Tests for the DigitalOcean workflow."""

from nbdeploy.models import Action, Provider, ProviderCredentials
from nbdeploy.providers import DigitalOceanWorkflow, WorkflowState

from .conftest import Reply

ENV_OUTPUT = (
    'export DOCKER_TLS_VERIFY="1"\n'
    'export DOCKER_HOST="tcp://203.0.113.7:2376"\n'
    'export DOCKER_CERT_PATH="/root/.docker/machine/machines/jupyter"\n'
    'export DOCKER_MACHINE_NAME="jupyter"\n'
)

CREATE_ANSWERS = {
    "Password/token": "abc123",
    "Notebook image": "SciPy",
    "Droplet size": "s-1vcpu-1gb",
    "API access token": "tok_xyz",
}


def cache_token(credentials, token):
    credentials.save(ProviderCredentials(provider=Provider.DIGITALOCEAN, fields={"token": token}))


def script_machine(runner):
    runner.on("docker-machine", "env", stdout=ENV_OUTPUT)
    runner.on("docker-machine", "ip", stdout="203.0.113.7\n")


class TestCreate:
    """Test provisioning a droplet."""

    async def test_happy_path(self, make_context, runner, telemetry, credentials, capsys):
        script_machine(runner)
        workflow = DigitalOceanWorkflow(make_context(CREATE_ANSWERS))

        assert await workflow.run(Action.CREATE) is True

        assert [argv[:2] for argv in runner.calls] == [
            ["docker-machine", "rm"],
            ["docker-machine", "create"],
            ["docker-machine", "env"],
            ["docker-machine", "ssh"],
            ["docker-machine", "ip"],
        ]
        create = runner.called("docker-machine", "create")[0]
        assert create == [
            "docker-machine", "create",
            "--driver", "digitalocean",
            "--digitalocean-size", "s-1vcpu-1gb",
            "--digitalocean-access-token", "tok_xyz",
            "jupyter",
        ]
        ssh = runner.called("docker-machine", "ssh")[0]
        assert "jupyter/scipy-notebook" in ssh
        assert ssh[-1] == "--LabApp.token=abc123"
        assert ["-p", "80:8888"] == ssh[ssh.index("-p"):ssh.index("-p") + 2]

        assert runner.env["DOCKER_HOST"] == "tcp://203.0.113.7:2376"
        assert credentials.load_provider(Provider.DIGITALOCEAN).fields == {"token": "tok_xyz"}
        assert telemetry.events == [
            {"event": "DigitalOcean Create", "success": True, "error": None}
        ]
        assert workflow.state is WorkflowState.SUCCEEDED
        assert "http://203.0.113.7/?token=abc123" in capsys.readouterr().out

    async def test_endpoint(self, make_context, runner):
        script_machine(runner)
        workflow = DigitalOceanWorkflow(make_context(CREATE_ANSWERS))
        await workflow.authenticate(Action.CREATE)

        endpoint = await workflow.create()

        assert endpoint.url == "http://203.0.113.7/?token=abc123"

    async def test_token_is_shell_quoted(self, make_context, runner):
        script_machine(runner)
        answers = dict(CREATE_ANSWERS, **{"Password/token": "it's secret"})
        workflow = DigitalOceanWorkflow(make_context(answers))

        assert await workflow.run(Action.CREATE) is True

        ssh = runner.called("docker-machine", "ssh")[0]
        assert ssh[-1] == "--LabApp.token='it'\"'\"'s secret'"

    async def test_missing_previous_machine_tolerated(self, make_context, runner):
        script_machine(runner)
        runner.on(
            "docker-machine", "rm",
            error='Error removing host "jupyter": Host does not exist: "jupyter"',
        )
        workflow = DigitalOceanWorkflow(make_context(CREATE_ANSWERS))

        assert await workflow.run(Action.CREATE) is True
        assert runner.called("docker-machine", "create")

    async def test_other_cleanup_error_fails(self, make_context, runner, telemetry):
        runner.on("docker-machine", "rm", error="Error: permission denied")
        workflow = DigitalOceanWorkflow(make_context(CREATE_ANSWERS))

        assert await workflow.run(Action.CREATE) is False

        assert not runner.called("docker-machine", "create")
        assert telemetry.events == [
            {"event": "DigitalOcean Create", "success": None, "error": "Error: permission denied"}
        ]
        assert workflow.state is WorkflowState.FAILED

    async def test_create_failure_reported(self, make_context, runner, telemetry):
        runner.on("docker-machine", "create", error="Error creating machine: invalid token")
        workflow = DigitalOceanWorkflow(make_context(CREATE_ANSWERS))

        assert await workflow.run(Action.CREATE) is False

        assert not runner.called("docker-machine", "ssh")
        assert telemetry.events[0]["error"] == "Error creating machine: invalid token"

    async def test_missing_ip_fails(self, make_context, runner, telemetry):
        runner.on("docker-machine", "ip", stdout="\n")
        workflow = DigitalOceanWorkflow(make_context(CREATE_ANSWERS))

        assert await workflow.run(Action.CREATE) is False
        assert "droplet IP address" in telemetry.events[0]["error"]


class TestCredentials:
    """Test cached token reuse."""

    async def test_reuse_skips_token_prompt(self, make_context, runner, credentials):
        script_machine(runner)
        cache_token(credentials, "cached_tok")
        context = make_context(dict(CREATE_ANSWERS, **{"same credentials": True}))
        workflow = DigitalOceanWorkflow(context)

        assert await workflow.run(Action.CREATE) is True

        assert not context.prompter.was_asked("API access token")
        assert "cached_tok" in runner.called("docker-machine", "create")[0]

    async def test_declined_reuse_asks_and_saves(self, make_context, runner, credentials):
        script_machine(runner)
        cache_token(credentials, "old")
        context = make_context(dict(CREATE_ANSWERS, **{"same credentials": False}))

        assert await DigitalOceanWorkflow(context).run(Action.CREATE) is True

        assert context.prompter.was_asked("API access token")
        assert credentials.load_provider(Provider.DIGITALOCEAN).fields == {"token": "tok_xyz"}


class TestDestroy:
    """Test removing the droplet."""

    async def test_stop_then_remove_with_token(self, make_context, runner, telemetry):
        context = make_context({"API access token": "tok_xyz"})

        assert await DigitalOceanWorkflow(context).run(Action.DESTROY) is True

        assert runner.calls == [
            ["docker-machine", "stop", "jupyter"],
            ["docker-machine", "rm", "-y", "jupyter"],
        ]
        assert runner.envs == [{"DIGITALOCEAN_ACCESS_TOKEN": "tok_xyz"}] * 2
        assert not context.prompter.was_asked("Notebook image")
        assert telemetry.events == [
            {"event": "DigitalOcean Destroy", "success": True, "error": None}
        ]

    async def test_stop_failure(self, make_context, runner, telemetry):
        runner.on("docker-machine", "stop", replies=[Reply(error='Host does not exist: "jupyter"')])
        context = make_context({"API access token": "tok_xyz"})

        assert await DigitalOceanWorkflow(context).run(Action.DESTROY) is False

        assert not runner.called("docker-machine", "rm")
        assert telemetry.events[0]["event"] == "DigitalOcean Destroy"
