"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any

import pytest

from nbdeploy.config import ConfigManager, CredentialStore
from nbdeploy.exceptions import ProcessError
from nbdeploy.models import GCPConfig, Settings
from nbdeploy.providers import WorkflowContext
from nbdeploy.runner import ProcessResult


class Reply:
    """Scripted outcome for one fake command invocation."""

    def __init__(
        self,
        stdout: str = "",
        stderr: str = "",
        error: str | None = None,
        stderr_chunks: list[str] | None = None,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.stderr_chunks = stderr_chunks or []


class FakeRunner:
    """Stands in for ProcessRunner, replying by command prefix."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []
        self.stdin: list[str] = []
        self.env: dict[str, str] = {}
        self._rules: list[tuple[tuple[str, ...], list[Reply]]] = []

    def on(self, *prefix: str, replies: list[Reply] | None = None, **reply: Any) -> None:
        """Register replies for commands starting with prefix.

        The longest matching prefix wins; among equals, the latest rule.

        A list of replies is consumed in order; the last one repeats.
        """
        self._rules.append((prefix, list(replies) if replies else [Reply(**reply)]))

    def apply_env(self, values: dict[str, str]) -> None:
        self.env.update(values)

    def called(self, *prefix: str) -> list[list[str]]:
        return [argv for argv in self.calls if tuple(argv[: len(prefix)]) == prefix]

    async def run(
        self,
        command: str,
        args=(),
        on_output=None,
        *,
        on_stderr=None,
        fatal_stderr=None,
        env=None,
        cwd=None,
    ) -> ProcessResult:
        argv = [command, *args]
        self.calls.append(argv)
        self.envs.append(env)

        reply = Reply()
        matches = [(p, r) for p, r in self._rules if tuple(argv[: len(p)]) == p]
        if matches:
            _, replies = max(reversed(matches), key=lambda m: len(m[0]))
            reply = replies.pop(0) if len(replies) > 1 else replies[0]

        for chunk in reply.stderr_chunks:
            answer = on_stderr(chunk)
            if answer is not None:
                self.stdin.append(answer)
        if reply.error is not None:
            raise ProcessError(argv, reply.error, 1)
        if on_output is not None and reply.stdout:
            on_output(reply.stdout)
        return ProcessResult(command=argv, returncode=0, stdout=reply.stdout, stderr=reply.stderr)


class FakePrompter:
    """Answers prompts from a table keyed by a substring of the question."""

    def __init__(self, answers: dict[str, Any] | None = None) -> None:
        self.answers = dict(answers or {})
        self.asked: list[str] = []

    def _answer(self, message: str) -> Any:
        self.asked.append(message)
        for key, value in self.answers.items():
            if key.lower() in message.lower():
                if isinstance(value, list):
                    return value.pop(0) if len(value) > 1 else value[0]
                return value
        raise AssertionError(f"Unexpected prompt: {message}")

    def select(self, title: str, choices: list[str]) -> str:
        value = self._answer(title)
        assert value in choices, f"{value!r} is not one of the choices for {title!r}"
        return value

    def text(self, message: str, validate=None, default=None) -> str:
        value = self._answer(message)
        if validate is not None:
            assert validate(value) is None, f"{value!r} rejected for {message!r}"
        return value

    def secret(self, message: str, error: str) -> str:
        return self._answer(message)

    def confirm(self, message: str, default: bool = False) -> bool:
        return self._answer(message)

    def was_asked(self, fragment: str) -> bool:
        return any(fragment.lower() in message.lower() for message in self.asked)


class FakeTelemetry:
    """Records tracked events instead of sending them."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def track(self, event: str, *, success: bool | None = None, error: str | None = None) -> None:
        self.events.append({"event": event, "success": success, "error": error})


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Config manager rooted in a temporary directory."""
    manager = ConfigManager(tmp_path / "config")
    manager.save(Settings(gcp=GCPConfig(poll_interval=0.001, poll_attempts=3)))
    return manager


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def telemetry() -> FakeTelemetry:
    return FakeTelemetry()


@pytest.fixture
def credentials(config_manager: ConfigManager) -> CredentialStore:
    return CredentialStore(config_manager.credentials_dir)


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def make_context(config_manager, runner, telemetry, credentials, workdir):
    """Build a workflow context around a scripted prompter."""

    def _make(answers: dict[str, Any]) -> WorkflowContext:
        return WorkflowContext(
            config_manager,
            runner=runner,
            prompter=FakePrompter(answers),
            credentials=credentials,
            telemetry=telemetry,
            workdir=workdir,
        )

    return _make
