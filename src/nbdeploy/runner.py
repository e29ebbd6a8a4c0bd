"""External command execution.

Every provider step shells out to a cloud CLI (docker-machine, aws, ecs-cli,
gcloud). ``ProcessRunner`` spawns the command, streams its output and turns
failures into ``ProcessError``.

Stderr handling is explicit per call:

- by default any stderr output is fatal, even if the process would have
  exited 0;
- ``fatal_stderr`` narrows that to chunks containing one of the given
  markers, for tools that print progress on stderr;
- ``on_stderr`` hands every chunk to the caller, whose return value (if
  any) is written to the child's stdin.

A non-zero exit status is always an error.
"""

import asyncio
import os
import re
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import BaseModel

from .exceptions import CommandNotFoundError, ProcessError
from .utils.logging import get_logger

logger = get_logger(__name__)

OutputCallback = Callable[[str], None]
StderrCallback = Callable[[str], str | None]

_SECRET_FLAG = re.compile(r"(token|key|secret|password)", re.IGNORECASE)


class ProcessResult(BaseModel):
    """Captured outcome of a finished command."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def output(self) -> str:
        """Stdout and stderr together, for tools that log on either."""
        return self.stdout + self.stderr


def redact(argv: Sequence[str]) -> str:
    """Render a command line for logs with secret-looking values masked."""
    shown: list[str] = []
    hide_next = False
    for arg in argv:
        if hide_next:
            shown.append("***")
            hide_next = False
        elif arg.startswith("-") and _SECRET_FLAG.search(arg):
            if "=" in arg:
                shown.append(arg.split("=", 1)[0] + "=***")
            else:
                shown.append(arg)
                hide_next = True
        else:
            shown.append(arg)
    return " ".join(shown)


class ProcessRunner:
    """Run external commands one at a time."""

    def __init__(self, env: dict[str, str] | None = None, chunk_size: int = 4096) -> None:
        """Initialize runner.

        Args:
            env: Environment overrides applied to every spawned command
            chunk_size: Maximum bytes read from a stream at once
        """
        self.env: dict[str, str] = dict(env or {})
        self.chunk_size = chunk_size

    def apply_env(self, values: dict[str, str]) -> None:
        """Add environment overrides for all later commands."""
        self.env.update(values)

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        on_output: OutputCallback | None = None,
        *,
        on_stderr: StderrCallback | None = None,
        fatal_stderr: Sequence[str] | None = None,
        env: dict[str, str] | None = None,
        cwd: Path | None = None,
    ) -> ProcessResult:
        """Run a command to completion.

        Args:
            command: Executable name or path
            args: Command arguments
            on_output: Called with each stdout chunk; chunks are not line aligned.
                Without it, chunks are forwarded to the logger.
            on_stderr: Called with each stderr chunk instead of classifying it;
                a returned string is written to the command's stdin.
            fatal_stderr: Markers that make a stderr chunk fatal. None means any
                stderr output is fatal.
            env: Extra environment for this command only
            cwd: Working directory for the command

        Returns:
            The captured result

        Raises:
            CommandNotFoundError: If the executable does not exist
            ProcessError: On non-zero exit or fatal stderr output
        """
        argv = [command, *args]
        logger.debug("process.start", command=redact(argv))

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if on_stderr else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **self.env, **(env or {})},
                cwd=cwd,
            )
        except FileNotFoundError:
            raise CommandNotFoundError(argv)

        stdout_parts: list[str] = []
        stderr_parts: list[str] = []

        async def pump_stdout() -> None:
            while chunk := await proc.stdout.read(self.chunk_size):
                text = chunk.decode(errors="replace")
                stdout_parts.append(text)
                if on_output is not None:
                    on_output(text)
                elif text.strip():
                    logger.info(text.rstrip())

        async def pump_stderr() -> None:
            # Unfinished last line of the previous chunk
            partial = ""
            while chunk := await proc.stderr.read(self.chunk_size):
                text = chunk.decode(errors="replace")
                stderr_parts.append(text)
                if on_stderr is not None:
                    reply = on_stderr(text)
                    if reply is not None and proc.stdin is not None:
                        proc.stdin.write(reply.encode())
                        await proc.stdin.drain()
                    continue

                window = partial + text
                if fatal_stderr is None or any(marker in window for marker in fatal_stderr):
                    raise ProcessError(argv, window)
                logger.debug("process.stderr", text=text.rstrip())
                partial = window[window.rfind("\n") + 1 :]

        tasks = [asyncio.ensure_future(pump_stdout()), asyncio.ensure_future(pump_stderr())]
        try:
            await asyncio.gather(*tasks)
            returncode = await proc.wait()
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        finally:
            if proc.stdin is not None and not proc.stdin.is_closing():
                proc.stdin.close()

        result = ProcessResult(
            command=argv,
            returncode=returncode,
            stdout="".join(stdout_parts),
            stderr="".join(stderr_parts),
        )
        logger.debug("process.exit", command=argv[0], returncode=returncode)

        if returncode != 0:
            raise ProcessError(argv, result.stderr or result.stdout, returncode)
        return result
