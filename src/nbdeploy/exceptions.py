"""Custom exceptions for nbdeploy."""


class NbDeployError(Exception):
    """Base exception for nbdeploy."""

    pass


class ConfigError(NbDeployError):
    """Configuration related errors."""

    pass


class ArgumentError(NbDeployError):
    """Invalid command line flags or operator input."""

    pass


class CredentialsError(NbDeployError):
    """Missing or unusable provider credentials."""

    pass


class ProcessError(NbDeployError):
    """An external command failed."""

    def __init__(self, command: list[str], output: str, returncode: int | None = None) -> None:
        """Initialize process error.

        Args:
            command: Full argument list of the failed command
            output: Captured error text (stderr, or stdout for tools that log there)
            returncode: Exit status if the process exited on its own
        """
        self.command = command
        self.output = output.strip()
        self.returncode = returncode
        message = self.output or f"'{command[0]}' exited with status {returncode}"
        super().__init__(message)

    def matches(self, *markers: str) -> bool:
        """Check whether the captured output contains any of the markers."""
        return any(marker in self.output for marker in markers)


class CommandNotFoundError(ProcessError):
    """The executable is not installed or not on PATH."""

    def __init__(self, command: list[str]) -> None:
        super().__init__(command, f"{command[0]} command not found")


class ScrapeError(NbDeployError):
    """A required value was not found in command output."""

    def __init__(self, what: str, output: str = "") -> None:
        """Initialize scrape error.

        Args:
            what: Human readable name of the missing value
            output: The text that was searched
        """
        super().__init__(f"Could not find {what} in command output")
        self.what = what
        self.output = output


class ProvisionTimeoutError(NbDeployError):
    """A bounded wait ran out of attempts."""

    pass
