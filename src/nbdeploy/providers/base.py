"""Shared workflow shape for all providers.

Every provider runs the same sequence: prepare, authenticate, then
provision or deprovision. Subclasses supply the provider specific steps;
``Workflow.run`` drives the state transitions, reports the outcome to the
operator and to telemetry, and turns any ``NbDeployError`` or local file
error (``OSError``) into a failed run. Steps that already ran are not
rolled back.
"""

from enum import Enum
from pathlib import Path

from ..config import ConfigManager, CredentialStore
from ..exceptions import NbDeployError
from ..models import Action, ExternalEndpoint, Provider, Settings
from ..prompts import Prompter
from ..runner import ProcessRunner
from ..telemetry import Telemetry
from ..utils import print_error, print_success, print_url
from ..utils.logging import get_logger

logger = get_logger(__name__)


class WorkflowState(str, Enum):
    """Lifecycle of one workflow run."""

    START = "start"
    AUTHENTICATING = "authenticating"
    PROVISIONING = "provisioning"
    DEPROVISIONING = "deprovisioning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class WorkflowContext:
    """Collaborators shared by every workflow step."""

    def __init__(
        self,
        config_manager: ConfigManager,
        runner: ProcessRunner | None = None,
        prompter: Prompter | None = None,
        credentials: CredentialStore | None = None,
        telemetry: Telemetry | None = None,
        workdir: Path | None = None,
    ) -> None:
        """Initialize workflow context.

        Args:
            config_manager: Source of settings and config paths
            runner: External command runner
            prompter: Operator prompts
            credentials: Cached credential store
            telemetry: Event tracker
            workdir: Directory descriptors are copied into (defaults to cwd)
        """
        self.config_manager = config_manager
        self.settings: Settings = config_manager.get()
        self.runner = runner or ProcessRunner()
        self.prompter = prompter or Prompter()
        self.credentials = credentials or CredentialStore(config_manager.credentials_dir)
        self.telemetry = telemetry or Telemetry(self.settings.telemetry)
        self.workdir = workdir or Path.cwd()


class Workflow:
    """Base class for provider workflows."""

    provider: Provider
    label: str

    def __init__(self, context: WorkflowContext) -> None:
        self.context = context
        self.settings = context.settings
        self.runner = context.runner
        self.prompter = context.prompter
        self.telemetry = context.telemetry
        self.state = WorkflowState.START

    @property
    def machine_name(self) -> str:
        return self.settings.machine_name

    async def prepare(self, action: Action) -> None:
        """Run before authentication. No-op unless a provider needs it."""

    async def authenticate(self, action: Action) -> None:
        """Resolve credentials and parameters for the action."""
        raise NotImplementedError

    async def create(self) -> ExternalEndpoint:
        """Provision the notebook server and return where it is reachable."""
        raise NotImplementedError

    async def destroy(self) -> None:
        """Tear the notebook server down."""
        raise NotImplementedError

    def event_name(self, action: Action) -> str:
        """Telemetry event name for the current state."""
        if self.state is WorkflowState.AUTHENTICATING:
            return f"{self.label} Authentication - {action.value}"
        return f"{self.label} {action.value}"

    async def run(self, action: Action) -> bool:
        """Execute the workflow for an action.

        Returns:
            True on success, False if a step failed
        """
        logger.debug("workflow.start", provider=self.provider.value, action=action.value)
        try:
            await self.prepare(action)
            self.state = WorkflowState.AUTHENTICATING
            await self.authenticate(action)

            if action is Action.CREATE:
                self.state = WorkflowState.PROVISIONING
                endpoint = await self.create()
            else:
                self.state = WorkflowState.DEPROVISIONING
                await self.destroy()
        except (NbDeployError, OSError) as e:
            event = self.event_name(action)
            self.state = WorkflowState.FAILED
            print_error(str(e))
            await self.telemetry.track(event, error=str(e))
            return False

        event = self.event_name(action)
        self.state = WorkflowState.SUCCEEDED
        await self.telemetry.track(event, success=True)

        if action is Action.CREATE:
            print_url("Done! You can access your JupyterLab instance at", endpoint.url)
        else:
            print_success(f"JupyterLab deployment on {self.provider.value} removed")
        return True
