"""Google Cloud deployments on Deep Learning VM instances through gcloud."""

import asyncio

from ..exceptions import ProcessError, ProvisionTimeoutError
from ..images import gcp_image_families
from ..models import Action, ExternalEndpoint, Provider
from ..prompts import GCP_ZONES, Prompter, require_value, validate_project_id
from ..runner import ProcessResult
from ..scrape import AUTH_URL, PROXY_HOST, extract
from ..utils import console, print_error, print_info, print_success, spinner
from ..utils.logging import get_logger
from .base import Workflow, WorkflowContext

logger = get_logger(__name__)

# gcloud reports progress ("Created [...]", "Updated property") on stderr
GCLOUD_ERRORS = ("ERROR:",)

LOGIN_ERROR = "ERROR"

API_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class LoginSession:
    """Drive ``gcloud auth login --no-launch-browser`` over its stderr.

    gcloud prints the authorization URL and its code prompt on stderr and
    reads the code from stdin. The URL is shown to the operator once; the
    code they enter is returned to be written to stdin. Any output
    containing ERROR aborts the login.
    """

    def __init__(self, argv: list[str], prompter: Prompter) -> None:
        self.argv = argv
        self.prompter = prompter
        self.buffer = ""
        self.code_sent = False

    def __call__(self, chunk: str) -> str | None:
        self.buffer += chunk
        if LOGIN_ERROR in self.buffer:
            raise ProcessError(self.argv, self.buffer)
        if self.code_sent:
            return None

        # Only look at complete lines so a URL split across chunks is not cut short
        complete = self.buffer[: self.buffer.rfind("\n") + 1]
        url = extract(complete, AUTH_URL)
        if url is None:
            return None

        print_info("Please go to the following link in your browser to authenticate:")
        console.print(url, markup=False, highlight=False, soft_wrap=True)
        code = self.prompter.text(
            "Enter verification code",
            validate=require_value("You must provide a valid verification code"),
        )
        self.code_sent = True
        return f"{code}\n"


class GCPWorkflow(Workflow):
    """Run JupyterLab on a Deep Learning VM behind the notebook proxy."""

    provider = Provider.GOOGLE_CLOUD
    label = "GCP"

    def __init__(self, context: WorkflowContext) -> None:
        super().__init__(context)
        self.gcp = self.settings.gcp
        self.project = ""

    async def authenticate(self, action: Action) -> None:
        await self.login()
        print_success("Authentication with Google Cloud successful")

        self.project = self.prompter.text("Google Cloud project id", validate=validate_project_id)
        await self._gcloud("config", "set", "project", self.project)

    async def login(self) -> None:
        """Run the interactive gcloud login."""
        args = ["auth", "login", "--no-launch-browser"]
        session = LoginSession(["gcloud", *args], self.prompter)
        await self.runner.run("gcloud", args, on_stderr=session)

    async def create(self) -> ExternalEndpoint:
        gpu = self.prompter.confirm("Would you like to use an instance with a GPU? (this will cost more)")
        family = self.prompter.select("Deep Learning VM image:", gcp_image_families(gpu))
        zone = self.prompter.select("Zone:", GCP_ZONES)

        with spinner("Deploying Google Cloud instance. This may take a few minutes..."):
            await self._gcloud(*self.instance_create_args(family, zone, gpu))
        print_success(f"Instance '{self.machine_name}' created in {zone}")

        host = await self.wait_for_proxy(zone)
        return ExternalEndpoint(host=host, scheme="https")

    def instance_create_args(self, family: str, zone: str, gpu: bool) -> list[str]:
        """Build the ``gcloud compute instances create`` arguments."""
        metadata = "proxy-mode=project_editors"
        args = [
            "compute", "instances", "create", self.machine_name,
            "--zone", zone,
            "--image-family", family,
            "--image-project", self.gcp.image_project,
            f"--scopes={API_SCOPE}",
            "--tags", "http-server,https-server",
        ]
        if gpu:
            args += [
                "--maintenance-policy", "TERMINATE",
                "--accelerator", self.gcp.accelerator,
            ]
            metadata = f"install-nvidia-driver=True,{metadata}"
        args += ["--metadata", metadata]
        return args

    async def wait_for_proxy(self, zone: str) -> str:
        """Poll the instance metadata until the notebook proxy host appears.

        Raises:
            ProvisionTimeoutError: If the proxy is not up after the configured attempts
        """
        attempts = self.gcp.poll_attempts
        with spinner("Waiting for Jupyter instance proxy to initialize. This may take a few minutes..."):
            for attempt in range(1, attempts + 1):
                result = await self._gcloud(
                    "compute", "instances", "describe", self.machine_name, "--zone", zone,
                    quiet=True,
                )
                host = extract(result.stdout, PROXY_HOST)
                if host:
                    return host
                logger.debug("gcp.proxy_pending", attempt=attempt, attempts=attempts)
                if attempt < attempts:
                    await asyncio.sleep(self.gcp.poll_interval)

        raise ProvisionTimeoutError(
            f"Notebook proxy for '{self.machine_name}' did not come up after "
            f"{attempts} checks; the instance is still running"
        )

    async def destroy(self) -> None:
        zone = self.prompter.select("Zone:", GCP_ZONES)
        try:
            with spinner("Tearing down GCP JupyterLab deployment..."):
                await self._gcloud(
                    "compute", "instances", "delete", self.machine_name,
                    "--zone", zone, "--quiet",
                )
        except ProcessError:
            print_error(
                f"Error tearing down instance. Check that '{self.machine_name}' "
                f"resides in zone {zone}."
            )
            raise

    async def _gcloud(self, *args: str, quiet: bool = False) -> ProcessResult:
        return await self.runner.run(
            "gcloud",
            list(args),
            (lambda _chunk: None) if quiet else None,
            fatal_stderr=GCLOUD_ERRORS,
        )
