"""DigitalOcean deployments through docker-machine."""

import shlex

from ..config import should_reuse
from ..exceptions import ProcessError
from ..images import FLAVOR_IMAGES, resolve_image
from ..models import Action, ExternalEndpoint, Provider, ProviderCredentials
from ..prompts import DIGITALOCEAN_SIZES
from ..runner import ProcessResult
from ..scrape import IPV4, parse_env_exports, require
from ..utils import print_info, print_success, spinner
from ..utils.logging import get_logger
from .base import Workflow, WorkflowContext

logger = get_logger(__name__)

# docker-machine prints progress on stderr; only these lines mean failure
DOCKER_MACHINE_ERRORS = ("Error", "error:")

NOTEBOOK_PORT = 8888


class DigitalOceanWorkflow(Workflow):
    """Run JupyterLab in a container on a DigitalOcean droplet."""

    provider = Provider.DIGITALOCEAN
    label = "DigitalOcean"

    def __init__(self, context: WorkflowContext) -> None:
        super().__init__(context)
        self.access_token = ""
        self.login_token = ""
        self.image = ""
        self.size = ""

    async def prepare(self, action: Action) -> None:
        """Remove a leftover machine with the same name before creating one."""
        if action is not Action.CREATE:
            return
        try:
            await self._docker_machine("rm", "-y", self.machine_name)
        except ProcessError as e:
            if not e.matches("does not exist"):
                raise
            logger.debug("digitalocean.no_previous_machine", name=self.machine_name)

    async def authenticate(self, action: Action) -> None:
        cached = self.context.credentials.load_provider(self.provider)
        reuse = should_reuse(cached, self.prompter)

        if action is Action.CREATE:
            self.login_token = self.prompter.secret(
                "Password/token for logging into Jupyter", "You must provide a password"
            )
            flavor = self.prompter.select("Notebook image:", list(FLAVOR_IMAGES))
            self.image = resolve_image(flavor)
            self.size = self.prompter.select("Droplet size:", DIGITALOCEAN_SIZES)

        if reuse:
            self.access_token = cached.get("token")
        if not self.access_token:
            self.access_token = self.prompter.secret(
                "DigitalOcean API access token", "You must provide an access token"
            )
            self.context.credentials.save(
                ProviderCredentials(provider=self.provider, fields={"token": self.access_token})
            )

    async def create(self) -> ExternalEndpoint:
        name = self.machine_name

        with spinner("Creating DigitalOcean droplet..."):
            await self._docker_machine(
                "create",
                "--driver", "digitalocean",
                "--digitalocean-size", self.size,
                "--digitalocean-access-token", self.access_token,
                name,
            )
        print_success(f"Droplet '{name}' created")

        result = await self._docker_machine("env", "--shell", "bash", name, quiet=True)
        self.runner.apply_env(parse_env_exports(result.stdout))

        print_info(f"Running {self.image} on the droplet...")
        port = self.settings.digitalocean.published_port
        await self._docker_machine(
            "ssh", name,
            "docker", "run", "-d", "--rm",
            "-p", f"{port}:{NOTEBOOK_PORT}",
            self.image,
            "start.sh", "jupyter", "lab",
            f"--LabApp.token={shlex.quote(self.login_token)}",
        )

        result = await self._docker_machine("ip", name, quiet=True)
        ip = require(result.stdout, IPV4, "droplet IP address")
        return ExternalEndpoint(
            host=ip,
            token=self.login_token,
            port=None if port == 80 else port,
        )

    async def destroy(self) -> None:
        name = self.machine_name
        env = {"DIGITALOCEAN_ACCESS_TOKEN": self.access_token}
        with spinner("Tearing down JupyterLab deployment..."):
            await self._docker_machine("stop", name, env=env)
            await self._docker_machine("rm", "-y", name, env=env)

    async def _docker_machine(
        self, *args: str, quiet: bool = False, env: dict[str, str] | None = None
    ) -> ProcessResult:
        return await self.runner.run(
            "docker-machine",
            list(args),
            (lambda _chunk: None) if quiet else None,
            fatal_stderr=DOCKER_MACHINE_ERRORS,
            env=env,
        )
