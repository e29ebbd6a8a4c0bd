"""AWS deployments on ECS Fargate through the aws and ecs-cli tools."""

import json
import shutil
from pathlib import Path

import yaml

from ..config import should_reuse
from ..exceptions import CredentialsError, ProcessError, ScrapeError
from ..images import FLAVOR_IMAGES, resolve_image
from ..models import Action, ClusterTopology, ExternalEndpoint, Provider, ProviderCredentials
from ..prompts import AWS_REGIONS
from ..runner import ProcessResult
from ..scrape import IPV4, SECURITY_GROUP_ID, SUBNET_ID, VPC_ID, extract_all, require
from ..utils import console, print_info, print_success, print_warning, spinner
from ..utils.logging import get_logger
from .base import Workflow, WorkflowContext

logger = get_logger(__name__)

CREDENTIAL_FILES = ("credentials", "config")

# First line of every credential file nbdeploy writes
MANAGED_MARKER = "# Managed by nbdeploy"

# ecs-cli logs through logrus on stderr; only these levels mean failure
ECS_CLI_ERRORS = ("level=error", "level=fatal")

COMPOSE_FILE = "docker-compose.yml"
ECS_PARAMS_FILE = "ecs-params.yml"
ASSUME_ROLE_FILE = "task-execution-assume-role.json"

ASSUME_ROLE_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Sid": "",
            "Effect": "Allow",
            "Principal": {"Service": "ecs-tasks.amazonaws.com"},
            "Action": "sts:AssumeRole",
        }
    ],
}


def render_compose(service: str, image: str, token: str, port: int) -> str:
    """Render the docker-compose.yml for the notebook service."""
    document = {
        "version": "3",
        "services": {
            service: {
                "image": image,
                "ports": [f"{port}:{port}"],
                "environment": [
                    f"JUPYTER_TOKEN={token}",
                    "JUPYTER_ENABLE_LAB=yes",
                ],
            }
        },
    }
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)


def render_ecs_params(
    topology: ClusterTopology,
    execution_role: str,
    cpu_limit: int,
    mem_limit: str,
) -> str:
    """Render the ecs-params.yml task placement document."""
    document = {
        "version": 1,
        "task_definition": {
            "task_execution_role": execution_role,
            "ecs_network_mode": "awsvpc",
            "task_size": {
                "mem_limit": mem_limit,
                "cpu_limit": cpu_limit,
            },
        },
        "run_params": {
            "network_configuration": {
                "awsvpc_configuration": {
                    "subnets": list(topology.subnet_ids),
                    "security_groups": [topology.security_group_id],
                    "assign_public_ip": "ENABLED",
                }
            }
        },
    }
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)


def check_log_lines(result: ProcessResult) -> None:
    """Raise ProcessError if any captured line was logged at error level.

    ``ecs-cli compose service rm`` can exit 0 after logging a failure.
    """
    for line in result.output.splitlines():
        if any(marker in line for marker in ECS_CLI_ERRORS):
            raise ProcessError(result.command, line, result.returncode)


class AWSWorkflow(Workflow):
    """Run JupyterLab as a Fargate service on an ECS cluster."""

    provider = Provider.AMAZON
    label = "AWS"

    def __init__(self, context: WorkflowContext) -> None:
        super().__init__(context)
        self.aws = self.settings.aws
        self.region = ""
        self.login_token = ""
        self.image = ""
        self.written: list[Path] = []

    @property
    def deploy_dir(self) -> Path:
        return self.context.config_manager.deploy_dir

    @property
    def credentials_dir(self) -> Path:
        """Private directory for the credential files handed to aws and ecs-cli."""
        return self.aws.credentials_dir or self.context.config_manager.config_dir / "aws"

    async def authenticate(self, action: Action) -> None:
        cached = self.context.credentials.load_provider(self.provider)
        if should_reuse(cached, self.prompter):
            key_id = cached.get("access_key_id")
            secret = cached.get("secret_access_key")
        else:
            key_id = self.prompter.secret("AWS access key id", "You must provide a valid AWS access key")
            secret = self.prompter.secret(
                "AWS secret access key", "You must provide a valid secret access key"
            )
            self.context.credentials.save(
                ProviderCredentials(
                    provider=self.provider,
                    fields={"access_key_id": key_id, "secret_access_key": secret},
                )
            )

        self.region = self.prompter.select("AWS region:", AWS_REGIONS)

        if action is Action.CREATE:
            self.login_token = self.prompter.secret(
                "Password/token for logging into Jupyter", "You must provide a password"
            )
            flavor = self.prompter.select("Notebook image:", list(FLAVOR_IMAGES))
            self.image = resolve_image(flavor)

        self.write_credentials(key_id, secret)

    def write_credentials(self, key_id: str, secret: str) -> None:
        """Write the shared credentials and config files for this run.

        The files live in a private directory and every later aws and
        ecs-cli command is pointed at them through the runner environment,
        so the operator's own profiles are neither read nor modified.

        Raises:
            CredentialsError: If a target file exists and was not written by nbdeploy
        """
        directory = self.credentials_dir
        contents = {
            "credentials": (
                f"[default]\naws_access_key_id = {key_id}\naws_secret_access_key = {secret}\n"
            ),
            "config": f"[default]\nregion = {self.region}\n",
        }
        for name in CREDENTIAL_FILES:
            path = directory / name
            if path.exists() and not path.read_text().startswith(MANAGED_MARKER):
                raise CredentialsError(f"Refusing to overwrite {path}: it was not written by nbdeploy")

        directory.mkdir(parents=True, exist_ok=True)
        directory.chmod(0o700)
        try:
            for name in CREDENTIAL_FILES:
                path = directory / name
                self.written.append(path)
                path.write_text(f"{MANAGED_MARKER}\n{contents[name]}")
                path.chmod(0o600)
        except OSError:
            self.remove_credentials()
            raise

        self.runner.apply_env(
            {
                "AWS_SHARED_CREDENTIALS_FILE": str(directory / "credentials"),
                "AWS_CONFIG_FILE": str(directory / "config"),
                "AWS_SDK_LOAD_CONFIG": "1",
                "AWS_PROFILE": "default",
            }
        )

    def remove_credentials(self) -> None:
        """Delete the credential files this run wrote."""
        if not self.aws.cleanup_credentials:
            return
        for path in self.written:
            path.unlink(missing_ok=True)
        self.written.clear()
        logger.debug("aws.credentials_removed", path=str(self.credentials_dir))

    async def create(self) -> ExternalEndpoint:
        try:
            await self.ensure_execution_role()
            topology = await self.configure_cluster()
            self.write_descriptors(topology)
            ip = await self.boot_service()
        finally:
            self.remove_credentials()
        return ExternalEndpoint(host=ip, token=self.login_token, port=self.aws.notebook_port)

    async def destroy(self) -> None:
        name = self.machine_name
        try:
            with spinner("Tearing down AWS JupyterLab deployment..."):
                self.copy_descriptors()
                result = await self._ecs_cli(
                    "compose", "--project-name", name,
                    "--file", COMPOSE_FILE,
                    "service", "rm",
                    "--cluster-config", self.aws.cluster_config,
                )
                check_log_lines(result)
                await self._ecs_cli("down", "--force", "--cluster-config", self.aws.cluster_config)
        finally:
            self.remove_credentials()

    async def ensure_execution_role(self) -> None:
        """Create the task execution role, accepting one that already exists."""
        role = self.aws.execution_role
        self.deploy_dir.mkdir(parents=True, exist_ok=True)
        policy_file = self.deploy_dir / ASSUME_ROLE_FILE
        policy_file.write_text(json.dumps(ASSUME_ROLE_POLICY, indent=2))

        with spinner(f"Creating {role} IAM role..."):
            try:
                await self._aws(
                    "iam", "--region", self.region,
                    "create-role",
                    "--role-name", role,
                    "--assume-role-policy-document", f"file://{policy_file}",
                )
            except ProcessError as e:
                if not e.matches("EntityAlreadyExists"):
                    raise
                logger.debug("aws.role_exists", role=role)
            await self._aws(
                "iam", "--region", self.region,
                "attach-role-policy",
                "--role-name", role,
                "--policy-arn", self.aws.execution_policy_arn,
            )
        print_success(f"{role} ready")

    async def configure_cluster(self) -> ClusterTopology:
        """Configure and start the cluster, then open the notebook port.

        Returns:
            Subnets and security group for the task placement document

        Raises:
            ScrapeError: If ecs-cli up or describe-security-groups output lacks an id
        """
        name = self.machine_name

        with spinner("Configuring cluster..."):
            await self._ecs_cli(
                "configure",
                "--cluster", name,
                "--default-launch-type", "FARGATE",
                "--region", self.region,
                "--config-name", self.aws.cluster_config,
            )

        with spinner("Spinning up cluster. This may take a few minutes..."):
            result = await self._ecs_cli(
                "up",
                "--instance-role", self.aws.instance_role,
                "--cluster-config", self.aws.cluster_config,
            )
        output = result.output
        subnets = extract_all(output, SUBNET_ID)
        if len(subnets) < 2:
            raise ScrapeError("two subnet ids", output)
        vpc_id = require(output, VPC_ID, "VPC id")
        print_success(f"Cluster '{name}' is up in {vpc_id}")

        with spinner("Retrieving security group ID..."):
            result = await self._aws(
                "ec2", "describe-security-groups",
                "--filters", f"Name=vpc-id,Values={vpc_id}",
                "--region", self.region,
                "--query", "SecurityGroups[0].GroupId",
                "--output", "text",
            )
        group_id = require(result.stdout, SECURITY_GROUP_ID, "security group id")

        port = self.aws.notebook_port
        with spinner(f"Allowing inbound access on port {port}..."):
            try:
                await self._aws(
                    "ec2", "authorize-security-group-ingress",
                    "--group-id", group_id,
                    "--protocol", "tcp",
                    "--port", str(port),
                    "--cidr", "0.0.0.0/0",
                    "--region", self.region,
                )
            except ProcessError as e:
                if not e.matches("InvalidPermission.Duplicate"):
                    raise
        print_success(f"Inbound access allowed on {port}")

        return ClusterTopology(subnet_ids=(subnets[0], subnets[1]), security_group_id=group_id)

    def write_descriptors(self, topology: ClusterTopology) -> None:
        """Render the compose and ecs-params documents into the deploy dir."""
        compose = render_compose(
            self.machine_name, self.image, self.login_token, self.aws.notebook_port
        )
        ecs_params = render_ecs_params(
            topology, self.aws.execution_role, self.aws.cpu_limit, self.aws.mem_limit
        )
        self.deploy_dir.mkdir(parents=True, exist_ok=True)
        (self.deploy_dir / COMPOSE_FILE).write_text(compose)
        (self.deploy_dir / ECS_PARAMS_FILE).write_text(ecs_params)

        print_info(f"Using {ECS_PARAMS_FILE}:")
        console.print(ecs_params, markup=False, highlight=False)

    def copy_descriptors(self) -> None:
        """Copy the generated documents into the working directory."""
        for name in (COMPOSE_FILE, ECS_PARAMS_FILE):
            source = self.deploy_dir / name
            if source.exists():
                shutil.copy(source, self.context.workdir / name)
            else:
                print_warning(f"{source} not found; was this deployment created with nbdeploy?")

    async def boot_service(self) -> str:
        """Start the compose service and return its public IP."""
        name = self.machine_name
        self.copy_descriptors()
        compose_args = [
            "compose", "--project-name", name,
            "--file", COMPOSE_FILE,
        ]

        with spinner("Booting JupyterLab instance..."):
            await self._ecs_cli(
                *compose_args,
                "service", "up",
                "--ecs-params", ECS_PARAMS_FILE,
                "--cluster-config", self.aws.cluster_config,
            )
            result = await self._ecs_cli(
                *compose_args,
                "service", "ps",
                "--ecs-params", ECS_PARAMS_FILE,
                "--cluster-config", self.aws.cluster_config,
            )
        return require(result.stdout, IPV4, "task IP address")

    async def _aws(self, *args: str) -> ProcessResult:
        return await self.runner.run("aws", list(args), lambda _chunk: None)

    async def _ecs_cli(self, *args: str) -> ProcessResult:
        return await self.runner.run(
            "ecs-cli", list(args), fatal_stderr=ECS_CLI_ERRORS, cwd=self.context.workdir
        )
