"""Main CLI application."""

import asyncio

import typer

from .. import __version__
from ..config import ConfigManager
from ..exceptions import ArgumentError, NbDeployError
from ..models import Action, DeploymentRequest, Provider
from ..prompts import Prompter
from ..providers import WorkflowContext, get_workflow
from ..utils import StrictOptionGroup, console, print_cancelled, print_error
from ..utils.logging import configure_logging
from . import config

GREETING = "\n👋  Welcome to the JupyterLab deployer 👋\n"

app = typer.Typer(
    name="nbdeploy",
    help="Create or destroy a JupyterLab server on DigitalOcean, AWS or Google Cloud",
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=StrictOptionGroup,
)

app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: Whether version flag was set
    """
    if value:
        console.print(f"nbdeploy version {__version__}")
        raise typer.Exit()


def resolve_request(
    create: bool,
    destroy: bool,
    providers: list[Provider],
) -> DeploymentRequest | None:
    """Turn action and provider flags into a request.

    Args:
        create: --create was given
        destroy: --destroy was given
        providers: Providers selected by flag

    Returns:
        The request, or None when no flags were given and the operator
        should be asked instead

    Raises:
        ArgumentError: If only one half of the pair is given, or a half is given twice
    """
    if not (create or destroy or providers):
        return None
    if create and destroy:
        raise ArgumentError("Specify only one of --create or --destroy")
    if len(providers) > 1:
        raise ArgumentError("Specify only one provider [-do | -gcp | -aws]")
    if not (create or destroy) or not providers:
        raise ArgumentError(
            "Must specify one of --create or --destroy as well as a provider [-do | -gcp | -aws]"
        )
    action = Action.CREATE if create else Action.DESTROY
    return DeploymentRequest(action=action, provider=providers[0])


def ask_request(prompter: Prompter) -> DeploymentRequest:
    """Ask the operator for the action and provider."""
    action = prompter.select(
        "Are you looking to create or destroy a JupyterLab server?",
        [a.value for a in Action],
    )
    provider = prompter.select(
        "Which cloud provider would you like to use?",
        [p.value for p in Provider],
    )
    return DeploymentRequest(action=Action(action), provider=Provider(provider))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    create: bool = typer.Option(False, "--create", "-c", help="Create a JupyterLab server"),
    destroy: bool = typer.Option(False, "--destroy", "-d", help="Destroy the JupyterLab server"),
    digitalocean: bool = typer.Option(False, "--digitalocean", "-do", help="Use DigitalOcean"),
    google: bool = typer.Option(False, "--google", "-gcp", help="Use Google Cloud"),
    amazon: bool = typer.Option(False, "--amazon", "--aws", "-aws", help="Use Amazon Web Services"),
    build: bool = typer.Option(False, "--build", hidden=True),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """nbdeploy - JupyterLab servers on DigitalOcean, AWS or Google Cloud.

    Without flags, the action and provider are asked interactively.

    Examples:
        nbdeploy -c -do       # Create a server on DigitalOcean
        nbdeploy -d -aws      # Destroy the AWS deployment
        nbdeploy config show  # Show settings and cached credentials
    """
    if ctx.invoked_subcommand is not None:
        return

    flagged = [
        provider
        for provider, selected in (
            (Provider.DIGITALOCEAN, digitalocean),
            (Provider.GOOGLE_CLOUD, google),
            (Provider.AMAZON, amazon),
        )
        if selected
    ]

    config_manager = ConfigManager()
    prompter = Prompter()

    try:
        request = resolve_request(create, destroy, flagged)
        settings = config_manager.get()
        configure_logging("DEBUG" if verbose else settings.logging.level, settings.logging.format)

        console.print(GREETING)
        if request is None:
            request = ask_request(prompter)
        console.print(f"[bold]{request.action.value}[/bold] on [bold]{request.provider.value}[/bold]\n")

        context = WorkflowContext(config_manager, prompter=prompter)
        workflow = get_workflow(request.provider, context)
        succeeded = asyncio.run(workflow.run(request.action))
    except ArgumentError as e:
        print_error(str(e))
        raise typer.Exit(2)
    except NbDeployError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        print_cancelled()
        raise typer.Exit(1)

    if not succeeded:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
