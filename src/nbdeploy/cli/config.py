"""Configuration management commands for nbdeploy."""

import typer
import yaml
from rich.panel import Panel

from ..config import ConfigManager, CredentialStore
from ..config.credentials import PROVIDER_FILES
from ..models import Provider
from ..exceptions import NbDeployError
from ..utils import (
    confirm,
    console,
    create_table,
    print_cancelled,
    print_error,
    print_info,
    print_success,
)
from ..utils.helpers import ordered_group

app = typer.Typer(
    help="Manage nbdeploy settings and cached credentials",
    no_args_is_help=True,
    cls=ordered_group(["show", "set", "path", "forget", "reset"]),
)

FORGET_CHOICES = {"do": Provider.DIGITALOCEAN, "aws": Provider.AMAZON, "all": None}


def _parse_value(raw: str) -> object:
    """Interpret a command line value the way YAML would (true, 5, 0.5, text)."""
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


@app.command("show")
def show_config() -> None:
    """Show current settings and which credentials are cached."""
    config_manager = ConfigManager()

    try:
        settings = config_manager.get()
    except NbDeployError as e:
        print_error(str(e))
        raise typer.Exit(1)

    source = str(config_manager.config_file) if config_manager.exists() else "defaults"
    body = yaml.safe_dump(settings.model_dump(mode="json"), default_flow_style=False).rstrip()
    console.print(Panel(body, title=f"Settings ({source})", border_style="blue"))

    store = CredentialStore(config_manager.credentials_dir)
    rows = []
    for provider, cached in store.load().items():
        status = "[green]cached[/green]" if cached.fields else "[dim]none[/dim]"
        rows.append(
            [
                provider.value,
                PROVIDER_FILES[provider.cache_key],
                status,
                ", ".join(sorted(cached.fields)) or "-",
            ]
        )
    console.print(
        create_table(
            title="Cached credentials",
            columns=[("Provider", "cyan"), ("File", ""), ("Status", ""), ("Fields", "dim")],
            rows=rows,
        )
    )


@app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Dotted setting name, e.g. gcp.poll_interval"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change a setting."""
    config_manager = ConfigManager()

    try:
        config_manager.set_value(key, _parse_value(value))
    except NbDeployError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"{key} = {value}")


@app.command("path")
def config_path() -> None:
    """Print the configuration directory."""
    console.print(str(ConfigManager().config_dir))


@app.command("forget")
def forget_credentials(
    provider: str = typer.Argument("all", help="Credentials to drop: do, aws or all"),
    yes: bool = typer.Option(False, "--yes", "-y", is_flag=True, help="Skip confirmation"),
) -> None:
    """Delete cached provider credentials."""
    choice = provider.lower()
    if choice not in FORGET_CHOICES:
        print_error(f"Unknown provider '{provider}'. Choose one of: {', '.join(FORGET_CHOICES)}")
        raise typer.Exit(1)

    if not yes and not confirm(f"Delete cached credentials for {choice}?", default=False):
        print_cancelled()
        raise typer.Exit()

    store = CredentialStore(ConfigManager().credentials_dir)
    removed = store.forget(FORGET_CHOICES[choice])
    if removed:
        print_success(f"Removed cached credentials: {', '.join(p.value for p in removed)}")
    else:
        print_info("No cached credentials to remove")


@app.command("reset")
def reset_config(
    yes: bool = typer.Option(False, "--yes", "-y", is_flag=True, help="Skip confirmation"),
) -> None:
    """Restore default settings."""
    if not yes and not confirm("Reset all settings to defaults?", default=False):
        print_cancelled()
        raise typer.Exit()

    ConfigManager().reset()
    print_success("Settings reset to defaults")
