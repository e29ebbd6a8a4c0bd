"""Operator prompts and the choices they offer."""

import re
from collections.abc import Callable
from getpass import getpass

from .exceptions import ArgumentError
from .utils import confirm, print_error, prompt, select_menu

Validator = Callable[[str], str | None]

DIGITALOCEAN_SIZES = [
    "s-1vcpu-1gb",
    "s-1vcpu-2gb",
    "s-2vcpu-2gb",
    "s-2vcpu-4gb",
    "s-4vcpu-8gb",
    "s-8vcpu-16gb",
    "g-2vcpu-8gb",
    "g-4vcpu-16gb",
    "c-2",
    "c-4",
    "m-2vcpu-16gb",
]

AWS_REGIONS = [
    "us-east-2",
    "us-east-1",
    "us-west-1",
    "us-west-2",
    "ap-east-1",
    "ap-south-1",
    "ap-northeast-3",
    "ap-northeast-2",
    "ap-northeast-1",
    "ap-southeast-2",
    "ap-southeast-1",
    "ca-central-1",
    "cn-north-1",
    "cn-northwest-1",
    "eu-central-1",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "eu-north-1",
    "me-south-1",
    "sa-east-1",
    "us-gov-east-1",
    "us-gov-west-1",
]

GCP_ZONES = [
    "us-west1-a", "us-west1-b", "us-west1-c",
    "us-west2-a", "us-west2-b", "us-west2-c",
    "us-east1-b", "us-east1-c", "us-east1-d",
    "us-east4-a", "us-east4-b", "us-east4-c",
    "us-central1-a", "us-central1-b", "us-central1-c", "us-central1-f",
    "southamerica-east1-a", "southamerica-east1-b", "southamerica-east1-c",
    "northamerica-northeast1-a", "northamerica-northeast1-b", "northamerica-northeast1-c",
    "europe-north1-a", "europe-north1-b", "europe-north1-c",
    "europe-west1-b", "europe-west1-c", "europe-west1-d",
    "europe-west2-a", "europe-west2-b", "europe-west2-c",
    "europe-west3-a", "europe-west3-b", "europe-west3-c",
    "europe-west4-a", "europe-west4-b", "europe-west4-c",
    "europe-west6-a", "europe-west6-b", "europe-west6-c",
    "australia-southeast1-a", "australia-southeast1-b", "australia-southeast1-c",
    "asia-southeast1-a", "asia-southeast1-b", "asia-southeast1-c",
    "asia-south1-a", "asia-south1-b", "asia-south1-c",
    "asia-northeast1-a", "asia-northeast1-b", "asia-northeast1-c",
    "asia-northeast2-a", "asia-northeast2-b", "asia-northeast2-c",
    "asia-east1-a", "asia-east1-b", "asia-east1-c",
    "asia-east2-a", "asia-east2-b", "asia-east2-c",
]

_PROJECT_ID = re.compile(r"^[a-z][-a-z0-9]{4,28}[a-z0-9]$")


def require_value(error: str) -> Validator:
    """Build a validator rejecting empty input with the given message."""

    def _validate(value: str) -> str | None:
        return None if value.strip() else error

    return _validate


def validate_project_id(value: str) -> str | None:
    """Check a Google Cloud project id.

    Project ids are 6 to 30 lowercase letters, digits or hyphens, start with
    a letter and do not end with a hyphen.
    """
    if _PROJECT_ID.match(value.strip()):
        return None
    return "You must provide a valid Google Cloud project id"


class Prompter:
    """Ask the operator for input.

    Workflows only talk to the operator through this class so that tests
    can substitute scripted answers.
    """

    def select(self, title: str, choices: list[str]) -> str:
        """Show a single-select menu and return the chosen entry.

        Raises:
            ArgumentError: If the operator cancels the menu
        """
        idx = select_menu(choices, f"  {title}")
        if idx is None:
            raise ArgumentError("Selection cancelled")
        return choices[idx]

    def text(
        self,
        message: str,
        validate: Validator | None = None,
        default: str | None = None,
    ) -> str:
        """Ask for a line of text, re-asking until it validates."""
        while True:
            value = prompt(message, default=default).strip()
            error = validate(value) if validate else None
            if error is None:
                return value
            print_error(error)

    def secret(self, message: str, error: str) -> str:
        """Ask for a secret without echoing it; empty input is re-asked."""
        while not (value := getpass(f"{message}: ").strip()):
            print_error(error)
        return value

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        return confirm(message, default=default)
