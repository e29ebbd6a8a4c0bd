"""Pattern extraction from CLI output.

The provider CLIs report the identifiers we need (addresses, subnet and
security group ids, proxy hostnames) only as human readable text, so each
value has a named pattern here. ``extract`` returns None when the pattern
is absent; ``require`` turns that into a ``ScrapeError``.
"""

import re

from .exceptions import ScrapeError

IPV4 = re.compile(r"\b(\d{1,3}(?:\.\d{1,3}){3})\b")

# ecs-cli up: "Subnet created: subnet-0a1b2c3d4e5f67890"
SUBNET_ID = re.compile(r"Subnet created:\s*(subnet-[0-9a-f]+)", re.IGNORECASE)

# ecs-cli up: "VPC created: vpc-0a1b2c3d4e5f67890"
VPC_ID = re.compile(r"VPC created:\s*(vpc-[0-9a-f]+)", re.IGNORECASE)

SECURITY_GROUP_ID = re.compile(r"\b(sg-[0-9a-f]+)\b")

# gcloud compute instances describe, metadata item "proxy-url"
PROXY_HOST = re.compile(r"value:\s*(\S+\.notebooks\.googleusercontent\.com)")

AUTH_URL = re.compile(r"https?://[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b[-a-zA-Z0-9()@:%_+.~#?&/=]*")

_EXPORT = re.compile(r"""^export\s+([A-Za-z_][A-Za-z0-9_]*)=["']?(.*?)["']?\s*$""")


def extract(text: str, pattern: re.Pattern[str]) -> str | None:
    """Return the first match of a pattern in text.

    Args:
        text: Command output to search
        pattern: Compiled pattern; its first group is returned when it has one

    Returns:
        The matched value, or None if the pattern does not occur
    """
    match = pattern.search(text)
    if match is None:
        return None
    return match.group(1) if pattern.groups else match.group(0)


def extract_all(text: str, pattern: re.Pattern[str]) -> list[str]:
    """Return every match of a pattern in order of appearance, without duplicates."""
    found: list[str] = []
    for match in pattern.finditer(text):
        value = match.group(1) if pattern.groups else match.group(0)
        if value not in found:
            found.append(value)
    return found


def require(text: str, pattern: re.Pattern[str], what: str) -> str:
    """Like extract, but raise ScrapeError when nothing matches."""
    value = extract(text, pattern)
    if value is None:
        raise ScrapeError(what, text)
    return value


def parse_env_exports(text: str) -> dict[str, str]:
    """Parse ``export KEY="value"`` lines (docker-machine env) into a dict."""
    values = {}
    for line in text.splitlines():
        match = _EXPORT.match(line.strip())
        if match:
            values[match.group(1)] = match.group(2)
    return values
