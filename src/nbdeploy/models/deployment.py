"""Deployment request and result models."""

from enum import Enum
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


class Action(str, Enum):
    """What to do with the notebook server."""

    CREATE = "Create"
    DESTROY = "Destroy"


class Provider(str, Enum):
    """Supported cloud providers."""

    DIGITALOCEAN = "DigitalOcean"
    GOOGLE_CLOUD = "Google Cloud"
    AMAZON = "Amazon Web Services"

    @property
    def cache_key(self) -> str | None:
        """Credential store key, or None for providers that log in interactively."""
        return _CACHE_KEYS.get(self)


_CACHE_KEYS = {
    Provider.DIGITALOCEAN: "DO",
    Provider.AMAZON: "AWS",
}


class DeploymentRequest(BaseModel):
    """One invocation's action and provider."""

    model_config = ConfigDict(frozen=True)

    action: Action
    provider: Provider


class ProviderCredentials(BaseModel):
    """Secrets for a provider, entered by the operator or loaded from cache."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    fields: dict[str, str] = Field(default_factory=dict)

    def get(self, name: str) -> str:
        return self.fields.get(name, "")


class ClusterTopology(BaseModel):
    """Network identifiers scraped while bringing up an ECS cluster."""

    model_config = ConfigDict(frozen=True)

    subnet_ids: tuple[str, str]
    security_group_id: str


class ExternalEndpoint(BaseModel):
    """Where the running notebook can be reached."""

    model_config = ConfigDict(frozen=True)

    host: str
    token: str | None = None
    scheme: str = "http"
    port: int | None = None

    @property
    def url(self) -> str:
        """Full browser URL, including the login token when there is one."""
        netloc = f"{self.host}:{self.port}" if self.port else self.host
        if self.token:
            return f"{self.scheme}://{netloc}/?token={quote(self.token, safe='')}"
        return f"{self.scheme}://{netloc}"
