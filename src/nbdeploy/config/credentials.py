"""Cached provider credentials.

Each provider that takes API keys (DigitalOcean, AWS) gets a small JSON
file in the credentials directory so a later run can offer to reuse them
instead of asking again. Secret values are age-encrypted at rest.
"""

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING

from ..crypto import decrypt, encrypt
from ..models import Provider, ProviderCredentials
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from ..prompts import Prompter

logger = get_logger(__name__)

PROVIDER_FILES = {
    "DO": "do.json",
    "AWS": "aws.json",
}

CACHED_PROVIDERS = [provider for provider in Provider if provider.cache_key in PROVIDER_FILES]


class CredentialStore:
    """Read and write cached provider credentials."""

    def __init__(self, credentials_dir: Path) -> None:
        """Initialize credential store.

        Args:
            credentials_dir: Directory holding do.json and aws.json
        """
        self.credentials_dir = credentials_dir

    def path_for(self, provider: Provider) -> Path:
        """Return the cache file path for a provider.

        Raises:
            ValueError: If the provider logs in interactively and caches nothing
        """
        if provider.cache_key not in PROVIDER_FILES:
            raise ValueError(f"{provider.value} credentials are not cached")
        return self.credentials_dir / PROVIDER_FILES[provider.cache_key]

    def load(self) -> dict[Provider, ProviderCredentials]:
        """Load every cached credential set.

        Missing directory or files yield empty credentials, never an error.
        """
        return {provider: self.load_provider(provider) for provider in CACHED_PROVIDERS}

    def load_provider(self, provider: Provider) -> ProviderCredentials:
        """Load the cached credentials for one provider (empty if there are none)."""
        path = self.path_for(provider)
        if not path.exists():
            return ProviderCredentials(provider=provider)
        try:
            data = json.loads(path.read_text())
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            fields = {
                name: decrypt(str(value), self.credentials_dir)
                for name, value in data.items()
            }
        except Exception as e:
            logger.warning("credentials.load_failed", path=str(path), error=str(e))
            return ProviderCredentials(provider=provider)
        return ProviderCredentials(provider=provider, fields=fields)

    def save(self, credentials: ProviderCredentials) -> None:
        """Write a provider's credentials to its cache file.

        Write failures are logged and swallowed; a deployment never fails
        because its credentials could not be cached.

        Args:
            credentials: Provider and its named secret values
        """
        path = self.path_for(credentials.provider)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            os.chmod(path.parent, 0o700)
            data = {
                name: encrypt(value, self.credentials_dir)
                for name, value in credentials.fields.items()
            }
            path.write_text(json.dumps(data))
            os.chmod(path, 0o600)
        except Exception as e:
            logger.error("credentials.save_failed", path=str(path), error=str(e))

    def forget(self, provider: Provider | None = None) -> list[Provider]:
        """Delete cached credentials.

        Args:
            provider: Provider to forget, or None for all of them

        Returns:
            Providers whose cache file was removed
        """
        providers = CACHED_PROVIDERS if provider is None else [provider]
        removed = []
        for item in providers:
            path = self.path_for(item)
            if path.exists():
                path.unlink()
                removed.append(item)
        return removed


def should_reuse(cached: ProviderCredentials, prompter: "Prompter") -> bool:
    """Ask whether to reuse cached credentials.

    Returns False without prompting when nothing is cached for the provider.
    """
    if not cached.fields:
        return False
    logger.debug("credentials.cached", provider=cached.provider.cache_key, fields=sorted(cached.fields))
    return prompter.confirm("Would you like to use the same credentials as your last run?")
