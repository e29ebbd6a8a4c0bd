"""Best-effort usage tracking."""

import getpass
import platform
from typing import Any

import httpx

from .models.config import TelemetryConfig
from .utils.logging import get_logger

logger = get_logger(__name__)

EVENT_PREFIX = "Jupyter Op - "


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


class Telemetry:
    """Send workflow events to the tracking endpoint.

    Tracking must never block or fail a deployment: when disabled or
    unconfigured ``track`` does nothing, and transport errors are logged
    and dropped.
    """

    def __init__(
        self,
        config: TelemetryConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize telemetry.

        Args:
            config: Telemetry settings
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self._transport = transport

    @property
    def active(self) -> bool:
        """Whether events are actually sent."""
        return self.config.enabled and bool(self.config.endpoint)

    def build_event(
        self,
        event: str,
        *,
        success: bool | None = None,
        error: str | None = None,
    ) -> dict[str, Any]:
        """Build the JSON payload for an event."""
        payload: dict[str, Any] = {
            "event": f"{EVENT_PREFIX}{event}",
            "user": _current_user(),
            "os": platform.system().lower(),
        }
        if error is not None:
            payload["error"] = error
        elif success is not None:
            payload["success"] = success
        return payload

    async def track(
        self,
        event: str,
        *,
        success: bool | None = None,
        error: str | None = None,
    ) -> None:
        """Record an event.

        Args:
            event: Event name, e.g. "AWS Destroy"
            success: Set on successful completion
            error: Error text on failure
        """
        payload = self.build_event(event, success=success, error=error)
        logger.debug("telemetry.event", name=payload["event"], error=error)
        if not self.active:
            return

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.config.endpoint, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("telemetry.failed", error=str(e))
