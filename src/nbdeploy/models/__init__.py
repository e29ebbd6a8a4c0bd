"""Data models."""

from .config import (
    AWSConfig,
    DigitalOceanConfig,
    GCPConfig,
    LoggingConfig,
    Settings,
    TelemetryConfig,
)
from .deployment import (
    Action,
    ClusterTopology,
    DeploymentRequest,
    ExternalEndpoint,
    Provider,
    ProviderCredentials,
)

__all__ = [
    "AWSConfig",
    "Action",
    "ClusterTopology",
    "DeploymentRequest",
    "DigitalOceanConfig",
    "ExternalEndpoint",
    "GCPConfig",
    "LoggingConfig",
    "Provider",
    "ProviderCredentials",
    "Settings",
    "TelemetryConfig",
]
