"""Configuration models."""

from pathlib import Path

from pydantic import BaseModel, Field


class TelemetryConfig(BaseModel):
    """Usage tracking preferences."""

    enabled: bool = True
    endpoint: str | None = None
    timeout: float = 5.0


class LoggingConfig(BaseModel):
    """Log output preferences."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    format: str = Field(default="console", pattern="^(console|json)$")


class DigitalOceanConfig(BaseModel):
    """DigitalOcean deployment settings."""

    published_port: int = 80


class AWSConfig(BaseModel):
    """AWS ECS deployment settings."""

    # None means <config_dir>/aws
    credentials_dir: Path | None = None
    cluster_config: str = "jupyter-config"
    instance_role: str = "jupyter-profile"
    execution_role: str = "ecsTaskExecutionRole"
    execution_policy_arn: str = (
        "arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"
    )
    notebook_port: int = 8888
    cpu_limit: int = 256
    mem_limit: str = "0.5GB"
    cleanup_credentials: bool = True


class GCPConfig(BaseModel):
    """Google Cloud deployment settings."""

    image_project: str = "deeplearning-platform-release"
    accelerator: str = "type=nvidia-tesla-v100,count=1"
    poll_interval: float = Field(default=5.0, gt=0)
    poll_attempts: int = Field(default=120, ge=1)


class Settings(BaseModel):
    """Main settings model, stored in config.yaml."""

    machine_name: str = Field(default="jupyter", pattern="^[a-z][-a-z0-9]*$")
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    digitalocean: DigitalOceanConfig = Field(default_factory=DigitalOceanConfig)
    aws: AWSConfig = Field(default_factory=AWSConfig)
    gcp: GCPConfig = Field(default_factory=GCPConfig)
