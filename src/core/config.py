"""Core configuration module for local-container-endpoints.

Loads settings from ECS_LOCAL_* prefixed environment variables using
Pydantic Settings. A few fields also accept the unprefixed names the ECS
local tooling has always used (CONTAINER_INSTANCE_TAGS, TASK_TAGS,
AWS_REGION, ...), listed in each field's AliasChoices.
"""

import ipaddress
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from src.core.constants import (
    DEFAULT_ACCOUNT_ID,
    DEFAULT_CLUSTER,
    DEFAULT_DOCKER_TIMEOUT,
    DEFAULT_ENDPOINT_IP,
    DEFAULT_ENVIRONMENT,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    DEFAULT_REGION,
    DEFAULT_SERVICE_NAME,
    DEFAULT_TASK_REVISION,
)


class Settings(BaseSettings):
    """Application settings loaded from the environment.

    Example: ECS_LOCAL_PORT=8080, TASK_TAGS="team=core,stage=dev"

    Attributes:
        service_name: Service identifier for logging and tracing.
        port: HTTP port (1-65535). Default: 80.
        host: Bind address. Default: 0.0.0.0.
        environment: Deployment environment. Default: development.
        log_level: Logging verbosity. Default: INFO.
        container_instance_tags: Raw "k=v,k=v" container instance tags.
        task_tags: Raw "k=v,k=v" task tags.
        cluster: Cluster name or ARN reported in task metadata.
        region: AWS region used when deriving the task ARN.
        account_id: AWS account used when deriving the task ARN.
        task_arn: Explicit task ARN; derived per task when unset.
        task_revision: Task definition revision reported in task metadata.
        self_identifier: ID or name of this service's own container.
        endpoint_ip: Well-known address this service listens on.
        docker_base_url: Docker daemon URL; SDK environment when unset.
        docker_timeout: Docker API timeout in seconds.
        tracing_enabled: Export OpenTelemetry spans.
        otlp_endpoint: OTLP gRPC endpoint for spans.
    """

    # =========================================================================
    # Core Settings
    # =========================================================================
    service_name: str = Field(
        default=DEFAULT_SERVICE_NAME,
        description="Service name for identification",
    )
    port: int = Field(
        default=DEFAULT_PORT,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("ECS_LOCAL_PORT", "ECS_LOCAL_METADATA_PORT"),
        description="HTTP server port",
    )
    host: str = Field(
        default=DEFAULT_HOST,
        description="HTTP server bind address",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default=DEFAULT_ENVIRONMENT,
        description="Deployment environment",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Tags
    # =========================================================================
    container_instance_tags: str = Field(
        default="",
        validation_alias=AliasChoices(
            "ECS_LOCAL_CONTAINER_INSTANCE_TAGS", "CONTAINER_INSTANCE_TAGS"
        ),
        description="Comma-separated key=value container instance tags",
    )
    task_tags: str = Field(
        default="",
        validation_alias=AliasChoices("ECS_LOCAL_TASK_TAGS", "TASK_TAGS"),
        description="Comma-separated key=value task tags",
    )

    # =========================================================================
    # Task Identity
    # =========================================================================
    cluster: str = Field(
        default=DEFAULT_CLUSTER,
        validation_alias=AliasChoices("ECS_LOCAL_CLUSTER", "CLUSTER_ARN"),
        description="Cluster name or ARN reported in task metadata",
    )
    region: str = Field(
        default=DEFAULT_REGION,
        validation_alias=AliasChoices(
            "ECS_LOCAL_REGION", "AWS_REGION", "AWS_DEFAULT_REGION"
        ),
        description="AWS region used in derived ARNs",
    )
    account_id: str = Field(
        default=DEFAULT_ACCOUNT_ID,
        description="AWS account ID used in derived ARNs",
    )
    task_arn: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ECS_LOCAL_TASK_ARN", "TASK_ARN"),
        description="Explicit task ARN (derived from the task family when unset)",
    )
    task_revision: str = Field(
        default=DEFAULT_TASK_REVISION,
        description="Task definition revision reported in task metadata",
    )

    # =========================================================================
    # Container Resolution
    # =========================================================================
    self_identifier: str | None = Field(
        default=None,
        description="ID or name of the endpoints container (hostname when unset)",
    )
    endpoint_ip: str = Field(
        default=DEFAULT_ENDPOINT_IP,
        description="Address the endpoints container owns on the task network",
    )

    # =========================================================================
    # Docker
    # =========================================================================
    docker_base_url: str | None = Field(
        default=None,
        description="Docker daemon URL (e.g. unix:///var/run/docker.sock)",
    )
    docker_timeout: int = Field(
        default=DEFAULT_DOCKER_TIMEOUT,
        ge=1,
        description="Docker API timeout in seconds",
    )

    # =========================================================================
    # Tracing
    # =========================================================================
    tracing_enabled: bool = Field(
        default=False,
        description="Export OpenTelemetry spans",
    )
    otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP exporter endpoint (e.g. http://localhost:4317)",
    )

    # =========================================================================
    # Pydantic v2 Model Configuration
    # =========================================================================
    model_config = {
        "env_prefix": "ECS_LOCAL_",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level to uppercase.

        Raises:
            ValueError: If log level is not valid.
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized not in valid_levels:
            msg = f"log_level must be one of {valid_levels}, got '{v}'"
            raise ValueError(msg)
        return normalized

    @field_validator("endpoint_ip")
    @classmethod
    def validate_endpoint_ip(cls, v: str) -> str:
        """Reject values that are not a literal IP address."""
        try:
            return str(ipaddress.ip_address(v.strip()))
        except ValueError as exc:
            msg = f"endpoint_ip must be an IP address, got '{v}'"
            raise ValueError(msg) from exc

    @field_validator("self_identifier", "task_arn", "docker_base_url", "otlp_endpoint")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat empty environment values as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """Get singleton Settings instance.

    Returns:
        Cached Settings instance.
    """
    return Settings()
