"""Shared constants for local-container-endpoints.

Centralizes the well-known addresses, Docker label keys and ECS defaults so
that configuration, resolution and payload assembly agree on them.

Usage:
    from src.core.constants import DEFAULT_ENDPOINT_IP, COMPOSE_PROJECT_LABEL

Note: Most of these are defaults. They can be overridden via environment
variables, see src.core.config.Settings:
    - ECS_LOCAL_ENDPOINT_IP → overrides DEFAULT_ENDPOINT_IP
    - ECS_LOCAL_CLUSTER → overrides DEFAULT_CLUSTER
"""

# =============================================================================
# Network Conventions
# =============================================================================
# The link-local address ECS agents serve metadata and credentials on.
# The endpoints container is expected to own it on the task network.
DEFAULT_ENDPOINT_IP = "169.254.170.2"

# Docker renders container names as "/name" in list responses
DOCKER_NAME_PREFIX = "/"


# =============================================================================
# Docker Labels
# =============================================================================
# Containers started by the same compose project make up one local "task"
COMPOSE_PROJECT_LABEL = "com.docker.compose.project"


# =============================================================================
# ECS Defaults
# =============================================================================
DEFAULT_CLUSTER = "ecs-local-cluster"
DEFAULT_REGION = "us-west-2"
DEFAULT_ACCOUNT_ID = "111111111111"
DEFAULT_TASK_REVISION = "1"
CONTAINER_TYPE_NORMAL = "NORMAL"

STATUS_RUNNING = "RUNNING"
STATUS_CREATED = "CREATED"
STATUS_STOPPED = "STOPPED"


# =============================================================================
# Service Defaults
# =============================================================================

DEFAULT_SERVICE_NAME = "local-container-endpoints"
DEFAULT_PORT = 80
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_DOCKER_TIMEOUT = 10
