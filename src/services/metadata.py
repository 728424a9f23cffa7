"""Metadata Service: tags and ECS-shaped metadata payloads.

The two tag maps describe the container instance and the task this service
emulates. They come from configuration, are parsed once at startup and
never change afterwards; a malformed list stops startup instead of
surfacing on every request.

Payload builders turn a resolved Container (plus the snapshot it came from)
into the task metadata v3 JSON shapes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from src.core.constants import (
    COMPOSE_PROJECT_LABEL,
    CONTAINER_TYPE_NORMAL,
    DEFAULT_ACCOUNT_ID,
    DEFAULT_CLUSTER,
    DEFAULT_REGION,
    DEFAULT_TASK_REVISION,
    STATUS_CREATED,
    STATUS_RUNNING,
    STATUS_STOPPED,
)
from src.core.exceptions import TagParseError
from src.core.logging import get_logger
from src.services.resolver import Container


if TYPE_CHECKING:
    from src.core.config import Settings


logger = get_logger(__name__)

_KNOWN_STATUS = {
    "running": STATUS_RUNNING,
    "created": STATUS_CREATED,
}


# =============================================================================
# Tag Parsing
# =============================================================================


def parse_tags(raw: str | None, setting: str | None = None) -> dict[str, str]:
    """Parse a "key=value,key=value" list into a dict.

    Entries are split on the first "=" only, so values may contain "=".
    Later duplicates overwrite earlier ones. Empty input gives an empty
    dict.

    Args:
        raw: The raw tag list.
        setting: Name of the setting the list came from, for errors.

    Returns:
        Mapping of tag key to tag value.

    Raises:
        TagParseError: An entry has no "=" or an empty key.
    """
    tags: dict[str, str] = {}
    if not raw:
        return tags

    for entry in raw.split(","):
        key, sep, value = entry.partition("=")
        if not sep or not key:
            msg = f"Invalid tag '{entry}': expected key=value"
            raise TagParseError(msg, entry=entry, setting=setting)
        tags[key] = value
    return tags


# =============================================================================
# Metadata Service
# =============================================================================


class MetadataService:
    """Process-wide tag state and metadata payload assembly.

    Attributes:
        container_instance_tags: Read-only container instance tags.
        task_tags: Read-only task tags.
        cluster: Cluster reported in task metadata.
        task_revision: Revision reported in task metadata.
    """

    def __init__(
        self,
        container_instance_tags: str | None = "",
        task_tags: str | None = "",
        cluster: str = DEFAULT_CLUSTER,
        region: str = DEFAULT_REGION,
        account_id: str = DEFAULT_ACCOUNT_ID,
        task_arn: str | None = None,
        task_revision: str = DEFAULT_TASK_REVISION,
    ) -> None:
        """Parse both tag lists and freeze them.

        Raises:
            TagParseError: Either tag list is malformed.
        """
        self.container_instance_tags: Mapping[str, str] = MappingProxyType(
            parse_tags(container_instance_tags, setting="container_instance_tags")
        )
        self.task_tags: Mapping[str, str] = MappingProxyType(
            parse_tags(task_tags, setting="task_tags")
        )
        self.cluster = cluster
        self.task_revision = task_revision
        self._region = region
        self._account_id = account_id
        self._task_arn = task_arn

        logger.info(
            "Metadata service initialized",
            container_instance_tags=len(self.container_instance_tags),
            task_tags=len(self.task_tags),
            cluster=cluster,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> MetadataService:
        """Build the service from application settings."""
        return cls(
            container_instance_tags=settings.container_instance_tags,
            task_tags=settings.task_tags,
            cluster=settings.cluster,
            region=settings.region,
            account_id=settings.account_id,
            task_arn=settings.task_arn,
            task_revision=settings.task_revision,
        )

    # =========================================================================
    # Task Membership
    # =========================================================================

    @staticmethod
    def task_family(container: Container) -> str:
        """Compose project name, or the container name if unlabelled."""
        return container.labels.get(COMPOSE_PROJECT_LABEL) or container.name

    @staticmethod
    def task_containers(
        container: Container, containers: Sequence[Container]
    ) -> list[Container]:
        """Containers belonging to the same task as ``container``.

        A task is a compose project; a container outside any project is a
        task of its own.
        """
        project = container.labels.get(COMPOSE_PROJECT_LABEL)
        if not project:
            return [container]
        members = [c for c in containers if c.labels.get(COMPOSE_PROJECT_LABEL) == project]
        return members or [container]

    def task_arn(self, family: str) -> str:
        if self._task_arn:
            return self._task_arn
        return f"arn:aws:ecs:{self._region}:{self._account_id}:task/{self.cluster}/{family}"

    # =========================================================================
    # Payloads
    # =========================================================================

    @staticmethod
    def container_metadata(container: Container) -> dict[str, Any]:
        """Container metadata in the task metadata v3 shape."""
        created_at = (
            datetime.fromtimestamp(container.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z")
        )
        return {
            "DockerId": container.id,
            "Name": container.name,
            "DockerName": container.name,
            "Image": container.image,
            "ImageID": container.image_id,
            "Labels": dict(container.labels),
            "DesiredStatus": STATUS_RUNNING,
            "KnownStatus": _KNOWN_STATUS.get(container.state.lower(), STATUS_STOPPED),
            "CreatedAt": created_at,
            "Type": CONTAINER_TYPE_NORMAL,
            "Networks": [
                {"NetworkMode": network, "IPv4Addresses": [ip]}
                for network, ip in sorted(container.networks.items())
            ],
        }

    def task_metadata(
        self, container: Container, containers: Sequence[Container]
    ) -> dict[str, Any]:
        """Task metadata for the task ``container`` belongs to.

        Both tag maps are attached as-is; they are not derived from the
        resolved container.
        """
        family = self.task_family(container)
        members = self.task_containers(container, containers)
        return {
            "Cluster": self.cluster,
            "TaskARN": self.task_arn(family),
            "Family": family,
            "Revision": self.task_revision,
            "DesiredStatus": STATUS_RUNNING,
            "KnownStatus": STATUS_RUNNING,
            "Containers": [self.container_metadata(c) for c in members],
            "ContainerInstanceTags": dict(self.container_instance_tags),
            "TaskTags": dict(self.task_tags),
        }
