"""Container resolution for inbound metadata requests.

Given a point-in-time snapshot of the containers visible to the Docker
daemon, find the single container a request came from, either by an
explicit identifier (full ID, ID prefix or name) or by the caller's IP
address.

Caller-IP resolution is scoped to the networks the endpoints container is
itself attached to. Separate bridge networks routinely reuse the same
private subnets, so an address seen on any other network says nothing
about who is calling.

Everything in this module is pure: no I/O, no state, same result for the
same snapshot and inputs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from src.core.constants import DEFAULT_ENDPOINT_IP, DOCKER_NAME_PREFIX
from src.core.exceptions import ConfigurationError, ContainerNotFoundError
from src.core.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Data Models
# =============================================================================


def normalize_name(name: str) -> str:
    """Strip the "/" Docker puts in front of container names."""
    return name[len(DOCKER_NAME_PREFIX):] if name.startswith(DOCKER_NAME_PREFIX) else name


@dataclass(frozen=True)
class Container:
    """Read-only view of a running container.

    Attributes:
        id: Full container ID.
        names: Container names without the leading "/".
        networks: Network name -> IPv4 address on that network.
        image: Image reference the container was started from.
        image_id: Resolved image digest.
        labels: Container labels.
        state: Docker state ("running", "created", "exited", ...).
        created: Creation time as a unix timestamp.
        network_mode: HostConfig network mode.
    """

    id: str
    names: tuple[str, ...] = ()
    networks: Mapping[str, str] = field(default_factory=dict, hash=False)
    image: str = ""
    image_id: str = ""
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)
    state: str = ""
    created: int = 0
    network_mode: str = ""

    def __post_init__(self) -> None:
        # Snapshots are shared across a request; keep the mappings read-only
        object.__setattr__(self, "networks", MappingProxyType(dict(self.networks)))
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @property
    def name(self) -> str:
        """Primary name, or the short ID for unnamed containers."""
        return self.names[0] if self.names else self.short_id

    @property
    def short_id(self) -> str:
        return self.id[:12]

    @classmethod
    def from_docker(cls, raw: Mapping[str, Any]) -> Container:
        """Build a Container from one entry of the Docker container list.

        Accepts the shape returned by ``APIClient.containers()`` (``Id``,
        ``Names``, ``NetworkSettings.Networks`` ...). Networks without an
        address are dropped.
        """
        networks: dict[str, str] = {}
        raw_networks = (raw.get("NetworkSettings") or {}).get("Networks") or {}
        for network_name, network in raw_networks.items():
            ip_address = str((network or {}).get("IPAddress") or "").strip()
            if ip_address:
                networks[network_name] = ip_address

        return cls(
            id=str(raw.get("Id") or ""),
            names=tuple(normalize_name(n) for n in raw.get("Names") or ()),
            networks=networks,
            image=str(raw.get("Image") or ""),
            image_id=str(raw.get("ImageID") or ""),
            labels=dict(raw.get("Labels") or {}),
            state=str(raw.get("State") or ""),
            created=int(raw.get("Created") or 0),
            network_mode=str((raw.get("HostConfig") or {}).get("NetworkMode") or ""),
        )


def normalize_snapshot(raw_containers: Iterable[Mapping[str, Any]]) -> list[Container]:
    """Normalize a raw Docker container list into Container views."""
    return [Container.from_docker(raw) for raw in raw_containers]


# =============================================================================
# Identifier Matching
# =============================================================================


def find_by_identifier(
    containers: Sequence[Container], identifier: str
) -> list[Container]:
    """Return every container matching ``identifier``.

    IDs are tried first (exact or prefix, so short IDs work). Names are
    only consulted when no ID matched.
    """
    if not identifier:
        return []

    by_id = [c for c in containers if c.id.startswith(identifier)]
    if by_id:
        return by_id

    name = normalize_name(identifier)
    return [c for c in containers if name in c.names]


# =============================================================================
# Caller IP Matching
# =============================================================================


def find_self_container(
    containers: Sequence[Container],
    self_identifier: str | None = None,
    endpoint_ip: str = DEFAULT_ENDPOINT_IP,
) -> Container:
    """Locate the endpoints container in the snapshot.

    The explicit identifier wins when it matches exactly one container.
    Otherwise the container that owns ``endpoint_ip`` on any network is
    used.

    Raises:
        ConfigurationError: If no single container can be picked.
    """
    if self_identifier:
        matches = find_by_identifier(containers, self_identifier)
        if len(matches) == 1:
            return matches[0]

    owners = [c for c in containers if endpoint_ip in c.networks.values()]
    if len(owners) == 1:
        return owners[0]

    msg = (
        f"Could not locate the endpoints container (identifier={self_identifier!r}, "
        f"endpoint_ip={endpoint_ip}); {len(owners)} containers own the endpoint address"
    )
    raise ConfigurationError(msg, setting="self_identifier")


def scope_networks(self_container: Container) -> frozenset[str]:
    """Networks caller IPs are trusted on."""
    return frozenset(self_container.networks)


def find_by_caller_ip(
    containers: Sequence[Container],
    caller_ip: str,
    scope: Iterable[str],
) -> list[Container]:
    """Return containers that own ``caller_ip`` on an in-scope network.

    Out-of-scope networks are filtered out before any address is compared.
    """
    in_scope = frozenset(scope)
    matches: list[Container] = []
    for container in containers:
        scoped = (ip for net, ip in container.networks.items() if net in in_scope)
        if caller_ip in scoped:
            matches.append(container)
    return matches


# =============================================================================
# Resolution
# =============================================================================


def resolve(
    containers: Sequence[Container],
    identifier: str | None,
    caller_ip: str | None,
    self_identifier: str | None = None,
    endpoint_ip: str = DEFAULT_ENDPOINT_IP,
) -> Container:
    """Find the one container a request came from.

    Args:
        containers: Snapshot of running containers.
        identifier: Container ID, ID prefix or name. Takes precedence.
        caller_ip: Source address of the request.
        self_identifier: ID or name of the endpoints container.
        endpoint_ip: Address the endpoints container owns.

    Returns:
        The matching container.

    Raises:
        ContainerNotFoundError: Zero or several containers matched.
        ConfigurationError: Caller-IP lookup without a locatable
            endpoints container.
    """
    if identifier:
        matches = find_by_identifier(containers, identifier)
        if len(matches) == 1:
            logger.debug(
                "Resolved container by identifier",
                identifier=identifier,
                container_id=matches[0].id,
            )
            return matches[0]
        msg = f"No unique container matches identifier '{identifier}'"
        raise ContainerNotFoundError(
            msg, identifier=identifier, candidates=len(matches)
        )

    if not caller_ip:
        msg = "Neither a container identifier nor a caller IP was provided"
        raise ContainerNotFoundError(msg)

    self_container = find_self_container(containers, self_identifier, endpoint_ip)
    scope = scope_networks(self_container)
    matches = find_by_caller_ip(containers, caller_ip, scope)
    if len(matches) == 1:
        logger.debug(
            "Resolved container by caller IP",
            container_id=matches[0].id,
            networks=sorted(scope),
        )
        return matches[0]

    msg = (
        f"No unique container owns {caller_ip} on networks "
        f"{', '.join(sorted(scope)) or '(none)'}"
    )
    raise ContainerNotFoundError(msg, caller_ip=caller_ip, candidates=len(matches))
