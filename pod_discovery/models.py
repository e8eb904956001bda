"""
Domain model for pod discovery.

The pod list mirrors the subset of the Kubernetes ``PodList`` resource that a
lookup needs. Every structural field is optional and unknown fields are
ignored, so the models tolerate whatever else the API server sends back.
"""

from dataclasses import dataclass
from ipaddress import IPv4Address, IPv6Address
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ContainerPort(_ApiModel):
    name: str | None = None
    container_port: int = Field(alias="containerPort")


class Container(_ApiModel):
    ports: list[ContainerPort] | None = None


class PodSpec(_ApiModel):
    containers: list[Container] = Field(default_factory=list)


class PodStatus(_ApiModel):
    pod_ip: str | None = Field(default=None, alias="podIP")


class PodMetadata(_ApiModel):
    deletion_timestamp: str | None = Field(default=None, alias="deletionTimestamp")


class Pod(_ApiModel):
    metadata: PodMetadata | None = None
    spec: PodSpec | None = None
    status: PodStatus | None = None

    @property
    def is_terminating(self) -> bool:
        return bool(self.metadata and self.metadata.deletion_timestamp)


class PodList(_ApiModel):
    items: list[Pod] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ResolvedTarget:
    """A single network endpoint backing a service."""

    host: str
    port: int | None = None
    address: IPv4Address | IPv6Address | None = None


@dataclass(frozen=True, slots=True)
class Resolved:
    """Result of a lookup: the service name and its current targets."""

    service_name: str
    addresses: tuple[ResolvedTarget, ...] = ()


@dataclass(frozen=True, slots=True)
class Lookup:
    """
    Query for a logical service.

    ``port_name`` overrides the configured default port name. ``protocol`` is
    accepted for compatibility with other discovery backends and ignored here.
    """

    service_name: str
    port_name: str | None = None
    protocol: str | None = None


class ServiceDiscovery(Protocol):
    """Anything that can resolve a service name to its live targets."""

    async def lookup(self, query: Lookup, resolve_timeout: float | None = None) -> Resolved:
        ...
