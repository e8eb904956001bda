"""MCP tool registrations for the pod discovery server."""

import logging
from dataclasses import dataclass
from typing import Annotated, Any

from fastmcp import FastMCP
from pydantic import Field

from pod_discovery.errors import DiscoveryError
from pod_discovery.models import Lookup, Resolved, ServiceDiscovery

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryToolDependencies:
    """Runtime dependencies required by the MCP tools."""

    discovery: ServiceDiscovery | None = None

    def attach_discovery(self, discovery: ServiceDiscovery) -> None:
        self.discovery = discovery

    def detach_discovery(self) -> None:
        self.discovery = None

    def require_discovery(self) -> ServiceDiscovery:
        if self.discovery is None:
            raise RuntimeError("Service discovery is not initialized.")
        return self.discovery


def resolved_to_dict(resolved: Resolved) -> dict[str, Any]:
    return {
        "service_name": resolved.service_name,
        "addresses": [
            {
                "host": target.host,
                "port": target.port,
                "address": str(target.address) if target.address is not None else None,
            }
            for target in resolved.addresses
        ],
    }


async def run_lookup(
    discovery: ServiceDiscovery,
    service_name: str,
    port_name: str | None = None,
) -> dict[str, Any]:
    """Resolve a service and render the outcome as a JSON-friendly dict."""
    try:
        resolved = await discovery.lookup(Lookup(service_name=service_name, port_name=port_name))
    except DiscoveryError as exc:
        logger.warning("resolve_service failed: %s", exc, extra={"kind": exc.kind})
        return {"error": str(exc), "kind": exc.kind}
    except Exception as exc:  # noqa: BLE001
        logger.exception("resolve_service failed unexpectedly")
        return {"error": f"Unexpected error: {exc}", "kind": "unexpected"}

    logger.info(
        "discovery_tool_event",
        extra={
            "tool": "resolve_service",
            "service_name": service_name,
            "targets": len(resolved.addresses),
        },
    )
    return resolved_to_dict(resolved)


def register_discovery_tools(
    mcp: FastMCP,
    dependencies: DiscoveryToolDependencies,
) -> None:
    """Register MCP tools that resolve services through the Kubernetes API."""

    @mcp.tool(
        name="resolve_service",
        description="Lists the live pod endpoints (host, port, IP) backing a service. Terminating pods and pods without the named port are left out.",
    )
    async def resolve_service(
        service_name: Annotated[str, Field(description="Logical service name used to build the pod label selector (e.g. 'checkout').")],
        port_name: Annotated[str | None, Field(description="Named container port to resolve; defaults to the configured port name.")] = None,
    ) -> dict[str, Any]:
        """Resolve a service to its current pod targets."""
        if not service_name or not service_name.strip():
            raise ValueError("service_name must be a non-empty string.")
        port_name_value = port_name.strip() if port_name and port_name.strip() else None
        return await run_lookup(
            dependencies.require_discovery(),
            service_name.strip(),
            port_name_value,
        )

    logger.info("Pod discovery MCP tools registered.")
