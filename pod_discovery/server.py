"""Core server bootstrap exposing pod discovery as MCP tools."""

import asyncio
import logging

from fastmcp import FastMCP  # type: ignore[import-not-found]

from pod_discovery.client import KubernetesApiDiscovery
from pod_discovery.settings import Settings
from pod_discovery.tools import DiscoveryToolDependencies, register_discovery_tools


class ServerApp:
    """Owns the discovery backend and the FastMCP instance serving it."""

    def __init__(self, settings: Settings) -> None:
        self._logger = logging.getLogger(__name__)
        self._settings = settings
        self._discovery: KubernetesApiDiscovery | None = None
        self._tool_dependencies = DiscoveryToolDependencies()
        self._mcp_app = FastMCP(
            name="Kubernetes Pod Discovery MCP Server",
            instructions=(
                "Resolve logical service names to the live pod endpoints reported by the Kubernetes API."
            ),
        )
        register_discovery_tools(self._mcp_app, self._tool_dependencies)

    def startup(self, discovery: KubernetesApiDiscovery | None = None) -> None:
        """Read credentials and build the shared HTTP client."""
        self._logger.info("Starting server bootstrap")
        self._discovery = discovery or KubernetesApiDiscovery.from_settings(self._settings)
        self._tool_dependencies.attach_discovery(self._discovery)

    def shutdown(self) -> None:
        """Release acquired resources."""
        self._logger.info("Shutting down server bootstrap")
        if self._discovery is not None:
            asyncio.run(self._discovery.aclose())
            self._discovery = None
        self._tool_dependencies.detach_discovery()

    def serve_forever(self) -> None:
        """Run the FastMCP SSE server until interrupted."""
        host = "0.0.0.0"
        port = self._settings.mcp_sse_port
        self._logger.info("Starting SSE transport", extra={"host": host, "port": port})
        self._mcp_app.run(transport="sse", host=host, port=port)

    @property
    def discovery(self) -> KubernetesApiDiscovery | None:
        """The discovery backend, once startup() has run."""
        return self._discovery

    @property
    def mcp(self) -> FastMCP:
        """Expose the configured FastMCP instance."""
        return self._mcp_app


def build_server(settings: Settings) -> ServerApp:
    """Factory used by main.py to create the configured server instance."""
    return ServerApp(settings)
