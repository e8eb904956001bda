"""Run the pod discovery MCP server over SSE."""

import logging
import os

from pod_discovery.server import ServerApp, build_server
from pod_discovery.settings import Settings

logger = logging.getLogger("pod-discovery")


def _log_discovery_target(server: ServerApp, settings: Settings) -> None:
    discovery = server.discovery
    if discovery is None:
        return
    api_host = os.getenv(settings.api_service_host_env_name)
    logger.info(
        "Resolving pods in namespace [%s] on port name [%s] via %s=%s, %s=%s",
        discovery.credentials.namespace,
        settings.pod_port_name,
        settings.api_service_host_env_name,
        api_host or "<unset>",
        settings.api_service_port_env_name,
        os.getenv(settings.api_service_port_env_name) or "<unset>",
    )
    if not api_host:
        logger.warning(
            "%s is not set; lookups will fail until the Kubernetes environment is available.",
            settings.api_service_host_env_name,
        )


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    settings = Settings.load()
    server = build_server(settings)

    try:
        server.startup()
        _log_discovery_target(server, settings)
        logger.info("MCP SSE server listening on port %s (/sse)", settings.mcp_sse_port)
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutdown requested (Ctrl+C).")
    except Exception:
        logger.exception("Server stopped due to an unexpected error.")
        raise
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
