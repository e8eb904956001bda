"""Construction of the pod list request sent to the Kubernetes API server."""

import os
from collections.abc import Mapping

import httpx

from pod_discovery.settings import Settings


def build_pod_request(
    settings: Settings,
    token: str,
    namespace: str,
    label_selector: str,
    environ: Mapping[str, str] | None = None,
) -> httpx.Request | None:
    """
    Build the authenticated pod list request.

    The API host and port are read from the environment on every call. ``None``
    is returned when either is missing or the port is not an integer.
    """
    env = os.environ if environ is None else environ
    host = env.get(settings.api_service_host_env_name, "").strip()
    port_raw = env.get(settings.api_service_port_env_name, "").strip()
    if not host or not port_raw:
        return None
    try:
        port = int(port_raw)
    except ValueError:
        return None
    if not 0 < port < 65536:
        return None

    url = httpx.URL(
        scheme="https",
        host=host,
        port=port,
        path=f"/api/v1/namespaces/{namespace}/pods",
    )
    return httpx.Request(
        "GET",
        url,
        params={"labelSelector": label_selector},
        headers={"Authorization": f"Bearer {token}"},
    )
