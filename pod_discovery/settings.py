"""Environment-driven configuration utilities for pod discovery."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
DEFAULT_NAMESPACE = "default"


def _positive_float(name: str, default: str) -> float:
    raw = os.getenv(name, "").strip() or default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a numeric value.") from exc
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero.")
    return value


def _env(name: str, default: str) -> str:
    return os.getenv(name, "").strip() or default


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for runtime configuration."""

    pod_label_selector_template: str = "app={name}"
    pod_port_name: str = "management"
    pod_domain: str = "cluster.local"
    pod_namespace: str | None = None
    pod_namespace_path: str = f"{SERVICE_ACCOUNT_DIR}/namespace"
    api_token_path: str = f"{SERVICE_ACCOUNT_DIR}/token"
    api_ca_path: str = f"{SERVICE_ACCOUNT_DIR}/ca.crt"
    api_service_host_env_name: str = "KUBERNETES_SERVICE_HOST"
    api_service_port_env_name: str = "KUBERNETES_SERVICE_PORT"
    resolve_timeout: float = 3.0
    api_timeout: float = 30.0
    mcp_sse_port: int = 8000

    def pod_label_selector(self, service_name: str) -> str:
        """Label selector used to find the pods backing ``service_name``."""
        return self.pod_label_selector_template.format(name=service_name)

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Python-dotenv is used so developers can rely on a local .env file without
        exporting variables globally.
        """
        load_dotenv()

        label_selector = _env("POD_LABEL_SELECTOR", "app={name}")
        if "{name}" not in label_selector:
            raise ValueError("POD_LABEL_SELECTOR must contain a '{name}' placeholder.")
        try:
            label_selector.format(name="x")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(
                "POD_LABEL_SELECTOR may only use the '{name}' placeholder."
            ) from exc

        mcp_sse_port_raw = _env("MCP_SSE_PORT", "8000")
        try:
            mcp_sse_port = int(mcp_sse_port_raw)
        except ValueError as exc:
            raise ValueError("MCP_SSE_PORT must be an integer.") from exc
        if mcp_sse_port <= 0:
            raise ValueError("MCP_SSE_PORT must be greater than zero.")

        return cls(
            pod_label_selector_template=label_selector,
            pod_port_name=_env("POD_PORT_NAME", "management"),
            pod_domain=_env("POD_DOMAIN", "cluster.local"),
            pod_namespace=os.getenv("POD_NAMESPACE", "").strip() or None,
            pod_namespace_path=_env("POD_NAMESPACE_PATH", f"{SERVICE_ACCOUNT_DIR}/namespace"),
            api_token_path=_env("API_TOKEN_PATH", f"{SERVICE_ACCOUNT_DIR}/token"),
            api_ca_path=_env("API_CA_PATH", f"{SERVICE_ACCOUNT_DIR}/ca.crt"),
            api_service_host_env_name=_env("API_SERVICE_HOST_ENV_NAME", "KUBERNETES_SERVICE_HOST"),
            api_service_port_env_name=_env("API_SERVICE_PORT_ENV_NAME", "KUBERNETES_SERVICE_PORT"),
            resolve_timeout=_positive_float("RESOLVE_TIMEOUT", "3"),
            api_timeout=_positive_float("API_TIMEOUT", "30"),
            mcp_sse_port=mcp_sse_port,
        )
