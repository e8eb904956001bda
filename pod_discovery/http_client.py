"""HTTP client factory for talking to the Kubernetes API server."""

import logging
import os
import ssl

import httpx

from pod_discovery.settings import Settings

logger = logging.getLogger(__name__)


def create_tls_context(ca_path: str) -> ssl.SSLContext:
    """
    Build a TLS context trusting the PEM certificate(s) at ``ca_path``.

    Falls back to the system trust store when the file does not exist, e.g.
    when running outside a cluster against a publicly signed API server.
    """
    if not os.path.exists(ca_path):
        logger.warning(
            "CA certificate %s does not exist; using the system trust store.",
            ca_path,
        )
        return ssl.create_default_context()
    return ssl.create_default_context(cafile=ca_path)


def create_api_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build an AsyncClient configured for the Kubernetes API server.

    The client and its TLS context are created once and shared by all lookups.
    """
    return httpx.AsyncClient(
        verify=create_tls_context(settings.api_ca_path),
        timeout=settings.api_timeout,
    )
