"""Service account credentials read once at startup."""

import logging
import os
from dataclasses import dataclass

from pod_discovery.settings import DEFAULT_NAMESPACE, Settings

logger = logging.getLogger(__name__)


def read_config_value(path: str, name: str) -> str | None:
    """
    Read a configuration value from the filesystem.

    This uses blocking IO, and so should only be used to read configuration at
    startup. Missing or unreadable files yield ``None`` so callers can fall back
    to a default.
    """
    if not os.path.exists(path):
        logger.warning("Unable to read %s from %s because it doesn't exist.", name, path)
        return None

    try:
        with open(path, "rb") as handle:
            return handle.read().decode("utf-8").strip()
    except (OSError, UnicodeDecodeError):
        logger.error("Error reading %s from %s", name, path, exc_info=True)
        return None


@dataclass(frozen=True, slots=True)
class ApiCredentials:
    """Bearer token and namespace used for every request."""

    token: str
    namespace: str

    @classmethod
    def load(cls, settings: Settings) -> "ApiCredentials":
        token = read_config_value(settings.api_token_path, "api-token") or ""
        namespace = (
            settings.pod_namespace
            or read_config_value(settings.pod_namespace_path, "pod-namespace")
            or DEFAULT_NAMESPACE
        )
        return cls(token=token, namespace=namespace)
