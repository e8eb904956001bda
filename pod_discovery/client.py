"""
Service discovery backed by the Kubernetes API.

Pods matching a label selector derived from the service name are listed with a
single request; the pods exposing the requested named port become the lookup's
targets. Using the API rather than DNS means readiness/health checks do not
affect which pods are returned.
"""

import logging
from dataclasses import dataclass

import anyio
import httpx

from pod_discovery.credentials import ApiCredentials
from pod_discovery.errors import (
    ConfigurationMissingError,
    DiscoveryTimeoutError,
    ForbiddenError,
    NetworkError,
    NonSuccessStatusError,
    UnmarshalError,
)
from pod_discovery.http_client import create_api_client
from pod_discovery.models import Lookup, PodList, Resolved
from pod_discovery.parser import body_text, parse_pod_list, snippet
from pod_discovery.request import build_pod_request
from pod_discovery.settings import Settings
from pod_discovery.targets import container_port_names, derive_targets

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class KubernetesApiDiscovery:
    """Resolves services to pod targets using a shared AsyncClient."""

    _client: httpx.AsyncClient
    settings: Settings
    credentials: ApiCredentials

    @classmethod
    def from_settings(cls, settings: Settings) -> "KubernetesApiDiscovery":
        """Factory that reads credentials and builds the client from Settings."""
        return cls(create_api_client(settings), settings, ApiCredentials.load(settings))

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def lookup(self, query: Lookup, resolve_timeout: float | None = None) -> Resolved:
        """Return the current targets for ``query.service_name``."""
        label_selector = self.settings.pod_label_selector(query.service_name)
        port_name = query.port_name if query.port_name is not None else self.settings.pod_port_name
        namespace = self.credentials.namespace
        logger.info(
            "Querying for pods with label selector: [%s]. Namespace: [%s]. Port: [%s] (from lookup? %s)",
            label_selector,
            namespace,
            port_name,
            query.port_name is not None,
        )

        request = build_pod_request(
            self.settings, self.credentials.token, namespace, label_selector
        )
        if request is None:
            raise ConfigurationMissingError(
                "Unable to form request; check Kubernetes environment (expecting env vars "
                f"{self.settings.api_service_host_env_name}, {self.settings.api_service_port_env_name})"
            )

        timeout = self.settings.resolve_timeout if resolve_timeout is None else resolve_timeout
        response = await self._send(request, timeout)
        pod_list = self._classify(response)

        addresses = derive_targets(pod_list, port_name, namespace, self.settings.pod_domain)
        if not addresses and pod_list.items:
            logger.warning(
                "No targets found from pod list. Is the correct port name configured? "
                "Current configuration: [%s]. Ports on pods: [%s]",
                port_name,
                ", ".join(sorted(container_port_names(pod_list))),
            )
        return Resolved(service_name=query.service_name, addresses=tuple(addresses))

    async def _send(self, request: httpx.Request, timeout: float) -> httpx.Response:
        """Send ``request`` and buffer the whole body within ``timeout`` seconds."""
        try:
            with anyio.fail_after(timeout):
                return await self._client.send(request)
        except (TimeoutError, httpx.TimeoutException) as exc:
            logger.error(
                "Kubernetes API request timed out",
                extra={"url": str(request.url), "timeout": timeout},
            )
            raise DiscoveryTimeoutError(
                f"Kubernetes API request timed out after {timeout}s."
            ) from exc
        except httpx.RequestError as exc:
            logger.error(
                "Kubernetes API request failed",
                extra={"url": str(request.url)},
                exc_info=exc,
            )
            raise NetworkError(f"Kubernetes API request failed: {exc!s}") from exc

    def _classify(self, response: httpx.Response) -> PodList:
        status_code = response.status_code
        if status_code == httpx.codes.OK:
            logger.debug("Kubernetes API entity: [%s]", body_text(response.content))
            try:
                return parse_pod_list(response.content)
            except UnmarshalError as exc:
                logger.warning(
                    "Failed to unmarshal Kubernetes API response. Status code: [%s]; "
                    "Response body: [%s]. Ex: [%s]",
                    status_code,
                    snippet(exc.body),
                    exc.__cause__,
                )
                raise

        body = snippet(body_text(response.content))
        if status_code == httpx.codes.FORBIDDEN:
            logger.warning(
                "Forbidden to communicate with Kubernetes API server; check RBAC settings. "
                "Response: [%s]",
                body,
            )
            raise ForbiddenError(
                "Forbidden when communicating with the Kubernetes API. Check RBAC settings."
            )

        logger.warning(
            "Non-200 when communicating with Kubernetes API server. Status code: [%s]. "
            "Response body: [%s]",
            status_code,
            body,
        )
        raise NonSuccessStatusError(
            status_code, f"Non-200 from Kubernetes API server: {status_code}"
        )
