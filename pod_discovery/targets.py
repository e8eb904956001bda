"""Derivation of resolved targets from a pod list."""

import ipaddress

from pod_discovery.errors import AddressResolutionError
from pod_discovery.models import PodList, ResolvedTarget


def pod_hostname(ip: str, namespace: str, domain: str) -> str:
    """DNS name Kubernetes assigns to a pod, e.g. ``10-0-1-5.ns1.pod.cluster.local``."""
    return f"{ip.replace('.', '-')}.{namespace}.pod.{domain}"


def derive_targets(
    pod_list: PodList,
    port_name: str,
    namespace: str,
    domain: str,
) -> list[ResolvedTarget]:
    """
    Find the targets in ``pod_list`` exposing a container port named ``port_name``.

    Pods are not filtered by service here; the label selector already did that.
    Terminating pods and pods without an IP are skipped.
    """
    targets: list[ResolvedTarget] = []
    for pod in pod_list.items:
        if pod.is_terminating:
            continue
        containers = pod.spec.containers if pod.spec else []
        ip = pod.status.pod_ip if pod.status else None
        for container in containers:
            for port in container.ports or []:
                if port.name != port_name or not ip:
                    continue
                try:
                    address = ipaddress.ip_address(ip)
                except ValueError as exc:
                    raise AddressResolutionError(
                        f"Pod IP {ip!r} is not a valid IP address.", ip=ip
                    ) from exc
                targets.append(
                    ResolvedTarget(
                        host=pod_hostname(ip, namespace, domain),
                        port=port.container_port,
                        address=address,
                    )
                )
    return targets


def container_port_names(pod_list: PodList) -> set[str]:
    """All named container ports across the pod list."""
    return {
        port.name
        for pod in pod_list.items
        if pod.spec
        for container in pod.spec.containers
        for port in container.ports or []
        if port.name
    }
