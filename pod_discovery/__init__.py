"""
Service discovery for Kubernetes pods.

Resolves a logical service name to the live pod endpoints reported by the
Kubernetes API server.
"""

from pod_discovery.client import KubernetesApiDiscovery
from pod_discovery.models import Lookup, Resolved, ResolvedTarget, ServiceDiscovery

__all__ = [
    "KubernetesApiDiscovery",
    "Lookup",
    "Resolved",
    "ResolvedTarget",
    "ServiceDiscovery",
]
