"""Failures surfaced by a pod lookup."""


class DiscoveryError(RuntimeError):
    """Base class for every failure a lookup can end with."""

    kind = "discovery_error"


class ConfigurationMissingError(DiscoveryError):
    """The API host/port environment variables are absent or invalid."""

    kind = "configuration_missing"


class ForbiddenError(DiscoveryError):
    """The API server denied access to the pod list (RBAC)."""

    kind = "forbidden"


class NonSuccessStatusError(DiscoveryError):
    kind = "non_success_status"

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnmarshalError(DiscoveryError):
    """The response body did not match the expected pod list shape."""

    kind = "unmarshal_failure"

    def __init__(self, message: str, body: str) -> None:
        super().__init__(message)
        self.body = body


class DiscoveryTimeoutError(DiscoveryError):
    kind = "timeout"


class NetworkError(DiscoveryError):
    """Connection, TLS or protocol failure talking to the API server."""

    kind = "network_failure"


class AddressResolutionError(DiscoveryError):
    kind = "address_resolution_failure"

    def __init__(self, message: str, ip: str) -> None:
        super().__init__(message)
        self.ip = ip
