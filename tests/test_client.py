import logging
from ipaddress import IPv4Address
from typing import Any

import anyio
import httpx
import pytest

from pod_discovery.client import KubernetesApiDiscovery
from pod_discovery.credentials import ApiCredentials
from pod_discovery.errors import (
    AddressResolutionError,
    ConfigurationMissingError,
    DiscoveryTimeoutError,
    ForbiddenError,
    NetworkError,
    NonSuccessStatusError,
    UnmarshalError,
)
from pod_discovery.models import Lookup
from pod_discovery.settings import Settings


def _pod(ip: str | None, ports: list[dict[str, Any]], **metadata: Any) -> dict[str, Any]:
    pod: dict[str, Any] = {
        "metadata": {"name": "pod", **metadata},
        "spec": {"containers": [{"name": "app", "ports": ports}]},
    }
    if ip is not None:
        pod["status"] = {"podIP": ip}
    return pod


def _build_discovery(
    handler: httpx.MockTransport,
    settings: Settings | None = None,
) -> KubernetesApiDiscovery:
    async_client = httpx.AsyncClient(transport=handler)
    return KubernetesApiDiscovery(
        async_client,
        settings or Settings(),
        ApiCredentials(token="secret-token", namespace="ns1"),
    )


@pytest.fixture(autouse=True)
def api_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.96.0.1")
    monkeypatch.setenv("KUBERNETES_SERVICE_PORT", "443")


@pytest.mark.anyio
async def test_lookup_success() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.scheme == "https"
        assert request.url.host == "10.96.0.1"
        assert request.url.path == "/api/v1/namespaces/ns1/pods"
        assert request.url.params["labelSelector"] == "app=checkout"
        assert request.headers["Authorization"] == "Bearer secret-token"
        return httpx.Response(
            200,
            json={
                "kind": "PodList",
                "items": [
                    _pod("10.0.1.5", [{"name": "management", "containerPort": 8558}]),
                    _pod("10.0.1.6", [{"name": "management", "containerPort": 8558}]),
                ],
            },
        )

    discovery = _build_discovery(httpx.MockTransport(handler))
    resolved = await discovery.lookup(Lookup("checkout"))
    assert resolved.service_name == "checkout"
    assert [target.host for target in resolved.addresses] == [
        "10-0-1-5.ns1.pod.cluster.local",
        "10-0-1-6.ns1.pod.cluster.local",
    ]
    assert resolved.addresses[0].port == 8558
    assert resolved.addresses[0].address == IPv4Address("10.0.1.5")
    await discovery.aclose()


@pytest.mark.anyio
async def test_lookup_port_name_override() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "items": [
                    _pod(
                        "10.0.1.5",
                        [
                            {"name": "management", "containerPort": 8558},
                            {"name": "http", "containerPort": 8080},
                        ],
                    )
                ]
            },
        )

    discovery = _build_discovery(httpx.MockTransport(handler))
    resolved = await discovery.lookup(Lookup("checkout", port_name="http"))
    assert [target.port for target in resolved.addresses] == [8080]
    await discovery.aclose()


@pytest.mark.anyio
async def test_empty_port_name_override_is_not_replaced_by_default() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "items": [
                    _pod(
                        "10.0.1.5",
                        [
                            {"name": "management", "containerPort": 8558},
                            {"containerPort": 2552},
                        ],
                    )
                ]
            },
        )

    discovery = _build_discovery(httpx.MockTransport(handler))
    resolved = await discovery.lookup(Lookup("svc", port_name=""))
    assert resolved.addresses == ()
    await discovery.aclose()


@pytest.mark.anyio
async def test_missing_host_fails_before_network_call(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST")
    calls: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"items": []})

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(ConfigurationMissingError) as exc:
        await discovery.lookup(Lookup("checkout"))
    assert "KUBERNETES_SERVICE_HOST" in str(exc.value)
    assert "KUBERNETES_SERVICE_PORT" in str(exc.value)
    assert calls == []
    await discovery.aclose()


@pytest.mark.anyio
@pytest.mark.parametrize("body", [b"", b"not json", b'{"kind": "Status"}'])
async def test_forbidden_regardless_of_body(body: bytes) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, content=body)

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(ForbiddenError) as exc:
        await discovery.lookup(Lookup("checkout"))
    assert "RBAC" in str(exc.value)
    await discovery.aclose()


@pytest.mark.anyio
async def test_non_success_status_carries_code() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad gateway from mock")

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(NonSuccessStatusError) as exc:
        await discovery.lookup(Lookup("checkout"))
    assert exc.value.status_code == 502
    assert "502" in str(exc.value)
    await discovery.aclose()


@pytest.mark.anyio
@pytest.mark.parametrize("body", [b"[]", b'"PodList"', b'{"items": {"not": "a list"}}', b"{"])
async def test_unexpected_shape_is_unmarshal_failure(body: bytes) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(UnmarshalError) as exc:
        await discovery.lookup(Lookup("checkout"))
    assert exc.value.body == body.decode()
    await discovery.aclose()


@pytest.mark.anyio
async def test_httpx_timeout_surfaces_timeout_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("mock timeout", request=request)

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(DiscoveryTimeoutError) as exc:
        await discovery.lookup(Lookup("checkout"))
    assert "timed out" in str(exc.value)
    await discovery.aclose()


@pytest.mark.anyio
async def test_resolve_timeout_bounds_round_trip() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await anyio.sleep(5)
        return httpx.Response(200, json={"items": []})

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(DiscoveryTimeoutError):
        await discovery.lookup(Lookup("checkout"), resolve_timeout=0.05)
    await discovery.aclose()


@pytest.mark.anyio
async def test_connection_failure_is_network_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("certificate verify failed", request=request)

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(NetworkError) as exc:
        await discovery.lookup(Lookup("checkout"))
    assert "certificate verify failed" in str(exc.value)
    await discovery.aclose()


@pytest.mark.anyio
async def test_no_matching_ports_is_empty_success(caplog: pytest.LogCaptureFixture) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "items": [
                    _pod(
                        "10.0.1.5",
                        [
                            {"name": "http", "containerPort": 8080},
                            {"name": "metrics", "containerPort": 9090},
                        ],
                    )
                ]
            },
        )

    discovery = _build_discovery(httpx.MockTransport(handler))
    with caplog.at_level(logging.WARNING, logger="pod_discovery.client"):
        resolved = await discovery.lookup(Lookup("checkout", port_name="grpc"))
    assert resolved.service_name == "checkout"
    assert resolved.addresses == ()
    assert "No targets found" in caplog.text
    assert "http, metrics" in caplog.text
    await discovery.aclose()


@pytest.mark.anyio
async def test_empty_pod_list_does_not_warn(caplog: pytest.LogCaptureFixture) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    discovery = _build_discovery(httpx.MockTransport(handler))
    with caplog.at_level(logging.WARNING, logger="pod_discovery.client"):
        resolved = await discovery.lookup(Lookup("checkout"))
    assert resolved.addresses == ()
    assert "No targets found" not in caplog.text
    await discovery.aclose()


@pytest.mark.anyio
async def test_invalid_pod_ip_fails_lookup() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"items": [_pod("not-an-ip", [{"name": "management", "containerPort": 8558}])]},
        )

    discovery = _build_discovery(httpx.MockTransport(handler))
    with pytest.raises(AddressResolutionError) as exc:
        await discovery.lookup(Lookup("checkout"))
    assert exc.value.ip == "not-an-ip"
    await discovery.aclose()


@pytest.mark.anyio
async def test_custom_label_selector_template() -> None:
    seen: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params["labelSelector"])
        return httpx.Response(200, json={"items": []})

    settings = Settings(pod_label_selector_template="actorSystemName={name},tier=backend")
    discovery = _build_discovery(httpx.MockTransport(handler), settings)
    await discovery.lookup(Lookup("checkout"))
    assert seen == ["actorSystemName=checkout,tier=backend"]
    await discovery.aclose()
