"""Unit tests for EnvironmentProvisioner over the in-memory backend."""

from __future__ import annotations

import ipaddress

import httpx
import pytest

from podharness.adapters.naming import SequentialNameGenerator
from podharness.domain.errors import UnhealthyServiceError
from podharness.domain.model import ApplicationConfig, LogLine, ServiceConfig
from podharness.interfaces.backend import BackendError
from podharness.service_layer.ledger import NetworkResource, ServiceResource
from podharness.service_layer.provisioner import EnvironmentProvisioner

from tests.fixtures.environments import API_IMAGE, DB_IMAGE

# pylint: disable=magic-value-comparison, redefined-outer-name


def _provisioner(backend, handler) -> EnvironmentProvisioner:
    return EnvironmentProvisioner(
        backend,
        SequentialNameGenerator(),
        health_timeout=0.1,
        health_interval=0.01,
        http_transport=httpx.MockTransport(handler),
    )


async def test_instantiate_builds_network_then_services(
    backend, provisioner, ledger, web_app
):
    """Test that the network comes first and services follow in declared order."""
    env = await provisioner.instantiate(web_app, ledger)

    assert backend.operations("create_network") == ["net-1"]
    assert backend.operations("create_container") == [API_IMAGE, DB_IMAGE]
    assert list(env) == ["api", "db"]
    assert env.app == "web"
    assert env.network == NetworkResource("net-1")
    assert all(c.running for c in backend.containers.values())


async def test_instantiate_registers_everything(provisioner, ledger, web_app):
    """Test that the ledger holds the network and both services afterwards."""
    env = await provisioner.instantiate(web_app, ledger)

    network, api, db = ledger.resources
    assert network == env.network
    assert (api.name, db.name) == ("api", "db")
    assert api.container_id == env["api"].container_id


async def test_services_get_their_alias_and_env(backend, provisioner, ledger, web_app):
    """Test that containers join the network under the service name."""
    env = await provisioner.instantiate(web_app, ledger)

    meta = await backend.inspect_container(env["api"].container_id)
    assert meta["NetworkSettings"]["Networks"]["net-1"]["Aliases"] == ["api"]
    assert meta["Config"]["Env"] == ["DB_HOST=db"]


async def test_addresses(provisioner, ledger, web_app):
    """Test that services resolve to their address on the test network."""
    env = await provisioner.instantiate(web_app, ledger)

    assert await env["api"].ip() == ipaddress.ip_address("10.89.1.2")
    assert await env["db"].ip() == ipaddress.ip_address("10.89.1.3")


async def test_failed_start_leaves_container_in_ledger(backend, provisioner, ledger):
    """Test that a container whose start fails is still registered for rollback."""
    backend.fail_on("start_container")
    app = ApplicationConfig("web", (ServiceConfig("api", API_IMAGE),))

    with pytest.raises(BackendError, match="start_container failed"):
        await provisioner.instantiate(app, ledger)

    assert [type(r) for r in ledger.resources] == [NetworkResource, ServiceResource]
    await ledger.cleanup(provisioner)
    assert not backend.containers
    assert not backend.networks


async def test_failed_container_creation_keeps_network(backend, provisioner, ledger):
    """Test that the network is already registered when container creation fails."""
    backend.fail_on("create_container", DB_IMAGE)
    app = ApplicationConfig(
        "web", (ServiceConfig("api", API_IMAGE), ServiceConfig("db", DB_IMAGE))
    )

    with pytest.raises(BackendError):
        await provisioner.instantiate(app, ledger)

    assert len(ledger) == 2


async def test_health_check_waits_for_success(backend, ledger):
    """Test that provisioning waits until the health route answers 2xx."""
    answers = iter([503, 503, 200])
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(next(answers))

    provisioner = _provisioner(backend, handler)
    app = ApplicationConfig(
        "web", (ServiceConfig("api", API_IMAGE).with_health("/healthz", 8080),)
    )

    await provisioner.instantiate(app, ledger)

    assert seen == ["http://10.89.1.2:8080/healthz"] * 3


async def test_health_check_tolerates_connection_errors(backend, ledger):
    """Test that refused connections are retried like bad statuses."""
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(204)

    provisioner = _provisioner(backend, handler)
    app = ApplicationConfig(
        "web", (ServiceConfig("api", API_IMAGE).with_health("/", 80),)
    )

    await provisioner.instantiate(app, ledger)
    assert len(attempts) == 2


async def test_health_check_timeout(backend, ledger):
    """Test that a service that never turns healthy aborts provisioning."""
    provisioner = _provisioner(backend, lambda request: httpx.Response(500))
    app = ApplicationConfig(
        "web", (ServiceConfig("api", API_IMAGE).with_health("/healthz", 8080),)
    )

    with pytest.raises(UnhealthyServiceError, match="service 'api' not healthy"):
        await provisioner.instantiate(app, ledger)

    assert len(ledger) == 2


async def test_health_check_unexpected_error_fails_fast(backend, ledger):
    """Test that a request that cannot be issued aborts without waiting."""
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise OverflowError("port out of range")

    provisioner = EnvironmentProvisioner(
        backend,
        SequentialNameGenerator(),
        health_timeout=60,
        health_interval=0.01,
        http_transport=httpx.MockTransport(handler),
    )
    app = ApplicationConfig(
        "web", (ServiceConfig("api", API_IMAGE).with_health("/healthz", 8080),)
    )

    with pytest.raises(UnhealthyServiceError, match="port out of range") as info:
        await provisioner.instantiate(app, ledger)

    assert isinstance(info.value.__cause__, OverflowError)
    assert len(attempts) == 1
    assert len(ledger) == 2


async def test_health_check_skipped_when_disabled(backend, ledger):
    """Test that a provisioner with health checks off never polls."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request to {request.url}")

    provisioner = EnvironmentProvisioner(
        backend,
        SequentialNameGenerator(),
        http_transport=httpx.MockTransport(handler),
        check_health=False,
    )
    app = ApplicationConfig(
        "web", (ServiceConfig("api", API_IMAGE).with_health("/healthz", 8080),)
    )

    env = await provisioner.instantiate(app, ledger)

    assert list(env) == ["api"]


async def test_teardown_removes_resources(backend, provisioner, ledger, web_app):
    """Test that teardown removes containers and then the network."""
    await provisioner.instantiate(web_app, ledger)

    assert await ledger.cleanup(provisioner) == []
    assert not backend.containers
    assert not backend.networks
    assert len(backend.operations("remove_container")) == 2
    assert backend.operations("remove_network") == ["net-1"]


async def test_network_partition(backend, provisioner, ledger, web_app):
    """Test disconnecting and reconnecting a service."""
    env = await provisioner.instantiate(web_app, ledger)
    db = env["db"]

    await db.disconnect()
    assert "net-1" not in backend.containers[db.container_id].endpoints
    with pytest.raises(BackendError, match="invalid network metadata"):
        await db.ip()

    await db.connect()
    endpoint = backend.containers[db.container_id].endpoints["net-1"]
    assert endpoint["Aliases"] == ["db"]
    assert isinstance(await db.ip(), ipaddress.IPv4Address)


async def test_pause_and_unpause(backend, provisioner, ledger, web_app):
    """Test suspending and resuming a service."""
    env = await provisioner.instantiate(web_app, ledger)
    api = env["api"]

    await api.pause()
    assert backend.containers[api.container_id].paused
    await api.unpause()
    assert not backend.containers[api.container_id].paused


async def test_pause_errors_propagate(backend, provisioner, ledger, web_app):
    """Test that backend refusals reach the caller."""
    env = await provisioner.instantiate(web_app, ledger)

    with pytest.raises(BackendError) as excinfo:
        await env["api"].unpause()
    assert excinfo.value.status_code == 409


async def test_stream_logs_tags_service(backend, provisioner, ledger, web_app):
    """Test that log chunks are decoded and tagged with the service name."""
    env = await provisioner.instantiate(web_app, ledger)
    container_id = env["db"].container_id
    backend.emit_log(container_id, b"ready\n")
    backend.emit_log(container_id, b"bad \xff byte\n")
    backend.end_logs(container_id)

    lines = [line async for line in provisioner.stream_logs(env["db"].resource)]

    assert lines == [LogLine("db", "ready\n"), LogLine("db", "bad � byte\n")]


async def test_stream_logs_splits_chunks_into_lines(
    backend, provisioner, ledger, web_app
):
    """Test that a chunk holding several lines yields one entry per line."""
    env = await provisioner.instantiate(web_app, ledger)
    container_id = env["db"].container_id
    backend.emit_log(container_id, b"first\nsecond\n")
    backend.end_logs(container_id)

    lines = [line async for line in provisioner.stream_logs(env["db"].resource)]

    assert lines == [LogLine("db", "first\n"), LogLine("db", "second\n")]


async def test_stream_logs_joins_split_lines_and_characters(
    backend, provisioner, ledger, web_app
):
    """Test that lines and UTF-8 sequences cut across chunks come out whole."""
    env = await provisioner.instantiate(web_app, ledger)
    container_id = env["db"].container_id
    backend.emit_log(container_id, b"caf\xc3")
    backend.emit_log(container_id, b"\xa9 open\nhalf")
    backend.emit_log(container_id, b" a line\ntail")
    backend.end_logs(container_id)

    lines = [line async for line in provisioner.stream_logs(env["db"].resource)]

    assert lines == [
        LogLine("db", "café open\n"),
        LogLine("db", "half a line\n"),
        LogLine("db", "tail"),
    ]


async def test_environment_lookup(provisioner, ledger, web_app):
    """Test looking services up by name."""
    env = await provisioner.instantiate(web_app, ledger)

    assert env.service("api") is env["api"]
    assert env.service("cache") is None
    assert len(env) == 2
