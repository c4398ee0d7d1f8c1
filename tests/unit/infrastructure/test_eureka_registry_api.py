"""Tests for the registry REST adapter."""

from __future__ import annotations

import json

import pytest

from eureka_sdk.domain.enums import TransportErrorKind
from eureka_sdk.domain.exceptions import (
    DecodeError,
    NotRegisteredError,
    RegistryRequestError,
    TransportError,
)
from eureka_sdk.infrastructure.eureka_registry_api import EurekaRegistryApi
from eureka_sdk.ports.transport import TransportResponse
from tests.builders import InstanceRecordBuilder, an_instance, registry_document
from tests.fakes import FakeTransport, FixedClock


def ok(body: bytes = b"", status: int = 200) -> TransportResponse:
    return TransportResponse(status_code=status, body=body)


@pytest.fixture
def instance():
    return InstanceRecordBuilder().with_service("orders").with_id("10.0.0.1:orders:8080").build()


class TestEurekaRegistryApi:
    """Test cases for EurekaRegistryApi."""

    @pytest.mark.asyncio
    async def test_register_posts_instance_document(self, instance):
        transport = FakeTransport(ok(status=204))
        api = EurekaRegistryApi(transport)

        await api.register(instance)

        request = transport.requests[0]
        assert request["method"] == "POST"
        assert request["path"] == "/eureka/v2/apps/ORDERS"
        assert request["headers"]["Content-Type"] == "application/json"
        assert request["headers"]["Accept"] == "application/json"
        assert json.loads(request["body"])["instance"]["instanceId"] == "10.0.0.1:orders:8080"

    @pytest.mark.asyncio
    async def test_register_rejection(self, instance):
        api = EurekaRegistryApi(FakeTransport(ok(b"bad instance", status=400)))

        with pytest.raises(RegistryRequestError) as exc_info:
            await api.register(instance)

        assert exc_info.value.status_code == 400
        assert exc_info.value.operation == "register"
        assert exc_info.value.body == "bad instance"

    @pytest.mark.asyncio
    async def test_heartbeat_path_is_percent_encoded(self, instance):
        transport = FakeTransport(ok())
        api = EurekaRegistryApi(transport, service_path="eureka/apps")

        await api.send_heartbeat(instance)

        assert transport.requests[0]["method"] == "PUT"
        assert transport.requests[0]["path"] == "/eureka/apps/ORDERS/10.0.0.1%3Aorders%3A8080"
        assert transport.requests[0]["body"] is None

    @pytest.mark.asyncio
    async def test_heartbeat_not_found(self, instance):
        api = EurekaRegistryApi(FakeTransport(ok(status=404)))

        with pytest.raises(NotRegisteredError) as exc_info:
            await api.send_heartbeat(instance)

        assert exc_info.value.instance_id == instance.instance_id

    @pytest.mark.asyncio
    async def test_heartbeat_server_error(self, instance):
        api = EurekaRegistryApi(FakeTransport(ok(status=500)))
        with pytest.raises(RegistryRequestError):
            await api.send_heartbeat(instance)

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, instance):
        error = TransportError(TransportErrorKind.CONNECTION_REFUSED, "refused")
        api = EurekaRegistryApi(FakeTransport(error))

        with pytest.raises(TransportError):
            await api.send_heartbeat(instance)

    @pytest.mark.asyncio
    async def test_deregister(self, instance):
        transport = FakeTransport(ok(), ok(status=500))
        api = EurekaRegistryApi(transport)

        await api.deregister(instance)
        with pytest.raises(RegistryRequestError):
            await api.deregister(instance)

        assert transport.requests[0]["method"] == "DELETE"
        assert transport.requests[0]["path"].startswith("/eureka/v2/apps/ORDERS/")

    @pytest.mark.asyncio
    async def test_fetch_registry(self):
        document = registry_document(an_instance("a-1"), an_instance("a-2"), hashcode="UP_2_")
        transport = FakeTransport(ok(json.dumps(document).encode()))
        clock = FixedClock()
        api = EurekaRegistryApi(transport, clock=clock)

        snapshot, errors = await api.fetch_registry()

        assert transport.requests[0]["method"] == "GET"
        assert transport.requests[0]["path"] == "/eureka/v2/apps/"
        assert errors == []
        assert snapshot.instance_count() == 2
        assert snapshot.version == "UP_2_"
        assert snapshot.fetched_at == clock.now()

    @pytest.mark.asyncio
    async def test_fetch_registry_failure_status(self):
        api = EurekaRegistryApi(FakeTransport(ok(status=503)))
        with pytest.raises(RegistryRequestError):
            await api.fetch_registry()

    @pytest.mark.asyncio
    async def test_fetch_registry_garbage_body(self):
        api = EurekaRegistryApi(FakeTransport(ok(b"<html>")))
        with pytest.raises(DecodeError):
            await api.fetch_registry()

    @pytest.mark.asyncio
    async def test_fetch_delta(self):
        document = registry_document(an_instance("a-3"), delta_actions={"a-3": "ADDED"})
        transport = FakeTransport(ok(json.dumps(document).encode()))
        api = EurekaRegistryApi(transport)

        delta, errors = await api.fetch_delta()

        assert transport.requests[0]["path"] == "/eureka/v2/apps/delta"
        assert errors == []
        assert delta.changes[0].instance.instance_id == "a-3"
