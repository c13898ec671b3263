"""
Tests for the HubSpot CRM client.
"""

import json

import httpx
import pytest

from callbridge.config import Settings
from callbridge.crm.client import ContactRecord, CrmClientError, HubSpotClient


def _client(settings: Settings, handler) -> HubSpotClient:
    http_client = httpx.AsyncClient(
        base_url=settings.hubspot_api_base_url,
        transport=httpx.MockTransport(handler),
    )
    return HubSpotClient(settings, http_client=http_client)


class TestContactRecord:
    def test_destination(self) -> None:
        contact = ContactRecord(id="1", phone="+1555", mobilephone="")

        assert contact.destination(use_mobile=False) == "+1555"
        assert contact.destination(use_mobile=True) is None

    def test_agent_key_prefers_assigned_agent_name(self) -> None:
        assert ContactRecord(id="1", owner_id="42", assigned_agent_name="alice").agent_key == "alice"
        assert ContactRecord(id="1", owner_id="42").agent_key == "42"
        assert ContactRecord(id="1").agent_key is None


class TestHubSpotClient:
    @pytest.mark.asyncio
    async def test_get_contact(self, test_settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "123",
                    "properties": {
                        "phone": "+15551234567",
                        "mobilephone": None,
                        "hubspot_owner_id": "agent1",
                    },
                },
            )

        contact = await _client(test_settings, handler).get_contact("123")

        assert contact == ContactRecord(id="123", phone="+15551234567", owner_id="agent1")
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/crm/v3/objects/contacts/123"
        assert request.url.params["properties"] == (
            "phone,mobilephone,hubspot_owner_id,assigned_agent_name"
        )
        assert request.headers["Authorization"] == "Bearer test-hubspot-token"

    @pytest.mark.asyncio
    async def test_get_contact_error(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"status": "error", "message": "resource not found"})

        with pytest.raises(CrmClientError) as exc_info:
            await _client(test_settings, handler).get_contact("999")

        assert exc_info.value.status_code == 404
        assert exc_info.value.response_body["message"] == "resource not found"

    @pytest.mark.asyncio
    async def test_transport_error(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(CrmClientError) as exc_info:
            await _client(test_settings, handler).get_contact("123")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_create_call(self, test_settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": 9001})

        call_id = await _client(test_settings, handler).create_call({"hs_call_title": "t"})

        assert call_id == "9001"
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/crm/v3/objects/calls"
        assert json.loads(seen[0].content) == {"properties": {"hs_call_title": "t"}}

    @pytest.mark.asyncio
    async def test_create_call_without_id(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json={})

        assert await _client(test_settings, handler).create_call({}) is None

    @pytest.mark.asyncio
    async def test_associate_call_with_contact(self, test_settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        await _client(test_settings, handler).associate_call_with_contact("9001", "123")

        assert seen[0].method == "PUT"
        assert seen[0].url.path == (
            "/crm/v3/objects/calls/9001/associations/contacts/123/call_to_contact"
        )
