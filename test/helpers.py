"""
Shared test doubles and phone numbers for the call-flow tests.
"""
from __future__ import annotations

from typing import Any

from callbridge.crm.client import ContactRecord, CrmClientError
from callbridge.registry.schemas import RegistrySnapshot, TelephonyIdentity
from callbridge.telephony.client import CallDispatch

PUBLIC_BASE = "https://calls.example.com"

TWO_LEG_NUMBER = "+15559999999"
ONE_LEG_NUMBER = "+15557777777"
AGENT_PHONE = "+15558888888"
CONTACT_PHONE = "+15551234567"
CONTACT_MOBILE = "+15550001111"


class StaticRegistry:
    """In-memory RegistryReader that counts reads."""

    def __init__(self, snapshot: RegistrySnapshot) -> None:
        self._snapshot = snapshot
        self.reads = 0

    async def snapshot(self) -> RegistrySnapshot:
        self.reads += 1
        return self._snapshot


class FakeCrm:
    """Records every CRM interaction; failures are opt-in."""

    def __init__(
        self,
        contacts: dict[str, ContactRecord] | None = None,
        engagement_id: str | None = "9001",
    ) -> None:
        self.contacts = contacts or {}
        self.engagement_id = engagement_id
        self.lookups: list[str] = []
        self.created: list[dict[str, Any]] = []
        self.associations: list[tuple[str, str]] = []
        self.fail_get = False
        self.fail_create = False
        self.fail_associate = False

    async def get_contact(self, contact_id: str) -> ContactRecord:
        self.lookups.append(contact_id)
        if self.fail_get:
            raise CrmClientError("HubSpot get_contact returned 502", status_code=502)
        if contact_id not in self.contacts:
            raise CrmClientError("HubSpot get_contact returned 404", status_code=404)
        return self.contacts[contact_id]

    async def create_call(self, properties: dict[str, Any]) -> str | None:
        if self.fail_create:
            raise CrmClientError("HubSpot create_call returned 400", status_code=400)
        self.created.append(properties)
        return self.engagement_id

    async def associate_call_with_contact(self, call_id: str, contact_id: str) -> None:
        if self.fail_associate:
            raise CrmClientError("HubSpot associate_call returned 404", status_code=404)
        self.associations.append((call_id, contact_id))

    async def close(self) -> None:
        return None


class FakeDispatcher:
    """Stands in for TwilioCallClient."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

    async def create_call(
        self,
        identity: TelephonyIdentity,
        to: str,
        from_number: str,
        url: str,
        method: str = "GET",
    ) -> CallDispatch:
        if self.error is not None:
            raise self.error
        self.calls.append(
            {
                "identity": identity,
                "to": to,
                "from_number": from_number,
                "url": url,
                "method": method,
            }
        )
        return CallDispatch(call_sid="CA_TEST_CALL_SID", status="queued")

    async def close(self) -> None:
        return None
