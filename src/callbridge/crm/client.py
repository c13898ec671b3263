"""
HubSpot CRM client: contact lookup and call-engagement logging.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from callbridge.config import Settings, get_settings
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)

CONTACT_CALL_PROPERTIES = ("phone", "mobilephone", "hubspot_owner_id", "assigned_agent_name")


class CrmClientError(Exception):
    """Raised when a CRM request fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


@dataclass(frozen=True)
class ContactRecord:
    """The contact fields the call flows need."""

    id: str
    phone: str | None = None
    mobilephone: str | None = None
    owner_id: str | None = None
    assigned_agent_name: str | None = None

    def destination(self, use_mobile: bool) -> str | None:
        """Number to dial: mobile or primary phone."""
        number = self.mobilephone if use_mobile else self.phone
        return number or None

    @property
    def agent_key(self) -> str | None:
        """Routing key: explicit agent name, falling back to the CRM owner id."""
        return self.assigned_agent_name or self.owner_id or None


class HubSpotClient:
    """Thin async client over the HubSpot CRM v3 objects API."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._settings.hubspot_api_base_url,
                timeout=httpx.Timeout(self._settings.http_timeout_seconds),
            )
        return self._http_client

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._settings.hubspot_private_app_token}"}

    async def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "HubSpot request failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise CrmClientError(f"HubSpot {operation} failed: {e!s}") from e

        if response.status_code >= 400:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            logger.error(
                "HubSpot API error",
                extra={
                    "operation": operation,
                    "status_code": response.status_code,
                    "error": body,
                },
            )
            raise CrmClientError(
                f"HubSpot {operation} returned {response.status_code}",
                status_code=response.status_code,
                response_body=body,
            )
        return response

    async def get_contact(
        self,
        contact_id: str,
        properties: tuple[str, ...] = CONTACT_CALL_PROPERTIES,
    ) -> ContactRecord:
        """Fetch a contact with the given properties.

        Args:
            contact_id: HubSpot contact object id.
            properties: Contact properties to request.

        Returns:
            ContactRecord with the call-relevant fields.

        Raises:
            CrmClientError: If the request fails.
        """
        response = await self._request(
            "GET",
            f"/crm/v3/objects/contacts/{contact_id}",
            operation="get_contact",
            params={"properties": ",".join(properties)},
        )
        data = response.json() or {}
        props = data.get("properties") or {}
        return ContactRecord(
            id=str(data.get("id") or contact_id),
            phone=props.get("phone"),
            mobilephone=props.get("mobilephone"),
            owner_id=props.get("hubspot_owner_id"),
            assigned_agent_name=props.get("assigned_agent_name"),
        )

    async def create_call(self, properties: dict[str, Any]) -> str | None:
        """Create a call engagement and return its id (None if HubSpot omits it)."""
        response = await self._request(
            "POST",
            "/crm/v3/objects/calls",
            operation="create_call",
            json={"properties": properties},
        )
        call_id = (response.json() or {}).get("id")
        return str(call_id) if call_id else None

    async def associate_call_with_contact(self, call_id: str, contact_id: str) -> None:
        """Attach a call engagement to a contact's timeline."""
        await self._request(
            "PUT",
            f"/crm/v3/objects/calls/{call_id}/associations/contacts/{contact_id}/call_to_contact",
            operation="associate_call",
            json={},
        )
