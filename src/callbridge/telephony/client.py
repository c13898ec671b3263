"""
Twilio REST client for outbound call creation.

Credentials come from the resolved TelephonyIdentity, not from global
settings, so one client serves every configured account.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx

from callbridge.config import Settings, get_settings
from callbridge.registry.schemas import TelephonyIdentity
from callbridge.shared.logging import get_logger, mask

logger = get_logger(__name__)


class TelephonyClientError(Exception):
    """Base exception for telephony provider errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.provider_response = provider_response or {}


class CallDispatchError(TelephonyClientError):
    """Error during call creation."""


@dataclass(frozen=True)
class CallDispatch:
    """Acknowledgement of a created call."""

    call_sid: str
    status: str
    raw_response: dict[str, Any] = field(default_factory=dict)


class TwilioCallClient:
    """Creates calls through the Twilio REST API using httpx."""

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
                timeout=httpx.Timeout(self._settings.http_timeout_seconds),
            )
        return self._http_client

    async def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _calls_url(self, account_sid: str) -> str:
        base = self._settings.twilio_api_base_url.rstrip("/")
        return f"{base}/2010-04-01/Accounts/{account_sid}/Calls.json"

    async def create_call(
        self,
        identity: TelephonyIdentity,
        to: str,
        from_number: str,
        url: str,
        method: str = "GET",
    ) -> CallDispatch:
        """Place an outbound call; Twilio fetches `url` once the callee answers.

        Raises:
            CallDispatchError: If Twilio rejects the request or is unreachable.
        """
        client = self._get_client()
        payload = {"To": to, "From": from_number, "Url": url, "Method": method}

        logger.info(
            "Initiating Twilio call",
            extra={
                "account_sid": mask(identity.account_sid),
                "to": to,
                "from": from_number,
            },
        )

        try:
            response = await client.post(
                self._calls_url(identity.account_sid),
                data=payload,
                auth=(identity.account_sid, identity.auth_token),
            )
        except httpx.HTTPError as e:
            logger.exception(
                "HTTP error during Twilio call initiation",
                extra={"account_sid": mask(identity.account_sid)},
            )
            raise CallDispatchError(
                message=f"HTTP error: {e!s}",
                error_code="HTTP_ERROR",
            ) from e

        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {"message": response.text}
            logger.error(
                "Twilio call initiation failed",
                extra={"status_code": response.status_code, "error": error_data},
            )
            raise CallDispatchError(
                message=error_data.get("message", "Call initiation failed"),
                error_code=str(error_data.get("code", response.status_code)),
                provider_response=error_data,
            )

        data = response.json()
        return CallDispatch(
            call_sid=data.get("sid", ""),
            status=data.get("status", "queued"),
            raw_response=data,
        )
