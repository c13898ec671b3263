"""
Recording reconciliation: log a completed, recorded call on the CRM contact.

Twilio retries the recording callback until it gets a 2xx, so nothing here
may raise to the caller. Creation and association are two separate writes;
an association failure leaves the engagement unassociated.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from callbridge.crm.client import CrmClientError
from callbridge.shared.exceptions import CallbackProcessingError
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)

CALL_TITLE = "Outbound call via Twilio"
COMPLETED_BODY = "Call completed"

_LEADING_INT = re.compile(r"\s*[-+]?\d+")


class EngagementSink(Protocol):
    """CRM write capability (HubSpotClient in production)."""

    async def create_call(self, properties: dict[str, Any]) -> str | None: ...

    async def associate_call_with_contact(self, call_id: str, contact_id: str) -> None: ...


@dataclass(frozen=True)
class RecordingCallback:
    """Fields of Twilio's recording-status callback plus our query params."""

    contact_id: str | None
    owner_id: str | None
    recording_url: str | None = None
    recording_duration: str | None = None
    from_number: str | None = None
    to_number: str | None = None


@dataclass(frozen=True)
class ReconcileResult:
    engagement_id: str | None
    associated: bool
    error: str | None = None


def duration_ms(raw_seconds: str | None) -> int:
    """Recording duration in milliseconds from the leading integer; 0 when absent."""
    match = _LEADING_INT.match(raw_seconds or "")
    if match is None:
        return 0
    return max(int(match.group()), 0) * 1000


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordingReconciler:
    """Turns a recording callback into a CRM call engagement."""

    def __init__(
        self,
        crm: EngagementSink,
        recording_extension: str = ".mp3",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._crm = crm
        self._recording_extension = recording_extension
        self._clock = clock

    def build_properties(self, callback: RecordingCallback) -> dict[str, Any]:
        """Engagement properties; call start = now minus recording duration."""
        received_at = self._clock()
        millis = duration_ms(callback.recording_duration)
        started_at = received_at - timedelta(milliseconds=millis)

        recording_url = ""
        if callback.recording_url:
            recording_url = f"{callback.recording_url}{self._recording_extension}"

        properties = {
            "hs_timestamp": format_timestamp(started_at),
            "hs_call_title": CALL_TITLE,
            "hs_call_body": f"Recording: {recording_url}" if recording_url else COMPLETED_BODY,
            "hs_call_duration": str(millis),
            "hs_call_status": "COMPLETED",
            "hs_call_direction": "OUTBOUND",
            "hs_call_from_number": callback.from_number,
            "hs_call_to_number": callback.to_number,
            "hubspot_owner_id": callback.owner_id,
        }
        # Fields Twilio did not send are left out rather than written as null.
        return {key: value for key, value in properties.items() if value is not None}

    async def _write(self, callback: RecordingCallback) -> ReconcileResult:
        properties = self.build_properties(callback)

        try:
            engagement_id = await self._crm.create_call(properties)
        except CrmClientError as e:
            raise CallbackProcessingError(
                "Failed to create call engagement",
                details={"status_code": e.status_code, "error": e.response_body},
            ) from e

        if not engagement_id or not callback.contact_id:
            return ReconcileResult(engagement_id=engagement_id, associated=False)

        try:
            await self._crm.associate_call_with_contact(engagement_id, callback.contact_id)
        except CrmClientError as e:
            raise CallbackProcessingError(
                "Failed to associate call engagement",
                details={
                    "engagement_id": engagement_id,
                    "status_code": e.status_code,
                    "error": e.response_body,
                },
            ) from e

        return ReconcileResult(engagement_id=engagement_id, associated=True)

    async def reconcile(self, callback: RecordingCallback) -> ReconcileResult:
        """Log the call; failures are logged and reported in the result only."""
        try:
            result = await self._write(callback)
        except CallbackProcessingError as e:
            # Left for an out-of-band sweep keyed on engagement_id.
            logger.error(
                "Error logging call in HubSpot",
                extra={"contact_id": callback.contact_id, "reason": e.message, **e.details},
            )
            return ReconcileResult(
                engagement_id=e.details.get("engagement_id"),
                associated=False,
                error=e.message,
            )

        logger.info(
            "Call engagement logged",
            extra={
                "contact_id": callback.contact_id,
                "engagement_id": result.engagement_id,
                "associated": result.associated,
            },
        )
        return result
