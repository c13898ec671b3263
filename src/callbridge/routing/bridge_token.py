"""
Continuation state for the two-leg bridge.

Twilio holds this state between the agent answering and the bridge request:
it is serialized into the /connect-call URL when the agent leg is placed and
parsed back, with the same field set, when Twilio fetches that URL.
"""

from collections.abc import Mapping
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from callbridge.shared.exceptions import InputError

# Query-string key for each field, in validation order.
_QUERY_KEYS: dict[str, str] = {
    "contact_id": "contactId",
    "owner_id": "ownerId",
    "to": "to",
    "from_number": "from",
}


class BridgeToken(BaseModel):
    """Contact, agent and both numbers needed to bridge the customer leg."""

    model_config = ConfigDict(frozen=True)

    contact_id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    to: str = Field(..., min_length=1, description="Customer number to dial")
    from_number: str = Field(..., min_length=1, description="Caller-id number")

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "BridgeToken":
        """Parse a token from callback query parameters.

        Raises:
            InputError: naming the first missing or empty parameter.
        """
        values: dict[str, str] = {}
        for attr, key in _QUERY_KEYS.items():
            value = (params.get(key) or "").strip()
            if not value:
                raise InputError(key)
            values[attr] = value
        return cls(**values)

    def to_query(self) -> dict[str, str]:
        return {key: getattr(self, attr) for attr, key in _QUERY_KEYS.items()}

    def bridge_url(self, base_url: str) -> str:
        """URL Twilio fetches once the agent leg is answered."""
        return f"{base_url.rstrip('/')}/connect-call?{urlencode(self.to_query())}"

    def recording_callback_url(self, base_url: str) -> str:
        """URL Twilio POSTs to when the bridged call's recording completes."""
        query = urlencode({"contactId": self.contact_id, "ownerId": self.owner_id})
        return f"{base_url.rstrip('/')}/recording-callback?{query}"
