"""
Pydantic schemas for the configuration registry.

Wire format uses camelCase keys, matching the configuration UI.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CallMode(str, Enum):
    """How an agent places calls."""

    ONE_LEG = "1-leg"
    TWO_LEG = "2-leg"


class RegistryModel(BaseModel):
    """Base for registry records: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )


class TelephonyIdentity(RegistryModel):
    """A provisioned outbound caller identity (Twilio account + number)."""

    account_sid: str = Field(..., min_length=1, description="Twilio account SID")
    auth_token: str = Field(..., min_length=1, description="Twilio auth token")
    number: str = Field(..., min_length=1, max_length=32, description="E.164 number")
    twiml_app_sid: str | None = Field(
        default=None,
        description="Outbound application SID for browser-originated calls",
    )
    api_key_sid: str | None = Field(
        default=None,
        description="Signing key SID for browser tokens (defaults to account SID)",
    )
    api_key_secret: str | None = Field(
        default=None,
        description="Signing key secret for browser tokens (defaults to auth token)",
    )


class Agent(RegistryModel):
    """A human call recipient."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=32, description="E.164 number")


class AssignmentRecord(RegistryModel):
    """Binds an agent to a telephony identity and a call mode."""

    agent: str = Field(..., min_length=1, max_length=255, description="Agent name")
    mode: CallMode
    identity_number: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="TelephonyIdentity.number",
    )


def _ensure_unique(values: list[str], label: str) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ValueError(f"Duplicate {label}: {value}")
        seen.add(value)


class RegistrySnapshot(RegistryModel):
    """All three record sets, in registry order."""

    telephony_identities: list[TelephonyIdentity] = Field(default_factory=list)
    agents: list[Agent] = Field(default_factory=list)
    assignments: list[AssignmentRecord] = Field(default_factory=list)


class RegistryReplaceRequest(RegistryModel):
    """Body of POST /config/all. Omitted sets are left untouched."""

    telephony_identities: list[TelephonyIdentity] | None = None
    agents: list[Agent] | None = None
    assignments: list[AssignmentRecord] | None = None

    @model_validator(mode="after")
    def check_unique_keys(self) -> "RegistryReplaceRequest":
        if self.telephony_identities is not None:
            _ensure_unique([i.number for i in self.telephony_identities], "telephony number")
        if self.agents is not None:
            _ensure_unique([a.name for a in self.agents], "agent name")
        return self
