"""
Browser calling credentials for one-leg agents.
"""

from dataclasses import dataclass

from twilio.jwt.access_token import AccessToken
from twilio.jwt.access_token.grants import VoiceGrant

from callbridge.config import Settings
from callbridge.registry.schemas import CallMode
from callbridge.routing.resolver import RoutingResolver
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    identity: str
    token: str


class TokenIssuer:
    """Mints Twilio access tokens scoped to an agent's one-leg identity."""

    def __init__(self, resolver: RoutingResolver, settings: Settings) -> None:
        self._resolver = resolver
        self._settings = settings

    async def issue(self, agent_name: str) -> IssuedToken:
        """Issue a voice token for `agent_name`.

        The grant allows outgoing calls through the identity's outbound
        application and incoming calls to the agent's client identity.

        Raises:
            ConfigurationError: If the agent has no usable one-leg assignment.
        """
        route = await self._resolver.resolve(agent_name, CallMode.ONE_LEG)
        identity = route.identity

        token = AccessToken(
            identity.account_sid,
            identity.api_key_sid or identity.account_sid,
            identity.api_key_secret or identity.auth_token,
            identity=agent_name,
            ttl=self._settings.token_ttl_seconds,
        )
        token.add_grant(
            VoiceGrant(
                outgoing_application_sid=identity.twiml_app_sid or self._settings.twiml_app_sid or None,
                incoming_allow=True,
            )
        )
        jwt = token.to_jwt()
        jwt = jwt.decode("utf-8") if isinstance(jwt, bytes) else str(jwt)

        logger.info("Voice token issued", extra={"agent": agent_name})
        return IssuedToken(identity=agent_name, token=jwt)
