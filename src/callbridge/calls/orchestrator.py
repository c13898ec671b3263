"""
Call orchestration for one-leg (browser) and two-leg (agent, then customer) calls.

Two-leg flow:
  1. Dialing-Agent: Twilio is asked to call the agent from the resolved
     identity, with /connect-call (carrying a BridgeToken) as the answer URL.
  2. Awaiting-Bridge: held entirely by Twilio until the agent picks up.
  3. Bridged: Twilio fetches /connect-call and receives a recorded <Dial>
     to the customer.
Nothing is stored locally between steps and nothing is retried.
"""

from dataclasses import dataclass
from typing import Protocol

from callbridge.crm.client import ContactRecord, CrmClientError
from callbridge.registry.schemas import CallMode, TelephonyIdentity
from callbridge.routing.bridge_token import BridgeToken
from callbridge.routing.resolver import RoutingResolver
from callbridge.shared.exceptions import ConfigurationError, UpstreamError
from callbridge.shared.logging import get_logger
from callbridge.telephony import twiml
from callbridge.telephony.client import CallDispatch, TelephonyClientError

logger = get_logger(__name__)


class ContactSource(Protocol):
    """Contact lookup capability (HubSpotClient in production)."""

    async def get_contact(self, contact_id: str) -> ContactRecord: ...


class CallDispatcher(Protocol):
    """Outbound call creation capability (TwilioCallClient in production)."""

    async def create_call(
        self,
        identity: TelephonyIdentity,
        to: str,
        from_number: str,
        url: str,
        method: str = "GET",
    ) -> CallDispatch: ...


@dataclass(frozen=True)
class DialResult:
    """Outcome of a dispatched two-leg call."""

    message: str
    call_sid: str
    bridge: BridgeToken


class CallOrchestrator:
    """Drives both call modes on top of routing, CRM and Twilio."""

    def __init__(
        self,
        resolver: RoutingResolver,
        contacts: ContactSource,
        dispatcher: CallDispatcher,
    ) -> None:
        self._resolver = resolver
        self._contacts = contacts
        self._dispatcher = dispatcher

    async def _fetch_contact(self, contact_id: str) -> ContactRecord:
        try:
            return await self._contacts.get_contact(contact_id)
        except CrmClientError as e:
            raise UpstreamError(
                "Failed to retrieve contact data",
                details={"contact_id": contact_id, "status_code": e.status_code},
            ) from e

    async def start_two_leg(
        self,
        contact_id: str,
        use_mobile: bool,
        base_url: str,
    ) -> DialResult:
        """Place the agent leg of a two-leg call.

        Args:
            contact_id: CRM contact to call.
            use_mobile: Dial the contact's mobile instead of the primary phone.
            base_url: Public base URL for the bridge callback.

        Raises:
            ConfigurationError: Unroutable agent or contact without the number.
            UpstreamError: CRM lookup or Twilio call creation failed.
        """
        contact = await self._fetch_contact(contact_id)
        destination = contact.destination(use_mobile)
        agent_key = contact.agent_key

        route = await self._resolver.resolve(agent_key, CallMode.TWO_LEG)
        if destination is None:
            logger.warning(
                "Contact has no number for requested field",
                extra={"contact_id": contact_id, "use_mobile": use_mobile},
            )
            raise ConfigurationError(details={"reason": "no_destination"})

        agent = route.agent
        if agent is None or agent_key is None:
            raise ConfigurationError(details={"reason": "no_agent"})

        bridge = BridgeToken(
            contact_id=contact_id,
            owner_id=agent_key,
            to=destination,
            from_number=route.identity.number,
        )

        try:
            dispatch = await self._dispatcher.create_call(
                route.identity,
                to=agent.phone,
                from_number=route.identity.number,
                url=bridge.bridge_url(base_url),
                method="GET",
            )
        except TelephonyClientError as e:
            raise UpstreamError(
                "2-leg call failed",
                details={"contact_id": contact_id, "error_code": e.error_code},
            ) from e

        logger.info(
            "Agent leg dispatched",
            extra={
                "contact_id": contact_id,
                "agent": agent.name,
                "call_sid": dispatch.call_sid,
            },
        )
        kind = "mobile" if use_mobile else "phone"
        return DialResult(
            message=f"2-leg {kind} call started",
            call_sid=dispatch.call_sid,
            bridge=bridge,
        )

    async def one_leg_document(
        self,
        contact_id: str,
        agent_name: str,
        use_mobile: bool,
    ) -> str:
        """TwiML connecting a browser caller straight to the contact.

        Raises:
            ConfigurationError: Unroutable agent or contact without the number.
            UpstreamError: CRM lookup failed.
        """
        route = await self._resolver.resolve(agent_name, CallMode.ONE_LEG)
        contact = await self._fetch_contact(contact_id)
        destination = contact.destination(use_mobile)
        if destination is None:
            logger.warning(
                "Contact has no number for requested field",
                extra={"contact_id": contact_id, "use_mobile": use_mobile},
            )
            raise ConfigurationError(details={"reason": "no_destination"})

        logger.info(
            "One-leg dial document issued",
            extra={"contact_id": contact_id, "agent": agent_name},
        )
        return twiml.dial_document(route.identity.number, destination)


def bridge_document(bridge: BridgeToken, base_url: str) -> str:
    """TwiML bridging the answered agent leg to the customer, recorded.

    Needs no registry or CRM access: everything comes from the token.
    """
    logger.info(
        "Bridging agent to customer",
        extra={"contact_id": bridge.contact_id, "owner_id": bridge.owner_id},
    )
    return twiml.dial_document(
        bridge.from_number,
        bridge.to,
        recording_callback_url=bridge.recording_callback_url(base_url),
    )
