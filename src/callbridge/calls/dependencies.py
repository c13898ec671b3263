"""
FastAPI dependency wiring for the call endpoints.

HTTP clients are process-wide singletons; the registry reader and everything
built on it are per request, so every routing decision sees current config.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from callbridge.calls.orchestrator import CallOrchestrator
from callbridge.calls.reconciler import RecordingReconciler
from callbridge.config import Settings, get_settings
from callbridge.crm.client import HubSpotClient
from callbridge.registry.repository import RegistryReader, RegistryRepository
from callbridge.routing.resolver import RoutingResolver
from callbridge.shared.database import get_db_session
from callbridge.shared.exceptions import WebhookAuthError
from callbridge.telephony.client import TwilioCallClient
from callbridge.telephony.tokens import TokenIssuer


@lru_cache(maxsize=1)
def get_crm_client() -> HubSpotClient:
    return HubSpotClient(get_settings())


@lru_cache(maxsize=1)
def get_call_client() -> TwilioCallClient:
    return TwilioCallClient(get_settings())


def get_registry_reader(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> RegistryReader:
    return RegistryRepository(session)


def get_routing_resolver(
    registry: Annotated[RegistryReader, Depends(get_registry_reader)],
) -> RoutingResolver:
    return RoutingResolver(registry)


def get_orchestrator(
    resolver: Annotated[RoutingResolver, Depends(get_routing_resolver)],
    crm: Annotated[HubSpotClient, Depends(get_crm_client)],
    dispatcher: Annotated[TwilioCallClient, Depends(get_call_client)],
) -> CallOrchestrator:
    return CallOrchestrator(resolver=resolver, contacts=crm, dispatcher=dispatcher)


def get_reconciler(
    crm: Annotated[HubSpotClient, Depends(get_crm_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RecordingReconciler:
    return RecordingReconciler(crm, recording_extension=settings.recording_file_extension)


def get_token_issuer(
    resolver: Annotated[RoutingResolver, Depends(get_routing_resolver)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenIssuer:
    return TokenIssuer(resolver, settings)


def verify_webhook_secret(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Reject dial triggers without the shared secret, when one is configured."""
    if not settings.webhook_secret:
        return
    provided = request.headers.get("x-webhook-secret") or request.headers.get("authorization")
    if provided != settings.webhook_secret:
        raise WebhookAuthError()


def callback_base_url(request: Request, settings: Settings) -> str:
    """Public base URL reachable by Twilio.

    Priority:
      1) settings.public_base_url
      2) X-Forwarded-Proto / X-Forwarded-Host (behind a tunnel or proxy)
      3) request.base_url
    """
    if settings.public_base_url.strip():
        return settings.public_base_url.strip().rstrip("/")

    xf_host = (request.headers.get("x-forwarded-host") or "").strip()
    if xf_host:
        proto = (request.headers.get("x-forwarded-proto") or "").strip() or "https"
        return f"{proto}://{xf_host}"

    return str(request.base_url).rstrip("/")
