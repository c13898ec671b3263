"""
FastAPI router for the call webhooks.

Two audiences:
- HubSpot workflows / the browser widget call /start-*-call and /token and
  get JSON with meaningful status codes.
- Twilio calls /voice, /connect-call and /recording-callback. Those always get
  TwiML or a plain 200, because anything else is read out to the caller or
  retried forever.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response, status

from callbridge.calls.dependencies import (
    callback_base_url,
    get_orchestrator,
    get_reconciler,
    get_token_issuer,
    verify_webhook_secret,
)
from callbridge.calls.orchestrator import CallOrchestrator, bridge_document
from callbridge.calls.reconciler import RecordingCallback, RecordingReconciler
from callbridge.config import Settings, get_settings
from callbridge.routing.bridge_token import BridgeToken
from callbridge.shared.exceptions import AppException, InputError
from callbridge.shared.logging import get_logger
from callbridge.telephony import twiml
from callbridge.telephony.tokens import TokenIssuer

logger = get_logger(__name__)

router = APIRouter(tags=["calls"])

XML_MEDIA_TYPE = "text/xml"


async def _read_body(request: Request) -> dict[str, str]:
    """Request body as a flat str dict, from JSON or form encoding."""
    content_type = request.headers.get("content-type", "")
    try:
        if "application/json" in content_type:
            data: Any = await request.json()
        else:
            data = dict(await request.form())
    except Exception:
        logger.warning("Unreadable request body", extra={"content_type": content_type})
        return {}
    if not isinstance(data, dict):
        return {}
    return {str(k): str(v) for k, v in data.items() if v is not None}


def _xml(document: str, status_code: int = status.HTTP_200_OK) -> Response:
    return Response(content=document, media_type=XML_MEDIA_TYPE, status_code=status_code)


@router.get("/token")
async def issue_token(
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    agent: str | None = None,
) -> dict[str, str]:
    """Browser calling credential for a one-leg agent."""
    if not agent:
        raise InputError("agent", "Missing agent name")
    issued = await issuer.issue(agent)
    return {"identity": issued.identity, "token": issued.token}


async def _start_two_leg_call(
    request: Request,
    orchestrator: CallOrchestrator,
    settings: Settings,
    use_mobile: bool,
) -> dict[str, str]:
    body = await _read_body(request)
    contact_id = (
        body.get("hs_object_id")
        or body.get("contactId")
        or request.query_params.get("contactId")
    )
    if not contact_id:
        raise InputError("contactId", "Missing contact ID")

    result = await orchestrator.start_two_leg(
        contact_id,
        use_mobile=use_mobile,
        base_url=callback_base_url(request, settings),
    )
    return {"message": result.message, "callSid": result.call_sid}


@router.post("/start-phone-call", dependencies=[Depends(verify_webhook_secret)])
async def start_phone_call(
    request: Request,
    orchestrator: Annotated[CallOrchestrator, Depends(get_orchestrator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, str]:
    return await _start_two_leg_call(request, orchestrator, settings, use_mobile=False)


@router.post("/start-mobile-call", dependencies=[Depends(verify_webhook_secret)])
async def start_mobile_call(
    request: Request,
    orchestrator: Annotated[CallOrchestrator, Depends(get_orchestrator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, str]:
    return await _start_two_leg_call(request, orchestrator, settings, use_mobile=True)


@router.post("/voice")
async def voice(
    request: Request,
    orchestrator: Annotated[CallOrchestrator, Depends(get_orchestrator)],
) -> Response:
    """TwiML for a browser-originated (one-leg) call to the contact."""
    body = await _read_body(request)
    contact_id = body.get("contactId")
    agent_name = body.get("agent")
    use_mobile = body.get("useMobile", "").lower() == "true"

    if not contact_id or not agent_name:
        return _xml(
            twiml.error_document("Missing contact or agent"),
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        document = await orchestrator.one_leg_document(contact_id, agent_name, use_mobile)
    except AppException as e:
        logger.warning("Voice request rejected", extra={"code": e.code, **e.details})
        message = (
            "Error retrieving contact number"
            if e.status_code >= 500
            else "Missing customer number or Twilio info"
        )
        return _xml(twiml.error_document(message), e.status_code)
    except Exception:
        logger.exception("Voice request failed")
        return _xml(
            twiml.error_document("Error retrieving contact number"),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return _xml(document)


@router.api_route(
    "/connect-call",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
)
async def connect_call(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Bridge an answered agent leg to the customer, with recording."""
    try:
        bridge = BridgeToken.from_query(request.query_params)
    except InputError as e:
        logger.warning("Bridge request missing parameter", extra={"field": e.field})
        return _xml(
            twiml.error_document("Call failed due to missing data"),
            status.HTTP_400_BAD_REQUEST,
        )

    return _xml(bridge_document(bridge, callback_base_url(request, settings)))


@router.post("/recording-callback")
async def recording_callback(
    request: Request,
    reconciler: Annotated[RecordingReconciler, Depends(get_reconciler)],
) -> Response:
    """Log the recorded call on the contact. Always ACKs 200 to Twilio."""
    try:
        body = await _read_body(request)
        callback = RecordingCallback(
            contact_id=request.query_params.get("contactId") or None,
            owner_id=request.query_params.get("ownerId") or None,
            recording_url=body.get("RecordingUrl") or None,
            recording_duration=body.get("RecordingDuration"),
            from_number=body.get("From"),
            to_number=body.get("To"),
        )
        await reconciler.reconcile(callback)
    except Exception:
        logger.exception("Failed to process recording callback (ACKing 200 to Twilio)")

    return Response(status_code=status.HTTP_200_OK)
