import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.requests import ClientDisconnect

from nutribot.logging_config import get_logger, mask_phone
from nutribot.schemas.whatsapp import extract_inbound_event
from nutribot.services.background import spawn
from nutribot.wiring import Services

logger = get_logger("webhook")

router = APIRouter()

EVENT_RECEIVED = "EVENT_RECEIVED"


def get_services(request: Request) -> Services:
    return request.app.state.services


def _ack() -> PlainTextResponse:
    return PlainTextResponse(EVENT_RECEIVED, status_code=200)


async def parse_webhook_payload(request: Request) -> dict:
    """
    Parse a WhatsApp webhook body with tolerant decoding.
    Returns {} for anything that is not a JSON object.
    """
    try:
        raw = await request.body()
    except ClientDisconnect:
        logger.info("Webhook client disconnected during body read")
        return {}

    if not raw or not raw.strip():
        return {}

    try:
        payload = json.loads(raw.decode("utf-8", errors="replace"))
    except ValueError:
        logger.warning(
            "Webhook payload is not valid JSON",
            extra={"context": {"body_preview": raw[:200].decode("utf-8", "ignore")}},
        )
        return {}

    return payload if isinstance(payload, dict) else {}


def verify_subscription(mode: Optional[str], token: Optional[str], challenge: Optional[str], verify_token: str):
    if mode == "subscribe" and verify_token and token == verify_token:
        return PlainTextResponse(challenge or "", status_code=200)
    logger.warning("Webhook verification rejected", extra={"context": {"mode": mode}})
    return JSONResponse({"error": "Forbidden"}, status_code=403)


@router.get("/api/wa/webhook")
async def verify_webhook(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    services: Services = Depends(get_services),
):
    """Meta subscription handshake: echo the challenge when the verify token matches."""
    return verify_subscription(hub_mode, hub_verify_token, hub_challenge, services.verify_token)


@router.post("/api/wa/webhook")
async def handle_webhook(request: Request, services: Services = Depends(get_services)):
    """
    Handle WhatsApp Cloud API deliveries.

    Always acknowledges with EVENT_RECEIVED / 200: Meta retries anything else.
    """
    payload = await parse_webhook_payload(request)
    event = extract_inbound_event(payload)

    if event.is_status:
        return _ack()

    if not event.is_addressable:
        logger.info("Webhook delivery without sender or message id, dropped")
        return _ack()

    if await services.guard.seen(event.message_id):
        logger.info("Duplicate delivery ignored", extra={"context": {"message_id": event.message_id}})
        return _ack()
    await services.guard.mark_seen(event.message_id)

    spawn(services.whatsapp.mark_read(event.message_id), name=f"mark_read:{event.message_id}")

    try:
        await services.engine.handle_turn(event)
    except Exception as e:
        logger.error(
            f"Webhook turn failed: {e}",
            exc_info=True,
            extra={"context": {"phone": mask_phone(event.phone), "message_id": event.message_id}},
        )

    return _ack()


# Backward-compatible alias: older Meta app configs call /api/whatsapp/webhook
@router.get("/api/whatsapp/webhook")
async def verify_webhook_legacy(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    services: Services = Depends(get_services),
):
    return verify_subscription(hub_mode, hub_verify_token, hub_challenge, services.verify_token)


@router.post("/api/whatsapp/webhook")
async def handle_webhook_legacy(request: Request, services: Services = Depends(get_services)):
    return await handle_webhook(request, services)
