"""Process-wide service graph: built once at startup, handed to the webhook router."""

from dataclasses import dataclass
from typing import Callable

import httpx

from nutribot.config import Settings
from nutribot.services.account_service import AccountClient
from nutribot.services.action_dispatcher import ActionDispatcher, utc_today
from nutribot.services.chat_service import ChatClient
from nutribot.services.conversation_service import ConversationEngine
from nutribot.services.idempotency_service import IdempotencyGuard
from nutribot.services.plan_service import PlanClient
from nutribot.services.session_service import SessionStore
from nutribot.services.whatsapp_service import WhatsAppService


@dataclass
class Services:
    verify_token: str
    whatsapp: WhatsAppService
    guard: IdempotencyGuard
    engine: ConversationEngine


def build_services(
    settings: Settings,
    http_client: httpx.AsyncClient,
    redis_client,
    today: Callable[[], str] = utc_today,
) -> Services:
    whatsapp = WhatsAppService(
        http_client,
        phone_number_id=settings.whatsapp_phone_number_id,
        access_token=settings.whatsapp_access_token,
        api_base=settings.whatsapp_api_base,
    )
    sessions = SessionStore(redis_client, ttl_seconds=settings.session_ttl_seconds)
    dispatcher = ActionDispatcher(
        PlanClient(http_client, settings.app_base_url),
        whatsapp,
        sessions,
        calories_target=settings.calories_target,
        today=today,
    )
    engine = ConversationEngine(
        whatsapp=whatsapp,
        sessions=sessions,
        accounts=AccountClient(http_client, settings.app_base_url),
        dispatcher=dispatcher,
        chat=ChatClient(http_client, settings.backend_url),
    )
    return Services(
        verify_token=settings.wa_verify_token,
        whatsapp=whatsapp,
        guard=IdempotencyGuard(redis_client, ttl_seconds=settings.dedup_ttl_seconds),
        engine=engine,
    )
