import httpx
import redis.asyncio as redis_async
from fastapi import FastAPI

from nutribot.config import settings
from nutribot.logging_config import get_logger, setup_logging
from nutribot.routers import webhook
from nutribot.wiring import build_services

setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="NutriSuite WhatsApp Bot",
    description="WhatsApp conversation engine for NutriSuite meal plans",
    version="0.1.0",
)

app.include_router(webhook.router)


@app.on_event("startup")
async def open_clients() -> None:
    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    app.state.redis_client = redis_async.from_url(settings.redis_url, decode_responses=True)
    app.state.services = build_services(settings, app.state.http_client, app.state.redis_client)
    logger.info("Clients started", extra={"context": {"app_base_url": settings.app_base_url}})


@app.on_event("shutdown")
async def close_clients() -> None:
    http_client = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()
    logger.info("Clients closed")


@app.get("/health")
async def health():
    return {"status": "ok"}
