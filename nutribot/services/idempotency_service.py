from nutribot.logging_config import get_logger

logger = get_logger("idempotency_service")


class IdempotencyGuard:
    """
    Remembers WhatsApp delivery ids for a few minutes so provider retries are absorbed.

    Check-then-set is not atomic: two copies of the same delivery arriving within
    the same few milliseconds can both pass `seen()`. The actions behind a turn
    (generate, swap, chat) tolerate being repeated, so this race is accepted.
    """

    def __init__(self, redis_client, ttl_seconds: int = 300, prefix: str = "nutribot:seen"):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _key(self, message_id: str) -> str:
        return f"{self.prefix}:{message_id}"

    async def seen(self, message_id: str) -> bool:
        if not message_id:
            return False
        try:
            return bool(await self.redis.exists(self._key(message_id)))
        except Exception as e:
            logger.warning(f"Dedup redis unavailable, processing anyway: {e}")
            return False

    async def mark_seen(self, message_id: str) -> None:
        if not message_id:
            return
        try:
            await self.redis.set(self._key(message_id), "1", ex=self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Dedup redis unavailable, delivery not recorded: {e}")
