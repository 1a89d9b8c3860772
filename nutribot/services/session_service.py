from pydantic import ValidationError

from nutribot.logging_config import get_logger, mask_phone
from nutribot.schemas.session import Session

logger = get_logger("session_service")

SESSION_TTL_SECONDS = 30 * 60


class SessionStore:
    """Per-phone conversation sessions in Redis. Reads and writes both refresh the TTL."""

    def __init__(self, redis_client, ttl_seconds: int = SESSION_TTL_SECONDS, prefix: str = "nutribot:session"):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _key(self, phone: str) -> str:
        return f"{self.prefix}:{phone}"

    async def load(self, phone: str) -> Session:
        """Return the stored session, or a fresh one. Never raises."""
        try:
            raw = await self.redis.getex(self._key(phone), ex=self.ttl_seconds)
        except Exception as e:
            logger.warning(
                "Session store unavailable, starting fresh session",
                extra={"context": {"phone": mask_phone(phone), "error": str(e)}},
            )
            return Session(phone=phone)

        if not raw:
            logger.info("New session", extra={"context": {"phone": mask_phone(phone)}})
            return Session(phone=phone)

        try:
            session = Session.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "Corrupt session discarded",
                extra={"context": {"phone": mask_phone(phone), "errors": e.error_count()}},
            )
            return Session(phone=phone)

        if session.phone != phone:
            logger.warning("Session phone mismatch, starting fresh", extra={"context": {"phone": mask_phone(phone)}})
            return Session(phone=phone)
        return session

    async def save(self, session: Session) -> bool:
        try:
            await self.redis.set(self._key(session.phone), session.model_dump_json(), ex=self.ttl_seconds)
            return True
        except Exception as e:
            logger.error(
                "Failed to persist session",
                extra={"context": {"phone": mask_phone(session.phone), "error": str(e)}},
            )
            return False
