import asyncio

from nutribot.schemas.session import MealType, Session, Step, SwapAction
from nutribot.services.idempotency_service import IdempotencyGuard
from nutribot.services.session_service import SESSION_TTL_SECONDS, SessionStore
from tests.conftest import FakeRedis


class TestSessionStore:
    def test_missing_session_is_fresh(self):
        store = SessionStore(FakeRedis())

        session = asyncio.run(store.load("+1555"))

        assert session.phone == "+1555"
        assert session.step == Step.MENU
        assert session.user_id is None
        assert session.pending_action is None

    def test_round_trip_keeps_pending_swap(self):
        redis = FakeRedis()
        store = SessionStore(redis)
        session = Session(
            phone="+1555",
            user_id="user-1",
            email="a@b.com",
            pending_action=SwapAction(meal_type=MealType.LUNCH),
        )

        asyncio.run(store.save(session))
        loaded = asyncio.run(store.load("+1555"))

        assert loaded == session
        assert isinstance(loaded.pending_action, SwapAction)
        assert redis.ttls["nutribot:session:+1555"] == SESSION_TTL_SECONDS

    def test_read_refreshes_ttl(self):
        redis = FakeRedis()
        store = SessionStore(redis, ttl_seconds=1800)
        asyncio.run(store.save(Session(phone="+1555")))
        redis.ttls["nutribot:session:+1555"] = 5

        asyncio.run(store.load("+1555"))

        assert redis.ttls["nutribot:session:+1555"] == 1800

    def test_corrupt_record_yields_fresh_session(self):
        redis = FakeRedis()
        redis.data["nutribot:session:+1555"] = '{"phone": "+1555", "step": "dancing"}'

        session = asyncio.run(SessionStore(redis).load("+1555"))

        assert session.step == Step.MENU

    def test_redis_down_never_raises(self):
        redis = FakeRedis()
        redis.fail = True
        store = SessionStore(redis)

        session = asyncio.run(store.load("+1555"))

        assert session == Session(phone="+1555")
        assert asyncio.run(store.save(session)) is False


class TestIdempotencyGuard:
    def test_mark_then_seen(self):
        redis = FakeRedis()
        guard = IdempotencyGuard(redis, ttl_seconds=300)

        assert asyncio.run(guard.seen("wamid.1")) is False
        asyncio.run(guard.mark_seen("wamid.1"))

        assert asyncio.run(guard.seen("wamid.1")) is True
        assert asyncio.run(guard.seen("wamid.2")) is False
        assert redis.ttls["nutribot:seen:wamid.1"] == 300

    def test_redis_down_processes_anyway(self):
        redis = FakeRedis()
        redis.fail = True
        guard = IdempotencyGuard(redis)

        asyncio.run(guard.mark_seen("wamid.1"))
        assert asyncio.run(guard.seen("wamid.1")) is False
