import json
from dataclasses import dataclass, field
from typing import Optional

import httpx
import pytest

from nutribot.config import Settings
from nutribot.wiring import build_services

TODAY = "2026-10-19"
APP_HOST = "app.test"
CHAT_HOST = "chat.test"
GRAPH_HOST = "graph.facebook.com"


class FakeRedis:
    """In-memory stand-in for the redis.asyncio commands the bot uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, Optional[int]] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def getex(self, key, ex=None):
        self._check()
        if key in self.data and ex is not None:
            self.ttls[key] = ex
        return self.data.get(key)

    async def set(self, key, value, ex=None, nx=False):
        self._check()
        if nx and key in self.data:
            return None
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def exists(self, *keys):
        self._check()
        return sum(1 for key in keys if key in self.data)


def _meal(label: str, calories: float, items: list[str]) -> dict:
    return {"id": label.lower().replace(" ", "-"), "label": label, "image": None, "sourceUrl": None,
            "calories": calories, "items": items}


def default_meals() -> dict:
    return {
        "breakfast": _meal("Oatmeal Bowl", 350.4, ["Oats", "Banana", "Milk"]),
        "lunch": _meal("Chicken Salad", 520.6, ["Chicken", "Lettuce", "Tomato"]),
        "dinner": _meal("Salmon Rice", 640.0, ["Salmon", "Rice"]),
    }


@dataclass
class Call:
    method: str
    host: str
    path: str
    body: Optional[dict]
    params: dict = field(default_factory=dict)


class FakeBackend:
    """
    Stateful fake of the collaborators: the app host (accounts and meal plans),
    the chat proxy and the WhatsApp Graph API.
    """

    def __init__(self, today: str = TODAY):
        self.today = today
        self.calls: list[Call] = []
        self.accounts: dict[str, dict] = {}
        self.plans: dict[tuple[str, str], dict] = {}
        self.failing_paths: set[str] = set()
        self.chat_reply: Optional[str] = "Drink water and eat greens."
        self.generation = 0
        self._next_id = 1

    # -- setup helpers -------------------------------------------------

    def add_account(self, email: str, phone: Optional[str] = None) -> str:
        account_id = f"user-{self._next_id}"
        self._next_id += 1
        self.accounts[email] = {"id": account_id, "email": email, "phone": phone}
        return account_id

    def add_plan(self, user_id: str, meals: Optional[dict] = None, date: Optional[str] = None) -> None:
        self.plans[(user_id, date or self.today)] = {
            "date": date or self.today,
            "meals": meals if meals is not None else default_meals(),
            "lockedAt": None,
        }

    # -- inspection helpers --------------------------------------------

    def calls_to(self, path: str, method: Optional[str] = None) -> list[Call]:
        return [c for c in self.calls if c.path == path and (method is None or c.method == method)]

    @property
    def outbound(self) -> list[dict]:
        """Messages sent to users (read receipts excluded)."""
        return [
            c.body
            for c in self.calls
            if c.host == GRAPH_HOST and c.body and c.body.get("type") in {"text", "interactive"}
        ]

    @property
    def texts(self) -> list[str]:
        return [m["text"]["body"] for m in self.outbound if m["type"] == "text"]

    @property
    def menus(self) -> list[dict]:
        return [m for m in self.outbound if m["type"] == "interactive"]

    @property
    def collaborator_calls(self) -> list[Call]:
        return [c for c in self.calls if c.host != GRAPH_HOST]

    # -- transport -----------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        self.calls.append(Call(request.method, request.url.host, path, body, dict(request.url.params)))

        if path in self.failing_paths:
            return httpx.Response(500, json={"error": "boom"})

        if request.url.host == GRAPH_HOST:
            return httpx.Response(200, json={"messages": [{"id": "wamid.out"}]})
        if request.url.host == CHAT_HOST:
            return self._chat(body)
        return self._app(request.method, path, body, dict(request.url.params))

    def _chat(self, body: dict) -> httpx.Response:
        if self.chat_reply is None:
            return httpx.Response(200, json={})
        return httpx.Response(200, json={"reply": self.chat_reply})

    def _find(self, key: str, value: str) -> Optional[dict]:
        return next((a for a in self.accounts.values() if a.get(key) == value), None)

    def _app(self, method: str, path: str, body: Optional[dict], params: dict) -> httpx.Response:
        if path == "/api/auth/lookup":
            account = self._find("email", body["email"]) if "email" in body else self._find("phone", body["phone"])
            if account is None:
                return httpx.Response(200, json={"found": False})
            return httpx.Response(200, json={"found": True, "id": account["id"], "email": account["email"]})

        if path == "/api/users/link-phone":
            account = self._find("id", body["userId"])
            account["phone"] = body["phone"]
            return httpx.Response(200, json={"ok": True})

        if path == "/api/users/register":
            account_id = self.add_account(body["email"], body["phone"])
            self.accounts[body["email"]]["passwordHash"] = body["passwordHash"]
            return httpx.Response(201, json={"id": account_id, "email": body["email"]})

        if path == "/api/mealplans/generate":
            self.generation += 1
            self.add_plan(body["userId"])
            return httpx.Response(200, json={"plan": self.plans[(body["userId"], self.today)]})

        parts = path.strip("/").split("/")  # api, mealplans, <date>[, action]
        date = parts[2]
        if len(parts) == 3 and method == "GET":
            return httpx.Response(200, json={"plan": self.plans.get((params.get("userId"), date))})

        action = parts[3]
        plan = self.plans.get((body["userId"], date))
        if plan is None:
            return httpx.Response(404, json={"error": "No plan for date"})
        if action == "accept":
            plan["lockedAt"] = "2026-10-19T08:00:00.000Z"
            return httpx.Response(303, headers={"Location": f"http://{APP_HOST}/mealplans/{date}"})
        if action == "reject":
            self.generation += 1
            plan["meals"] = {
                "breakfast": _meal("Greek Yogurt", 300, ["Yogurt", "Honey"]),
                "lunch": _meal("Lentil Soup", 480, ["Lentils"]),
                "dinner": _meal("Tofu Stir Fry", 560, ["Tofu", "Peppers"]),
            }
            return httpx.Response(200, json={"plan": plan})
        if action == "swap":
            meal_type = body["meal_type"]
            new_meal = _meal(f"Fresh {meal_type.title()}", 410, ["Something new"])
            plan["meals"][meal_type] = new_meal
            return httpx.Response(200, json={"meal": new_meal, "diag": {"excluded": body.get("exclude_label")}})

        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def http_client(backend):
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handle))


@pytest.fixture
def test_settings():
    return Settings(
        wa_verify_token="verify-me",
        whatsapp_phone_number_id="555000",
        whatsapp_access_token="wa-token",
        app_base_url=f"http://{APP_HOST}",
        backend_url=f"http://{CHAT_HOST}",
    )


@pytest.fixture
def services(test_settings, http_client, redis_client):
    return build_services(test_settings, http_client, redis_client, today=lambda: TODAY)
