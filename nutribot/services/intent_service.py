import re
from dataclasses import dataclass
from typing import Optional

from nutribot.schemas.session import (
    AcceptAction,
    MealType,
    PendingAction,
    PlanAction,
    RejectAction,
    ShowAction,
    SwapAction,
)

GREETING_KEYWORD = "hello"
MIN_PASSWORD_LENGTH = 6

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class MenuItem:
    id: str
    title: str
    description: str
    action: PendingAction


MENU_ITEMS: tuple[MenuItem, ...] = (
    MenuItem("plan", "Generate plan", "Create today’s meal plan", PlanAction()),
    MenuItem("accept", "Accept plan", "Lock today’s plan", AcceptAction()),
    MenuItem("reject", "Reject plan", "Remove today’s plan", RejectAction()),
    MenuItem("swap-breakfast", "Swap breakfast", "Replace breakfast", SwapAction(meal_type=MealType.BREAKFAST)),
    MenuItem("swap-lunch", "Swap lunch", "Replace lunch", SwapAction(meal_type=MealType.LUNCH)),
    MenuItem("swap-dinner", "Swap dinner", "Replace dinner", SwapAction(meal_type=MealType.DINNER)),
    MenuItem("show-today", "Show today", "View today’s plan", ShowAction()),
)

_ACTIONS_BY_ID = {item.id: item.action for item in MENU_ITEMS}


def is_greeting(text: Optional[str]) -> bool:
    return (text or "").strip().lower() == GREETING_KEYWORD


def action_for_menu_id(menu_id: Optional[str]) -> Optional[PendingAction]:
    """Map a list-reply id to its intent; unknown ids map to nothing."""
    if not menu_id:
        return None
    action = _ACTIONS_BY_ID.get(menu_id.strip())
    return action.model_copy() if action is not None else None


def normalize_email(raw: str) -> str:
    return raw.strip().lower()


def is_valid_email(text: Optional[str]) -> bool:
    return bool(EMAIL_PATTERN.match((text or "").strip()))


def is_valid_password(text: Optional[str]) -> bool:
    return len((text or "").strip()) >= MIN_PASSWORD_LENGTH


def is_chat_text(text: Optional[str]) -> bool:
    """Free text worth forwarding to the model; slash commands are not."""
    stripped = (text or "").strip()
    return bool(stripped) and not stripped.startswith("/")
