from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class Step(str, Enum):
    MENU = "menu"
    NEED_EMAIL = "need-email"
    NEED_PASSWORD = "need-password"


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class PlanAction(BaseModel):
    kind: Literal["plan"] = "plan"


class AcceptAction(BaseModel):
    kind: Literal["accept"] = "accept"


class RejectAction(BaseModel):
    kind: Literal["reject"] = "reject"


class SwapAction(BaseModel):
    kind: Literal["swap"] = "swap"
    meal_type: MealType


class ShowAction(BaseModel):
    kind: Literal["show"] = "show"


PendingAction = Annotated[
    Union[PlanAction, AcceptAction, RejectAction, SwapAction, ShowAction],
    Field(discriminator="kind"),
]


class Session(BaseModel):
    """Conversation state for one WhatsApp phone number."""

    phone: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    step: Step = Step.MENU
    pending_action: Optional[PendingAction] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)
