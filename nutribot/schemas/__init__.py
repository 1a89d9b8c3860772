from nutribot.schemas.plan import Meal, PlanEnvelope, PlanMeals, PlanSnapshot, SwapResult
from nutribot.schemas.session import MealType, PendingAction, Session, Step
from nutribot.schemas.whatsapp import InboundEvent, extract_inbound_event

__all__ = [
    "InboundEvent",
    "Meal",
    "MealType",
    "PendingAction",
    "PlanEnvelope",
    "PlanMeals",
    "PlanSnapshot",
    "Session",
    "Step",
    "SwapResult",
    "extract_inbound_event",
]
