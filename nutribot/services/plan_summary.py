import math
from typing import Optional

from nutribot.schemas.plan import Meal, PlanMeals, PlanSnapshot
from nutribot.schemas.session import MealType

MAX_MEAL_LINES = 6
EMPTY_SLOT = "—"

SLOT_LABELS = (
    (MealType.BREAKFAST, "Breakfast"),
    (MealType.LUNCH, "Lunch"),
    (MealType.DINNER, "Supper"),
)


def kcal(calories: float) -> int:
    """Round half up (350.5 -> 351), not Python's half-to-even."""
    return int(math.floor(calories + 0.5))


def format_meal(slot_label: str, meal: Optional[Meal]) -> str:
    if meal is None:
        return f"• {slot_label}: {EMPTY_SLOT}"

    label = meal.label or EMPTY_SLOT
    energy = f" ({kcal(meal.calories)} kcal)" if meal.calories is not None else ""
    lines = [f"• {slot_label}: {label}{energy}"]
    lines.extend(f"   · {item}" for item in meal.bullet_lines[:MAX_MEAL_LINES])
    return "\n".join(lines)


def summarize_meals(date: str, meals: PlanMeals) -> str:
    lines = [f"*Today ({date})*"]
    lines.extend(format_meal(label, meals.slot(meal_type)) for meal_type, label in SLOT_LABELS)
    return "\n".join(lines)


def summarize_plan(plan: PlanSnapshot) -> str:
    return summarize_meals(plan.date, plan.meals)
