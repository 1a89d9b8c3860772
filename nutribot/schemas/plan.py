"""Meal-plan payloads returned by the plan service."""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from nutribot.schemas.session import MealType


class Meal(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[Union[int, str]] = None
    label: str
    image: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    calories: Optional[float] = None
    items: list[str] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)

    @property
    def bullet_lines(self) -> list[str]:
        return self.items or self.ingredients


class PlanMeals(BaseModel):
    model_config = ConfigDict(extra="ignore")

    breakfast: Optional[Meal] = None
    lunch: Optional[Meal] = None
    dinner: Optional[Meal] = None

    def slot(self, meal_type: MealType) -> Optional[Meal]:
        return getattr(self, meal_type.value)

    def is_empty(self) -> bool:
        return self.breakfast is None and self.lunch is None and self.dinner is None


class PlanSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    meals: PlanMeals = Field(default_factory=PlanMeals)
    locked_at: Optional[datetime] = Field(default=None, alias="lockedAt")

    @property
    def has_meals(self) -> bool:
        return not self.meals.is_empty()


class PlanEnvelope(BaseModel):
    """Body of `GET /api/mealplans/{date}`; `plan` is null when the day has none."""

    model_config = ConfigDict(extra="ignore")

    plan: Optional[PlanSnapshot]


class SwapResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    meal: Optional[Meal] = None
    diag: Optional[Any] = None
