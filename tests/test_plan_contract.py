"""Contract for the plan service's `GET /api/mealplans/{date}` payload."""

import pytest
from pydantic import ValidationError

from nutribot.schemas.plan import PlanEnvelope, SwapResult
from nutribot.schemas.session import MealType

DOCUMENTED_PAYLOAD = {
    "plan": {
        "date": "2026-10-19",
        "meals": {
            "breakfast": {
                "id": 715594,
                "label": "Homemade Granola",
                "image": "https://img.example/granola.jpg",
                "sourceUrl": "https://recipes.example/granola",
            },
            "lunch": {"id": "abc", "label": "Lentil Soup", "image": None, "sourceUrl": None},
            "dinner": None,
        },
        "lockedAt": "2026-10-19T08:00:00.000Z",
    }
}


class TestPlanEnvelopeContract:
    def test_documented_shape(self):
        plan = PlanEnvelope.model_validate(DOCUMENTED_PAYLOAD).plan

        assert plan.date == "2026-10-19"
        assert plan.meals.breakfast.label == "Homemade Granola"
        assert plan.meals.breakfast.source_url == "https://recipes.example/granola"
        assert plan.meals.slot(MealType.LUNCH).id == "abc"
        assert plan.meals.dinner is None
        assert plan.locked_at is not None
        assert plan.has_meals is True

    def test_null_plan(self):
        assert PlanEnvelope.model_validate({"plan": None}).plan is None

    def test_plan_without_meals_key(self):
        plan = PlanEnvelope.model_validate({"plan": {"date": "2026-10-19", "lockedAt": None}}).plan
        assert plan.has_meals is False

    def test_missing_plan_key_is_rejected(self):
        with pytest.raises(ValidationError):
            PlanEnvelope.model_validate({"data": DOCUMENTED_PAYLOAD["plan"]})

    def test_flat_meal_fields_are_rejected(self):
        flat = {"plan": {"date": "2026-10-19", "breakfast": {"label": "Eggs"}}}
        with pytest.raises(ValidationError):
            PlanEnvelope.model_validate(flat)

    def test_bad_date_is_rejected(self):
        with pytest.raises(ValidationError):
            PlanEnvelope.model_validate({"plan": {"date": "19/10/2026", "meals": {}}})

    def test_meal_requires_label(self):
        with pytest.raises(ValidationError):
            PlanEnvelope.model_validate({"plan": {"date": "2026-10-19", "meals": {"lunch": {"id": 1}}}})


class TestSwapContract:
    def test_swap_result(self):
        result = SwapResult.model_validate(
            {"meal": {"id": 1, "label": "Tuna Wrap", "image": None, "sourceUrl": None}, "diag": {"tried": 3}}
        )
        assert result.meal.label == "Tuna Wrap"
        assert result.diag == {"tried": 3}
