from typing import Optional

from pydantic import ValidationError

from nutribot.logging_config import get_logger
from nutribot.schemas.plan import PlanEnvelope, PlanSnapshot, SwapResult
from nutribot.schemas.session import MealType
from nutribot.services.collaborator import CollaboratorClient, CollaboratorError

logger = get_logger("plan_service")


class PlanClient(CollaboratorClient):
    """Client for the `/api/mealplans/*` routes of the plan service."""

    service_name = "plan_service"

    def _parse_envelope(self, data) -> Optional[PlanSnapshot]:
        try:
            return PlanEnvelope.model_validate(data).plan
        except ValidationError as e:
            raise CollaboratorError(self.service_name, f"unexpected plan payload: {e.error_count()} errors") from e

    async def fetch_plan(self, user_id: str, date: str) -> Optional[PlanSnapshot]:
        response = await self._request("GET", f"/api/mealplans/{date}", params={"userId": user_id})
        return self._parse_envelope(self._json(response))

    async def generate_plan(self, user_id: str, calories_target: int) -> None:
        # The stored plan is read back with fetch_plan; the generate body is not trusted.
        await self._request(
            "POST",
            "/api/mealplans/generate",
            json={"userId": user_id, "caloriesTarget": calories_target},
            allow_redirect=True,
        )

    async def ensure_plan(self, user_id: str, date: str, calories_target: int) -> Optional[PlanSnapshot]:
        """Return today's plan, generating one first when it has no meals."""
        existing = await self.fetch_plan(user_id, date)
        if existing is not None and existing.has_meals:
            return existing

        logger.info("No plan for date, generating", extra={"context": {"user_id": user_id, "date": date}})
        await self.generate_plan(user_id, calories_target)
        return await self.fetch_plan(user_id, date)

    async def accept_plan(self, user_id: str, date: str) -> None:
        await self._request(
            "POST",
            f"/api/mealplans/{date}/accept",
            json={"userId": user_id},
            allow_redirect=True,
        )

    async def reject_plan(self, user_id: str, date: str, calories_target: int) -> None:
        await self._request(
            "POST",
            f"/api/mealplans/{date}/reject",
            json={"userId": user_id, "caloriesTarget": calories_target},
            allow_redirect=True,
        )

    async def swap_meal(
        self,
        user_id: str,
        date: str,
        meal_type: MealType,
        exclude_label: Optional[str] = None,
    ) -> SwapResult:
        response = await self._request(
            "POST",
            f"/api/mealplans/{date}/swap",
            json={"userId": user_id, "meal_type": meal_type.value, "exclude_label": exclude_label},
        )
        try:
            result = SwapResult.model_validate(self._json(response))
        except ValidationError as e:
            raise CollaboratorError(self.service_name, "unexpected swap payload") from e
        if result.meal is None:
            raise CollaboratorError(self.service_name, "swap returned no meal")
        return result
