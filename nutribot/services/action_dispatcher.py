from datetime import datetime, timezone
from typing import Callable, Optional

from nutribot.logging_config import get_logger, mask_phone
from nutribot.schemas.plan import PlanSnapshot
from nutribot.schemas.session import (
    AcceptAction,
    PendingAction,
    PlanAction,
    RejectAction,
    Session,
    ShowAction,
    SwapAction,
)
from nutribot.services import replies
from nutribot.services.collaborator import CollaboratorError
from nutribot.services.plan_service import PlanClient
from nutribot.services.plan_summary import summarize_plan
from nutribot.services.session_service import SessionStore
from nutribot.services.whatsapp_service import WhatsAppService

logger = get_logger("action_dispatcher")

DEFAULT_CALORIES_TARGET = 2100


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _with_summary(header: str, plan: Optional[PlanSnapshot]) -> str:
    if plan is None or not plan.has_meals:
        return header
    return f"{header}\n\n{summarize_plan(plan)}"


class ActionDispatcher:
    """Runs a session's pending action against the plan service and replies."""

    def __init__(
        self,
        plans: PlanClient,
        whatsapp: WhatsAppService,
        sessions: SessionStore,
        calories_target: int = DEFAULT_CALORIES_TARGET,
        today: Callable[[], str] = utc_today,
    ):
        self.plans = plans
        self.whatsapp = whatsapp
        self.sessions = sessions
        self.calories_target = calories_target
        self.today = today

    async def run(self, session: Session) -> None:
        """Execute the pending action, clear it, persist, then re-show the menu."""
        if not session.is_authenticated or session.pending_action is None:
            await self.whatsapp.send_text(session.phone, replies.NO_ACTION)
            await replies.send_main_menu(self.whatsapp, session.phone)
            return

        action = session.pending_action
        logger.info(
            "Running pending action",
            extra={"context": {"phone": mask_phone(session.phone), "action": action.kind}},
        )
        reply = await self.execute(session.user_id, action)
        await self.whatsapp.send_text(session.phone, reply)

        session.pending_action = None
        await self.sessions.save(session)
        await replies.send_main_menu(self.whatsapp, session.phone)

    async def execute(self, user_id: str, action: PendingAction) -> str:
        """Perform one action and return the reply text. Collaborator failures become messages."""
        date = self.today()
        if isinstance(action, PlanAction):
            return await self._generate(user_id, date)
        if isinstance(action, AcceptAction):
            return await self._accept(user_id, date)
        if isinstance(action, RejectAction):
            return await self._reject(user_id, date)
        if isinstance(action, SwapAction):
            return await self._swap(user_id, date, action)
        if isinstance(action, ShowAction):
            return await self._show(user_id, date)
        return replies.NO_ACTION

    async def _fetch_quietly(self, user_id: str, date: str) -> Optional[PlanSnapshot]:
        try:
            return await self.plans.fetch_plan(user_id, date)
        except CollaboratorError as e:
            logger.warning(f"Plan fetch failed: {e}")
            return None

    async def _generate(self, user_id: str, date: str) -> str:
        try:
            plan = await self.plans.ensure_plan(user_id, date, self.calories_target)
        except CollaboratorError as e:
            logger.warning(f"Plan generation failed: {e}")
            return replies.PLAN_GENERATE_FAILED

        if plan is None or not plan.has_meals:
            return replies.PLAN_GENERATE_FAILED
        return _with_summary(replies.PLAN_GENERATED, plan)

    async def _accept(self, user_id: str, date: str) -> str:
        try:
            await self.plans.accept_plan(user_id, date)
        except CollaboratorError as e:
            logger.warning(f"Plan accept failed: {e}")
            return replies.PLAN_ACCEPT_FAILED

        plan = await self._fetch_quietly(user_id, date)
        if plan is None or not plan.has_meals:
            return replies.PLAN_ACCEPT_FAILED
        return _with_summary(replies.PLAN_ACCEPTED, plan)

    async def _reject(self, user_id: str, date: str) -> str:
        try:
            await self.plans.reject_plan(user_id, date, self.calories_target)
        except CollaboratorError as e:
            logger.warning(f"Plan reject failed: {e}")
            return replies.PLAN_REPLACE_FAILED

        plan = await self._fetch_quietly(user_id, date)
        if plan is None or not plan.has_meals:
            return replies.PLAN_REPLACE_FAILED
        return _with_summary(replies.PLAN_REPLACED, plan)

    async def _swap(self, user_id: str, date: str, action: SwapAction) -> str:
        try:
            base = await self.plans.ensure_plan(user_id, date, self.calories_target)
        except CollaboratorError as e:
            logger.warning(f"Could not prepare a plan to swap: {e}")
            base = None
        if base is None or not base.has_meals:
            return replies.SWAP_NO_BASE_PLAN

        current = base.meals.slot(action.meal_type)
        swapped = True
        try:
            await self.plans.swap_meal(
                user_id,
                date,
                action.meal_type,
                exclude_label=current.label if current else None,
            )
        except CollaboratorError as e:
            logger.warning(f"Meal swap failed: {e}")
            swapped = False

        # Re-read regardless of the swap outcome so the user sees the current state.
        latest = await self._fetch_quietly(user_id, date)
        if swapped and latest is not None and latest.has_meals:
            return _with_summary(replies.SWAP_DONE.format(meal_type=action.meal_type.value), latest)
        return _with_summary(replies.SWAP_FAILED, latest if latest is not None and latest.has_meals else base)

    async def _show(self, user_id: str, date: str) -> str:
        plan = await self._fetch_quietly(user_id, date)
        if plan is None or not plan.has_meals:
            return replies.NO_PLAN_TODAY
        return summarize_plan(plan)
