from typing import Optional

from nutribot.logging_config import LoggerAdapter, get_logger, mask_phone
from nutribot.schemas.session import Session, Step
from nutribot.schemas.whatsapp import InboundEvent
from nutribot.services import replies
from nutribot.services.account_service import AccountClient
from nutribot.services.action_dispatcher import ActionDispatcher
from nutribot.services.chat_service import ChatClient
from nutribot.services.collaborator import CollaboratorError
from nutribot.services.intent_service import (
    action_for_menu_id,
    is_chat_text,
    is_greeting,
    is_valid_email,
    is_valid_password,
    normalize_email,
)
from nutribot.services.session_service import SessionStore
from nutribot.services.state_machine import authenticate, request_email, request_password
from nutribot.services.whatsapp_service import WhatsAppService

logger = get_logger("conversation")


class ConversationEngine:
    """
    Resolves one inbound WhatsApp turn against the caller's session.

    Order of resolution:
    1. greeting keyword (re-authenticates by phone or starts login)
    2. list selection (stored as the pending action, deferred until login)
    3. login steps: need-email, then need-password
    4. free text for authenticated users goes to the chat model
    5. anything else asks an unknown user to say hello

    The session is saved at the end of every turn, whichever branch ran.
    """

    def __init__(
        self,
        whatsapp: WhatsAppService,
        sessions: SessionStore,
        accounts: AccountClient,
        dispatcher: ActionDispatcher,
        chat: ChatClient,
    ):
        self.whatsapp = whatsapp
        self.sessions = sessions
        self.accounts = accounts
        self.dispatcher = dispatcher
        self.chat = chat

    async def handle_turn(self, event: InboundEvent) -> Session:
        session = await self.sessions.load(event.phone)
        log = LoggerAdapter(
            logger,
            {"phone": mask_phone(event.phone), "message_id": event.message_id, "step": session.step.value},
        )
        try:
            await self._resolve(session, event, log)
        finally:
            await self.sessions.save(session)
        return session

    async def _resolve(self, session: Session, event: InboundEvent, log: LoggerAdapter) -> None:
        text = event.text or ""

        if is_greeting(text):
            log.info("Greeting received")
            await self._handle_greeting(session)
            return

        if event.list_reply_id:
            log.info("Menu selection", context={"menu_id": event.list_reply_id})
            await self._handle_menu_selection(session, event.list_reply_id)
            return

        if session.step == Step.NEED_EMAIL:
            await self._handle_email(session, text, log)
            return

        if session.step == Step.NEED_PASSWORD:
            await self._handle_password(session, text, log)
            return

        if session.is_authenticated:
            await self._handle_chat(session, text, log)
            return

        await self.whatsapp.send_text(session.phone, replies.GET_STARTED)

    async def _send_welcome(self, session: Session) -> None:
        await self.whatsapp.send_text(session.phone, replies.HELLO_TEXT)
        await replies.send_main_menu(self.whatsapp, session.phone)

    def _finish_login(self, session: Session, account_id: str, email: Optional[str]) -> None:
        session.user_id = account_id
        if email:
            session.email = normalize_email(email)
        session.step = authenticate(session.step)

    async def _continue_after_login(self, session: Session) -> None:
        if session.pending_action is not None:
            await self.dispatcher.run(session)
        else:
            await replies.send_main_menu(self.whatsapp, session.phone)

    async def _handle_greeting(self, session: Session) -> None:
        if session.is_authenticated:
            session.step = authenticate(session.step)
            await self._send_welcome(session)
            return

        try:
            account = await self.accounts.find_by_phone(session.phone)
        except CollaboratorError as e:
            # The email step looks the account up again and links the phone.
            logger.warning(f"Phone lookup failed, asking for email: {e}")
            account = None

        if account is not None:
            self._finish_login(session, account.id, account.email)
            await self._send_welcome(session)
            return

        session.step = request_email(session.step)
        session.email = None
        await self.whatsapp.send_text(session.phone, replies.WELCOME_EMAIL_PROMPT)

    async def _handle_menu_selection(self, session: Session, menu_id: str) -> None:
        session.pending_action = action_for_menu_id(menu_id)

        if not session.is_authenticated:
            session.step = request_email(session.step)
            await self.whatsapp.send_text(session.phone, replies.EMAIL_PROMPT)
            return

        await self.sessions.save(session)
        await self.dispatcher.run(session)

    async def _handle_email(self, session: Session, text: str, log: LoggerAdapter) -> None:
        raw = text.strip()
        if not is_valid_email(raw):
            await self.whatsapp.send_text(session.phone, replies.INVALID_EMAIL)
            return

        email = normalize_email(raw)
        try:
            account = await self.accounts.find_by_email(email)
            if account is not None:
                await self.accounts.link_phone(account.id, session.phone)
        except CollaboratorError as e:
            log.warning("Email lookup failed", context={"error": str(e)})
            await self.whatsapp.send_text(session.phone, replies.ACCOUNT_LOOKUP_FAILED)
            return

        session.email = email
        if account is None:
            session.step = request_password(session.step)
            await self.whatsapp.send_text(session.phone, replies.PASSWORD_PROMPT)
            return

        log.info("Phone linked by email", context={"user_id": account.id})
        self._finish_login(session, account.id, email)
        await self.sessions.save(session)
        await self.whatsapp.send_text(session.phone, replies.EMAIL_CONFIRMED)
        await self._continue_after_login(session)

    async def _handle_password(self, session: Session, text: str, log: LoggerAdapter) -> None:
        if not session.email:
            # Session lost its email (e.g. edited by hand); collect it again.
            session.step = request_email(session.step)
            await self.whatsapp.send_text(session.phone, replies.EMAIL_PROMPT)
            return

        password = text.strip()
        if not is_valid_password(password):
            await self.whatsapp.send_text(session.phone, replies.PASSWORD_TOO_SHORT)
            return

        try:
            account = await self.accounts.create_account(session.email, password, session.phone)
        except CollaboratorError as e:
            log.warning("Account creation failed", context={"error": str(e)})
            await self.whatsapp.send_text(session.phone, replies.ACCOUNT_CREATE_FAILED)
            return

        self._finish_login(session, account.id, account.email)
        await self.sessions.save(session)
        await self.whatsapp.send_text(session.phone, replies.ACCOUNT_CREATED)
        await self._continue_after_login(session)

    async def _handle_chat(self, session: Session, text: str, log: LoggerAdapter) -> None:
        if is_chat_text(text):
            try:
                reply = await self.chat.ask(text)
            except CollaboratorError as e:
                log.warning("Chat forward failed", context={"error": str(e)})
                reply = replies.CHAT_UNAVAILABLE
            await self.whatsapp.send_text(session.phone, reply or replies.CHAT_NO_REPLY)

        await replies.send_main_menu(self.whatsapp, session.phone)
