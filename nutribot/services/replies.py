"""User-facing message texts and the main menu."""

from nutribot.services.intent_service import MENU_ITEMS
from nutribot.services.whatsapp_service import WhatsAppService

HELLO_TEXT = (
    "Hi! 👋 I’m your NutriSuite assistant.\n\n"
    "• *Generate plan* – create today’s meal plan\n"
    "• *Accept/Reject* – confirm or discard today’s plan\n"
    "• *Swap* – replace breakfast, lunch, or dinner\n"
    "• *Show today* – see today’s plan\n\n"
    "Tap *Options* to choose, or just ask any nutrition question."
)

WELCOME_EMAIL_PROMPT = "Welcome! Please type your *email address* to continue."
EMAIL_PROMPT = "Please type your *email address* to continue."
INVALID_EMAIL = "❗ Please send a valid *email* (e.g., name@example.com)."
EMAIL_CONFIRMED = "✅ Email confirmed. You’re all set!"
PASSWORD_PROMPT = "No account found. Please enter a *password* to create your account."
PASSWORD_TOO_SHORT = "❗ Password should be at least 6 characters. Try again."
ACCOUNT_CREATED = "🎉 Account created! You’re signed in."
ACCOUNT_CREATE_FAILED = "⚠️ I couldn't create your account. Please try again."
ACCOUNT_LOOKUP_FAILED = "⚠️ I couldn't check your account right now. Please try again in a moment."
GET_STARTED = "Type *hello* to get started."

CHAT_NO_REPLY = "Sorry, I couldn’t form a reply right now."
CHAT_UNAVAILABLE = "I couldn’t reach the nutrition model right now. Please try again in a moment."

NO_ACTION = "No action selected. Tap Options to choose."
PLAN_GENERATED = "✅ Generated today’s plan."
PLAN_GENERATE_FAILED = "⚠️ Couldn’t generate a plan."
PLAN_ACCEPTED = "✅ Plan accepted and locked."
PLAN_ACCEPT_FAILED = "⚠️ Couldn’t accept the plan."
PLAN_REPLACED = "🗑️ Replaced with a new plan."
PLAN_REPLACE_FAILED = "⚠️ Couldn’t replace the plan."
SWAP_DONE = "Swapped *{meal_type}* for today."
SWAP_FAILED = "⚠️ Couldn’t swap that meal."
SWAP_NO_BASE_PLAN = "⚠️ I couldn’t create a plan to swap."
NO_PLAN_TODAY = "⚠️ No plan found for today. Use *Generate plan* to create one."

MENU_BODY = "Choose one option:"
MENU_BUTTON = "Options"
MENU_SECTION = "NutriSuite"


async def send_main_menu(whatsapp: WhatsAppService, to: str) -> bool:
    return await whatsapp.send_list(
        to,
        body=MENU_BODY,
        button_label=MENU_BUTTON,
        items=MENU_ITEMS,
        section_title=MENU_SECTION,
    )
