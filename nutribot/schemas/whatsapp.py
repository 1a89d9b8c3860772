from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nutribot.logging_config import get_logger

logger = get_logger("whatsapp_schema")


class WhatsAppText(BaseModel):
    body: Optional[str] = None


class WhatsAppButton(BaseModel):
    text: Optional[str] = None
    payload: Optional[str] = None


class WhatsAppListReply(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class WhatsAppButtonReply(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None


class WhatsAppInteractive(BaseModel):
    type: Optional[str] = None
    list_reply: Optional[WhatsAppListReply] = None
    button_reply: Optional[WhatsAppButtonReply] = None


class WhatsAppMessage(BaseModel):
    from_phone: Optional[str] = Field(default=None, alias="from")  # "from" is reserved in Python
    id: Optional[str] = None
    timestamp: Optional[str] = None
    type: Optional[str] = None
    text: Optional[WhatsAppText] = None
    button: Optional[WhatsAppButton] = None
    interactive: Optional[WhatsAppInteractive] = None

    model_config = ConfigDict(populate_by_name=True)


class WhatsAppChangeValue(BaseModel):
    messaging_product: Optional[str] = None
    statuses: list[dict[str, Any]] = []
    messages: list[WhatsAppMessage] = []


class WhatsAppChange(BaseModel):
    field: Optional[str] = None
    value: Optional[WhatsAppChangeValue] = None


class WhatsAppEntry(BaseModel):
    id: Optional[str] = None
    changes: list[WhatsAppChange] = []


class WhatsAppWebhook(BaseModel):
    object: Optional[str] = None
    entry: list[WhatsAppEntry] = []


@dataclass
class InboundEvent:
    """What a single webhook delivery carries, flattened for the engine."""

    is_status: bool = False
    phone: Optional[str] = None
    message_id: Optional[str] = None
    text: Optional[str] = None
    list_reply_id: Optional[str] = None

    @property
    def is_addressable(self) -> bool:
        return bool(self.phone and self.message_id)


def _first_change_value(envelope: WhatsAppWebhook) -> Optional[WhatsAppChangeValue]:
    if not envelope.entry or not envelope.entry[0].changes:
        return None
    return envelope.entry[0].changes[0].value


def extract_inbound_event(payload: Any) -> InboundEvent:
    """Read `entry[0].changes[0].value` from a webhook body; never raises."""
    if not isinstance(payload, dict) or not payload:
        return InboundEvent()

    try:
        envelope = WhatsAppWebhook.model_validate(payload)
    except ValidationError as exc:
        logger.info(
            "Webhook payload does not match the WhatsApp envelope",
            extra={"context": {"errors": exc.error_count()}},
        )
        return InboundEvent()

    value = _first_change_value(envelope)
    if value is None:
        return InboundEvent()
    if value.statuses:
        return InboundEvent(is_status=True)
    if not value.messages:
        return InboundEvent()

    message = value.messages[0]
    interactive = message.interactive
    list_reply = interactive.list_reply if interactive else None
    button_reply = interactive.button_reply if interactive else None

    text = (
        (message.text.body if message.text else None)
        or (message.button.text if message.button else None)
        or (list_reply.title if list_reply else None)
        or (button_reply.title if button_reply else None)
    )

    return InboundEvent(
        phone=message.from_phone,
        message_id=message.id,
        text=text,
        list_reply_id=list_reply.id if list_reply else None,
    )
