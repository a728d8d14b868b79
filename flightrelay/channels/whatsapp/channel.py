from typing import Any, Dict, Mapping
from xml.sax.saxutils import escape, quoteattr

from flightrelay.channels.whatsapp.client import TwilioClient
from flightrelay.domain.interfaces.transport_interface import MessagingTransport
from flightrelay.domain.models.message import DispatchReply, InboundMessage
from flightrelay.utils.exceptions import ChannelConfigError, TransportError, ValidationException
from flightrelay.utils.logger import get_logger

logger = get_logger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


class WhatsAppChannel(MessagingTransport):
    """
    WhatsApp channel over Twilio.

    Converts Twilio webhook forms into InboundMessages, renders replies as
    TwiML, and pushes outbound alerts through the Twilio Messages API.
    """

    def __init__(self, client: TwilioClient):
        """
        Raises:
            ChannelConfigError: If the sender is not a "whatsapp:" address
        """
        if client.from_address and not client.from_address.startswith("whatsapp:"):
            raise ChannelConfigError(
                "TWILIO_WHATSAPP_FROM must be a whatsapp: address",
                details={"from_address": client.from_address}
            )
        self.client = client
        if not client.is_configured():
            logger.warning("Twilio credentials missing; outbound alerts will fail")

    def is_configured(self) -> bool:
        return self.client.is_configured()

    async def send(self, recipient_address: str, text: str) -> Dict[str, Any]:
        try:
            response = await self.client.send_text(recipient_address, text)
        except TransportError:
            raise
        except Exception as e:
            logger.error(f"Failed to send WhatsApp message: {str(e)}")
            raise TransportError(f"WhatsApp message sending error: {str(e)}") from e

        logger.info(
            f"Message sent to WhatsApp recipient: {recipient_address}",
            extra={"channel_message_id": response.get("sid")}
        )
        return {
            "channel_message_id": response.get("sid", ""),
            "status": response.get("status", "queued"),
            "recipient_id": recipient_address,
        }

    def normalize_message(self, form: Mapping[str, Any]) -> InboundMessage:
        """
        Build an InboundMessage from a Twilio webhook form.

        Raises:
            ValidationException: If the sender address is missing
        """
        sender = str(form.get("From") or "").strip()
        if not sender:
            raise ValidationException("Webhook payload has no sender", details={"field": "From"})

        return InboundMessage(
            sender=sender,
            text=str(form.get("Body") or ""),
            channel_message_id=form.get("MessageSid") or None,
        )

    def format_response(self, reply: DispatchReply) -> str:
        """Render a reply as a TwiML document."""
        if not reply.buttons:
            return f"{XML_DECLARATION}<Response><Message>{escape(reply.text)}</Message></Response>"

        buttons = "".join(
            f'<ButtonsActionButton action="reply" value={quoteattr(b.value)}>{escape(b.label)}</ButtonsActionButton>'
            for b in reply.buttons
        )
        return (
            f"{XML_DECLARATION}<Response><Message>"
            f"<Body>{escape(reply.text)}</Body>"
            f'<ButtonsAction type="reply">{buttons}</ButtonsAction>'
            "</Message></Response>"
        )

    @staticmethod
    def empty_response() -> str:
        return f"{XML_DECLARATION}<Response></Response>"

    async def close(self) -> None:
        await self.client.close()
