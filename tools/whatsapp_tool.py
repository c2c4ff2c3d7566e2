# whatsapp_tool.py
import logging

from twilio.rest import Client

import config
from errors import NotificationError

logger = logging.getLogger(__name__)

_client = None


def get_twilio():
    global _client
    if _client is None:
        if not config.TWILIO_ACCOUNT_SID or not config.TWILIO_AUTH_TOKEN:
            return None
        _client = Client(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN)
    return _client


def _whatsapp_address(number: str) -> str:
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


def send_whatsapp_message(to: str, body: str) -> bool:
    """
    Sends a WhatsApp message through Twilio.
    Returns False when Twilio is not configured (the message is only logged);
    raises NotificationError when the send fails.
    """
    client = get_twilio()
    if client is None or not config.TWILIO_PHONE_NUMBER:
        logger.info("Twilio not configured. Mock sending message to %s: %r", to, body)
        return False

    try:
        client.messages.create(
            from_=_whatsapp_address(config.TWILIO_PHONE_NUMBER),
            to=_whatsapp_address(to),
            body=body,
        )
    except Exception as e:
        logger.error("Failed to send WhatsApp message to %s: %s", to, e)
        raise NotificationError("Twilio message sending failed.") from e

    logger.info("WhatsApp message sent to %s", to)
    return True
