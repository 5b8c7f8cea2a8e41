# telecare/services/sms_service.py
from typing import Optional
import logging

from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

from telecare.core.config import settings

logger = logging.getLogger(__name__)


def send_sms_message(
    to_number: str,
    body: str,
    from_number: Optional[str] = None,
) -> bool:
    """
    Send a transactional SMS.
    Returns True if successful, False otherwise.
    """
    if not to_number:
        logger.warning("No destination phone number. Skipping SMS.")
        return False

    if settings.SMS_BACKEND == "console":
        logger.info(f"[SMS] to={to_number} body={body}")
        return True

    account_sid = settings.TWILIO_ACCOUNT_SID
    auth_token = settings.TWILIO_AUTH_TOKEN

    if not account_sid or not auth_token:
        logger.warning("Twilio credentials not configured. Skipping SMS.")
        return False

    from_number = from_number or settings.TWILIO_FROM_NUMBER
    if not from_number:
        logger.warning(f"Missing sender phone number for SMS to {to_number}")
        return False

    try:
        client = Client(account_sid, auth_token)
        message = client.messages.create(
            to=to_number,
            from_=from_number,
            body=body,
        )
        logger.info(f"SMS sent to {to_number}. SID: {message.sid}")
        return True
    except TwilioRestException as e:
        logger.error(f"Twilio error sending SMS to {to_number}: {e}")
        return False
