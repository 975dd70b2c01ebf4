"""
SMS notification sender for completed calls.

Sends the personalized steak cooking instructions via Twilio Programmable
Messaging. Delivery failures are logged and reported as False, never raised:
by the time a text is sent the customer record is already saved.
"""

import asyncio
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from call_agent.config import get_settings
from call_agent.models.conversation import CustomerRecord
from call_agent.models.steak_profiles import get_steak_profile
from call_agent.utils.exceptions import NotificationFailed
from call_agent.utils.logger import get_logger

logger = get_logger(__name__)

STEAK_INSTRUCTIONS_TEMPLATE = """Hi {name}! 🥩 Here are your personalized {color} steak cooking instructions:

For {preference} steak:
🌡️ Cook to {temperature}
⏱️ About {cook_time}
🎨 Pro tip: Use a {color} plate for the perfect presentation!

Happy cooking! 🔥"""


class NotificationService:
    """Send follow-up text messages via Twilio."""

    def __init__(self, client: Optional[Client] = None, from_number: Optional[str] = None):
        """
        Initialize notification service.

        Args:
            client: Twilio REST client (built from settings when omitted)
            from_number: Sending number (defaults to TWILIO_PHONE_NUMBER)
        """
        self.settings = get_settings()
        self.from_number = from_number or self.settings.twilio_phone_number
        self.client = client

        if self.client is None and self.settings.sms_enabled:
            self.client = Client(self.settings.twilio_account_sid, self.settings.twilio_auth_token)

    def is_configured(self) -> bool:
        """Check if SMS sending is possible."""
        return bool(self.client and self.from_number)

    @staticmethod
    def render_message(record: CustomerRecord) -> str:
        """Render the steak instructions text for a customer."""
        profile = get_steak_profile(record.steak_preference)
        return STEAK_INSTRUCTIONS_TEMPLATE.format(
            name=record.name,
            color=record.favorite_color,
            preference=record.steak_preference.value,
            temperature=profile.target_temperature,
            cook_time=profile.cook_time_per_side,
        )

    def _deliver(self, to_number: str, body: str) -> str:
        """Blocking Twilio API call; returns the message SID."""
        try:
            message = self.client.messages.create(body=body, from_=self.from_number, to=to_number)
        except TwilioException as e:
            raise NotificationFailed(f"Twilio rejected SMS to {to_number}: {e}")
        return message.sid

    async def send(self, to_number: str, body: str) -> bool:
        """
        Send a text message.

        Args:
            to_number: Recipient phone number
            body: Message text

        Returns:
            True if the message was accepted by Twilio, False otherwise
        """
        if not self.is_configured():
            logger.warning("SMS sender not configured, cannot send notification")
            return False

        try:
            loop = asyncio.get_running_loop()
            message_sid = await loop.run_in_executor(None, self._deliver, to_number, body)
            logger.info(f"Sent SMS {message_sid} to {to_number}")
            return True
        except NotificationFailed as e:
            logger.error(str(e))
            return False
        except Exception as e:
            logger.error(f"Failed to send SMS to {to_number}: {e}")
            return False

    async def send_steak_instructions(self, record: CustomerRecord) -> bool:
        """Send the personalized steak instructions to the customer."""
        return await self.send(record.caller_address, self.render_message(record))
