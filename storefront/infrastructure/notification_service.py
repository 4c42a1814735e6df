import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from storefront.core.config import settings
from storefront.domain.statuses import status_label
from storefront.interfaces.IAdminNotifier import IAdminNotifier

logger = logging.getLogger(__name__)


def _whatsapp(number: str) -> str:
    # Twilio requires the "whatsapp:" prefix
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


class NotificationService(IAdminNotifier):
    """WhatsApp alerts to the shop admin whenever an order changes status."""

    def __init__(self, client: Optional[Client] = None):
        self.client = client
        self.enabled = client is not None

        # Only initialize if credentials exist in .env
        if self.client is None and settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            try:
                self.client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
                self.enabled = True
                logger.info("✅ NotificationService: Twilio Client Initialized")
            except TwilioException as e:
                logger.error(f"❌ Failed to initialize Twilio Client: {e}")
        elif self.client is None:
            logger.warning("⚠️ NotificationService: Credentials missing in .env. Admin alerts disabled.")

    def notify_status_change(self, order_number: str, old_status: Optional[str], new_status: str,
                             reason: Optional[str] = None) -> None:
        if not self.enabled or not settings.ADMIN_PHONE_NUMBER or not settings.TWILIO_FROM_NUMBER:
            logger.debug("NotificationService disabled or admin number missing.")
            return

        message_body = (
            f"🔔 *Order #{order_number} updated*\n\n"
            f"{status_label(old_status) if old_status else '-'} → {status_label(new_status)}"
        )
        if reason:
            message_body += f"\n📝 {reason}"

        try:
            self.client.messages.create(
                from_=_whatsapp(settings.TWILIO_FROM_NUMBER),
                body=message_body,
                to=_whatsapp(settings.ADMIN_PHONE_NUMBER),
            )
            logger.info(f"✅ Admin notified about order {order_number} ({new_status})")
        except Exception as e:
            logger.error(f"❌ Failed to send admin notification for order {order_number}: {e}")
