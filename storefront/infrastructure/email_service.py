import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from storefront.core.config import settings
from storefront.domain import emails
from storefront.domain.errors import EmailDeliveryError
from storefront.interfaces.IEmailSender import IEmailSender

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"


class ResendEmailService(IEmailSender):
    """Transactional customer emails through the Resend HTTP API."""

    def __init__(self, api_key: Optional[str] = settings.RESEND_API_KEY,
                 from_email: str = settings.RESEND_FROM_EMAIL,
                 base_url: str = settings.RESEND_BASE_URL,
                 site_url: str = settings.SITE_URL,
                 timeout: float = settings.RESEND_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.from_email = from_email
        self.base_url = base_url.rstrip("/")
        self.site_url = site_url.rstrip("/")
        self.timeout = timeout
        self.templates = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

        if not self.api_key:
            logger.warning("⚠️ ResendEmailService: RESEND_API_KEY missing. Every send will be logged as failed.")

    def render(self, template_name: str, **context) -> str:
        template = self.templates.get_template(f"{template_name}.html")
        return template.render(site_url=self.site_url, **context)

    def _send(self, to: str, subject: str, html: str) -> Optional[str]:
        if not self.api_key:
            raise EmailDeliveryError("Email provider is not configured", subject=subject)

        try:
            response = requests.post(
                f"{self.base_url}/emails",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={"from": self.from_email, "to": [to], "subject": subject, "html": html},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EmailDeliveryError(f"Email request failed: {e}", subject=subject) from e

        if not response.ok:
            logger.error(f"Resend API Error: {response.status_code} - {response.text}")
            raise EmailDeliveryError(f"Email provider returned {response.status_code}: {response.text}",
                                     subject=subject)

        message_id = response.json().get("id")
        logger.info(f"📧 Sent '{subject}' to {to} (id={message_id})")
        return message_id

    def send_accepted_email(self, order_number: str, customer_name: str, customer_email: str,
                            items: List[Dict[str, Any]], total: float) -> Optional[str]:
        html = self.render(
            emails.ORDER_ACCEPTED,
            order_number=order_number,
            customer_name=customer_name,
            items=items,
            total=total,
        )
        return self._send(customer_email, emails.subject_for(emails.ORDER_ACCEPTED, order_number), html)

    def send_rejected_email(self, order_number: str, customer_name: str, customer_email: str,
                            reason: str, refund_info: Optional[str] = None) -> Optional[str]:
        html = self.render(
            emails.ORDER_REJECTED,
            order_number=order_number,
            customer_name=customer_name,
            reason=reason,
            refund_info=refund_info,
        )
        return self._send(customer_email, emails.subject_for(emails.ORDER_REJECTED, order_number), html)

    def send_ready_to_dispatch_email(self, order_number: str, customer_name: str, customer_email: str,
                                     awb_code: str, courier_name: str, tracking_url: Optional[str] = None,
                                     expected_delivery: Optional[str] = None) -> Optional[str]:
        html = self.render(
            emails.READY_TO_DISPATCH,
            order_number=order_number,
            customer_name=customer_name,
            awb_code=awb_code,
            courier_name=courier_name,
            tracking_url=tracking_url,
            expected_delivery=expected_delivery,
        )
        return self._send(customer_email, emails.subject_for(emails.READY_TO_DISPATCH, order_number), html)
