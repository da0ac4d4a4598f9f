"""MailerSend email sender using httpx."""

import html
import logging
from datetime import datetime, timezone

import httpx

from .console import verification_link

logger = logging.getLogger(__name__)

MAILERSEND_URL = "https://api.mailersend.com/v1/email"

SUBJECT = "Verify your account"

TEXT_TEMPLATE = """Hello {name},

Thank you for registering. To complete your registration and activate your
account, please visit the following link:

{link}

If you didn't request this verification, you can ignore this email.

(c) {year} {brand}. All rights reserved.
"""

HTML_TEMPLATE = """<div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif;">
  <h2>Hello, {name}!</h2>
  <p>Thank you for registering. To complete your registration and activate
  your account, please click the button below:</p>
  <p style="text-align: center; margin: 30px 0;">
    <a href="{link}" style="background-color: #4d56f8; color: white; padding: 12px 20px;
       text-decoration: none; border-radius: 4px;">Verify My Email</a>
  </p>
  <p>If the button doesn't work, copy this link into your browser:</p>
  <p style="word-break: break-all;"><a href="{link}">{link}</a></p>
  <p>If you didn't request this verification, you can ignore this email.</p>
  <p style="color: #777; font-size: 12px;">&copy; {year} {brand}. All rights reserved.</p>
</div>
"""


class MailerSendEmailSender:
    """
    Implements EmailSender protocol against the MailerSend REST API.

    Delivery failures are logged and reported as False; registration
    carries on without the email.
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str = "KidsTube",
        base_url: str = "http://localhost:8000",
        api_url: str = MAILERSEND_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.base_url = base_url
        self.api_url = api_url
        self.timeout = timeout
        self._client = client

    def send_verification_email(self, to_address: str, token: str, display_name: str) -> bool:
        if not self.api_key:
            logger.error("Cannot send email: MailerSend API key is not configured")
            return False

        link = verification_link(self.base_url, token)
        context = {
            "name": display_name,
            "link": link,
            "year": datetime.now(timezone.utc).year,
            "brand": self.from_name,
        }
        # The name is user supplied; only the HTML part needs escaping
        html_context = {
            **context,
            "name": html.escape(display_name),
            "brand": html.escape(self.from_name),
        }
        payload = {
            "from": {"email": self.from_email, "name": self.from_name},
            "to": [{"email": to_address, "name": display_name}],
            "subject": SUBJECT,
            "html": HTML_TEMPLATE.format(**html_context),
            "text": TEXT_TEMPLATE.format(**context),
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._client is not None:
                response = self._client.post(self.api_url, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "MailerSend rejected email to %s: %s %s",
                to_address,
                e.response.status_code,
                e.response.text,
            )
            return False
        except httpx.HTTPError as e:
            logger.error("Failed to send email to %s: %s", to_address, e)
            return False

        logger.info("Verification email sent to %s", to_address)
        return True
