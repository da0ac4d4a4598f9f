"""Twilio SMS sender using httpx against the Twilio REST API."""

import logging

import httpx

from gatekeeper.domain.exceptions import DependencyError

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"

MESSAGE_TEMPLATE = "Your {brand} verification code is: {code}"

# Twilio error codes worth a specific hint in the logs
_ERROR_HINTS = {
    21608: "destination number is unverified for this trial account",
    20003: "authentication failed, check account SID and auth token",
    20404: "account or resource not found, check account SID",
    21211: "invalid destination phone number",
    21612: "sender number cannot reach this destination",
    21408: "sending to this region is not enabled",
}


class TwilioSmsSender:
    """
    Implements SmsSender protocol via Twilio's Messages endpoint.

    Any failure raises DependencyError: the user cannot obtain the code
    otherwise, so the login step must abort.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        brand: str = "KidsTube",
        api_base: str = TWILIO_API_BASE,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.brand = brand
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client = client

    def send_code(self, phone_number: str, code: str) -> bool:
        if not (self.account_sid and self.auth_token and self.from_number):
            logger.error(
                "Missing Twilio credentials: sid=%s token=%s from=%s",
                "present" if self.account_sid else "missing",
                "present" if self.auth_token else "missing",
                "present" if self.from_number else "missing",
            )
            raise DependencyError("SMS provider is not configured")

        url = f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"
        data = {
            "To": phone_number,
            "From": self.from_number,
            "Body": MESSAGE_TEMPLATE.format(brand=self.brand, code=code),
        }
        auth = (self.account_sid, self.auth_token)

        try:
            if self._client is not None:
                response = self._client.post(url, data=data, auth=auth)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, data=data, auth=auth)
        except httpx.HTTPError as e:
            logger.error("Failed to reach Twilio for %s: %s", phone_number, e)
            raise DependencyError("SMS provider unreachable") from e

        if response.is_error:
            self._log_error(phone_number, response)
            raise DependencyError("SMS provider rejected the message")

        logger.info("Verification SMS sent to %s (SID: %s)", phone_number, _message_sid(response))
        return True

    def _log_error(self, phone_number: str, response: httpx.Response) -> None:
        try:
            body = response.json()
        except ValueError:
            body = {}
        error_code = body.get("code")
        logger.error(
            "Twilio rejected SMS to %s: HTTP %s code=%s message=%s",
            phone_number,
            response.status_code,
            error_code,
            body.get("message", response.text),
        )
        hint = _ERROR_HINTS.get(error_code)
        if hint:
            logger.error("Twilio hint: %s", hint)


def _message_sid(response: httpx.Response) -> str:
    try:
        return response.json().get("sid", "unknown")
    except ValueError:
        return "unknown"
