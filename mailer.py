import logging
from pathlib import Path

import httpx
from fastapi.templating import Jinja2Templates

from config import Config

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


class EmailDeliveryError(Exception):
    pass


class EmailService:
    """Sends transactional email through the MailerSend REST API."""

    def __init__(self, api_key=None, api_url=None, from_email=None, from_name=None, timeout=10.0):
        self.api_key = Config.MAILERSEND_API_KEY if api_key is None else api_key
        self.api_url = api_url or Config.MAILERSEND_API_URL
        self.from_email = from_email or Config.MAILERSEND_FROM_EMAIL
        self.from_name = from_name or Config.MAILERSEND_FROM_NAME
        self.timeout = timeout

    def send(self, to_email: str, subject: str, html_body: str, text_body: str = None) -> dict:
        if not self.api_key:
            logger.warning("Email not configured. Email would be sent to %s: %s", to_email, subject)
            return {"message_id": None}

        payload = {
            "from": {"email": self.from_email, "name": self.from_name},
            "to": [{"email": to_email}],
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            payload["text"] = text_body

        try:
            response = httpx.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Email request to {to_email} failed: {exc}") from exc

        if response.status_code not in (200, 202):
            raise EmailDeliveryError(
                f"MailerSend rejected email to {to_email}: {response.status_code} {response.text}"
            )

        logger.info("Email sent to %s: %s", to_email, subject)
        return {"message_id": response.headers.get("x-message-id")}

    def render(self, template: str, **context):
        html = templates.get_template(f"email/{template}.html").render(**context)
        text = templates.get_template(f"email/{template}.txt").render(**context)
        return html, text

    def send_verification_email(self, email: str, name: str, otp: str) -> dict:
        html, text = self.render(
            "verify_email",
            name=name,
            otp=otp,
            expires_minutes=Config.OTP_EXPIRE_MINUTES,
            app_name=self.from_name,
        )
        return self.send(email, f"Verify your {self.from_name} account", html, text)

    def send_password_reset_email(self, email: str, name: str, token: str) -> dict:
        reset_url = f"{Config.FRONTEND_URL.split(',')[0].rstrip('/')}/reset-password?token={token}"
        html, text = self.render(
            "reset_password",
            name=name,
            reset_url=reset_url,
            expires_minutes=Config.RESET_TOKEN_EXPIRE_MINUTES,
            app_name=self.from_name,
        )
        return self.send(email, f"Reset your {self.from_name} password", html, text)


email_service = EmailService()
