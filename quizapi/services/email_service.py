"""Outgoing mail over SMTP."""
import logging
from datetime import datetime
from email.message import EmailMessage

import aiosmtplib

from quizapi.core.config import settings
from quizapi.core.exceptions import DependencyError

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Password Recovery - Current Affairs-AI"


def render_otp_message(name: str, otp: str, expiry_minutes: int) -> str:
    sender = settings.MAIL_SENDER_NAME
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f4f7fa;">
  <div style="max-width: 600px; margin: 40px auto; background: white; border-radius: 10px;">
    <div style="background: #2c3e50; color: white; padding: 20px; text-align: center;">
      <h2>Password Recovery</h2>
    </div>
    <div style="padding: 30px; line-height: 1.6;">
      <p>Hello {name or "there"},</p>
      <p>We received a request to reset your password. Use the OTP below to proceed:</p>
      <div style="background: #eef2f7; padding: 15px; text-align: center; font-size: 24px; font-weight: bold;">{otp}</div>
      <p>This OTP is valid for {expiry_minutes} minutes. Please do not share it with anyone.</p>
      <p>If you didn't request this, please ignore this email or contact our support team.</p>
    </div>
    <div style="padding: 20px; text-align: center; font-size: 12px; color: #64748b;">
      <p>Regards,<br>{sender} Team</p>
      <p>&copy; {datetime.utcnow().year} {sender}. All rights reserved.</p>
    </div>
  </div>
</body>
</html>
"""


class EmailService:
    """Sends HTML mail through the configured SMTP server."""

    def __init__(
        self,
        hostname: str = None,
        port: int = None,
        username: str = None,
        password: str = None,
        start_tls: bool = None,
        timeout: float = None,
    ):
        self.hostname = hostname or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USERNAME
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.start_tls = settings.SMTP_START_TLS if start_tls is None else start_tls
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

    def build_message(self, to_email: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f'"{settings.MAIL_SENDER_NAME}" <{self.username}>'
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content("Please view this message in an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    async def send_email(self, to_email: str, subject: str, html: str) -> None:
        message = self.build_message(to_email, subject, html)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                start_tls=self.start_tls,
                username=self.username or None,
                password=self.password or None,
                timeout=self.timeout,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("Email sending to %s failed: %s", to_email, e)
            raise DependencyError("Failed to send email") from e
        logger.info("Sent '%s' email to %s", subject, to_email)
