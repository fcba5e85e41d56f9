"""
Contact email rendering and SMTP delivery.
"""

import html
import logging
import smtplib
import ssl
from datetime import datetime
from email.errors import MessageError
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from config import Settings, get_settings
from errors import DeliveryError

logger = logging.getLogger(__name__)

CONTACT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>New Contact Form Submission</title>
    <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif; line-height: 1.6; color: #1a1a1a; background: #f6f8fd; margin: 0; padding: 0; }}
    .container {{ max-width: 600px; margin: 20px auto; background-color: #ffffff; border-radius: 16px; overflow: hidden; }}
    .header {{ text-align: center; padding: 40px 20px; background: #4f46e5; color: white; }}
    .header h1 {{ color: white; font-size: 28px; margin: 0; }}
    .content {{ padding: 40px 30px; }}
    .message {{ background: #f0f9ff; border-radius: 12px; padding: 25px; margin-bottom: 30px; border-left: 4px solid #3b82f6; }}
    .detail-item {{ margin-bottom: 20px; padding: 15px; border-radius: 8px; background: #f8fafc; }}
    .label {{ font-weight: 600; color: #4f46e5; margin-bottom: 8px; display: block; font-size: 14px; text-transform: uppercase; }}
    .value {{ color: #1e293b; font-size: 16px; }}
    .footer {{ text-align: center; padding: 30px 20px; color: #64748b; font-size: 14px; border-top: 1px solid #e2e8f0; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>New Message Received</h1></div>
        <div class="content">
            <div class="message">
                <p>You've received a new message from your portfolio website's contact form. Here are the details:</p>
            </div>
            <div class="details">
                <div class="detail-item"><span class="label">Name</span><span class="value">{name}</span></div>
                <div class="detail-item"><span class="label">Email</span><span class="value">{email}</span></div>
                <div class="detail-item"><span class="label">Subject</span><span class="value">{subject}</span></div>
                <div class="detail-item"><span class="label">Message</span><span class="value">{message}</span></div>
            </div>
        </div>
        <div class="footer">
            <p>This email was sent from your portfolio website's contact form.</p>
            <p>&copy; {year} Your Portfolio. All rights reserved.</p>
        </div>
    </div>
</body>
</html>
"""


def render_contact_email(name: str, email: str, subject: Optional[str], message: str, year: int = None) -> str:
    body = "<br>".join(html.escape(line) for line in message.split("\n"))
    return CONTACT_TEMPLATE.format(
        name=html.escape(name),
        email=html.escape(email),
        subject=html.escape(subject) if subject else "No subject provided",
        message=body,
        year=year or datetime.now().year,
    )


def contact_subject(name: str, subject: Optional[str]) -> str:
    return subject or f"New Contact Form Message from {name}"


class EmailSender:
    """Sends HTML mail through the configured SMTP relay."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def send(self, to: str, subject: str, html_body: str, reply_to: Optional[str] = None) -> None:
        s = self.settings
        if not s.smtp_host:
            if not s.email_dev_mode:
                logger.error("SMTP_HOST is not set; refusing to drop message to %s", to)
                raise DeliveryError("Email sender is not configured")
            logger.info("[DEV] email not sent (SMTP not configured) -> subject: %s, to: %s", subject, to)
            return
        if not to or not s.from_email:
            raise DeliveryError("Email sender is not configured")

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = s.from_email
            msg["To"] = to
            if reply_to:
                msg["Reply-To"] = reply_to
            msg.attach(MIMEText(html_body, "html", "utf-8"))
            payload = msg.as_string()
        except MessageError as exc:
            logger.error("Could not build message to %s: %s", to, exc)
            raise DeliveryError("Failed to send message") from exc

        context = ssl.create_default_context()
        try:
            if s.smtp_use_ssl:
                server = smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, context=context)
            else:
                server = smtplib.SMTP(s.smtp_host, s.smtp_port)
            with server:
                if s.smtp_use_tls and not s.smtp_use_ssl:
                    server.starttls(context=context)
                if s.smtp_username and s.smtp_password:
                    server.login(s.smtp_username, s.smtp_password)
                server.sendmail(s.from_email, [to], payload)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP relay rejected message to %s: %s", to, exc)
            raise DeliveryError("Failed to send message") from exc
        logger.info("Email sent to %s", to)


def get_email_sender() -> EmailSender:
    """FastAPI dependency."""
    return EmailSender()
