"""
Email Composer Module

This module handles the contact form: it validates an inquiry, notifies the
operators and sends a confirmation to the person who wrote in. Delivery runs
in the background; the caller only learns whether the form was accepted.
"""

import html
import smtplib
import ssl
import threading
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, EmailStr, Field, ValidationError

from ..config import MailConfig, get_mail_config
from ..utils import (
    Notification, NotificationChannel, get_email_logger, get_notification_channel, MAIL_ERROR
)

logger = get_email_logger()

SENDER_NAME = "ResumePilot"

class MailerNotConfiguredError(Exception):
    """The mail relay settings are incomplete."""

class MailDeliveryError(Exception):
    """The mail relay rejected or failed to deliver a message."""

class InquiryForm(BaseModel):
    """A message submitted through the contact form."""
    name: str = Field(min_length=2)
    email: EmailStr
    message: str = Field(min_length=10)

FIELD_MESSAGES = {
    "name": "Name must be at least 2 characters.",
    "email": "Please enter a valid email address.",
    "message": "Message must be at least 10 characters.",
}

@dataclass
class InquiryResult:
    """Outcome of submitting the contact form."""
    success: bool
    message: str
    errors: Dict[str, List[str]] = field(default_factory=dict)

def validate_inquiry(data: Dict[str, Any]) -> InquiryForm:
    """Validate raw form data; raises pydantic ValidationError."""
    cleaned = {key: value.strip() if isinstance(value, str) else value for key, value in data.items()}
    return InquiryForm.model_validate(cleaned)

def inquiry_field_errors(error: ValidationError) -> Dict[str, List[str]]:
    """Map pydantic errors to the user-facing message of each field."""
    errors: Dict[str, List[str]] = {}
    for item in error.errors():
        name = str(item["loc"][0]) if item.get("loc") else "form"
        message = FIELD_MESSAGES.get(name, item.get("msg", "Invalid value"))
        if message not in errors.get(name, []):
            errors.setdefault(name, []).append(message)
    return errors

OPERATOR_TEMPLATE = """<html>
<body style="font-family: Arial, sans-serif; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 8px;">
    <h2 style="color: #4f46e5;">New contact form submission</h2>
    <p><strong>Name:</strong> {name}</p>
    <p><strong>Email:</strong> <a href="mailto:{email}">{email}</a></p>
    <p><strong>Message:</strong></p>
    <div style="background: #f7f7f9; padding: 12px; border-radius: 4px; white-space: pre-wrap;">{message}</div>
  </div>
</body>
</html>"""

CONFIRMATION_TEMPLATE = """<html>
<body style="font-family: Arial, sans-serif; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 8px;">
    <h2 style="color: #4f46e5;">Thanks for reaching out, {name}!</h2>
    <p>We received your message and will get back to you as soon as possible.</p>
    <p>For your records, here is what you sent:</p>
    <div style="background: #f7f7f9; padding: 12px; border-radius: 4px; white-space: pre-wrap;">{message}</div>
    <p style="margin-top: 24px;">The ResumePilot team</p>
  </div>
</body>
</html>"""

class InquiryMailer:
    """Sends contact-form emails through the configured SMTP relay."""

    def __init__(self, config: Optional[MailConfig] = None):
        self.config = config or get_mail_config()
        self.missing = self.config.missing_settings()
        if self.missing:
            logger.warning(f"Mail relay not configured, missing: {', '.join(self.missing)}")

    @property
    def is_configured(self) -> bool:
        return not self.missing

    def build_operator_message(self, inquiry: InquiryForm) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"New inquiry from {inquiry.name}"
        msg["From"] = formataddr((SENDER_NAME, self.config.user))
        msg["To"] = ", ".join(self.config.operator_emails)
        msg["Reply-To"] = inquiry.email
        msg.set_content(f"Name: {inquiry.name}\nEmail: {inquiry.email}\n\n{inquiry.message}")
        msg.add_alternative(OPERATOR_TEMPLATE.format(**self._escaped(inquiry)), subtype="html")
        return msg

    def build_confirmation_message(self, inquiry: InquiryForm) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = "We received your message"
        msg["From"] = formataddr((SENDER_NAME, self.config.user))
        msg["To"] = inquiry.email
        msg.set_content(
            f"Hi {inquiry.name},\n\nWe received your message and will get back to you as soon as possible.\n\n"
            f"{inquiry.message}\n\nThe ResumePilot team"
        )
        msg.add_alternative(CONFIRMATION_TEMPLATE.format(**self._escaped(inquiry)), subtype="html")
        return msg

    def send_inquiry(self, inquiry: InquiryForm) -> None:
        """Send the operator notification and the submitter confirmation."""
        if not self.is_configured:
            raise MailerNotConfiguredError(
                f"Mail relay not configured ({', '.join(self.missing)} missing)"
            )

        messages = [self.build_confirmation_message(inquiry)]
        if self.config.operator_emails:
            messages.insert(0, self.build_operator_message(inquiry))
        else:
            logger.warning("No operator addresses configured; sending confirmation only")

        try:
            with self._connect() as server:
                server.login(self.config.user, self.config.password)
                for msg in messages:
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send inquiry email: {e}")
            raise MailDeliveryError(str(e)) from e

        logger.info(f"Sent {len(messages)} inquiry email(s)", submitter=inquiry.email)

    def _connect(self) -> smtplib.SMTP:
        if self.config.port == 465:
            return smtplib.SMTP_SSL(self.config.host, self.config.port, context=ssl.create_default_context())
        server = smtplib.SMTP(self.config.host, self.config.port)
        server.starttls(context=ssl.create_default_context())
        return server

    @staticmethod
    def _escaped(inquiry: InquiryForm) -> Dict[str, str]:
        return {
            "name": html.escape(inquiry.name),
            "email": html.escape(inquiry.email),
            "message": html.escape(inquiry.message),
        }

_mailer: Optional[InquiryMailer] = None

def get_mailer() -> InquiryMailer:
    """Get the global mailer; relay settings are checked once, on first use."""
    global _mailer
    if _mailer is None:
        _mailer = InquiryMailer()
    return _mailer

def _deliver(mailer: InquiryMailer, inquiry: InquiryForm, channel: NotificationChannel) -> None:
    try:
        mailer.send_inquiry(inquiry)
    except (MailerNotConfiguredError, MailDeliveryError) as e:
        logger.error(f"Inquiry from {inquiry.email} was not delivered: {e}")
        channel.publish(Notification(
            topic=MAIL_ERROR,
            title="Message not delivered",
            message=str(e),
        ))

def handle_inquiry(data: Dict[str, Any], mailer: Optional[InquiryMailer] = None,
                   channel: Optional[NotificationChannel] = None,
                   background: bool = True) -> InquiryResult:
    """
    Validate a contact form submission and dispatch its emails.

    Returns as soon as the form is accepted; delivery failures are logged and
    published on the notification channel.
    """
    try:
        inquiry = validate_inquiry(data)
    except ValidationError as e:
        return InquiryResult(
            success=False,
            message="Please correct the errors in the form.",
            errors=inquiry_field_errors(e),
        )

    mailer = mailer or get_mailer()
    channel = channel or get_notification_channel()
    if background:
        threading.Thread(target=_deliver, args=(mailer, inquiry, channel), daemon=True).start()
    else:
        _deliver(mailer, inquiry, channel)

    return InquiryResult(success=True, message="Your message has been sent successfully!")

__all__ = [
    'InquiryForm',
    'InquiryMailer',
    'InquiryResult',
    'MailerNotConfiguredError',
    'MailDeliveryError',
    'validate_inquiry',
    'inquiry_field_errors',
    'handle_inquiry',
    'get_mailer'
]
