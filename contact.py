"""
Contact form: field validation, the submission state machine and the
server-side send.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from errors import PortfolioError, ValidationError
from mailer import EmailSender, contact_subject, render_contact_email
from schemas import EMAIL_RE, ContactMessage

logger = logging.getLogger(__name__)

FIELDS = ("name", "email", "subject", "message")
FAILURE_NOTICE = "Failed to send message. Please try again later."


def validate_contact(fields: Dict[str, str]) -> Dict[str, str]:
    """Check every field and return all violations at once."""
    errors = {}
    name = (fields.get("name") or "").strip()
    email = (fields.get("email") or "").strip()
    subject = (fields.get("subject") or "").strip()
    message = (fields.get("message") or "").strip()

    if not name:
        errors["name"] = "Name is required"
    elif len(name) < 2:
        errors["name"] = "Name must be at least 2 characters"

    if not email:
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(email):
        errors["email"] = "Invalid email address"

    if not subject:
        errors["subject"] = "Subject is required"
    elif len(subject) < 5:
        errors["subject"] = "Subject must be at least 5 characters"

    if not message:
        errors["message"] = "Message is required"
    elif len(message) < 10:
        errors["message"] = "Message must be at least 10 characters"

    return errors


class FormState(str, Enum):
    editing = "editing"
    submitting = "submitting"
    success = "success"
    failed = "failed"


class ContactForm:
    """editing -> submitting -> success | failed, then back to editing via dismiss()."""

    def __init__(self, send: Callable[[ContactMessage], None]) -> None:
        self.send = send
        self.values: Dict[str, str] = {name: "" for name in FIELDS}
        self.errors: Dict[str, str] = {}
        self.state = FormState.editing
        self.notice: Optional[str] = None

    def set(self, field: str, value: str) -> None:
        if field not in self.values:
            raise KeyError(field)
        self.values[field] = value
        self.errors.pop(field, None)

    def submit(self) -> FormState:
        if self.state is not FormState.editing:
            return self.state
        self.errors = validate_contact(self.values)
        if self.errors:
            return self.state

        self.state = FormState.submitting
        try:
            self.send(ContactMessage(**{k: v.strip() for k, v in self.values.items()}))
        except PortfolioError as exc:
            logger.warning("Contact form submission failed: %s", exc)
            self.state = FormState.failed
            self.notice = FAILURE_NOTICE
            return self.state

        self.values = {name: "" for name in FIELDS}
        self.state = FormState.success
        self.notice = "Message sent successfully"
        return self.state

    def dismiss(self) -> None:
        self.notice = None
        if self.state in (FormState.success, FormState.failed):
            self.state = FormState.editing


def send_contact_message(sender: EmailSender, to: str, msg: ContactMessage) -> None:
    if not msg.name or not msg.email or not msg.message:
        raise ValidationError("Name, email, and message are required")
    # These end up in mail headers.
    for field in ("name", "email", "subject"):
        value = getattr(msg, field) or ""
        if "\r" in value or "\n" in value:
            raise ValidationError(f"Invalid {field}", fields={field: "Must be a single line"})
    if not EMAIL_RE.match(msg.email):
        raise ValidationError("Invalid email address", fields={"email": "Invalid email address"})
    html_body = render_contact_email(msg.name, msg.email, msg.subject, msg.message)
    logger.info("Sending contact message from %s to %s", msg.email, to)
    sender.send(to, contact_subject(msg.name, msg.subject), html_body, reply_to=msg.email)
