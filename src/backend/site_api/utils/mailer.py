import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

import requests
from requests import RequestException

from site_api.config import Settings
from site_api.models.lead import LeadSubmission
from site_api.utils.logger import get_logger
from site_api.utils.text import escape_html, html_wrap, normalize_text

logger = get_logger(__name__)

SIGNATURE = "- MacDonald AI"
ACK_SUBJECT = "Thanks - we received your message"
PRE_STYLE = "white-space:pre-wrap;background:#f6f6f6;padding:12px;border-radius:8px;"


class MailDeliveryError(RuntimeError):
    """Raised when the configured transport could not hand off a message."""


@dataclass(frozen=True)
class OutboundEmail:
    sender: str
    to: str
    reply_to: str
    subject: str
    text: str
    html: str


def build_lead_notification(lead: LeadSubmission, settings: Settings) -> OutboundEmail:
    text = (
        "New Lead\n\n"
        f"Name: {lead.name}\n"
        f"Email: {lead.email}\n"
        f"Source: {lead.source}\n\n"
        f"Message:\n{lead.message}"
    )
    html = html_wrap(
        '<h2 style="margin:0 0 8px 0;">New Lead</h2>'
        f'<p style="margin:4px 0;"><strong>Name:</strong> {escape_html(lead.name)}</p>'
        f'<p style="margin:4px 0;"><strong>Email:</strong> {escape_html(lead.email)}</p>'
        f'<p style="margin:4px 0;"><strong>Source:</strong> {escape_html(lead.source)}</p>'
        '<p style="margin:8px 0 4px 0;"><strong>Message:</strong></p>'
        f'<pre style="{PRE_STYLE}">{escape_html(lead.message)}</pre>'
    )
    return OutboundEmail(
        sender=settings.sender_address,
        to=settings.email_to,
        reply_to=lead.email,
        subject=f"New lead from {normalize_text(lead.name)}",
        text=text,
        html=html,
    )


def build_acknowledgement(lead: LeadSubmission, settings: Settings) -> OutboundEmail:
    safe_name = escape_html(lead.name) or "there"
    text = (
        f"Hi {lead.name},\n\n"
        "Thanks for reaching out. We received your message and will get back to you shortly.\n\n"
        f"{SIGNATURE}\n"
    )
    html = html_wrap(
        f"<p>Hi {safe_name},</p>"
        "<p>Thanks for reaching out. We received your message and will get back to you shortly.</p>"
        '<p style="margin:16px 0 4px 0;color:#666;">For your records:</p>'
        f'<pre style="{PRE_STYLE}">{escape_html(lead.message)}</pre>'
        f'<p style="margin-top:16px;">{SIGNATURE}</p>'
    )
    return OutboundEmail(
        sender=settings.sender_address,
        to=lead.email,
        reply_to=settings.email_to,
        subject=ACK_SUBJECT,
        text=text,
        html=html,
    )


def _send_via_resend(settings: Settings, email: OutboundEmail) -> None:
    payload = {
        "from": email.sender,
        "to": [email.to],
        "subject": email.subject,
        "text": email.text,
        "html": email.html,
        "reply_to": email.reply_to,
    }
    try:
        response = requests.post(
            settings.resend_api_url,
            json=payload,
            headers={
                "Authorization": f"Bearer {settings.resend_api_key}",
                "Content-Type": "application/json",
            },
            timeout=settings.resend_timeout,
        )
    except RequestException as exc:
        raise MailDeliveryError(f"Resend request failed: {exc}") from exc
    if not response.ok:
        raise MailDeliveryError(
            f"Resend returned {response.status_code}: {response.text.strip()}"
        )


def _send_via_smtp(settings: Settings, email: OutboundEmail) -> None:
    server_cls = smtplib.SMTP_SSL if settings.smtp_use_ssl else smtplib.SMTP
    try:
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = email.sender
        message["To"] = email.to
        message["Reply-To"] = email.reply_to
        message.set_content(email.text)
        message.add_alternative(email.html, subtype="html")

        with server_cls(
            settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout
        ) as smtp:
            if not settings.smtp_use_ssl:
                smtp.starttls()
            smtp.login(settings.smtp_user, settings.smtp_pass)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError, ValueError) as exc:
        raise MailDeliveryError(f"SMTP delivery failed: {exc}") from exc


def send_email(settings: Settings, email: OutboundEmail) -> None:
    """Deliver one message through the configured transport."""
    if settings.mail_transport == "smtp":
        _send_via_smtp(settings, email)
    else:
        _send_via_resend(settings, email)
    logger.info("Email '%s' sent to %s", email.subject, email.to)


def send_lead_notification(settings: Settings, lead: LeadSubmission) -> None:
    send_email(settings, build_lead_notification(lead, settings))


def send_acknowledgement(settings: Settings, lead: LeadSubmission) -> None:
    """Auto-reply to the submitter. Runs detached, so failures are only logged."""
    try:
        send_email(settings, build_acknowledgement(lead, settings))
    except Exception as exc:
        logger.exception("Failed to send lead acknowledgement email: %s", exc)
