"""
Outbound notifications: ticket confirmations, moderation notices and
contact form messages.

Ticket and moderation mail runs after the response has been prepared (FastAPI
background tasks) and works from plain payloads captured while the request
session was still open. A failed send is logged and counted; it never
propagates to the caller, since the registration or transition it reports
on has already committed.

The contact form is sent inline, since delivery is the whole request.
"""

import asyncio
import smtplib
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from email.message import EmailMessage
from functools import lru_cache
from html import escape
from typing import Optional, Sequence

from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_notification
from eventhub.services.qr_service import render_scannable

logger = get_logger(__name__)

DATE_FORMAT = "%B %d, %Y at %I:%M %p UTC"


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    maintype: str = "image"
    subtype: str = "png"


@dataclass(frozen=True)
class TicketConfirmation:
    email: str
    full_name: str
    ticket_number: str
    event_name: str
    start_date: datetime
    end_date: datetime
    is_online: bool
    online_url: Optional[str] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    price: Decimal = Decimal("0")


@dataclass(frozen=True)
class RejectionNotice:
    email: str
    full_name: str
    event_name: str
    reason: str


@dataclass(frozen=True)
class ContactNotice:
    name: str
    email: str
    subject: str
    message: str


class Notifier:
    """Sender interface: ``send`` reports success and never raises."""

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        attachments: Sequence[Attachment] = (),
    ) -> bool:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Used when outbound email is disabled; records what would have been sent."""

    async def send(self, to, subject, html_body, attachments=()) -> bool:
        logger.info(
            "email_skipped",
            to=to,
            subject=subject,
            attachments=[a.filename for a in attachments],
        )
        return True


class SmtpNotifier(Notifier):
    def __init__(self, host: str, port: int, use_tls: bool, user: str, password: str, sender: str, timeout: int):
        self.host = host
        self.port = port
        self.use_tls = use_tls
        self.user = user
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, html_body: str, attachments: Sequence[Attachment]) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")
        for attachment in attachments:
            message.add_attachment(
                attachment.content,
                maintype=attachment.maintype,
                subtype=attachment.subtype,
                filename=attachment.filename,
            )
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.send_message(message)

    async def send(self, to, subject, html_body, attachments=()) -> bool:
        try:
            message = self._build_message(to, subject, html_body, attachments)
            # smtplib blocks; keep it off the event loop
            await asyncio.to_thread(self._deliver, message)
        except Exception as e:
            logger.error("email_send_failed", to=to, subject=subject, error=str(e))
            return False
        logger.info("email_sent", to=to, subject=subject)
        return True


@lru_cache()
def get_notifier() -> Notifier:
    """FastAPI dependency; tests override it with a recording notifier."""
    settings = get_settings()
    if not settings.EMAIL_ENABLED:
        return LoggingNotifier()
    return SmtpNotifier(
        host=settings.EMAIL_HOST,
        port=settings.EMAIL_PORT,
        use_tls=settings.EMAIL_USE_TLS,
        user=settings.EMAIL_USER,
        password=settings.EMAIL_PASSWORD,
        sender=settings.EMAIL_FROM,
        timeout=settings.EMAIL_TIMEOUT,
    )


def _render_ticket_confirmation(data: TicketConfirmation) -> str:
    if data.is_online:
        venue = f'Online: <a href="{escape(data.online_url or "")}">{escape(data.online_url or "")}</a>'
    else:
        venue = escape(" - ".join(p for p in (data.location_name, data.location_address) if p))
    price = "Free" if data.price == 0 else f"{data.price:.2f}"
    return f"""
    <html>
      <body>
        <h2>Your ticket for {escape(data.event_name)}</h2>
        <p>Hello {escape(data.full_name)},</p>
        <p>Your registration is confirmed. Present the attached code at the entrance.</p>
        <ul>
          <li><strong>Ticket number:</strong> {escape(data.ticket_number)}</li>
          <li><strong>Starts:</strong> {data.start_date.strftime(DATE_FORMAT)}</li>
          <li><strong>Ends:</strong> {data.end_date.strftime(DATE_FORMAT)}</li>
          <li><strong>Venue:</strong> {venue}</li>
          <li><strong>Price:</strong> {price}</li>
        </ul>
      </body>
    </html>
    """


def _render_rejection(data: RejectionNotice) -> str:
    return f"""
    <html>
      <body>
        <h2>Your event was not approved</h2>
        <p>Hello {escape(data.full_name)},</p>
        <p>The event <strong>{escape(data.event_name)}</strong> was rejected by a moderator.</p>
        <p><strong>Reason:</strong> {escape(data.reason)}</p>
        <p>You can revert it to draft, make changes and submit it again.</p>
      </body>
    </html>
    """


def _render_contact(data: ContactNotice) -> str:
    message = escape(data.message).replace("\n", "<br>")
    return f"""
    <html>
      <body>
        <h2>New message from the EventHub contact form</h2>
        <p><strong>Name:</strong> {escape(data.name)}</p>
        <p><strong>Email:</strong> {escape(data.email)}</p>
        <p><strong>Subject:</strong> {escape(data.subject)}</p>
        <hr>
        <p>{message}</p>
      </body>
    </html>
    """


async def send_ticket_confirmation(notifier: Notifier, data: TicketConfirmation) -> bool:
    """Render the ticket code and mail it; failures are logged, not raised."""
    try:
        code = render_scannable(data.ticket_number)
        sent = await notifier.send(
            to=data.email,
            subject=f"Your ticket for {data.event_name}",
            html_body=_render_ticket_confirmation(data),
            attachments=[Attachment(filename=f"{data.ticket_number}.png", content=code)],
        )
    except Exception as e:
        logger.error("notification_failed", kind="ticket_confirmation", ticket_number=data.ticket_number, error=str(e))
        sent = False
    record_notification("ticket_confirmation", sent)
    return sent


async def send_event_rejected(notifier: Notifier, data: RejectionNotice) -> bool:
    try:
        sent = await notifier.send(
            to=data.email,
            subject=f"Event rejected: {data.event_name}",
            html_body=_render_rejection(data),
        )
    except Exception as e:
        logger.error("notification_failed", kind="event_rejected", event_name=data.event_name, error=str(e))
        sent = False
    record_notification("event_rejected", sent)
    return sent


async def send_contact_message(notifier: Notifier, recipient: str, data: ContactNotice) -> bool:
    """Forward a contact form message to the site inbox."""
    try:
        sent = await notifier.send(
            to=recipient,
            subject=f"New contact message: {data.subject}",
            html_body=_render_contact(data),
        )
    except Exception as e:
        logger.error("notification_failed", kind="contact", sender=data.email, error=str(e))
        sent = False
    record_notification("contact", sent)
    return sent
