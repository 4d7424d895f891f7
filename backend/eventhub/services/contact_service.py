"""
Contact form delivery to the site inbox.
"""

from eventhub.core.config import get_settings
from eventhub.core.exceptions import InternalError
from eventhub.core.logging import get_logger
from eventhub.schemas.contact import ContactMessage
from eventhub.services.notification_service import ContactNotice, Notifier, send_contact_message

logger = get_logger(__name__)


async def forward_contact_message(notifier: Notifier, data: ContactMessage) -> None:
    """Mail the message to CONTACT_EMAIL (or EMAIL_USER); a failed send is a 500."""
    settings = get_settings()
    recipient = settings.CONTACT_EMAIL or settings.EMAIL_USER
    if not recipient:
        logger.error("contact_recipient_missing")
        raise InternalError("Server configuration error")

    notice = ContactNotice(name=data.name, email=data.email, subject=data.subject, message=data.message)
    if not await send_contact_message(notifier, recipient, notice):
        raise InternalError("The message could not be sent, please try again later")
    logger.info("contact_message_forwarded", sender=data.email, subject=data.subject)
