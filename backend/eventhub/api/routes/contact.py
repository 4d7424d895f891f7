"""
Public contact form endpoint.
"""

from fastapi import APIRouter, Depends

from eventhub.schemas.common import MessageResponse
from eventhub.schemas.contact import ContactMessage
from eventhub.services import contact_service
from eventhub.services.notification_service import Notifier, get_notifier

router = APIRouter(prefix="/contact", tags=["Contact"])


@router.post("/", response_model=MessageResponse)
async def send_contact_message_endpoint(
    data: ContactMessage,
    notifier: Notifier = Depends(get_notifier),
):
    await contact_service.forward_contact_message(notifier, data)
    return MessageResponse(message="Your message has been sent")
