from eventhub.models.user import User, UserRole
from eventhub.models.category import Category
from eventhub.models.location import Location, LocationStatus
from eventhub.models.event import Event, EventStatus
from eventhub.models.ticket import Ticket, TicketStatus
from eventhub.models.setting import Setting

__all__ = [
    "User", "UserRole",
    "Category",
    "Location", "LocationStatus",
    "Event", "EventStatus",
    "Ticket", "TicketStatus",
    "Setting",
]
