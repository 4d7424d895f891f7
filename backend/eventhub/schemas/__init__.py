from eventhub.schemas.common import Page, MessageResponse, ErrorResponse
from eventhub.schemas.user import UserCreate, UserLogin, UserUpdate, UserResponse, UserSummary, Token, RoleUpdate
from eventhub.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse
from eventhub.schemas.location import LocationCreate, LocationUpdate, LocationResponse
from eventhub.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventDetailResponse, RejectRequest,
    TransitionResponse, SweepResponse, EventParticipantsCount, OrganizerDashboardStats,
)
from eventhub.schemas.ticket import TicketResponse, TicketWithEvent, RegistrationResponse, ReconcileResponse
from eventhub.schemas.setting import SettingResponse, SettingUpdate
from eventhub.schemas.admin import AdminDashboardStats, EventActivityPoint
from eventhub.schemas.contact import ContactMessage

__all__ = [
    "Page", "MessageResponse", "ErrorResponse",
    "UserCreate", "UserLogin", "UserUpdate", "UserResponse", "UserSummary", "Token", "RoleUpdate",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "LocationCreate", "LocationUpdate", "LocationResponse",
    "EventCreate", "EventUpdate", "EventResponse", "EventDetailResponse", "RejectRequest",
    "TransitionResponse", "SweepResponse", "EventParticipantsCount", "OrganizerDashboardStats",
    "TicketResponse", "TicketWithEvent", "RegistrationResponse", "ReconcileResponse",
    "SettingResponse", "SettingUpdate",
    "AdminDashboardStats", "EventActivityPoint",
    "ContactMessage",
]
