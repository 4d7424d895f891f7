"""
Pydantic schemas for the admin dashboard.
"""

from pydantic import BaseModel


class AdminDashboardStats(BaseModel):
    total_users: int
    users_by_role: dict[str, int]
    total_events: int
    events_by_status: dict[str, int]
    locations_by_status: dict[str, int]
    total_categories: int
    total_tickets: int


class EventActivityPoint(BaseModel):
    """Events starting in one month of a year, or one day of a month."""

    period: int
    events: int
